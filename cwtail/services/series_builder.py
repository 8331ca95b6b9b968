import math
from datetime import datetime
from typing import Iterable, List

from cwtail.domain.models import PERIOD, DenseSeries, RawDatapoint


def round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def minutes_between(earlier: datetime, later: datetime) -> int:
    """Whole minutes between two instants, absorbing sub-second jitter."""
    return round_half_away((later - earlier) / PERIOD)


def build_dense_series(
    datapoints: Iterable[RawDatapoint], window_start: datetime
) -> DenseSeries:
    """Order datapoints by time and zero-fill the minutes the backend omitted.

    The cursor tracks the next expected minute slot, so ``values[i]`` lines
    up with ``window_start + i`` minutes. Nothing is padded after the last
    datapoint, and empty input gives an empty series.
    """
    ordered = sorted(datapoints, key=lambda dp: dp.timestamp)
    values: List[float] = []
    cursor = window_start
    for dp in ordered:
        gap = minutes_between(cursor, dp.timestamp)
        if gap > 0:
            values.extend([0.0] * gap)
        values.append(dp.sample_count)
        cursor = dp.timestamp + PERIOD
    return DenseSeries(anchor_time=window_start, values=values)
