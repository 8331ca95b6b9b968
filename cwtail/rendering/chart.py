from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta
from typing import Callable, TextIO, Tuple

import plotext as plt
from cwtail.core.errors import RenderError
from cwtail.domain.models import DenseSeries
from cwtail.utils.durations import format_duration

SCALE = 0.98


def _stdin_terminal_size() -> Tuple[int, int]:
    size = os.get_terminal_size(sys.stdin.fileno())
    return size.columns, size.lines


def caption(namespace: str, metric_name: str, lookback: timedelta, as_of: datetime) -> str:
    return (
        f"[{namespace}/{metric_name}] with lookback={format_duration(lookback)} "
        f"(last updated at {as_of.isoformat(sep=' ', timespec='seconds')})"
    )


class ChartRenderer:
    """Draws a DenseSeries as a full-screen plotext line chart."""

    def __init__(
        self,
        stream: TextIO | None = None,
        terminal_size: Callable[[], Tuple[int, int]] = _stdin_terminal_size,
    ):
        self.stream = stream or sys.stdout
        self.terminal_size = terminal_size

    def render(
        self,
        series: DenseSeries,
        metric_name: str,
        namespace: str,
        lookback: timedelta,
        as_of: datetime,
    ) -> None:
        try:
            width, height = self.terminal_size()
        except (OSError, ValueError) as exc:
            raise RenderError(f"cannot fetch terminal size: {exc}") from exc

        plt.clf()
        if series.values:
            plt.plot(series.values)
        plt.plotsize(int(width * SCALE), int(height * SCALE))
        plt.title(caption(namespace, metric_name, lookback, as_of))
        plt.theme("clear")
        try:
            chart = plt.build()
        except Exception as exc:  # noqa: BLE001
            raise RenderError(f"chart build failed: {exc}") from exc

        plt.clear_terminal()
        self.stream.write(chart + "\n")
        self.stream.flush()
