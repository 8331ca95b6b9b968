from .models import (
    DenseSeries,
    RawDatapoint,
    Statistic,
    StatisticQuery,
    TimeWindow,
)

__all__ = [
    "DenseSeries",
    "RawDatapoint",
    "Statistic",
    "StatisticQuery",
    "TimeWindow",
]
