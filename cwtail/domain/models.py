from datetime import datetime, timedelta
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# DenseSeries slots and the CloudWatch query period are both one minute
PERIOD_SECONDS = 60
PERIOD = timedelta(seconds=PERIOD_SECONDS)


class Statistic(str, Enum):
    """CloudWatch statistics requested by cwtail."""

    SAMPLE_COUNT = "SampleCount"


class TimeWindow(BaseModel):
    """Half-open time range ``[start, end)``."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "TimeWindow":
        if self.start >= self.end:
            raise ValueError(
                f"window start {self.start.isoformat()} must precede end "
                f"{self.end.isoformat()}"
            )
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def total_minutes(self) -> float:
        return self.duration / PERIOD


class StatisticQuery(BaseModel):
    """A single GetMetricStatistics request. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    metric_name: str
    namespace: str
    window: TimeWindow
    period_seconds: int = PERIOD_SECONDS
    statistic: Statistic = Statistic.SAMPLE_COUNT

    @field_validator("period_seconds")
    @classmethod
    def _one_minute_period(cls, value: int) -> int:
        if value != PERIOD_SECONDS:
            raise ValueError(
                f"only {PERIOD_SECONDS}s periods are supported, got {value}s"
            )
        return value

    def with_window(self, window: TimeWindow) -> "StatisticQuery":
        return self.model_copy(update={"window": window})


class RawDatapoint(BaseModel):
    """One bucket as reported by the backend; may be unordered and sparse."""

    timestamp: datetime
    sample_count: float


class DenseSeries(BaseModel):
    """Per-minute values where ``values[i]`` is ``anchor_time + i`` minutes."""

    anchor_time: datetime
    values: List[float] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values)
