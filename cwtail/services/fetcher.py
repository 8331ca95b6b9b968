"""Query execution with adaptive splitting on backend rejection."""

from __future__ import annotations

import time
from datetime import timedelta
from typing import List, Protocol

from cwtail.core.config import settings
from cwtail.core.errors import BackendError, TransportError
from cwtail.core.logging_config import get_logger
from cwtail.core.metrics import (
    DATAPOINTS_RECEIVED,
    FETCH_LATENCY,
    FETCH_SPLITS,
    SUBQUERIES_DROPPED,
)
from cwtail.domain.models import RawDatapoint, StatisticQuery, TimeWindow
from cwtail.services.series_builder import round_half_away
from cwtail.utils.concurrency import fan_out, run_blocking

logger = get_logger("fetcher")


class StatisticsService(Protocol):
    def get_statistics(self, query: StatisticQuery) -> List[RawDatapoint]: ...


def partition_window(window: TimeWindow, parts: int) -> List[TimeWindow]:
    """Cut ``window`` into ``parts`` contiguous whole-minute sub-windows.

    Each piece is ``floor(total_minutes / parts)`` minutes long, so up to
    ``parts - 1`` trailing minutes are not covered. Returns an empty list when
    the window is shorter than ``parts`` minutes.
    """
    if parts < 1:
        raise ValueError("parts must be >= 1")
    step_minutes = round_half_away(window.total_minutes) // parts
    if step_minutes <= 0:
        return []
    step = timedelta(minutes=step_minutes)
    return [
        TimeWindow(start=window.start + i * step, end=window.start + (i + 1) * step)
        for i in range(parts)
    ]


class SplittingFetcher:
    def __init__(self, service: StatisticsService, parallelism: int | None = None):
        self.service = service
        if parallelism is None:
            parallelism = settings.split_parallelism
        if parallelism < 2:
            raise ValueError(f"split parallelism must be >= 2, got {parallelism}")
        self.parallelism = parallelism

    async def fetch(self, query: StatisticQuery) -> List[RawDatapoint]:
        """Fetch raw datapoints for ``query``.

        A BackendError triggers one level of splitting; a TransportError on
        the original call propagates unchanged.
        """
        started = time.perf_counter()
        try:
            datapoints = await run_blocking(self.service.get_statistics, query)
        except BackendError as exc:
            datapoints = await self._split(query, exc)
        DATAPOINTS_RECEIVED.inc(len(datapoints))
        FETCH_LATENCY.observe(time.perf_counter() - started)
        return datapoints

    async def _split(
        self, query: StatisticQuery, cause: BackendError
    ) -> List[RawDatapoint]:
        windows = partition_window(query.window, self.parallelism)
        if not windows:
            logger.warning(
                "fetch_split_impossible",
                extra={
                    "metric": query.metric_name,
                    "window_start": query.window.start,
                    "window_end": query.window.end,
                    "error": str(cause),
                },
            )
            return []

        FETCH_SPLITS.inc()
        logger.info(
            "fetch_split",
            extra={
                "metric": query.metric_name,
                "parts": len(windows),
                "window_start": query.window.start,
                "window_end": query.window.end,
                "error": str(cause),
            },
        )

        async def _sub_query(window: TimeWindow) -> List[RawDatapoint]:
            sub_query = query.with_window(window)
            try:
                return await run_blocking(self.service.get_statistics, sub_query)
            except (BackendError, TransportError) as exc:
                SUBQUERIES_DROPPED.inc()
                logger.warning(
                    "subquery_dropped",
                    extra={
                        "metric": query.metric_name,
                        "window_start": window.start,
                        "window_end": window.end,
                        "error": str(exc),
                    },
                )
                return []

        return await fan_out(_sub_query, windows)
