"""Initial render plus the continuous tailing loop."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional, Protocol

from cwtail.core.config import settings
from cwtail.core.errors import CwTailError
from cwtail.core.logging_config import get_logger
from cwtail.core.metrics import TICK_ERRORS, TICKS
from cwtail.domain.models import PERIOD, DenseSeries, StatisticQuery, TimeWindow
from cwtail.services.fetcher import SplittingFetcher
from cwtail.services.series_builder import build_dense_series

logger = get_logger("advancer")

Clock = Callable[[], datetime]
TickSource = Callable[[float], Awaitable[object]]


class Renderer(Protocol):
    def render(
        self,
        series: DenseSeries,
        metric_name: str,
        namespace: str,
        lookback: timedelta,
        as_of: datetime,
    ) -> None: ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def merge_series(current: List[float], new: List[float]) -> List[float]:
    """Evict ``len(new)`` values from the front and append ``new``.

    Keeps the length of ``current`` unless ``new`` is longer, in which case
    the result is just ``new``.
    """
    return current[len(new) :] + new


class WindowAdvancer:
    """Owns the displayed series for the lifetime of a session.

    ``clock`` and ``tick`` are injectable so ticks can be driven without
    wall-clock sleeps. Without a ``tick`` the loop waits on the shutdown event
    with the interval as timeout, so a shutdown request wakes it immediately.
    """

    def __init__(
        self,
        fetcher: SplittingFetcher,
        renderer: Renderer,
        metric_name: str,
        namespace: str,
        lookback: timedelta,
        interval_seconds: float | None = None,
        clock: Clock = utc_now,
        tick: Optional[TickSource] = None,
    ):
        if lookback >= timedelta(0):
            raise ValueError("lookback must be negative")
        self.fetcher = fetcher
        self.renderer = renderer
        self.metric_name = metric_name
        self.namespace = namespace
        self.lookback = lookback
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else settings.tail_interval_seconds
        )
        self.clock = clock
        self.tick = tick

        self.series: DenseSeries | None = None
        self.window_end: datetime | None = None

    def _query(self, window: TimeWindow) -> StatisticQuery:
        return StatisticQuery(
            metric_name=self.metric_name,
            namespace=self.namespace,
            window=window,
        )

    async def _fetch_series(self, window: TimeWindow) -> DenseSeries:
        datapoints = await self.fetcher.fetch(self._query(window))
        return build_dense_series(datapoints, window.start)

    def _render(self) -> None:
        self.renderer.render(
            self.series,
            self.metric_name,
            self.namespace,
            self.lookback,
            self.window_end,
        )

    async def start(self) -> DenseSeries:
        """Fetch and render ``[now + lookback, now)``."""
        now = self.clock()
        window = TimeWindow(start=now + self.lookback, end=now)
        self.series = await self._fetch_series(window)
        self.window_end = now
        logger.info(
            "initial_series_built",
            extra={"metric": self.metric_name, "points": len(self.series)},
        )
        self._render()
        return self.series

    async def advance(self) -> DenseSeries:
        """Fetch the interval since the last window end and roll it in."""
        if self.series is None or self.window_end is None:
            raise RuntimeError("advance() called before start()")

        now = self.clock()
        if now <= self.window_end:
            logger.debug("tick_skipped", extra={"window_end": self.window_end})
            return self.series

        fresh = await self._fetch_series(TimeWindow(start=self.window_end, end=now))
        if fresh.values:
            merged = merge_series(self.series.values, fresh.values)
            # fresh values start at the previous window end; older values precede them
            self.series = DenseSeries(
                anchor_time=fresh.anchor_time - PERIOD * (len(merged) - len(fresh)),
                values=merged,
            )
        self.window_end = now
        self._render()
        TICKS.inc()
        logger.debug(
            "tick_applied",
            extra={"new_points": len(fresh), "points": len(self.series)},
        )
        return self.series

    async def _wait(self, shutdown_event: asyncio.Event) -> None:
        if self.tick is not None:
            await self.tick(self.interval_seconds)
            return
        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=self.interval_seconds)
        except asyncio.TimeoutError:
            pass

    async def run(
        self, tail: bool, shutdown_event: asyncio.Event | None = None
    ) -> DenseSeries:
        """Render once, then keep tailing until shutdown or the first error."""
        await self.start()
        if not tail:
            return self.series

        shutdown_event = shutdown_event or asyncio.Event()
        logger.info(
            "tailing_started",
            extra={"metric": self.metric_name, "interval": self.interval_seconds},
        )
        while not shutdown_event.is_set():
            await self._wait(shutdown_event)
            if shutdown_event.is_set():
                break
            try:
                await self.advance()
            except CwTailError as exc:
                TICK_ERRORS.inc()
                logger.error(
                    "tick_failed",
                    extra={"metric": self.metric_name, "error": str(exc)},
                )
                raise
        logger.info("tailing_stopped", extra={"metric": self.metric_name})
        return self.series
