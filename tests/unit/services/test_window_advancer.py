import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from cwtail.core.errors import RenderError, TransportError
from cwtail.services.fetcher import SplittingFetcher
from cwtail.services.window_advancer import WindowAdvancer, merge_series
from helpers.fakes import (
    T0,
    FakeStatisticsService,
    RecordingRenderer,
    SteppingClock,
    dp,
    minutes,
)


def _advancer(service, renderer, clock, tick=None, lookback=minutes(-5)):
    return WindowAdvancer(
        SplittingFetcher(service, parallelism=2),
        renderer,
        metric_name="jobs|updated",
        namespace="Cron",
        lookback=lookback,
        interval_seconds=60,
        clock=clock,
        tick=tick,
    )


class TestMergeSeries:
    def test_length_is_kept(self):
        assert merge_series([1, 2, 3, 4], [5]) == [2, 3, 4, 5]
        assert merge_series([1, 2, 3, 4], [5, 6]) == [3, 4, 5, 6]

    def test_empty_new_series_changes_nothing(self):
        assert merge_series([1, 2, 3], []) == [1, 2, 3]

    def test_longer_new_series_replaces_everything(self):
        assert merge_series([1, 2], [7, 8, 9]) == [7, 8, 9]


class TestWindowAdvancer:
    @pytest.mark.asyncio
    async def test_start_renders_lookback_window(self, renderer):
        now = T0 + minutes(5)
        service = FakeStatisticsService([dp(1, 3), dp(4, 7)])
        advancer = _advancer(service, renderer, SteppingClock(now))

        series = await advancer.run(tail=False)

        assert series.values == [0, 3, 0, 0, 7]
        assert service.calls[0].start == T0
        assert service.calls[0].end == now
        assert len(renderer.rendered) == 1
        assert renderer.rendered[0]["as_of"] == now
        assert renderer.rendered[0]["lookback"] == minutes(-5)

    @pytest.mark.asyncio
    async def test_advance_queries_elapsed_interval_and_rolls(self, renderer):
        points = [dp(i, i + 1) for i in range(5)] + [dp(5, 42)]
        service = FakeStatisticsService(points)
        clock = SteppingClock(T0 + minutes(5), T0 + minutes(6))
        advancer = _advancer(service, renderer, clock)

        await advancer.start()
        series = await advancer.advance()

        assert service.calls[1].start == T0 + minutes(5)
        assert service.calls[1].end == T0 + minutes(6)
        assert series.values == [2, 3, 4, 5, 42]
        assert series.anchor_time == T0 + minutes(1)
        assert advancer.window_end == T0 + minutes(6)

    @pytest.mark.asyncio
    async def test_anchor_follows_fresh_data_when_series_is_short(self, renderer):
        # only minute 0 has data, so the initial series is one value long
        points = [dp(0, 1)] + [dp(i, 9) for i in range(5, 10)]
        service = FakeStatisticsService(points)
        clock = SteppingClock(T0 + minutes(5), T0 + minutes(10))
        advancer = _advancer(service, renderer, clock)

        initial = await advancer.start()
        assert initial.values == [1]
        series = await advancer.advance()

        assert series.values == [9, 9, 9, 9, 9]
        assert series.anchor_time == T0 + minutes(5)

    @pytest.mark.asyncio
    async def test_queries_use_one_minute_period(self, renderer):
        periods = []

        def record_period(query):
            periods.append(query.period_seconds)

        service = FakeStatisticsService([dp(0, 1)], fail=record_period)
        clock = SteppingClock(T0 + minutes(5), T0 + minutes(6))
        advancer = _advancer(service, renderer, clock)

        await advancer.start()
        await advancer.advance()

        assert periods == [60, 60]

    @pytest.mark.asyncio
    async def test_tick_without_new_data_keeps_series(self, renderer):
        service = FakeStatisticsService([dp(i, 1) for i in range(5)])
        clock = SteppingClock(T0 + minutes(5), T0 + minutes(6))
        advancer = _advancer(service, renderer, clock)

        await advancer.start()
        series = await advancer.advance()

        assert series.values == [1, 1, 1, 1, 1]
        assert series.anchor_time == T0
        assert len(renderer.rendered) == 2

    @pytest.mark.asyncio
    async def test_tick_with_no_elapsed_time_is_skipped(self, renderer):
        service = FakeStatisticsService([dp(0, 1)])
        advancer = _advancer(service, renderer, SteppingClock(T0 + minutes(5)))

        await advancer.start()
        await advancer.advance()

        assert len(service.calls) == 1
        assert len(renderer.rendered) == 1

    @pytest.mark.asyncio
    async def test_advance_before_start_is_an_error(self, renderer):
        advancer = _advancer(FakeStatisticsService(), renderer, SteppingClock(T0))

        with pytest.raises(RuntimeError):
            await advancer.advance()

    @pytest.mark.asyncio
    async def test_tail_loop_runs_until_shutdown(self, renderer):
        shutdown = asyncio.Event()
        ticks = 0

        async def tick(_interval):
            nonlocal ticks
            ticks += 1
            if ticks == 3:
                shutdown.set()

        points = [dp(i, i) for i in range(10)]
        service = FakeStatisticsService(points)
        clock = SteppingClock(*(T0 + minutes(5 + i) for i in range(4)))
        advancer = _advancer(service, renderer, clock, tick=tick)

        series = await advancer.run(tail=True, shutdown_event=shutdown)

        # initial render plus two applied ticks; the third tick saw shutdown
        assert len(renderer.rendered) == 3
        assert series.values == [2, 3, 4, 5, 6]
        assert len(series) == 5

    @pytest.mark.asyncio
    async def test_tail_waits_the_configured_interval(self, renderer):
        shutdown = asyncio.Event()
        tick = AsyncMock(side_effect=lambda _i: shutdown.set())
        advancer = _advancer(
            FakeStatisticsService(), renderer, SteppingClock(T0), tick=tick
        )

        await advancer.run(tail=True, shutdown_event=shutdown)

        tick.assert_awaited_once_with(60)

    @pytest.mark.asyncio
    async def test_default_wait_wakes_on_shutdown(self, renderer):
        shutdown = asyncio.Event()
        advancer = WindowAdvancer(
            SplittingFetcher(FakeStatisticsService()),
            renderer,
            metric_name="m",
            namespace="n",
            lookback=minutes(-5),
            interval_seconds=3600,
            clock=SteppingClock(T0),
        )

        task = asyncio.create_task(advancer.run(tail=True, shutdown_event=shutdown))
        while not renderer.rendered:
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.01)
        assert not task.done()
        shutdown.set()
        await asyncio.wait_for(task, timeout=1)

        assert len(renderer.rendered) == 1

    @pytest.mark.asyncio
    async def test_fetch_failure_ends_tail_loop(self, renderer):
        calls = {"n": 0}

        def fail(_query):
            calls["n"] += 1
            return TransportError("socket closed") if calls["n"] > 1 else None

        service = FakeStatisticsService([dp(0, 1)], fail=fail)
        clock = SteppingClock(T0 + minutes(5), T0 + minutes(6))
        advancer = _advancer(service, renderer, clock, tick=AsyncMock())

        with pytest.raises(TransportError):
            await advancer.run(tail=True, shutdown_event=asyncio.Event())
        assert len(renderer.rendered) == 1

    @pytest.mark.asyncio
    async def test_render_failure_is_surfaced(self):
        renderer = RecordingRenderer(error=RenderError("no terminal"))
        advancer = _advancer(
            FakeStatisticsService(), renderer, SteppingClock(T0), tick=AsyncMock()
        )

        with pytest.raises(RenderError):
            await advancer.run(tail=True)

    def test_non_negative_lookback_rejected(self, renderer):
        with pytest.raises(ValueError):
            _advancer(
                FakeStatisticsService(),
                renderer,
                SteppingClock(T0),
                lookback=timedelta(0),
            )
