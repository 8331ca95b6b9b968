from __future__ import annotations

import asyncio
import signal
import sys
from typing import Sequence

from prometheus_client import start_http_server
from cwtail.cli import RunOptions, parse_args
from cwtail.core.config import settings
from cwtail.core.errors import ConfigurationError, CwTailError
from cwtail.core.logging_config import configure_logging, get_logger
from cwtail.infrastructure.cloudwatch.client import CloudWatchStatisticsClient
from cwtail.rendering.chart import ChartRenderer
from cwtail.services.fetcher import SplittingFetcher
from cwtail.services.window_advancer import WindowAdvancer

logger = get_logger("main")


def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop, shutdown_event: asyncio.Event
) -> dict:
    # First signal stops the tailing loop, second cancels outright
    state = {"signalled": False}

    def _on_signal(signum, frame):  # noqa: D401
        if not state["signalled"]:
            logger.info("signal_received", extra={"signal": signum, "action": "stop"})
            loop.call_soon_threadsafe(shutdown_event.set)
            state["signalled"] = True
        else:
            logger.warning(
                "second_signal_exit", extra={"signal": signum, "action": "cancel"}
            )
            for task in asyncio.all_tasks(loop):
                loop.call_soon_threadsafe(task.cancel)

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            previous[sig] = signal.signal(sig, _on_signal)
        except (ValueError, OSError):
            logger.debug("signal_handler_install_failed", extra={"signal": sig})
    return previous


def build_advancer(options: RunOptions) -> WindowAdvancer:
    fetcher = SplittingFetcher(
        CloudWatchStatisticsClient(), parallelism=settings.split_parallelism
    )
    return WindowAdvancer(
        fetcher,
        ChartRenderer(),
        metric_name=options.metric_name,
        namespace=options.namespace,
        lookback=options.lookback,
        interval_seconds=settings.tail_interval_seconds,
    )


async def _run(options: RunOptions) -> None:
    if settings.metrics_port:
        start_http_server(settings.metrics_port)
        logger.info("metrics_listening", extra={"port": settings.metrics_port})

    advancer = build_advancer(options)
    shutdown_event = asyncio.Event()
    previous_handlers = _install_signal_handlers(
        asyncio.get_running_loop(), shutdown_event
    )
    logger.info(
        "cwtail_starting",
        extra={
            "metric": options.metric_name,
            "namespace": options.namespace,
            "lookback": str(options.lookback),
            "tail": options.tail,
        },
    )
    try:
        await advancer.run(options.tail, shutdown_event)
    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)
        logger.info("cwtail_stopping")


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging(
        service=settings.otel_service_name,
        environment=settings.app_environment,
        level=settings.app_log_level,
        redaction_patterns=settings.app_log_redaction_patterns,
        log_file=settings.app_log_file,
    )
    try:
        options = parse_args(argv)
    except ConfigurationError as exc:
        logger.error("invalid_configuration", extra={"error": str(exc)})
        print(f"cwtail: {exc}", file=sys.stderr)
        return 2

    try:
        asyncio.run(_run(options))
    except KeyboardInterrupt:  # noqa: PIE786
        logger.info("keyboard_interrupt_shutdown")
    except asyncio.CancelledError:
        logger.info("cwtail_cancelled")
    except CwTailError as exc:
        logger.exception("fatal_error_main")
        print(f"cwtail: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
