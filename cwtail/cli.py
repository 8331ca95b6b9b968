from __future__ import annotations

import argparse
from datetime import timedelta
from typing import Sequence

from pydantic import BaseModel
from cwtail.core.config import settings
from cwtail.utils.durations import as_lookback


class RunOptions(BaseModel):
    metric_name: str
    namespace: str
    lookback: timedelta
    tail: bool = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cwtail",
        description="Chart per-minute CloudWatch sample counts in the terminal.",
    )
    parser.add_argument(
        "--metric",
        default=settings.metric_name,
        help="Name of the metric to visualize",
    )
    parser.add_argument(
        "--namespace",
        default=settings.metric_namespace,
        help="Namespace in which the metric exists",
    )
    parser.add_argument(
        "--lookback",
        default=settings.metric_lookback,
        help="Amount of metric history to fetch, e.g. 12h or -90m",
    )
    parser.add_argument(
        "--tail",
        action=argparse.BooleanOptionalAction,
        default=settings.tail_enabled,
        help="Keep polling the metric every minute (its publishing frequency); --no-tail renders once",
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> RunOptions:
    """Parse flags; raises ConfigurationError for a malformed lookback."""
    args = build_parser().parse_args(argv)
    return RunOptions(
        metric_name=args.metric,
        namespace=args.namespace,
        lookback=as_lookback(args.lookback),
        tail=args.tail,
    )
