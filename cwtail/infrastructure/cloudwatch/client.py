"""CloudWatch GetMetricStatistics wrapper.

Translates boto3/botocore failures into the pipeline's error kinds:
``ClientError`` (the service answered with an error) becomes BackendError,
everything raised below that (``BotoCoreError``: unreachable endpoint, read
timeout, missing credentials) becomes TransportError.
"""

from __future__ import annotations

from typing import Any, Dict, List

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from cwtail.core.config import settings
from cwtail.core.errors import BackendError, TransportError
from cwtail.core.logging_config import get_logger
from cwtail.core.metrics import BACKEND_ERRORS, BACKEND_REQUESTS
from cwtail.domain.models import RawDatapoint, StatisticQuery

logger = get_logger("cloudwatch")


def _build_client():
    config = Config(
        region_name=settings.cloudwatch_region,
        connect_timeout=settings.cloudwatch_connect_timeout_seconds,
        read_timeout=settings.cloudwatch_read_timeout_seconds,
        retries={"max_attempts": settings.cloudwatch_max_attempts, "mode": "standard"},
    )
    return boto3.client("cloudwatch", config=config)


class CloudWatchStatisticsClient:
    def __init__(self, client=None):
        self.client = client or _build_client()

    @staticmethod
    def _request(query: StatisticQuery) -> Dict[str, Any]:
        return {
            "MetricName": query.metric_name,
            "Namespace": query.namespace,
            "StartTime": query.window.start,
            "EndTime": query.window.end,
            "Period": query.period_seconds,
            "Statistics": [query.statistic.value],
        }

    def get_statistics(self, query: StatisticQuery) -> List[RawDatapoint]:
        """Issue one GetMetricStatistics call for ``query``."""
        BACKEND_REQUESTS.inc()
        try:
            output = self.client.get_metric_statistics(**self._request(query))
        except ClientError as exc:
            BACKEND_ERRORS.labels(kind="backend").inc()
            error = exc.response.get("Error", {})
            logger.warning(
                "backend_rejected_query",
                extra={
                    "metric": query.metric_name,
                    "window_start": query.window.start,
                    "window_end": query.window.end,
                    "code": error.get("Code"),
                },
            )
            raise BackendError(
                error.get("Message") or str(exc), code=error.get("Code")
            ) from exc
        except BotoCoreError as exc:
            BACKEND_ERRORS.labels(kind="transport").inc()
            raise TransportError(str(exc)) from exc

        datapoints = [
            RawDatapoint(timestamp=dp["Timestamp"], sample_count=dp["SampleCount"])
            for dp in output.get("Datapoints", [])
        ]
        logger.debug(
            "statistics_fetched",
            extra={
                "metric": query.metric_name,
                "window_start": query.window.start,
                "window_end": query.window.end,
                "datapoints": len(datapoints),
            },
        )
        return datapoints
