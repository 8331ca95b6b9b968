from .client import CloudWatchStatisticsClient

__all__ = ["CloudWatchStatisticsClient"]
