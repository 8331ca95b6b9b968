from .chart import ChartRenderer

__all__ = ["ChartRenderer"]
