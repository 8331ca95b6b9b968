"""Tail CloudWatch metric sample counts as a live terminal chart."""

__version__ = "0.1.0"
