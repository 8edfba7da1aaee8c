"""Data models for jact."""

from jact.models.usage import EMPTY_USAGE, METRIC_FAMILIES, MetricPair, UsageCounter, combine

__all__ = [
    "EMPTY_USAGE",
    "METRIC_FAMILIES",
    "MetricPair",
    "UsageCounter",
    "combine",
]
