"""Coverage usage counters."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any


@dataclass(frozen=True)
class MetricPair:
    """Missed/total counts for one metric family."""

    missed: int = 0
    """Number of items not executed."""

    total: int = 0
    """Number of items in scope."""

    def __post_init__(self) -> None:
        if self.missed < 0 or self.total < 0:
            raise ValueError(f"Counter values must be non-negative, got {self}")
        if self.total < self.missed:
            raise ValueError(f"Missed count exceeds total, got {self}")

    def __add__(self, other: MetricPair) -> MetricPair:
        return MetricPair(self.missed + other.missed, self.total + other.total)

    @property
    def covered(self) -> int:
        """Return the number of executed items."""
        return self.total - self.missed

    @property
    def ratio(self) -> float:
        """Return covered/total in [0.0, 1.0]; an empty family reports 0.0."""
        if self.total == 0:
            return 0.0
        return self.covered / self.total


@dataclass(frozen=True)
class UsageCounter:
    """Coverage counters for one unit of code (package, dependency, subtree).

    Counters combine associatively and commutatively; ``EMPTY_USAGE`` is the
    identity element.
    """

    instructions: MetricPair = field(default_factory=MetricPair)
    branches: MetricPair = field(default_factory=MetricPair)
    lines: MetricPair = field(default_factory=MetricPair)
    methods: MetricPair = field(default_factory=MetricPair)
    classes: MetricPair = field(default_factory=MetricPair)
    complexity: MetricPair = field(default_factory=MetricPair)

    def __add__(self, other: UsageCounter) -> UsageCounter:
        return combine(self, other)

    @property
    def is_empty(self) -> bool:
        """Return True when no family has any items."""
        return all(getattr(self, f.name).total == 0 for f in fields(self))

    def to_dict(self) -> dict[str, dict[str, int]]:
        """Return a JSON-serializable mapping of family -> missed/total."""
        return {
            f.name: {"missed": getattr(self, f.name).missed, "total": getattr(self, f.name).total}
            for f in fields(self)
        }


EMPTY_USAGE = UsageCounter()

METRIC_FAMILIES: tuple[str, ...] = tuple(f.name for f in fields(UsageCounter))


def combine(*counters: UsageCounter) -> UsageCounter:
    """Add counters family by family."""
    if not counters:
        return EMPTY_USAGE
    return UsageCounter(
        **{
            name: _sum_pairs(getattr(counter, name) for counter in counters)
            for name in METRIC_FAMILIES
        }
    )


def _sum_pairs(pairs: Any) -> MetricPair:
    missed = 0
    total = 0
    for pair in pairs:
        missed += pair.missed
        total += pair.total
    return MetricPair(missed, total)
