"""Receiver interface for finalized usage totals."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pathlib import Path

    from jact.models.usage import UsageCounter


class ReportSink(Protocol):
    """Renders the totals produced by the aggregator.

    Paths are report locations: ``emit_entry`` describes the item located at
    *path* and is rendered in the listing of ``path.parent``; the other two
    methods render into the page at *path* itself.
    """

    def emit_entry(
        self,
        path: Path,
        label: str,
        usage: UsageCounter,
        denominator_total: UsageCounter,
        is_project_package: bool,
    ) -> None:
        """Add a line item for *label* to its parent's listing."""

    def emit_transitive_summary(
        self, path: Path, usage: UsageCounter, denominator_total: UsageCounter
    ) -> None:
        """Add the line summarizing the transitive dependencies of the page at *path*."""

    def emit_grand_total(self, path: Path, usage: UsageCounter) -> None:
        """Set the footer total of the page at *path*."""
