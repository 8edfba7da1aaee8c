"""In-memory report sink producing a JSON-serializable summary."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jact.errors import ReportIOError

if TYPE_CHECKING:
    from jact.models.usage import UsageCounter

logger = logging.getLogger(__name__)


@dataclass
class SummaryEntry:
    """One line item of a summarized page."""

    label: str
    usage: UsageCounter
    denominator: UsageCounter
    project_package: bool = False


@dataclass
class SummaryPage:
    """Everything emitted for one report location."""

    entries: list[SummaryEntry] = field(default_factory=list)
    transitive: UsageCounter | None = None
    total: UsageCounter | None = None


class SummaryReportSink:
    """Collects emissions per report location instead of writing HTML."""

    def __init__(self, report_root: Path) -> None:
        self._report_root = report_root
        self.pages: dict[Path, SummaryPage] = {}

    def _page(self, path: Path) -> SummaryPage:
        return self.pages.setdefault(path, SummaryPage())

    def emit_entry(
        self,
        path: Path,
        label: str,
        usage: UsageCounter,
        denominator_total: UsageCounter,
        is_project_package: bool,
    ) -> None:
        self._page(path.parent).entries.append(
            SummaryEntry(label, usage, denominator_total, is_project_package)
        )

    def emit_transitive_summary(
        self, path: Path, usage: UsageCounter, denominator_total: UsageCounter
    ) -> None:
        self._page(path).transitive = usage

    def emit_grand_total(self, path: Path, usage: UsageCounter) -> None:
        self._page(path).total = usage

    def to_dict(self) -> dict[str, Any]:
        """Return pages keyed by their location relative to the report root."""
        result: dict[str, Any] = {}
        for path, page in sorted(self.pages.items(), key=lambda item: str(item[0])):
            try:
                key = path.relative_to(self._report_root).as_posix() or "."
            except ValueError:
                key = path.as_posix()
            result[key] = {
                "entries": [
                    {
                        "label": entry.label,
                        "project_package": entry.project_package,
                        "usage": entry.usage.to_dict(),
                        "denominator": entry.denominator.to_dict(),
                    }
                    for entry in page.entries
                ],
                "transitive": page.transitive.to_dict() if page.transitive else None,
                "total": page.total.to_dict() if page.total else None,
            }
        return result

    def write(self, output: Path) -> Path:
        """Write the summary as JSON.

        Raises:
            ReportIOError: If the file cannot be written.
        """
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            raise ReportIOError(f"Cannot write {output}: {e}", output) from e
        logger.info("Summary written to %s", output)
        return output
