"""Footer-row extraction from JaCoCo HTML package pages.

JaCoCo renders one ``index.html`` per package whose ``<tfoot>`` holds a single
aggregate row. Only that row is read here; the per-class data rows are ignored.
The scanner works on markers (``<tfoot>``, ``<tr>``, ``<td>``, ``</tr>``) and
does not depend on the page being pretty-printed.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import TYPE_CHECKING

from jact.errors import ReportIOError
from jact.models.usage import MetricPair, UsageCounter

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_NUMBER = r"\d[\d,]*"
_PAIR_CELL_RE = re.compile(rf"<td[^>]*>\s*({_NUMBER})(?:\s+of\s+({_NUMBER}))?\s*</td>", re.DOTALL)
_NUMBER_CELL_RE = re.compile(rf"<td[^>]*>\s*({_NUMBER})\s*</td>", re.DOTALL)
_MARKER_RE = re.compile(
    r"<tfoot\b[^>]*>|<tr\b[^>]*>|</tr\s*>|<td\b[^>]*>.*?</td\s*>",
    re.IGNORECASE | re.DOTALL,
)

# 1-based column index (label cell excluded) -> metric family
_PAIR_COLUMNS: dict[int, str] = {1: "instructions", 3: "branches"}
_IGNORED_COLUMNS: frozenset[int] = frozenset({2, 4})
_MISSED_COLUMNS: dict[int, str] = {5: "complexity", 7: "lines", 9: "methods", 11: "classes"}
_TOTAL_COLUMNS: dict[int, str] = {6: "complexity", 8: "lines", 10: "methods", 12: "classes"}

FOOTER_COLUMNS = 12


class _ScanState(Enum):
    SEEK_FOOTER = "seek_footer"
    SEEK_ROW = "seek_row"
    IN_ROW = "in_row"


def _to_int(text: str | None) -> int:
    if not text:
        return 0
    try:
        return int(text.replace(",", ""))
    except ValueError:
        logger.warning("Could not parse number %r, counting it as 0", text)
        return 0


def parse_cell(cell: str, column: int) -> int | tuple[int, int]:
    """Parse one footer cell according to its column.

    Args:
        cell: The cell markup, e.g. ``<td class="bar">1,234 of 5,678</td>``.
        column: 1-based column index, the row label cell not counted.

    Returns:
        A ``(missed, total)`` tuple for the instruction and branch columns and a
        plain integer for every other column. Malformed content yields zeros.
    """
    if column in _PAIR_COLUMNS:
        match = _PAIR_CELL_RE.search(cell)
        if match is None:
            logger.warning("No 'missed of total' value in column %d: %s", column, cell.strip())
            return (0, 0)
        return (_to_int(match.group(1)), _to_int(match.group(2)))

    if column in _IGNORED_COLUMNS:
        return 0

    if column in _MISSED_COLUMNS or column in _TOTAL_COLUMNS:
        match = _NUMBER_CELL_RE.search(cell)
        if match is None:
            logger.warning("No number in column %d: %s", column, cell.strip())
            return 0
        return _to_int(match.group(1))

    logger.warning("Could not extract usage of column %d: %s", column, cell.strip())
    return 0


def _footer_cells(document: str) -> list[str] | None:
    """Return the cells of the first footer row, or None if there is none."""
    state = _ScanState.SEEK_FOOTER
    cells: list[str] = []
    for match in _MARKER_RE.finditer(document):
        token = match.group(0)
        lowered = token[:7].lower()
        if state is _ScanState.SEEK_FOOTER:
            if lowered.startswith("<tfoot"):
                state = _ScanState.SEEK_ROW
        elif state is _ScanState.SEEK_ROW:
            if lowered.startswith("<tr"):
                state = _ScanState.IN_ROW
        elif lowered.startswith("</tr"):
            return cells
        elif lowered.startswith("<td"):
            cells.append(token)
    if state is _ScanState.IN_ROW:
        logger.warning("Footer row is not terminated, using %d cells", len(cells))
        return cells
    return None


def extract_footer_usage(document: str) -> UsageCounter | None:
    """Extract the aggregate usage from the footer row of a package page.

    Returns:
        The parsed counters, or None when the document has no footer row.
    """
    cells = _footer_cells(document)
    if cells is None:
        logger.warning("No footer row found in report page")
        return None

    # First cell is the row label ("Total")
    values = cells[1:]
    if len(values) < FOOTER_COLUMNS:
        logger.warning("Footer row has %d of %d usage columns", len(values), FOOTER_COLUMNS)

    pairs: dict[str, tuple[int, int]] = {}
    missed: dict[str, int] = {}
    totals: dict[str, int] = {}
    for column, cell in enumerate(values[:FOOTER_COLUMNS], start=1):
        value = parse_cell(cell, column)
        if column in _PAIR_COLUMNS and isinstance(value, tuple):
            pairs[_PAIR_COLUMNS[column]] = value
        elif column in _MISSED_COLUMNS and isinstance(value, int):
            missed[_MISSED_COLUMNS[column]] = value
        elif column in _TOTAL_COLUMNS and isinstance(value, int):
            totals[_TOTAL_COLUMNS[column]] = value

    for family in _MISSED_COLUMNS.values():
        pairs[family] = (missed.get(family, 0), totals.get(family, 0))

    return UsageCounter(**{family: _checked_pair(family, *pair) for family, pair in pairs.items()})


def _checked_pair(family: str, missed: int, total: int) -> MetricPair:
    if total < missed:
        logger.warning(
            "Inconsistent %s counter (missed=%d, total=%d), counting it as 0", family, missed, total
        )
        return MetricPair()
    return MetricPair(missed, total)


def read_package_usage(index_path: Path) -> UsageCounter | None:
    """Read a package page and return its footer usage.

    Raises:
        ReportIOError: If the page cannot be read.
    """
    try:
        document = index_path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise ReportIOError(f"Cannot read report page {index_path}: {exc}", index_path) from exc
    return extract_footer_usage(document)
