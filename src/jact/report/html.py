"""HTML rendering of the dependency coverage report.

Pages are assembled incrementally: a start template is written when the
report tree is laid out, rows are appended while the aggregator emits, the
footer total replaces the ``REPLACEWITHTOTAL`` marker, and a closing template
is appended at the end.
"""

from __future__ import annotations

import logging
from importlib import resources
from typing import TYPE_CHECKING

from jact.errors import ReportIOError
from jact.graph.dependency import DEPENDENCIES_DIR, TRANSITIVE_DIR
from jact.report.rows import total_row, usage_row

if TYPE_CHECKING:
    from pathlib import Path

    from jact.models.usage import UsageCounter

logger = logging.getLogger(__name__)

INDEX_FILE = "index.html"
TOTAL_MARKER = "REPLACEWITHTOTAL"
NAME_TOKEN = "dependency.name"
LINK_TOKEN = "pathtodependencyindex"

OVERVIEW_TEMPLATE = "overview_start.html"
DEPENDENCIES_TEMPLATE = "dependencies_start.html"
DEPENDENCY_TEMPLATE = "dependency_start.html"
END_TEMPLATE = "table_end.html"


def load_template(name: str) -> str:
    """Load a page template shipped with the package.

    Raises:
        ReportIOError: If the template does not exist.
    """
    try:
        return resources.files("jact.report").joinpath("templates", name).read_text(
            encoding="utf-8"
        )
    except (FileNotFoundError, OSError) as e:
        raise ReportIOError(f"Resource not found: {name}", name) from e


def render_template(name: str, dependency_name: str = "") -> str:
    """Load a template and substitute the dependency name and link tokens."""
    content = load_template(name)
    if not dependency_name:
        return content
    return content.replace(LINK_TOKEN, f"{dependency_name}/{INDEX_FILE}").replace(
        NAME_TOKEN, dependency_name
    )


def write_page(page: Path, content: str, *, append: bool = False) -> None:
    """Write (or append) *content* to a page file.

    Raises:
        ReportIOError: If the file cannot be written.
    """
    try:
        page.parent.mkdir(parents=True, exist_ok=True)
        with page.open("a" if append else "w", encoding="utf-8") as fh:
            fh.write(content)
    except OSError as e:
        raise ReportIOError(f"Cannot write {page}: {e}", page) from e


def append_to_page(page: Path, content: str) -> None:
    """Append to an existing page.

    Raises:
        ReportIOError: If the page does not exist or cannot be written.
    """
    if not page.is_file():
        raise ReportIOError(f"Report page does not exist: {page}", page)
    write_page(page, content, append=True)


def replace_total(page: Path, content: str) -> None:
    """Replace the first line containing the total marker with *content*.

    When the page has no marker left, *content* is appended at the end.

    Raises:
        ReportIOError: If the page cannot be read or written.
    """
    try:
        lines = page.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise ReportIOError(f"Cannot read {page}: {e}", page) from e

    for index, line in enumerate(lines):
        if TOTAL_MARKER in line:
            lines[index] = content
            break
    else:
        logger.debug("No total marker in %s, appending", page)
        lines.append(content)

    try:
        page.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError as e:
        raise ReportIOError(f"Cannot write {page}: {e}", page) from e


class HtmlReportSink:
    """Writes aggregator emissions into the pages of a report tree."""

    def __init__(self, report_root: Path) -> None:
        """Initialize the sink.

        Args:
            report_root: Root of the report; its page lists ``dependencies``
                instead of ``transitive-dependencies``.
        """
        self._report_root = report_root

    def emit_entry(
        self,
        path: Path,
        label: str,
        usage: UsageCounter,
        denominator_total: UsageCounter,
        is_project_package: bool,
    ) -> None:
        append_to_page(
            path.parent / INDEX_FILE,
            usage_row(label, usage, denominator_total, project_package=is_project_package),
        )

    def emit_transitive_summary(
        self, path: Path, usage: UsageCounter, denominator_total: UsageCounter
    ) -> None:
        label = DEPENDENCIES_DIR if path == self._report_root else TRANSITIVE_DIR
        append_to_page(path / INDEX_FILE, usage_row(label, usage, denominator_total))

    def emit_grand_total(self, path: Path, usage: UsageCounter) -> None:
        page = path / INDEX_FILE
        if not page.is_file():
            raise ReportIOError(f"Report page does not exist: {page}", page)
        replace_total(page, total_row(usage))
