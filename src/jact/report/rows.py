"""JaCoCo-style HTML table rows for usage counters."""

from __future__ import annotations

from html import escape
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jact.models.usage import MetricPair, UsageCounter

BAR_WIDTH = 120
_RESOURCES = "jacoco-resources"


def _number(value: int) -> str:
    return f"{value:,}"


def _percent(pair: MetricPair) -> str:
    if pair.total == 0:
        return "n/a"
    return f"{int(pair.ratio * 100)}%"


def _bar(pair: MetricPair, denominator: MetricPair) -> str:
    """Red/green bar scaled against the denominator's total."""
    if pair.total == 0 or denominator.total == 0:
        return ""
    red = round(BAR_WIDTH * pair.missed / denominator.total)
    green = round(BAR_WIDTH * pair.covered / denominator.total)
    parts = []
    if red:
        parts.append(
            f'<img src="{_RESOURCES}/redbar.gif" width="{red}" height="10" '
            f'title="{_number(pair.missed)}" alt="{_number(pair.missed)}"/>'
        )
    if green:
        parts.append(
            f'<img src="{_RESOURCES}/greenbar.gif" width="{green}" height="10" '
            f'title="{_number(pair.covered)}" alt="{_number(pair.covered)}"/>'
        )
    return "".join(parts)


def _counter_cells(usage: UsageCounter) -> str:
    cells = []
    for pair in (usage.complexity, usage.lines, usage.methods, usage.classes):
        cells.append(f'<td class="ctr1">{_number(pair.missed)}</td>')
        cells.append(f'<td class="ctr2">{_number(pair.total)}</td>')
    return "".join(cells)


def usage_row(
    label: str,
    usage: UsageCounter,
    denominator: UsageCounter,
    *,
    project_package: bool = False,
) -> str:
    """Render a listing row linking to ``<label>/index.html``."""
    css = "el_package" if project_package else "el_group"
    name = escape(label)
    return (
        "<tr>"
        f'<td><a href="{name}/index.html" class="{css}">{name}</a></td>'
        f'<td class="bar">{_bar(usage.instructions, denominator.instructions)}</td>'
        f'<td class="ctr2">{_percent(usage.instructions)}</td>'
        f'<td class="bar">{_bar(usage.branches, denominator.branches)}</td>'
        f'<td class="ctr2">{_percent(usage.branches)}</td>'
        f"{_counter_cells(usage)}"
        "</tr>\n"
    )


def total_row(usage: UsageCounter) -> str:
    """Render the footer row in the schema JaCoCo uses for its totals."""
    return (
        "<tr><td>Total</td>"
        f'<td class="bar">{_number(usage.instructions.missed)} of '
        f"{_number(usage.instructions.total)}</td>"
        f'<td class="ctr2">{_percent(usage.instructions)}</td>'
        f'<td class="bar">{_number(usage.branches.missed)} of {_number(usage.branches.total)}</td>'
        f'<td class="ctr2">{_percent(usage.branches)}</td>'
        f"{_counter_cells(usage)}"
        "</tr>"
    )
