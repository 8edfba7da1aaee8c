"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

if TYPE_CHECKING:
    from rich.status import Status

    from jact.graph.dependency import DependencyGraph, DependencyNode
    from jact.models.usage import MetricPair, UsageCounter
    from jact.resolver import ClassificationResult

console = Console(emoji=False)

_HIGH_THRESHOLD = 80.0
_MEDIUM_THRESHOLD = 50.0
_MAX_UNRESOLVED_DISPLAY = 10


def _coverage_color(percentage: float) -> str:
    """Return a Rich color name for a coverage percentage."""
    if percentage >= _HIGH_THRESHOLD:
        return "green"
    if percentage >= _MEDIUM_THRESHOLD:
        return "yellow"
    return "red"


def _format_pair(pair: MetricPair) -> str:
    if pair.total == 0:
        return "[dim]n/a[/dim]"
    pct = pair.ratio * 100
    color = _coverage_color(pct)
    return f"[{color}]{pct:.1f}%[/{color}] [dim]({pair.covered:,}/{pair.total:,})[/dim]"


class CLIReporter:
    """Rich terminal output for report runs."""

    def __init__(self) -> None:
        self.console = console

    def print_header(self, title: str) -> None:
        """Print a styled banner."""
        self.console.print()
        self.console.print(Panel(f"[bold white]{title}[/bold white]", border_style="cyan"))

    def print_success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def create_status(self, message: str) -> Status:
        """Create a Rich Status spinner for long-running operations."""
        return self.console.status(message)

    def print_usage_summary(self, graph: DependencyGraph) -> None:
        """Print the aggregated usage of the project and its direct dependencies."""
        table = Table(title="Dependency Usage", title_style="bold cyan")
        table.add_column("Dependency", style="bold")
        table.add_column("Instructions", justify="right")
        table.add_column("Branches", justify="right")
        table.add_column("Lines", justify="right")
        table.add_column("Classes", justify="right")

        project = graph.project
        table.add_row("[bold]project packages[/bold]", *self._usage_cells(project.own_usage))
        for node in graph.direct_dependencies:
            table.add_row(node.identity, *self._usage_cells(node.subtree_usage))

        table.add_section()
        table.add_row("[bold]Total[/bold]", *self._usage_cells(project.subtree_usage))
        self.console.print(table)

    def print_classification(self, result: ClassificationResult) -> None:
        """Print how the report's package directories were classified."""
        dependency_count = sum(len(p) for p in result.dependency_packages.values())
        self.console.print(
            f"  Packages: [bold]{result.total}[/bold]  "
            f"project [cyan]{len(result.project_packages)}[/cyan]  "
            f"dependencies [cyan]{dependency_count}[/cyan]  "
            f"unresolved [yellow]{len(result.unresolved)}[/yellow]"
        )
        self.print_unresolved(result.unresolved)

    def print_unresolved(self, packages: list[str]) -> None:
        if not packages:
            return
        self.print_warning(f"{len(packages)} package(s) could not be attributed:")
        for package in packages[:_MAX_UNRESOLVED_DISPLAY]:
            self.console.print(f"    [dim]•[/dim] {package}")
        if len(packages) > _MAX_UNRESOLVED_DISPLAY:
            self.console.print(
                f"    [dim]... and {len(packages) - _MAX_UNRESOLVED_DISPLAY} more[/dim]"
            )

    def print_dependency_tree(self, graph: DependencyGraph) -> None:
        """Print the dependency graph as a tree; shared nodes are marked."""
        root = Tree(f"[bold cyan]{graph.project.identity}[/bold cyan]")
        branches = [root]
        for depth, node in graph.walk():
            if depth == 0:
                continue
            # branches[d] is the most recent branch at depth d
            del branches[depth:]
            branches.append(branches[-1].add(self._node_label(graph, node)))

        self.console.print(root)
        self.console.print(
            f"[dim]{len(graph)} dependencies, {len(graph.direct_dependencies)} direct[/dim]"
        )

    @staticmethod
    def _node_label(graph: DependencyGraph, node: DependencyNode) -> str:
        label = node.identity
        if node.coordinates is not None and node.coordinates.scope:
            label += f" [dim]({node.coordinates.scope})[/dim]"
        parents = len(graph.parents_of(node))
        if parents > 1:
            label += f" [yellow]shared by {parents}[/yellow]"
        return label

    @staticmethod
    def _usage_cells(usage: UsageCounter) -> list[str]:
        return [
            _format_pair(usage.instructions),
            _format_pair(usage.branches),
            _format_pair(usage.lines),
            _format_pair(usage.classes),
        ]


reporter = CLIReporter()
