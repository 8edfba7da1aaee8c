"""End-to-end report generation.

``html-report``: lay out the report tree, classify and relocate every JaCoCo
package directory, aggregate, close the pages.
``xml-report``: resolve the packages of ``jacoco.xml`` and aggregate into a
JSON summary; no files of the HTML report are touched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from jact.aggregator import UsageAggregator
from jact.errors import ReportIOError
from jact.graph.maven_tree import load_dependency_tree, read_dependency_tree
from jact.parsing.jacoco_xml import find_jacoco_xml, parse_jacoco_xml
from jact.project import discover_project_packages, read_project_id
from jact.report.html import HtmlReportSink
from jact.report.layout import finish_report_tree, prepare_report_tree
from jact.report.summary import SummaryReportSink
from jact.resolver import (
    ClassificationResult,
    DependencyOwned,
    PackageResolver,
    ProjectOwned,
    classify_report,
)

if TYPE_CHECKING:
    from pathlib import Path

    from jact.config import JactConfig
    from jact.graph.dependency import DependencyGraph
    from jact.models.usage import UsageCounter

logger = logging.getLogger(__name__)


@dataclass
class HtmlReportResult:
    """Outcome of ``html-report``."""

    report_dir: Path
    graph: DependencyGraph
    classification: ClassificationResult
    total: UsageCounter
    pages: list[Path] = field(default_factory=list)


@dataclass
class XmlReportResult:
    """Outcome of ``xml-report``."""

    xml_file: Path
    graph: DependencyGraph
    sink: SummaryReportSink
    total: UsageCounter
    unresolved: list[str] = field(default_factory=list)
    summary_file: Path | None = None


def _project_id(config: JactConfig) -> str | None:
    if config.project.id:
        return config.project.id
    return read_project_id(config.root_path / "pom.xml")


async def load_graph(config: JactConfig) -> DependencyGraph:
    """Build the dependency graph from the configured tree file or from Maven."""
    options = {
        "scopes": set(config.maven.scopes),
        "include_transitive": config.maven.include_transitive,
        "project_id": _project_id(config),
    }
    if config.maven.tree_file:
        return read_dependency_tree(config.resolve(config.maven.tree_file), **options)
    return await load_dependency_tree(
        config.root_path,
        mvn_command=config.maven.command,
        timeout=float(config.maven.timeout),
        **options,
    )


def generate_html_report(config: JactConfig, graph: DependencyGraph) -> HtmlReportResult:
    """Turn the flat JaCoCo HTML report into the dependency report, in place.

    Raises:
        ReportIOError: If the report cannot be read or written.
        StructuralError: If the graph cannot be rendered.
    """
    report_root = config.report_dir
    if not report_root.is_dir():
        raise ReportIOError(f"JaCoCo report not found: {report_root}", report_root)

    graph.assign_report_paths(report_root)
    graph.validate()
    pages = prepare_report_tree(graph, report_root)

    project_packages = discover_project_packages(config.source_roots)
    classification = classify_report(report_root, graph, project_packages, config.local_repo)

    total = UsageAggregator(graph, HtmlReportSink(report_root)).run()
    finish_report_tree(graph, report_root)

    logger.info("Dependency report written to %s", report_root / "index.html")
    return HtmlReportResult(
        report_dir=report_root,
        graph=graph,
        classification=classification,
        total=total,
        pages=pages,
    )


def generate_xml_summary(
    config: JactConfig,
    graph: DependencyGraph,
    xml_file: Path | None = None,
    *,
    write: bool = True,
) -> XmlReportResult:
    """Aggregate ``jacoco.xml`` package usage by dependency.

    Raises:
        ReportIOError: If no XML report is found or it cannot be parsed.
    """
    if xml_file is None:
        xml_file = config.resolve(config.report.xml) if config.report.xml else None
    if xml_file is None:
        xml_file = find_jacoco_xml(config.root_path)
    if xml_file is None:
        raise ReportIOError(f"No JaCoCo XML report found under {config.root_path}")

    package_usage = parse_jacoco_xml(xml_file)
    report_root = config.report_dir
    graph.assign_report_paths(report_root)
    graph.validate()

    project_packages = discover_project_packages(config.source_roots)
    resolver = PackageResolver(graph, project_packages, config.local_repo)
    unresolved: list[str] = []
    for package, usage in package_usage.items():
        target = resolver.resolve(package)
        if isinstance(target, ProjectOwned):
            graph.project.add_package_usage(package, usage)
        elif isinstance(target, DependencyOwned):
            target.node.add_package_usage(package, usage)
        else:
            logger.warning("Unresolved package %s: %s", package, target.reason)
            unresolved.append(package)

    sink = SummaryReportSink(report_root)
    total = UsageAggregator(graph, sink).run()

    summary_file = sink.write(config.resolve(config.report.summary_file)) if write else None
    return XmlReportResult(
        xml_file=xml_file,
        graph=graph,
        sink=sink,
        total=total,
        unresolved=unresolved,
        summary_file=summary_file,
    )
