"""Directory and page skeleton of the dependency report.

Every page directory gets its own copy of ``jacoco-resources`` so the
relative stylesheet and bar image links of the rows resolve at any depth.
"""

from __future__ import annotations

import logging
import shutil
from typing import TYPE_CHECKING

from jact.errors import ReportIOError
from jact.graph.dependency import DEPENDENCIES_DIR, RESOURCES_DIR
from jact.report.html import (
    DEPENDENCIES_TEMPLATE,
    DEPENDENCY_TEMPLATE,
    END_TEMPLATE,
    INDEX_FILE,
    OVERVIEW_TEMPLATE,
    load_template,
    render_template,
    write_page,
)

if TYPE_CHECKING:
    from pathlib import Path

    from jact.graph.dependency import DependencyGraph

logger = logging.getLogger(__name__)

ORIGINAL_INDEX = "originalIndex.html"


def _copy_resources(source: Path, page_dir: Path) -> None:
    try:
        shutil.copytree(source, page_dir / RESOURCES_DIR, dirs_exist_ok=True)
    except OSError as e:
        raise ReportIOError(f"Cannot copy {source} to {page_dir}: {e}", page_dir) from e


def page_dirs(graph: DependencyGraph, report_root: Path) -> list[Path]:
    """Return every directory that holds a generated page, root first."""
    dirs = [report_root, report_root / DEPENDENCIES_DIR]
    for node in graph:
        dirs.extend(node.report_paths)
    dirs.extend(directory for _, directory in graph.transitive_dirs())
    return list(dict.fromkeys(dirs))


def prepare_report_tree(graph: DependencyGraph, report_root: Path) -> list[Path]:
    """Create the page skeletons of the report.

    The JaCoCo overview is kept as ``originalIndex.html``. Report paths must be
    assigned before calling this.

    Returns:
        The page directories that were prepared.

    Raises:
        ReportIOError: If ``jacoco-resources`` is missing or a page cannot be written.
    """
    resources = report_root / RESOURCES_DIR
    if not resources.is_dir():
        raise ReportIOError(f"Missing {RESOURCES_DIR} in {report_root}", resources)

    original = report_root / INDEX_FILE
    if original.is_file():
        try:
            original.replace(report_root / ORIGINAL_INDEX)
        except OSError as e:
            raise ReportIOError(f"Cannot rename {original}: {e}", original) from e

    project_name = graph.project.identity
    write_page(report_root / INDEX_FILE, render_template(OVERVIEW_TEMPLATE, project_name))

    dependencies_dir = report_root / DEPENDENCIES_DIR
    dependencies_dir.mkdir(parents=True, exist_ok=True)
    _copy_resources(resources, dependencies_dir)
    write_page(dependencies_dir / INDEX_FILE, render_template(DEPENDENCIES_TEMPLATE, project_name))

    for node in graph:
        for path in node.report_paths:
            _copy_resources(resources, path)
            write_page(path / INDEX_FILE, render_template(DEPENDENCY_TEMPLATE, node.dir_name))

    for node, directory in graph.transitive_dirs():
        _copy_resources(resources, directory)
        write_page(
            directory / INDEX_FILE,
            render_template(DEPENDENCY_TEMPLATE, node.dir_name).replace(
                f"<h1>{node.dir_name}</h1>",
                f"<h1>Transitive dependencies of {node.dir_name}</h1>",
            ),
        )

    dirs = page_dirs(graph, report_root)
    logger.info("Prepared %d report pages under %s", len(dirs), report_root)
    return dirs


def finish_report_tree(graph: DependencyGraph, report_root: Path) -> None:
    """Close the table and document of every generated page."""
    end = load_template(END_TEMPLATE)
    for directory in page_dirs(graph, report_root):
        write_page(directory / INDEX_FILE, end, append=True)
