"""Map flat JaCoCo package directories to the project or to a dependency.

JaCoCo writes one directory per Java package directly under the report root,
regardless of which jar the classes came from. Each directory is classified as
belonging to the project, to one dependency node, or to nothing, and
dependency-owned directories are relocated under that node's report paths.
"""

from __future__ import annotations

import logging
import shutil
import zipfile
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from jact.errors import ReportIOError, StructuralError
from jact.graph.dependency import DEPENDENCIES_DIR, RESOURCES_DIR
from jact.parsing.footer import read_package_usage

if TYPE_CHECKING:
    from collections.abc import Collection
    from pathlib import Path

    from jact.graph.dependency import DependencyGraph, DependencyNode

logger = logging.getLogger(__name__)

_RESERVED_DIRS = frozenset({DEPENDENCIES_DIR, RESOURCES_DIR})


@dataclass(frozen=True)
class ProjectOwned:
    """The package belongs to the project itself."""

    package: str


@dataclass(frozen=True)
class DependencyOwned:
    """The package was found in a dependency's artifact."""

    package: str
    node: DependencyNode


@dataclass(frozen=True)
class Unresolved:
    """No owner could be determined for the package."""

    package: str
    reason: str


Target = ProjectOwned | DependencyOwned | Unresolved


def jar_packages(jar: Path) -> frozenset[str]:
    """Return the dotted names of all packages holding classes in *jar*.

    Raises:
        OSError, zipfile.BadZipFile: If the jar cannot be read.
    """
    packages: set[str] = set()
    with zipfile.ZipFile(jar) as archive:
        for name in archive.namelist():
            if not name.endswith(".class") or name.startswith("META-INF/"):
                continue
            directory, _, _ = name.rpartition("/")
            if directory:
                packages.add(directory.replace("/", "."))
    return frozenset(packages)


class PackageResolver:
    """Resolves package names against a graph and a local Maven repository.

    Jar contents are indexed lazily, once per node.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        project_packages: Collection[str],
        local_repo: Path,
    ) -> None:
        self._graph = graph
        self._project_packages = project_packages
        self._local_repo = local_repo
        self._index: dict[str, frozenset[str] | None] = {}

    def resolve(self, package: str) -> Target:
        """Classify *package*; project membership is checked first."""
        if package in self._project_packages:
            return ProjectOwned(package)

        with_jar: list[DependencyNode] = []
        without_jar: list[DependencyNode] = []
        for node in self._graph:
            packages = self._packages_of(node)
            if packages is None:
                without_jar.append(node)
            elif package in packages:
                with_jar.append(node)

        matches = with_jar or [node for node in without_jar if _keywords_match(node, package)]
        if not matches:
            return Unresolved(package, "no dependency provides this package")
        if len(matches) > 1:
            logger.warning(
                "Package %s is provided by %d dependencies (%s); using %s",
                package,
                len(matches),
                ", ".join(n.identity for n in matches),
                matches[0].identity,
            )
        return DependencyOwned(package, matches[0])

    def _packages_of(self, node: DependencyNode) -> frozenset[str] | None:
        if node.identity in self._index:
            return self._index[node.identity]
        packages: frozenset[str] | None = None
        if node.coordinates is not None:
            jar = node.coordinates.jar_path(self._local_repo)
            if jar.is_file():
                try:
                    packages = jar_packages(jar)
                except (OSError, zipfile.BadZipFile) as e:
                    logger.warning("Could not index %s: %s", jar, e)
            else:
                logger.debug("No jar for %s at %s", node.identity, jar)
        self._index[node.identity] = packages
        return packages


def _keywords_match(node: DependencyNode, package: str) -> bool:
    if node.coordinates is None:
        return False
    return all(word in package for word in node.coordinates.keywords)


def resolve(
    package: str,
    graph: DependencyGraph,
    project_packages: Collection[str],
    local_repo: Path,
) -> Target:
    """One-shot form of :meth:`PackageResolver.resolve`."""
    return PackageResolver(graph, project_packages, local_repo).resolve(package)


def relocate(directory: Path, node: DependencyNode) -> list[Path]:
    """Move or copy a package directory under the node's report paths.

    A node with one report path receives the directory itself. A shared node
    receives one copy per report path, after which the source is removed.

    Returns:
        The new locations of the package directory.

    Raises:
        StructuralError: If the node has no report path.
        ReportIOError: If the filesystem operation fails.
    """
    if not node.report_paths:
        raise StructuralError(f"Dependency {node.identity} has no report path")

    destinations = [path / directory.name for path in node.report_paths]
    try:
        for destination in destinations:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if destination.exists():
                logger.debug("Replacing existing %s", destination)
                shutil.rmtree(destination)
        if len(destinations) == 1:
            shutil.move(str(directory), str(destinations[0]))
        else:
            for destination in destinations:
                shutil.copytree(directory, destination)
            logger.debug("Removing %s after copying it to %d locations", directory, len(destinations))
            shutil.rmtree(directory)
    except OSError as e:
        raise ReportIOError(f"Cannot relocate {directory}: {e}", directory) from e
    return destinations


@dataclass
class ClassificationResult:
    """Outcome of classifying every package directory of a report."""

    project_packages: list[str] = field(default_factory=list)
    dependency_packages: dict[str, list[str]] = field(default_factory=dict)
    """Node identity -> package names."""

    unresolved: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return (
            len(self.project_packages)
            + sum(len(p) for p in self.dependency_packages.values())
            + len(self.unresolved)
        )


def classify_report(
    report_root: Path,
    graph: DependencyGraph,
    project_packages: Collection[str],
    local_repo: Path,
) -> ClassificationResult:
    """Accumulate package usage into the graph and relocate dependency packages.

    Report paths must already be assigned. Unresolved packages keep their
    directory in the report root and contribute no usage.
    """
    if not report_root.is_dir():
        raise ReportIOError(f"Report directory does not exist: {report_root}", report_root)

    resolver = PackageResolver(graph, project_packages, local_repo)
    result = ClassificationResult()

    for directory in sorted(p for p in report_root.iterdir() if p.is_dir()):
        if directory.name in _RESERVED_DIRS:
            continue
        target = resolver.resolve(directory.name)

        if isinstance(target, Unresolved):
            logger.warning("Unresolved package %s: %s", target.package, target.reason)
            result.unresolved.append(target.package)
            continue

        usage = read_package_usage(directory / "index.html")
        if isinstance(target, ProjectOwned):
            if usage is not None:
                graph.project.add_package_usage(target.package, usage)
            result.project_packages.append(target.package)
            continue

        if usage is not None:
            target.node.add_package_usage(target.package, usage)
        relocate(directory, target.node)
        result.dependency_packages.setdefault(target.node.identity, []).append(target.package)

    logger.info(
        "Classified %d packages: %d project, %d dependency, %d unresolved",
        result.total,
        len(result.project_packages),
        sum(len(p) for p in result.dependency_packages.values()),
        len(result.unresolved),
    )
    return result
