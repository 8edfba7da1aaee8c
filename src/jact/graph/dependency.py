"""Dependency graph of a project and the report locations of its nodes.

The graph owns every node exactly once in an identity-keyed registry. Parents
hold plain references to their children, so a dependency pulled in by several
parents (a diamond) is one logical node with one set of counters; only its
physical report locations are multiplied.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from jact.errors import StructuralError
from jact.graph.ledger import EmissionLayer, FinalizationLedger
from jact.models.usage import EMPTY_USAGE, UsageCounter

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

DEPENDENCIES_DIR = "dependencies"
TRANSITIVE_DIR = "transitive-dependencies"
RESOURCES_DIR = "jacoco-resources"

_WORD_SPLIT_RE = re.compile(r"[.\-]")


@dataclass(frozen=True)
class Coordinates:
    """Maven coordinates of a resolved artifact."""

    group: str
    artifact: str
    version: str
    classifier: str = ""
    packaging: str = "jar"
    scope: str = ""

    @property
    def identity(self) -> str:
        """Stable node key (scope and packaging are not part of it)."""
        if self.classifier:
            return f"{self.group}:{self.artifact}:{self.classifier}:{self.version}"
        return f"{self.group}:{self.artifact}:{self.version}"

    @property
    def dir_name(self) -> str:
        """Directory name of this artifact inside the report tree."""
        name = f"{self.group.replace('-', '.')}.{self.artifact.replace('-', '.')}"
        if self.classifier:
            name += f".{self.classifier}"
        return f"{name}-v{self.version}"

    @property
    def keywords(self) -> frozenset[str]:
        """Words of the group and artifact ids, used for fuzzy package matching."""
        words = _WORD_SPLIT_RE.split(self.group) + _WORD_SPLIT_RE.split(self.artifact)
        return frozenset(w for w in words if w)

    def jar_path(self, local_repo: Path) -> Path:
        """Location of the artifact's jar inside a local Maven repository."""
        suffix = f"-{self.classifier}" if self.classifier else ""
        return (
            local_repo.joinpath(*self.group.split("."))
            / self.artifact
            / self.version
            / f"{self.artifact}-{self.version}{suffix}.jar"
        )

    def __str__(self) -> str:
        return self.identity


@dataclass(eq=False)
class DependencyNode:
    """One logical dependency (or the project root) in the graph."""

    identity: str
    coordinates: Coordinates | None = None
    is_project: bool = False
    report_paths: list[Path] = field(default_factory=list)
    children: list[DependencyNode] = field(default_factory=list)
    own_usage: UsageCounter = EMPTY_USAGE
    subtree_usage: UsageCounter = EMPTY_USAGE
    package_usage: dict[str, UsageCounter] = field(default_factory=dict)
    ledger: FinalizationLedger = field(default_factory=FinalizationLedger, repr=False)

    @property
    def dir_name(self) -> str:
        if self.coordinates is None:
            return self.identity
        return self.coordinates.dir_name

    @property
    def is_shared(self) -> bool:
        """True when the node is rendered at more than one location."""
        return len(self.report_paths) > 1

    @property
    def entry_written(self) -> bool:
        return self.ledger.is_finalized(EmissionLayer.ENTRY, self.identity)

    @property
    def transitive_written(self) -> bool:
        return self.ledger.is_finalized(EmissionLayer.TRANSITIVE, self.identity)

    @property
    def total_written(self) -> bool:
        return self.ledger.is_finalized(EmissionLayer.TOTAL, self.identity)

    def add_report_path(self, path: Path) -> None:
        if path not in self.report_paths:
            self.report_paths.append(path)

    def add_package_usage(self, package: str, usage: UsageCounter) -> None:
        """Accumulate a package's usage into this node."""
        self.own_usage = self.own_usage + usage
        previous = self.package_usage.get(package)
        self.package_usage[package] = usage if previous is None else previous + usage

    def children_dir(self, path: Path) -> Path:
        """Directory under *path* that lists this node's children."""
        return path / (DEPENDENCIES_DIR if self.is_project else TRANSITIVE_DIR)


class DependencyGraph:
    """Registry of the project node and every dependency node."""

    def __init__(self, project_id: str) -> None:
        """Initialize an empty graph.

        Args:
            project_id: Identity of the project root node, e.g. ``group:artifact:version``.
        """
        if not project_id:
            raise StructuralError("Project id must not be empty")
        self.ledger = FinalizationLedger()
        self._project = DependencyNode(identity=project_id, is_project=True, ledger=self.ledger)
        self._nodes: dict[str, DependencyNode] = {}

    @property
    def project(self) -> DependencyNode:
        return self._project

    @property
    def direct_dependencies(self) -> list[DependencyNode]:
        return list(self._project.children)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[DependencyNode]:
        """Iterate dependency nodes (project excluded) in registration order."""
        return iter(list(self._nodes.values()))

    def __contains__(self, identity: object) -> bool:
        return identity in self._nodes

    def get(self, identity: str) -> DependencyNode | None:
        return self._nodes.get(identity)

    def add(self, coordinates: Coordinates) -> DependencyNode:
        """Register a node for *coordinates*, returning the existing one if present."""
        existing = self._nodes.get(coordinates.identity)
        if existing is not None:
            return existing
        if coordinates.identity == self._project.identity:
            raise StructuralError(f"Dependency {coordinates} has the project's identity")
        node = DependencyNode(
            identity=coordinates.identity, coordinates=coordinates, ledger=self.ledger
        )
        self._nodes[node.identity] = node
        return node

    def link(self, parent: DependencyNode, child: DependencyNode) -> None:
        """Record *child* as a dependency of *parent*.

        Raises:
            StructuralError: If either node is not registered, *child* is the
                project, or the link would close a cycle.
        """
        self._require_registered(parent)
        self._require_registered(child)
        if child.is_project:
            raise StructuralError("The project cannot be a dependency")
        if child in parent.children:
            logger.debug("%s already depends on %s", parent.identity, child.identity)
            return
        if child is parent or self._reaches(child, parent):
            raise StructuralError(
                f"Dependency cycle: {child.identity} already depends on {parent.identity}"
            )
        parent.children.append(child)

    def add_dependency(
        self, coordinates: Coordinates, parent: DependencyNode | None = None
    ) -> DependencyNode:
        """Register *coordinates* and link it under *parent* (the project by default)."""
        node = self.add(coordinates)
        self.link(parent or self._project, node)
        return node

    def parents_of(self, node: DependencyNode) -> list[DependencyNode]:
        return [n for n in [self._project, *self._nodes.values()] if node in n.children]

    def walk(self) -> Iterator[tuple[int, DependencyNode]]:
        """Yield ``(depth, node)`` in tree order; shared nodes appear once per parent."""

        def _walk(node: DependencyNode, depth: int) -> Iterator[tuple[int, DependencyNode]]:
            yield depth, node
            for child in node.children:
                yield from _walk(child, depth + 1)

        yield from _walk(self._project, 0)

    def assign_report_paths(self, report_root: Path) -> None:
        """Compute every node's report locations under *report_root*.

        Direct dependencies render at ``dependencies/<dir>/``; the children of a
        node rendered at ``P`` render at ``P/transitive-dependencies/<dir>/``,
        once for every location of ``P``.
        """
        for node in [self._project, *self._nodes.values()]:
            node.report_paths.clear()
        self._project.add_report_path(report_root)

        def _place(node: DependencyNode, path: Path) -> None:
            for child in node.children:
                child_path = node.children_dir(path) / child.dir_name
                child.add_report_path(child_path)
                _place(child, child_path)

        _place(self._project, report_root)
        shared = sum(1 for node in self._nodes.values() if node.is_shared)
        logger.debug(
            "Assigned report paths for %d dependencies (%d shared)", len(self._nodes), shared
        )

    def validate(self) -> None:
        """Check that every node can be rendered.

        Raises:
            StructuralError: If a node has no report path.
        """
        if not self._project.report_paths:
            raise StructuralError("Project root has no report path")
        orphans = [node.identity for node in self._nodes.values() if not node.report_paths]
        if orphans:
            raise StructuralError(f"Dependencies without report paths: {', '.join(orphans)}")

    def transitive_dirs(self) -> list[tuple[DependencyNode, Path]]:
        """Return ``(node, directory)`` for every listing of transitive dependencies."""
        return [
            (node, node.children_dir(path))
            for node in self._nodes.values()
            if node.children
            for path in node.report_paths
        ]

    def _require_registered(self, node: DependencyNode) -> None:
        if node is self._project:
            return
        if self._nodes.get(node.identity) is not node:
            raise StructuralError(f"Node {node.identity} is not registered in this graph")

    @staticmethod
    def _reaches(start: DependencyNode, target: DependencyNode) -> bool:
        stack = [start]
        seen: set[str] = set()
        while stack:
            node = stack.pop()
            if node is target:
                return True
            if node.identity in seen:
                continue
            seen.add(node.identity)
            stack.extend(node.children)
        return False
