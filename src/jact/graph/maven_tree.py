"""Build a :class:`DependencyGraph` from ``mvn dependency:tree`` output.

With ``-Dverbose`` Maven also prints the dependencies it dropped, e.g.::

    com.example:app:jar:1.0
    +- org.example:a:jar:1.0:compile
    |  \\- org.example:shared:jar:2.0:compile
    \\- org.example:b:jar:1.0:compile
       \\- (org.example:shared:jar:2.0:compile - omitted for duplicate)

Duplicates become additional parents of the already known node, which is what
turns the printed tree into a graph with shared nodes. Entries omitted for
version conflicts or cycles are skipped.
"""

from __future__ import annotations

import logging
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path

from jact.errors import DependencyTreeError, StructuralError
from jact.graph.dependency import Coordinates, DependencyGraph, DependencyNode
from jact.utils.subprocess_runner import SubprocessError, run_subprocess

logger = logging.getLogger(__name__)

DEFAULT_SCOPES: frozenset[str] = frozenset({"compile", "runtime", "provided", "system"})

_LOG_PREFIX_RE = re.compile(r"^\[(?:INFO|WARNING|DEBUG)\]\s?")
_ENTRY_RE = re.compile(r"^(?P<indent>(?:[| ]  )*)[+\\]- (?P<body>.+)$")
_OMITTED_RE = re.compile(r"^\((?P<coords>\S+)\s+-\s+(?P<reason>.*)\)\s*$")
_COORDS_RE = re.compile(r"^[\w.\-]+(?::[\w.\-]+){3,5}$")

_SCOPE_NAMES = frozenset({"compile", "runtime", "provided", "system", "test", "import"})


@dataclass
class TreeEntry:
    """One dependency line of the printed tree."""

    depth: int
    coordinates: Coordinates
    omitted_reason: str = ""

    @property
    def is_duplicate(self) -> bool:
        return self.omitted_reason.startswith("omitted for duplicate")

    @property
    def is_omitted(self) -> bool:
        return bool(self.omitted_reason)


def parse_coordinates(text: str) -> Coordinates:
    """Parse ``group:artifact:type[:classifier]:version[:scope]``.

    Raises:
        ValueError: If *text* is not a coordinate string.
    """
    parts = text.strip().split(":")
    if len(parts) == 4:
        group, artifact, packaging, version = parts
        return Coordinates(group, artifact, version, packaging=packaging)
    if len(parts) == 5:
        group, artifact, packaging, fourth, fifth = parts
        if fifth in _SCOPE_NAMES:
            return Coordinates(group, artifact, fourth, packaging=packaging, scope=fifth)
        return Coordinates(group, artifact, fifth, classifier=fourth, packaging=packaging)
    if len(parts) == 6:
        group, artifact, packaging, classifier, version, scope = parts
        return Coordinates(group, artifact, version, classifier, packaging, scope)
    raise ValueError(f"Not a Maven coordinate: {text!r}")


def _strip_line(raw: str) -> str:
    return _LOG_PREFIX_RE.sub("", raw.rstrip())


def _parse_entry(line: str) -> TreeEntry | None:
    match = _ENTRY_RE.match(line)
    if match is None:
        return None
    depth = len(match.group("indent")) // 3 + 1
    body = match.group("body").strip()
    omitted = _OMITTED_RE.match(body)
    if omitted is not None:
        coords_text, reason = omitted.group("coords"), omitted.group("reason").strip()
    else:
        # Trailing annotations such as "(version managed from 1.0)"
        coords_text, reason = body.split(" ", 1)[0], ""
    try:
        coordinates = parse_coordinates(coords_text)
    except ValueError:
        logger.warning("Skipping unparseable dependency line: %s", line)
        return None
    return TreeEntry(depth=depth, coordinates=coordinates, omitted_reason=reason)


def parse_dependency_tree(
    text: str,
    *,
    scopes: frozenset[str] | set[str] = DEFAULT_SCOPES,
    include_transitive: bool = True,
    project_id: str | None = None,
) -> DependencyGraph:
    """Parse ``dependency:tree`` text output into a graph.

    Args:
        text: The tree as written by ``-DoutputType=text`` (log prefixes allowed).
        scopes: Scopes to keep; other dependencies are dropped with their subtree.
        include_transitive: When False, only direct dependencies are kept.
        project_id: Identity for the project node instead of the root coordinates.

    Raises:
        DependencyTreeError: If no project line is found.
        StructuralError: If the tree describes a dependency cycle.
    """
    graph: DependencyGraph | None = None
    # (depth, node) for the current branch; None marks a dropped subtree
    stack: list[tuple[int, DependencyNode | None]] = []

    for raw in text.splitlines():
        line = _strip_line(raw)
        if not line.strip():
            continue

        entry = _parse_entry(line)
        if entry is None:
            candidate = line.strip()
            if _COORDS_RE.match(candidate):
                if graph is not None:
                    logger.warning("Ignoring additional module tree rooted at %s", candidate)
                    break
                project = parse_coordinates(candidate)
                graph = DependencyGraph(project_id or project.identity)
                stack = [(0, graph.project)]
            continue

        if graph is None:
            continue

        while stack and stack[-1][0] >= entry.depth:
            stack.pop()
        if not stack:
            raise DependencyTreeError(f"Malformed indentation in dependency tree: {line}")
        parent = stack[-1][1]

        if parent is None or not _keep(entry, scopes, include_transitive):
            stack.append((entry.depth, None))
            continue

        node = graph.add(entry.coordinates)
        try:
            graph.link(parent, node)
        except StructuralError:
            logger.error("Cycle between %s and %s", parent.identity, node.identity)
            raise
        stack.append((entry.depth, node))

    if graph is None:
        raise DependencyTreeError("No project found in dependency tree output")

    logger.info(
        "Dependency tree: %d dependencies (%d direct)",
        len(graph),
        len(graph.direct_dependencies),
    )
    return graph


def _keep(entry: TreeEntry, scopes: frozenset[str] | set[str], include_transitive: bool) -> bool:
    if entry.is_omitted and not entry.is_duplicate:
        logger.debug("Skipping %s (%s)", entry.coordinates, entry.omitted_reason)
        return False
    if entry.coordinates.scope and entry.coordinates.scope not in scopes:
        return False
    return include_transitive or entry.depth == 1


def read_dependency_tree(
    tree_file: Path,
    *,
    scopes: frozenset[str] | set[str] = DEFAULT_SCOPES,
    include_transitive: bool = True,
    project_id: str | None = None,
) -> DependencyGraph:
    """Parse a tree previously written with ``-DoutputFile``."""
    try:
        text = tree_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise DependencyTreeError(f"Cannot read dependency tree {tree_file}: {exc}") from exc
    return parse_dependency_tree(
        text, scopes=scopes, include_transitive=include_transitive, project_id=project_id
    )


async def load_dependency_tree(
    project_root: Path,
    *,
    scopes: frozenset[str] | set[str] = DEFAULT_SCOPES,
    include_transitive: bool = True,
    project_id: str | None = None,
    mvn_command: str = "mvn",
    timeout: float = 300.0,
) -> DependencyGraph:
    """Run ``mvn dependency:tree`` for *project_root* and parse the result.

    Raises:
        DependencyTreeError: If Maven fails or produces no tree.
    """
    with tempfile.TemporaryDirectory(prefix="jact-") as tmp:
        output_file = Path(tmp) / "dependency-tree.txt"
        command = [
            mvn_command,
            "-q",
            "dependency:tree",
            "-Dverbose",
            "-DoutputType=text",
            f"-DoutputFile={output_file}",
        ]
        try:
            result = await run_subprocess(command, cwd=project_root, timeout=timeout)
        except SubprocessError as exc:
            raise DependencyTreeError(str(exc)) from exc

        if not result.success:
            detail = "timed out" if result.timed_out else result.stderr.strip()[:500]
            raise DependencyTreeError(f"mvn dependency:tree failed: {detail}")
        if not output_file.is_file():
            raise DependencyTreeError("mvn dependency:tree produced no output file")
        return read_dependency_tree(
            output_file,
            scopes=scopes,
            include_transitive=include_transitive,
            project_id=project_id,
        )
