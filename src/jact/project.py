"""Facts about the project under analysis: its packages and Maven coordinates."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from defusedxml import ElementTree
from defusedxml.ElementTree import ParseError as DefusedParseError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path
    from xml.etree.ElementTree import Element as XmlElement

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_ROOTS = ("src/main/java",)

_PACKAGE_DECL_RE = re.compile(r"^\s*package\s+([\w.]+)\s*;", re.MULTILINE)
_POM_NS_RE = re.compile(r"^\{[^}]*\}")


def _package_of(java_file: Path, source_root: Path) -> str:
    try:
        text = java_file.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug("Could not read %s: %s", java_file, e)
        text = ""
    match = _PACKAGE_DECL_RE.search(text)
    if match:
        return match.group(1)
    # No declaration: fall back to the directory layout
    relative = java_file.parent.relative_to(source_root)
    return ".".join(relative.parts)


def discover_project_packages(source_roots: Iterable[Path]) -> dict[str, set[str]]:
    """Map every package of the project's sources to its class names.

    Files in the default package are ignored since JaCoCo reports them under
    ``default`` rather than a named directory.
    """
    packages: dict[str, set[str]] = {}
    for root in source_roots:
        if not root.is_dir():
            logger.debug("Source root %s does not exist", root)
            continue
        for java_file in sorted(root.rglob("*.java")):
            package = _package_of(java_file, root)
            if not package:
                continue
            packages.setdefault(package, set()).add(java_file.stem)

    logger.debug("Found %d project packages", len(packages))
    return packages


def _local(tag: str) -> str:
    return _POM_NS_RE.sub("", tag)


def _child_text(element: XmlElement | None, name: str) -> str:
    if element is None:
        return ""
    for child in element:
        if _local(child.tag) == name:
            return (child.text or "").strip()
    return ""


def _child(element: XmlElement, name: str) -> XmlElement | None:
    for child in element:
        if _local(child.tag) == name:
            return child
    return None


def read_project_id(pom_path: Path) -> str | None:
    """Return ``groupId:artifactId:version`` from a ``pom.xml``.

    groupId and version are inherited from ``<parent>`` when the project does
    not declare them. Returns None when the file is missing or unreadable.
    """
    if not pom_path.is_file():
        return None
    try:
        root = ElementTree.parse(pom_path).getroot()
    except (DefusedParseError, OSError) as e:
        logger.warning("Could not parse %s: %s", pom_path, e)
        return None

    parent = _child(root, "parent")
    group = _child_text(root, "groupId") or _child_text(parent, "groupId")
    artifact = _child_text(root, "artifactId")
    version = _child_text(root, "version") or _child_text(parent, "version")
    if not (group and artifact and version):
        logger.warning("Incomplete coordinates in %s", pom_path)
        return None
    return f"{group}:{artifact}:{version}"
