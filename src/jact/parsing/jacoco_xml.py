"""Package usage from JaCoCo XML reports.

The XML report carries the same counters as the HTML footer rows, one
``<counter>`` element per metric family directly under each ``<package>``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from defusedxml import ElementTree
from defusedxml.ElementTree import ParseError as DefusedParseError

from jact.errors import ReportIOError
from jact.models.usage import MetricPair, UsageCounter

if TYPE_CHECKING:
    from pathlib import Path
    from xml.etree.ElementTree import Element as XmlElement

logger = logging.getLogger(__name__)

# Maven layout first, then the Gradle plugin defaults
JACOCO_XML_PATHS = [
    "target/site/jacoco/jacoco.xml",
    "target/jacoco.xml",
    "build/reports/jacoco/test/jacocoTestReport.xml",
]

_COUNTER_FAMILIES: dict[str, str] = {
    "INSTRUCTION": "instructions",
    "BRANCH": "branches",
    "LINE": "lines",
    "METHOD": "methods",
    "CLASS": "classes",
    "COMPLEXITY": "complexity",
}


def _int_attr(element: XmlElement, key: str, default: int = 0) -> int:
    value = element.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Non-numeric %s=%r on <%s>, counting it as 0", key, value, element.tag)
        return default


def _package_usage(package: XmlElement) -> UsageCounter:
    pairs: dict[str, MetricPair] = {}
    for counter in package.findall("counter"):
        family = _COUNTER_FAMILIES.get(counter.get("type", ""))
        if family is None:
            continue
        missed = _int_attr(counter, "missed")
        covered = _int_attr(counter, "covered")
        if missed < 0 or covered < 0:
            logger.warning(
                "Negative %s counter (missed=%d, covered=%d), counting it as 0",
                family,
                missed,
                covered,
            )
            continue
        pairs[family] = MetricPair(missed, missed + covered)
    return UsageCounter(**pairs)


def parse_jacoco_xml(coverage_file: Path) -> dict[str, UsageCounter]:
    """Return per-package usage keyed by dotted package name.

    Raises:
        ReportIOError: If the file cannot be read or is not a JaCoCo report.
    """
    try:
        tree = ElementTree.parse(coverage_file)
    except (DefusedParseError, OSError) as e:
        raise ReportIOError(f"Failed to parse JaCoCo XML {coverage_file}: {e}", coverage_file) from e

    root = tree.getroot()
    if root.tag != "report":
        raise ReportIOError(f"JaCoCo XML root is not <report>: {root.tag}", coverage_file)

    usage: dict[str, UsageCounter] = {}
    for package in root.iter("package"):
        name = package.get("name", "").replace("/", ".")
        if not name:
            logger.warning("Skipping unnamed <package> in %s", coverage_file)
            continue
        counter = _package_usage(package)
        usage[name] = usage[name] + counter if name in usage else counter

    logger.debug("Parsed %d packages from %s", len(usage), coverage_file)
    return usage


def find_jacoco_xml(project_path: Path) -> Path | None:
    """Return the first JaCoCo XML report found under *project_path*."""
    for candidate in JACOCO_XML_PATHS:
        path = project_path / candidate
        if path.is_file():
            return path
    return None
