"""Tests for parsing/jacoco_xml.py — package usage from JaCoCo XML."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from jact.errors import ReportIOError
from jact.models.usage import MetricPair
from jact.parsing.jacoco_xml import find_jacoco_xml, parse_jacoco_xml


def _write_file(root: Path, rel: str, content: str) -> Path:
    f = root / rel
    f.parent.mkdir(parents=True, exist_ok=True)
    f.write_text(content, encoding="utf-8")
    return f


# ── Sample JaCoCo XML ────────────────────────────────────────────

_JACOCO_XML_SAMPLE = """\
<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<report name="app">
  <package name="com/example/app">
    <class name="com/example/app/Calculator" sourcefilename="Calculator.java">
      <counter type="INSTRUCTION" missed="2" covered="8"/>
    </class>
    <counter type="INSTRUCTION" missed="2" covered="8"/>
    <counter type="BRANCH" missed="1" covered="3"/>
    <counter type="LINE" missed="1" covered="5"/>
    <counter type="COMPLEXITY" missed="1" covered="4"/>
    <counter type="METHOD" missed="0" covered="2"/>
    <counter type="CLASS" missed="0" covered="1"/>
  </package>
  <package name="org/example/a">
    <counter type="INSTRUCTION" missed="40" covered="60"/>
    <counter type="LINE" missed="4" covered="6"/>
  </package>
  <counter type="INSTRUCTION" missed="42" covered="68"/>
</report>
"""


# ── parse_jacoco_xml ──────────────────────────────────────────────


class TestParseJacocoXml:
    def test_package_level_counters(self, tmp_path: Path) -> None:
        xml = _write_file(tmp_path, "jacoco.xml", _JACOCO_XML_SAMPLE)
        usage = parse_jacoco_xml(xml)

        assert set(usage) == {"com.example.app", "org.example.a"}
        app = usage["com.example.app"]
        assert app.instructions == MetricPair(2, 10)
        assert app.branches == MetricPair(1, 4)
        assert app.lines == MetricPair(1, 6)
        assert app.complexity == MetricPair(1, 5)
        assert app.methods == MetricPair(0, 2)
        assert app.classes == MetricPair(0, 1)

    def test_missing_families_are_empty(self, tmp_path: Path) -> None:
        xml = _write_file(tmp_path, "jacoco.xml", _JACOCO_XML_SAMPLE)
        dep = parse_jacoco_xml(xml)["org.example.a"]
        assert dep.instructions == MetricPair(40, 100)
        assert dep.branches == MetricPair()

    def test_non_numeric_attribute_warns(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        xml = _write_file(
            tmp_path,
            "jacoco.xml",
            '<report name="x"><package name="p">'
            '<counter type="LINE" missed="many" covered="3"/></package></report>',
        )
        with caplog.at_level(logging.WARNING):
            usage = parse_jacoco_xml(xml)
        assert usage["p"].lines == MetricPair(0, 3)
        assert "Non-numeric" in caplog.text

    @pytest.mark.parametrize(("missed", "covered"), [("-5", "10"), ("5", "-3")])
    def test_negative_counter_counts_as_zero(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture, missed: str, covered: str
    ) -> None:
        xml = _write_file(
            tmp_path,
            "jacoco.xml",
            '<report name="x"><package name="p">'
            f'<counter type="INSTRUCTION" missed="{missed}" covered="{covered}"/>'
            '<counter type="LINE" missed="1" covered="2"/></package></report>',
        )
        with caplog.at_level(logging.WARNING):
            usage = parse_jacoco_xml(xml)
        assert usage["p"].instructions == MetricPair()
        assert usage["p"].lines == MetricPair(1, 3)
        assert "Negative instructions counter" in caplog.text

    def test_invalid_xml_raises(self, tmp_path: Path) -> None:
        xml = _write_file(tmp_path, "jacoco.xml", "<report><package")
        with pytest.raises(ReportIOError, match="Failed to parse"):
            parse_jacoco_xml(xml)

    def test_wrong_root_raises(self, tmp_path: Path) -> None:
        xml = _write_file(tmp_path, "coverage.xml", "<coverage/>")
        with pytest.raises(ReportIOError, match="not <report>"):
            parse_jacoco_xml(xml)

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ReportIOError):
            parse_jacoco_xml(tmp_path / "nope.xml")


# ── find_jacoco_xml ───────────────────────────────────────────────


class TestFindJacocoXml:
    def test_maven_location(self, tmp_path: Path) -> None:
        xml = _write_file(tmp_path, "target/site/jacoco/jacoco.xml", "<report/>")
        assert find_jacoco_xml(tmp_path) == xml

    def test_gradle_location(self, tmp_path: Path) -> None:
        xml = _write_file(
            tmp_path, "build/reports/jacoco/test/jacocoTestReport.xml", "<report/>"
        )
        assert find_jacoco_xml(tmp_path) == xml

    def test_none_found(self, tmp_path: Path) -> None:
        assert find_jacoco_xml(tmp_path) is None
