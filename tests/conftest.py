"""Shared fixtures: a small Maven project with a JaCoCo report on disk."""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest
import yaml

# ── File creation helpers ────────────────────────────────────────


def write_file(root: Path, rel: str, content: str) -> Path:
    """Write *content* to a file under *root*."""
    f = root / rel
    f.parent.mkdir(parents=True, exist_ok=True)
    f.write_text(content, encoding="utf-8")
    return f


def write_jar(root: Path, rel: str, classes: list[str]) -> Path:
    """Write a jar holding empty class entries."""
    jar = root / rel
    jar.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(jar, "w") as archive:
        archive.writestr("META-INF/MANIFEST.MF", "Manifest-Version: 1.0\n")
        for name in classes:
            archive.writestr(name, b"\xca\xfe\xba\xbe")
    return jar


def package_page(instructions: tuple[int, int], lines: tuple[int, int]) -> str:
    """A JaCoCo package page with the given footer counters."""
    return (
        "<html><body><table class=\"coverage\">\n"
        "<thead><tr><td>Element</td></tr></thead>\n"
        "<tfoot><tr><td>Total</td>"
        f'<td class="bar">{instructions[0]:,} of {instructions[1]:,}</td><td class="ctr2">0%</td>'
        '<td class="bar">0 of 0</td><td class="ctr2">n/a</td>'
        '<td class="ctr1">0</td><td class="ctr2">1</td>'
        f'<td class="ctr1">{lines[0]}</td><td class="ctr2">{lines[1]}</td>'
        '<td class="ctr1">0</td><td class="ctr2">1</td>'
        '<td class="ctr1">0</td><td class="ctr2">1</td></tr></tfoot>\n'
        "<tbody><tr><td>Foo</td></tr></tbody></table></body></html>\n"
    )


DEPENDENCY_TREE = """\
com.example:app:jar:1.0
+- org.example:a:jar:1.0:compile
|  \\- org.example:shared:jar:2.0:compile
\\- org.example:b:jar:1.0:compile
   \\- (org.example:shared:jar:2.0:compile - omitted for duplicate)
"""

# package -> (instructions, lines)
PACKAGE_USAGE: dict[str, tuple[tuple[int, int], tuple[int, int]]] = {
    "com.example.app": ((10, 100), (2, 20)),
    "org.example.a": ((20, 200), (4, 40)),
    "org.example.b": ((30, 300), (6, 60)),
    "org.example.shared": ((40, 400), (8, 80)),
    "net.unknown": ((1, 1), (1, 1)),
}

JACOCO_XML = """\
<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<report name="app">
  <package name="com/example/app">
    <counter type="INSTRUCTION" missed="10" covered="90"/>
    <counter type="LINE" missed="2" covered="18"/>
  </package>
  <package name="org/example/a">
    <counter type="INSTRUCTION" missed="20" covered="180"/>
  </package>
  <package name="org/example/shared">
    <counter type="INSTRUCTION" missed="40" covered="360"/>
  </package>
  <package name="net/unknown">
    <counter type="INSTRUCTION" missed="1" covered="0"/>
  </package>
</report>
"""


# ── Project scaffolding fixture ──────────────────────────────────


@pytest.fixture()
def maven_project(tmp_path: Path) -> Path:
    """Create a project with sources, a dependency tree, jars and a JaCoCo report."""
    project = tmp_path / "app"
    write_file(
        project,
        "pom.xml",
        "<project><groupId>com.example</groupId><artifactId>app</artifactId>"
        "<version>1.0</version></project>\n",
    )
    write_file(
        project, "src/main/java/com/example/app/App.java", "package com.example.app;\nclass App {}\n"
    )
    write_file(project, "tree.txt", DEPENDENCY_TREE)
    write_file(project, "target/site/jacoco/jacoco.xml", JACOCO_XML)

    m2 = tmp_path / "m2"
    write_jar(m2, "org/example/a/1.0/a-1.0.jar", ["org/example/a/A.class"])
    write_jar(m2, "org/example/b/1.0/b-1.0.jar", ["org/example/b/B.class"])
    write_jar(m2, "org/example/shared/2.0/shared-2.0.jar", ["org/example/shared/S.class"])

    report = project / "target/site/jacoco"
    write_file(report, "index.html", "<html>JaCoCo overview</html>\n")
    write_file(report, "jacoco-resources/report.css", "body {}\n")
    for package, (instructions, lines) in PACKAGE_USAGE.items():
        write_file(report, f"{package}/index.html", package_page(instructions, lines))
        write_file(report, f"{package}/Foo.html", "<html>class page</html>\n")

    (project / ".jact.yml").write_text(
        yaml.dump(
            {
                "report": {"dir": "target/site/jacoco"},
                "maven": {"local_repo": str(m2), "tree_file": "tree.txt"},
            }
        ),
        encoding="utf-8",
    )
    return project
