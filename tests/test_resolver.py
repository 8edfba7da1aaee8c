"""Tests for resolver.py — package ownership, relocation and report classification."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path

import pytest

from jact.errors import StructuralError
from jact.graph.dependency import Coordinates, DependencyGraph
from jact.models.usage import MetricPair
from jact.resolver import (
    DependencyOwned,
    PackageResolver,
    ProjectOwned,
    Unresolved,
    classify_report,
    jar_packages,
    relocate,
    resolve,
)

_FOOTER = (
    '<table><tfoot><tr><td>Total</td><td class="bar">{missed} of {total}</td>'
    '<td class="ctr2">0%</td><td class="bar">0 of 0</td><td class="ctr2">n/a</td>'
    '<td class="ctr1">0</td><td class="ctr2">1</td><td class="ctr1">0</td><td class="ctr2">2</td>'
    '<td class="ctr1">0</td><td class="ctr2">1</td><td class="ctr1">0</td><td class="ctr2">1</td>'
    "</tr></tfoot></table>"
)


def _write_jar(local_repo: Path, coords: Coordinates, classes: list[str]) -> Path:
    jar = coords.jar_path(local_repo)
    jar.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(jar, "w") as archive:
        archive.writestr("META-INF/MANIFEST.MF", "Manifest-Version: 1.0\n")
        archive.writestr("META-INF/versions/9/module-info.class", b"")
        for name in classes:
            archive.writestr(name, b"\xca\xfe\xba\xbe")
    return jar


def _write_package(report_root: Path, package: str, missed: int = 1, total: int = 10) -> Path:
    directory = report_root / package
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "index.html").write_text(
        _FOOTER.format(missed=missed, total=total), encoding="utf-8"
    )
    (directory / "Foo.html").write_text("<html/>", encoding="utf-8")
    return directory


A = Coordinates("org.example", "a", "1.0")
B = Coordinates("org.example", "b", "1.0")
SHARED = Coordinates("org.example", "shared", "2.0")
GUAVA = Coordinates("com.google.guava", "guava", "32.0")


@pytest.fixture()
def local_repo(tmp_path: Path) -> Path:
    repo = tmp_path / "m2"
    _write_jar(repo, A, ["org/example/a/A.class", "org/example/a/util/Helper.class"])
    _write_jar(repo, B, ["org/example/b/B.class"])
    _write_jar(repo, SHARED, ["org/example/shared/Shared.class"])
    return repo


@pytest.fixture()
def graph() -> DependencyGraph:
    graph = DependencyGraph("com.example:app:1.0")
    a = graph.add_dependency(A)
    b = graph.add_dependency(B)
    graph.add_dependency(SHARED, parent=a)
    graph.add_dependency(SHARED, parent=b)
    return graph


# ── jar_packages ──────────────────────────────────────────────────


class TestJarPackages:
    def test_lists_class_packages(self, local_repo: Path) -> None:
        assert jar_packages(A.jar_path(local_repo)) == {"org.example.a", "org.example.a.util"}

    def test_skips_meta_inf(self, local_repo: Path) -> None:
        assert not any(p.startswith("META-INF") for p in jar_packages(B.jar_path(local_repo)))


# ── PackageResolver ───────────────────────────────────────────────


class TestPackageResolver:
    def test_project_package_wins(self, graph: DependencyGraph, local_repo: Path) -> None:
        resolver = PackageResolver(graph, {"org.example.a"}, local_repo)
        assert resolver.resolve("org.example.a") == ProjectOwned("org.example.a")

    def test_dependency_by_jar_index(self, graph: DependencyGraph, local_repo: Path) -> None:
        target = resolve("org.example.a.util", graph, set(), local_repo)
        assert isinstance(target, DependencyOwned)
        assert target.node.identity == "org.example:a:1.0"

    def test_shared_dependency(self, graph: DependencyGraph, local_repo: Path) -> None:
        target = resolve("org.example.shared", graph, set(), local_repo)
        assert isinstance(target, DependencyOwned)
        assert target.node is graph.get("org.example:shared:2.0")

    def test_unresolved(self, graph: DependencyGraph, local_repo: Path) -> None:
        target = resolve("net.other.thing", graph, set(), local_repo)
        assert isinstance(target, Unresolved)
        assert target.package == "net.other.thing"

    def test_keyword_fallback_without_jar(self, local_repo: Path) -> None:
        graph = DependencyGraph("p")
        graph.add_dependency(GUAVA)
        target = resolve("com.google.guava.collect", graph, set(), local_repo)
        assert isinstance(target, DependencyOwned)
        assert target.node.identity == GUAVA.identity

    def test_keyword_fallback_requires_every_word(self, local_repo: Path) -> None:
        graph = DependencyGraph("p")
        graph.add_dependency(GUAVA)
        assert isinstance(resolve("com.google.common", graph, set(), local_repo), Unresolved)

    def test_split_package_first_wins(
        self, local_repo: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        other = Coordinates("org.example", "a-fork", "1.0")
        _write_jar(local_repo, other, ["org/example/a/A.class"])
        graph = DependencyGraph("p")
        graph.add_dependency(A)
        graph.add_dependency(other)

        with caplog.at_level(logging.WARNING):
            target = resolve("org.example.a", graph, set(), local_repo)
        assert isinstance(target, DependencyOwned)
        assert target.node.identity == A.identity
        assert "provided by 2 dependencies" in caplog.text

    def test_corrupt_jar_falls_back(
        self, local_repo: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        broken = Coordinates("org.broken", "broken", "1.0")
        jar = broken.jar_path(local_repo)
        jar.parent.mkdir(parents=True)
        jar.write_bytes(b"not a zip")
        graph = DependencyGraph("p")
        graph.add_dependency(broken)

        with caplog.at_level(logging.WARNING):
            target = resolve("org.broken.internal", graph, set(), local_repo)
        assert isinstance(target, DependencyOwned)
        assert "Could not index" in caplog.text


# ── relocate ──────────────────────────────────────────────────────


class TestRelocate:
    def test_single_path_moves(self, tmp_path: Path, graph: DependencyGraph) -> None:
        report = tmp_path / "report"
        graph.assign_report_paths(report)
        source = _write_package(report, "org.example.a")
        node = graph.get(A.identity)
        assert node is not None

        destinations = relocate(source, node)

        assert not source.exists()
        assert destinations == [node.report_paths[0] / "org.example.a"]
        assert (destinations[0] / "index.html").is_file()

    def test_shared_node_copies_then_removes(self, tmp_path: Path, graph: DependencyGraph) -> None:
        report = tmp_path / "report"
        graph.assign_report_paths(report)
        source = _write_package(report, "org.example.shared")
        node = graph.get(SHARED.identity)
        assert node is not None

        destinations = relocate(source, node)

        assert not source.exists()
        assert len(destinations) == 2
        for destination in destinations:
            assert (destination / "index.html").is_file()
            assert (destination / "Foo.html").is_file()

    def test_existing_destination_replaced(self, tmp_path: Path, graph: DependencyGraph) -> None:
        report = tmp_path / "report"
        graph.assign_report_paths(report)
        node = graph.get(A.identity)
        assert node is not None
        stale = node.report_paths[0] / "org.example.a"
        stale.mkdir(parents=True)
        (stale / "stale.html").write_text("old", encoding="utf-8")

        relocate(_write_package(report, "org.example.a"), node)

        assert not (stale / "stale.html").exists()
        assert (stale / "index.html").is_file()

    def test_existing_shared_destinations_replaced(
        self, tmp_path: Path, graph: DependencyGraph
    ) -> None:
        report = tmp_path / "report"
        graph.assign_report_paths(report)
        node = graph.get(SHARED.identity)
        assert node is not None
        for path in node.report_paths:
            stale = path / "org.example.shared"
            stale.mkdir(parents=True)
            (stale / "stale.html").write_text("old", encoding="utf-8")

        destinations = relocate(_write_package(report, "org.example.shared"), node)

        assert len(destinations) == 2
        for destination in destinations:
            assert not (destination / "stale.html").exists()
            assert (destination / "index.html").is_file()

    def test_node_without_paths(self, tmp_path: Path) -> None:
        graph = DependencyGraph("p")
        node = graph.add(A)
        with pytest.raises(StructuralError, match="no report path"):
            relocate(_write_package(tmp_path, "org.example.a"), node)


# ── classify_report ───────────────────────────────────────────────


class TestClassifyReport:
    def test_classifies_and_accumulates(
        self, tmp_path: Path, graph: DependencyGraph, local_repo: Path
    ) -> None:
        report = tmp_path / "report"
        (report / "jacoco-resources").mkdir(parents=True)
        graph.assign_report_paths(report)
        _write_package(report, "com.example.app", missed=2, total=20)
        _write_package(report, "org.example.a", missed=1, total=10)
        _write_package(report, "org.example.a.util", missed=3, total=5)
        _write_package(report, "org.example.shared", missed=4, total=8)
        _write_package(report, "net.unknown")

        result = classify_report(report, graph, {"com.example.app"}, local_repo)

        assert result.project_packages == ["com.example.app"]
        assert result.dependency_packages == {
            "org.example:a:1.0": ["org.example.a", "org.example.a.util"],
            "org.example:shared:2.0": ["org.example.shared"],
        }
        assert result.unresolved == ["net.unknown"]
        assert result.total == 5

        a = graph.get(A.identity)
        assert a is not None
        assert a.own_usage.instructions == MetricPair(4, 15)
        assert graph.project.own_usage.instructions == MetricPair(2, 20)
        assert (report / "com.example.app").is_dir()
        assert (report / "net.unknown").is_dir()
        assert not (report / "org.example.a").exists()
        assert (report / "jacoco-resources").is_dir()
