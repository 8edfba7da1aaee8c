"""Configuration parsing from ``.jact.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from jact.graph.maven_tree import DEFAULT_SCOPES
from jact.project import DEFAULT_SOURCE_ROOTS

logger = logging.getLogger(__name__)

CONFIG_FILE = ".jact.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

_KNOWN_SCOPES = frozenset({"compile", "runtime", "provided", "system", "test"})


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def _default_local_repo() -> str:
    for var in ("JACT_LOCAL_REPO", "M2_REPO"):
        value = os.environ.get(var, "").strip()
        if value:
            return value
    return str(Path.home() / ".m2" / "repository")


@dataclass
class ProjectConfig:
    """Project-level configuration."""

    root: str
    """Project root directory (the one holding ``pom.xml``)."""

    id: str = ""
    """Project identity; read from ``pom.xml`` when empty."""

    source_roots: list[str] = field(default_factory=lambda: list(DEFAULT_SOURCE_ROOTS))
    """Source directories scanned for the project's own packages."""


@dataclass
class ReportConfig:
    """Report locations."""

    dir: str = "target/jact-report"
    """JaCoCo HTML report to augment, relative to the project root."""

    xml: str = ""
    """JaCoCo XML report for ``xml-report``; auto-detected when empty."""

    summary_file: str = "target/jact-summary.json"
    """Where ``xml-report`` writes its JSON summary."""


@dataclass
class MavenConfig:
    """Maven integration."""

    command: str = "mvn"
    """Maven executable used to print the dependency tree."""

    local_repo: str = field(default_factory=_default_local_repo)
    """Local repository holding the dependency jars."""

    tree_file: str = ""
    """Pre-generated ``dependency:tree`` output; Maven is run when empty."""

    scopes: list[str] = field(default_factory=lambda: sorted(DEFAULT_SCOPES))
    """Dependency scopes included in the report."""

    include_transitive: bool = True
    """Include transitive dependencies below the direct ones."""

    timeout: int = 300
    """Seconds to wait for Maven."""


@dataclass
class JactConfig:
    """Complete jact configuration."""

    project: ProjectConfig
    report: ReportConfig = field(default_factory=ReportConfig)
    maven: MavenConfig = field(default_factory=MavenConfig)
    raw: dict[str, Any] = field(default_factory=dict)
    """The resolved YAML content, kept for display."""

    @property
    def root_path(self) -> Path:
        return Path(self.project.root)

    def resolve(self, value: str) -> Path:
        """Resolve a configured path against the project root."""
        path = Path(value).expanduser()
        return path if path.is_absolute() else self.root_path / path

    @property
    def report_dir(self) -> Path:
        return self.resolve(self.report.dir)

    @property
    def local_repo(self) -> Path:
        return self.resolve(self.maven.local_repo)

    @property
    def source_roots(self) -> list[Path]:
        return [self.resolve(root) for root in self.project.source_roots]


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    return value if isinstance(value, dict) else {}


def _string_list(value: Any, default: list[str]) -> list[str]:
    if isinstance(value, list):
        return [str(item) for item in value]
    if isinstance(value, str) and value:
        return [value]
    return default


def _parse_maven_config(raw: dict[str, Any]) -> MavenConfig:
    maven_raw = _section(raw, "maven")
    default = MavenConfig()
    return MavenConfig(
        command=str(maven_raw.get("command", default.command)),
        local_repo=str(maven_raw.get("local_repo", default.local_repo)),
        tree_file=str(maven_raw.get("tree_file", "")),
        scopes=_string_list(maven_raw.get("scopes"), default.scopes),
        include_transitive=bool(maven_raw.get("include_transitive", True)),
        timeout=int(maven_raw.get("timeout", default.timeout)),
    )


def load_config(root: str | Path) -> JactConfig:
    """Load and parse ``.jact.yml`` from *root*.

    Falls back to defaults and environment variables when the file is
    missing or incomplete.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILE

    raw: dict[str, Any] = {}
    if config_file.is_file():
        parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        elif parsed is not None:
            logger.warning("Ignoring %s: top level is not a mapping", config_file)

    project_raw = _section(raw, "project")
    project = ProjectConfig(
        root=str(project_raw.get("root", root_path)),
        id=str(project_raw.get("id", "")),
        source_roots=_string_list(project_raw.get("source_roots"), list(DEFAULT_SOURCE_ROOTS)),
    )

    report_raw = _section(raw, "report")
    report = ReportConfig(
        dir=str(report_raw.get("dir", os.environ.get("JACT_REPORT_DIR", ReportConfig.dir))),
        xml=str(report_raw.get("xml", "")),
        summary_file=str(report_raw.get("summary_file", ReportConfig.summary_file)),
    )

    return JactConfig(project=project, report=report, maven=_parse_maven_config(raw), raw=raw)


def validate_config(config: JactConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []

    if not config.project.root:
        errors.append("project.root is required")
    elif not config.root_path.is_dir():
        errors.append(f"project.root does not exist: {config.project.root}")

    if not config.report.dir:
        errors.append("report.dir is required")

    if config.maven.timeout <= 0:
        errors.append(f"maven.timeout must be positive, got {config.maven.timeout}")

    unknown = sorted(set(config.maven.scopes) - _KNOWN_SCOPES)
    if unknown:
        errors.append(f"maven.scopes has unknown scopes: {', '.join(unknown)}")
    if not config.maven.scopes:
        errors.append("maven.scopes must not be empty")

    if config.maven.tree_file and not config.resolve(config.maven.tree_file).is_file():
        errors.append(f"maven.tree_file does not exist: {config.maven.tree_file}")

    if not config.project.source_roots:
        errors.append("project.source_roots must not be empty")

    return errors
