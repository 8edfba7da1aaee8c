"""jact CLI — top-level command group."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any

import click
import yaml

from jact import __version__
from jact.config import JactConfig, load_config, validate_config
from jact.errors import JactError
from jact.pipeline import generate_html_report, generate_xml_summary, load_graph
from jact.terminal import console, reporter

logger = logging.getLogger(__name__)

_LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

_path_option = click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)


def _config_to_dict(config: JactConfig) -> dict[str, Any]:
    """Convert JactConfig to dictionary for display."""
    result = asdict(config)
    result.pop("raw", None)
    return result


def _load(
    path: str,
    *,
    report_dir: str | None = None,
    tree_file: str | None = None,
    local_repo: str | None = None,
    no_transitive: bool = False,
) -> JactConfig:
    """Load the configuration and apply command-line overrides."""
    config = load_config(path)
    if report_dir:
        config.report = replace(config.report, dir=report_dir)
    if tree_file:
        config.maven = replace(config.maven, tree_file=tree_file)
    if local_repo:
        config.maven = replace(config.maven, local_repo=local_repo)
    if no_transitive:
        config.maven = replace(config.maven, include_transitive=False)

    errors = validate_config(config)
    if errors:
        for error in errors:
            reporter.print_error(error)
        raise click.ClickException("Invalid configuration, see 'jact config validate'")
    return config


def _graph_options(func: Any) -> Any:
    for option in reversed(
        [
            _path_option,
            click.option("--tree-file", help="Pre-generated 'mvn dependency:tree' output."),
            click.option("--local-repo", help="Local Maven repository holding the jars."),
            click.option(
                "--no-transitive",
                is_flag=True,
                help="Only report direct dependencies.",
            ),
        ]
    ):
        func = option(func)
    return func


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="jact")
@click.pass_context
def cli(ctx: click.Context, *, verbose: bool) -> None:
    """jact — dependency-aware coverage reports for Maven projects."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=_LOG_FORMAT)


@cli.command("html-report")
@_graph_options
@click.option("--report-dir", help="JaCoCo HTML report to augment (default from .jact.yml).")
def html_report(
    path: str,
    tree_file: str | None,
    local_repo: str | None,
    report_dir: str | None,
    *,
    no_transitive: bool,
) -> None:
    """Rewrite a JaCoCo HTML report into a per-dependency report.

    Example:
      jact html-report --report-dir target/site/jacoco
    """
    config = _load(
        path,
        report_dir=report_dir,
        tree_file=tree_file,
        local_repo=local_repo,
        no_transitive=no_transitive,
    )
    reporter.print_header(f"jact {__version__}: HTML report")

    try:
        with reporter.create_status("Resolving dependency tree..."):
            graph = asyncio.run(load_graph(config))
        reporter.print_success(f"Loaded {len(graph)} dependencies")

        with reporter.create_status("Building report..."):
            result = generate_html_report(config, graph)
    except JactError as e:
        reporter.print_error(str(e))
        raise SystemExit(1) from e

    reporter.print_classification(result.classification)
    reporter.print_usage_summary(graph)
    reporter.print_success(f"Report written to {result.report_dir / 'index.html'}")


@cli.command("xml-report")
@_graph_options
@click.option(
    "--xml",
    "xml_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JaCoCo XML report (auto-detected when omitted).",
)
@click.option("--output", help="Where to write the JSON summary.")
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Print the summary as JSON instead of a table.",
)
def xml_report(
    path: str,
    tree_file: str | None,
    local_repo: str | None,
    xml_file: Path | None,
    output: str | None,
    *,
    no_transitive: bool,
    as_json: bool,
) -> None:
    """Attribute the usage in a JaCoCo XML report to dependencies.

    Example:
      jact xml-report --xml target/site/jacoco/jacoco.xml --json-output
    """
    config = _load(path, tree_file=tree_file, local_repo=local_repo, no_transitive=no_transitive)
    if output:
        config.report = replace(config.report, summary_file=output)

    try:
        graph = asyncio.run(load_graph(config))
        result = generate_xml_summary(config, graph, xml_file)
    except JactError as e:
        if as_json:
            click.echo(json.dumps({"error": str(e)}))
        else:
            reporter.print_error(str(e))
        raise SystemExit(1) from e

    if as_json:
        click.echo(json.dumps(result.sink.to_dict(), indent=2))
        return

    reporter.print_header(f"jact {__version__}: XML report")
    reporter.print_usage_summary(graph)
    reporter.print_unresolved(result.unresolved)
    if result.summary_file is not None:
        reporter.print_success(f"Summary written to {result.summary_file}")


@cli.command("deps")
@_graph_options
def deps(path: str, tree_file: str | None, local_repo: str | None, *, no_transitive: bool) -> None:
    """Show the dependency graph the report is built from."""
    config = _load(path, tree_file=tree_file, local_repo=local_repo, no_transitive=no_transitive)
    try:
        graph = asyncio.run(load_graph(config))
    except JactError as e:
        reporter.print_error(str(e))
        raise SystemExit(1) from e
    reporter.print_dependency_tree(graph)


@cli.group("config")
def config_group() -> None:
    """Inspect `.jact.yml` configuration."""


@config_group.command("show")
@_path_option
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of YAML.",
)
def config_show(path: str, *, as_json: bool) -> None:
    """Display the resolved configuration.

    Example:
      jact config show --json-output
    """
    config_dict = _config_to_dict(load_config(path))
    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
        return
    console.print()
    console.print("[bold cyan]Configuration:[/bold cyan]")
    console.print()
    click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@_path_option
def config_validate(path: str) -> None:
    """Validate `.jact.yml` configuration."""
    errors = validate_config(load_config(path))

    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")
    console.print()
    console.print("[dim]Fix these errors in .jact.yml and run 'jact config validate' again.[/dim]")
    raise click.Abort
