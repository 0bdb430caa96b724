from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated

import click
import typer
from rich.console import Console

from findtree import __version__
from findtree.config import ConfigError, FindTreeConfig, load_config
from findtree.engine.aggregator import ReportAggregator
from findtree.engine.errors import ProducerContractError
from findtree.events import EventsError, feed, load_events
from findtree.logging_utils import configure_logging
from findtree.reporters.json_reporter import render_json
from findtree.reporters.terminal import render_terminal
from findtree.tree import ReportTree

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="findtree: group static-analysis findings into a navigable report tree.",
)
console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def _main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose logs (printed to stderr)."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Reduce non-essential output."),
    ] = False,
) -> None:
    """findtree CLI."""

    if verbose and quiet:
        raise typer.BadParameter("Choose at most one: --verbose or --quiet.")
    configure_logging(verbose=verbose, quiet=quiet)
    ctx.obj = {"verbose": verbose, "quiet": quiet}


def _cli_settings() -> dict[str, bool]:
    ctx = click.get_current_context(silent=True)
    if ctx is None or not isinstance(ctx.obj, dict):
        return {"verbose": False, "quiet": False}
    return {"verbose": bool(ctx.obj.get("verbose", False)), "quiet": bool(ctx.obj.get("quiet", False))}


def build_report(raw: str, *, config: FindTreeConfig, project_root: Path | None = None) -> ReportTree:
    stream = load_events(raw, project_root=project_root)
    aggregator = ReportAggregator(config=config)
    feed(aggregator, stream)
    return aggregator.finish()


def _emit_output(fmt: str, *, tree: ReportTree, project_root: Path, expanded: bool) -> None:
    normalized = fmt.strip().lower()
    if normalized == "terminal":
        render_terminal(tree, console=console, project_root=project_root, expanded=expanded)
        return
    if normalized == "json":
        typer.echo(render_json(tree, project_root=project_root))
        return
    raise typer.BadParameter("Unsupported format. Use: terminal, json.")


@app.command()
def render(
    input_json: Annotated[
        str,
        typer.Argument(help="Findings JSON document path, or '-' to read from stdin."),
    ],
    output_format: Annotated[
        str | None,
        typer.Option("--format", help="Output format: terminal, json (default: from config)."),
    ] = None,
    project_root: Annotated[
        Path,
        typer.Option(
            "--project-root",
            exists=True,
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
            help="Project root for configuration and relative paths (default: current directory).",
        ),
    ] = Path("."),
    collapsed: Annotated[
        bool,
        typer.Option("--collapsed", help="Show only top-level branches with their counts."),
    ] = False,
) -> None:
    """
    Group a findings document into rule groups, suppressions and errors, and print the tree.
    """

    try:
        config = load_config(project_root)
    except ConfigError as exc:
        err_console.print(f"Invalid configuration: {exc}")
        raise typer.Exit(code=2) from exc

    try:
        if input_json.strip() == "-":
            raw = sys.stdin.read()
        else:
            raw = Path(input_json).read_text(encoding="utf-8", errors="replace")
        tree = build_report(raw, config=config, project_root=project_root)
    except (OSError, EventsError, ProducerContractError) as exc:
        err_console.print(f"Invalid findings document: {exc}")
        raise typer.Exit(code=2) from exc

    settings = _cli_settings()
    if settings["verbose"]:
        logger.debug("rendering %d top-level branch(es)", len(tree.branches()))

    expanded = config.expand and not collapsed and not settings["quiet"]
    _emit_output(output_format or config.format, tree=tree, project_root=project_root, expanded=expanded)
