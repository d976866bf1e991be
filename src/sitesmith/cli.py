"""
Command line interface for sitesmith.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import ConfigError, SitesmithConfig, load_config
from .export import ARCHIVE_FILENAME
from .pipeline import (
    Outcome,
    build_site,
    deploy as deploy_site,
    detect_intent,
    export_archive,
    generate_site,
    list_deployments,
    resolve_workspace,
    save_edit,
)
from .workspace import Workspace

console = Console()
app = typer.Typer(help="Generate, edit, export and publish LLM-built static websites.")
logger = logging.getLogger(__name__)

LOG_LEVELS = ["critical", "error", "warning", "info", "debug"]


@dataclass
class CliState:
    config: SitesmithConfig
    workspace: Workspace


def _configure_logging(level_name: str) -> None:
    env_override = os.getenv("SITESMITH_LOG_LEVEL")
    level_str = (env_override or level_name or "info").upper()
    if level_str not in {lvl.upper() for lvl in LOG_LEVELS}:
        level_str = "INFO"
    logging.basicConfig(
        level=getattr(logging, level_str, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.debug("Logging configured at %s", level_str)


def _resolve_config_path(value: Optional[Path]) -> Optional[Path]:
    """Ensure config path exists and return absolute path."""
    if value is None:
        return None
    resolved = value.expanduser().resolve()
    if not resolved.exists():
        raise typer.BadParameter(f"No config file found at {resolved}")
    if not resolved.is_file():
        raise typer.BadParameter(f"Config path must be a file, got directory: {resolved}")
    return resolved


def _load_config_or_exit(path: Optional[Path]) -> SitesmithConfig:
    try:
        return load_config(path)
    except ConfigError as exc:
        console.print(f"[bold red]Configuration error:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _state(ctx: typer.Context) -> CliState:
    """Return the state the root callback stored before any subcommand runs."""
    return ctx.obj


def _finish(outcome: Outcome) -> None:
    """Print a failed outcome and exit non-zero; successes are printed by the caller."""
    if outcome.success:
        return
    detail = f" [dim]({outcome.kind}{', stage ' + outcome.stage if outcome.stage else ''})[/]" if outcome.kind else ""
    console.print(f"[bold red]{outcome.message}[/]{detail}")
    if outcome.retryable:
        console.print("[yellow]The failure looks transient; try again.[/]")
    raise typer.Exit(code=1)


def _print_files(title: str, outcome: Outcome) -> None:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("File")
    for index, name in enumerate(outcome.files, start=1):
        table.add_row(str(index), name)
    console.print(table)


@app.callback(invoke_without_command=True)
def _root_command(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show sitesmith version and exit.",
        is_flag=True,
    ),
    log_level: str = typer.Option(
        "info",
        "--log-level",
        help="Logging level (critical, error, warning, info, debug).",
        show_default=True,
        case_sensitive=False,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a TOML configuration file (defaults are used when omitted).",
        callback=_resolve_config_path,
    ),
    workspace: Optional[Path] = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Workspace directory (overrides workspace_dir from the config).",
    ),
) -> None:
    """
    Load configuration shared by every command.
    """
    _configure_logging(log_level)

    if version:
        console.print(f"[bold green]sitesmith[/] {__version__}")
        raise typer.Exit()

    loaded = _load_config_or_exit(config)
    ctx.obj = CliState(config=loaded, workspace=resolve_workspace(loaded, workspace))

    if ctx.invoked_subcommand is None:
        console.print(
            "[bold yellow]sitesmith[/] is ready. Run [cyan]sitesmith build \"<request>\"[/] "
            "to generate a site, then [cyan]sitesmith deploy[/] to publish it.",
        )


@app.command()
def intent(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Raw request, e.g. a transcript of spoken input."),
) -> None:
    """
    Turn a raw request into an elaborated English website intent.
    """
    state = _state(ctx)
    outcome = detect_intent(text, state.config)
    _finish(outcome)
    console.print(outcome.intent)


@app.command()
def generate(
    ctx: typer.Context,
    intent_text: str = typer.Argument(..., metavar="INTENT", help="Description of the website to build."),
) -> None:
    """
    Generate the site files for an intent and replace the workspace with them.
    """
    state = _state(ctx)
    outcome = generate_site(intent_text, state.config, state.workspace)
    _finish(outcome)
    _print_files(f"Generated into {state.workspace.root}", outcome)


@app.command()
def build(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Raw request, e.g. a transcript of spoken input."),
) -> None:
    """
    Detect the intent of a raw request and generate the site in one step.
    """
    state = _state(ctx)
    outcome = build_site(text, state.config, state.workspace)
    _finish(outcome)
    console.print(f"[bold]Intent:[/] {outcome.intent}")
    _print_files(f"Generated into {state.workspace.root}", outcome)


@app.command()
def edit(
    ctx: typer.Context,
    filename: str = typer.Argument(..., help="File in the workspace to create or overwrite."),
    content: Optional[str] = typer.Option(None, "--content", help="New file content."),
    from_file: Optional[Path] = typer.Option(
        None,
        "--from-file",
        exists=True,
        dir_okay=False,
        readable=True,
        help="Read the new content from this local file.",
    ),
) -> None:
    """
    Save an edit of a single workspace file.
    """
    if (content is None) == (from_file is None):
        raise typer.BadParameter("Pass exactly one of --content or --from-file.")
    if from_file is not None:
        content = from_file.read_text(encoding="utf-8")
    state = _state(ctx)
    outcome = save_edit(filename, content, state.workspace)
    _finish(outcome)
    console.print(f"[bold green]{outcome.message}[/] {outcome.path}")


@app.command()
def export(
    ctx: typer.Context,
    output: Path = typer.Option(
        Path(ARCHIVE_FILENAME),
        "--output",
        "-o",
        help="Archive path to write.",
    ),
) -> None:
    """
    Export the workspace as a zip archive.
    """
    state = _state(ctx)
    outcome = export_archive(state.workspace, output)
    _finish(outcome)
    console.print(f"[bold green]{outcome.message}[/] {outcome.path}")


@app.command()
def deploy(ctx: typer.Context) -> None:
    """
    Publish the workspace as a new versioned site and record it in the registry.
    """
    state = _state(ctx)
    outcome = deploy_site(state.config, state.workspace)
    _finish(outcome)
    console.print(f"[bold green]{outcome.message}[/]")
    console.print(outcome.url)


@app.command()
def sites(ctx: typer.Context) -> None:
    """
    List every recorded deployment, oldest first.
    """
    state = _state(ctx)
    outcome = list_deployments(state.config)
    _finish(outcome)
    if not outcome.sites:
        console.print("[yellow]No deployments recorded yet.[/]")
        return
    table = Table(title="Deployments")
    table.add_column("ID")
    table.add_column("URL", overflow="fold")
    for site in outcome.sites:
        table.add_row(site["id"], site["url"])
    console.print(table)


def main() -> None:
    """
    Entry-point used by the console script defined in pyproject.toml.
    """
    app()
