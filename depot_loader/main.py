"""depot-loader command line interface."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from uuid import UUID

import click
from rich.table import Table

from .console import console
from .console import error_console
from .errors import LoaderError
from .evaluator import SourceFileEvaluator
from .factory import create_engine
from .identity import DEFAULT_SLUG_LENGTH
from .identity import MAIN
from .identity import PackageIdentity
from .identity import version_slug
from .logging_setup import init_json_logging
from .settings import LoaderSettings
from .settings import resolve_project_setting
from .utils.error_format import escape_markup
from .utils.error_format import format_error_message


def _fail(e: BaseException) -> None:
    error_console.print(f"[red]Error:[/red] {escape_markup(format_error_message(e))}")
    sys.exit(1)


def _settings(ctx: click.Context) -> LoaderSettings:
    return ctx.obj["settings"]


@click.group()
@click.option("--project", "project", default=None, help="Active project directory, or @. to search upward")
@click.option("--log-file", default=None, help="Write JSONL logs to this file")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level for the JSONL log",
)
@click.pass_context
def cli(ctx: click.Context, project: str | None, log_file: str | None, log_level: str | None):
    """Resolve and load packages through layered environments."""
    if log_file or os.environ.get("DEPOT_LOADER_LOG_PATH"):
        init_json_logging(log_file, log_level)

    try:
        settings = LoaderSettings.load()
    except LoaderError as e:
        _fail(e)
    if project is not None:
        settings.active_project = resolve_project_setting(project, Path.cwd())

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.pass_context
def status(ctx: click.Context):
    """Show the environment stack and depots."""
    settings = _settings(ctx)
    try:
        engine = create_engine(settings)
    except LoaderError as e:
        _fail(e)

    project = settings.active_project
    console.print(f"[bold]Active project:[/bold] {escape_markup(project) if project else '[dim]none[/dim]'}")

    table = Table(title="Environment Stack")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Kind", style="cyan")
    table.add_column("Directory")
    for i, env in enumerate(engine.stack, 1):
        table.add_row(str(i), env.describe(), escape_markup(env.base_dir))
    if len(engine.stack):
        console.print(table)
    else:
        console.print("[yellow]No environments on the load path.[/yellow]")

    console.print("[bold]Depots:[/bold]")
    for depot in settings.depot_path:
        marker = "" if depot.exists() else " [dim](missing)[/dim]"
        console.print(f"  {escape_markup(depot)}{marker}")


@cli.command()
@click.argument("name")
@click.option("--from", "from_uuid", default=None, help="UUID of the importing package (default: top level)")
@click.pass_context
def which(ctx: click.Context, name: str, from_uuid: str | None):
    """Show which package NAME denotes and where its entry file is."""
    requester = MAIN
    if from_uuid is not None:
        try:
            requester = PackageIdentity("?", UUID(from_uuid))
        except ValueError:
            raise click.BadParameter(f"not a UUID: {from_uuid}", param_hint="--from")

    try:
        engine = create_engine(_settings(ctx))
        identity = engine.identify_package(requester, name)
        path = engine.locate_package(identity)
    except LoaderError as e:
        _fail(e)

    click.echo(str(identity))
    click.echo(str(path))


@cli.command()
@click.argument("uuid")
@click.argument("tree_hash")
@click.option("--length", default=DEFAULT_SLUG_LENGTH, show_default=True, help="Number of slug characters")
def slug(uuid: str, tree_hash: str, length: int):
    """Print the depot directory slug for UUID and TREE_HASH."""
    try:
        parsed = UUID(uuid)
    except ValueError:
        raise click.BadParameter(f"not a UUID: {uuid}", param_hint="UUID")
    click.echo(version_slug(parsed, tree_hash, length))


@cli.command()
@click.argument("script", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def run(ctx: click.Context, script: Path):
    """Run SCRIPT as top-level code with require() and include() available."""
    evaluator = SourceFileEvaluator()
    try:
        engine = create_engine(_settings(ctx), evaluator)
        evaluator.run_script(script, engine)
    except LoaderError as e:
        _fail(e)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
