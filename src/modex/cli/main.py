"""CLI entry point for modex.

Invoked as::

    modex [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m modex.cli.main

Commands
--------
export      Export the metamodel and generator configuration of a model
run         Run the export tasks declared in a task file
describe    Print the inputs and outputs of declared tasks as JSON
show        List the objects of a model description or artifact
version     Show version information
"""
from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING, NoReturn

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from modex.errors import ExportError
from modex.export.config import DEFAULT_CONFIG_NAME
from modex.export.pipeline import DEFAULT_GENCONFIG_TYPE, DEFAULT_METAMODEL_TYPE

if TYPE_CHECKING:
    from modex.export.task import ExportTask

console = Console()
err_console = Console(stderr=True)


def _exit_with_error(exc: ExportError, task_name: str | None = None) -> NoReturn:
    """Print a pipeline failure with its stage and path, then exit 1."""
    prefix = f"task {escape(task_name)}: " if task_name else ""
    err_console.print(f"[red]Error[/red] ({exc.stage}) {prefix}{escape(str(exc.path or '-'))}")
    for line in exc.message.splitlines():
        err_console.print(f"  {escape(line)}")
    sys.exit(1)


def _load_tasks_or_exit(config_path: str) -> list["ExportTask"]:
    from modex.export.config import load_tasks

    try:
        return load_tasks(config_path)
    except ExportError as exc:
        _exit_with_error(exc)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="modex")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Model export toolkit: load a model description, write its metamodel and generator configuration."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from modex import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]modex[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# export command
# ---------------------------------------------------------------------------


@cli.command(name="export")
@click.argument("source", type=click.Path(exists=False))
@click.argument("output_a", type=click.Path(exists=False))
@click.argument("output_b", type=click.Path(exists=False))
@click.option(
    "--metamodel-type",
    default=DEFAULT_METAMODEL_TYPE,
    show_default=True,
    help="Type tag of the object written to OUTPUT_A",
)
@click.option(
    "--genconfig-type",
    default=DEFAULT_GENCONFIG_TYPE,
    show_default=True,
    help="Type tag of the object written to OUTPUT_B",
)
def export_command(
    source: str,
    output_a: str,
    output_b: str,
    metamodel_type: str,
    genconfig_type: str,
) -> None:
    """Export the metamodel and generator configuration of a model.

    SOURCE is the model description; OUTPUT_A receives the metamodel and
    OUTPUT_B the generator configuration.
    """
    from modex.export.pipeline import export

    try:
        result = export(
            source,
            output_a,
            output_b,
            metamodel_type=metamodel_type,
            genconfig_type=genconfig_type,
        )
    except ExportError as exc:
        _exit_with_error(exc)

    for path, kind in result.outputs:
        console.print(f"[green]Written:[/green] {escape(str(path))} [dim]({kind.tag})[/dim]")


# ---------------------------------------------------------------------------
# run command
# ---------------------------------------------------------------------------


@cli.command(name="run")
@click.option(
    "--config",
    "config_path",
    default=DEFAULT_CONFIG_NAME,
    show_default=True,
    type=click.Path(exists=False),
    help="Task file declaring the exports",
)
@click.option("--task", "task_names", multiple=True, help="Run only the named task (repeatable)")
def run_command(config_path: str, task_names: tuple[str, ...]) -> None:
    """Run the export tasks declared in a task file, in order.

    Stops at the first failing task.
    """
    tasks = _load_tasks_or_exit(config_path)

    if task_names:
        known = {task.name: task for task in tasks}
        unknown = [name for name in task_names if name not in known]
        if unknown:
            err_console.print(f"[red]Error:[/red] Unknown task(s): {escape(', '.join(unknown))}")
            sys.exit(1)
        tasks = [known[name] for name in task_names]

    for task in tasks:
        try:
            result = task.run()
        except ExportError as exc:
            _exit_with_error(exc, task.name)
        console.print(f"[green]OK[/green] {escape(task.name)}")
        for path, kind in result.outputs:
            console.print(f"  {escape(str(path))} [dim]({kind.tag})[/dim]")

    console.print(f"\n[bold]{len(tasks)}[/bold] task(s) completed")


# ---------------------------------------------------------------------------
# describe command
# ---------------------------------------------------------------------------


@cli.command(name="describe")
@click.option(
    "--config",
    "config_path",
    default=DEFAULT_CONFIG_NAME,
    show_default=True,
    type=click.Path(exists=False),
    help="Task file declaring the exports",
)
def describe_command(config_path: str) -> None:
    """Print each declared task's inputs and outputs as JSON."""
    tasks = _load_tasks_or_exit(config_path)
    click.echo(json.dumps([task.describe() for task in tasks], indent=2))


# ---------------------------------------------------------------------------
# show command
# ---------------------------------------------------------------------------


@cli.command(name="show")
@click.argument("file", type=click.Path(exists=False))
def show_command(file: str) -> None:
    """List the objects of a model description or a written artifact.

    FILE is a .mdl source or an artifact written by ``modex export``.
    """
    from modex.resource import ResourceContext

    context = ResourceContext()
    try:
        resource = context.load(file)
    except ExportError as exc:
        _exit_with_error(exc)

    table = Table(title=f"Objects: {escape(file)}", show_lines=False)
    table.add_column("Fragment", style="dim")
    table.add_column("Kind", style="bold")
    table.add_column("Name")

    count = 0
    for obj in resource.all_contents():
        table.add_row(escape(resource.fragment(obj)), obj.kind.tag, escape(obj.label))
        count += 1

    console.print(table)
    console.print(f"\n[bold]{count}[/bold] object(s)")


if __name__ == "__main__":
    cli()
