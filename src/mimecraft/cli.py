"""Command line interface for mimecraft.

Usage::

    mimecraft render message.yml              # raw RFC 5322 text on stdout
    mimecraft render message.yml --encoded    # URL-safe base64 of the same text
    mimecraft inspect message.yml             # headers and body topology
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mimecraft.config import load_config
from mimecraft.description import load_description
from mimecraft.exceptions import MimecraftError
from mimecraft.logging import configure_logging

console = Console(stderr=True)

app = typer.Typer(
    name="mimecraft",
    help="Compose RFC 5322 email messages from YAML descriptions.",
    no_args_is_help=True,
    add_completion=False,
)

DESCRIPTION_ARGUMENT = Annotated[
    Path,
    typer.Argument(exists=True, dir_okay=False, readable=True, help="YAML message description."),
]
CONFIG_OPTION = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", dir_okay=False, help="YAML file with a 'mimecraft' settings section."),
]
VERBOSE_OPTION = Annotated[
    int,
    typer.Option("--verbose", "-v", count=True, help="Increase log verbosity (-v debug, -vv trace)."),
]


def exit_error(message: str) -> NoReturn:
    """Print an error on stderr and exit with code 1."""
    console.print(f"[red]Error:[/] {escape(message)}", highlight=False)
    raise typer.Exit(code=1)


def _setup_logging(verbose: int) -> None:
    level = {0: "WARNING", 1: "DEBUG"}.get(verbose, "TRACE")
    configure_logging(level, console=console)


@app.command()
def render(
    description: DESCRIPTION_ARGUMENT,
    config: CONFIG_OPTION = None,
    encoded: Annotated[bool, typer.Option("--encoded", "-e", help="Print URL-safe base64 instead.")] = False,
    verbose: VERBOSE_OPTION = 0,
) -> None:
    """Render a message description to raw text."""
    _setup_logging(verbose)
    try:
        message = load_description(description, load_config(config))
        output = message.as_encoded() if encoded else message.as_raw()
    except MimecraftError as e:
        exit_error(f"{e.message} [{e.code}]")
    typer.echo(output)


@app.command()
def inspect(
    description: DESCRIPTION_ARGUMENT,
    config: CONFIG_OPTION = None,
    verbose: VERBOSE_OPTION = 0,
) -> None:
    """Show the headers, parts and topology of a message description."""
    _setup_logging(verbose)
    try:
        message = load_description(description, load_config(config))
        topology = message.topology()
    except MimecraftError as e:
        exit_error(f"{e.message} [{e.code}]")

    table = Table(title=f"Topology: {topology.value}", show_lines=False)
    table.add_column("Header", style="cyan")
    table.add_column("Value")
    for name, value in message.get_headers().items():
        if value is None:
            continue
        if isinstance(value, list):
            table.add_row(name, escape(", ".join(item.dump() for item in value)))
        elif isinstance(value, str):
            table.add_row(name, escape(value))
        else:
            table.add_row(name, escape(value.dump()))

    parts = Table(title="Parts", show_lines=False)
    parts.add_column("#", justify="right")
    parts.add_column("Content-Type", style="green")
    parts.add_column("Disposition")
    for index, part in enumerate(message.parts, start=1):
        disposition = part.get_header("Content-Disposition")
        parts.add_row(
            str(index),
            escape(part.content_type()),
            escape(disposition) if isinstance(disposition, str) else "-",
        )

    out = Console()
    out.print(table)
    out.print(parts)


def main() -> None:
    """Entry point for the ``mimecraft`` console script."""
    app()


__all__ = ["app", "main"]
