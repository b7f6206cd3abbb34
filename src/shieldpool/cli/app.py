"""Main CLI application using Typer."""

import logging
import sys
from enum import StrEnum

import typer
from rich.console import Console

from shieldpool import __version__

# Create Typer app
app = typer.Typer(
    name="shieldpool",
    help="shieldpool - Notes, anonymity sets and withdrawal requests for a shielded pool",
    no_args_is_help=True,
)

console = Console()


class OutputFormat(StrEnum):
    """Output formats of commands that print machine-readable values."""

    TEXT = "text"
    JSON = "json"


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


@app.command()
def version():
    """Show shieldpool version."""
    console.print(f"shieldpool version {__version__}")


# Note commands
note_app = typer.Typer(help="Create and inspect note tokens")
app.add_typer(note_app, name="note")


@note_app.command("new")
def note_new(
    config_path: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (default: ~/.shieldpool/shieldpool.yaml)",
    ),
    asset: str = typer.Option(None, "--asset", "-a", help="Asset symbol"),
    denomination: str = typer.Option(None, "--denomination", "-d", help="Deposit amount"),
    network_id: int = typer.Option(None, "--network-id", "-n", help="Network id"),
):
    """Generate a new note and print its commitment."""
    from shieldpool.cli.note_cmd import new_note

    new_note(
        config_path=config_path,
        asset=asset,
        denomination=denomination,
        network_id=network_id,
    )


@note_app.command("inspect")
def note_inspect(
    token: str = typer.Argument(..., help="Note token"),
    config_path: str = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """Show the public values of a note."""
    from shieldpool.cli.note_cmd import inspect_note

    inspect_note(token, config_path=config_path)


# Anonymity-set commands
tree_app = typer.Typer(help="Inspect the anonymity set from an exported event log")
app.add_typer(tree_app, name="tree")


@tree_app.command("root")
def tree_root(
    events_file: str = typer.Argument(..., help="JSON file with deposit events"),
    config_path: str = typer.Option(None, "--config", "-c", help="Path to config file"),
    height: int = typer.Option(None, "--height", help="Override tree height"),
):
    """Compute the anonymity-set root."""
    from shieldpool.cli.tree_cmd import tree_root as tree_root_command

    tree_root_command(events_file, config_path=config_path, height=height)


@app.command("withdraw-args")
def withdraw_args(
    token: str = typer.Argument(..., help="Note token"),
    events_file: str = typer.Argument(..., help="JSON file with deposit events"),
    recipient: str = typer.Option(..., "--recipient", "-r", help="Recipient address (0x...)"),
    relayer: str = typer.Option(None, "--relayer", help="Relayer address (0x...)"),
    fee: int = typer.Option(0, "--fee", help="Relayer fee in base units"),
    refund: int = typer.Option(0, "--refund", help="Refund in base units"),
    config_path: str = typer.Option(None, "--config", "-c", help="Path to config file"),
    height: int = typer.Option(None, "--height", help="Override tree height"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "--format",
        "-f",
        help="Output format",
        case_sensitive=False,
    ),
):
    """Print the ledger withdraw arguments for a note."""
    from shieldpool.cli.tree_cmd import withdraw_args as withdraw_args_command

    withdraw_args_command(
        token,
        events_file,
        recipient=recipient,
        relayer=relayer,
        fee=fee,
        refund=refund,
        config_path=config_path,
        height=height,
        output_format=output_format.value,
    )


def main():
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
