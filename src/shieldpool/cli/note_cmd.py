"""Note commands: create and inspect note tokens offline."""

import typer
from rich.console import Console
from rich.table import Table

from shieldpool.config.loader import load_config
from shieldpool.errors import ShieldPoolError
from shieldpool.note.codec import NoteCodec
from shieldpool.note.commitment import CommitmentScheme

console = Console()


def new_note(
    config_path: str | None = None,
    asset: str | None = None,
    denomination: str | None = None,
    network_id: int | None = None,
) -> None:
    """Generate fresh secret material and print the note and its commitment.

    Nothing is sent anywhere; publishing the commitment is a separate step.
    """
    config = load_config(config_path or None)
    note_config = config.note

    scheme = CommitmentScheme()
    codec = NoteCodec(prefix=note_config.prefix)
    deposit = scheme.generate()

    try:
        token = codec.encode(
            asset or note_config.asset,
            denomination or note_config.denomination,
            note_config.network_id if network_id is None else network_id,
            deposit.preimage,
        )
    except ShieldPoolError as e:
        console.print(f"[red]Cannot build note: {e}[/red]")
        raise typer.Exit(code=1) from e

    console.print("[bold]Note[/bold] (keep it secret, it is the only way to withdraw):")
    console.print(token, soft_wrap=True, highlight=False)
    console.print("[bold]Commitment:[/bold]")
    console.print(deposit.commitment.to_hex(), soft_wrap=True, highlight=False)


def inspect_note(token: str, config_path: str | None = None) -> None:
    """Parse a note and show its public values."""
    config = load_config(config_path or None)
    codec = NoteCodec(prefix=config.note.prefix)

    try:
        note = codec.parse(token)
    except ShieldPoolError as e:
        console.print(f"[red]Invalid note: {e}[/red]")
        raise typer.Exit(code=1) from e

    deposit = note.deposit(CommitmentScheme())

    table = Table(title="Note", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", overflow="fold")
    table.add_row("Asset", note.asset)
    table.add_row("Denomination", note.denomination)
    table.add_row("Network", str(note.network_id))
    table.add_row("Commitment", deposit.commitment.to_hex())
    table.add_row("Nullifier hash", deposit.nullifier_hash.to_hex())
    console.print(table)
