"""Anonymity-set commands working on an exported deposit event log.

The event file is a JSON list of ``{"leafIndex": int, "commitment": hex}``
records, in any order.
"""

import json
from pathlib import Path

import typer
from rich.console import Console

from shieldpool.config.loader import load_config
from shieldpool.errors import ShieldPoolError
from shieldpool.note.codec import NoteCodec
from shieldpool.note.commitment import CommitmentScheme
from shieldpool.tree.merkle import AnonymitySetView, DepositEvent
from shieldpool.withdraw.builder import WithdrawalRequestBuilder

console = Console()

OUTPUT_FORMATS = ("text", "json")


def load_events(path: Path) -> list[DepositEvent]:
    """Read deposit events from a JSON file.

    Raises:
        ShieldPoolError: If the file is missing or not an event list.
    """
    try:
        records = json.loads(path.read_text())
    except (OSError, ValueError) as e:
        raise ShieldPoolError(f"Cannot read events from {path}: {e}") from e
    if not isinstance(records, list):
        raise ShieldPoolError(f"{path} must contain a JSON list of events")
    return [DepositEvent.from_dict(record) for record in records]


def _view(config_path: str | None, height: int | None) -> AnonymitySetView:
    config = load_config(config_path or None)
    return AnonymitySetView(
        height=height or config.tree.height,
        zero_value=config.tree.zero_value,
    )


def tree_root(events_file: str, config_path: str | None = None, height: int | None = None) -> None:
    """Print the root of the anonymity set described by *events_file*."""
    view = _view(config_path, height)
    try:
        snapshot = view.build(load_events(Path(events_file)))
    except ShieldPoolError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from e

    console.print(f"Leaves: {len(snapshot)}")
    console.print(f"Root: {snapshot.root.to_hex()}", soft_wrap=True, highlight=False)


def withdraw_args(
    token: str,
    events_file: str,
    recipient: str,
    relayer: str | None = None,
    fee: int = 0,
    refund: int = 0,
    config_path: str | None = None,
    height: int | None = None,
    output_format: str = "text",
) -> None:
    """Print the ledger argument vector for withdrawing *token*.

    Works offline against an exported event log; the ledger's root and
    spent checks still happen at submission time. Private inputs are never
    printed.
    """
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown output format {output_format!r}")

    config = load_config(config_path or None)
    view = _view(config_path, height)
    codec = NoteCodec(prefix=config.note.prefix)

    try:
        deposit = codec.parse(token).deposit(CommitmentScheme(view.hasher))
        snapshot = view.build(load_events(Path(events_file)))
        leaf_index = view.locate(snapshot, deposit.commitment)
        if leaf_index is None:
            console.print("[red]The deposit is not found in the tree[/red]")
            raise typer.Exit(code=1)
        inputs = WithdrawalRequestBuilder.build_proof_inputs(
            deposit,
            view.path(snapshot, leaf_index),
            recipient=recipient,
            relayer=relayer or 0,
            fee=fee,
            refund=refund,
        )
    except ShieldPoolError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from e

    args = WithdrawalRequestBuilder.build_ledger_args(inputs.public)
    if output_format == "json":
        console.print_json(data=args)
        return

    names = ["root", "nullifierHash", "recipient", "relayer", "fee", "refund"]
    console.print(f"Leaf index: {leaf_index}")
    for name, value in zip(names, args, strict=True):
        console.print(f"{name}: {value}", soft_wrap=True, highlight=False)
