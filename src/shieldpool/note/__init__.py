"""Deposit notes: commitment derivation and the note token codec."""

from .codec import DEFAULT_PREFIX, Note, NoteCodec
from .commitment import CommitmentScheme, Deposit

__all__ = [
    "DEFAULT_PREFIX",
    "CommitmentScheme",
    "Deposit",
    "Note",
    "NoteCodec",
]
