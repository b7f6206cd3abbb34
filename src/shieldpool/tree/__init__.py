"""Anonymity-set Merkle tree view."""

from .merkle import (
    DEFAULT_HEIGHT,
    ZERO_VALUE,
    AnonymitySetView,
    DepositEvent,
    MerkleWitness,
    TreeSnapshot,
    compute_root,
    zero_hashes,
)

__all__ = [
    "DEFAULT_HEIGHT",
    "ZERO_VALUE",
    "AnonymitySetView",
    "DepositEvent",
    "MerkleWitness",
    "TreeSnapshot",
    "compute_root",
    "zero_hashes",
]
