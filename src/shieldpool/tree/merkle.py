"""Read-only view over the pool's anonymity set.

The ledger appends commitments as leaves of a fixed-height Merkle tree. This
module rebuilds that tree from a snapshot of the deposit event log and
answers the three questions a withdrawal needs: the current root, the leaf
index of a commitment, and the membership path of a leaf.

Unpopulated positions hold per-level empty-subtree values derived from a
fixed zero leaf, so the root of a tree with ``n`` leaves only depends on the
leaves and the height.

Example:
    >>> from shieldpool.tree.merkle import AnonymitySetView, compute_root
    >>>
    >>> view = AnonymitySetView(height=4)
    >>> snapshot = view.build([(1, 22), (0, 11)])
    >>> witness = view.path(snapshot, 1)
    >>> assert compute_root(snapshot.leaves[1], witness, view.hasher) == snapshot.root
"""

import hashlib
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from shieldpool.crypto.field import FIELD_SIZE, FieldElement
from shieldpool.crypto.pedersen import FieldHasher, PedersenHasher
from shieldpool.errors import (
    InconsistentEventLogError,
    IndexOutOfRangeError,
    TreeFullError,
)

logger = logging.getLogger(__name__)

DEFAULT_HEIGHT = 20
MAX_HEIGHT = 32

# Value of an unpopulated leaf
ZERO_VALUE = int(hashlib.sha256(b"shieldpool").hexdigest(), 16) % FIELD_SIZE


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DepositEvent:
    """A commitment appended to the anonymity set at ``leaf_index``."""

    leaf_index: int
    commitment: FieldElement
    timestamp: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DepositEvent":
        """Build from an event-log record.

        Accepts ``leafIndex`` or ``leaf_index``; the commitment may be an
        int or a hex string.
        """
        index = data.get("leafIndex", data.get("leaf_index"))
        if not isinstance(index, int) or isinstance(index, bool):
            raise InconsistentEventLogError(f"Event has no integer leaf index: {data!r}")
        return cls(
            leaf_index=index,
            commitment=_as_field(data.get("commitment")),
            timestamp=data.get("timestamp"),
        )


@dataclass(frozen=True)
class MerkleWitness:
    """Membership path of one leaf, ordered from leaf to root.

    ``path_indices[i]`` is 0 when the node at level *i* is a left child and 1
    when it is a right child; ``path_elements[i]`` is its sibling.
    """

    root: FieldElement
    path_elements: tuple[FieldElement, ...]
    path_indices: tuple[int, ...]
    leaf_index: int


@dataclass(frozen=True)
class TreeSnapshot:
    """Immutable Merkle tree built from one fetch of the event log.

    A snapshot goes stale as soon as a new commitment is published; build a
    fresh one per withdrawal attempt.
    """

    height: int
    leaves: tuple[FieldElement, ...]
    layers: tuple[tuple[FieldElement, ...], ...] = field(repr=False)
    zeros: tuple[FieldElement, ...] = field(repr=False)

    @property
    def root(self) -> FieldElement:
        top = self.layers[self.height]
        return top[0] if top else self.zeros[self.height]

    def __len__(self) -> int:
        return len(self.leaves)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _as_field(value: Any) -> FieldElement:
    if isinstance(value, str):
        return FieldElement.from_hex(value)
    return FieldElement.coerce(value)


@lru_cache(maxsize=32)
def zero_hashes(hasher: FieldHasher, zero_value: int, height: int) -> tuple[FieldElement, ...]:
    """Empty-subtree value for each level ``0..height``."""
    zeros = [FieldElement(zero_value)]
    for _ in range(height):
        zeros.append(hasher.hash_pair(zeros[-1], zeros[-1]))
    return tuple(zeros)


def compute_root(leaf: FieldElement, witness: MerkleWitness, hasher: FieldHasher) -> FieldElement:
    """Climb from *leaf* to the root along *witness*."""
    node = leaf
    for sibling, bit in zip(witness.path_elements, witness.path_indices, strict=True):
        if bit:
            node = hasher.hash_pair(sibling, node)
        else:
            node = hasher.hash_pair(node, sibling)
    return node


def _normalize_events(events: Iterable[Any]) -> list[FieldElement]:
    """Sort events by leaf index and check indices are contiguous from 0."""
    by_index: dict[int, FieldElement] = {}
    for event in events:
        if isinstance(event, DepositEvent):
            index, commitment = event.leaf_index, event.commitment
        elif isinstance(event, dict):
            parsed = DepositEvent.from_dict(event)
            index, commitment = parsed.leaf_index, parsed.commitment
        else:
            try:
                index, raw = event
            except (TypeError, ValueError) as e:
                msg = f"Event is not a (leaf_index, commitment) pair: {event!r}"
                raise InconsistentEventLogError(msg) from e
            commitment = _as_field(raw)

        if not isinstance(index, int) or isinstance(index, bool) or index < 0:
            raise InconsistentEventLogError(f"Invalid leaf index {index!r}")

        known = by_index.get(index)
        if known is not None and known != commitment:
            raise InconsistentEventLogError(f"Conflicting commitments for leaf {index}")
        # Identical re-deliveries of the same event are dropped
        by_index[index] = commitment

    ordered = sorted(by_index)
    for expected, index in enumerate(ordered):
        if index != expected:
            raise InconsistentEventLogError(f"Missing leaf index {expected}")
    return [by_index[i] for i in ordered]


# ---------------------------------------------------------------------------
# AnonymitySetView
# ---------------------------------------------------------------------------


class AnonymitySetView:
    """Builds snapshots of the anonymity set and resolves membership witnesses.

    Args:
        height: Tree height; the set holds at most ``2**height`` commitments.
        hasher: Node hash. Must match the one the ledger uses.
        zero_value: Leaf value of unpopulated positions.
    """

    def __init__(
        self,
        height: int = DEFAULT_HEIGHT,
        hasher: FieldHasher | None = None,
        zero_value: int = ZERO_VALUE,
    ) -> None:
        if not 1 <= height <= MAX_HEIGHT:
            raise ValueError(f"Tree height must be in [1, {MAX_HEIGHT}], got {height}")
        self.height = height
        self.hasher = hasher or PedersenHasher()
        self.zero_value = FieldElement(zero_value).value

    @property
    def capacity(self) -> int:
        return 1 << self.height

    def zeros(self) -> tuple[FieldElement, ...]:
        return zero_hashes(self.hasher, self.zero_value, self.height)

    def build(self, events: Iterable[Any]) -> TreeSnapshot:
        """Build a snapshot from deposit events in any order.

        *events* may hold :class:`DepositEvent` objects, event-log dicts or
        ``(leaf_index, commitment)`` pairs.

        Raises:
            InconsistentEventLogError: On gaps or conflicting duplicates.
            TreeFullError: If there are more than ``2**height`` leaves.
        """
        leaves = _normalize_events(events)
        if len(leaves) > self.capacity:
            raise TreeFullError(f"{len(leaves)} leaves exceed capacity {self.capacity}")

        zeros = self.zeros()
        layers = [tuple(leaves)]
        for level in range(self.height):
            current = layers[level]
            parents = []
            for i in range(0, len(current), 2):
                right = current[i + 1] if i + 1 < len(current) else zeros[level]
                parents.append(self.hasher.hash_pair(current[i], right))
            layers.append(tuple(parents))

        snapshot = TreeSnapshot(
            height=self.height,
            leaves=tuple(leaves),
            layers=tuple(layers),
            zeros=zeros,
        )
        logger.debug(
            "Built anonymity-set snapshot: %d leaves, root %s",
            len(leaves),
            snapshot.root.to_hex()[:18],
        )
        return snapshot

    def root(self, snapshot: TreeSnapshot) -> FieldElement:
        return snapshot.root

    def locate(self, snapshot: TreeSnapshot, commitment: FieldElement | int | str) -> int | None:
        """Return the leaf index of *commitment*, or None if it is absent."""
        target = _as_field(commitment)
        try:
            return snapshot.leaves.index(target)
        except ValueError:
            return None

    def path(self, snapshot: TreeSnapshot, leaf_index: int) -> MerkleWitness:
        """Membership witness for the leaf at *leaf_index*.

        Raises:
            IndexOutOfRangeError: If the leaf is not populated in *snapshot*.
        """
        if not 0 <= leaf_index < len(snapshot):
            raise IndexOutOfRangeError(
                f"Leaf index {leaf_index} outside populated range [0, {len(snapshot)})"
            )

        elements = []
        indices = []
        index = leaf_index
        for level in range(snapshot.height):
            layer = snapshot.layers[level]
            sibling = index ^ 1
            elements.append(layer[sibling] if sibling < len(layer) else snapshot.zeros[level])
            indices.append(index & 1)
            index >>= 1

        return MerkleWitness(
            root=snapshot.root,
            path_elements=tuple(elements),
            path_indices=tuple(indices),
            leaf_index=leaf_index,
        )
