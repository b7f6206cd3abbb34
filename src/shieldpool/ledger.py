"""Ledger collaborator interface and an in-process reference ledger.

The ledger owns the anonymity set and the spent-nullifier set. shieldpool
only reads its event log and queries it before proving; the ledger itself
validates the proof, flips the spent flag and releases funds.

:class:`InMemoryLedger` mirrors an on-chain pool contract (incremental Merkle
tree with a bounded root history) and is used by the tests and the CLI.
"""

import logging
import re
from collections.abc import Callable
from typing import Protocol

from shieldpool.crypto.field import FieldElement, encode_word
from shieldpool.crypto.pedersen import FieldHasher, PedersenHasher
from shieldpool.errors import (
    AlreadySpentError,
    DenominationMismatchError,
    InvalidProofError,
    ShieldPoolError,
    StaleRootError,
    TreeFullError,
)
from shieldpool.tree.merkle import DEFAULT_HEIGHT, ZERO_VALUE, DepositEvent, zero_hashes

logger = logging.getLogger(__name__)

# Groth16 proof in ledger layout: eight 32-byte words
_PROOF_RE = re.compile(r"^0x[0-9a-fA-F]{512}$")

ProofVerifier = Callable[[str, list[str]], bool]


class Ledger(Protocol):
    """Protocol for ledger implementations."""

    async def get_deposit_events(self) -> list[DepositEvent]:
        """Return every published commitment with its leaf index."""
        ...

    async def is_known_root(self, root: FieldElement) -> bool:
        """Whether *root* is among the roots the ledger currently accepts."""
        ...

    async def is_spent(self, nullifier_hash: FieldElement) -> bool:
        """Whether *nullifier_hash* has already been used for a withdrawal."""
        ...

    async def deposit(self, commitment: FieldElement, value: int) -> str:
        """Publish *commitment*, locking *value*. Returns a transaction id."""
        ...

    async def withdraw(self, proof: str, args: list[str]) -> str:
        """Verify and execute a withdrawal.

        Args:
            proof: Serialized proof.
            args: ``[root, nullifierHash, recipient, relayer, fee, refund]``.

        Returns:
            Transaction id.
        """
        ...


class InMemoryLedger:
    """Single-process pool ledger.

    Args:
        denomination: Value every deposit must lock, in base units.
        height: Merkle tree height.
        root_history_size: How many recent roots stay valid.
        hasher: Node hash, shared with the client's tree view.
        zero_value: Leaf value of empty positions.
        verifier: Optional proof check ``verifier(proof, args) -> bool``.
            Without one, any well-formed proof is accepted.
    """

    def __init__(
        self,
        denomination: int,
        height: int = DEFAULT_HEIGHT,
        root_history_size: int = 30,
        hasher: FieldHasher | None = None,
        zero_value: int = ZERO_VALUE,
        verifier: ProofVerifier | None = None,
    ) -> None:
        if root_history_size < 1:
            raise ValueError("root_history_size must be at least 1")
        self.denomination = denomination
        self.height = height
        self.hasher = hasher or PedersenHasher()
        self.verifier = verifier

        self._zeros = zero_hashes(self.hasher, zero_value, height)
        self._filled_subtrees = list(self._zeros[:height])
        self._roots: list[FieldElement | None] = [None] * root_history_size
        self._roots[0] = self._zeros[height]
        self._current_root_index = 0

        self._events: list[DepositEvent] = []
        self._commitments: set[FieldElement] = set()
        self._nullifier_hashes: set[FieldElement] = set()
        self._tx_counter = 0
        self.balances: dict[str, int] = {}
        self.pool_balance = 0

    # -- helpers -----------------------------------------------------------

    def _next_tx_id(self) -> str:
        self._tx_counter += 1
        return encode_word(self._tx_counter)

    def _insert(self, leaf: FieldElement) -> int:
        """Append *leaf* and push the new root into the history ring."""
        index = len(self._events)
        if index >= 1 << self.height:
            raise TreeFullError("Merkle tree is full")

        current_index = index
        node = leaf
        for level in range(self.height):
            if current_index % 2 == 0:
                self._filled_subtrees[level] = node
                node = self.hasher.hash_pair(node, self._zeros[level])
            else:
                node = self.hasher.hash_pair(self._filled_subtrees[level], node)
            current_index //= 2

        self._current_root_index = (self._current_root_index + 1) % len(self._roots)
        self._roots[self._current_root_index] = node
        return index

    @property
    def last_root(self) -> FieldElement:
        return self._roots[self._current_root_index]

    # -- Ledger protocol ---------------------------------------------------

    async def get_deposit_events(self) -> list[DepositEvent]:
        return list(self._events)

    async def is_known_root(self, root: FieldElement) -> bool:
        if root.value == 0:
            return False
        return root in self._roots

    async def is_spent(self, nullifier_hash: FieldElement) -> bool:
        return nullifier_hash in self._nullifier_hashes

    async def deposit(self, commitment: FieldElement, value: int) -> str:
        if value != self.denomination:
            raise DenominationMismatchError(
                f"Deposit must lock exactly {self.denomination}, got {value}"
            )
        if commitment in self._commitments:
            raise ShieldPoolError("The commitment has been submitted")

        index = self._insert(commitment)
        self._commitments.add(commitment)
        self._events.append(DepositEvent(leaf_index=index, commitment=commitment))
        self.pool_balance += value

        logger.info("Deposit of %s at leaf %d", commitment.to_hex()[:18], index)
        return self._next_tx_id()

    async def withdraw(self, proof: str, args: list[str]) -> str:
        if len(args) != 6:
            raise ShieldPoolError(f"Expected 6 withdrawal arguments, got {len(args)}")
        if not _PROOF_RE.match(proof):
            raise InvalidProofError("Proof is not 8 32-byte words")

        root_hex, nullifier_hex, recipient, relayer, fee_hex, refund_hex = args
        root = FieldElement.from_hex(root_hex)
        nullifier_hash = FieldElement.from_hex(nullifier_hex)
        fee = int(fee_hex, 16)
        refund = int(refund_hex, 16)

        if fee > self.denomination:
            raise ShieldPoolError("Fee exceeds transfer value")
        if refund != 0:
            raise ShieldPoolError("Refund value must be zero for a native-asset pool")
        if nullifier_hash in self._nullifier_hashes:
            raise AlreadySpentError("The note has been already spent")
        if not await self.is_known_root(root):
            raise StaleRootError("Cannot find your merkle root")
        if self.verifier is not None and not self.verifier(proof, list(args)):
            raise InvalidProofError("Invalid withdraw proof")

        self._nullifier_hashes.add(nullifier_hash)
        self.pool_balance -= self.denomination
        self.balances[recipient] = self.balances.get(recipient, 0) + self.denomination - fee
        if fee > 0:
            self.balances[relayer] = self.balances.get(relayer, 0) + fee

        logger.info("Withdrawal to %s, nullifier hash %s", recipient, nullifier_hex[:18])
        return self._next_tx_id()
