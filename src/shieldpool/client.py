"""Deposit and withdrawal orchestration.

:class:`PoolClient` wires the pure protocol pieces (commitment scheme, note
codec, anonymity-set view, request builder) to a ledger and a prover passed
in through an explicit :class:`PoolContext`. The client keeps no state
between calls: every withdrawal parses the note again and builds a fresh
snapshot of the anonymity set.

Example:
    >>> import asyncio
    >>> from shieldpool.client import PoolClient, PoolContext
    >>> from shieldpool.config.schema import ShieldPoolConfig
    >>> from shieldpool.ledger import InMemoryLedger
    >>>
    >>> config = ShieldPoolConfig()
    >>> config.tree.height = 4
    >>> ledger = InMemoryLedger(denomination=10**18, height=4)
    >>> client = PoolClient(PoolContext(config=config, ledger=ledger, prover=my_prover))
    >>> note = asyncio.run(client.deposit())
    >>> tx = asyncio.run(client.withdraw(note, recipient="0x" + "11" * 20))
"""

import logging
import secrets
import string
from collections.abc import Callable
from dataclasses import dataclass

from shieldpool.config.schema import ShieldPoolConfig
from shieldpool.crypto.pedersen import FieldHasher, PedersenHasher
from shieldpool.errors import (
    AlreadySpentError,
    CommitmentNotFoundError,
    DenominationMismatchError,
    ProofGenerationFailure,
    StaleRootError,
)
from shieldpool.ledger import Ledger
from shieldpool.note.codec import Note, NoteCodec
from shieldpool.note.commitment import CommitmentScheme, Deposit
from shieldpool.prover import Prover
from shieldpool.tree.merkle import AnonymitySetView, MerkleWitness
from shieldpool.withdraw.builder import PublicInputs, WithdrawalRequestBuilder

logger = logging.getLogger(__name__)


def _is_digits(text: str) -> bool:
    return all(ch in string.digits for ch in text)


def parse_amount(denomination: str, decimals: int = 18) -> int:
    """Convert a decimal amount such as ``"0.1"`` to integer base units.

    Raises:
        DenominationMismatchError: If the amount has more fractional digits
            than *decimals* or is not a plain decimal.
    """
    whole, _, frac = denomination.partition(".")
    if not whole or not _is_digits(whole) or (frac and not _is_digits(frac)):
        raise DenominationMismatchError(f"Invalid amount {denomination!r}")
    if len(frac) > decimals:
        raise DenominationMismatchError(
            f"Amount {denomination!r} has more than {decimals} decimal places"
        )
    try:
        return int(whole) * 10**decimals + int(frac.ljust(decimals, "0") or "0")
    except ValueError as e:
        raise DenominationMismatchError(f"Amount {denomination!r} is too large") from e


@dataclass
class PoolContext:
    """Collaborators and parameters for one pool."""

    config: ShieldPoolConfig
    ledger: Ledger
    prover: Prover
    hasher: FieldHasher | None = None


@dataclass
class WithdrawalRequest:
    """A proven withdrawal, ready to submit."""

    proof: str
    args: list[str]
    public: PublicInputs


class PoolClient:
    """Deposits into and withdraws from one fixed-denomination pool."""

    def __init__(self, context: PoolContext) -> None:
        self.context = context
        config = context.config

        self.hasher = context.hasher or PedersenHasher()
        self.scheme = CommitmentScheme(self.hasher)
        self.codec = NoteCodec(prefix=config.note.prefix)
        self.view = AnonymitySetView(
            height=config.tree.height,
            hasher=self.hasher,
            zero_value=config.tree.zero_value,
        )

    @property
    def denomination_units(self) -> int:
        note = self.context.config.note
        return parse_amount(note.denomination, note.decimals)

    # -- deposit -----------------------------------------------------------

    async def deposit(self, rng: Callable[[int], bytes] = secrets.token_bytes) -> str:
        """Lock one denomination in the pool and return the note token.

        The token is the only way to withdraw: whoever holds it owns the
        deposit.
        """
        note_config = self.context.config.note
        deposit = self.scheme.generate(rng)

        logger.info("Sending deposit transaction...")
        tx_id = await self.context.ledger.deposit(deposit.commitment, self.denomination_units)
        logger.info("Deposit transaction %s", tx_id)

        return self.codec.encode(
            note_config.asset,
            note_config.denomination,
            note_config.network_id,
            deposit.preimage,
        )

    # -- withdraw ----------------------------------------------------------

    def _check_note(self, note: Note) -> None:
        """Reject notes that belong to a different pool."""
        expected = self.context.config.note
        if note.asset != expected.asset or note.network_id != expected.network_id:
            raise DenominationMismatchError(
                f"Note is for {note.asset} on network {note.network_id}, pool is "
                f"{expected.asset} on network {expected.network_id}"
            )
        if parse_amount(note.denomination, expected.decimals) != self.denomination_units:
            raise DenominationMismatchError(
                f"Note denomination {note.denomination} does not match pool "
                f"denomination {expected.denomination}"
            )

    async def fetch_witness(self, deposit: Deposit) -> MerkleWitness:
        """Resolve the membership witness of *deposit* against a fresh snapshot.

        Checks, in order, that the ledger recognizes the computed root, that
        the nullifier hash is unspent and that the commitment is in the set.

        Raises:
            StaleRootError: The ledger does not know the computed root.
            AlreadySpentError: The note was already withdrawn.
            CommitmentNotFoundError: The deposit is not indexed (yet).
        """
        ledger = self.context.ledger

        logger.info("Getting pool state...")
        events = await ledger.get_deposit_events()
        snapshot = self.view.build(events)

        if not await ledger.is_known_root(snapshot.root):
            raise StaleRootError("Merkle tree is corrupted")
        if await ledger.is_spent(deposit.nullifier_hash):
            raise AlreadySpentError("The note is already spent")

        leaf_index = self.view.locate(snapshot, deposit.commitment)
        if leaf_index is None:
            raise CommitmentNotFoundError("The deposit is not found in the tree")

        logger.debug("Deposit found at leaf %d of %d", leaf_index, len(snapshot))
        return self.view.path(snapshot, leaf_index)

    async def prepare_withdrawal(
        self,
        token: str,
        recipient: int | str,
        relayer: int | str = 0,
        fee: int = 0,
        refund: int = 0,
    ) -> WithdrawalRequest:
        """Parse *token*, resolve its witness and generate the proof.

        Every check that can fail cheaply runs before the prover is invoked.

        Raises:
            MalformedNoteError: The token is not a valid note.
            DenominationMismatchError: The note or fee does not fit this pool.
            StaleRootError, AlreadySpentError, CommitmentNotFoundError:
                See :meth:`fetch_witness`.
            ProofGenerationFailure: The prover failed.
        """
        note = self.codec.parse(token)
        self._check_note(note)
        if fee > self.denomination_units:
            raise DenominationMismatchError("Fee exceeds transfer value")

        deposit = note.deposit(self.scheme)
        witness = await self.fetch_witness(deposit)

        inputs = WithdrawalRequestBuilder.build_proof_inputs(
            deposit,
            witness,
            recipient=recipient,
            relayer=relayer,
            fee=fee,
            refund=refund,
        )

        logger.info("Generating SNARK proof...")
        try:
            proof = await self.context.prover.prove(inputs)
        except ProofGenerationFailure:
            raise
        except Exception as e:
            raise ProofGenerationFailure(f"Prover error: {e}") from e

        return WithdrawalRequest(
            proof=proof,
            args=WithdrawalRequestBuilder.build_ledger_args(inputs.public),
            public=inputs.public,
        )

    async def withdraw(
        self,
        token: str,
        recipient: int | str,
        relayer: int | str = 0,
        fee: int = 0,
        refund: int = 0,
    ) -> str:
        """Withdraw the note's deposit to *recipient*. Returns the transaction id."""
        request = await self.prepare_withdrawal(token, recipient, relayer, fee, refund)

        logger.info("Sending withdrawal transaction...")
        tx_id = await self.context.ledger.withdraw(request.proof, request.args)
        logger.info("Withdrawal transaction %s", tx_id)
        return tx_id
