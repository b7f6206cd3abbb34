"""Assembly of withdrawal proof inputs and ledger call arguments.

Purely structural: no hashing happens here. The builder takes a deposit, its
membership witness and the public withdrawal parameters, and lays them out
in the exact order and widths the proving system and the ledger expect.

Widths:
- ``root``, ``nullifier_hash``, ``fee``, ``refund``: 32-byte big-endian hex
- ``recipient``, ``relayer``: 20-byte big-endian hex

Private inputs stay in-process: they are handed to the prover and nowhere
else. Their ``repr`` is redacted so they cannot leak through logging.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from shieldpool.crypto.field import (
    FieldElement,
    SecretScalar,
    encode_address,
)
from shieldpool.errors import InvalidDomainError
from shieldpool.note.commitment import Deposit
from shieldpool.tree.merkle import MerkleWitness

logger = logging.getLogger(__name__)

_WORD_HEX = r"^0x[0-9a-f]{64}$"
_ADDRESS_HEX = r"^0x[0-9a-f]{40}$"

# Parameter order of the ledger's withdraw entry point (after the proof)
LEDGER_ARG_ORDER = ("root", "nullifier_hash", "recipient", "relayer", "fee", "refund")


class PublicInputs(BaseModel):
    """Public inputs of the withdrawal circuit in ledger encoding."""

    model_config = ConfigDict(frozen=True)

    root: str = Field(pattern=_WORD_HEX, description="Anonymity-set root")
    nullifier_hash: str = Field(pattern=_WORD_HEX, description="Hash of the note nullifier")
    recipient: str = Field(pattern=_ADDRESS_HEX, description="Address receiving the funds")
    relayer: str = Field(pattern=_ADDRESS_HEX, description="Address submitting the transaction")
    fee: str = Field(pattern=_WORD_HEX, description="Fee paid to the relayer")
    refund: str = Field(pattern=_WORD_HEX, description="Value forwarded to the recipient")


@dataclass(frozen=True)
class PrivateInputs:
    """Witness-only inputs of the withdrawal circuit."""

    nullifier: SecretScalar = field(repr=False)
    secret: SecretScalar = field(repr=False)
    path_elements: tuple[FieldElement, ...] = field(repr=False)
    path_indices: tuple[int, ...] = field(repr=False)


@dataclass(frozen=True)
class ProofInputs:
    public: PublicInputs
    private: PrivateInputs = field(repr=False)


def _field_word(value: int, name: str) -> str:
    try:
        return FieldElement(value).to_hex()
    except InvalidDomainError as e:
        raise InvalidDomainError(f"{name}: {e}") from e


class WithdrawalRequestBuilder:
    """Lays out proof inputs and ledger arguments for a withdrawal."""

    @staticmethod
    def build_proof_inputs(
        deposit: Deposit,
        witness: MerkleWitness,
        recipient: int | str,
        relayer: int | str = 0,
        fee: int = 0,
        refund: int = 0,
    ) -> ProofInputs:
        """Combine a deposit, its witness and the public parameters.

        Raises:
            InvalidDomainError: If an address or value does not fit its width,
                or the witness is malformed.
        """
        if len(witness.path_elements) != len(witness.path_indices):
            msg = (
                f"Witness has {len(witness.path_elements)} path elements "
                f"but {len(witness.path_indices)} path indices"
            )
            raise InvalidDomainError(msg)
        if any(bit not in (0, 1) for bit in witness.path_indices):
            raise InvalidDomainError("Path indices must be 0 or 1")

        public = PublicInputs(
            root=witness.root.to_hex(),
            nullifier_hash=deposit.nullifier_hash.to_hex(),
            recipient=encode_address(recipient),
            relayer=encode_address(relayer),
            fee=_field_word(fee, "fee"),
            refund=_field_word(refund, "refund"),
        )
        private = PrivateInputs(
            nullifier=deposit.nullifier,
            secret=deposit.secret,
            path_elements=tuple(witness.path_elements),
            path_indices=tuple(witness.path_indices),
        )

        logger.debug(
            "Built proof inputs for nullifier hash %s against root %s",
            public.nullifier_hash[:18],
            public.root[:18],
        )
        return ProofInputs(public=public, private=private)

    @staticmethod
    def build_ledger_args(public: PublicInputs) -> list[str]:
        """Ordered arguments: root, nullifierHash, recipient, relayer, fee, refund."""
        return [getattr(public, name) for name in LEDGER_ARG_ORDER]

    @staticmethod
    def circuit_input(inputs: ProofInputs) -> dict[str, Any]:
        """Prover input document; field values as decimal strings."""
        public = inputs.public
        private = inputs.private
        return {
            "root": str(int(public.root, 16)),
            "nullifierHash": str(int(public.nullifier_hash, 16)),
            "recipient": str(int(public.recipient, 16)),
            "relayer": str(int(public.relayer, 16)),
            "fee": str(int(public.fee, 16)),
            "refund": str(int(public.refund, 16)),
            "nullifier": str(private.nullifier.value),
            "secret": str(private.secret.value),
            "pathElements": [str(e.value) for e in private.path_elements],
            "pathIndices": list(private.path_indices),
        }
