"""Commitment and nullifier-hash derivation.

A deposit is fully determined by two secret scalars. The commitment hides
both and is published at deposit time; the nullifier hash depends on the
nullifier alone and is published at withdrawal time to mark the note spent.

Byte layouts (fixed; any deviation breaks withdrawal):
- ``preimage = nullifier_le31 || secret_le31`` (62 bytes)
- ``commitment = H(preimage)``
- ``nullifier_hash = H(nullifier_le31)``
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field

from shieldpool.crypto.field import (
    PREIMAGE_WIDTH,
    SECRET_WIDTH,
    FieldElement,
    SecretScalar,
)
from shieldpool.crypto.pedersen import FieldHasher, PedersenHasher
from shieldpool.errors import InvalidDomainError, MalformedNoteError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Deposit:
    """Secret material of a note together with its public hashes.

    Attributes:
        nullifier: Secret scalar whose hash is revealed on withdrawal.
        secret: Secret scalar known only to the note holder.
        preimage: ``nullifier_le31 || secret_le31``.
        commitment: Hash of the preimage, published on deposit.
        nullifier_hash: Hash of the nullifier, published on withdrawal.
    """

    nullifier: SecretScalar = field(repr=False)
    secret: SecretScalar = field(repr=False)
    preimage: bytes = field(repr=False)
    commitment: FieldElement
    nullifier_hash: FieldElement


def _as_secret(value: int | SecretScalar, name: str) -> SecretScalar:
    if isinstance(value, SecretScalar):
        return value
    try:
        return SecretScalar(value)
    except InvalidDomainError as e:
        raise InvalidDomainError(f"{name}: {e}") from e


class CommitmentScheme:
    """Derives commitments and nullifier hashes from secret scalars."""

    def __init__(self, hasher: FieldHasher | None = None) -> None:
        self.hasher = hasher or PedersenHasher()

    def derive(self, nullifier: int | SecretScalar, secret: int | SecretScalar) -> Deposit:
        """Derive the deposit for (*nullifier*, *secret*).

        Both values must be non-negative and fit 31 bytes little-endian.
        The result is deterministic, which lets a withdrawal re-derive the
        commitment from a parsed note without any network access.

        Raises:
            InvalidDomainError: If either value is out of range.
        """
        nullifier = _as_secret(nullifier, "nullifier")
        secret = _as_secret(secret, "secret")

        nullifier_bytes = nullifier.to_bytes_le(SECRET_WIDTH)
        preimage = nullifier_bytes + secret.to_bytes_le(SECRET_WIDTH)

        commitment = self.hasher.hash(preimage)
        nullifier_hash = self.hasher.hash(nullifier_bytes)

        logger.debug("Derived commitment %s", commitment.to_hex()[:18])
        return Deposit(
            nullifier=nullifier,
            secret=secret,
            preimage=preimage,
            commitment=commitment,
            nullifier_hash=nullifier_hash,
        )

    def from_preimage(self, preimage: bytes) -> Deposit:
        """Split a 62-byte preimage into nullifier and secret and derive.

        Raises:
            MalformedNoteError: If *preimage* is not exactly 62 bytes.
        """
        if len(preimage) != PREIMAGE_WIDTH:
            msg = f"Preimage must be {PREIMAGE_WIDTH} bytes, got {len(preimage)}"
            raise MalformedNoteError(msg)
        nullifier = SecretScalar.from_bytes_le(preimage[:SECRET_WIDTH])
        secret = SecretScalar.from_bytes_le(preimage[SECRET_WIDTH:])
        return self.derive(nullifier, secret)

    def generate(self, rng: Callable[[int], bytes] = secrets.token_bytes) -> Deposit:
        """Create a deposit from freshly sampled 31-byte nullifier and secret.

        Args:
            rng: Byte source, called as ``rng(31)``. Defaults to the OS CSPRNG.
        """
        nullifier = SecretScalar.from_bytes_le(rng(SECRET_WIDTH))
        secret = SecretScalar.from_bytes_le(rng(SECRET_WIDTH))
        return self.derive(nullifier, secret)
