"""Cryptographic primitives for shieldpool.

Provides:
- Fixed-width scalar-field elements with constructor-time domain checks
- A windowed Pedersen hash used for commitments, nullifier hashes and Merkle nodes
"""

from .field import (
    ADDRESS_WIDTH,
    FIELD_SIZE,
    PREIMAGE_WIDTH,
    SECRET_WIDTH,
    WORD_WIDTH,
    FieldElement,
    SecretScalar,
    encode_address,
    encode_word,
)
from .pedersen import FieldHasher, PedersenHasher

__all__ = [
    "ADDRESS_WIDTH",
    "FIELD_SIZE",
    "PREIMAGE_WIDTH",
    "SECRET_WIDTH",
    "WORD_WIDTH",
    "FieldElement",
    "FieldHasher",
    "PedersenHasher",
    "SecretScalar",
    "encode_address",
    "encode_word",
]
