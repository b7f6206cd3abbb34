"""Fixed-width field elements for the proving system's scalar field.

Every value that crosses into the proving system or onto the ledger is a
:class:`FieldElement`. Domain checks happen once, in the constructor, so code
downstream never handles raw integers of unknown width.

Example:
    >>> from shieldpool.crypto.field import FieldElement, SecretScalar
    >>>
    >>> fe = FieldElement(255)
    >>> fe.to_hex(4)
    '0x000000ff'
    >>> SecretScalar(7).to_bytes_le(31)[:2]
    b'\\x07\\x00'
"""

import string
from dataclasses import dataclass
from typing import Any

from shieldpool.errors import InvalidDomainError

# BN254 scalar field modulus used by the withdrawal circuit
FIELD_SIZE = 21888242871839275222246405745257275088548364400416034343698204186575808495617

SECRET_WIDTH = 31
PREIMAGE_WIDTH = 2 * SECRET_WIDTH
ADDRESS_WIDTH = 20
WORD_WIDTH = 32


@dataclass(frozen=True)
class FieldElement:
    """An element of the scalar field, ``0 <= value < FIELD_SIZE``."""

    value: int

    def __post_init__(self) -> None:
        # bool is an int subclass; True/False are never valid field elements
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            msg = f"Field element must be an int, got {type(self.value).__name__}"
            raise InvalidDomainError(msg)
        if not 0 <= self.value < FIELD_SIZE:
            raise InvalidDomainError("Field element outside [0, FIELD_SIZE)")

    @classmethod
    def coerce(cls, value: Any) -> "FieldElement":
        """Return *value* as a FieldElement, accepting ints and instances."""
        if isinstance(value, FieldElement):
            return value
        return cls(value)

    @classmethod
    def from_bytes_le(cls, data: bytes) -> "FieldElement":
        return cls(int.from_bytes(data, "little"))

    @classmethod
    def from_hex(cls, text: str) -> "FieldElement":
        """Parse a big-endian hex string, with or without ``0x``."""
        digits = text[2:] if text[:2] in ("0x", "0X") else text
        if not digits:
            raise InvalidDomainError("Empty hex string")
        if not _is_hex(digits):
            raise InvalidDomainError(f"Invalid hex string: {text!r}")
        return cls(int(digits, 16))

    def to_bytes_le(self, width: int) -> bytes:
        """Encode as exactly *width* little-endian bytes."""
        return _to_bytes(self.value, width, "little")

    def to_bytes_be(self, width: int = WORD_WIDTH) -> bytes:
        return _to_bytes(self.value, width, "big")

    def to_hex(self, width: int = WORD_WIDTH) -> str:
        """Encode as ``0x`` + big-endian hex zero-padded to *width* bytes."""
        return "0x" + self.to_bytes_be(width).hex()

    def __int__(self) -> int:
        return self.value


class SecretScalar(FieldElement):
    """Secret note material: a field element that fits 31 bytes.

    The value is hidden from ``repr`` so secrets never leak into logs or
    tracebacks.
    """

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.value >= 1 << (8 * SECRET_WIDTH):
            raise InvalidDomainError(f"Secret scalar does not fit {SECRET_WIDTH} bytes")

    def __repr__(self) -> str:
        return "SecretScalar(<redacted>)"


_HEX_CHARS = frozenset(string.hexdigits)


def _is_hex(text: str) -> bool:
    # int(x, 16) would also take signs, whitespace and underscores
    return all(ch in _HEX_CHARS for ch in text)


def _to_bytes(value: int, width: int, byteorder: str) -> bytes:
    try:
        return value.to_bytes(width, byteorder)
    except OverflowError as e:
        raise InvalidDomainError(f"Value does not fit {width} bytes") from e


def encode_address(value: int | str) -> str:
    """Encode an address-like value as 20-byte big-endian hex.

    Accepts an int or a ``0x``-prefixed 40-character hex string.

    Raises:
        InvalidDomainError: If *value* is not a valid 20-byte address.
    """
    if isinstance(value, str):
        if value[:2] not in ("0x", "0X") or len(value) != 2 + 2 * ADDRESS_WIDTH:
            raise InvalidDomainError(f"Address must be 0x + 40 hex chars, got {value!r}")
        if not _is_hex(value[2:]):
            raise InvalidDomainError(f"Address is not hex: {value!r}")
        number = int(value[2:], 16)
    elif isinstance(value, int) and not isinstance(value, bool):
        if value < 0:
            raise InvalidDomainError("Address must be non-negative")
        number = value
    else:
        raise InvalidDomainError(f"Unsupported address type {type(value).__name__}")

    return "0x" + _to_bytes(number, ADDRESS_WIDTH, "big").hex()


def encode_word(value: int) -> str:
    """Encode a non-negative integer as 32-byte big-endian hex."""
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise InvalidDomainError(f"Word must be a non-negative int, got {value!r}")
    return "0x" + _to_bytes(value, WORD_WIDTH, "big").hex()
