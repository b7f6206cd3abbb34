"""Note token encoding and parsing.

A note token is the bearer credential handed to the depositor:

    <prefix>-<asset>-<denomination>-<networkId>-0x<124 hex chars>

``prefix`` and ``asset`` are word characters (``[A-Za-z0-9_]``),
``denomination`` is a decimal amount, ``networkId`` is an unsigned integer,
and the hex segment is the 62-byte preimage (31-byte little-endian
nullifier followed by 31-byte little-endian secret).

Parsing is an explicit scanner over the token: every character is checked
against the grammar of the segment it belongs to and every failure names the
offending segment. A malformed token never yields a partial note.

Example:
    >>> from shieldpool.note.codec import NoteCodec
    >>>
    >>> codec = NoteCodec(prefix="shieldpool")
    >>> token = codec.encode("eth", "0.1", 1, bytes(62))
    >>> codec.parse(token).denomination
    '0.1'
"""

import string
from dataclasses import dataclass, field
from enum import IntEnum

from shieldpool.crypto.field import PREIMAGE_WIDTH, SECRET_WIDTH, SecretScalar
from shieldpool.errors import MalformedNoteError
from shieldpool.note.commitment import CommitmentScheme, Deposit

DEFAULT_PREFIX = "shieldpool"

_WORD_CHARS = frozenset(string.ascii_letters + string.digits + "_")
_DIGITS = frozenset(string.digits)
_HEX_CHARS = frozenset(string.hexdigits)
_HEX_LENGTH = 2 * PREIMAGE_WIDTH
# A network id is a uint256; its decimal form has at most 78 digits
_MAX_NETWORK_ID_DIGITS = 78


class Segment(IntEnum):
    """Token segments in the order they appear."""

    PREFIX = 0
    ASSET = 1
    DENOMINATION = 2
    NETWORK_ID = 3
    PREIMAGE = 4

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", " ")


@dataclass(frozen=True)
class Note:
    """Parsed contents of a note token."""

    prefix: str
    asset: str
    denomination: str
    network_id: int
    preimage: bytes = field(repr=False)

    @property
    def nullifier(self) -> SecretScalar:
        return SecretScalar.from_bytes_le(self.preimage[:SECRET_WIDTH])

    @property
    def secret(self) -> SecretScalar:
        return SecretScalar.from_bytes_le(self.preimage[SECRET_WIDTH:])

    def deposit(self, scheme: CommitmentScheme | None = None) -> Deposit:
        """Re-derive commitment and nullifier hash from the preimage."""
        scheme = scheme or CommitmentScheme()
        return scheme.from_preimage(self.preimage)


def _check_word(text: str, segment: Segment) -> None:
    if not text:
        raise MalformedNoteError(f"Empty {segment.label} segment")
    for pos, ch in enumerate(text):
        if ch not in _WORD_CHARS:
            raise MalformedNoteError(f"Invalid character {ch!r} at {pos} in {segment.label}")


def _check_denomination(text: str) -> None:
    """Digits, optionally followed by one '.' and at least one digit."""
    if not text:
        raise MalformedNoteError("Empty denomination segment")
    seen_dot = False
    digits_since_dot = 0
    for pos, ch in enumerate(text):
        if ch in _DIGITS:
            digits_since_dot += 1
        elif ch == "." and not seen_dot and pos > 0:
            seen_dot = True
            digits_since_dot = 0
        else:
            raise MalformedNoteError(f"Invalid character {ch!r} at {pos} in denomination")
    if seen_dot and digits_since_dot == 0:
        raise MalformedNoteError("Denomination ends with '.'")


def _check_network_id(text: str) -> int:
    if not text:
        raise MalformedNoteError("Empty network id segment")
    if len(text) > _MAX_NETWORK_ID_DIGITS:
        msg = f"Network id has more than {_MAX_NETWORK_ID_DIGITS} digits"
        raise MalformedNoteError(msg)
    for pos, ch in enumerate(text):
        if ch not in _DIGITS:
            raise MalformedNoteError(f"Invalid character {ch!r} at {pos} in network id")
    network_id = int(text)
    if network_id.bit_length() > 256:
        raise MalformedNoteError("Network id does not fit 256 bits")
    return network_id


def _decode_preimage(text: str) -> bytes:
    if not text.startswith("0x"):
        raise MalformedNoteError("Preimage segment must start with '0x'")
    digits = text[2:]
    if len(digits) != _HEX_LENGTH:
        msg = f"Preimage must be {_HEX_LENGTH} hex chars, got {len(digits)}"
        raise MalformedNoteError(msg)
    for pos, ch in enumerate(digits):
        if ch not in _HEX_CHARS:
            raise MalformedNoteError(f"Invalid hex character {ch!r} at {pos} in preimage")
    return bytes.fromhex(digits)


class NoteCodec:
    """Encodes and parses note tokens for one protocol prefix."""

    def __init__(self, prefix: str = DEFAULT_PREFIX) -> None:
        _check_word(prefix, Segment.PREFIX)
        self.prefix = prefix

    def encode(self, asset: str, denomination: str, network_id: int, preimage: bytes) -> str:
        """Build a note token. The hex segment is always lowercase.

        Raises:
            MalformedNoteError: If any part would not parse back.
        """
        _check_word(asset, Segment.ASSET)
        _check_denomination(denomination)
        if isinstance(network_id, bool) or not isinstance(network_id, int) or network_id < 0:
            raise MalformedNoteError(f"Network id must be a non-negative int, got {network_id!r}")
        if network_id.bit_length() > 256:
            raise MalformedNoteError("Network id does not fit 256 bits")
        if len(preimage) != PREIMAGE_WIDTH:
            msg = f"Preimage must be {PREIMAGE_WIDTH} bytes, got {len(preimage)}"
            raise MalformedNoteError(msg)

        return f"{self.prefix}-{asset}-{denomination}-{network_id}-0x{preimage.hex()}"

    def encode_deposit(self, asset: str, denomination: str, network_id: int, deposit: Deposit) -> str:
        return self.encode(asset, denomination, network_id, deposit.preimage)

    def parse(self, token: str) -> Note:
        """Parse a note token.

        Surrounding whitespace is ignored; everything else must match the
        grammar exactly, including this codec's prefix.

        Raises:
            MalformedNoteError: On any deviation from the grammar.
        """
        if not isinstance(token, str):
            raise MalformedNoteError(f"Note must be a string, got {type(token).__name__}")

        parts: list[str] = []
        start = 0
        text = token.strip()
        for pos, ch in enumerate(text):
            if ch != "-":
                continue
            if len(parts) == Segment.PREIMAGE:
                raise MalformedNoteError("Unexpected '-' in preimage segment")
            parts.append(text[start:pos])
            start = pos + 1
        parts.append(text[start:])

        if len(parts) != len(Segment):
            raise MalformedNoteError(
                f"Expected {len(Segment)} '-'-separated segments, got {len(parts)}"
            )

        prefix, asset, denomination, network, hex_part = parts
        _check_word(prefix, Segment.PREFIX)
        if prefix != self.prefix:
            raise MalformedNoteError(f"Unknown note prefix {prefix!r}, expected {self.prefix!r}")
        _check_word(asset, Segment.ASSET)
        _check_denomination(denomination)
        network_id = _check_network_id(network)
        preimage = _decode_preimage(hex_part)

        return Note(
            prefix=prefix,
            asset=asset,
            denomination=denomination,
            network_id=network_id,
            preimage=preimage,
        )
