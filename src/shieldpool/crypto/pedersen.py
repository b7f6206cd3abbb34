"""Windowed Pedersen hash over the NIST P-256 curve.

The hash maps a byte string to a :class:`FieldElement` and is the single
one-way function behind note commitments, nullifier hashes and Merkle nodes.

Construction:
1. Read the input as a little-endian integer and split it into 4-bit windows,
   least significant first.
2. Group the windows into segments of 50; segment *s* uses its own generator
   ``G_s`` obtained by hash-to-curve (SHA-256 try-and-increment), so nobody
   knows discrete-log relations between generators.
3. Window ``w_j`` contributes ``(w_j + 1) * 32**j`` to the segment scalar
   ``k_s``; the ``+1`` keeps zero windows significant, so inputs of different
   lengths never collide trivially.
4. The digest is the affine x-coordinate of ``sum(k_s * G_s)`` reduced modulo
   the scalar field.

Generators are validated with the ``cryptography`` library before use.

Example:
    >>> from shieldpool.crypto.pedersen import PedersenHasher
    >>>
    >>> hasher = PedersenHasher()
    >>> digest = hasher.hash(b"\\x07" + bytes(30))
    >>> assert digest == hasher.hash(b"\\x07" + bytes(30))
"""

import hashlib
import logging
from functools import lru_cache
from typing import Protocol

from cryptography.hazmat.primitives.asymmetric import ec

from shieldpool.crypto.field import FIELD_SIZE, WORD_WIDTH, FieldElement
from shieldpool.errors import InvalidDomainError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# P-256 curve constants
# ---------------------------------------------------------------------------

# Order of the generator point G on secp256r1
_CURVE_ORDER = 0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551

# Prime defining the finite field F_p for secp256r1
_FIELD_PRIME = 0xFFFFFFFF00000001000000000000000000000000FFFFFFFFFFFFFFFFFFFFFFFF

# Curve parameters: y^2 = x^3 + a*x + b with a = -3 mod p
_CURVE_A = _FIELD_PRIME - 3
_CURVE_B = 0x5AC635D8AA3A93E7B3EBBD55769886BC651D06B0CC53B0F63BCE3C3E27D2604B

WINDOW_BITS = 4
WINDOWS_PER_SEGMENT = 50
DEFAULT_DOMAIN = b"shieldpool-pedersen-generator"


class FieldHasher(Protocol):
    """Protocol for the one-way hash used by commitments and the Merkle tree."""

    def hash(self, data: bytes) -> FieldElement:
        """Hash a byte string to a field element."""
        ...

    def hash_pair(self, left: FieldElement, right: FieldElement) -> FieldElement:
        """Hash two field elements into a Merkle parent node."""
        ...


# ---------------------------------------------------------------------------
# Low-level EC helpers
# ---------------------------------------------------------------------------


def _mod_inv(a: int, m: int) -> int:
    """Compute modular inverse of *a* modulo *m* using Fermat's little theorem.

    Works when *m* is prime.
    """
    return pow(a, m - 2, m)


def _point_add(x1: int, y1: int, x2: int, y2: int) -> tuple[int, int]:
    """Perform explicit point addition on the P-256 curve.

    Returns the affine coordinates of P1 + P2.  Handles the case where
    P1 == P2 (point doubling).
    """
    p = _FIELD_PRIME

    if x1 == x2 and y1 == y2:
        # Point doubling
        lam = (3 * x1 * x1 + _CURVE_A) * _mod_inv(2 * y1, p) % p
    else:
        lam = (y2 - y1) * _mod_inv(x2 - x1, p) % p

    x3 = (lam * lam - x1 - x2) % p
    y3 = (lam * (x1 - x3) - y1) % p
    return x3, y3


def _ec_scalar_mult_point(scalar: int, px: int, py: int) -> tuple[int, int]:
    """Compute *scalar* * P where P = (px, py) on P-256 via double-and-add."""
    scalar = scalar % _CURVE_ORDER
    if scalar == 0:
        msg = "Scalar must be nonzero for point multiplication"
        raise ValueError(msg)

    # Double-and-add (left-to-right)
    rx, ry = px, py
    bits = bin(scalar)[2:]
    for bit in bits[1:]:
        rx, ry = _point_add(rx, ry, rx, ry)
        if bit == "1":
            rx, ry = _point_add(rx, ry, px, py)

    return rx, ry


@lru_cache(maxsize=64)
def _derive_generator(domain: bytes, index: int) -> tuple[int, int]:
    """Hash ``domain || index`` onto the curve by try-and-increment.

    P-256's prime is 3 mod 4, so a square root is a single exponentiation.
    The even root is chosen to make the generator canonical.
    """
    p = _FIELD_PRIME
    counter = 0
    while True:
        seed = domain + index.to_bytes(4, "big") + counter.to_bytes(4, "big")
        x = int.from_bytes(hashlib.sha256(seed).digest(), "big") % p
        rhs = (x * x * x + _CURVE_A * x + _CURVE_B) % p
        y = pow(rhs, (p + 1) // 4, p)
        if y * y % p == rhs:
            if y & 1:
                y = p - y
            # Raises ValueError if the point is not on secp256r1
            ec.EllipticCurvePublicNumbers(x, y, ec.SECP256R1()).public_key()
            logger.debug("Derived Pedersen generator %d after %d attempts", index, counter + 1)
            return x, y
        counter += 1


# ---------------------------------------------------------------------------
# Pedersen hasher
# ---------------------------------------------------------------------------


class PedersenHasher:
    """Pedersen hash ``bytes -> FieldElement`` (see module docstring).

    Instances are stateless apart from the domain tag; generators are cached
    process-wide per (domain, segment).
    """

    def __init__(self, domain: bytes = DEFAULT_DOMAIN) -> None:
        self.domain = domain

    def hash(self, data: bytes) -> FieldElement:
        """Hash *data* (at least one byte) to a field element."""
        if not data:
            raise InvalidDomainError("Cannot hash an empty byte string")

        number = int.from_bytes(data, "little")
        n_windows = len(data) * 8 // WINDOW_BITS
        mask = (1 << WINDOW_BITS) - 1

        acc: tuple[int, int] | None = None
        for seg_start in range(0, n_windows, WINDOWS_PER_SEGMENT):
            seg_end = min(seg_start + WINDOWS_PER_SEGMENT, n_windows)
            scalar = 0
            for j, w in enumerate(range(seg_start, seg_end)):
                window = (number >> (w * WINDOW_BITS)) & mask
                scalar += (window + 1) << (5 * j)

            gx, gy = _derive_generator(self.domain, seg_start // WINDOWS_PER_SEGMENT)
            point = _ec_scalar_mult_point(scalar, gx, gy)
            acc = point if acc is None else _point_add(*acc, *point)

        return FieldElement(acc[0] % FIELD_SIZE)

    def hash_pair(self, left: FieldElement, right: FieldElement) -> FieldElement:
        """Merkle node hash: ``H(left_le32 || right_le32)``."""
        return self.hash(left.to_bytes_le(WORD_WIDTH) + right.to_bytes_le(WORD_WIDTH))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PedersenHasher) and other.domain == self.domain

    def __hash__(self) -> int:
        return hash((PedersenHasher, self.domain))
