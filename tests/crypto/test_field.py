"""Tests for fixed-width field elements."""

import pytest

from shieldpool.crypto.field import (
    FIELD_SIZE,
    FieldElement,
    SecretScalar,
    encode_address,
    encode_word,
)
from shieldpool.errors import InvalidDomainError

# ---------------------------------------------------------------------------
# FieldElement domain checks
# ---------------------------------------------------------------------------


def test_field_element_accepts_bounds():
    """0 and FIELD_SIZE - 1 are valid field elements."""
    assert FieldElement(0).value == 0
    assert FieldElement(FIELD_SIZE - 1).value == FIELD_SIZE - 1


@pytest.mark.parametrize("value", [-1, FIELD_SIZE, FIELD_SIZE + 1])
def test_field_element_rejects_out_of_range(value):
    with pytest.raises(InvalidDomainError):
        FieldElement(value)


@pytest.mark.parametrize("value", [True, "1", 1.0, None])
def test_field_element_rejects_non_int(value):
    with pytest.raises(InvalidDomainError):
        FieldElement(value)


def test_field_element_is_immutable():
    fe = FieldElement(1)
    with pytest.raises(AttributeError):
        fe.value = 2


def test_coerce_passes_instances_through():
    fe = FieldElement(9)
    assert FieldElement.coerce(fe) is fe
    assert FieldElement.coerce(9) == fe


# ---------------------------------------------------------------------------
# Encodings
# ---------------------------------------------------------------------------


def test_to_hex_pads_big_endian():
    assert FieldElement(255).to_hex(4) == "0x000000ff"


def test_to_hex_default_is_32_bytes():
    encoded = FieldElement(1).to_hex()
    assert len(encoded) == 2 + 64
    assert encoded.endswith("01")


def test_to_hex_rejects_value_wider_than_width():
    with pytest.raises(InvalidDomainError):
        FieldElement(1 << 160).to_hex(20)


def test_to_bytes_le_is_little_endian():
    encoded = FieldElement(7).to_bytes_le(31)
    assert len(encoded) == 31
    assert encoded[0] == 7
    assert encoded[1:] == bytes(30)


def test_from_bytes_le_inverts_to_bytes_le():
    fe = FieldElement(0x0102030405)
    assert FieldElement.from_bytes_le(fe.to_bytes_le(31)) == fe


def test_from_hex_with_and_without_prefix():
    assert FieldElement.from_hex("0xff") == FieldElement(255)
    assert FieldElement.from_hex("FF") == FieldElement(255)


@pytest.mark.parametrize(
    "text",
    ["0x", "", "0xzz", "0x-1", "0x 1", "0x1_0", "+ff", " ff"],
)
def test_from_hex_rejects_invalid(text):
    with pytest.raises(InvalidDomainError):
        FieldElement.from_hex(text)


# ---------------------------------------------------------------------------
# SecretScalar
# ---------------------------------------------------------------------------


def test_secret_scalar_fits_31_bytes():
    assert SecretScalar((1 << 248) - 1).value == (1 << 248) - 1


def test_secret_scalar_rejects_32_byte_values():
    with pytest.raises(InvalidDomainError):
        SecretScalar(1 << 248)


def test_secret_scalar_repr_is_redacted():
    text = repr(SecretScalar(987654321))
    assert "987654321" not in text
    assert "redacted" in text


def test_secret_scalar_from_bytes_le_keeps_type():
    assert isinstance(SecretScalar.from_bytes_le(b"\x01" * 31), SecretScalar)


# ---------------------------------------------------------------------------
# Address and word encoding
# ---------------------------------------------------------------------------


def test_encode_address_from_int():
    assert encode_address(1) == "0x" + "00" * 19 + "01"


def test_encode_address_lowercases_hex():
    assert encode_address("0x" + "AB" * 20) == "0x" + "ab" * 20


@pytest.mark.parametrize(
    "value",
    [
        "0x1234",
        "ab" * 20,
        "0x" + "zz" * 20,
        "0x+" + "1" * 39,
        "0x-" + "1" * 39,
        "0x 1" + "1" * 38,
        "0x" + "1" * 39 + "\n",
        "0x" + "1_" * 19 + "11",
        -1,
        1 << 160,
        1.5,
        True,
    ],
)
def test_encode_address_rejects_invalid(value):
    with pytest.raises(InvalidDomainError):
        encode_address(value)


def test_encode_word_is_32_bytes():
    assert encode_word(1) == "0x" + "00" * 31 + "01"


@pytest.mark.parametrize("value", [-1, 1 << 256, "1"])
def test_encode_word_rejects_invalid(value):
    with pytest.raises(InvalidDomainError):
        encode_word(value)
