"""Pytest configuration and shared fixtures."""

import pytest

from shieldpool.config.schema import ShieldPoolConfig, TreeConfig
from shieldpool.crypto.field import FieldElement, SecretScalar
from shieldpool.crypto.pedersen import PedersenHasher
from shieldpool.note.codec import NoteCodec
from shieldpool.note.commitment import CommitmentScheme, Deposit
from shieldpool.tree.merkle import AnonymitySetView, MerkleWitness

# Small trees keep the pure-Python Pedersen hash fast in tests
TEST_HEIGHT = 4

ONE_UNIT = 10**18


@pytest.fixture(scope="session")
def hasher() -> PedersenHasher:
    """Provide the default Pedersen hasher."""
    return PedersenHasher()


@pytest.fixture
def scheme(hasher) -> CommitmentScheme:
    return CommitmentScheme(hasher)


@pytest.fixture
def codec() -> NoteCodec:
    return NoteCodec(prefix="shieldpool")


@pytest.fixture
def view(hasher) -> AnonymitySetView:
    """Anonymity-set view over a height-4 tree."""
    return AnonymitySetView(height=TEST_HEIGHT, hasher=hasher)


@pytest.fixture
def config() -> ShieldPoolConfig:
    """Default configuration with a small tree."""
    return ShieldPoolConfig(tree=TreeConfig(height=TEST_HEIGHT))


@pytest.fixture
def fake_deposit() -> Deposit:
    """A deposit with made-up hashes, for structural tests that skip hashing."""
    nullifier = SecretScalar(7)
    secret = SecretScalar(123456789)
    return Deposit(
        nullifier=nullifier,
        secret=secret,
        preimage=nullifier.to_bytes_le(31) + secret.to_bytes_le(31),
        commitment=FieldElement(0xC0FFEE),
        nullifier_hash=FieldElement(0xBEEF),
    )


@pytest.fixture
def fake_witness() -> MerkleWitness:
    return MerkleWitness(
        root=FieldElement(0xABCDEF),
        path_elements=tuple(FieldElement(i + 1) for i in range(TEST_HEIGHT)),
        path_indices=(1, 0, 1, 0),
        leaf_index=5,
    )
