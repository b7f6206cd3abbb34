"""Tests for the in-memory reference ledger."""

import pytest

from shieldpool.crypto.field import FieldElement
from shieldpool.errors import (
    AlreadySpentError,
    DenominationMismatchError,
    InvalidProofError,
    ShieldPoolError,
    StaleRootError,
    TreeFullError,
)
from shieldpool.ledger import InMemoryLedger

TEST_HEIGHT = 4
ONE_UNIT = 10**18

PROOF = "0x" + "00" * 256
RECIPIENT = "0x" + "11" * 20
RELAYER = "0x" + "22" * 20


def _word(value: int) -> str:
    return FieldElement(value).to_hex()


def _args(root: FieldElement, nullifier_hash: int = 0xBEEF, fee: int = 0, refund: int = 0):
    return [root.to_hex(), _word(nullifier_hash), RECIPIENT, RELAYER, _word(fee), _word(refund)]


@pytest.fixture
def ledger(hasher) -> InMemoryLedger:
    return InMemoryLedger(denomination=ONE_UNIT, height=TEST_HEIGHT, hasher=hasher)


@pytest.mark.asyncio
async def test_deposit_appends_events(ledger):
    tx1 = await ledger.deposit(FieldElement(11), ONE_UNIT)
    tx2 = await ledger.deposit(FieldElement(22), ONE_UNIT)

    events = await ledger.get_deposit_events()
    assert [(e.leaf_index, e.commitment.value) for e in events] == [(0, 11), (1, 22)]
    assert tx1 != tx2
    assert ledger.pool_balance == 2 * ONE_UNIT


@pytest.mark.asyncio
async def test_deposit_rejects_wrong_value(ledger):
    with pytest.raises(DenominationMismatchError):
        await ledger.deposit(FieldElement(11), ONE_UNIT - 1)


@pytest.mark.asyncio
async def test_deposit_rejects_duplicate_commitment(ledger):
    await ledger.deposit(FieldElement(11), ONE_UNIT)
    with pytest.raises(ShieldPoolError, match="has been submitted"):
        await ledger.deposit(FieldElement(11), ONE_UNIT)


@pytest.mark.asyncio
async def test_incremental_root_matches_view(ledger, view):
    for value in (11, 22, 33):
        await ledger.deposit(FieldElement(value), ONE_UNIT)
        snapshot = view.build(await ledger.get_deposit_events())
        assert snapshot.root == ledger.last_root
        assert await ledger.is_known_root(snapshot.root)


@pytest.mark.asyncio
async def test_empty_ledger_knows_empty_root(ledger, view):
    assert ledger.last_root == view.zeros()[TEST_HEIGHT]
    assert await ledger.is_known_root(ledger.last_root)


@pytest.mark.asyncio
async def test_zero_root_is_never_known(ledger):
    assert not await ledger.is_known_root(FieldElement(0))


@pytest.mark.asyncio
async def test_root_history_evicts_old_roots(hasher):
    ledger = InMemoryLedger(denomination=ONE_UNIT, height=TEST_HEIGHT, root_history_size=2, hasher=hasher)
    empty_root = ledger.last_root

    await ledger.deposit(FieldElement(11), ONE_UNIT)
    first = ledger.last_root
    await ledger.deposit(FieldElement(22), ONE_UNIT)
    assert not await ledger.is_known_root(empty_root)
    assert await ledger.is_known_root(first)

    await ledger.deposit(FieldElement(33), ONE_UNIT)
    assert not await ledger.is_known_root(first)


def test_root_history_size_must_be_positive():
    with pytest.raises(ValueError):
        InMemoryLedger(denomination=ONE_UNIT, root_history_size=0)


@pytest.mark.asyncio
async def test_tree_full(hasher):
    ledger = InMemoryLedger(denomination=1, height=1, hasher=hasher)
    await ledger.deposit(FieldElement(1), 1)
    await ledger.deposit(FieldElement(2), 1)
    with pytest.raises(TreeFullError):
        await ledger.deposit(FieldElement(3), 1)


@pytest.mark.asyncio
async def test_withdraw_pays_recipient_and_relayer(ledger):
    await ledger.deposit(FieldElement(11), ONE_UNIT)
    fee = 10**16

    tx = await ledger.withdraw(PROOF, _args(ledger.last_root, fee=fee))

    assert tx.startswith("0x")
    assert ledger.balances[RECIPIENT] == ONE_UNIT - fee
    assert ledger.balances[RELAYER] == fee
    assert ledger.pool_balance == 0
    assert await ledger.is_spent(FieldElement(0xBEEF))


@pytest.mark.asyncio
async def test_withdraw_twice_is_rejected(ledger):
    await ledger.deposit(FieldElement(11), ONE_UNIT)
    await ledger.deposit(FieldElement(22), ONE_UNIT)
    await ledger.withdraw(PROOF, _args(ledger.last_root))

    with pytest.raises(AlreadySpentError):
        await ledger.withdraw(PROOF, _args(ledger.last_root))


@pytest.mark.asyncio
async def test_withdraw_unknown_root(ledger):
    await ledger.deposit(FieldElement(11), ONE_UNIT)
    with pytest.raises(StaleRootError):
        await ledger.withdraw(PROOF, _args(FieldElement(12345)))


@pytest.mark.asyncio
@pytest.mark.parametrize("proof", ["0x1234", "00" * 256, "0x" + "zz" * 256])
async def test_withdraw_malformed_proof(ledger, proof):
    await ledger.deposit(FieldElement(11), ONE_UNIT)
    with pytest.raises(InvalidProofError):
        await ledger.withdraw(proof, _args(ledger.last_root))


@pytest.mark.asyncio
async def test_withdraw_verifier_rejects(hasher):
    calls = []

    def verifier(proof, args):
        calls.append(args)
        return False

    ledger = InMemoryLedger(denomination=ONE_UNIT, height=TEST_HEIGHT, hasher=hasher, verifier=verifier)
    await ledger.deposit(FieldElement(11), ONE_UNIT)

    with pytest.raises(InvalidProofError):
        await ledger.withdraw(PROOF, _args(ledger.last_root))
    assert len(calls) == 1
    assert not await ledger.is_spent(FieldElement(0xBEEF))


@pytest.mark.asyncio
async def test_withdraw_fee_above_denomination(ledger):
    await ledger.deposit(FieldElement(11), ONE_UNIT)
    with pytest.raises(ShieldPoolError, match="Fee exceeds"):
        await ledger.withdraw(PROOF, _args(ledger.last_root, fee=ONE_UNIT + 1))


@pytest.mark.asyncio
async def test_withdraw_nonzero_refund(ledger):
    await ledger.deposit(FieldElement(11), ONE_UNIT)
    with pytest.raises(ShieldPoolError, match="Refund"):
        await ledger.withdraw(PROOF, _args(ledger.last_root, refund=1))


@pytest.mark.asyncio
async def test_withdraw_wrong_argument_count(ledger):
    with pytest.raises(ShieldPoolError):
        await ledger.withdraw(PROOF, _args(ledger.last_root)[:5])
