"""Withdrawal request assembly."""

from .builder import (
    LEDGER_ARG_ORDER,
    PrivateInputs,
    ProofInputs,
    PublicInputs,
    WithdrawalRequestBuilder,
)

__all__ = [
    "LEDGER_ARG_ORDER",
    "PrivateInputs",
    "ProofInputs",
    "PublicInputs",
    "WithdrawalRequestBuilder",
]
