"""shieldpool - Client-side protocol logic for a shielded-value pool.

A depositor locks a fixed denomination behind a Pedersen commitment and later
withdraws it to any recipient by proving membership of that commitment in the
pool's append-only anonymity set, revealing only a one-time nullifier hash.

Key modules:

- :mod:`shieldpool.crypto` - Field elements and the Pedersen hash
- :mod:`shieldpool.note` - Commitment derivation and note tokens
- :mod:`shieldpool.tree` - Anonymity-set view (root, locate, membership path)
- :mod:`shieldpool.withdraw` - Proof inputs and ledger argument vectors
- :mod:`shieldpool.client` - Deposit / withdraw orchestration over a ledger and prover
"""

__version__ = "0.1.0"
