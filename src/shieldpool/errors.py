"""Error types raised by shieldpool.

Core operations raise these and never retry on their own; retry, refetch or
abort is always the caller's decision.
"""


class ShieldPoolError(Exception):
    """Base class for all shieldpool errors."""


class MalformedNoteError(ShieldPoolError):
    """Note token does not match the note grammar or widths."""


class InvalidDomainError(ShieldPoolError):
    """Value lies outside the field or does not fit its fixed width.

    Fatal for the material involved: do not retry with the same values.
    """


class CommitmentNotFoundError(ShieldPoolError):
    """Commitment is absent from the current anonymity-set snapshot.

    Usually transient: the deposit may not be indexed yet. Refetch and retry
    with backoff.
    """


class IndexOutOfRangeError(ShieldPoolError):
    """Leaf index lies outside the populated range of a snapshot."""


class InconsistentEventLogError(ShieldPoolError):
    """Deposit events have gaps or conflicting leaf-index assignments."""


class TreeFullError(ShieldPoolError):
    """Anonymity set already holds 2**height leaves."""


class StaleRootError(ShieldPoolError):
    """Root is not among the roots the ledger currently recognizes."""


class AlreadySpentError(ShieldPoolError):
    """Nullifier hash is already marked spent on the ledger."""


class InvalidProofError(ShieldPoolError):
    """Ledger rejected the withdrawal proof."""


class DenominationMismatchError(ShieldPoolError):
    """Note or transfer value does not match the pool denomination."""


class ProofGenerationFailure(ShieldPoolError):
    """Proving subsystem failed to produce a proof. Not retried automatically."""
