"""
Ledger error kinds.

- ValidationError: issuance input rejected before any block is built
- PreconditionError: programmer error (bad index, empty chain)
- HashComputationError: digest computation failed, operation aborted

A broken chain is NOT an error: ChainValidator reports it as a result.
"""


class LedgerError(Exception):
    """Base class for all ledger errors."""
    pass


class ValidationError(LedgerError):
    """Raised when issuance input is missing a required field."""
    pass


class PreconditionError(LedgerError):
    """Raised when an operation is called outside its preconditions."""
    pass


class EmptyChainError(ValidationError, PreconditionError):
    """Raised when a block is requested on a chain with no genesis."""
    pass


class HashComputationError(LedgerError):
    """Raised when serializing or digesting a block fails."""
    pass
