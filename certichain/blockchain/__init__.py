# Blockchain Module
"""
Hash-chain integrity core:
- records: CertificateRecord, Block, BlockStatus
- factory: genesis and next-block construction
- validator: link/content validation and lookup-by-hash
- repairer: re-mining cascade after an edit
- tamper: payload edits that leave the hash stale
- store: CertificateLedger, the single-writer owner of a chain

Security features:
- Frozen blocks; edits always produce a new chain list
- First-break reporting over link and content invariants
- Sticky tamper provenance, never cleared by repair
"""

_EXPORTS = {
    'LedgerError': 'errors',
    'ValidationError': 'errors',
    'PreconditionError': 'errors',
    'EmptyChainError': 'errors',
    'HashComputationError': 'errors',
    'CertificateRecord': 'records',
    'Block': 'records',
    'BlockStatus': 'records',
    'GENESIS_PREV_HASH': 'records',
    'NO_BREAK': 'records',
    'BlockFactory': 'factory',
    'create_genesis': 'factory',
    'create_next': 'factory',
    'new_certificate': 'factory',
    'normalize_issuance_date': 'factory',
    'ChainValidator': 'validator',
    'ValidationResult': 'validator',
    'LookupResult': 'validator',
    'BlockCheck': 'validator',
    'validate_chain': 'validator',
    'lookup': 'validator',
    'normalize_hash': 'validator',
    'ChainRepairer': 'repairer',
    'repair_chain': 'repairer',
    'apply_tamper': 'tamper',
    'CertificateLedger': 'store',
    'create_ledger': 'store',
}


# Lazy imports to avoid circular import issues
def __getattr__(name):
    """Resolve exported names from their submodule on first access."""
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    from importlib import import_module
    module = import_module(f".{_EXPORTS[name]}", __name__)
    return getattr(module, name)


__all__ = list(_EXPORTS)
