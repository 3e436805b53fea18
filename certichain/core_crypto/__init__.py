# Core Cryptography Module
"""
Content hashing for ledger blocks:
- Canonical block serialization
- 256-bit digests via the cryptography library
- Avalanche effect measurement
"""

from .content_hash import (
    BlockHasher,
    compute_hash,
    canonical_payload,
    hamming_distance,
    avalanche_ratio,
    SUPPORTED_ALGORITHMS,
    DEFAULT_ALGORITHM,
)

__all__ = [
    'BlockHasher',
    'compute_hash',
    'canonical_payload',
    'hamming_distance',
    'avalanche_ratio',
    'SUPPORTED_ALGORITHMS',
    'DEFAULT_ALGORITHM',
]
