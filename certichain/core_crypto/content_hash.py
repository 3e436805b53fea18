"""
Block Content Hashing

Deterministic hash of a block's fields:

    hash = hex(H(utf8(canonical_json(index, previousHash, timestamp, data, nonce))))

Canonical serialization is a compact JSON object whose keys appear in this
fixed order (never sorted, never taken from the caller's dict order):

    index, previousHash, timestamp,
    data{studentName, degree, university, graduationDate, gpa, issuanceDate},
    nonce

H is a 256-bit digest from the cryptography library, SHA-256 by default.

Author: CertiChain Project
"""

import json
from typing import Callable, Dict, Mapping, Any, Union

from cryptography.exceptions import AlreadyFinalized, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes

from ..blockchain.errors import HashComputationError
from ..blockchain.records import CertificateRecord


# ============================================================================
# Constants
# ============================================================================

DEFAULT_ALGORITHM = 'sha256'

# 256-bit class digests only
SUPPORTED_ALGORITHMS: Dict[str, Callable[[], hashes.HashAlgorithm]] = {
    'sha256': hashes.SHA256,
    'sha3_256': hashes.SHA3_256,
    'sha512_256': hashes.SHA512_256,
    'blake2s': lambda: hashes.BLAKE2s(32),
}

RecordLike = Union[CertificateRecord, Mapping[str, Any]]


# ============================================================================
# Canonical Serialization
# ============================================================================

def _record_fields(data: RecordLike) -> Dict[str, Any]:
    if isinstance(data, CertificateRecord):
        return data.to_dict()
    if isinstance(data, Mapping):
        return CertificateRecord.from_dict(data).to_dict()
    raise HashComputationError(
        f"Cannot serialize payload of type {type(data).__name__}"
    )


def canonical_payload(
    index: int,
    previous_hash: str,
    timestamp: str,
    data: RecordLike,
    nonce: int
) -> bytes:
    """
    Serialize block fields into the canonical byte string.

    Args:
        index: Block index
        previous_hash: Hex hash of the predecessor (or the "0" sentinel)
        timestamp: Creation timestamp string
        data: Certificate payload
        nonce: Block nonce

    Returns:
        UTF-8 bytes of the compact JSON message

    Raises:
        HashComputationError: If any field cannot be serialized
    """
    message = {
        'index': index,
        'previousHash': previous_hash,
        'timestamp': timestamp,
        'data': _record_fields(data),
        'nonce': nonce,
    }
    try:
        text = json.dumps(
            message,
            separators=(',', ':'),
            ensure_ascii=False,
            allow_nan=False,
        )
        return text.encode('utf-8')
    except (TypeError, ValueError) as exc:
        raise HashComputationError(
            f"Failed to serialize block #{index}: {exc}"
        ) from exc


# ============================================================================
# Hasher
# ============================================================================

class BlockHasher:
    """
    Computes block content hashes with a fixed digest algorithm.

    Instances hold no mutable state, so one hasher may be shared across
    threads for read-only validation.
    """

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM):
        """
        Args:
            algorithm: One of SUPPORTED_ALGORITHMS
        """
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(
                f"Unsupported hash algorithm '{algorithm}', "
                f"expected one of {sorted(SUPPORTED_ALGORITHMS)}"
            )
        self.algorithm = algorithm
        self._factory = SUPPORTED_ALGORITHMS[algorithm]

    def digest_hex(self, payload: bytes) -> str:
        """Digest raw bytes and return lowercase hex."""
        try:
            ctx = hashes.Hash(self._factory())
            ctx.update(payload)
            return ctx.finalize().hex()
        except (UnsupportedAlgorithm, AlreadyFinalized, TypeError, ValueError) as exc:
            raise HashComputationError(
                f"{self.algorithm} digest failed: {exc}"
            ) from exc

    def hash_block_fields(
        self,
        index: int,
        previous_hash: str,
        timestamp: str,
        data: RecordLike,
        nonce: int
    ) -> str:
        """Hash the five block fields in canonical order."""
        payload = canonical_payload(index, previous_hash, timestamp, data, nonce)
        return self.digest_hex(payload)

    __call__ = hash_block_fields

    def __repr__(self) -> str:
        return f"BlockHasher(algorithm={self.algorithm!r})"


_default_hasher = BlockHasher()


def compute_hash(
    index: int,
    previous_hash: str,
    timestamp: str,
    data: RecordLike,
    nonce: int
) -> str:
    """Compute a block hash with the default SHA-256 hasher."""
    return _default_hasher.hash_block_fields(
        index, previous_hash, timestamp, data, nonce
    )


# ============================================================================
# Avalanche Measurement
# ============================================================================

def hamming_distance(hex_a: str, hex_b: str) -> int:
    """
    Count differing bits between two hex digests.

    Raises:
        ValueError: If the digests are not valid hex of equal length
    """
    a = bytes.fromhex(hex_a)
    b = bytes.fromhex(hex_b)
    if len(a) != len(b):
        raise ValueError("Digests must have the same length")
    return sum(bin(x ^ y).count('1') for x, y in zip(a, b))


def avalanche_ratio(hex_a: str, hex_b: str) -> float:
    """Fraction of output bits that differ (about 0.5 for a good hash)."""
    bits = len(hex_a) * 4
    if bits == 0:
        raise ValueError("Digests must not be empty")
    return hamming_distance(hex_a, hex_b) / bits
