"""
Ledger Records

Value types stored in the certificate ledger:
- CertificateRecord: the payload of one block
- Block: payload plus linking/hash metadata
- BlockStatus: per-block provenance/integrity state

Blocks are frozen dataclasses. Tampering and repair never edit a block in
place; they put a replacement Block at the same position of a new chain
list, so a chain list handed out to a reader never changes under it.

Author: CertiChain Project
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Mapping, List, Union

from .errors import ValidationError


# ============================================================================
# Constants
# ============================================================================

GENESIS_PREV_HASH = "0"  # Sentinel previous_hash of block 0
GENESIS_STUDENT_NAME = "GENESIS_BLOCK"
GENESIS_DEGREE = "System Initialization"
GENESIS_GPA = "0.0"
NO_BREAK = -1  # broken_index of a valid chain

# (attribute, canonical key) in the fixed order used for hashing
CERTIFICATE_FIELDS = (
    ('student_name', 'studentName'),
    ('degree', 'degree'),
    ('university', 'university'),
    ('graduation_date', 'graduationDate'),
    ('gpa', 'gpa'),
    ('issuance_date', 'issuanceDate'),
)

REQUIRED_FIELDS = ('student_name', 'degree')


# ============================================================================
# Certificate Payload
# ============================================================================

@dataclass(frozen=True)
class CertificateRecord:
    """
    Academic certificate carried by a block.

    All fields are free text. The only rule enforced on issuance is that
    student_name and degree are present.
    """
    student_name: str
    degree: str
    university: str = ""
    graduation_date: str = ""
    gpa: str = ""
    issuance_date: str = ""

    def missing_fields(self) -> List[str]:
        """Names of required fields that are empty or whitespace-only."""
        missing = []
        for name in REQUIRED_FIELDS:
            value = getattr(self, name)
            if value is None or not str(value).strip():
                missing.append(name)
        return missing

    def to_dict(self) -> Dict[str, Any]:
        """Canonical dictionary, keys in hashing order."""
        return {key: getattr(self, attr) for attr, key in CERTIFICATE_FIELDS}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'CertificateRecord':
        """Build a record from canonical (camelCase) or attribute keys."""
        values = {}
        for attr, key in CERTIFICATE_FIELDS:
            if key in data:
                values[attr] = data[key]
            else:
                values[attr] = data.get(attr, "")
        return cls(**values)

    @classmethod
    def coerce(cls, data: Any) -> 'CertificateRecord':
        """
        Accept a record or a mapping of record fields.

        Raises:
            ValidationError: If data is neither, or a field is not text
        """
        if isinstance(data, Mapping):
            data = cls.from_dict(data)
        elif not isinstance(data, cls):
            raise ValidationError(
                f"Certificate data must be a CertificateRecord or mapping, got {type(data).__name__}"
            )
        for attr, key in CERTIFICATE_FIELDS:
            if not isinstance(getattr(data, attr), str):
                raise ValidationError(f"Certificate field '{key}' must be text")
        return data

    @property
    def label(self) -> str:
        """Human-identifying label used in audit summaries."""
        return self.student_name


# Issuance and tamper input: a record or a mapping of its fields
RecordInput = Union[CertificateRecord, Mapping[str, Any]]


# ============================================================================
# Block Structure
# ============================================================================

@dataclass(frozen=True)
class Block:
    """
    One ledger entry.

    hash is the digest of (index, previous_hash, timestamp, data, nonce) as
    of the last (re)computation; it goes stale when data is tampered with.
    is_tampered records that data was edited and is never cleared.
    """
    index: int
    timestamp: str
    data: CertificateRecord
    previous_hash: str
    hash: str
    nonce: int
    is_genesis: bool = False
    is_tampered: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert block to dictionary for display and summaries."""
        return {
            'index': self.index,
            'timestamp': self.timestamp,
            'data': self.data.to_dict(),
            'previousHash': self.previous_hash,
            'hash': self.hash,
            'nonce': self.nonce,
            'isGenesis': self.is_genesis,
            'isTampered': self.is_tampered,
        }

    def __str__(self) -> str:
        flags = []
        if self.is_genesis:
            flags.append("genesis")
        if self.is_tampered:
            flags.append("tampered")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        return (
            f"Block #{self.index}{suffix}\n"
            f"  Hash: {self.hash[:16]}...\n"
            f"  Prev: {self.previous_hash[:16]}\n"
            f"  Student: {self.data.student_name}\n"
            f"  Degree: {self.data.degree}\n"
            f"  Nonce: {self.nonce}"
        )


class BlockStatus(Enum):
    """
    Per-block state.

    NORMAL -> TAMPERED_INVALID (tamper) -> TAMPERED_VALID (repair).
    INVALID marks a never-tampered block whose link or hash is stale.
    """
    NORMAL = "normal"
    INVALID = "invalid"
    TAMPERED_INVALID = "tampered_invalid"
    TAMPERED_VALID = "tampered_valid"
