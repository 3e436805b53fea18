"""
Ledger Event Log

Audit trail of every operation performed on a CertificateLedger:
- Genesis creation
- Certificate issuance (and rejected issuance)
- Tamper simulation
- Repair cascades
- Validation runs and detected breaches
- Hash lookups

Student names are never stored in plaintext; events carry a short SHA-256
label hash instead, which still lets events for the same student be
correlated.

Author: CertiChain Project
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Dict, Any, Callable

from ..core_crypto.content_hash import BlockHasher

logger = logging.getLogger(__name__)


# ============================================================================
# Privacy Functions
# ============================================================================

_label_hasher = BlockHasher('sha256')


def get_label_hash(label: str) -> str:
    """
    Privacy-preserving hash of a student name.

    Args:
        label: Plaintext label

    Returns:
        First 16 hex characters of SHA-256(label)
    """
    return _label_hasher.digest_hex(label.encode('utf-8'))[:16]


# ============================================================================
# Event Types
# ============================================================================

class LedgerEventType(Enum):
    """Operations recorded in the ledger audit trail."""

    GENESIS_CREATED = "genesis_created"
    CERTIFICATE_ISSUED = "certificate_issued"
    ISSUANCE_REJECTED = "issuance_rejected"
    BLOCK_TAMPERED = "block_tampered"
    CHAIN_REPAIRED = "chain_repaired"
    CHAIN_VALIDATED = "chain_validated"
    INTEGRITY_BREACH = "integrity_breach"
    HASH_LOOKUP = "hash_lookup"


@dataclass
class LedgerEvent:
    """One audit trail entry."""
    event_type: LedgerEventType
    timestamp: float
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.event_type.value,
            'time': self.timestamp,
            'iso_time': datetime.fromtimestamp(self.timestamp, timezone.utc).isoformat(),
            'details': dict(self.details),
        }

    def __str__(self) -> str:
        dt = datetime.fromtimestamp(self.timestamp, timezone.utc)
        return f"[{dt.strftime('%Y-%m-%d %H:%M:%S')}] {self.event_type.value} | {self.details}"


# ============================================================================
# Event Log
# ============================================================================

class LedgerEventLog:
    """
    In-memory, append-only audit trail of ledger operations.

    Subscribers are notified of each event; a failing subscriber is logged
    and skipped so it can never break the ledger operation being recorded.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._events: List[LedgerEvent] = []
        self._callbacks: List[Callable[[LedgerEvent], None]] = []
        self._lock = threading.Lock()
        self._clock = clock

    @property
    def events(self) -> List[LedgerEvent]:
        """Copy of all events, oldest first."""
        with self._lock:
            return list(self._events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def add_callback(self, callback: Callable[[LedgerEvent], None]) -> None:
        """Add a callback to be notified of new events."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[LedgerEvent], None]) -> None:
        """Remove a callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def record(self, event_type: LedgerEventType, **details: Any) -> LedgerEvent:
        """Append an event and notify subscribers."""
        event = LedgerEvent(event_type=event_type, timestamp=self._clock(), details=details)
        with self._lock:
            self._events.append(event)

        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception:
                logger.exception("Event callback failed for %s", event_type.value)
        return event

    def get_events(
        self,
        event_type: Optional[LedgerEventType] = None,
        block_index: Optional[int] = None
    ) -> List[LedgerEvent]:
        """
        Filter the trail.

        Args:
            event_type: Only events of this type
            block_index: Only events whose details reference this block
        """
        result = []
        for event in self.events:
            if event_type is not None and event.event_type != event_type:
                continue
            if block_index is not None and event.details.get('index') != block_index:
                continue
            result.append(event)
        return result

    # ========================================================================
    # Ledger Operations
    # ========================================================================

    def log_genesis(self, block_hash: str) -> LedgerEvent:
        return self.record(LedgerEventType.GENESIS_CREATED, index=0, hash=block_hash[:16])

    def log_issued(self, index: int, student_name: str, block_hash: str) -> LedgerEvent:
        """Log a certificate appended to the chain."""
        return self.record(
            LedgerEventType.CERTIFICATE_ISSUED,
            index=index,
            student=get_label_hash(student_name),
            hash=block_hash[:16],
        )

    def log_rejected(self, reason: str) -> LedgerEvent:
        return self.record(LedgerEventType.ISSUANCE_REJECTED, reason=reason)

    def log_tampered(self, index: int, student_name: str) -> LedgerEvent:
        return self.record(
            LedgerEventType.BLOCK_TAMPERED,
            index=index,
            student=get_label_hash(student_name),
        )

    def log_repaired(self, from_index: int, blocks_rehashed: int) -> LedgerEvent:
        return self.record(
            LedgerEventType.CHAIN_REPAIRED,
            index=from_index,
            rehashed=blocks_rehashed,
        )

    def log_validation(self, is_valid: bool, broken_index: int, length: int) -> LedgerEvent:
        """Log a validation run; a failed run is logged as a breach."""
        event_type = (
            LedgerEventType.CHAIN_VALIDATED if is_valid
            else LedgerEventType.INTEGRITY_BREACH
        )
        details = {'length': length}
        if not is_valid:
            details['index'] = broken_index
        return self.record(event_type, **details)

    def log_lookup(self, target_hash: str, found: bool, integrity_valid: Optional[bool]) -> LedgerEvent:
        return self.record(
            LedgerEventType.HASH_LOOKUP,
            hash=target_hash[:16],
            found=found,
            integrity_valid=integrity_valid,
        )
