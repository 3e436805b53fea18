"""
Block Factory

Builds the genesis block and new certificate blocks. Blocks are returned,
never appended: appending is the store's job.

The nonce is hashed but never checked against a difficulty target, and the
optional mining delay is cosmetic. There is no proof of work.

Author: CertiChain Project
"""

import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from ..config import LedgerSettings, MAX_RANDOM_NONCE
from ..core_crypto.content_hash import BlockHasher
from .errors import EmptyChainError, ValidationError
from .records import (
    Block, CertificateRecord, RecordInput,
    GENESIS_PREV_HASH, GENESIS_STUDENT_NAME, GENESIS_DEGREE, GENESIS_GPA,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Time Helpers
# ============================================================================

def format_timestamp(moment: datetime) -> str:
    """Format as UTC ISO-8601 with millisecond precision and a Z suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime('%Y-%m-%dT%H:%M:%S.') + f"{moment.microsecond // 1000:03d}Z"


def utc_timestamp() -> str:
    """Current time as a block timestamp string."""
    return format_timestamp(datetime.now(timezone.utc))


def normalize_issuance_date(value: str) -> str:
    """
    Normalize a user-entered date or datetime to a timestamp string.

    Accepts 'YYYY-MM-DD' or any ISO-8601 datetime; naive values are taken
    as UTC.

    Raises:
        ValidationError: If the value is not a parseable date
    """
    text = (value or "").strip()
    if not text:
        raise ValidationError("Issuance date is empty")
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Invalid issuance date: '{value}'") from None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_timestamp(moment)


def new_certificate(
    student_name: str,
    degree: str,
    gpa: str = "",
    university: Optional[str] = None,
    graduation_date: Optional[str] = None,
    issuance_date: Optional[str] = None,
    settings: Optional[LedgerSettings] = None
) -> CertificateRecord:
    """
    Build a certificate with the issuance form's defaults filled in.

    university defaults to the configured default university,
    graduation_date to today and issuance_date to now.
    """
    settings = settings or LedgerSettings()
    now = datetime.now(timezone.utc)
    return CertificateRecord(
        student_name=student_name,
        degree=degree,
        university=settings.default_university if university is None else university,
        graduation_date=now.date().isoformat() if graduation_date is None else graduation_date,
        gpa=gpa,
        issuance_date=(
            format_timestamp(now) if issuance_date is None
            else normalize_issuance_date(issuance_date)
        ),
    )


# ============================================================================
# Factory
# ============================================================================

class BlockFactory:
    """
    Creates blocks with freshly computed hashes.

    Args:
        settings: Ledger settings (hash algorithm, nonce strategy, delay)
        hasher: Optional pre-built hasher, overrides settings.hash_algorithm
        clock: Callable returning the timestamp string for a new block
        nonce_source: Callable returning the nonce for a new block
    """

    def __init__(
        self,
        settings: Optional[LedgerSettings] = None,
        hasher: Optional[BlockHasher] = None,
        clock: Callable[[], str] = utc_timestamp,
        nonce_source: Optional[Callable[[], int]] = None
    ):
        self.settings = settings or LedgerSettings()
        self.hasher = hasher or BlockHasher(self.settings.hash_algorithm)
        self._clock = clock
        if nonce_source is not None:
            self._nonce_source = nonce_source
        elif self.settings.nonce_strategy == 'fixed':
            self._nonce_source = lambda: 0
        else:
            self._nonce_source = lambda: secrets.randbelow(MAX_RANDOM_NONCE)

    def genesis_record(self, timestamp: str) -> CertificateRecord:
        """The fixed system-identity payload of block 0."""
        return CertificateRecord(
            student_name=GENESIS_STUDENT_NAME,
            degree=GENESIS_DEGREE,
            university=self.settings.network_name,
            graduation_date=timestamp[:10],
            gpa=GENESIS_GPA,
            issuance_date=timestamp,
        )

    def create_genesis(self) -> Block:
        """
        Create the genesis (first) block.

        Returns:
            Block 0 with previous_hash "0" and nonce 0
        """
        timestamp = self._clock()
        data = self.genesis_record(timestamp)
        block_hash = self.hasher(0, GENESIS_PREV_HASH, timestamp, data, 0)

        logger.debug("Genesis block hashed: %s", block_hash)
        return Block(
            index=0,
            timestamp=timestamp,
            data=data,
            previous_hash=GENESIS_PREV_HASH,
            hash=block_hash,
            nonce=0,
            is_genesis=True,
            is_tampered=False,
        )

    def create_next(self, chain: List[Block], data: RecordInput) -> Block:
        """
        Create the block that would follow the current tail of chain.

        Args:
            chain: Current chain (must contain at least the genesis block)
            data: Certificate payload, as a record or a mapping of its fields

        Returns:
            New block (not appended)

        Raises:
            EmptyChainError: If chain is empty
            ValidationError: If data is not record-shaped, or student_name or
                degree is missing
            HashComputationError: If the block cannot be hashed
        """
        if not chain:
            raise EmptyChainError("Cannot create a block on an empty chain")
        if data is None:
            raise ValidationError("Certificate data is required")
        data = CertificateRecord.coerce(data)

        missing = data.missing_fields()
        if missing:
            raise ValidationError(
                f"Missing required certificate field(s): {', '.join(missing)}"
            )

        if self.settings.mining_delay:
            time.sleep(self.settings.mining_delay)

        prev_block = chain[-1]
        index = len(chain)
        timestamp = self._clock()
        nonce = self._nonce_source()
        block_hash = self.hasher(index, prev_block.hash, timestamp, data, nonce)

        logger.debug("Block #%d hashed with nonce %d: %s", index, nonce, block_hash)
        return Block(
            index=index,
            timestamp=timestamp,
            data=data,
            previous_hash=prev_block.hash,
            hash=block_hash,
            nonce=nonce,
        )


# ============================================================================
# Convenience Functions
# ============================================================================

_default_factory: Optional[BlockFactory] = None


def _factory() -> BlockFactory:
    global _default_factory
    if _default_factory is None:
        _default_factory = BlockFactory()
    return _default_factory


def create_genesis() -> Block:
    """Create a genesis block with default settings."""
    return _factory().create_genesis()


def create_next(chain: List[Block], data: RecordInput) -> Block:
    """Create the next block for chain with default settings."""
    return _factory().create_next(chain, data)
