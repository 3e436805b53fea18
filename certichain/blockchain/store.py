"""
Certificate Ledger Store

The single owner of a chain and its only mutation surface:

    issue / append   add a block at the tail
    tamper           simulate an edit of a block's payload
    repair           re-mine the chain from an index onwards

and query surface:

    validate / validate_async, lookup, statuses, summary

Mutations are serialized by one lock. Each mutation builds the complete new
chain list first and publishes it with a single assignment; published lists
are never modified afterwards. Readers take the current list reference and
work on it without locking, so they only ever see committed states.

Author: CertiChain Project
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional

from ..config import LedgerSettings
from ..integration.event_logger import LedgerEventLog
from ..integration.narrator import ChainSummary, build_summary
from .errors import PreconditionError, ValidationError
from .factory import BlockFactory
from .records import Block, BlockStatus, RecordInput
from .repairer import ChainRepairer
from .tamper import apply_tamper
from .validator import ChainValidator, LookupResult, ValidationResult, normalize_hash

logger = logging.getLogger(__name__)


class CertificateLedger:
    """
    Tamper-evident certificate ledger.

    Starts with a genesis block. Blocks are only ever added at the tail;
    tamper and repair replace blocks in place of their index.
    """

    def __init__(
        self,
        settings: Optional[LedgerSettings] = None,
        factory: Optional[BlockFactory] = None,
        event_log: Optional[LedgerEventLog] = None
    ):
        """
        Args:
            settings: Ledger settings, defaults to LedgerSettings()
            factory: Block factory; its hasher is used for every check
            event_log: Audit trail, a fresh one is created if omitted
        """
        self.settings = settings or LedgerSettings()
        self._factory = factory or BlockFactory(self.settings)
        hasher = self._factory.hasher
        self._validator = ChainValidator(hasher, verify_genesis=self.settings.verify_genesis)
        self._repairer = ChainRepairer(hasher)
        self._events = event_log if event_log is not None else LedgerEventLog()

        self._lock = threading.RLock()
        self._executor: Optional[ThreadPoolExecutor] = None

        genesis = self._factory.create_genesis()
        self._chain: List[Block] = [genesis]
        self._events.log_genesis(genesis.hash)
        logger.info("Ledger initialized with genesis %s", genesis.hash[:16])

    # ========================================================================
    # Read-only views
    # ========================================================================

    @property
    def chain(self) -> List[Block]:
        """Copy of the committed chain."""
        return list(self._chain)

    @property
    def length(self) -> int:
        return len(self._chain)

    def __len__(self) -> int:
        return len(self._chain)

    @property
    def last_block(self) -> Block:
        return self._chain[-1]

    @property
    def events(self) -> LedgerEventLog:
        return self._events

    @property
    def validator(self) -> ChainValidator:
        return self._validator

    def block(self, index: int) -> Block:
        """
        Get a block by index.

        Raises:
            PreconditionError: If index is out of range
        """
        chain = self._chain
        if not 0 <= index < len(chain):
            raise PreconditionError(f"No block at index {index}")
        return chain[index]

    # ========================================================================
    # Mutations
    # ========================================================================

    def _commit(self, new_chain: List[Block]) -> None:
        self._chain = new_chain

    def issue(self, data: RecordInput) -> Block:
        """
        Issue a certificate: build the next block and append it.

        Raises:
            ValidationError: If data is not record-shaped, or student_name or
                degree is missing
            HashComputationError: If the block cannot be hashed
        """
        with self._lock:
            chain = self._chain
            try:
                block = self._factory.create_next(chain, data)
            except ValidationError as exc:
                self._events.log_rejected(str(exc))
                logger.warning("Issuance rejected: %s", exc)
                raise
            self._commit(chain + [block])

        self._events.log_issued(block.index, block.data.student_name, block.hash)
        logger.info("Issued certificate block #%d (%s)", block.index, block.hash[:16])
        return block

    def append(self, block: Block) -> Block:
        """
        Append a block built elsewhere.

        The block must extend the current tail: its index must equal the
        chain length, its previous_hash the tail hash, and its hash must
        match its content.

        Raises:
            PreconditionError: If the block does not extend the tail
        """
        with self._lock:
            chain = self._chain
            expected_index = len(chain)
            tail_hash = chain[-1].hash
            if block.index != expected_index:
                raise PreconditionError(
                    f"Expected block index {expected_index}, got {block.index}"
                )
            if block.previous_hash != tail_hash:
                raise PreconditionError("Block does not link to the current tail")
            if self._validator.recompute(block) != block.hash:
                raise PreconditionError("Block hash does not match its content")
            self._commit(chain + [block])

        self._events.log_issued(block.index, block.data.student_name, block.hash)
        logger.info("Appended block #%d (%s)", block.index, block.hash[:16])
        return block

    def tamper(self, index: int, new_data: RecordInput) -> Block:
        """
        Simulate an attacker editing a stored certificate.

        The chain is left untouched if any argument is rejected.

        Raises:
            PreconditionError: If index is 0 (genesis) or out of range
            ValidationError: If new_data is not record-shaped
        """
        if index == 0:
            raise PreconditionError("The genesis block cannot be tampered with")

        with self._lock:
            new_chain = apply_tamper(self._chain, index, new_data)
            self._commit(new_chain)

        block = new_chain[index]
        self._events.log_tampered(index, block.data.student_name)
        logger.warning("Block #%d tampered; stored hash is now stale", index)
        return block

    def repair(self, from_index: int) -> List[Block]:
        """
        Re-mine the chain from from_index to the tail.

        Returns:
            Copy of the repaired chain

        Raises:
            PreconditionError: If from_index is out of range
            HashComputationError: If hashing fails; the chain is unchanged
        """
        with self._lock:
            chain = self._chain
            repaired = self._repairer.repair(chain, from_index)
            self._commit(repaired)

        rehashed = len(repaired) - from_index
        self._events.log_repaired(from_index, rehashed)
        logger.info("Re-mined %d block(s) from #%d", rehashed, from_index)
        return list(repaired)

    # ========================================================================
    # Queries
    # ========================================================================

    def _validate_snapshot(self, chain: List[Block]) -> ValidationResult:
        result = self._validator.validate(chain)
        self._events.log_validation(result.is_valid, result.broken_index, len(chain))
        return result

    def validate(self) -> ValidationResult:
        """Validate the committed chain. Never raises for a broken chain."""
        return self._validate_snapshot(self._chain)

    def validate_async(self) -> 'Future[ValidationResult]':
        """Validate the current snapshot on a worker thread."""
        if self._executor is None:
            with self._lock:
                if self._executor is None:
                    self._executor = ThreadPoolExecutor(
                        max_workers=2, thread_name_prefix="certichain-validate"
                    )
        return self._executor.submit(self._validate_snapshot, self._chain)

    def lookup(self, target_hash: str) -> LookupResult:
        """Find a block by stored hash and re-verify its content."""
        result = self._validator.lookup(self._chain, target_hash)
        self._events.log_lookup(normalize_hash(target_hash), result.found, result.integrity_valid)
        return result

    def statuses(self) -> List[BlockStatus]:
        """Per-block status in chain order."""
        return self._validator.statuses(self._chain)

    def summary(self) -> ChainSummary:
        """Read-only summary handed to the audit narrative collaborator."""
        chain = self._chain
        result = self._validator.validate(chain)
        return build_summary(chain, result.broken_index)

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def close(self) -> None:
        """Shut down the background validation worker, if started."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> 'CertificateLedger':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def print_chain(self) -> None:
        """Print the ledger."""
        chain = self._chain
        statuses = self._validator.statuses(chain)
        print(f"\nCertificate ledger (length={len(chain)})")
        print("=" * 60)
        for block, status in zip(chain, statuses):
            print(block)
            print(f"  Status: {status.value}")
            print("-" * 40)


def create_ledger(settings: Optional[LedgerSettings] = None) -> CertificateLedger:
    """Create a new ledger; settings default to the environment."""
    return CertificateLedger(settings or LedgerSettings.from_env())
