"""
Chain Validator

Walks the chain checking, for every block after genesis:
1. Link invariant:    block.previous_hash == predecessor.hash
2. Content invariant: block.hash == H(index, previous_hash, timestamp, data, nonce)

The first violation stops the scan and its index is reported. A broken
chain is a normal result, not an exception.

Genesis is the trusted anchor and is not recomputed unless the validator
is built with verify_genesis=True.

Author: CertiChain Project
"""

import logging
from typing import List, NamedTuple, Optional

from ..core_crypto.content_hash import BlockHasher
from .records import Block, BlockStatus, GENESIS_PREV_HASH, NO_BREAK

logger = logging.getLogger(__name__)


# ============================================================================
# Results
# ============================================================================

class ValidationResult(NamedTuple):
    """Outcome of a chain scan. Unpacks as (is_valid, broken_index)."""
    is_valid: bool
    broken_index: int = NO_BREAK


class BlockCheck(NamedTuple):
    """Per-block consistency, as shown on a block card."""
    link_valid: bool
    hash_valid: bool
    recomputed_hash: str

    @property
    def is_valid(self) -> bool:
        return self.link_valid and self.hash_valid


class LookupResult(NamedTuple):
    """Result of a lookup-by-hash. block is None when not found."""
    found: bool
    block: Optional[Block] = None
    integrity_valid: Optional[bool] = None


def normalize_hash(value) -> str:
    """
    Clean up a user-supplied hash for lookup.

    Surrounding whitespace is stripped and ASCII bytes are decoded. Anything
    else that is not text normalizes to "", which never matches a block.
    """
    if isinstance(value, (bytes, bytearray)):
        try:
            value = bytes(value).decode('ascii')
        except UnicodeDecodeError:
            return ""
    if not isinstance(value, str):
        return ""
    return value.strip()


# ============================================================================
# Validator
# ============================================================================

class ChainValidator:
    """
    Read-only integrity checks over a chain.

    Never mutates the chain; safe to run from several threads at once.
    """

    def __init__(self, hasher: Optional[BlockHasher] = None, verify_genesis: bool = False):
        """
        Args:
            hasher: Hasher matching the one that built the chain
            verify_genesis: Also check genesis sentinel and hash
        """
        self.hasher = hasher or BlockHasher()
        self.verify_genesis = verify_genesis

    def recompute(self, block: Block) -> str:
        """Hash a block's current fields."""
        return self.hasher(
            block.index,
            block.previous_hash,
            block.timestamp,
            block.data,
            block.nonce,
        )

    def _genesis_ok(self, genesis: Block) -> bool:
        return (
            genesis.index == 0
            and genesis.is_genesis
            and genesis.previous_hash == GENESIS_PREV_HASH
            and self.recompute(genesis) == genesis.hash
        )

    def validate(self, chain: List[Block]) -> ValidationResult:
        """
        Validate the entire chain.

        Args:
            chain: Blocks in index order

        Returns:
            (True, -1) if every block is consistent, else (False, i) for the
            first block i that breaks the link or content invariant

        Raises:
            HashComputationError: If a block cannot be hashed
        """
        if self.verify_genesis and chain and not self._genesis_ok(chain[0]):
            logger.warning("Genesis block failed verification")
            return ValidationResult(False, 0)

        for i in range(1, len(chain)):
            block = chain[i]
            prev_block = chain[i - 1]

            if block.previous_hash != prev_block.hash:
                logger.warning("Chain broken at block #%d: previous hash mismatch", i)
                return ValidationResult(False, i)

            if self.recompute(block) != block.hash:
                logger.warning("Chain broken at block #%d: content hash mismatch", i)
                return ValidationResult(False, i)

        return ValidationResult(True, NO_BREAK)

    def check_block(self, block: Block, prev_block: Optional[Block] = None) -> BlockCheck:
        """
        Check one block against its predecessor.

        For genesis (prev_block None) the link check is against the "0"
        sentinel.
        """
        expected_prev = prev_block.hash if prev_block is not None else GENESIS_PREV_HASH
        recomputed = self.recompute(block)
        return BlockCheck(
            link_valid=block.previous_hash == expected_prev,
            hash_valid=recomputed == block.hash,
            recomputed_hash=recomputed,
        )

    def block_status(self, block: Block, prev_block: Optional[Block] = None) -> BlockStatus:
        """Classify a block by provenance and current consistency."""
        valid = self.check_block(block, prev_block).is_valid
        if block.is_tampered:
            return BlockStatus.TAMPERED_VALID if valid else BlockStatus.TAMPERED_INVALID
        return BlockStatus.NORMAL if valid else BlockStatus.INVALID

    def statuses(self, chain: List[Block]) -> List[BlockStatus]:
        """Status of every block in chain order."""
        return [
            self.block_status(block, chain[i - 1] if i > 0 else None)
            for i, block in enumerate(chain)
        ]

    def lookup(self, chain: List[Block], target_hash: str) -> LookupResult:
        """
        Find a block by its stored hash and re-verify its content.

        target_hash is cleaned with normalize_hash(); empty or non-text
        input is reported as not found.

        A tampered-but-unrepaired block is still found by its stale stored
        hash, with integrity_valid False.
        """
        target = normalize_hash(target_hash)
        if not target:
            return LookupResult(found=False)

        for block in chain:
            if block.hash == target:
                return LookupResult(
                    found=True,
                    block=block,
                    integrity_valid=self.recompute(block) == block.hash,
                )
        return LookupResult(found=False)


# ============================================================================
# Convenience Functions
# ============================================================================

def validate_chain(chain: List[Block]) -> ValidationResult:
    """Validate chain with the default SHA-256 validator."""
    return ChainValidator().validate(chain)


def lookup(chain: List[Block], target_hash: str) -> LookupResult:
    """Look up a block by hash with the default SHA-256 validator."""
    return ChainValidator().lookup(chain, target_hash)
