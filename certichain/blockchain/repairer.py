"""
Chain Repairer

Re-mines a broken suffix of the chain after an edit: the block at
from_index is relinked to its predecessor (or the genesis sentinel) and
rehashed over its current data, then every later block is relinked to the
new hash of the block before it and rehashed, in increasing index order.

Only hash and previous_hash change. Data, timestamp, nonce and the
is_tampered flag are carried over unchanged.

The cascade is built on a copy; the caller's list is never modified, so no
half-repaired chain can be observed.

Author: CertiChain Project
"""

import dataclasses
import logging
from typing import List, Optional

from ..core_crypto.content_hash import BlockHasher
from .errors import PreconditionError
from .records import Block, GENESIS_PREV_HASH

logger = logging.getLogger(__name__)


class ChainRepairer:
    """Recomputes hashes and links from a given index to the chain tail."""

    def __init__(self, hasher: Optional[BlockHasher] = None):
        self.hasher = hasher or BlockHasher()

    def _rehash(self, block: Block, previous_hash: str) -> Block:
        new_hash = self.hasher(
            block.index,
            previous_hash,
            block.timestamp,
            block.data,
            block.nonce,
        )
        return dataclasses.replace(block, previous_hash=previous_hash, hash=new_hash)

    def repair(self, chain: List[Block], from_index: int) -> List[Block]:
        """
        Re-mine chain[from_index:].

        Args:
            chain: Current chain
            from_index: First block to rehash, 0 <= from_index < len(chain)

        Returns:
            New chain list with a consistent suffix

        Raises:
            PreconditionError: If from_index is out of range
            HashComputationError: If any block cannot be hashed; nothing is
                returned in that case
        """
        if isinstance(from_index, bool) or not isinstance(from_index, int):
            raise PreconditionError(f"from_index must be an int, got {from_index!r}")
        if not 0 <= from_index < len(chain):
            raise PreconditionError(
                f"from_index {from_index} out of range for chain of length {len(chain)}"
            )

        repaired = list(chain)
        prior_hash = GENESIS_PREV_HASH if from_index == 0 else repaired[from_index - 1].hash

        for i in range(from_index, len(repaired)):
            repaired[i] = self._rehash(repaired[i], prior_hash)
            prior_hash = repaired[i].hash
            logger.debug("Re-mined block #%d: %s", i, prior_hash)

        return repaired


def repair_chain(chain: List[Block], from_index: int) -> List[Block]:
    """Repair chain from from_index with the default SHA-256 hasher."""
    return ChainRepairer().repair(chain, from_index)
