"""
Tamper Simulator

Replaces a block's payload without recomputing its hash, the way an
attacker editing the stored record would. The stored hash goes stale, so
the next validation reports the block as broken.
"""

import dataclasses
import logging
from typing import List

from .errors import PreconditionError, ValidationError
from .records import Block, CertificateRecord, RecordInput

logger = logging.getLogger(__name__)


def apply_tamper(chain: List[Block], index: int, new_data: RecordInput) -> List[Block]:
    """
    Swap the data of chain[index] and flag it as tampered.

    hash, previous_hash, timestamp and nonce are left as they were. The
    genesis block is not protected here; the store refuses to tamper it.

    Args:
        chain: Current chain
        index: Block to edit
        new_data: Replacement payload, as a record or a mapping of its fields

    Returns:
        New chain list containing the edited block

    Raises:
        PreconditionError: If index is out of range
        ValidationError: If new_data is not record-shaped
    """
    if isinstance(index, bool) or not isinstance(index, int):
        raise PreconditionError(f"index must be an int, got {index!r}")
    if not 0 <= index < len(chain):
        raise PreconditionError(
            f"index {index} out of range for chain of length {len(chain)}"
        )
    if new_data is None:
        raise ValidationError("Replacement certificate data is required")
    new_data = CertificateRecord.coerce(new_data)

    tampered = list(chain)
    tampered[index] = dataclasses.replace(
        chain[index], data=new_data, is_tampered=True
    )
    logger.debug("Block #%d payload replaced, hash left stale", index)
    return tampered

