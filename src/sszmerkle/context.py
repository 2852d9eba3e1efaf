"""
Zero-Hash Context

Precomputed roots of all-zero subtrees, one per height:

    Z_0     = 0^32
    Z_{i+1} = SHA256(Z_i ‖ Z_i)

The table is built once and only read afterwards, so one Context can be
shared across threads and across every hash_tree_root call.
"""

import hashlib
import logging

from .types import BYTES_PER_CHUNK, MAX_MERKLE_TREE_DEPTH, Node

logger = logging.getLogger(__name__)


def _compute_zero_hashes() -> bytes:
    buffer = bytearray(MAX_MERKLE_TREE_DEPTH * BYTES_PER_CHUNK)
    for i in range(MAX_MERKLE_TREE_DEPTH - 1):
        source = buffer[i * BYTES_PER_CHUNK:(i + 1) * BYTES_PER_CHUNK]
        h = hashlib.sha256()
        h.update(source)
        h.update(source)
        buffer[(i + 1) * BYTES_PER_CHUNK:(i + 2) * BYTES_PER_CHUNK] = h.digest()
    return bytes(buffer)


class Context:
    """
    Immutable table of zero-subtree hashes.

    context[depth] is the root of a perfect tree of height `depth` whose
    leaves are all zero chunks.
    """

    __slots__ = ('_zero_hashes',)

    def __init__(self):
        object.__setattr__(self, '_zero_hashes', _compute_zero_hashes())
        logger.debug("Computed %d zero-subtree hashes", MAX_MERKLE_TREE_DEPTH)

    def __setattr__(self, name, value):
        raise AttributeError("Context is immutable")

    def __getitem__(self, depth: int) -> bytes:
        if not 0 <= depth < MAX_MERKLE_TREE_DEPTH:
            raise IndexError(
                f"Depth {depth} out of range [0, {MAX_MERKLE_TREE_DEPTH})"
            )
        return self._zero_hashes[depth * BYTES_PER_CHUNK:(depth + 1) * BYTES_PER_CHUNK]

    def __len__(self) -> int:
        return MAX_MERKLE_TREE_DEPTH

    def zero_node(self, depth: int) -> Node:
        return Node(self[depth])

    def __repr__(self) -> str:
        return "Context(zero_hashes=...)"
