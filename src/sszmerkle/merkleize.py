"""
Tree Merkleizer and Decoration Mixer

Binary SHA-256 Merkle tree over 32-byte chunks:
- Parent: H(left ‖ right), no domain tags
- Leaves beyond the data are zero chunks, padded to a power of two
- Variable-length and union types mix a length/selector into the root

Padding is virtual: zero subtrees are read from the Context instead of
being materialized, so a declared capacity of 2^63 leaves costs the same
as the data actually present.
"""

from __future__ import annotations
import hashlib
import logging
from typing import List, Optional

from .types import BYTES_PER_CHUNK, LeafCount, Node
from .context import Context
from .errors import InputExceedsLimitError, PartialChunkError
from .basic import Uint256

logger = logging.getLogger(__name__)


def hash_nodes(left: bytes, right: bytes) -> bytes:
    """H(left ‖ right) with a fresh hasher per call."""
    h = hashlib.sha256()
    h.update(left)
    h.update(right)
    return h.digest()


# =============================================================================
# VIRTUAL PADDING
# =============================================================================

def merkleize_chunks_with_virtual_padding(
    chunks: bytes,
    leaf_count: LeafCount,
    context: Context
) -> Node:
    """
    Root of the tree whose bottom layer is `chunks` padded with zero chunks
    up to `leaf_count` leaves.

    Works in one buffer holding only the real chunks. At each level the
    parent of pair (i, i+1) is written to slot i/2 of the same buffer. Both
    children are fed to the hasher before the write, and slot i/2 is never
    ahead of slot i, so a write only ever lands on nodes already consumed.
    Nodes right of `last_index` are zero subtrees and come from the Context.
    """
    assert len(chunks) % BYTES_PER_CHUNK == 0, "chunks must be chunk-aligned"
    assert isinstance(leaf_count, LeafCount), "leaf_count must be a LeafCount"

    chunk_count = len(chunks) // BYTES_PER_CHUNK
    assert chunk_count <= leaf_count.value, "more chunks than leaves"

    height = leaf_count.depth + 1

    if chunk_count == 0:
        return context.zero_node(height - 1)

    layer = bytearray(chunks)
    last_index = chunk_count - 1

    with memoryview(layer) as view:
        for k in range(height - 1, 0, -1):
            depth = height - k - 1
            for i in range(0, 1 << k, 2):
                if i > last_index:
                    # Everything from here on is virtual
                    break
                left = view[i * BYTES_PER_CHUNK:(i + 1) * BYTES_PER_CHUNK]
                if i < last_index:
                    right = view[(i + 1) * BYTES_PER_CHUNK:(i + 2) * BYTES_PER_CHUNK]
                else:
                    right = context[depth]
                parent_index = i // 2
                view[parent_index * BYTES_PER_CHUNK:(parent_index + 1) * BYTES_PER_CHUNK] = (
                    hash_nodes(left, right)
                )
            last_index //= 2

    return Node(bytes(layer[:BYTES_PER_CHUNK]))


def merkleize(
    chunks: bytes,
    limit: Optional[int],
    context: Context
) -> Node:
    """
    Merkle root of `chunks`.

    Args:
        chunks: Packed chunk buffer (length a multiple of 32)
        limit: Declared maximum chunk count; sets the tree size when given
        context: Shared zero-hash Context

    Raises:
        PartialChunkError: chunks is not chunk-aligned
        InputExceedsLimitError: more chunks than limit
    """
    if len(chunks) % BYTES_PER_CHUNK != 0:
        raise PartialChunkError(len(chunks))

    chunk_count = len(chunks) // BYTES_PER_CHUNK
    if limit is not None:
        if limit < chunk_count:
            logger.debug("%d chunks exceed declared limit %d", chunk_count, limit)
            raise InputExceedsLimitError(limit)
        leaf_count = LeafCount.for_chunks(limit)
    else:
        leaf_count = LeafCount.for_chunks(chunk_count)

    return merkleize_chunks_with_virtual_padding(chunks, leaf_count, context)


def merkleize_chunks_reference(chunks: bytes, leaf_count: LeafCount) -> Node:
    """
    Reference merkleization over a fully materialized tree.

    Pads with explicit zero chunks and hashes every node. Memory and time
    grow with leaf_count, so this only serves as an oracle for small trees.
    """
    assert len(chunks) % BYTES_PER_CHUNK == 0, "chunks must be chunk-aligned"

    zero_chunk = bytes(BYTES_PER_CHUNK)
    current: List[bytes] = [
        chunks[i:i + BYTES_PER_CHUNK]
        for i in range(0, len(chunks), BYTES_PER_CHUNK)
    ]
    current.extend([zero_chunk] * (leaf_count.value - len(current)))

    while len(current) > 1:
        current = [
            hash_nodes(current[i], current[i + 1])
            for i in range(0, len(current), 2)
        ]

    return Node(current[0])


# =============================================================================
# DECORATION
# =============================================================================

def mix_in_decoration(root: Node, decoration: int, context: Context) -> Node:
    """H(root ‖ hash_tree_root(uint256(decoration)))"""
    decoration_root = Uint256(decoration).hash_tree_root(context)
    return Node(hash_nodes(bytes(root), bytes(decoration_root)))


def mix_in_length(root: Node, length: int, context: Context) -> Node:
    """Bind the element count of a variable-length sequence into its root."""
    return mix_in_decoration(root, length, context)


def mix_in_selector(root: Node, selector: int, context: Context) -> Node:
    """Bind a union's active variant index into its root."""
    return mix_in_decoration(root, selector, context)
