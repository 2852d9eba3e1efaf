"""
Incremental Hash Cache

A per-value dirty-bit tree over chunk positions. The first root
computation stores every real node of the tree; later computations re-read
only the chunks marked dirty and re-hash only the paths from the chunks that
actually changed up to the root.

Levels above the real data are stored as a single-node spine:

    spine_{k+1} = H(spine_k ‖ Z_k)

so the cached levels always reach the leaf count's depth and the root is
always layers[depth][0].

A cache belongs to exactly one value and is not thread-safe.
"""

from __future__ import annotations
import logging
from typing import Callable, Iterable, List, Optional, Set

from .types import BYTES_PER_CHUNK, LeafCount, Node
from .context import Context
from .merkleize import hash_nodes

logger = logging.getLogger(__name__)


ChunkSource = Callable[[int], bytes]


class MerkleCache:
    """
    Cached Merkle levels for one value.

    Leaves are addressed by chunk index. Mutations mark chunks dirty with
    invalidate(); changes to the number of chunks call invalidate_all().
    """

    def __init__(self):
        self._layers: List[List[bytes]] = []
        self._leaf_count: Optional[LeafCount] = None
        self._dirty: Set[int] = set()

    @property
    def is_valid(self) -> bool:
        return self._leaf_count is not None

    @property
    def dirty(self) -> Set[int]:
        return set(self._dirty)

    def invalidate(self, index: int) -> None:
        """Mark the chunk at index as changed."""
        if index < 0:
            raise IndexError(f"Chunk index must be non-negative, got {index}")
        self._dirty.add(index)

    def invalidate_many(self, indices: Iterable[int]) -> None:
        for index in indices:
            self.invalidate(index)

    def invalidate_all(self) -> None:
        """Drop every cached node; the next root() rebuilds from scratch."""
        self._layers = []
        self._leaf_count = None
        self._dirty.clear()

    def root(
        self,
        chunk_count: int,
        leaf_count: LeafCount,
        get_chunk: ChunkSource,
        context: Context
    ) -> Node:
        """
        Root of the tree over chunk_count chunks padded to leaf_count leaves.

        Args:
            chunk_count: Number of real chunks in the value
            leaf_count: Tree width (from the value's limit or chunk count)
            get_chunk: Returns the 32-byte chunk at a given index
            context: Shared zero-hash Context
        """
        if chunk_count > leaf_count.value:
            raise ValueError(
                f"{chunk_count} chunks do not fit in {leaf_count.value} leaves"
            )

        if (
            not self.is_valid
            or self._leaf_count != leaf_count
            or len(self._layers[0]) != chunk_count
        ):
            self._rebuild(chunk_count, leaf_count, get_chunk, context)
        elif self._dirty:
            self._refresh(get_chunk, context)

        top = self._layers[leaf_count.depth]
        if not top:
            return context.zero_node(leaf_count.depth)
        return Node(top[0])

    def branch(self, index: int, leaf_count: LeafCount, context: Context) -> List[Node]:
        """
        Sibling nodes from leaf `index` up to the root, lowest first.

        Requires a root() computed with the same leaf_count. Siblings beyond
        the real data are zero-subtree hashes.
        """
        if not self.is_valid or self._leaf_count != leaf_count:
            raise RuntimeError("Cache has no tree for this leaf count; call root() first")
        if self._dirty:
            raise RuntimeError("Cache has pending changes; call root() first")
        if not 0 <= index < leaf_count.value:
            raise IndexError(f"Index {index} out of range [0, {leaf_count.value})")

        branch = []
        for k in range(leaf_count.depth):
            sibling = (index >> k) ^ 1
            layer = self._layers[k]
            if sibling < len(layer):
                branch.append(Node(layer[sibling]))
            else:
                branch.append(context.zero_node(k))
        return branch

    def leaf(self, index: int) -> bytes:
        """Cached chunk at index, or the zero chunk past the real data."""
        if not self.is_valid:
            raise RuntimeError("Cache is empty; call root() first")
        layer = self._layers[0]
        if index < len(layer):
            return layer[index]
        return bytes(BYTES_PER_CHUNK)

    def _parent(self, k: int, parent_index: int, context: Context) -> bytes:
        """Recompute node parent_index of level k from level k-1."""
        children = self._layers[k - 1]
        left = children[2 * parent_index]
        right_index = 2 * parent_index + 1
        if right_index < len(children):
            right = children[right_index]
        else:
            right = context[k - 1]
        return hash_nodes(left, right)

    def _rebuild(
        self,
        chunk_count: int,
        leaf_count: LeafCount,
        get_chunk: ChunkSource,
        context: Context
    ) -> None:
        leaves = []
        for i in range(chunk_count):
            chunk = bytes(get_chunk(i))
            if len(chunk) != BYTES_PER_CHUNK:
                raise ValueError(f"Chunk {i} has length {len(chunk)}, expected {BYTES_PER_CHUNK}")
            leaves.append(chunk)

        self._layers = [leaves]
        for k in range(1, leaf_count.depth + 1):
            width = (len(self._layers[k - 1]) + 1) // 2
            self._layers.append([])
            for p in range(width):
                self._layers[k].append(self._parent(k, p, context))

        self._leaf_count = leaf_count
        self._dirty.clear()
        logger.debug(
            "Rebuilt cache: %d chunks, depth %d", chunk_count, leaf_count.depth
        )

    def _refresh(self, get_chunk: ChunkSource, context: Context) -> None:
        leaves = self._layers[0]

        # All reads complete before any cached node changes, so a failing
        # chunk source leaves the cache and its dirty set as they were
        fresh = {}
        for index in self._dirty:
            if index >= len(leaves):
                continue
            chunk = bytes(get_chunk(index))
            if len(chunk) != BYTES_PER_CHUNK:
                raise ValueError(
                    f"Chunk {index} has length {len(chunk)}, expected {BYTES_PER_CHUNK}"
                )
            fresh[index] = chunk

        changed = set()
        for index, chunk in fresh.items():
            if chunk != leaves[index]:
                leaves[index] = chunk
                changed.add(index)
        self._dirty.clear()

        rehashed = 0
        for k in range(1, len(self._layers)):
            if not changed:
                break
            changed = {i // 2 for i in changed}
            for p in changed:
                self._layers[k][p] = self._parent(k, p, context)
            rehashed += len(changed)

        logger.debug("Refreshed cache: %d nodes re-hashed", rehashed)
