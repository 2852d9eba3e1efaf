"""
Merkle Branch Proofs

Inclusion proofs for trees built by the merkleizer:
- Extracting the branch (authentication path) for any leaf position
- Verifying a leaf against a root with a supplied branch

Bit i of the leaf index says whether the node at level i is a right child:

    bit set:    node = H(branch[i] ‖ node)
    bit clear:  node = H(node ‖ branch[i])

Verification needs no Context; every sibling is part of the proof.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from ..types import BYTES_PER_CHUNK, LeafCount, Node
from ..context import Context
from ..errors import InputExceedsLimitError, PartialChunkError
from ..merkleize import hash_nodes
from ..cache import MerkleCache


NodeLike = Union[Node, bytes]


def _node_bytes(value: NodeLike, name: str) -> bytes:
    data = bytes(value)
    if len(data) != BYTES_PER_CHUNK:
        raise ValueError(f"{name} must be {BYTES_PER_CHUNK} bytes, got {len(data)}")
    return data


def is_valid_merkle_branch(
    leaf: NodeLike,
    branch: Sequence[NodeLike],
    depth: int,
    index: int,
    root: NodeLike
) -> bool:
    """
    Check that `leaf` sits at position `index` of the tree with `root`.

    Args:
        leaf: The claimed leaf chunk
        branch: Sibling nodes, lowest level first
        depth: Number of levels between leaf and root
        index: Leaf position within its level
        root: Expected root

    Raises:
        ValueError: branch does not hold exactly `depth` nodes
    """
    if len(branch) != depth:
        raise ValueError(f"Branch has {len(branch)} nodes, expected {depth}")

    value = _node_bytes(leaf, "leaf")
    for i in range(depth):
        sibling = _node_bytes(branch[i], f"branch[{i}]")
        if (index >> i) & 1:
            value = hash_nodes(sibling, value)
        else:
            value = hash_nodes(value, sibling)

    return value == _node_bytes(root, "root")


@dataclass
class MerkleProof:
    """Authentication path for one leaf of a Merkle tree."""
    leaf: Node
    branch: List[Node]
    index: int

    @property
    def depth(self) -> int:
        return len(self.branch)

    def verify(self, root: NodeLike) -> bool:
        """Verify this proof against a root."""
        return is_valid_merkle_branch(
            self.leaf, self.branch, self.depth, self.index, root
        )

    def serialize(self) -> bytes:
        """Serialize proof to bytes."""
        parts = [
            self.index.to_bytes(8, 'big'),
            self.depth.to_bytes(4, 'big'),
            bytes(self.leaf),
        ]
        parts.extend(bytes(node) for node in self.branch)
        return b''.join(parts)

    @classmethod
    def deserialize(cls, data: bytes) -> 'MerkleProof':
        """Deserialize proof from bytes."""
        if len(data) < 12 + BYTES_PER_CHUNK:
            raise ValueError(f"Proof too short: {len(data)} bytes")

        index = int.from_bytes(data[0:8], 'big')
        depth = int.from_bytes(data[8:12], 'big')
        expected = 12 + BYTES_PER_CHUNK * (depth + 1)
        if len(data) != expected:
            raise ValueError(f"Proof of depth {depth} must be {expected} bytes, got {len(data)}")

        offset = 12
        leaf = Node(data[offset:offset + BYTES_PER_CHUNK])
        offset += BYTES_PER_CHUNK

        branch = []
        for _ in range(depth):
            branch.append(Node(data[offset:offset + BYTES_PER_CHUNK]))
            offset += BYTES_PER_CHUNK

        return cls(leaf=leaf, branch=branch, index=index)


def compute_merkle_proof(
    chunks: bytes,
    index: int,
    context: Context,
    limit: Optional[int] = None
) -> MerkleProof:
    """
    Generate the proof for leaf `index` of merkleize(chunks, limit).

    Positions past the real chunks are valid and prove a zero chunk.

    Raises:
        PartialChunkError: chunks is not chunk-aligned
        InputExceedsLimitError: more chunks than limit
        IndexError: index outside the tree
    """
    if len(chunks) % BYTES_PER_CHUNK != 0:
        raise PartialChunkError(len(chunks))

    chunk_count = len(chunks) // BYTES_PER_CHUNK
    if limit is not None and limit < chunk_count:
        raise InputExceedsLimitError(limit)
    leaf_count = LeafCount.for_chunks(chunk_count if limit is None else limit)

    cache = MerkleCache()
    cache.root(
        chunk_count,
        leaf_count,
        lambda i: chunks[i * BYTES_PER_CHUNK:(i + 1) * BYTES_PER_CHUNK],
        context
    )
    branch = cache.branch(index, leaf_count, context)
    return MerkleProof(leaf=Node(cache.leaf(index)), branch=branch, index=index)
