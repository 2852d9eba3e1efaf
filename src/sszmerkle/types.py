"""
Core Types for SSZ Merkleization

Protocol constants, the Node digest type, the power-of-two LeafCount and
the abstract capabilities every hashable value implements.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional
from abc import ABC, abstractmethod

from .errors import SerializationError

if TYPE_CHECKING:
    from .context import Context


# =============================================================================
# PROTOCOL CONSTANTS
# =============================================================================

BYTES_PER_CHUNK = 32
BITS_PER_CHUNK = BYTES_PER_CHUNK * 8

# Zero-hash table height; covers leaf counts up to 2^63
MAX_MERKLE_TREE_DEPTH = 64
MAX_LEAF_COUNT = 1 << (MAX_MERKLE_TREE_DEPTH - 1)


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n, with next_power_of_two(0) == 1."""
    if n < 0:
        raise ValueError(f"Expected a non-negative integer, got {n}")
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


# =============================================================================
# CAPABILITIES
# =============================================================================

class Merkleized(ABC):
    """
    Anything that can produce a hash tree root.

    The Context holds no per-value state, so a single instance can be
    shared by every call for the lifetime of the program.
    """

    # Fixed encoded size for basic types, None for composites
    BYTE_LENGTH: Optional[int] = None

    @classmethod
    def is_basic(cls) -> bool:
        return cls.BYTE_LENGTH is not None

    @abstractmethod
    def hash_tree_root(self, context: 'Context') -> 'Node':
        """Compute the hash tree root of this value."""
        pass


class SimpleSerialize(Merkleized):
    """A Merkleized value that also knows its own byte encoding."""

    @abstractmethod
    def serialize(self) -> bytes:
        """Return the encoded bytes of this value."""
        pass


# =============================================================================
# NODE
# =============================================================================

@dataclass(frozen=True, order=True)
class Node(SimpleSerialize):
    """
    A 32-byte digest.

    Byte-wise equality and ordering; zero-valued by default. A Node is
    itself a basic value whose hash tree root is its own bytes.
    """
    data: bytes = field(default=bytes(BYTES_PER_CHUNK))

    BYTE_LENGTH = BYTES_PER_CHUNK

    def __post_init__(self):
        if not isinstance(self.data, (bytes, bytearray, memoryview)):
            raise TypeError(f"Node data must be bytes, got {type(self.data).__name__}")
        data = bytes(self.data)
        if len(data) != BYTES_PER_CHUNK:
            raise ValueError(f"Node must be {BYTES_PER_CHUNK} bytes, got {len(data)}")
        object.__setattr__(self, 'data', data)

    def __bytes__(self) -> bytes:
        return self.data

    def __len__(self) -> int:
        return BYTES_PER_CHUNK

    def __repr__(self) -> str:
        return f"Node(0x{self.data.hex()})"

    def hex(self) -> str:
        return self.data.hex()

    @classmethod
    def from_hex(cls, value: str) -> 'Node':
        if value.startswith('0x'):
            value = value[2:]
        return cls(bytes.fromhex(value))

    def serialize(self) -> bytes:
        return self.data

    @classmethod
    def deserialize(cls, data: bytes) -> 'Node':
        """Rebuild a Node from its 32-byte encoding."""
        if len(data) != BYTES_PER_CHUNK:
            raise SerializationError(
                f"Node encoding must be {BYTES_PER_CHUNK} bytes, got {len(data)}"
            )
        return cls(bytes(data))

    def hash_tree_root(self, context: 'Context') -> 'Node':
        return self


# =============================================================================
# LEAF COUNT
# =============================================================================

@dataclass(frozen=True)
class LeafCount:
    """
    Number of leaves in a Merkle tree; always an exact power of two.

    Build it with for_chunks() or directly from a known power of two.
    Construction rejects anything else, so the tree algorithms never have
    to re-check it.
    """
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"Leaf count must be an int, got {type(self.value).__name__}")
        if self.value < 1 or self.value & (self.value - 1):
            raise ValueError(f"Leaf count must be a power of two, got {self.value}")
        if self.value > MAX_LEAF_COUNT:
            raise ValueError(
                f"Leaf count {self.value} exceeds maximum 2^{MAX_MERKLE_TREE_DEPTH - 1}"
            )

    @classmethod
    def for_chunks(cls, chunk_count: int) -> 'LeafCount':
        """Leaf count of the smallest tree holding chunk_count chunks."""
        return cls(next_power_of_two(chunk_count))

    @property
    def depth(self) -> int:
        """log2 of the leaf count; the number of levels above the leaves."""
        return self.value.bit_length() - 1

    def __int__(self) -> int:
        return self.value
