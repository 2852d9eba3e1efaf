"""
Basic SSZ types.

Fixed-width values that pack directly into chunks. A basic value's hash
tree root is its encoding, zero-padded to a single chunk.
"""

from __future__ import annotations
from dataclasses import dataclass

from .types import SimpleSerialize, Node
from .packing import pack_bytes


class BasicValue(SimpleSerialize):
    """Shared hash_tree_root for values that fit in one chunk."""

    def hash_tree_root(self, context) -> Node:
        return Node(pack_bytes(self.serialize()))


@dataclass(frozen=True)
class Boolean(BasicValue):
    value: bool

    BYTE_LENGTH = 1

    def __post_init__(self):
        if not isinstance(self.value, bool):
            if self.value not in (0, 1):
                raise ValueError(f"Boolean must be True/False, got {self.value!r}")
            object.__setattr__(self, 'value', bool(self.value))

    def serialize(self) -> bytes:
        return b'\x01' if self.value else b'\x00'

    def __bool__(self) -> bool:
        return self.value


@dataclass(frozen=True)
class Uint(BasicValue):
    """
    Unsigned integer of BITS width, little-endian on the wire.

    Use the sized subclasses (Uint8 ... Uint256).
    """
    value: int

    BITS = 0

    def __post_init__(self):
        if type(self) is Uint:
            raise TypeError("Use a sized subclass such as Uint64")
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"{type(self).__name__} needs an int, got {type(self.value).__name__}")
        if not 0 <= self.value < (1 << self.BITS):
            raise ValueError(f"{self.value} does not fit in {type(self).__name__}")

    def serialize(self) -> bytes:
        return self.value.to_bytes(self.BITS // 8, 'little')

    def __int__(self) -> int:
        return self.value

    def __index__(self) -> int:
        return self.value


@dataclass(frozen=True)
class Uint8(Uint):
    BITS = 8
    BYTE_LENGTH = 1


@dataclass(frozen=True)
class Uint16(Uint):
    BITS = 16
    BYTE_LENGTH = 2


@dataclass(frozen=True)
class Uint32(Uint):
    BITS = 32
    BYTE_LENGTH = 4


@dataclass(frozen=True)
class Uint64(Uint):
    BITS = 64
    BYTE_LENGTH = 8


@dataclass(frozen=True)
class Uint128(Uint):
    BITS = 128
    BYTE_LENGTH = 16


@dataclass(frozen=True)
class Uint256(Uint):
    BITS = 256
    BYTE_LENGTH = 32
