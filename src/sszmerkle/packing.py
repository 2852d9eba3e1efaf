"""
Chunk packing.

Produces the leaf layer of a Merkle tree: encoded values laid end to end
and right-padded with zero bytes to a whole number of 32-byte chunks.
"""

from __future__ import annotations
from typing import Iterable, Sequence, Union

from .types import BYTES_PER_CHUNK


def pack_bytes(buffer: Union[bytes, bytearray]) -> Union[bytes, bytearray]:
    """
    Right-pad buffer with zero bytes to a multiple of BYTES_PER_CHUNK.

    A bytearray is padded in place and returned; bytes input returns a new
    bytes object. Already aligned input is returned unchanged.
    """
    remainder = len(buffer) % BYTES_PER_CHUNK
    if remainder == 0:
        return buffer
    padding = bytes(BYTES_PER_CHUNK - remainder)
    if isinstance(buffer, bytearray):
        buffer.extend(padding)
        return buffer
    return bytes(buffer) + padding


def pack(values: Iterable) -> bytes:
    """
    Serialize each value in order and pad the result to a chunk boundary.

    Each value must provide serialize() -> bytes. Failures raised by
    serialize() propagate to the caller unchanged.
    """
    buffer = bytearray()
    for value in values:
        buffer.extend(value.serialize())
    return bytes(pack_bytes(buffer))


def pack_bits(bits: Sequence[bool]) -> bytes:
    """Pack booleans LSB-first into bytes, then pad to a chunk boundary."""
    buffer = bytearray((len(bits) + 7) // 8)
    for i, bit in enumerate(bits):
        if bit:
            buffer[i // 8] |= 1 << (i % 8)
    return bytes(pack_bytes(buffer))
