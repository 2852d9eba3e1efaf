"""
Composite SSZ Kinds

Each kind applies one fixed merkleization policy:

    Container   merkleize(field roots)
    Vector      merkleize(pack(elements))           basic elements
                merkleize(element roots)            composite elements
    List        mix_in_length(merkleize(..., limit), len)
    Bitvector   merkleize(pack_bits(bits), limit=ceil(N/256))
    Bitlist     mix_in_length(merkleize(pack_bits(bits), limit=ceil(L/256)), len)
    Union       mix_in_selector(root(value), selector)

Every kind owns a MerkleCache over its chunk positions. Assignments mark
the touched chunk dirty; appends and pops drop the cache. Basic values are
immutable, so nothing else can change a packed chunk. Composite children
are mutable and cache their own roots, so parents re-read every child root
on each call and the cache re-hashes only the paths whose roots moved.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, Iterator, Optional, Sequence, Type

from .types import BITS_PER_CHUNK, BYTES_PER_CHUNK, LeafCount, Merkleized, Node
from .context import Context
from .errors import InputExceedsLimitError
from .packing import pack, pack_bits
from .merkleize import mix_in_length, mix_in_selector
from .cache import MerkleCache


def _normalize_index(index: int, length: int) -> int:
    if not -length <= index < length:
        raise IndexError(f"Index {index} out of range for length {length}")
    return index % length


# =============================================================================
# CONTAINER
# =============================================================================

class Container(Merkleized):
    """
    Ordered named fields, each any Merkleized value.

    The field set is fixed at construction; fields are read and assigned by
    name with item access.
    """

    def __init__(self, fields: Dict[str, Merkleized]):
        if not fields:
            raise ValueError("Container must have at least one field")
        for name, value in fields.items():
            if not isinstance(value, Merkleized):
                raise TypeError(f"Field {name!r} is not a Merkleized value")
        self._fields: Dict[str, Merkleized] = dict(fields)
        self._positions = {name: i for i, name in enumerate(self._fields)}
        self._cache = MerkleCache()

    def __getitem__(self, name: str) -> Merkleized:
        return self._fields[name]

    def __setitem__(self, name: str, value: Merkleized) -> None:
        if name not in self._fields:
            raise KeyError(name)
        if not isinstance(value, Merkleized):
            raise TypeError(f"Field {name!r} is not a Merkleized value")
        self._fields[name] = value
        self._cache.invalidate(self._positions[name])

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def items(self):
        return self._fields.items()

    def hash_tree_root(self, context: Context) -> Node:
        values = list(self._fields.values())
        self._cache.invalidate_many(
            i for i, value in enumerate(values) if not value.is_basic()
        )
        return self._cache.root(
            len(values),
            LeafCount.for_chunks(len(values)),
            lambda i: bytes(values[i].hash_tree_root(context)),
            context
        )

    def __repr__(self) -> str:
        inner = ', '.join(f"{k}={v!r}" for k, v in self._fields.items())
        return f"Container({inner})"


# =============================================================================
# HOMOGENEOUS SEQUENCES
# =============================================================================

class _ElementSequence(Merkleized):
    """Shared storage and chunk layout for Vector and List."""

    def __init__(self, elem_type: Type[Merkleized], elements: Iterable[Any]):
        if not (isinstance(elem_type, type) and issubclass(elem_type, Merkleized)):
            raise TypeError(f"Element type must be a Merkleized subclass, got {elem_type!r}")
        if elem_type.is_basic() and BYTES_PER_CHUNK % elem_type.BYTE_LENGTH:
            raise ValueError(f"Basic size {elem_type.BYTE_LENGTH} does not divide a chunk")
        self.elem_type = elem_type
        self._elements = [self._coerce(e) for e in elements]
        self._cache = MerkleCache()

    def _coerce(self, value: Any) -> Merkleized:
        if isinstance(value, self.elem_type):
            return value
        if self.elem_type.is_basic():
            return self.elem_type(value)
        raise TypeError(f"Expected {self.elem_type.__name__}, got {type(value).__name__}")

    @property
    def _per_chunk(self) -> int:
        return BYTES_PER_CHUNK // self.elem_type.BYTE_LENGTH

    def _chunk_index(self, index: int) -> int:
        if self.elem_type.is_basic():
            return index // self._per_chunk
        return index

    def _chunk_count(self) -> int:
        if self.elem_type.is_basic():
            return -(-len(self._elements) // self._per_chunk)
        return len(self._elements)

    def _chunk(self, chunk_index: int, context: Context) -> bytes:
        if self.elem_type.is_basic():
            start = chunk_index * self._per_chunk
            return pack(self._elements[start:start + self._per_chunk])
        return bytes(self._elements[chunk_index].hash_tree_root(context))

    def _elements_root(self, leaf_count: LeafCount, context: Context) -> Node:
        if not self.elem_type.is_basic():
            self._cache.invalidate_many(range(len(self._elements)))
        return self._cache.root(
            self._chunk_count(),
            leaf_count,
            lambda i: self._chunk(i, context),
            context
        )

    def __getitem__(self, index: int) -> Merkleized:
        return self._elements[index]

    def __setitem__(self, index: int, value: Any) -> None:
        index = _normalize_index(index, len(self._elements))
        self._elements[index] = self._coerce(value)
        self._cache.invalidate(self._chunk_index(index))

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[Merkleized]:
        return iter(self._elements)


class Vector(_ElementSequence):
    """Fixed-length homogeneous sequence."""

    def __init__(self, elem_type: Type[Merkleized], elements: Iterable[Any]):
        super().__init__(elem_type, elements)
        if not self._elements:
            raise ValueError("Vector length must be at least 1")

    def hash_tree_root(self, context: Context) -> Node:
        return self._elements_root(LeafCount.for_chunks(self._chunk_count()), context)

    def __repr__(self) -> str:
        return f"Vector[{self.elem_type.__name__}, {len(self)}]({self._elements!r})"


class List(_ElementSequence):
    """Variable-length homogeneous sequence with a declared maximum length."""

    def __init__(self, elem_type: Type[Merkleized], limit: int, elements: Iterable[Any] = ()):
        if limit < 0:
            raise ValueError(f"List limit must be non-negative, got {limit}")
        self.limit = limit
        super().__init__(elem_type, elements)
        if len(self._elements) > limit:
            raise InputExceedsLimitError(limit)

    @property
    def chunk_limit(self) -> int:
        if self.elem_type.is_basic():
            return -(-self.limit * self.elem_type.BYTE_LENGTH // BYTES_PER_CHUNK)
        return self.limit

    def append(self, value: Any) -> None:
        if len(self._elements) >= self.limit:
            raise InputExceedsLimitError(self.limit)
        self._elements.append(self._coerce(value))
        self._cache.invalidate_all()

    def pop(self, index: int = -1) -> Merkleized:
        value = self._elements.pop(index)
        self._cache.invalidate_all()
        return value

    def clear(self) -> None:
        self._elements.clear()
        self._cache.invalidate_all()

    def hash_tree_root(self, context: Context) -> Node:
        root = self._elements_root(LeafCount.for_chunks(self.chunk_limit), context)
        return mix_in_length(root, len(self._elements), context)

    def __repr__(self) -> str:
        return f"List[{self.elem_type.__name__}, {self.limit}]({self._elements!r})"


# =============================================================================
# BIT SEQUENCES
# =============================================================================

class _BitSequence(Merkleized):
    """Shared storage and chunk layout for Bitvector and Bitlist."""

    def __init__(self, bits: Iterable[bool]):
        self._bits = [bool(b) for b in bits]
        self._cache = MerkleCache()

    def _chunk_count(self) -> int:
        return -(-len(self._bits) // BITS_PER_CHUNK)

    def _chunk(self, chunk_index: int) -> bytes:
        start = chunk_index * BITS_PER_CHUNK
        return pack_bits(self._bits[start:start + BITS_PER_CHUNK])

    def _bits_root(self, chunk_limit: int, context: Context) -> Node:
        return self._cache.root(
            self._chunk_count(),
            LeafCount.for_chunks(chunk_limit),
            self._chunk,
            context
        )

    def __getitem__(self, index: int) -> bool:
        return self._bits[index]

    def __setitem__(self, index: int, value: bool) -> None:
        index = _normalize_index(index, len(self._bits))
        self._bits[index] = bool(value)
        self._cache.invalidate(index // BITS_PER_CHUNK)

    def __len__(self) -> int:
        return len(self._bits)

    def __iter__(self) -> Iterator[bool]:
        return iter(self._bits)


class Bitvector(_BitSequence):
    """Fixed-length sequence of bits."""

    def __init__(self, bits: Sequence[bool]):
        super().__init__(bits)
        if not self._bits:
            raise ValueError("Bitvector length must be at least 1")

    def hash_tree_root(self, context: Context) -> Node:
        return self._bits_root(self._chunk_count(), context)

    def __repr__(self) -> str:
        return f"Bitvector[{len(self)}]({''.join('1' if b else '0' for b in self._bits)})"


class Bitlist(_BitSequence):
    """Variable-length sequence of bits with a declared maximum length."""

    def __init__(self, limit: int, bits: Iterable[bool] = ()):
        if limit < 0:
            raise ValueError(f"Bitlist limit must be non-negative, got {limit}")
        self.limit = limit
        super().__init__(bits)
        if len(self._bits) > limit:
            raise InputExceedsLimitError(limit)

    def append(self, bit: bool) -> None:
        if len(self._bits) >= self.limit:
            raise InputExceedsLimitError(self.limit)
        self._bits.append(bool(bit))
        self._cache.invalidate_all()

    def pop(self, index: int = -1) -> bool:
        bit = self._bits.pop(index)
        self._cache.invalidate_all()
        return bit

    def hash_tree_root(self, context: Context) -> Node:
        chunk_limit = -(-self.limit // BITS_PER_CHUNK)
        root = self._bits_root(chunk_limit, context)
        return mix_in_length(root, len(self._bits), context)

    def __repr__(self) -> str:
        return f"Bitlist[{self.limit}]({''.join('1' if b else '0' for b in self._bits)})"


# =============================================================================
# UNION
# =============================================================================

MAX_UNION_SELECTOR = 127


class Union(Merkleized):
    """
    Tagged union: a selector and the value of the active variant.

    Selector 0 may carry None, the empty variant, which hashes as a zero
    Node.
    """

    def __init__(self, selector: int, value: Optional[Merkleized]):
        if not 0 <= selector <= MAX_UNION_SELECTOR:
            raise ValueError(f"Union selector must be in [0, {MAX_UNION_SELECTOR}], got {selector}")
        if value is None and selector != 0:
            raise ValueError("Only selector 0 may hold the empty variant")
        if value is not None and not isinstance(value, Merkleized):
            raise TypeError("Union value must be a Merkleized value or None")
        self.selector = selector
        self.value = value

    def hash_tree_root(self, context: Context) -> Node:
        if self.value is None:
            root = Node()
        else:
            root = self.value.hash_tree_root(context)
        return mix_in_selector(root, self.selector, context)

    def __repr__(self) -> str:
        return f"Union({self.selector}, {self.value!r})"
