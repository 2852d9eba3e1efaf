"""
sszmerkle: SSZ Merkleization

Hash tree roots for SSZ values:
- Pack encoded values into 32-byte chunks
- Merkleize with virtual zero padding (declared capacities up to 2^63 leaves)
- Mix in lengths and union selectors
- Cache subtree roots so repeated hashing only touches what changed
- Prove and verify leaf inclusion with Merkle branches

Usage:
    from sszmerkle import Context, merkleize, pack, Uint16, List

    context = Context()  # build once, share everywhere

    # Raw chunks
    root = merkleize(pack([Uint16(1), Uint16(2)]), None, context)

    # Typed values
    values = List(Uint16, 1024, [1, 2, 3])
    root = values.hash_tree_root(context)
    values[0] = 7
    root = values.hash_tree_root(context)  # re-hashes one path
"""

# Types
from .types import (
    BYTES_PER_CHUNK,
    BITS_PER_CHUNK,
    MAX_MERKLE_TREE_DEPTH,
    Merkleized,
    SimpleSerialize,
    Node,
    LeafCount,
    next_power_of_two,
)
from .errors import (
    MerkleizationError,
    SerializationError,
    PartialChunkError,
    InputExceedsLimitError,
)
from .context import Context

# Basic values
from .basic import (
    Boolean,
    Uint,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
    Uint128,
    Uint256,
)

# Packing and merkleization
from .packing import pack, pack_bytes, pack_bits
from .merkleize import (
    merkleize,
    merkleize_chunks_with_virtual_padding,
    merkleize_chunks_reference,
    mix_in_length,
    mix_in_selector,
)
from .cache import MerkleCache

# Composite values
from .composite import (
    Container,
    Vector,
    List,
    Bitvector,
    Bitlist,
    Union,
)

# Proofs
from .proof import MerkleProof, is_valid_merkle_branch, compute_merkle_proof

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Types
    "BYTES_PER_CHUNK",
    "BITS_PER_CHUNK",
    "MAX_MERKLE_TREE_DEPTH",
    "Merkleized",
    "SimpleSerialize",
    "Node",
    "LeafCount",
    "next_power_of_two",
    # Errors
    "MerkleizationError",
    "SerializationError",
    "PartialChunkError",
    "InputExceedsLimitError",
    # Context
    "Context",
    # Basic values
    "Boolean",
    "Uint",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
    "Uint128",
    "Uint256",
    # Merkleization
    "pack",
    "pack_bytes",
    "pack_bits",
    "merkleize",
    "merkleize_chunks_with_virtual_padding",
    "merkleize_chunks_reference",
    "mix_in_length",
    "mix_in_selector",
    "MerkleCache",
    # Composite values
    "Container",
    "Vector",
    "List",
    "Bitvector",
    "Bitlist",
    "Union",
    # Proofs
    "MerkleProof",
    "is_valid_merkle_branch",
    "compute_merkle_proof",
]
