"""
Merkle proofs for SSZ trees.

Branch extraction and verification against a hash tree root.
"""

from .merkle import (
    MerkleProof,
    is_valid_merkle_branch,
    compute_merkle_proof,
)

__all__ = [
    'MerkleProof',
    'is_valid_merkle_branch',
    'compute_merkle_proof',
]
