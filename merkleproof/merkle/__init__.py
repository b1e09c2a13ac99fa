"""
Merkle tree construction, proof generation, and verification.

This module provides sorted-pair Merkle trees over static leaf sets and
single-leaf membership proofs that verify without access to the tree.
"""

from merkleproof.merkle.hashing import (
    HASH_FUNCTIONS,
    get_hash_function,
    hash_record,
    hash_records,
    keccak256,
    sha256,
)
from merkleproof.merkle.tree import (
    MerkleTree,
    OddNodePolicy,
    TreeBuilder,
    build_tree,
    canonical_order,
)
from merkleproof.merkle.proof import (
    MerkleProof,
    ProofEngine,
    ProofStep,
    Side,
    prove_membership,
    verify_proof,
)

__all__ = [
    "HASH_FUNCTIONS",
    "get_hash_function",
    "hash_record",
    "hash_records",
    "keccak256",
    "sha256",
    "MerkleTree",
    "OddNodePolicy",
    "TreeBuilder",
    "build_tree",
    "canonical_order",
    "MerkleProof",
    "ProofEngine",
    "ProofStep",
    "Side",
    "prove_membership",
    "verify_proof",
]
