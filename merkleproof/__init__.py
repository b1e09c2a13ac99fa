"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
MerkleProof, a product of Garudex Labs

MerkleProof - Merkle tree membership proofs over static leaf sets

MerkleProof builds sorted-pair Merkle trees from leaf digests, extracts
single-leaf membership proofs, and verifies them against a root without
access to the full tree.
"""

from merkleproof._version import __version__

__all__ = ["__version__"]
