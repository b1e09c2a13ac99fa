"""
Command-line interface for MerkleProof.
"""
