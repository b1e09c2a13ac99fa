"""
Exception hierarchy for MerkleProof.

All custom exceptions inherit from MerkleProofError base class.
"""


class MerkleProofError(Exception):
    """Base exception for all MerkleProof errors."""
    pass


# Merkle Tree Errors
class MerkleTreeError(MerkleProofError):
    """Base exception for tree construction and proof generation errors."""
    pass


class EmptyInputError(MerkleTreeError):
    """Raised when a tree is built from an empty leaf sequence."""
    pass


class LeafNotFoundError(MerkleTreeError):
    """Raised when a proof is requested for a leaf that is not in the tree."""
    pass


class InvalidDigestError(MerkleTreeError):
    """Raised when a leaf or digest is not a byte sequence."""
    pass


class InvalidTreeError(MerkleTreeError):
    """Raised when tree levels do not form a well-shaped Merkle tree."""
    pass


# Hashing Errors
class HashingError(MerkleProofError):
    """Base exception for hash function errors."""
    pass


class UnsupportedHashAlgorithmError(HashingError):
    """Raised when a hash algorithm name is not registered."""
    pass


# Configuration Errors
class ConfigurationError(MerkleProofError):
    """Base exception for configuration-related errors."""
    pass


class InvalidConfigurationError(ConfigurationError):
    """Raised when configuration is invalid or malformed."""
    pass
