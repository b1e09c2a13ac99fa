"""
Configuration management for MerkleProof.

Handles loading and validation of configuration files.
"""

from merkleproof.config.settings import (
    LoggingConfig,
    MerkleConfig,
    MerkleProofConfig,
    get_default_config,
    get_default_config_path,
    load_config,
)

__all__ = [
    "LoggingConfig",
    "MerkleConfig",
    "MerkleProofConfig",
    "get_default_config",
    "get_default_config_path",
    "load_config",
]
