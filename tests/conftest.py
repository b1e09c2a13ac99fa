"""
Pytest configuration and shared fixtures for MerkleProof tests.
"""

import os
import tempfile
from pathlib import Path
from typing import Generator, List

import pytest

from merkleproof.merkle.hashing import hash_records, keccak256


WHITELIST = [
    "randomEmail_1_@gmail.com",
    "randomEmail_2_@gmail.com",
    "randomEmail_3_@gmail.com",
]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.

    Yields:
        Path to temporary directory that is cleaned up after test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def whitelist() -> List[str]:
    """The three-address whitelist used by the demo flow."""
    return list(WHITELIST)


@pytest.fixture
def whitelist_leaves(whitelist: List[str]) -> List[bytes]:
    """Keccak-256 leaf digests of the whitelist."""
    return hash_records(whitelist, keccak256)


@pytest.fixture
def whitelist_file(temp_dir: Path, whitelist: List[str]) -> Path:
    """
    Write the whitelist to a file, one record per line.

    Args:
        temp_dir: Temporary directory fixture.

    Returns:
        Path to the records file.
    """
    path = temp_dir / "whitelist.txt"
    path.write_text("\n".join(whitelist) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def sample_config_path(temp_dir: Path) -> Path:
    """
    Create a sample configuration file for testing.

    Args:
        temp_dir: Temporary directory fixture.

    Returns:
        Path to sample config file.
    """
    config_path = temp_dir / "config.yaml"
    config_path.write_text(f"""
merkle:
  hash_algorithm: sha256
  sort_pairs: true
  odd_node_policy: duplicate
  parallel_threshold: 0

logging:
  level: WARNING
  file: {temp_dir}/merkleproof.log
  format: json
""")
    return config_path


# Hypothesis settings for property-based tests
from hypothesis import settings, Verbosity

# Register custom profile for MerkleProof tests
settings.register_profile("merkleproof", max_examples=100, verbosity=Verbosity.normal, deadline=None)
settings.register_profile("merkleproof-ci", max_examples=1000, verbosity=Verbosity.verbose, deadline=None)
settings.register_profile("merkleproof-dev", max_examples=10, verbosity=Verbosity.verbose, deadline=None)

# Load profile from environment or use default
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "merkleproof"))
