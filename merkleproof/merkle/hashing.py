"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
MerkleProof, a product of Garudex Labs

Hash functions and leaf encoding for Merkle trees.

The tree and proof code treat the hash function as an opaque
``Callable[[bytes], bytes]``. This module provides the built-in choices
(Keccak-256 and SHA-256), a name registry used by configuration and the CLI,
and helpers that turn application records into leaf digests.
"""

import hashlib
from typing import Callable, Dict, Iterable, List, Union

from eth_utils import keccak

from merkleproof.exceptions import UnsupportedHashAlgorithmError

HashFunction = Callable[[bytes], bytes]
Record = Union[str, bytes, bytearray]


def keccak256(data: bytes) -> bytes:
    """Keccak-256 digest (Ethereum flavour, not NIST SHA3-256)."""
    return keccak(primitive=bytes(data))


def sha256(data: bytes) -> bytes:
    """SHA-256 digest."""
    return hashlib.sha256(data).digest()


HASH_FUNCTIONS: Dict[str, HashFunction] = {
    "keccak256": keccak256,
    "sha256": sha256,
}

DEFAULT_HASH_ALGORITHM = "keccak256"


def get_hash_function(name: str) -> HashFunction:
    """
    Resolve a hash function by its registered name.

    Args:
        name: Algorithm name, case-insensitive ("keccak256" or "sha256")

    Returns:
        Hash function callable

    Raises:
        UnsupportedHashAlgorithmError: If the name is not registered
    """
    try:
        return HASH_FUNCTIONS[name.lower()]
    except (KeyError, AttributeError):
        raise UnsupportedHashAlgorithmError(
            f"Unsupported hash algorithm: {name!r} "
            f"(expected one of {sorted(HASH_FUNCTIONS)})"
        )


def encode_record(record: Record) -> bytes:
    """Encode a record as bytes; strings are UTF-8 encoded."""
    if isinstance(record, str):
        return record.encode("utf-8")
    return bytes(record)


def hash_record(record: Record, hash_function: HashFunction = keccak256) -> bytes:
    """Hash a single record into a leaf digest."""
    return hash_function(encode_record(record))


def hash_records(
    records: Iterable[Record],
    hash_function: HashFunction = keccak256,
) -> List[bytes]:
    """Hash records into leaf digests, preserving order."""
    return [hash_record(record, hash_function) for record in records]


def to_bytes(value: Union[str, bytes, bytearray]) -> bytes:
    """
    Normalize a digest given as bytes or hex string into bytes.

    Hex strings may carry a ``0x`` prefix.

    Raises:
        ValueError: If a string is not valid hex
        TypeError: If value is neither str nor bytes-like
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        text = value[2:] if value[:2].lower() == "0x" else value
        return bytes.fromhex(text)
    raise TypeError(f"Expected bytes or hex string, got {type(value).__name__}")


def to_hex(digest: bytes) -> str:
    """Render a digest as a ``0x``-prefixed hex string."""
    return "0x" + bytes(digest).hex()
