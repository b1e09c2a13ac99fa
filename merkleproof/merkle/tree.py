"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
MerkleProof, a product of Garudex Labs

Merkle tree construction over a static set of leaf digests.

This module implements a binary Merkle tree built bottom-up from leaf
digests that the caller has already hashed. It supports:
- Sorted-pair parent hashing (parent independent of child position)
- Configurable odd-node policy (duplicate the last node, or carry it up)
- Injectable hash function (Keccak-256 by default)
- Parallel level hashing for large levels
- Immutable trees with O(1) root access and a human-readable level dump
"""

import concurrent.futures
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from merkleproof.exceptions import EmptyInputError, InvalidDigestError, InvalidTreeError
from merkleproof.logging_config import get_logger, log_merkle_root_computation
from merkleproof.merkle.hashing import HashFunction, keccak256, to_hex

logger = get_logger(__name__)

Level = Tuple[bytes, ...]


class OddNodePolicy(str, Enum):
    """How the unpaired last node of an odd-length level is handled."""

    DUPLICATE = "duplicate"  # pair the node with itself
    CARRY = "carry"  # promote the node unchanged


def canonical_order(a: bytes, b: bytes) -> bytes:
    """Concatenate two digests in ascending byte order."""
    return a + b if a <= b else b + a


def hash_pair(
    hash_function: HashFunction,
    left: bytes,
    right: bytes,
    sort_pairs: bool = True,
) -> bytes:
    """
    Compute a parent digest from two children.

    Args:
        hash_function: Hash function to apply
        left: Left child digest
        right: Right child digest
        sort_pairs: Sort the children by byte value before concatenation

    Returns:
        Parent digest
    """
    if sort_pairs:
        return hash_function(canonical_order(left, right))
    return hash_function(left + right)


def _freeze_level(level: Sequence[bytes], number: int) -> Level:
    nodes = []
    for position, node in enumerate(level):
        if not isinstance(node, (bytes, bytearray, memoryview)):
            raise InvalidDigestError(
                f"Node {position} of level {number} must be bytes, got {type(node).__name__}"
            )
        nodes.append(bytes(node))
    return tuple(nodes)


@dataclass(frozen=True)
class MerkleTree:
    """
    Immutable Merkle tree.

    The tree is stored as a tuple of levels, where:
    - levels[0] is the leaf level
    - levels[-1] is the root level (single digest)

    The root is always read from the last level and never stored on its own.

    Attributes:
        levels: Levels from leaves up to the root
        hash_function: Hash function the tree was built with
        sort_pairs: Whether parent hashing sorted the children
        odd_node_policy: Policy applied to odd-length levels

    Example:
        >>> from merkleproof.merkle import TreeBuilder, hash_records
        >>> tree = TreeBuilder().build(hash_records(["a", "b", "c"]))
        >>> tree.leaf_count, tree.depth
        (3, 2)
    """

    levels: Tuple[Level, ...]
    hash_function: HashFunction = keccak256
    sort_pairs: bool = True
    odd_node_policy: OddNodePolicy = OddNodePolicy.DUPLICATE
    _leaf_index: Dict[bytes, int] = field(
        init=False, repr=False, compare=False, hash=False, default_factory=dict
    )

    def __post_init__(self):
        if not self.levels or not self.levels[0]:
            raise EmptyInputError("Cannot create Merkle tree without leaves")

        levels = tuple(_freeze_level(level, number) for number, level in enumerate(self.levels))
        for number in range(1, len(levels)):
            expected = (len(levels[number - 1]) + 1) // 2
            if len(levels[number]) != expected:
                raise InvalidTreeError(
                    f"Level {number} must have {expected} nodes, got {len(levels[number])}"
                )
        if len(levels[-1]) != 1:
            raise InvalidTreeError(
                f"Root level must hold exactly one digest, got {len(levels[-1])}"
            )

        object.__setattr__(self, "levels", levels)
        object.__setattr__(self, "odd_node_policy", OddNodePolicy(self.odd_node_policy))

        index: Dict[bytes, int] = {}
        for position, leaf in enumerate(self.levels[0]):
            index.setdefault(leaf, position)
        object.__setattr__(self, "_leaf_index", index)

    @property
    def root(self) -> bytes:
        """Root digest of the tree."""
        return self.levels[-1][0]

    @property
    def hex_root(self) -> str:
        """Root digest as a 0x-prefixed hex string."""
        return to_hex(self.root)

    @property
    def leaves(self) -> Level:
        """Leaf digests in their original order."""
        return self.levels[0]

    @property
    def leaf_count(self) -> int:
        return len(self.levels[0])

    @property
    def depth(self) -> int:
        """Number of levels above the leaves (0 for a single-leaf tree)."""
        return len(self.levels) - 1

    def get_level(self, index: int) -> Level:
        """Return the level at ``index`` (0 is the leaf level)."""
        return self.levels[index]

    def get_leaf_index(self, leaf: bytes) -> int:
        """Return the index of the first occurrence of ``leaf``, or -1."""
        return self._leaf_index.get(bytes(leaf), -1)

    def hex_levels(self) -> List[List[str]]:
        """Return every level as a list of hex strings, leaves first."""
        return [[to_hex(node) for node in level] for level in self.levels]

    def to_string(self) -> str:
        """
        Render the tree as text, root level first.

        Returns:
            Multi-line dump with one block per level
        """
        lines = []
        for number in range(self.depth, -1, -1):
            level = self.levels[number]
            label = "root" if number == self.depth else ("leaves" if number == 0 else "")
            header = f"Level {number}" + (f" ({label})" if label else "")
            lines.append(header)
            for position, node in enumerate(level):
                branch = "└─" if position == len(level) - 1 else "├─"
                lines.append(f"  {branch} {to_hex(node)}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return (
            f"MerkleTree(leaf_count={self.leaf_count}, depth={self.depth}, "
            f"root={self.hex_root}, sort_pairs={self.sort_pairs}, "
            f"odd_node_policy={self.odd_node_policy.value})"
        )

    def __len__(self) -> int:
        return self.leaf_count

    def __contains__(self, leaf: object) -> bool:
        if not isinstance(leaf, (bytes, bytearray)):
            return False
        return bytes(leaf) in self._leaf_index


class TreeBuilder:
    """
    Builds immutable Merkle trees from leaf digests.

    Each internal node is the hash of its two children. With sorted pairs
    (the default) the children are ordered by byte value before hashing.
    If a level has an odd number of nodes, the odd-node policy decides
    whether the last node is paired with itself or carried up unchanged.

    Levels with at least ``parallel_threshold`` pairs are hashed on a
    thread pool; the result is identical to sequential hashing.

    Example:
        >>> from merkleproof.merkle import TreeBuilder, hash_records, sha256
        >>> builder = TreeBuilder(hash_function=sha256)
        >>> tree = builder.build(hash_records(["alice", "bob"], sha256))
        >>> root = tree.root
    """

    DEFAULT_MAX_WORKERS = 4

    def __init__(
        self,
        hash_function: HashFunction = keccak256,
        sort_pairs: bool = True,
        odd_node_policy: OddNodePolicy = OddNodePolicy.DUPLICATE,
        parallel_threshold: Optional[int] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        """
        Initialize the tree builder.

        Args:
            hash_function: Hash function for parent digests (default: Keccak-256)
            sort_pairs: Sort child digests before hashing (default: True)
            odd_node_policy: Odd-length level handling (default: duplicate last)
            parallel_threshold: Minimum pairs per level for thread-pool hashing;
                None or 0 disables parallel hashing
            max_workers: Thread pool size for parallel hashing
        """
        self.hash_function = hash_function
        self.sort_pairs = sort_pairs
        self.odd_node_policy = OddNodePolicy(odd_node_policy)
        self.parallel_threshold = parallel_threshold or 0
        self.max_workers = max_workers

    def build(self, leaves: Sequence[bytes]) -> MerkleTree:
        """
        Build a Merkle tree from leaf digests.

        Args:
            leaves: Ordered, already-hashed leaf digests

        Returns:
            MerkleTree whose last level holds the root

        Raises:
            EmptyInputError: If leaves is empty
            InvalidDigestError: If a leaf is not a byte sequence
        """
        leaves = list(leaves) if leaves is not None else []
        if not leaves:
            raise EmptyInputError("Cannot build Merkle tree from empty leaves list")

        start = time.perf_counter()

        current_level = self._normalize_leaves(leaves)
        levels: List[Level] = [current_level]

        while len(current_level) > 1:
            current_level = self._build_level(current_level)
            levels.append(current_level)

        tree = MerkleTree(
            levels=tuple(levels),
            hash_function=self.hash_function,
            sort_pairs=self.sort_pairs,
            odd_node_policy=self.odd_node_policy,
        )

        log_merkle_root_computation(
            logger,
            leaf_count=tree.leaf_count,
            depth=tree.depth,
            merkle_root=tree.hex_root,
            duration_ms=(time.perf_counter() - start) * 1000,
            sort_pairs=self.sort_pairs,
            odd_node_policy=self.odd_node_policy.value,
        )

        return tree

    def _normalize_leaves(self, leaves: Sequence[bytes]) -> Level:
        normalized = []
        for position, leaf in enumerate(leaves):
            if not isinstance(leaf, (bytes, bytearray, memoryview)):
                raise InvalidDigestError(
                    f"Leaf {position} must be bytes, got {type(leaf).__name__}"
                )
            normalized.append(bytes(leaf))
        return tuple(normalized)

    def _pairs(self, level: Level) -> Tuple[List[Tuple[bytes, bytes]], Optional[bytes]]:
        """
        Partition a level into adjacent pairs.

        Returns:
            (pairs, carried) where carried is the node promoted unchanged
            under the carry policy, or None
        """
        pairs = []
        carried = None
        for i in range(0, len(level), 2):
            left = level[i]
            if i + 1 < len(level):
                pairs.append((left, level[i + 1]))
            elif self.odd_node_policy is OddNodePolicy.DUPLICATE:
                pairs.append((left, left))
            else:
                carried = left
        return pairs, carried

    def _build_level(self, level: Level) -> Level:
        pairs, carried = self._pairs(level)

        if self.parallel_threshold and len(pairs) >= self.parallel_threshold:
            parents = self._hash_pairs_parallel(pairs)
        else:
            parents = [
                hash_pair(self.hash_function, left, right, self.sort_pairs)
                for left, right in pairs
            ]

        if carried is not None:
            parents.append(carried)
        return tuple(parents)

    def _hash_pairs_parallel(self, pairs: List[Tuple[bytes, bytes]]) -> List[bytes]:
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(
                executor.map(
                    lambda p: hash_pair(self.hash_function, p[0], p[1], self.sort_pairs),
                    pairs,
                )
            )


def build_tree(leaves: Sequence[bytes], **options) -> MerkleTree:
    """Build a tree with a one-off TreeBuilder; ``options`` go to its constructor."""
    return TreeBuilder(**options).build(leaves)
