"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
MerkleProof, a product of Garudex Labs

Merkle membership proof generation and verification.

A proof is the ordered list of sibling digests from a leaf up to (but not
including) the root, each tagged with the side the sibling sits on. With
sorted pairs the side is not needed to recompute the root, but it is kept
so proofs also work for trees built without sorting.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from merkleproof.exceptions import LeafNotFoundError
from merkleproof.logging_config import get_logger, log_merkle_verification
from merkleproof.merkle.hashing import HashFunction, keccak256, to_bytes, to_hex
from merkleproof.merkle.tree import MerkleTree, OddNodePolicy, hash_pair

logger = get_logger(__name__)

DigestLike = Union[bytes, bytearray, str]


class Side(str, Enum):
    """Position of a sibling relative to the node being hashed."""

    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class ProofStep:
    """
    One level of a Merkle proof.

    Attributes:
        sibling: Sibling digest at this level
        side: Side of the sibling relative to the current node
    """

    sibling: bytes
    side: Side

    def to_dict(self) -> Dict[str, str]:
        return {"position": self.side.value, "data": to_hex(self.sibling)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProofStep":
        return cls(sibling=to_bytes(data["data"]), side=Side(data["position"]))


@dataclass(frozen=True)
class MerkleProof:
    """
    Proof that a leaf is included in a Merkle tree.

    The leaf and root are carried for convenience (serialization, display);
    verification always takes the leaf and claimed root explicitly.

    Attributes:
        steps: Proof steps ordered from the leaf level upwards
        leaf: Leaf digest the proof was generated for
        root: Root of the tree the proof was generated from
    """

    steps: Tuple[ProofStep, ...]
    leaf: Optional[bytes] = None
    root: Optional[bytes] = None

    @property
    def siblings(self) -> List[bytes]:
        return [step.sibling for step in self.steps]

    @property
    def sides(self) -> List[Side]:
        return [step.side for step in self.steps]

    def to_hex(self) -> List[str]:
        """Sibling digests as hex strings, leaf level first."""
        return [to_hex(step.sibling) for step in self.steps]

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize the proof to a JSON-compatible dict.

        Returns:
            Dict with hex ``leaf``, ``root`` and a ``proof`` list of steps
        """
        return {
            "leaf": to_hex(self.leaf) if self.leaf is not None else None,
            "root": to_hex(self.root) if self.root is not None else None,
            "proof": [step.to_dict() for step in self.steps],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MerkleProof":
        """
        Load a proof from the dict produced by ``to_dict``.

        Raises:
            KeyError: If a step is missing ``data`` or ``position``
            ValueError: If a digest is not valid hex or a position is unknown
        """
        leaf = data.get("leaf")
        root = data.get("root")
        return cls(
            steps=tuple(ProofStep.from_dict(step) for step in data.get("proof", [])),
            leaf=to_bytes(leaf) if leaf is not None else None,
            root=to_bytes(root) if root is not None else None,
        )

    def __iter__(self) -> Iterator[ProofStep]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def __getitem__(self, index: int) -> ProofStep:
        return self.steps[index]


ProofLike = Union[
    MerkleProof,
    Dict[str, Any],
    Iterable[Union[ProofStep, Dict[str, Any], DigestLike]],
]


def _coerce_step(step: Union[ProofStep, Dict[str, Any], DigestLike]) -> ProofStep:
    """
    Accept proof steps in any of the supported shapes.

    A bare digest (bytes or hex) becomes a right-hand sibling; that is only
    meaningful for sorted-pair trees, where the side is ignored.
    """
    if isinstance(step, ProofStep):
        return ProofStep(sibling=to_bytes(step.sibling), side=Side(step.side))
    if isinstance(step, dict):
        return ProofStep.from_dict(step)
    return ProofStep(sibling=to_bytes(step), side=Side.RIGHT)


def _proof_steps(proof: ProofLike) -> List[ProofStep]:
    """
    Flatten a proof in any supported shape into its steps.

    A mapping is read as the document produced by ``MerkleProof.to_dict``.
    """
    if isinstance(proof, dict):
        if not isinstance(proof.get("proof"), list):
            raise ValueError("proof mapping must contain a 'proof' list")
        return list(MerkleProof.from_dict(proof).steps)
    return [_coerce_step(step) for step in proof]


class ProofEngine:
    """
    Generate and verify Merkle membership proofs.

    Proof generation reads the materialized levels of a MerkleTree and
    follows the tree's own odd-node policy. Verification needs only the leaf,
    the proof and a claimed root; it uses the engine's hash function and
    pair ordering, which must match the ones the tree was built with.

    Example:
        >>> from merkleproof.merkle import ProofEngine, TreeBuilder, hash_records
        >>> leaves = hash_records(["a", "b", "c"])
        >>> tree = TreeBuilder().build(leaves)
        >>> engine = ProofEngine()
        >>> proof = engine.prove_membership(tree, leaves[0])
        >>> engine.verify(proof, leaves[0], tree.root)
        True
    """

    def __init__(self, hash_function: HashFunction = keccak256, sort_pairs: bool = True):
        """
        Initialize the proof engine.

        Args:
            hash_function: Hash function used during verification
            sort_pairs: Sort each pair by byte value during verification
        """
        self.hash_function = hash_function
        self.sort_pairs = sort_pairs

    @classmethod
    def for_tree(cls, tree: MerkleTree) -> "ProofEngine":
        """Create an engine whose verification settings match ``tree``."""
        return cls(hash_function=tree.hash_function, sort_pairs=tree.sort_pairs)

    def prove_membership(self, tree: MerkleTree, leaf: DigestLike) -> MerkleProof:
        """
        Generate a membership proof for a leaf digest.

        If the leaf occurs more than once, the first occurrence is proven.

        Args:
            tree: Tree containing the leaf
            leaf: Leaf digest (bytes or hex string)

        Returns:
            MerkleProof for the leaf

        Raises:
            LeafNotFoundError: If the leaf is not in the tree's leaf level
        """
        try:
            leaf_bytes = to_bytes(leaf)
        except (TypeError, ValueError) as e:
            raise LeafNotFoundError(f"Leaf {leaf!r} is not a valid digest: {e}")

        index = tree.get_leaf_index(leaf_bytes)
        if index < 0:
            raise LeafNotFoundError(f"Leaf {to_hex(leaf_bytes)} not found in tree")

        return self.prove_index(tree, index)

    def prove_index(self, tree: MerkleTree, leaf_index: int) -> MerkleProof:
        """
        Generate a membership proof for the leaf at a given position.

        Args:
            tree: Tree containing the leaf
            leaf_index: Index of the leaf (0-based)

        Returns:
            MerkleProof for the leaf

        Raises:
            LeafNotFoundError: If leaf_index is out of range
        """
        if leaf_index < 0 or leaf_index >= tree.leaf_count:
            raise LeafNotFoundError(
                f"Leaf index {leaf_index} out of range [0, {tree.leaf_count})"
            )

        steps = []
        current_index = leaf_index

        # Traverse from leaf to root, collecting sibling digests
        for level in tree.levels[:-1]:
            if current_index % 2 == 0:
                sibling_index = current_index + 1
            else:
                sibling_index = current_index - 1

            if sibling_index < len(level):
                side = Side.RIGHT if sibling_index > current_index else Side.LEFT
                steps.append(ProofStep(sibling=level[sibling_index], side=side))
            elif tree.odd_node_policy is OddNodePolicy.DUPLICATE:
                # Node was paired with itself during construction
                steps.append(ProofStep(sibling=level[current_index], side=Side.RIGHT))

            current_index //= 2

        proof = MerkleProof(steps=tuple(steps), leaf=tree.leaves[leaf_index], root=tree.root)

        logger.debug(
            "merkle_proof_generated",
            leaf_index=leaf_index,
            proof_length=len(proof),
            merkle_root=tree.hex_root,
        )

        return proof

    def compute_root(self, proof: ProofLike, leaf: DigestLike) -> bytes:
        """
        Recompute the root implied by a leaf and its proof.

        Raises:
            TypeError, ValueError, KeyError: If the leaf or a step is malformed
        """
        current = to_bytes(leaf)
        for step in _proof_steps(proof):
            if self.sort_pairs:
                current = hash_pair(self.hash_function, current, step.sibling, sort_pairs=True)
            elif step.side is Side.LEFT:
                current = self.hash_function(step.sibling + current)
            else:
                current = self.hash_function(current + step.sibling)
        return current

    def verify(self, proof: ProofLike, leaf: DigestLike, claimed_root: DigestLike) -> bool:
        """
        Verify a Merkle proof against a claimed root.

        Recomputes the root from the leaf and proof, then compares it with
        the claimed root. Never raises: malformed input yields False.

        Args:
            proof: MerkleProof, a dict from ``MerkleProof.to_dict``, or an
                iterable of ProofStep / step dicts / sibling digests
            leaf: Leaf digest (bytes or hex string)
            claimed_root: Expected root digest (bytes or hex string)

        Returns:
            True if the proof is valid, False otherwise
        """
        leaf_repr = _safe_hex(leaf)
        try:
            steps = _proof_steps(proof)
            expected_root = to_bytes(claimed_root)
            computed_root = self.compute_root(steps, leaf)
        except (TypeError, ValueError, KeyError) as e:
            log_merkle_verification(
                logger,
                leaf=leaf_repr,
                success=False,
                proof_length=0,
                failure_reason=f"malformed input: {e}",
                malformed=True,
            )
            return False
        except Exception as e:
            logger.warning("merkle_hash_failure", leaf=leaf_repr, error=str(e), exc_info=True)
            return False

        result = computed_root == expected_root
        log_merkle_verification(
            logger,
            leaf=leaf_repr,
            success=result,
            proof_length=len(steps),
            failure_reason=None if result else "root mismatch",
        )
        return result


def _safe_hex(value: Any) -> str:
    try:
        return to_hex(to_bytes(value))
    except (TypeError, ValueError):
        return repr(value)


def prove_membership(tree: MerkleTree, leaf: DigestLike) -> MerkleProof:
    """Generate a membership proof using the tree's own settings."""
    return ProofEngine.for_tree(tree).prove_membership(tree, leaf)


def verify_proof(
    proof: ProofLike,
    leaf: DigestLike,
    claimed_root: DigestLike,
    hash_function: HashFunction = keccak256,
    sort_pairs: bool = True,
) -> bool:
    """Verify a proof with a one-off ProofEngine."""
    return ProofEngine(hash_function=hash_function, sort_pairs=sort_pairs).verify(
        proof, leaf, claimed_root
    )
