"""
Unit tests for Merkle proof generation and verification.

Tests cover:
- Proof structure (sibling order, sides, length)
- Verification of valid proofs for every leaf
- Rejection of wrong leaves, wrong roots and tampered siblings
- Malformed input handling (verification never raises)
- Property-based round trips with a fast stub hash
"""

import hashlib
import json
import math

import pytest
from hypothesis import assume, given
from hypothesis import strategies as st

from merkleproof.exceptions import LeafNotFoundError
from merkleproof.merkle.hashing import hash_records, keccak256, sha256
from merkleproof.merkle.proof import (
    MerkleProof,
    ProofEngine,
    ProofStep,
    Side,
    prove_membership,
    verify_proof,
)
from merkleproof.merkle.tree import OddNodePolicy, TreeBuilder


def stub_hash(data: bytes) -> bytes:
    """Fast deterministic stand-in for a cryptographic hash."""
    return hashlib.blake2b(data, digest_size=8).digest()


def _flip_byte(digest: bytes, position: int) -> bytes:
    tampered = bytearray(digest)
    tampered[position] ^= 0xFF
    return bytes(tampered)


class TestProofGeneration:
    """Test Merkle proof generation."""

    def test_single_leaf_proof_is_empty(self):
        """Test that a single-leaf tree yields an empty proof."""
        leaf = keccak256(b"only")
        tree = TreeBuilder().build([leaf])

        proof = ProofEngine().prove_membership(tree, leaf)

        assert len(proof) == 0
        assert proof.leaf == leaf
        assert proof.root == leaf

    def test_two_leaves(self):
        """Test sibling and side for both leaves of a two-leaf tree."""
        a, b = hash_records(["a", "b"])
        tree = TreeBuilder().build([a, b])
        engine = ProofEngine()

        assert list(engine.prove_membership(tree, a)) == [ProofStep(b, Side.RIGHT)]
        assert list(engine.prove_membership(tree, b)) == [ProofStep(a, Side.LEFT)]

    def test_duplicated_last_node_is_its_own_sibling(self):
        """Test the proof of the unpaired leaf under duplicate-last."""
        a, b, c = hash_records(["x", "y", "z"], sha256)
        tree = TreeBuilder(hash_function=sha256).build([a, b, c])

        proof = ProofEngine(hash_function=sha256).prove_membership(tree, c)

        assert proof.steps == (
            ProofStep(c, Side.RIGHT),
            ProofStep(tree.levels[1][0], Side.LEFT),
        )

    def test_carried_node_skips_level(self):
        """Test that a carried node contributes no step for its level."""
        a, b, c = hash_records(["x", "y", "z"], sha256)
        tree = TreeBuilder(hash_function=sha256, odd_node_policy=OddNodePolicy.CARRY).build([a, b, c])

        proof = ProofEngine(hash_function=sha256).prove_membership(tree, c)

        assert proof.steps == (ProofStep(tree.levels[1][0], Side.LEFT),)

    @pytest.mark.parametrize("leaf_count", [1, 2, 3, 5, 8, 13, 16, 33])
    def test_proof_length_equals_depth(self, leaf_count):
        """Test that every proof has one step per level under duplicate-last."""
        leaves = hash_records([f"leaf{i}" for i in range(leaf_count)])
        tree = TreeBuilder().build(leaves)
        expected = math.ceil(math.log2(leaf_count)) if leaf_count > 1 else 0

        for leaf in leaves:
            assert len(ProofEngine().prove_membership(tree, leaf)) == expected

    def test_first_occurrence_used_for_duplicates(self):
        """Test that a duplicated leaf is proven at its first position."""
        a, b, c = hash_records(["a", "b", "c"])
        tree = TreeBuilder().build([b, a, c, a])
        engine = ProofEngine()

        assert engine.prove_membership(tree, a) == engine.prove_index(tree, 1)

    def test_hex_leaf_accepted(self):
        """Test that a leaf may be passed as a hex string."""
        leaves = hash_records(["a", "b", "c"])
        tree = TreeBuilder().build(leaves)
        engine = ProofEngine()

        assert engine.prove_membership(tree, "0x" + leaves[1].hex()) == engine.prove_membership(tree, leaves[1])
        assert engine.prove_membership(tree, leaves[1].hex()) == engine.prove_membership(tree, leaves[1])

    def test_unknown_leaf_raises_error(self):
        """Test that proving an absent leaf raises LeafNotFoundError."""
        tree = TreeBuilder().build(hash_records(["a", "b", "c"]))

        with pytest.raises(LeafNotFoundError, match="not found"):
            ProofEngine().prove_membership(tree, keccak256(b"d"))

    def test_invalid_leaf_raises_error(self):
        """Test that a leaf that is not a digest raises LeafNotFoundError."""
        tree = TreeBuilder().build(hash_records(["a", "b"]))

        with pytest.raises(LeafNotFoundError):
            ProofEngine().prove_membership(tree, "not hex")

    def test_index_out_of_range(self):
        """Test that out-of-range indexes raise LeafNotFoundError."""
        tree = TreeBuilder().build(hash_records(["a", "b", "c"]))

        with pytest.raises(LeafNotFoundError, match="Leaf index .* out of range"):
            ProofEngine().prove_index(tree, -1)
        with pytest.raises(LeafNotFoundError, match="Leaf index .* out of range"):
            ProofEngine().prove_index(tree, 3)

    def test_proof_accessors(self):
        """Test sibling, side and hex views of a proof."""
        leaves = hash_records(["a", "b", "c", "d"])
        tree = TreeBuilder().build(leaves)
        proof = ProofEngine().prove_membership(tree, leaves[0])

        assert proof.siblings == [step.sibling for step in proof]
        assert proof.sides == [Side.RIGHT, Side.RIGHT]
        assert proof.to_hex() == ["0x" + sibling.hex() for sibling in proof.siblings]
        assert proof[0].sibling == leaves[1]


class TestProofVerification:
    """Test Merkle proof verification."""

    def test_single_leaf_empty_proof(self):
        """Test that an empty proof verifies iff leaf equals root."""
        leaf = keccak256(b"only")
        engine = ProofEngine()

        assert engine.verify([], leaf, leaf)
        assert not engine.verify([], leaf, keccak256(b"other"))

    @pytest.mark.parametrize("leaf_count", [2, 3, 4, 5, 7, 10, 20])
    @pytest.mark.parametrize("policy", list(OddNodePolicy))
    def test_every_leaf_verifies(self, leaf_count, policy):
        """Test that every leaf's proof verifies against the root."""
        leaves = hash_records([f"leaf{i}" for i in range(leaf_count)])
        tree = TreeBuilder(odd_node_policy=policy).build(leaves)
        engine = ProofEngine()

        for leaf in leaves:
            proof = engine.prove_membership(tree, leaf)
            assert engine.verify(proof, leaf, tree.root)

    @pytest.mark.parametrize("policy", list(OddNodePolicy))
    def test_unsorted_tree_verifies_with_sides(self, policy):
        """Test that sides reconstruct the root of an unsorted tree."""
        leaves = hash_records([f"leaf{i}" for i in range(11)], sha256)
        tree = TreeBuilder(hash_function=sha256, sort_pairs=False, odd_node_policy=policy).build(leaves)
        engine = ProofEngine.for_tree(tree)

        for leaf in leaves:
            assert engine.verify(engine.prove_membership(tree, leaf), leaf, tree.root)

    def test_unsorted_tree_fails_with_sorted_engine(self):
        """Test that verification settings must match the tree."""
        leaves = hash_records(["a", "b", "c", "d"], sha256)
        tree = TreeBuilder(hash_function=sha256, sort_pairs=False).build(leaves)
        sorted_engine = ProofEngine(hash_function=sha256, sort_pairs=True)

        results = [
            sorted_engine.verify(sorted_engine.prove_membership(tree, leaf), leaf, tree.root)
            for leaf in leaves
        ]
        assert not all(results)

    def test_wrong_root(self):
        """Test that a proof fails against a different root."""
        leaves = hash_records(["leaf1", "leaf2", "leaf3"])
        tree = TreeBuilder().build(leaves)
        proof = ProofEngine().prove_membership(tree, leaves[0])

        assert not ProofEngine().verify(proof, leaves[0], b"0" * 32)

    def test_wrong_leaf(self):
        """Test that a proof fails for a different leaf."""
        leaves = hash_records(["leaf1", "leaf2", "leaf3"])
        tree = TreeBuilder().build(leaves)
        proof = ProofEngine().prove_membership(tree, leaves[0])

        assert not ProofEngine().verify(proof, keccak256(b"wrong_leaf"), tree.root)

    def test_proof_for_other_tree(self):
        """Test that a proof fails against a tampered tree's root."""
        leaves = hash_records(["leaf1", "leaf2", "leaf3", "leaf4"])
        tampered = hash_records(["leaf1", "TAMPERED", "leaf3", "leaf4"])
        proof = prove_membership(TreeBuilder().build(leaves), leaves[0])

        assert not ProofEngine().verify(proof, leaves[0], TreeBuilder().build(tampered).root)

    def test_every_single_byte_tamper_detected(self):
        """Test that flipping any byte of any sibling breaks the proof."""
        leaves = hash_records([f"leaf{i}" for i in range(6)])
        tree = TreeBuilder().build(leaves)
        engine = ProofEngine()
        proof = engine.prove_membership(tree, leaves[4])

        for step_index, step in enumerate(proof):
            for position in range(len(step.sibling)):
                steps = list(proof.steps)
                steps[step_index] = ProofStep(_flip_byte(step.sibling, position), step.side)
                assert not engine.verify(steps, leaves[4], tree.root)

    def test_hex_inputs(self):
        """Test verification from hex siblings, leaf and root."""
        leaves = hash_records(["a", "b", "c"])
        tree = TreeBuilder().build(leaves)
        proof = ProofEngine().prove_membership(tree, leaves[2])

        assert ProofEngine().verify(proof.to_hex(), "0x" + leaves[2].hex(), tree.hex_root)

    def test_step_dicts(self):
        """Test verification from serialized step dicts."""
        leaves = hash_records(["a", "b", "c"])
        tree = TreeBuilder().build(leaves)
        proof = ProofEngine().prove_membership(tree, leaves[0])

        assert ProofEngine().verify(proof.to_dict()["proof"], leaves[0], tree.root)

    def test_whole_proof_dict(self):
        """Test verification from the full serialized proof document."""
        leaves = hash_records(["a", "b", "c"])
        tree = TreeBuilder().build(leaves)
        document = json.loads(json.dumps(ProofEngine().prove_membership(tree, leaves[2]).to_dict()))

        assert ProofEngine().verify(document, leaves[2], tree.root)
        assert not ProofEngine().verify(document, leaves[0], tree.root)
        assert ProofEngine().compute_root(document, leaves[2]) == tree.root

    def test_dict_without_proof_list_returns_false(self):
        """Test that a mapping lacking a step list is rejected."""
        leaf = keccak256(b"a")

        assert ProofEngine().verify({"leaf": leaf.hex(), "root": leaf.hex()}, leaf, leaf) is False

    @pytest.mark.parametrize(
        "proof, leaf, root",
        [
            (None, keccak256(b"a"), keccak256(b"a")),
            (42, keccak256(b"a"), keccak256(b"a")),
            ([{"position": "left"}], keccak256(b"a"), keccak256(b"a")),
            ([{"position": "up", "data": "0x00"}], keccak256(b"a"), keccak256(b"a")),
            (["0xzz"], keccak256(b"a"), keccak256(b"a")),
            ([None], keccak256(b"a"), keccak256(b"a")),
            ([], "not hex", keccak256(b"a")),
            ([], keccak256(b"a"), None),
        ],
    )
    def test_malformed_input_returns_false(self, proof, leaf, root):
        """Test that malformed proofs, leaves and roots yield False."""
        assert ProofEngine().verify(proof, leaf, root) is False

    def test_hash_failure_returns_false(self):
        """Test that a failing hash function yields False instead of raising."""
        def broken_hash(data: bytes) -> bytes:
            raise RuntimeError("hash backend unavailable")

        leaf = keccak256(b"a")
        assert ProofEngine(hash_function=broken_hash).verify([keccak256(b"b")], leaf, leaf) is False

    def test_verify_proof_helper(self):
        """Test the module-level verification helper."""
        leaves = hash_records(["a", "b", "c"], sha256)
        tree = TreeBuilder(hash_function=sha256).build(leaves)
        proof = prove_membership(tree, leaves[1])

        assert verify_proof(proof, leaves[1], tree.root, hash_function=sha256)
        assert not verify_proof(proof, leaves[1], tree.root)


class TestProofSerialization:
    """Test proof serialization."""

    def test_dict_is_json_compatible(self):
        """Test that a serialized proof survives JSON and loads back equal."""
        leaves = hash_records(["a", "b", "c", "d", "e"])
        tree = TreeBuilder().build(leaves)
        proof = ProofEngine().prove_membership(tree, leaves[3])

        data = json.loads(json.dumps(proof.to_dict()))

        assert data["leaf"] == "0x" + leaves[3].hex()
        assert data["root"] == tree.hex_root
        assert data["proof"][0] == {"position": "left", "data": "0x" + leaves[2].hex()}
        assert MerkleProof.from_dict(data) == proof

    def test_from_dict_without_metadata(self):
        """Test loading a proof that only has steps."""
        proof = MerkleProof.from_dict({"proof": [{"position": "right", "data": "ab"}]})

        assert proof.leaf is None
        assert proof.root is None
        assert proof.steps == (ProofStep(b"\xab", Side.RIGHT),)

    def test_from_dict_rejects_bad_position(self):
        """Test that unknown positions are rejected when loading."""
        with pytest.raises(ValueError):
            MerkleProof.from_dict({"proof": [{"position": "up", "data": "ab"}]})


class TestProofProperties:
    """Property-based tests with a fast stub hash."""

    @given(
        records=st.lists(st.binary(min_size=0, max_size=16), min_size=1, max_size=40),
        data=st.data(),
        policy=st.sampled_from(list(OddNodePolicy)),
        sort_pairs=st.booleans(),
    )
    def test_any_leaf_round_trips(self, records, data, policy, sort_pairs):
        """Test that the proof of any leaf verifies against the root."""
        leaves = [stub_hash(record) for record in records]
        tree = TreeBuilder(hash_function=stub_hash, sort_pairs=sort_pairs, odd_node_policy=policy).build(leaves)
        index = data.draw(st.integers(min_value=0, max_value=len(leaves) - 1))
        engine = ProofEngine.for_tree(tree)

        proof = engine.prove_index(tree, index)

        assert engine.verify(proof, leaves[index], tree.root)

    @given(records=st.lists(st.binary(max_size=16), min_size=1, max_size=40))
    def test_build_is_deterministic(self, records):
        """Test that building twice yields the same root."""
        leaves = [stub_hash(record) for record in records]

        assert (
            TreeBuilder(hash_function=stub_hash).build(leaves).root
            == TreeBuilder(hash_function=stub_hash).build(leaves).root
        )

    @given(
        records=st.lists(st.binary(max_size=16), min_size=2, max_size=40),
        data=st.data(),
    )
    def test_tampered_sibling_rejected(self, records, data):
        """Test that flipping one sibling byte breaks any proof."""
        leaves = [stub_hash(record) for record in records]
        tree = TreeBuilder(hash_function=stub_hash).build(leaves)
        engine = ProofEngine(hash_function=stub_hash)
        index = data.draw(st.integers(min_value=0, max_value=len(leaves) - 1))
        proof = engine.prove_index(tree, index)
        assume(len(proof) > 0)

        step_index = data.draw(st.integers(min_value=0, max_value=len(proof) - 1))
        position = data.draw(st.integers(min_value=0, max_value=len(proof[step_index].sibling) - 1))
        steps = list(proof.steps)
        steps[step_index] = ProofStep(_flip_byte(steps[step_index].sibling, position), steps[step_index].side)

        assert not engine.verify(steps, leaves[index], tree.root)

    @given(
        records=st.lists(st.binary(max_size=16), min_size=1, max_size=20),
        other=st.binary(min_size=8, max_size=8),
    )
    def test_other_root_rejected(self, records, other):
        """Test that a proof does not verify against an unrelated root."""
        leaves = [stub_hash(record) for record in records]
        tree = TreeBuilder(hash_function=stub_hash).build(leaves)
        assume(other != tree.root)
        engine = ProofEngine(hash_function=stub_hash)

        assert not engine.verify(engine.prove_index(tree, 0), leaves[0], other)
