#!/usr/bin/env python
"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
MerkleProof, a product of Garudex Labs


"""

"""
Demo of whitelist membership proofs.

This example hashes a small email whitelist into Keccak-256 leaves, builds a
sorted-pair Merkle tree, prints the root and the full tree, and checks one
address against it.
"""

from merkleproof.exceptions import LeafNotFoundError
from merkleproof.logging_config import setup_logging
from merkleproof.merkle import ProofEngine, TreeBuilder, hash_record, hash_records


WHITELIST = [
    "randomEmail_1_@gmail.com",
    "randomEmail_2_@gmail.com",
    "randomEmail_3_@gmail.com",
]


def generate_merkle_tree():
    """Build the whitelist tree and print it."""
    # Leaves are the hashed records that make up the tree
    leaves = hash_records(WHITELIST)
    tree = TreeBuilder(sort_pairs=True).build(leaves)
    
    print("The Merkle Root is:", tree.hex_root)
    print("Printing the whole Merkle tree:")
    print(tree)
    
    return tree


def verify_email(email, tree):
    """Prove and verify one email address against the tree."""
    engine = ProofEngine.for_tree(tree)
    leaf = hash_record(email)
    
    try:
        proof = engine.prove_membership(tree, leaf)
    except LeafNotFoundError:
        return False
    
    return engine.verify(proof, leaf, tree.root)


def main():
    """Run whitelist demo."""
    setup_logging(level="WARNING", json_format=False)
    
    tree = generate_merkle_tree()
    email_to_verify = "randomEmail_1_@gmail.com"
    
    print()
    if verify_email(email_to_verify, tree):
        print(f"{email_to_verify} is part of the tree.")
    else:
        print(f"{email_to_verify} is NOT part of the tree.")


if __name__ == "__main__":
    main()
