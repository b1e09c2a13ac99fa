"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
MerkleProof, a product of Garudex Labs

CLI commands for Merkle tree operations.

Provides commands for:
- Computing the Merkle root of a record set
- Generating a membership proof for one record
- Verifying a proof file against a root
- Checking record membership end to end
"""

import dataclasses
import json
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import click

from merkleproof.cli.context import CLIContext, handle_merkleproof_error, pass_context
from merkleproof.config.settings import MerkleConfig, get_default_config, parse_bool
from merkleproof.exceptions import LeafNotFoundError
from merkleproof.logging_config import get_logger
from merkleproof.merkle.hashing import HASH_FUNCTIONS, get_hash_function, hash_record, hash_records
from merkleproof.merkle.tree import OddNodePolicy

logger = get_logger(__name__)


def merkle_options(func):
    """Attach the options that override the [merkle] configuration section."""
    func = click.option(
        '--odd-node-policy',
        type=click.Choice([policy.value for policy in OddNodePolicy]),
        default=None,
        help='Handling of an unpaired last node (default: from configuration)',
    )(func)
    func = click.option(
        '--sort-pairs/--no-sort-pairs',
        default=None,
        help='Sort each pair by byte value before hashing (default: from configuration)',
    )(func)
    func = click.option(
        '--algorithm',
        '-a',
        type=click.Choice(sorted(HASH_FUNCTIONS)),
        default=None,
        help='Hash algorithm for leaves and nodes (default: from configuration)',
    )(func)
    return func


def records_options(func):
    """Attach the options that supply the record set."""
    func = click.option(
        '--file',
        '-f',
        'records_file',
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help='File with one record per line',
    )(func)
    func = click.option(
        '--record',
        '-r',
        'records',
        multiple=True,
        help='Record in the set (repeatable)',
    )(func)
    return func


def _merkle_config(
    ctx: CLIContext,
    algorithm: Optional[str],
    sort_pairs: Optional[bool],
    odd_node_policy: Optional[str],
) -> MerkleConfig:
    """Merge command-line overrides into the loaded Merkle configuration."""
    base = ctx.config.merkle if ctx.config is not None else get_default_config().merkle
    overrides = {}
    if algorithm is not None:
        overrides["hash_algorithm"] = algorithm
    if sort_pairs is not None:
        overrides["sort_pairs"] = sort_pairs
    if odd_node_policy is not None:
        overrides["odd_node_policy"] = odd_node_policy
    return dataclasses.replace(base, **overrides)


def _load_records(records: Sequence[str], records_file: Optional[Path]) -> List[str]:
    """Collect records from options and file, in that order."""
    collected = list(records)
    if records_file is not None:
        for line in records_file.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if line:
                collected.append(line)
    if not collected:
        click.echo("Error: No records given. Use --record/-r or --file/-f.", err=True)
        sys.exit(1)
    return collected


@click.command("root")
@records_options
@merkle_options
@click.option('--show-tree', is_flag=True, help='Print every level of the tree')
@pass_context
@handle_merkleproof_error
def root(ctx, records, records_file, algorithm, sort_pairs, odd_node_policy, show_tree):
    """
    Compute the Merkle root of a record set.

    Examples:

        merkleproof root -r alice@example.com -r bob@example.com

        merkleproof root -f whitelist.txt --show-tree
    """
    config = _merkle_config(ctx, algorithm, sort_pairs, odd_node_policy)
    hash_function = get_hash_function(config.hash_algorithm)

    leaves = hash_records(_load_records(records, records_file), hash_function)
    tree = config.create_builder().build(leaves)

    click.echo(f"The Merkle Root is: {tree.hex_root}")
    if show_tree:
        click.echo()
        click.echo(tree.to_string())


@click.command("prove")
@click.argument('target')
@records_options
@merkle_options
@click.option(
    '--output',
    '-o',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='Write the proof JSON to a file instead of stdout',
)
@pass_context
@handle_merkleproof_error
def prove(ctx, target, records, records_file, algorithm, sort_pairs, odd_node_policy, output):
    """
    Generate a membership proof for TARGET within a record set.

    Examples:

        merkleproof prove alice@example.com -f whitelist.txt -o alice.proof.json
    """
    config = _merkle_config(ctx, algorithm, sort_pairs, odd_node_policy)
    hash_function = get_hash_function(config.hash_algorithm)

    leaves = hash_records(_load_records(records, records_file), hash_function)
    tree = config.create_builder().build(leaves)
    proof = config.create_engine().prove_membership(tree, hash_record(target, hash_function))

    document = {
        "hash_algorithm": config.hash_algorithm,
        "sort_pairs": config.sort_pairs,
        **proof.to_dict(),
    }
    text = json.dumps(document, indent=2)

    if output is not None:
        output.write_text(text + "\n", encoding="utf-8")
        click.echo(f"✓ Proof written to {output}")
    else:
        click.echo(text)


@click.command("verify")
@click.argument('proof_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--root', 'claimed_root', default=None, help='Root to verify against (hex; default: root in the proof file)')
@click.option('--leaf', default=None, help='Leaf digest to verify (hex; default: leaf in the proof file)')
@click.option('--record', default=None, help='Record to hash and verify instead of a leaf digest')
@merkle_options
@pass_context
@handle_merkleproof_error
def verify(ctx, proof_file, claimed_root, leaf, record, algorithm, sort_pairs, odd_node_policy):
    """
    Verify a proof file produced by "merkleproof prove".

    Exits 0 when the proof is valid and 1 otherwise.

    Examples:

        merkleproof verify alice.proof.json

        merkleproof verify alice.proof.json --record alice@example.com --root 0x...
    """
    try:
        data = json.loads(proof_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        click.echo(f"Error: Failed to parse proof JSON: {e}", err=True)
        sys.exit(1)

    if not isinstance(data, dict) or not isinstance(data.get("proof"), list):
        click.echo("Error: Invalid proof JSON: missing proof[]", err=True)
        sys.exit(1)

    # Settings recorded in the proof file apply unless overridden
    if algorithm is None:
        algorithm = data.get("hash_algorithm")
    if sort_pairs is None and "sort_pairs" in data:
        sort_pairs = parse_bool(data["sort_pairs"])
    config = _merkle_config(ctx, algorithm, sort_pairs, odd_node_policy)

    if record is not None:
        leaf = hash_record(record, get_hash_function(config.hash_algorithm))
    elif leaf is None:
        leaf = data.get("leaf")
    if claimed_root is None:
        claimed_root = data.get("root")

    if leaf is None or claimed_root is None:
        click.echo("Error: Invalid proof JSON: missing leaf / root", err=True)
        sys.exit(1)

    if config.create_engine().verify(data["proof"], leaf, claimed_root):
        click.echo("✓ Merkle proof is VALID for the given root.")
        sys.exit(0)
    else:
        click.echo("✗ Merkle proof is INVALID for the given root.")
        sys.exit(1)


@click.command("check")
@click.argument('target')
@records_options
@merkle_options
@pass_context
@handle_merkleproof_error
def check(ctx, target, records, records_file, algorithm, sort_pairs, odd_node_policy):
    """
    Check whether TARGET is part of a record set.

    Builds the tree, proves TARGET and verifies the proof against the root.
    Exits 0 when TARGET is a member and 1 otherwise.

    Examples:

        merkleproof check randomEmail_1_@gmail.com -f whitelist.txt
    """
    config = _merkle_config(ctx, algorithm, sort_pairs, odd_node_policy)
    hash_function = get_hash_function(config.hash_algorithm)

    leaves = hash_records(_load_records(records, records_file), hash_function)
    tree = config.create_builder().build(leaves)
    engine = config.create_engine()
    leaf = hash_record(target, hash_function)

    try:
        proof = engine.prove_membership(tree, leaf)
        is_member = engine.verify(proof, leaf, tree.root)
    except LeafNotFoundError:
        logger.debug("record_not_in_tree", merkle_root=tree.hex_root)
        is_member = False

    if is_member:
        click.echo(f"{target} is part of the tree.")
        sys.exit(0)
    else:
        click.echo(f"{target} is NOT part of the tree.")
        sys.exit(1)
