"""
CLI entry point for MerkleProof.

Provides command-line interface for building Merkle trees over record sets,
generating membership proofs, and verifying them.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from merkleproof._version import __version__
from merkleproof.config.settings import get_default_config_path, load_config
from merkleproof.exceptions import InvalidConfigurationError
from merkleproof.logging_config import setup_logging
from merkleproof.cli.context import CLIContext, pass_context


@click.group()
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help=f'Path to configuration file (default: {get_default_config_path()})',
)
@click.option(
    '--log-level',
    '-l',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], case_sensitive=False),
    default=None,
    help='Set logging level (default: from configuration, INFO)',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose output',
)
@click.version_option(version=__version__, prog_name='merkleproof')
@pass_context
def cli(ctx: CLIContext, config: Optional[Path], log_level: Optional[str], verbose: bool):
    """
    MerkleProof - Merkle tree membership proofs.

    Builds sorted-pair Merkle trees over record sets, proves that a record
    belongs to the set, and verifies proofs against a root.
    """
    ctx.verbose = verbose
    ctx.config_path = str(config) if config else None

    # Console logging until the configuration is known
    setup_logging(level=log_level or "INFO", json_format=False)

    try:
        ctx.config = load_config(ctx.config_path)
    except InvalidConfigurationError as e:
        click.echo(f"Error: Invalid configuration: {e}", err=True)
        sys.exit(1)

    try:
        effective_log_level = log_level.upper() if log_level else ctx.config.logging.level
        log_file = Path(ctx.config.logging.file) if ctx.config.logging.file else None
        setup_logging(
            level=effective_log_level,
            log_file=log_file,
            json_format=ctx.config.logging.format == "json",
        )

        if verbose:
            logger = logging.getLogger("merkleproof")
            logger.info(f"Loaded configuration from: {ctx.config_path or 'defaults'}")
            logger.info(f"Log level: {effective_log_level}")
    except OSError as e:
        click.echo(f"Error: Failed to set up logging: {e}", err=True)
        sys.exit(1)


# Import and register Merkle commands
from merkleproof.cli.merkle import check, prove, root, verify
cli.add_command(root)
cli.add_command(prove)
cli.add_command(verify)
cli.add_command(check)


if __name__ == '__main__':
    cli()
