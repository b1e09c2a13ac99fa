"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
MerkleProof, a product of Garudex Labs

CLI context for MerkleProof.

Provides shared context object and decorators for CLI commands.
"""

import functools
import logging
import sys

import click

from merkleproof.exceptions import MerkleProofError


# Global context object to share configuration across commands
class CLIContext:
    """Context object for CLI commands."""
    
    def __init__(self):
        self.config = None
        self.config_path = None
        self.verbose = False


pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def handle_merkleproof_error(func):
    """
    Decorator to handle MerkleProofError exceptions in CLI commands.
    
    Catches MerkleProofError exceptions and displays user-friendly error messages.
    
    Args:
        func: CLI command function to wrap
        
    Returns:
        Wrapped function
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except MerkleProofError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        except (OSError, ValueError) as e:
            click.echo(f"Unexpected error: {e}", err=True)
            if logging.getLogger().level == logging.DEBUG:
                import traceback
                traceback.print_exc()
            sys.exit(1)
    
    return wrapper
