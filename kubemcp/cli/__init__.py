"""kubemcp command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``kubemcp`` script).
"""

from kubemcp.cli.main import cli

__all__ = ["cli"]
