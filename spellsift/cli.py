"""Main CLI module for spellsift.

This module re-exports the CLI for convenience. The main implementation
is in __main__.py.
"""

from spellsift.__main__ import cli

__all__ = ["cli"]
