"""
ripcheck CLI Package

Command-line interface for the ripcheck application.
"""

from .unified_cli import main as cli_main

__all__ = ['cli_main']
