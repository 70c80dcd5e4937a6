"""
Interactive CLI tools for pipe/joint structures.

This module provides command-line tools for:
- Listing joint catalogs
- Solving structure files
- Validating connection geometry
"""

from .helper_cli import cli

__all__ = ["cli"]
