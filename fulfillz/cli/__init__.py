# ============================================
# FILE: fulfillz/cli/__init__.py
# ============================================
"""
CLI module for fulfillz - contains command-line interface components.
"""

from fulfillz.cli.app import cli, main

__all__ = ["cli", "main"]
