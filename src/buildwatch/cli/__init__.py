"""
Command-line interface for the buildwatch package.

This module provides the main CLI entry point for the watch coordinator.
"""

from .main import main_cli

__all__ = [
    "main_cli",
]
