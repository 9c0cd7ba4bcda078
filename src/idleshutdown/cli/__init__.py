"""
Command-line interface for the idleshutdown package.

This module provides the main CLI entry point for the agent.
"""

from .main import build_daemon, main_cli

__all__ = [
    "build_daemon",
    "main_cli",
]
