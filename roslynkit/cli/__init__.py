"""
roslynkit CLI module.

This module provides the command-line interface for roslynkit.
"""

from .parser import CLI, main

__all__ = ["CLI", "main"]
