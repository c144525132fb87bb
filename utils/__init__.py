"""
Console Utilities

This package provides the colorama/tqdm console renderer used by the
command-line demo.
"""

from utils.console import ConsoleRenderer

__all__ = ['ConsoleRenderer']
