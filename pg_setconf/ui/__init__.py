"""
UI module - Rich console output.
"""

from .console import ConsoleUI, QUIET, NORMAL, VERBOSE, DEBUG

__all__ = ["ConsoleUI", "QUIET", "NORMAL", "VERBOSE", "DEBUG"]
