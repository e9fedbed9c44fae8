"""
Runner module - Owns the resources of a single run.
"""

from .context import RunContext

__all__ = ["RunContext"]
