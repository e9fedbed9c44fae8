"""
Tuning module - Applies configuration changes.

Components:
- ConfigFileEditor: Rewrites one setting in postgresql.conf
- ReloadSignaler: Sends the reload signal to the postmaster
- ConvergenceVerifier: Polls until changes are live
- ChangeExecutor: Runs a whole change batch
"""

from .editor import ConfigFileEditor
from .service import ReloadSignaler
from .verifier import ConvergenceVerifier, values_match
from .executor import ChangeExecutor

__all__ = [
    "ConfigFileEditor",
    "ReloadSignaler",
    "ConvergenceVerifier",
    "values_match",
    "ChangeExecutor",
]
