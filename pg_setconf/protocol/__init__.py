"""
Protocol definitions for pg_setconf.

Dataclasses and exceptions shared by every component:
- Setting: a requested name=value change
- VerificationResult / VerificationStatus: per-setting outcome
- BatchSummary: everything a run produced
- SetConfError and subclasses: fatal errors
"""

from .setting import (
    Setting,
    VerificationResult,
    VerificationStatus,
    BatchSummary,
    unquote,
)
from .errors import (
    Phase,
    SetConfError,
    UsageError,
    UnknownVariable,
    DatabaseConnectionError,
    FileAccessError,
    ReloadError,
)

__all__ = [
    "Setting",
    "VerificationResult",
    "VerificationStatus",
    "BatchSummary",
    "unquote",
    "Phase",
    "SetConfError",
    "UsageError",
    "UnknownVariable",
    "DatabaseConnectionError",
    "FileAccessError",
    "ReloadError",
]
