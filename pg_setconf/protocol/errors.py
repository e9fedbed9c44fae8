"""
Error taxonomy for pg_setconf.

Hard errors derive from SetConfError and abort the run.
Soft problems (missing pid file, key not found in the file,
verification timeout) are not exceptions: they are collected as
warnings on the BatchSummary.
"""

from enum import Enum
from typing import Optional


class Phase(str, Enum):
    """Phases where errors can occur."""
    SETUP = "SETUP"
    READ = "READ"
    EDIT = "EDIT"
    REPORT = "REPORT"
    RELOAD = "RELOAD"
    VERIFY = "VERIFY"


class SetConfError(Exception):
    """Base class for fatal pg_setconf errors."""

    def __init__(self, message: str, phase: Optional[Phase] = None):
        super().__init__(message)
        self.message = message
        self.phase = phase

    def __str__(self) -> str:
        if self.phase:
            return f"[{self.phase.value}] {self.message}"
        return self.message


class UsageError(SetConfError):
    """Malformed --change argument or missing required option."""
    pass


class UnknownVariable(SetConfError):
    """The server does not know the requested setting."""

    def __init__(self, name: str, phase: Optional[Phase] = None):
        super().__init__(f'unrecognized configuration parameter "{name}"', phase)
        self.name = name


class DatabaseConnectionError(SetConfError):
    """Any database fault other than an unknown setting."""
    pass


class FileAccessError(SetConfError):
    """Config file or pid file could not be opened, locked or written."""

    def __init__(self, path, reason: str, phase: Optional[Phase] = None):
        super().__init__(f"{path}: {reason}", phase)
        self.path = str(path)


class ReloadError(SetConfError):
    """The reload signal could not be delivered."""
    pass
