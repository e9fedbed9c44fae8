"""
pg_setconf - Change PostgreSQL settings on a live server

Rewrites the last active assignment of each setting in postgresql.conf,
reloads the running postmaster and polls SHOW until the new values are
live.

Usage:
    # As a module
    python -m pg_setconf --pgconf $PGDATA/postgresql.conf --change work_mem=64MB

    # Programmatically
    from pg_setconf import Config, RunContext, ChangeExecutor, Setting

    config = Config.load()
    config.edit.pgconf = "/var/lib/postgresql/data/postgresql.conf"
    with RunContext(config) as ctx:
        summary = ChangeExecutor(ctx).run([Setting.parse("work_mem=64MB")])
"""

__version__ = "1.0.0"

# Main exports
from .config import Config
from .runner.context import RunContext
from .tuning.executor import ChangeExecutor

# Protocol exports
from .protocol.setting import Setting, VerificationResult, VerificationStatus, BatchSummary
from .protocol.errors import (
    SetConfError,
    UsageError,
    UnknownVariable,
    DatabaseConnectionError,
    FileAccessError,
    ReloadError,
)

__all__ = [
    # Version
    "__version__",
    # Runner
    "Config",
    "RunContext",
    "ChangeExecutor",
    # Protocol
    "Setting",
    "VerificationResult",
    "VerificationStatus",
    "BatchSummary",
    # Errors
    "SetConfError",
    "UsageError",
    "UnknownVariable",
    "DatabaseConnectionError",
    "FileAccessError",
    "ReloadError",
]
