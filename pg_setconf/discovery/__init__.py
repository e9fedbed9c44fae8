"""
Discovery module - Reads state from the running server.

- DatabaseGateway: live setting values via SHOW
- LogFileLocator: the log file currently being written
"""

from .runtime import DatabaseGateway
from .logs import LogFileLocator

__all__ = ["DatabaseGateway", "LogFileLocator"]
