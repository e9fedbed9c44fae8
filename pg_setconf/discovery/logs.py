"""
LogFileLocator - Finds the server log file currently being written.
"""

import os
from typing import Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .runtime import DatabaseGateway


LOG_NAME_MARKER = "post"


class LogFileLocator:
    """
    Reports the most recently modified file in log_directory.

    Only entries whose name contains "post" are considered
    (postgresql-*.log, postmaster.log, ...).
    """

    def __init__(self, gateway: "DatabaseGateway"):
        self.gateway = gateway

    def log_directory(self) -> str:
        """Resolve log_directory, relative paths being under data_directory."""
        log_dir = self.gateway.read_value("log_directory")
        if not os.path.isabs(log_dir):
            log_dir = os.path.join(self.gateway.data_directory(), log_dir)
        return log_dir

    def current_log_file(self) -> Tuple[int, str]:
        """
        Return (size_bytes, path) of the newest log file.

        (0, "") when the directory is missing, unreadable or has no
        matching file.
        """
        log_dir = self.log_directory()

        try:
            with os.scandir(log_dir) as it:
                entries = [
                    (entry.stat().st_mtime, entry.stat().st_size, entry.path)
                    for entry in it
                    if entry.is_file() and LOG_NAME_MARKER in entry.name
                ]
        except OSError:
            return 0, ""

        if not entries:
            return 0, ""

        entries.sort(key=lambda e: e[0])
        _, size, path = entries[-1]
        return size, path
