"""
ReloadSignaler - Makes the running server re-read its config file.

Default path: read <data_directory>/postmaster.pid and send SIGHUP.
Alternative: SELECT pg_reload_conf() through the database connection.
"""

import os
import re
import signal
from pathlib import Path
from typing import Callable, Optional, TYPE_CHECKING

from ..protocol.errors import FileAccessError, ReloadError, Phase

if TYPE_CHECKING:
    from ..discovery.runtime import DatabaseGateway


PID_FILE_NAME = "postmaster.pid"


class ReloadSignaler:
    """
    Sends the reload signal to the postmaster.

    reload() returns False (and records a warning) when no process id
    could be determined; a pid that cannot be signalled is a hard error.
    """

    def __init__(
        self,
        gateway: "DatabaseGateway",
        use_sql: bool = False,
        kill: Optional[Callable[[int, int], None]] = None,
        warn: Optional[Callable[[str], None]] = None,
    ):
        self.gateway = gateway
        self.use_sql = use_sql
        self._kill = kill or os.kill
        self._warn = warn
        self.pid: Optional[int] = None

    def pid_file(self) -> Path:
        return Path(self.gateway.data_directory()) / PID_FILE_NAME

    def read_pid(self) -> Optional[int]:
        """
        First integer on the first line of postmaster.pid.

        Returns None when the file is missing or holds no integer.
        """
        path = self.pid_file()
        try:
            with open(path, "r", encoding="utf-8") as f:
                first_line = f.readline()
        except FileNotFoundError:
            self._warning(f"Pid file {path} not found, cannot send reload signal")
            return None
        except OSError as e:
            raise FileAccessError(path, e.strerror or str(e), Phase.RELOAD)

        match = re.search(r"\d+", first_line)
        if not match:
            self._warning(f"No process id found in {path}")
            return None
        return int(match.group(0))

    def reload(self) -> bool:
        """
        Signal the server to reload its configuration.

        Returns:
            True if a reload was requested, False if no pid was found
        """
        if self.use_sql:
            return self.gateway.reload_conf()

        if self.pid is None:
            self.pid = self.read_pid()
        if self.pid is None:
            return False

        try:
            self._kill(self.pid, signal.SIGHUP)
        except ProcessLookupError:
            raise ReloadError(f"No process with pid {self.pid}", Phase.RELOAD)
        except PermissionError:
            raise ReloadError(
                f"Not permitted to signal pid {self.pid} (run as the postgres user?)",
                Phase.RELOAD,
            )
        return True

    def _warning(self, message: str):
        if self._warn:
            self._warn(message)
