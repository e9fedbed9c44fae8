"""
RunContext - Request-scoped resources for one pg_setconf run.

Holds the database connection, the config file handle and the
postmaster pid. Each is created on first use and released exactly once
when the context exits, whether the run succeeded or failed.
"""

from typing import Optional

from ..config import Config
from ..discovery.runtime import DatabaseGateway
from ..discovery.logs import LogFileLocator
from ..tuning.editor import ConfigFileEditor
from ..tuning.service import ReloadSignaler
from ..tuning.verifier import ConvergenceVerifier
from ..ui.console import ConsoleUI


class RunContext:
    """
    Usage:
        with RunContext(config, ui) as ctx:
            value = ctx.gateway.read_value("work_mem")
    """

    def __init__(
        self,
        config: Config,
        ui: Optional[ConsoleUI] = None,
        gateway: Optional[DatabaseGateway] = None,
        editor: Optional[ConfigFileEditor] = None,
        signaler: Optional[ReloadSignaler] = None,
        verifier: Optional[ConvergenceVerifier] = None,
        locator: Optional[LogFileLocator] = None,
    ):
        self.config = config
        self.ui = ui or ConsoleUI()
        self._gateway = gateway
        self._editor = editor
        self._signaler = signaler
        self._verifier = verifier
        self._locator = locator

    @property
    def gateway(self) -> DatabaseGateway:
        if self._gateway is None:
            self._gateway = DatabaseGateway(
                self.config.database,
                on_query=self.ui.debug,
            )
        return self._gateway

    @property
    def editor(self) -> ConfigFileEditor:
        if self._editor is None:
            self._editor = ConfigFileEditor(
                self.config.edit.pgconf,
                comment=self.config.edit.comment,
                backup=self.config.edit.backup,
            )
        return self._editor

    @property
    def signaler(self) -> ReloadSignaler:
        if self._signaler is None:
            self._signaler = ReloadSignaler(
                self.gateway,
                use_sql=self.config.verify.sql_reload,
                warn=self.ui.print_warning,
            )
        return self._signaler

    @property
    def verifier(self) -> ConvergenceVerifier:
        if self._verifier is None:
            self._verifier = ConvergenceVerifier(
                self.gateway,
                attempts=self.config.verify.attempts,
                interval=self.config.verify.interval,
                on_attempt=lambda n, ok: self.ui.debug(f"poll {n}: {ok} verified"),
            )
        return self._verifier

    @property
    def locator(self) -> LogFileLocator:
        if self._locator is None:
            self._locator = LogFileLocator(self.gateway)
        return self._locator

    def close(self):
        """Release the file handle and the connection."""
        try:
            if self._editor is not None:
                self._editor.close()
        finally:
            if self._gateway is not None:
                self._gateway.close()

    def __enter__(self) -> "RunContext":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
