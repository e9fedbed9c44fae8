"""
DatabaseGateway - Reads live PostgreSQL settings.

One lazily-opened psycopg2 connection per run, used for every SHOW.
"""

from typing import Callable, Optional, TYPE_CHECKING

import psycopg2

from ..protocol.errors import UnknownVariable, DatabaseConnectionError, Phase
from ..protocol.setting import NAME_PATTERN

if TYPE_CHECKING:
    from ..config import DatabaseConfig


# SQLSTATE undefined_object, raised by SHOW for an unknown parameter
UNDEFINED_OBJECT = "42704"


class DatabaseGateway:
    """
    Runs ``SHOW <name>`` against the target server.

    The connection is created on the first query and reused until
    close() is called.
    """

    def __init__(
        self,
        db_config: "DatabaseConfig",
        connect: Optional[Callable] = None,
        on_query: Optional[Callable[[str], None]] = None,
    ):
        """
        Args:
            db_config: connection parameters
            connect: connection factory (defaults to psycopg2.connect)
            on_query: called with each SQL statement before it runs
        """
        self.db_config = db_config
        self._connect = connect or psycopg2.connect
        self._on_query = on_query
        self._conn = None

    @property
    def conn(self):
        """The open connection, created on first access."""
        if self._conn is None:
            try:
                self._conn = self._connect(
                    host=self.db_config.host or None,
                    port=self.db_config.port,
                    user=self.db_config.user,
                    password=self.db_config.password or None,
                    dbname=self.db_config.name,
                )
                self._conn.autocommit = True
            except psycopg2.Error as e:
                raise DatabaseConnectionError(
                    f"Could not connect to {self.db_config.describe()}: {str(e).strip()}",
                    Phase.SETUP,
                )
        return self._conn

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def read_value(self, name: str) -> str:
        """
        Return the live value of a setting as SHOW reports it.

        Raises:
            UnknownVariable: the server does not know the setting
            DatabaseConnectionError: any other database fault

        Errors carry no phase; SHOW runs in several and the caller
        knows which one.
        """
        if not NAME_PATTERN.match(name):
            raise UnknownVariable(name)

        sql = f"SHOW {name}"
        if self._on_query:
            self._on_query(sql)

        try:
            with self.conn.cursor() as cur:
                cur.execute(sql)
                row = cur.fetchone()
        except psycopg2.Error as e:
            if getattr(e, "pgcode", None) == UNDEFINED_OBJECT:
                raise UnknownVariable(name)
            raise DatabaseConnectionError(
                f"SHOW {name} failed: {str(e).strip()}"
            )

        if not row:
            raise DatabaseConnectionError(f"SHOW {name} returned no rows")
        return str(row[0])

    def data_directory(self) -> str:
        return self.read_value("data_directory")

    def reload_conf(self) -> bool:
        """Ask the server to reload via pg_reload_conf()."""
        sql = "SELECT pg_reload_conf()"
        if self._on_query:
            self._on_query(sql)
        try:
            with self.conn.cursor() as cur:
                cur.execute(sql)
                row = cur.fetchone()
        except psycopg2.Error as e:
            raise DatabaseConnectionError(
                f"pg_reload_conf() failed: {str(e).strip()}", Phase.RELOAD
            )
        return bool(row and row[0])

    def close(self):
        if self._conn is not None:
            try:
                self._conn.close()
            finally:
                self._conn = None
