"""
Configuration management for pg_setconf.

Supports:
- TOML config files
- Environment variables (PGHOST, PGPORT, PGUSER, PGPASSWORD)
- Command-line overrides
- Sensible defaults

Priority (highest to lowest):
1. Command-line arguments
2. Environment variables
3. Config file
4. Defaults
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Mapping

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Older Python


# Default config file locations (searched in order)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / "pg_setconf.toml",
    Path.home() / ".pg_setconf" / "config.toml",
    Path.home() / ".config" / "pg_setconf" / "config.toml",
]


@dataclass
class DatabaseConfig:
    """Database connection configuration."""
    host: str = ""
    port: int = 5432
    user: str = "postgres"
    password: str = ""
    name: str = "postgres"

    def describe(self) -> str:
        host = self.host or "local socket"
        return f"{self.user}@{host}:{self.port}/{self.name}"


@dataclass
class EditConfig:
    """Config file editing options."""
    pgconf: Optional[str] = None
    comment: bool = True
    backup: bool = False


@dataclass
class VerifyConfig:
    """Reload and convergence polling options."""
    attempts: int = 30
    interval: float = 0.2
    sql_reload: bool = False


@dataclass
class OutputConfig:
    """Output configuration."""
    report: bool = True
    verbose: bool = False
    quiet: bool = False
    debug: bool = False


@dataclass
class Config:
    """Main configuration container."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    edit: EditConfig = field(default_factory=EditConfig)
    verify: VerifyConfig = field(default_factory=VerifyConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Source tracking
    _config_file: Optional[Path] = None

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """
        Load configuration from file.

        Args:
            config_path: Explicit path to config file. If None, searches default locations.

        Returns:
            Config instance with loaded values
        """
        config = cls()

        if config_path:
            path = Path(config_path)
            if not path.exists():
                raise FileNotFoundError(f"Config file not found: {config_path}")
        else:
            path = cls._find_config_file()

        if path:
            config = cls._load_from_file(path)
            config._config_file = path

        return config

    @classmethod
    def _find_config_file(cls) -> Optional[Path]:
        """Find config file in default locations."""
        for path in CONFIG_SEARCH_PATHS:
            if path.exists():
                return path
        return None

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load config from TOML file."""
        with open(path, "rb") as f:
            data = tomllib.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        config = cls()

        if "database" in data:
            db = data["database"]
            config.database = DatabaseConfig(
                host=db.get("host", config.database.host),
                port=int(db.get("port", config.database.port)),
                user=db.get("user", config.database.user),
                password=db.get("password", config.database.password),
                name=db.get("name", config.database.name),
            )

        if "edit" in data:
            edit = data["edit"]
            config.edit = EditConfig(
                pgconf=edit.get("pgconf") or None,
                comment=edit.get("comment", config.edit.comment),
                backup=edit.get("backup", config.edit.backup),
            )

        if "verify" in data:
            ver = data["verify"]
            config.verify = VerifyConfig(
                attempts=int(ver.get("attempts", config.verify.attempts)),
                interval=float(ver.get("interval", config.verify.interval)),
                sql_reload=ver.get("sql_reload", config.verify.sql_reload),
            )

        if "output" in data:
            out = data["output"]
            config.output = OutputConfig(
                report=out.get("report", config.output.report),
                verbose=out.get("verbose", config.output.verbose),
                quiet=out.get("quiet", config.output.quiet),
                debug=out.get("debug", config.output.debug),
            )

        return config

    def override_from_env(self, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Apply libpq-style environment variables."""
        environ = os.environ if environ is None else environ

        if environ.get("PGHOST"):
            self.database.host = environ["PGHOST"]
        if environ.get("PGPORT", "").isdigit():
            self.database.port = int(environ["PGPORT"])
        if environ.get("PGUSER"):
            self.database.user = environ["PGUSER"]
        if environ.get("PGPASSWORD"):
            self.database.password = environ["PGPASSWORD"]

        return self

    def override_from_args(self, args) -> "Config":
        """
        Override config values from argparse namespace.

        Args with value None are ignored (keeping config file values).
        """
        # Database overrides
        if getattr(args, "dbhost", None):
            self.database.host = args.dbhost
        if getattr(args, "dbport", None):
            self.database.port = args.dbport
        if getattr(args, "dbuser", None):
            self.database.user = args.dbuser
        if getattr(args, "dbpass", None):
            self.database.password = args.dbpass
        if getattr(args, "dbname", None):
            self.database.name = args.dbname

        # Edit overrides
        if getattr(args, "pgconf", None):
            self.edit.pgconf = args.pgconf
        if getattr(args, "comment", None) is not None:
            self.edit.comment = args.comment
        if getattr(args, "backup", None):
            self.edit.backup = True

        # Verify overrides
        if getattr(args, "attempts", None) is not None:
            self.verify.attempts = args.attempts
        if getattr(args, "interval", None) is not None:
            self.verify.interval = args.interval
        if getattr(args, "sql_reload", None):
            self.verify.sql_reload = True

        # Output overrides
        if getattr(args, "report", None) is not None:
            self.output.report = args.report
        if getattr(args, "verbose", None):
            self.output.verbose = True
        if getattr(args, "debug", None):
            self.output.debug = True
            self.output.verbose = True
        if getattr(args, "quiet", None):
            self.output.quiet = True
            self.output.verbose = False
            self.output.debug = False

        return self

    def validate(self, needs_file: bool = True) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.database.user:
            errors.append("Database user is required")
        if not (0 < self.database.port < 65536):
            errors.append(f"Invalid database port: {self.database.port}")

        if needs_file:
            if not self.edit.pgconf:
                errors.append("--pgconf is required to change settings")
            elif not Path(self.edit.pgconf).is_file():
                errors.append(f"Config file not found: {self.edit.pgconf}")

        if self.verify.attempts < 1:
            errors.append("Verification attempts must be at least 1")
        if self.verify.interval < 0:
            errors.append("Verification interval cannot be negative")

        return errors

    def summary(self, include_config_path: bool = True) -> str:
        """Generate human-readable config summary."""
        lines = []

        if include_config_path:
            if self._config_file:
                lines.append(f"Config: {self._config_file}")
            else:
                lines.append("Config: (defaults)")

        lines.append(f"Database: {self.database.describe()}")
        lines.append(f"File: {self.edit.pgconf or '(none)'}")
        reload_via = "pg_reload_conf()" if self.verify.sql_reload else "SIGHUP"
        lines.append(
            f"Reload: {reload_via}, verify {self.verify.attempts} x {self.verify.interval}s"
        )

        return "\n".join(lines)
