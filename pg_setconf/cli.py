"""
CLI - Command-line interface for pg_setconf.

Edits postgresql.conf, reloads the running server and checks that the
new values are live.
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import Config
from .protocol.errors import SetConfError, UsageError
from .protocol.setting import Setting
from .runner.context import RunContext
from .tuning.executor import ChangeExecutor
from .ui.console import ConsoleUI


EXIT_NOTHING_CHANGED = 1
EXIT_ERROR = 2


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="pg_setconf",
        description="Change postgresql.conf settings on a running server, reload and verify",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    pg_setconf --pgconf /etc/postgresql/16/main/postgresql.conf --change log_statement=all
    pg_setconf --pgconf $PGDATA/postgresql.conf --change work_mem=64MB --change random_page_cost=1.1

    # Preview only
    pg_setconf --pgconf $PGDATA/postgresql.conf --change shared_buffers=256MB --dry-run

Exit status:
    0  at least one setting was changed
    1  nothing needed changing
    2  error

Environment Variables:
    PGHOST, PGPORT, PGUSER, PGPASSWORD    connection fallbacks
        """,
    )

    parser.add_argument(
        "--pgconf",
        help="Path to postgresql.conf (required for changes)"
    )
    parser.add_argument(
        "--change",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Setting to change (repeatable)"
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Rewrite even if the live value already matches"
    )
    parser.add_argument(
        "--config",
        help="TOML config file (default: search standard locations)"
    )

    # Database connection
    db_group = parser.add_argument_group('Connection')
    db_group.add_argument("--dbhost", help="PostgreSQL host (default: local socket)")
    db_group.add_argument("--dbport", type=int, help="PostgreSQL port (default: 5432)")
    db_group.add_argument("--dbuser", help="PostgreSQL user (default: postgres)")
    db_group.add_argument("--dbpass", help="PostgreSQL password (or use PGPASSWORD env var)")
    db_group.add_argument("--dbname", help="Database to connect to (default: postgres)")

    # Editing and reload
    edit_group = parser.add_argument_group('Editing')
    edit_group.add_argument(
        "--comment",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Annotate changed lines with '## changed by' (default: on)"
    )
    edit_group.add_argument(
        "--report",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show the current log file before reloading (default: on)"
    )
    edit_group.add_argument(
        "--backup",
        action="store_true",
        help="Copy the config file to <pgconf>.<timestamp>.bak before the first edit"
    )
    edit_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without editing or reloading"
    )
    edit_group.add_argument(
        "--sql-reload",
        action="store_true",
        help="Reload with pg_reload_conf() instead of signalling the postmaster"
    )
    edit_group.add_argument(
        "--attempts",
        type=int,
        help="Verification polls before giving up (default: 30)"
    )
    edit_group.add_argument(
        "--interval",
        type=float,
        help="Seconds between verification polls (default: 0.2)"
    )

    # Output
    out_group = parser.add_argument_group('Output')
    out_group.add_argument("-v", "--verbose", action="store_true", help="Show each step")
    out_group.add_argument("-q", "--quiet", action="store_true", help="Only errors and the final table")
    out_group.add_argument("--debug", action="store_true", help="Show queries and polling detail")
    out_group.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser.parse_args(argv)


def build_config(args) -> Config:
    """Config file, then environment, then command line."""
    try:
        config = Config.load(args.config)
    except FileNotFoundError as e:
        raise UsageError(str(e))
    except ValueError as e:
        raise UsageError(f"Invalid config file: {e}")
    config.override_from_env()
    config.override_from_args(args)
    return config


def run(argv: Optional[List[str]] = None, ui: Optional[ConsoleUI] = None, ctx_factory=RunContext) -> int:
    """Run pg_setconf and return the exit status."""
    args = parse_args(argv)

    own_ui = ui is None
    if own_ui:
        ui = ConsoleUI.from_flags(quiet=args.quiet, verbose=args.verbose, debug=args.debug)

    try:
        config = build_config(args)
        if own_ui:
            out = config.output
            ui = ConsoleUI.from_flags(quiet=out.quiet, verbose=out.verbose, debug=out.debug)
        settings = [Setting.parse(arg) for arg in args.change]

        errors = config.validate(needs_file=bool(settings))
        if errors:
            raise UsageError("; ".join(errors))

        ui.debug(config.summary())

        with ctx_factory(config, ui) as ctx:
            if not settings:
                if config.output.report:
                    size, path = ctx.locator.current_log_file()
                    ui.print_log_file(size, path)
                ui.print("No changes requested")
                return EXIT_NOTHING_CHANGED

            executor = ChangeExecutor(ctx, force=args.force, dry_run=args.dry_run)
            summary = executor.run(settings)

        ui.print_summary(summary)
        if not summary.changed:
            ui.print("No changes made")
        return summary.exit_code()

    except SetConfError as e:
        ui.print_error(str(e))
        return EXIT_ERROR
    except KeyboardInterrupt:
        ui.print_error("Interrupted")
        return 130


def main():
    """Main entry point."""
    sys.exit(run())
