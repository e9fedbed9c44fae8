"""
Pytest configuration and shared fixtures.
"""

import pytest

from pg_setconf.ui.console import ConsoleUI, NORMAL
from pg_setconf.tests.mocks import FakeClock

from rich.console import Console


SAMPLE_CONF = """\
# -----------------------------
# PostgreSQL configuration file
# -----------------------------

listen_addresses = '*'
port = 5432
#log_statement = 'none'\t\t\t# none, ddl, mod, all
log_statement = none
shared_buffers = 128MB\t\t\t# min 128kB
work_mem = 4MB
#work_mem = 8MB
log_min_duration_statement = 100
"""


@pytest.fixture
def pgconf(tmp_path):
    """A postgresql.conf with a few active and commented settings."""
    path = tmp_path / "postgresql.conf"
    path.write_text(SAMPLE_CONF)
    return path


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ui():
    """ConsoleUI writing to in-memory consoles."""
    return ConsoleUI(
        level=NORMAL,
        console=Console(record=True, width=200, force_terminal=False),
        err_console=Console(record=True, width=200, force_terminal=False),
    )
