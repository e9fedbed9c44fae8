"""
Tests for ReloadSignaler.
"""

import signal

import pytest

from pg_setconf.protocol.errors import ReloadError
from pg_setconf.tuning.service import ReloadSignaler
from pg_setconf.tests.mocks import MockGateway, RecordingKill


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path


def write_pid_file(data_dir, content):
    (data_dir / "postmaster.pid").write_text(content)


class TestReloadSignaler:
    def test_sends_sighup_to_postmaster(self, data_dir):
        write_pid_file(data_dir, "4242\n/var/lib/postgresql/data\n1700000000\n5432\n")
        kill = RecordingKill()
        signaler = ReloadSignaler(MockGateway(data_directory=str(data_dir)), kill=kill)

        assert signaler.reload() is True
        assert kill.calls == [(4242, signal.SIGHUP)]
        assert signaler.pid == 4242

    def test_first_integer_on_first_line(self, data_dir):
        write_pid_file(data_dir, "  pid 987 extra\n")
        signaler = ReloadSignaler(MockGateway(data_directory=str(data_dir)), kill=RecordingKill())
        assert signaler.read_pid() == 987

    def test_missing_pid_file_is_soft(self, data_dir):
        warnings = []
        kill = RecordingKill()
        signaler = ReloadSignaler(
            MockGateway(data_directory=str(data_dir)), kill=kill, warn=warnings.append
        )

        assert signaler.reload() is False
        assert kill.calls == []
        assert "not found" in warnings[0]

    def test_pid_file_without_number(self, data_dir):
        write_pid_file(data_dir, "garbage\n")
        warnings = []
        signaler = ReloadSignaler(
            MockGateway(data_directory=str(data_dir)), kill=RecordingKill(), warn=warnings.append
        )
        assert signaler.reload() is False
        assert warnings

    def test_dead_process_is_hard_error(self, data_dir):
        write_pid_file(data_dir, "4242\n")
        signaler = ReloadSignaler(
            MockGateway(data_directory=str(data_dir)),
            kill=RecordingKill(error=ProcessLookupError()),
        )
        with pytest.raises(ReloadError):
            signaler.reload()

    def test_permission_denied_is_hard_error(self, data_dir):
        write_pid_file(data_dir, "4242\n")
        signaler = ReloadSignaler(
            MockGateway(data_directory=str(data_dir)),
            kill=RecordingKill(error=PermissionError()),
        )
        with pytest.raises(ReloadError):
            signaler.reload()

    def test_sql_reload(self):
        gw = MockGateway()
        kill = RecordingKill()
        signaler = ReloadSignaler(gw, use_sql=True, kill=kill)

        assert signaler.reload() is True
        assert gw.reload_calls == 1
        assert kill.calls == []
