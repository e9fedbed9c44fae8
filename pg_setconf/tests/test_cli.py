"""
End-to-end tests for the pg_setconf command line, with the server mocked.
"""

import signal

import pytest

from pg_setconf import cli
from pg_setconf.protocol.setting import VerificationStatus
from pg_setconf.runner.context import RunContext
from pg_setconf.tuning.executor import ChangeExecutor
from pg_setconf.tuning.service import ReloadSignaler
from pg_setconf.tuning.verifier import ConvergenceVerifier
from pg_setconf.tests.mocks import MockGateway, RecordingKill


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """No config files or libpq environment leak into the tests."""
    monkeypatch.setattr("pg_setconf.config.CONFIG_SEARCH_PATHS", [])
    for var in ("PGHOST", "PGPORT", "PGUSER", "PGPASSWORD"):
        monkeypatch.delenv(var, raising=False)


class Harness:
    """Builds RunContexts around a MockGateway and records what happened."""

    def __init__(self, tmp_path, values):
        self.data_dir = tmp_path / "data"
        self.data_dir.mkdir()
        (self.data_dir / "postmaster.pid").write_text("31337\n")
        self.gateway = MockGateway(values, data_directory=str(self.data_dir))
        self.kill = RecordingKill()
        self.sleeps = []
        self.contexts = []

    def __call__(self, config, ui):
        ctx = RunContext(
            config,
            ui,
            gateway=self.gateway,
            signaler=ReloadSignaler(self.gateway, kill=self.kill, warn=ui.print_warning),
            verifier=ConvergenceVerifier(
                self.gateway,
                attempts=config.verify.attempts,
                interval=config.verify.interval,
                sleep=self.sleeps.append,
            ),
        )
        self.contexts.append(ctx)
        return ctx


def run(harness, ui, *args):
    return cli.run(list(args), ui=ui, ctx_factory=harness)


def test_changes_log_statement_end_to_end(tmp_path, pgconf, ui):
    harness = Harness(tmp_path, {"log_statement": ["none", "all"]})

    code = run(harness, ui, "--pgconf", str(pgconf), "--change", "log_statement=all")

    assert code == 0
    lines = pgconf.read_text().splitlines()
    assert lines[7].startswith("log_statement = 'all' ## changed by pg_setconf on ")
    assert harness.kill.calls == [(31337, signal.SIGHUP)]
    assert harness.gateway.reads["log_statement"] == 2
    assert harness.gateway.closed


def test_unverified_setting_still_exits_zero(tmp_path, pgconf, ui):
    harness = Harness(tmp_path, {
        "shared_buffers": "128MB",
        "work_mem": ["4MB", "64MB"],
    })

    code = run(
        harness, ui,
        "--pgconf", str(pgconf),
        "--change", "shared_buffers=256",
        "--change", "work_mem=64MB",
        "--attempts", "5",
    )

    assert code == 0
    assert harness.gateway.reads["shared_buffers"] == 1 + 5
    assert len(harness.sleeps) == 4
    assert "shared_buffers was not verified" in ui.err_console.export_text()
    assert "shared_buffers = 256 ## changed by" in pgconf.read_text()


def test_already_correct_does_not_write(tmp_path, pgconf, ui):
    before = pgconf.read_bytes()
    harness = Harness(tmp_path, {"work_mem": "4MB"})

    code = run(harness, ui, "--pgconf", str(pgconf), "--change", "work_mem=4MB")

    assert code == 1
    assert pgconf.read_bytes() == before
    assert harness.kill.calls == []


def test_force_rewrites_matching_value(tmp_path, pgconf, ui):
    harness = Harness(tmp_path, {"work_mem": "4MB"})

    code = run(harness, ui, "--pgconf", str(pgconf), "--change", "work_mem=4MB", "--force")

    assert code == 0
    assert "work_mem = 4MB ## changed by" in pgconf.read_text()
    assert len(harness.kill.calls) == 1


def test_no_comment_and_no_report(tmp_path, pgconf, ui):
    harness = Harness(tmp_path, {"work_mem": ["4MB", "64MB"]})

    code = run(
        harness, ui,
        "--pgconf", str(pgconf), "--change", "work_mem=64MB",
        "--no-comment", "--no-report",
    )

    assert code == 0
    assert "work_mem = 64MB\n" in pgconf.read_text()
    assert harness.gateway.reads["log_directory"] == 0


def test_unknown_variable_is_fatal(tmp_path, pgconf, ui):
    before = pgconf.read_bytes()
    harness = Harness(tmp_path, {})

    code = run(harness, ui, "--pgconf", str(pgconf), "--change", "no_such_setting=1")

    assert code == 2
    assert "no_such_setting" in ui.err_console.export_text()
    assert pgconf.read_bytes() == before
    assert harness.gateway.closed


def test_malformed_change_is_usage_error(tmp_path, pgconf, ui):
    harness = Harness(tmp_path, {})
    assert run(harness, ui, "--pgconf", str(pgconf), "--change", "work_mem") == 2
    assert harness.contexts == []


def test_change_requires_pgconf(tmp_path, ui):
    harness = Harness(tmp_path, {"work_mem": "4MB"})
    assert run(harness, ui, "--change", "work_mem=64MB") == 2
    assert "--pgconf" in ui.err_console.export_text()


def test_no_changes_requested(tmp_path, ui):
    harness = Harness(tmp_path, {})
    assert run(harness, ui, "--no-report") == 1
    assert harness.kill.calls == []


def test_key_missing_from_file_is_soft(tmp_path, pgconf, ui):
    harness = Harness(tmp_path, {"max_connections": "100"})

    code = run(harness, ui, "--pgconf", str(pgconf), "--change", "max_connections=200")

    assert code == 1
    assert "no active assignment" in ui.err_console.export_text()
    assert harness.kill.calls == []


def test_dry_run_touches_nothing(tmp_path, pgconf, ui):
    before = pgconf.read_bytes()
    harness = Harness(tmp_path, {"work_mem": "4MB"})

    code = run(harness, ui, "--pgconf", str(pgconf), "--change", "work_mem=64MB", "--dry-run")

    assert code == 0
    assert pgconf.read_bytes() == before
    assert harness.kill.calls == []
    assert "would change" in ui.console.export_text()


def test_missing_pid_file_still_verifies(tmp_path, pgconf, ui):
    harness = Harness(tmp_path, {"work_mem": ["4MB", "64MB"]})
    (harness.data_dir / "postmaster.pid").unlink()

    code = run(harness, ui, "--pgconf", str(pgconf), "--change", "work_mem=64MB")

    assert code == 0
    assert harness.kill.calls == []
    assert "not found" in ui.err_console.export_text()


def test_mixed_batch_statuses(tmp_path, pgconf, ui):
    harness = Harness(tmp_path, {
        "port": "5432",
        "log_statement": ["none", "ddl"],
    })
    config = cli.build_config(cli.parse_args(["--pgconf", str(pgconf)]))

    with harness(config, ui) as ctx:
        summary = ChangeExecutor(ctx).run([
            cli.Setting.parse("port=5432"),
            cli.Setting.parse("log_statement=ddl"),
        ])

    assert summary.results["port"].status == VerificationStatus.ALREADY_CORRECT
    assert summary.results["log_statement"].status == VerificationStatus.VERIFIED
    assert summary.results["log_statement"].previous_value == "none"
    assert summary.changed == ["log_statement"]
    assert summary.reload_sent
    assert summary.exit_code() == 0


def test_latin1_config_file(tmp_path, ui):
    conf = tmp_path / "postgresql.conf"
    conf.write_bytes(b"# R\xe9glages\nwork_mem = 4MB\n")
    harness = Harness(tmp_path, {"work_mem": ["4MB", "64MB"]})

    code = run(harness, ui, "--pgconf", str(conf), "--change", "work_mem=64MB", "--no-comment")

    assert code == 0
    assert conf.read_bytes() == b"# R\xe9glages\nwork_mem = 64MB\n"


def test_bracketed_value_shown_verbatim(tmp_path, ui):
    conf = tmp_path / "postgresql.conf"
    conf.write_text("log_line_prefix = '%m '\n")
    harness = Harness(tmp_path, {"log_line_prefix": ["%m ", "%m [pid=%p] "]})

    code = run(harness, ui, "--pgconf", str(conf), "--change", "log_line_prefix='%m [pid=%p] '")

    assert code == 0
    out = ui.console.export_text()
    assert "log_line_prefix is now %m [pid=%p]" in out
    assert out.count("[pid=%p]") >= 3  # "is now" line plus Requested and Actual cells
    assert "log_line_prefix = '%m [pid=%p] ' ## changed by" in conf.read_text()


def test_zero_attempts_rejected(tmp_path, pgconf, ui):
    harness = Harness(tmp_path, {"work_mem": "4MB"})

    code = run(harness, ui, "--pgconf", str(pgconf), "--change", "work_mem=64MB", "--attempts", "0")

    assert code == 2
    assert "attempts must be at least 1" in ui.err_console.export_text()
    assert harness.contexts == []


def test_errors_tagged_with_phase(tmp_path, pgconf, ui):
    harness = Harness(tmp_path, {"work_mem": ["4MB", "64MB"]})
    harness.gateway.values.pop("log_directory")

    code = run(harness, ui, "--pgconf", str(pgconf), "--change", "work_mem=64MB")

    assert code == 2
    assert '[REPORT] unrecognized configuration parameter "log_directory"' in ui.err_console.export_text()
    assert harness.kill.calls == []
    assert harness.gateway.closed
