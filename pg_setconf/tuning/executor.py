"""
ChangeExecutor - Applies a batch of setting changes.

Phases:
1. READ - Current live value of every requested setting
2. EDIT - Rewrite the config file for each setting that differs
3. REPORT - Show the current server log file (optional)
4. RELOAD - Signal the server to re-read its config
5. VERIFY - Poll until the new values are live

Hard errors (unknown setting, database or file faults) propagate,
tagged with the phase they occurred in.
Soft problems become warnings on the returned BatchSummary.
"""

from typing import List, TYPE_CHECKING

from rich.markup import escape

from ..protocol.errors import Phase, SetConfError
from ..protocol.setting import Setting, VerificationResult, BatchSummary
from .editor import find_last_assignment
from .verifier import values_match

if TYPE_CHECKING:
    from ..runner.context import RunContext


class ChangeExecutor:
    """
    Drives one change batch through a RunContext.
    """

    def __init__(self, ctx: "RunContext", force: bool = False, dry_run: bool = False):
        self.ctx = ctx
        self.ui = ctx.ui
        self.force = force
        self.dry_run = dry_run
        self._current_phase = Phase.SETUP

    def run(self, settings: List[Setting]) -> BatchSummary:
        """
        Apply ``settings`` and verify them.

        Returns:
            BatchSummary with one VerificationResult per setting name

        Raises:
            SetConfError: with ``phase`` set to where the batch stopped
        """
        try:
            return self._run(settings)
        except SetConfError as e:
            if e.phase is None:
                e.phase = self._current_phase
            raise

    def _run(self, settings: List[Setting]) -> BatchSummary:
        summary = BatchSummary(dry_run=self.dry_run)

        # Later --change arguments for the same name win
        requested = {}
        for setting in settings:
            requested[setting.name] = setting

        # Phase 1 + 2: READ and EDIT
        for setting in requested.values():
            result = VerificationResult(
                name=setting.name,
                requested_value=setting.requested_value,
            )
            summary.results[setting.name] = result
            self._apply_one(setting, result, summary)

        if not summary.changed or self.dry_run:
            return summary

        if self.ctx.editor.backup_path:
            summary.backup_path = str(self.ctx.editor.backup_path)

        # Phase 3: REPORT
        if self.ctx.config.output.report:
            self._current_phase = Phase.REPORT
            size, path = self.ctx.locator.current_log_file()
            self.ui.print_log_file(size, path)

        # Phase 4: RELOAD
        self._current_phase = Phase.RELOAD
        summary.reload_sent = self.ctx.signaler.reload()
        if summary.reload_sent:
            pid = self.ctx.signaler.pid
            self.ui.info(f"Reload requested{f' (pid {pid})' if pid else ''}")
        else:
            self._warn(summary, "Reload was not requested; new values may not take effect")

        # Phase 5: VERIFY
        self._current_phase = Phase.VERIFY
        pending = {name: summary.results[name] for name in summary.changed}
        self.ctx.verifier.verify(pending, changed_count=len(pending))

        for name in summary.changed:
            result = summary.results[name]
            if result.is_ok:
                self.ui.print(f"[green]{escape(name)}[/] is now {escape(result.actual_value)}")
            else:
                self._warn(
                    summary,
                    f"{name} was not verified: expected {result.requested_value}, "
                    f"{result.message}",
                )

        return summary

    def _apply_one(self, setting: Setting, result: VerificationResult, summary: BatchSummary):
        self._current_phase = Phase.READ
        current = self.ctx.gateway.read_value(setting.name)
        result.previous_value = current
        result.actual_value = current
        self.ui.info(f"{setting.name} is currently {current!r}")

        if values_match(setting.requested_value, current) and not self.force:
            result.mark_already_correct(current)
            self.ui.print(
                f"[cyan]{escape(setting.name)}[/] is already {escape(current)}, no change needed"
            )
            return

        if self.dry_run:
            lines = self.ctx.editor.read_text().splitlines()
            if find_last_assignment(lines, setting.name) is None:
                result.message = "no active assignment in config file"
                self._warn(
                    summary,
                    f"{setting.name} has no active assignment in {self.ctx.editor.path}; would not change",
                )
                return
            summary.changed.append(setting.name)
            self.ui.print(
                f"Would change [bold]{escape(setting.name)}[/]: "
                f"{escape(current)} -> {escape(setting.requested_value)}"
            )
            return

        self._current_phase = Phase.EDIT
        lines_changed = self.ctx.editor.rewrite_setting(
            setting.name, setting.requested_value, current
        )
        result.lines_changed = lines_changed

        if lines_changed == 0:
            result.message = "no active assignment in config file"
            self._warn(
                summary,
                f"{setting.name} has no active assignment in {self.ctx.editor.path}; not changed",
            )
            return

        edit = self.ctx.editor.history[-1]
        self.ui.info(
            f"Rewrote line {edit.line_number} of {self.ctx.editor.path}: "
            f"{setting.name} {current} -> {setting.requested_value}"
        )
        summary.changed.append(setting.name)

    def _warn(self, summary: BatchSummary, message: str):
        summary.warnings.append(message)
        self.ui.print_warning(message)
