"""
ConfigFileEditor - Rewrites a single setting in postgresql.conf.

Only the last active (uncommented) assignment of a key is touched.
Every other line, including its line terminator, is written back
verbatim.
"""

import fcntl
import os
import re
import shutil
from datetime import datetime
from pathlib import Path
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..protocol.errors import FileAccessError, UsageError, Phase
from ..protocol.setting import NAME_PATTERN


PROGRAM_NAME = "pg_setconf"

# Marker of the annotation this tool appends to rewritten lines
ANNOTATION_MARKER = "## changed by"

UNQUOTED_BOOLEANS = ("on", "off")

# Characters PostgreSQL accepts in an unquoted value (numbers, units, identifiers)
UNQUOTED_SAFE = re.compile(r"^[A-Za-z0-9_.+\-]+$")


def format_value(value: str) -> str:
    """
    Render a value the way it is written to the config file.

    Already-quoted values pass through. Bare alphabetic words other
    than on/off are quoted, as is anything PostgreSQL would not parse
    unquoted.
    """
    value = value.strip()
    if len(value) >= 2 and value[0] == "'" and value[-1] == "'":
        return value
    if value.lower() in UNQUOTED_BOOLEANS:
        return value
    if value.isalpha() or not UNQUOTED_SAFE.match(value):
        return "'" + value.replace("'", "''") + "'"
    return value


@dataclass
class Edit:
    """One line rewritten during this run."""
    name: str
    previous_value: Optional[str]
    new_value: str
    line_number: int


class ConfigFileEditor:
    """
    Edits postgresql.conf in place under an exclusive advisory lock.

    The file handle is opened on the first rewrite and kept until
    close(); each rewrite is a lock / read / modify / write+truncate /
    unlock transaction on that handle.
    """

    def __init__(
        self,
        path: str,
        comment: bool = True,
        backup: bool = False,
        program: str = PROGRAM_NAME,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.path = Path(path)
        self.comment = comment
        self.backup = backup
        self.program = program
        self._clock = clock or datetime.now
        self._fh = None
        self.backup_path: Optional[Path] = None
        self.history: List[Edit] = []

    def _open(self):
        if self._fh is None:
            try:
                # newline="" keeps line terminators and surrogateescape keeps non-UTF-8 bytes
                self._fh = open(
                    self.path, "r+", encoding="utf-8", errors="surrogateescape", newline=""
                )
            except OSError as e:
                raise FileAccessError(self.path, e.strerror or str(e), Phase.EDIT)
        return self._fh

    def _lock(self, fh):
        try:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
        except OSError as e:
            raise FileAccessError(self.path, f"cannot lock: {e.strerror or e}", Phase.EDIT)

    def _unlock(self, fh):
        fcntl.flock(fh.fileno(), fcntl.LOCK_UN)

    def _make_backup(self):
        if not self.backup or self.backup_path is not None:
            return
        stamp = self._clock().strftime("%Y%m%d%H%M%S")
        target = self.path.with_name(f"{self.path.name}.{stamp}.bak")
        try:
            shutil.copy2(self.path, target)
        except OSError as e:
            raise FileAccessError(target, f"cannot write backup: {e.strerror or e}", Phase.EDIT)
        self.backup_path = target

    def annotation(self) -> str:
        stamp = self._clock().strftime("%Y-%m-%d %H:%M:%S")
        return f"{ANNOTATION_MARKER} {self.program} on {stamp}"

    def rewrite_setting(self, name: str, new_value: str, previous_value: Optional[str] = None) -> int:
        """
        Point the last active assignment of ``name`` at ``new_value``.

        Args:
            name: parameter name (``^\\w+$``)
            new_value: value to write; quoted by format_value()
            previous_value: live value before the change, recorded in
                the edit history

        Returns:
            Number of lines changed: 1, or 0 when the key has no active
            assignment in the file.
        """
        if not NAME_PATTERN.match(name):
            raise UsageError(f"Invalid setting name '{name}'")
        if not new_value or not new_value.strip():
            raise UsageError(f"Empty value for setting '{name}'")

        fh = self._open()
        self._lock(fh)
        try:
            fh.seek(0)
            content = fh.read()

            lines = content.splitlines(keepends=True)
            index = find_last_assignment(lines, name)
            if index is None:
                return 0
            self.rewrite_line(lines, index, name, new_value)

            self._make_backup()
            new_content = "".join(lines)
            fh.seek(0)
            fh.write(new_content)
            fh.truncate()
            fh.flush()
            os.fsync(fh.fileno())
            self.history.append(Edit(name, previous_value, new_value, index + 1))
            return 1
        except OSError as e:
            raise FileAccessError(self.path, e.strerror or str(e), Phase.EDIT)
        finally:
            self._unlock(fh)

    def rewrite_line(self, lines: List[str], index: int, name: str, new_value: str):
        """Replace the value on ``lines[index]``, keeping indentation and terminator."""
        line = lines[index]
        body = line.rstrip("\r\n")
        terminator = line[len(body):]

        match = assignment_pattern(name).match(body)
        new_body = f"{match.group('lead')}{match.group('key')} = {format_value(new_value)}"
        if self.comment:
            new_body += " " + self.annotation()

        lines[index] = new_body + terminator

    def read_text(self) -> str:
        """Current file content (through the held handle if open)."""
        if self._fh is not None:
            self._fh.seek(0)
            return self._fh.read()
        try:
            with open(self.path, "r", encoding="utf-8", errors="surrogateescape", newline="") as f:
                return f.read()
        except OSError as e:
            raise FileAccessError(self.path, e.strerror or str(e), Phase.EDIT)

    def close(self):
        if self._fh is not None:
            try:
                self._fh.close()
            finally:
                self._fh = None


def assignment_pattern(name: str) -> "re.Pattern":
    """Regex for an active ``name = value`` line (case-insensitive key)."""
    return re.compile(
        r"^(?P<lead>\s*)(?P<key>" + re.escape(name) + r")\s*=\s*(?P<value>.*?)\s*$",
        re.IGNORECASE,
    )


def find_last_assignment(lines: List[str], name: str) -> Optional[int]:
    """Index of the last active assignment of ``name``, or None."""
    pattern = assignment_pattern(name)
    found = None
    for i, line in enumerate(lines):
        if pattern.match(line.rstrip("\r\n")):
            found = i
    return found
