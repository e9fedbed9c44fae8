"""
Setting and result types passed between the batch components.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .errors import UsageError


NAME_PATTERN = re.compile(r"^\w+$")


class VerificationStatus(str, Enum):
    """Outcome of one requested change."""
    UNVERIFIED = "UNVERIFIED"
    VERIFIED = "VERIFIED"
    ALREADY_CORRECT = "ALREADY_CORRECT"


@dataclass
class Setting:
    """A requested change: parameter name and raw (possibly quoted) value."""
    name: str
    requested_value: str

    @classmethod
    def parse(cls, arg: str) -> "Setting":
        """
        Parse a ``name=value`` argument.

        Raises:
            UsageError: if the argument has no '=', an invalid name
                or an empty value
        """
        if "=" not in arg:
            raise UsageError(f"Invalid --change '{arg}': expected name=value")

        name, value = arg.split("=", 1)
        name = name.strip()
        value = value.strip()

        if not NAME_PATTERN.match(name):
            raise UsageError(f"Invalid setting name '{name}'")
        if not value or value in ("''", '""'):
            raise UsageError(f"Empty value for setting '{name}'")

        return cls(name=name, requested_value=value)


@dataclass
class VerificationResult:
    """Per-setting status, owned by the verifier once a batch starts."""
    name: str
    requested_value: str
    status: VerificationStatus = VerificationStatus.UNVERIFIED
    actual_value: Optional[str] = None
    previous_value: Optional[str] = None
    lines_changed: int = 0
    message: str = ""

    @property
    def is_ok(self) -> bool:
        return self.status != VerificationStatus.UNVERIFIED

    def mark_verified(self, actual: str):
        self.status = VerificationStatus.VERIFIED
        self.actual_value = actual
        self.message = ""

    def mark_already_correct(self, actual: str):
        self.status = VerificationStatus.ALREADY_CORRECT
        self.actual_value = actual


@dataclass
class BatchSummary:
    """Everything the CLI needs to print and pick an exit code."""
    results: Dict[str, VerificationResult] = field(default_factory=dict)
    changed: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    reload_sent: bool = False
    dry_run: bool = False
    backup_path: Optional[str] = None

    def exit_code(self) -> int:
        """0 when at least one change was applied (or would be), else 1."""
        return 0 if self.changed else 1


def unquote(value: str) -> str:
    """Strip one pair of surrounding single or double quotes."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1].replace("''", "'")
    return value
