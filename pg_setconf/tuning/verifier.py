"""
ConvergenceVerifier - Confirms reloaded settings took effect.

A reload is asynchronous, so the verifier polls SHOW until each
changed setting reports the requested value or the attempt budget
runs out.
"""

import re
import time
from typing import Callable, Dict, Optional, TYPE_CHECKING

from ..protocol.setting import VerificationResult, VerificationStatus, unquote

if TYPE_CHECKING:
    from ..discovery.runtime import DatabaseGateway


DEFAULT_ATTEMPTS = 30
DEFAULT_INTERVAL = 0.2  # seconds

MEMORY_UNITS = {
    'b': 1,
    'kb': 1024,
    'mb': 1024**2,
    'gb': 1024**3,
    'tb': 1024**4,
}

TIME_UNITS = {
    'us': 0.001,
    'ms': 1,
    's': 1000,
    'min': 60 * 1000,
    'h': 60 * 60 * 1000,
    'd': 24 * 60 * 60 * 1000,
}

# Spellings the server accepts for booleans; SHOW always reports on/off
BOOLEAN_SPELLINGS = {
    'on': 'on', 'true': 'on', 'yes': 'on', '1': 'on', 't': 'on', 'y': 'on',
    'off': 'off', 'false': 'off', 'no': 'off', '0': 'off', 'f': 'off', 'n': 'off',
}

_QUANTITY = re.compile(r'^(-?\d+(?:\.\d+)?)\s*([A-Za-z]+)$')
_INTEGER = re.compile(r'^-?\d+$')


def _quantity(value: str):
    """Parse '128MB' / '60s' into (kind, amount in base unit), or None."""
    match = _QUANTITY.match(value)
    if not match:
        return None
    number = float(match.group(1))
    unit = match.group(2).lower()
    if unit in MEMORY_UNITS:
        return 'memory', number * MEMORY_UNITS[unit]
    if unit in TIME_UNITS:
        return 'time', number * TIME_UNITS[unit]
    return None


def values_match(requested: str, actual: Optional[str]) -> bool:
    """
    Compare a requested value with what SHOW reports.

    - quotes are stripped and case is ignored
    - boolean spellings match SHOW's on/off ("true" == "on")
    - a bare integer matches the same integer with a unit suffix
      ("100" == "100ms", but not "200ms")
    - two unit-suffixed quantities of the same kind match when equal
      ("1GB" == "1024MB")
    """
    if actual is None:
        return False

    requested = unquote(requested).strip()
    actual = actual.strip()

    if requested.lower() == actual.lower():
        return True

    if actual.lower() in ('on', 'off'):
        return BOOLEAN_SPELLINGS.get(requested.lower()) == actual.lower()

    if _INTEGER.match(requested):
        match = _QUANTITY.match(actual)
        return bool(match) and match.group(1) == requested

    req_qty = _quantity(requested)
    act_qty = _quantity(actual)
    if req_qty and act_qty and req_qty[0] == act_qty[0]:
        return abs(req_qty[1] - act_qty[1]) < 1e-9

    return False


class ConvergenceVerifier:
    """
    Polls live values after a reload.

    Usage:
        verifier = ConvergenceVerifier(gateway)
        results = verifier.verify(results, changed_count=2)
    """

    def __init__(
        self,
        gateway: "DatabaseGateway",
        attempts: int = DEFAULT_ATTEMPTS,
        interval: float = DEFAULT_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
        on_attempt: Optional[Callable[[int, int], None]] = None,
    ):
        """
        Args:
            gateway: source of live values
            attempts: maximum number of polling rounds
            interval: seconds to sleep between rounds
            sleep: sleep function (replaceable in tests)
            on_attempt: called with (attempt, verified_count) after each round
        """
        self.gateway = gateway
        self.attempts = max(1, attempts)
        self.interval = interval
        self._sleep = sleep
        self._on_attempt = on_attempt

    def verify(
        self,
        pending: Dict[str, VerificationResult],
        changed_count: int,
    ) -> Dict[str, VerificationResult]:
        """
        Poll until ``changed_count`` settings are verified or attempts run out.

        Settings already marked ALREADY_CORRECT or VERIFIED are not
        polled and do not count toward the target. Whatever has not
        converged when polling stops keeps status UNVERIFIED.

        Returns:
            The same mapping, with statuses updated
        """
        verified = 0
        if changed_count <= 0:
            return pending

        for attempt in range(1, self.attempts + 1):
            for result in pending.values():
                if result.status != VerificationStatus.UNVERIFIED:
                    continue
                actual = self.gateway.read_value(result.name)
                result.actual_value = actual
                if values_match(result.requested_value, actual):
                    result.mark_verified(actual)
                    verified += 1

            if self._on_attempt:
                self._on_attempt(attempt, verified)

            if verified >= changed_count:
                break
            if attempt < self.attempts:
                self._sleep(self.interval)

        for result in pending.values():
            if result.status == VerificationStatus.UNVERIFIED:
                result.message = (
                    f"still {result.actual_value!r} after {self.attempts} checks"
                )

        return pending
