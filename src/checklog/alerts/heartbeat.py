"""Heartbeat checks — alert when a log file stops growing."""
from __future__ import annotations

from dataclasses import dataclass

from ..state import ServiceState
from .thresholds import Threshold


@dataclass(frozen=True)
class HeartbeatVerdict:
    state: ServiceState
    message: str


class HeartbeatEvaluator:
    """Evaluate "was the file written to" independently of pattern matching.

    Args:
        warn:            Alert WARNING when the log did not grow.
        crit:            Alert CRITICAL when the log did not grow.
        warning:         Minimum new lines expected before WARNING.
        critical:        Minimum new lines expected before CRITICAL.
        restart_command: Prefixed to CRITICAL output, for event handlers.
        return_message:  Appended to CRITICAL output.
    """

    def __init__(
        self,
        warn: bool,
        crit: bool,
        warning: Threshold,
        critical: Threshold,
        restart_command: str = "",
        return_message: str = "",
    ) -> None:
        self.warn = warn
        # A warning heartbeat with a critical threshold escalates.
        self.crit = crit or (warn and bool(critical))
        self.warning = warning.value
        self.critical = critical.value
        self._restart_command = restart_command
        self._return_message = return_message

    def _critical(self, text: str) -> HeartbeatVerdict:
        prefix = f"{self._restart_command} " if self._restart_command else ""
        suffix = f" {self._return_message}" if self._return_message else ""
        return HeartbeatVerdict(ServiceState.CRITICAL, f"{prefix}CRITICAL: {text}{suffix}")

    def unchanged(self, stored_offset: int | None, size: int) -> HeartbeatVerdict | None:
        """Verdict when the stored offset shows no growth, else None."""
        if not stored_offset or stored_offset != size:
            return None
        if self.crit:
            return self._critical("Log file not written to since last check")
        if self.warn:
            return HeartbeatVerdict(
                ServiceState.WARNING, "WARNING: Log file not written to since last check"
            )
        return None

    def line_count(self, total_lines: int) -> HeartbeatVerdict:
        """Verdict for a pattern-less run from the number of new lines."""
        critical = self.critical
        if self.crit and not critical:
            critical = 1
        if self.crit and total_lines < critical:
            return self._critical(
                f"Only {total_lines} lines written since last check "
                f"(expected at least {critical:g})"
            )
        if self.warn and total_lines < self.warning:
            return HeartbeatVerdict(
                ServiceState.WARNING,
                f"WARNING: Only {total_lines} lines written since last check "
                f"(expected at least {self.warning:g})",
            )
        return HeartbeatVerdict(
            ServiceState.OK, f"OK: {total_lines} lines written since last check"
        )
