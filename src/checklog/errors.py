"""Error types resolved into a final service state at the check boundary."""
from __future__ import annotations

from .state import ServiceState


class CheckError(Exception):
    """Abort the run and report ``state`` with the exception message."""

    state: ServiceState = ServiceState.UNKNOWN

    def __init__(self, message: str, state: ServiceState | None = None) -> None:
        super().__init__(message)
        if state is not None:
            self.state = state

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""


class ConfigError(CheckError):
    """Invalid or incomplete configuration. Raised before any file I/O."""

    state = ServiceState.UNKNOWN


class LogMissingError(CheckError):
    """No log file could be selected. The state can be overridden."""

    state = ServiceState.CRITICAL


class LogIOError(CheckError):
    """Open/read/write failure. Always CRITICAL."""

    state = ServiceState.CRITICAL


class CheckTimeout(CheckError):
    """Maximum run time exceeded."""

    state = ServiceState.UNKNOWN
