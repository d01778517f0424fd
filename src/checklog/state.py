"""Service states of the Nagios plugin API."""
from __future__ import annotations

from enum import IntEnum


class ServiceState(IntEnum):
    """Final check outcome. The integer value is the process exit code."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3

    @classmethod
    def parse(cls, name: str) -> "ServiceState":
        """Look up a state by name, case-insensitively.

        Raises ``ValueError`` for anything but OK, WARNING, CRITICAL or UNKNOWN.
        """
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Invalid state: {name}") from None

    def __str__(self) -> str:
        return self.name
