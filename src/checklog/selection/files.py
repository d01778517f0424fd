"""Resolve a logical log reference to the one concrete file to scan.

A reference is a fixed path plus an optional glob suffix, e.g.
``/var/log/httpd/access`` + ``.%Y%m%d.log``.  When several files match,
the selection policy picks one.
"""
from __future__ import annotations

import glob
import logging
import os
from dataclasses import dataclass, field

from ..config import LogSelect
from .timestamp import expand_placeholders, parse_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogReference:
    """What to scan: fixed path, optional glob suffix and selection policy."""

    path: str
    pattern: str | None = None
    timestamp: float = field(default_factory=lambda: parse_timestamp(None))
    select: LogSelect = LogSelect.LAST_MATCH

    @classmethod
    def from_config(cls, config) -> "LogReference":
        return cls(
            path=config.logfile,
            pattern=config.log_pattern,
            timestamp=parse_timestamp(config.timestamp),
            select=config.log_select,
        )

    @property
    def glob_expression(self) -> str | None:
        """The full glob to expand, or None for a plain file reference."""
        if self.pattern:
            return self.path + expand_placeholders(self.pattern, self.timestamp)
        if os.path.isdir(self.path):
            return os.path.join(self.path, "*")
        return None

    def describe(self) -> str:
        if self.pattern:
            return f"{self.path}{self.pattern}"
        return self.path


def pick(candidates: list[str], select: LogSelect) -> str:
    """Choose one file among several according to ``select``."""
    ordered = sorted(candidates)
    if select is LogSelect.FIRST_MATCH:
        logger.debug("picking first match")
        return ordered[0]
    if select is LogSelect.MOST_RECENT:
        logger.debug("picking most recent match")
        chosen, latest = ordered[-1], -1.0
        for path in ordered:
            mtime = os.stat(path).st_mtime
            logger.debug("considering %r (%s)", path, mtime)
            # >= so the later candidate wins a tie
            if mtime >= latest:
                chosen, latest = path, mtime
        return chosen
    logger.debug("picking last match")
    return ordered[-1]


def resolve(ref: LogReference) -> str | None:
    """Return the concrete path to scan, or None when nothing qualifies."""
    expression = ref.glob_expression
    if expression is None:
        return ref.path if os.path.isfile(ref.path) else None

    logger.debug("looking for files matching %r", expression)
    candidates = [p for p in glob.glob(expression) if os.path.isfile(p)]
    if not candidates:
        logger.debug("no files match %r", expression)
        return None
    if len(candidates) == 1:
        return candidates[0]
    logger.debug("found %d files matching selection", len(candidates))
    return pick(candidates, ref.select)
