"""Reference timestamps and date(1)-style placeholders in file globs."""
from __future__ import annotations

import logging
import re
import time
from datetime import datetime

logger = logging.getLogger(__name__)

# Seconds per unit keyword, matched on prefix ("2 hours", "1 min", "3 days")
_UNITS: list[tuple[str, int]] = [
    ("mon", 2592000),
    ("week", 604800),
    ("day", 86400),
    ("hour", 3600),
    ("min", 60),
    ("sec", 1),
]

_RELATIVE_RE = re.compile(r"(\d+)\s*(mon|week|day|hour|min|sec)", re.IGNORECASE)
_KEYWORD_RE = re.compile(r"sec|min|hour|day|week|mon|now|yesterday", re.IGNORECASE)
_PLACEHOLDER_RE = re.compile(r"%([YymdHMSwj])")


def parse_timestamp(spec: str | int | float | None, now: float | None = None) -> float:
    """Resolve a reference timestamp to seconds since the epoch.

    Accepts epoch seconds, ``now``, ``yesterday`` or a relative expression
    such as ``"1 day, 6 hours ago"`` (components are summed).  Anything
    unrecognised falls back to the current time.
    """
    current = time.time() if now is None else now
    if spec is None or spec == "":
        return current
    if isinstance(spec, (int, float)):
        return float(spec)
    text = spec.strip()
    if text.isdigit():
        return float(text)
    if not _KEYWORD_RE.search(text):
        logger.debug("timestamp %r not valid, using 'now'", spec)
        return current

    offset = 0
    if re.search("yesterday", text, re.IGNORECASE):
        offset += 86400
    unit_seconds = dict(_UNITS)
    for count, unit in _RELATIVE_RE.findall(text):
        offset += int(count) * unit_seconds[unit.lower()]
    resolved = current - offset
    logger.debug("new reference timestamp: %s", time.ctime(resolved))
    return resolved


def expand_placeholders(pattern: str, timestamp: float) -> str:
    """Substitute ``%Y %y %m %d %H %M %S %w %j`` using local time.

    Other ``%`` sequences are left alone, so glob syntax survives intact.
    """
    if "%" not in pattern:
        return pattern
    moment = datetime.fromtimestamp(timestamp)
    return _PLACEHOLDER_RE.sub(lambda m: moment.strftime("%" + m.group(1)), pattern)
