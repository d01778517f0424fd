"""Regex pattern sets with OR / AND combination."""
from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path
from typing import Iterable

from ..errors import ConfigError, LogIOError
from .filter_chain import AnyFilter, FilterChain

logger = logging.getLogger(__name__)


class Combine(str, Enum):
    OR = "or"
    AND = "and"


def _bool_search(regex: re.Pattern[str]):
    return lambda line: regex.search(line) is not None


class PatternSet:
    """An ordered set of regular expressions tested against a line.

    In OR mode any expression matching is enough; in AND mode every
    expression has to match somewhere in the line (order does not matter).
    An empty set never matches.
    """

    def __init__(
        self,
        patterns: Iterable[str],
        combine: Combine = Combine.OR,
        case_insensitive: bool = False,
    ) -> None:
        self.patterns = tuple(p for p in patterns if p)
        self.combine = combine
        self.case_insensitive = case_insensitive
        flags = re.IGNORECASE if case_insensitive else 0
        try:
            self._regexes = [re.compile(p, flags) for p in self.patterns]
        except re.error as exc:
            raise ConfigError(f"Invalid regular expression: {exc}") from exc

        self._filter: FilterChain | AnyFilter = (
            FilterChain() if combine is Combine.AND else AnyFilter()
        )
        for regex in self._regexes:
            self._filter.add(_bool_search(regex))

    def matches(self, line: str) -> bool:
        if not self._regexes:
            return False
        return self._filter.matches(line)

    def __bool__(self) -> bool:
        return bool(self._regexes)

    def __len__(self) -> int:
        return len(self._regexes)

    def __repr__(self) -> str:
        joiner = ")(?=.*" if self.combine is Combine.AND else "|"
        expr = joiner.join(self.patterns)
        if self.combine is Combine.AND and expr:
            expr = f"(?=.*{expr})"
        return f"PatternSet({expr!r})"


def load_pattern_file(path: str | Path, encoding: str = "utf-8") -> list[str]:
    """Read one pattern per line, skipping blank lines."""
    logger.debug("using pattern file %r", str(path))
    try:
        with open(path, encoding=encoding, errors="replace") as fh:
            return [line.rstrip("\r\n") for line in fh if line.strip()]
    except OSError as exc:
        raise LogIOError(f"Unable to open '{path}': {exc.strerror or exc}") from exc
