"""Composable line predicates.

Predicates are callables that accept a log line and return bool.
:class:`FilterChain` is AND (short-circuits on the first failure),
:class:`AnyFilter` is OR (short-circuits on the first success).
"""
from __future__ import annotations

from typing import Callable

Predicate = Callable[[str], bool]


class FilterChain:
    """Apply multiple predicates in sequence (logical AND).

    Usage::

        chain = FilterChain()
        chain.add(re.compile("sudo").search)
        chain.add(re.compile("root").search)

        if chain.matches(line):
            ...
    """

    def __init__(self, *predicates: Predicate) -> None:
        self._predicates: list[Predicate] = list(predicates)

    def add(self, predicate: Predicate) -> "FilterChain":
        """Append a predicate and return self for chaining."""
        self._predicates.append(predicate)
        return self

    def matches(self, line: str) -> bool:
        """Return True if all predicates accept the line."""
        return all(p(line) for p in self._predicates)


class AnyFilter:
    """Logical OR: accept a line if at least one predicate matches."""

    def __init__(self, *predicates: Predicate) -> None:
        self._predicates = list(predicates)

    def add(self, predicate: Predicate) -> "AnyFilter":
        self._predicates.append(predicate)
        return self

    def matches(self, line: str) -> bool:
        return any(p(line) for p in self._predicates)
