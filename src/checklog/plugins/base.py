"""Classifier plugin Protocol definitions.

A classifier gets a second look at every matched, non-whitelisted line and
decides whether it counts toward the alert thresholds.  It can replace the
displayed text and supply custom performance data.

Third-party classifiers implement :class:`Classifier` and register
themselves via the entry-points mechanism::

    [project.entry-points."checklog.classifiers"]
    slow_requests = "my_package.classifiers:SlowRequests"

The entry point must name a class (or any factory) that accepts the
``--classifier-option key=value`` pairs as keyword arguments.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, Sequence, Union, runtime_checkable


@dataclass(frozen=True)
class ClassifierResult:
    """Outcome of classifying one line.

    Attributes:
        value:    0 = matched but not counted; positive = counted.  Values
                  above 1 request escalation when that policy is enabled.
        output:   Replacement display text for the line (no context kept).
        perfdata: Custom performance data replacing the default counters.
    """

    value: int
    output: str | None = None
    perfdata: str | None = None

    @property
    def counts(self) -> bool:
        return self.value > 0


@dataclass(frozen=True)
class ClassifierContext:
    """Read-only view of the surroundings of the line being classified.

    ``before`` holds the preceding lines kept for back-context (oldest
    first).  ``peek(n)`` returns up to ``n`` following lines without moving
    the scan cursor.
    """

    ordinal: int
    before: Sequence[str] = ()
    peek: Callable[[int], list[str]] = lambda n: []


@runtime_checkable
class Classifier(Protocol):
    """Protocol for per-line classifiers."""

    @property
    def name(self) -> str:
        """Unique classifier name, e.g. 'field-threshold'."""
        ...

    def classify(
        self, line: str, context: ClassifierContext
    ) -> Union[ClassifierResult, int, bool, None]:
        """Classify a matched line.  Plain ints and bools are accepted."""
        ...


def coerce_result(raw: Union[ClassifierResult, int, bool, None]) -> ClassifierResult:
    """Normalise a classifier return value."""
    if isinstance(raw, ClassifierResult):
        return raw
    if raw is None:
        return ClassifierResult(0)
    return ClassifierResult(int(raw))
