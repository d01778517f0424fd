"""Threshold parsing and evaluation of scan counts into a service state.

Thresholds are absolute counts (``"10"``) or percentages (``"25%"``), each
independently.  The comparison is ``>=`` normally and ``<`` under negate;
negate is implied when warning > critical and both are nonzero.
"""
from __future__ import annotations

import logging
import operator
import re
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from ..state import ServiceState

logger = logging.getLogger(__name__)

_THRESHOLD_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(%?)\s*$")


@dataclass(frozen=True)
class Threshold:
    value: float
    percent: bool = False

    @classmethod
    def parse(cls, spec: str) -> "Threshold":
        m = _THRESHOLD_RE.match(spec)
        if m is None:
            raise ValueError(f"Invalid threshold: {spec!r} (expected N or N%)")
        return cls(float(m.group(1)), percent=bool(m.group(2)))

    def __bool__(self) -> bool:
        return self.value > 0

    def __str__(self) -> str:
        num = f"{self.value:g}"
        return f"{num}%" if self.percent else num


class ScanCounts(Protocol):
    """The counters the evaluator needs from a run summary."""

    total_lines: int
    pattern_count: int
    parse_count: int


# Pre-empting override: return a state to force it, or None to pass.
StateOverride = Callable[[ScanCounts], "ServiceState | None"]


def percentage(counts: ScanCounts, classified: bool) -> float:
    """Share of matched lines (classifier on: share of accepted matches)."""
    if classified:
        numerator, denominator = counts.parse_count, counts.pattern_count
    else:
        numerator, denominator = counts.pattern_count, counts.total_lines
    if not denominator:
        return 0.0
    return numerator / denominator * 100


def is_negated(warning: Threshold, critical: Threshold, negate: bool) -> bool:
    """Explicit negate, or implied by an inverted threshold pair."""
    if warning and critical and warning.value > critical.value:
        logger.debug("thresholds inverted, assuming negate")
        return True
    return negate


class ThresholdEvaluator:
    """Turn final counts into a :class:`ServiceState`.

    Usage::

        evaluator = ThresholdEvaluator(Threshold(1), Threshold(0))
        state = evaluator.evaluate(summary, classified=False)

    Overrides are consulted first; the first one returning a state wins,
    regardless of the thresholds.  ``always_ok`` beats everything.
    """

    def __init__(
        self,
        warning: Threshold,
        critical: Threshold,
        negate: bool = False,
        always_ok: bool = False,
        overrides: Sequence[StateOverride] = (),
    ) -> None:
        self.warning = warning
        self.critical = critical
        self.negate = is_negated(warning, critical, negate)
        self.always_ok = always_ok
        self._overrides = list(overrides)

    def add_override(self, override: StateOverride) -> None:
        self._overrides.append(override)

    def _fires(self, threshold: Threshold, counts: ScanCounts, classified: bool) -> bool:
        if threshold.percent:
            measured = percentage(counts, classified)
        elif classified:
            measured = float(counts.parse_count)
        else:
            measured = float(counts.pattern_count)
        cmp = operator.lt if self.negate else operator.ge
        fired = cmp(measured, threshold.value)
        logger.debug(
            "%s %s %s -> %s", measured, "<" if self.negate else ">=", threshold, fired
        )
        return fired

    def evaluate(self, counts: ScanCounts, classified: bool = False) -> ServiceState:
        if self.always_ok:
            return ServiceState.OK

        for override in self._overrides:
            forced = override(counts)
            if forced is not None:
                logger.debug("state forced to %s by override", forced)
                return forced

        if not self.warning and not self.critical:
            return ServiceState.OK

        state = ServiceState.UNKNOWN
        if self.warning:
            if self._fires(self.warning, counts, classified):
                state = ServiceState.WARNING
            else:
                state = ServiceState.OK
        if self.critical:
            if self._fires(self.critical, counts, classified):
                state = ServiceState.CRITICAL
            elif state != ServiceState.WARNING:
                state = ServiceState.OK
        return state


def escalate_on_classifier_request(counts: ScanCounts) -> ServiceState | None:
    """Force CRITICAL when a classifier returned a value above 1."""
    if getattr(counts, "escalations", 0):
        return ServiceState.CRITICAL
    return None
