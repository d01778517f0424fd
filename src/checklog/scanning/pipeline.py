"""Per-line match pipeline: pattern test, whitelist, optional classifier."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

from ..errors import CheckTimeout
from ..plugins.base import Classifier, ClassifierContext, ClassifierResult, coerce_result
from ..search.patterns import PatternSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchRecord:
    """One matched, non-whitelisted line with its context.

    ``before`` excludes the line itself; ``after`` is read-ahead that the
    scan cursor has not consumed yet.
    """

    ordinal: int
    line: str
    before: tuple[str, ...] = ()
    after: tuple[str, ...] = ()
    result: ClassifierResult | None = None

    @property
    def display(self) -> str | None:
        """Classifier replacement text, if any."""
        return self.result.output if self.result else None


@dataclass
class Classification:
    matches: bool
    excluded: bool = False
    result: ClassifierResult | None = None
    fault: Exception | None = field(default=None, repr=False)


class MatchPipeline:
    """Decide what a line means.

    Usage::

        pipeline = MatchPipeline(PatternSet(["ERROR"]), PatternSet(["nrpe"]))
        outcome = pipeline.classify(line)
        if outcome.matches:
            ...

    The whitelist always wins: a line hitting it is excluded before the
    classifier ever sees it.
    """

    def __init__(
        self,
        patterns: PatternSet,
        whitelist: PatternSet | None = None,
        classifier: Classifier | None = None,
    ) -> None:
        self.patterns = patterns
        self.whitelist = whitelist
        self.classifier = classifier

    @property
    def heartbeat_only(self) -> bool:
        return not self.patterns

    def classify(
        self,
        line: str,
        ordinal: int = 0,
        before: Sequence[str] = (),
        peek: Callable[[int], list[str]] | None = None,
    ) -> Classification:
        """Run ``line`` through pattern, whitelist and classifier.

        ``ordinal`` is the match number the line would get if it counts.
        A classifier exception is logged and treated as result 0.
        """
        if not self.patterns.matches(line):
            return Classification(matches=False)
        if self.whitelist and self.whitelist.matches(line):
            logger.debug("whitelisted: %r", line.rstrip("\n"))
            return Classification(matches=False, excluded=True)
        if self.classifier is None:
            return Classification(matches=True)

        context = ClassifierContext(
            ordinal=ordinal,
            before=tuple(before),
            peek=peek or (lambda n: []),
        )
        try:
            result = coerce_result(self.classifier.classify(line, context))
        except CheckTimeout:
            raise
        except Exception as exc:
            logger.debug(
                "classifier %r failed on match %d: %s", self.classifier.name, ordinal, exc
            )
            return Classification(matches=True, result=ClassifierResult(0), fault=exc)
        return Classification(matches=True, result=result)
