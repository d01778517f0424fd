"""Scan engine — read a log from a stored offset to EOF (or a stop condition).

The engine owns the read loop: it keeps the back-context FIFO, peeks ahead
for forward context, feeds each line to the :class:`MatchPipeline`, applies
the output-limiting policy and works out which offset to persist.
"""
from __future__ import annotations

import dataclasses
import logging
import os
from collections import deque
from dataclasses import dataclass, field

from ..config import ContextSpec, OutputPolicy
from ..errors import LogIOError
from .pipeline import MatchPipeline, MatchRecord
from .reader import LineReader

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Aggregate of one scan.

    ``matches`` and ``parsed`` hold the retained records: only the most
    recent one by default, every one when the policy accumulates.
    """

    path: str
    start_offset: int = 0
    end_offset: int = 0
    size: int = 0
    rotated: bool = False
    total_lines: int = 0
    pattern_count: int = 0
    parse_count: int = 0
    escalations: int = 0
    classifier_errors: int = 0
    stopped_early: bool = False
    accumulate: bool = False
    classified: bool = False
    perfdata: str | None = None
    matches: list[MatchRecord] = field(default_factory=list)
    parsed: list[MatchRecord] = field(default_factory=list)

    def retain(self, bucket: list[MatchRecord], record: MatchRecord) -> None:
        if self.accumulate:
            bucket.append(record)
        else:
            bucket[:] = [record]

    @property
    def first_match(self) -> MatchRecord | None:
        return self.matches[0] if self.matches else None

    @property
    def last_match(self) -> MatchRecord | None:
        return self.matches[-1] if self.matches else None


class ScanEngine:
    """Scan one file through a pipeline.

    Args:
        pipeline:  Match pipeline (an empty pattern set means heartbeat mode).
        policy:    Output-limiting policy.
        context:   Lines of back / forward context to capture.
        encoding:  Text encoding of the log.
        crlf:      Translate CRLF to LF.
    """

    def __init__(
        self,
        pipeline: MatchPipeline,
        policy: OutputPolicy = OutputPolicy(),
        context: ContextSpec = ContextSpec(),
        encoding: str = "utf-8",
        crlf: bool = False,
    ) -> None:
        self.pipeline = pipeline
        self.policy = policy
        self.context = context
        self.encoding = encoding
        self.crlf = crlf

    def scan(self, path: str, start_offset: int | None = None) -> RunSummary:
        """Read ``path`` from ``start_offset``; I/O failures raise LogIOError."""
        try:
            with open(path, "rb") as fh:
                return self._scan(fh, path, start_offset or 0)
        except OSError as exc:
            raise LogIOError(f"Unable to read '{path}': {exc.strerror or exc}") from exc

    def _scan(self, fh, path: str, start_offset: int) -> RunSummary:
        size = os.fstat(fh.fileno()).st_size
        summary = RunSummary(
            path=path,
            size=size,
            accumulate=self.policy.accumulate,
            classified=self.pipeline.classifier is not None,
        )
        logger.debug("previous seek position %d (eof = %d)", start_offset, size)
        if start_offset > size:
            logger.debug("log shrank below stored offset, assuming rotation")
            summary.rotated = True
            start_offset = 0
        fh.seek(start_offset)
        summary.start_offset = start_offset

        reader = LineReader(fh, encoding=self.encoding, crlf=self.crlf)
        back: deque[str] | None = None
        if self.context.before:
            back = deque(maxlen=self.context.before + 1)

        for line in reader:
            summary.total_lines += 1
            if back is not None:
                back.append(line)
            if self.pipeline.heartbeat_only:
                continue

            before = tuple(back)[:-1] if back is not None else ()
            outcome = self.pipeline.classify(
                line,
                ordinal=summary.pattern_count + 1,
                before=before,
                peek=reader.peek,
            )
            if not outcome.matches:
                continue

            summary.pattern_count += 1
            after = tuple(reader.peek(self.context.after)) if self.context.after else ()
            record = MatchRecord(
                ordinal=summary.pattern_count,
                line=line,
                before=before,
                after=after,
                result=outcome.result,
            )
            summary.retain(summary.matches, record)

            result = outcome.result
            if outcome.fault is not None:
                summary.classifier_errors += 1
            if result is not None:
                if result.perfdata is not None:
                    summary.perfdata = result.perfdata
                if result.counts:
                    summary.parse_count += 1
                    if result.value > 1:
                        summary.escalations += 1
                    summary.retain(
                        summary.parsed,
                        dataclasses.replace(record, ordinal=summary.parse_count),
                    )

            if self.policy.limit and summary.pattern_count >= self.policy.limit:
                logger.debug("match limit %d reached, stopping", self.policy.limit)
                summary.stopped_early = True
                break

        summary.end_offset = reader.offset
        if self.policy.skip_to_eof:
            logger.debug("skip to EOF: seek position %d", size)
            summary.end_offset = max(size, reader.offset)
        logger.debug(
            "found %d matches in %d total lines, parse count %d",
            summary.pattern_count,
            summary.total_lines,
            summary.parse_count,
        )
        return summary
