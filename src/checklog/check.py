"""Run one log check end to end.

select file → read stored offset → (heartbeat short-cut) → scan →
persist offset → evaluate thresholds → CheckResult

:meth:`LogCheck.run` is the error boundary: every :class:`CheckError` is
turned into a result here, so callers always get exactly one state and
one status text.
"""
from __future__ import annotations

import logging
import os
from typing import Sequence

from .alerts.heartbeat import HeartbeatEvaluator
from .alerts.thresholds import StateOverride, ThresholdEvaluator, escalate_on_classifier_request
from .config import CheckConfig, HeartbeatMode
from .errors import CheckError, ConfigError, LogIOError, LogMissingError
from .output.report import CheckResult, Reporter
from .plugins.registry import ClassifierRegistry, default_registry
from .scanning.engine import RunSummary, ScanEngine
from .scanning.pipeline import MatchPipeline
from .scanning.position import PositionStore, resolve_seek_path
from .search.patterns import Combine, PatternSet, load_pattern_file
from .selection.files import LogReference, resolve
from .state import ServiceState
from .timeout import with_timeout

logger = logging.getLogger(__name__)


def build_pipeline(
    config: CheckConfig, registry: ClassifierRegistry | None = None
) -> MatchPipeline:
    """Patterns, whitelist and classifier for ``config``.

    Pattern files take precedence over inline patterns.
    """
    patterns: list[str] = list(config.patterns)
    if config.pattern_file:
        patterns = load_pattern_file(config.pattern_file, config.input_encoding)
    negpatterns: list[str] = list(config.negpatterns)
    if config.negpattern_file:
        negpatterns = load_pattern_file(config.negpattern_file, config.input_encoding)

    if not patterns and config.heartbeat is None:
        raise ConfigError("Regular expression not specified.")

    combine = Combine.AND if config.and_patterns else Combine.OR
    pattern_set = PatternSet(patterns, combine, config.case_insensitive)
    logger.debug("looking for %r", pattern_set)
    whitelist = PatternSet(negpatterns, Combine.OR, config.case_insensitive)

    classifier = None
    name = config.active_classifier
    if config.secure and config.classifier:
        logger.debug("secure mode, not loading classifier %r", config.classifier)
    if name:
        classifier = (registry or default_registry).create(name, **config.classifier_options)
    return MatchPipeline(pattern_set, whitelist or None, classifier)


class LogCheck:
    """One configured log check.

    Usage::

        config = CheckConfig.build(logfile="/var/log/messages", patterns=["[Ee]rror"])
        result = LogCheck(config).run()
        print(Reporter(config).render(result), end="")
        sys.exit(result.exit_code)

    ``overrides`` are pre-empting state hooks consulted before thresholds.
    """

    def __init__(
        self,
        config: CheckConfig,
        registry: ClassifierRegistry | None = None,
        overrides: Sequence[StateOverride] = (),
    ) -> None:
        self.config = config
        self.registry = registry
        self.overrides = list(overrides)
        self.reporter = Reporter(config)
        self.heartbeat = HeartbeatEvaluator(
            warn=config.heartbeat is HeartbeatMode.WARN,
            crit=config.heartbeat is HeartbeatMode.CRIT,
            warning=config.warning,
            critical=config.critical,
            restart_command=config.restart_command,
            return_message=config.return_message,
        )

    def run(self) -> CheckResult:
        try:
            pipeline = build_pipeline(self.config, self.registry)
            outcome = with_timeout(self.config.timeout, self._scan, pipeline)
            if isinstance(outcome, CheckResult):
                return outcome
            store, summary = outcome
            # Only a completed scan may move the stored offset
            store.write(summary.end_offset, self.config.freshness)
            return self._evaluate(pipeline, summary)
        except LogMissingError as exc:
            return self._missing(exc)
        except CheckError as exc:
            logger.debug("check aborted: %s", exc)
            return CheckResult(exc.state, f"{exc.state}: {exc.message}")

    def _missing(self, exc: LogMissingError) -> CheckResult:
        if self.config.missing is not None:
            state = self.config.missing
            return CheckResult(state, f"{state}: {self.config.missing_msg}")
        return CheckResult(exc.state, f"{exc.state}: {exc.message}")

    def _scan(self, pipeline: MatchPipeline) -> CheckResult | tuple[PositionStore, RunSummary]:
        cfg = self.config
        ref = LogReference.from_config(cfg)
        path = resolve(ref)
        if path is None:
            raise LogMissingError(f"Cannot read '{ref.describe()}'")
        logger.debug("using log file %r", path)

        store = PositionStore(
            resolve_seek_path(
                path,
                cfg.seekfile,
                cfg.state_dir,
                cfg.seekfile_id,
                dynamic=bool(cfg.log_pattern),
            )
        )
        stored = store.read()

        if cfg.heartbeat is not None:
            try:
                size = os.stat(path).st_size
            except OSError as exc:
                raise LogIOError(f"Unable to open '{path}': {exc.strerror or exc}") from exc
            verdict = self.heartbeat.unchanged(stored, size)
            if verdict is not None:
                return CheckResult(verdict.state, verdict.message)

        engine = ScanEngine(
            pipeline,
            policy=cfg.output,
            context=cfg.context,
            encoding=cfg.input_encoding,
            crlf=cfg.crlf,
        )
        return store, engine.scan(path, stored)

    def _evaluate(self, pipeline: MatchPipeline, summary: RunSummary) -> CheckResult:
        cfg = self.config
        if pipeline.heartbeat_only:
            verdict = self.heartbeat.line_count(summary.total_lines)
            return CheckResult(
                verdict.state,
                verdict.message,
                summary=summary,
                silent=cfg.ultraq and verdict.state == ServiceState.OK,
            )

        evaluator = ThresholdEvaluator(
            cfg.warning,
            cfg.critical,
            negate=cfg.negate,
            always_ok=cfg.always_ok,
            overrides=self.overrides,
        )
        if cfg.escalate_on_high_result and summary.classified:
            evaluator.add_override(escalate_on_classifier_request)
        state = evaluator.evaluate(summary, classified=summary.classified)
        logger.debug("end result: %s", state)
        return self.reporter.from_summary(summary, state)


def run_check(config: CheckConfig, **kwargs) -> CheckResult:
    """Convenience wrapper: ``LogCheck(config, **kwargs).run()``."""
    return LogCheck(config, **kwargs).run()
