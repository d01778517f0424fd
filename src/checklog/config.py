"""Configuration — environment defaults via pydantic-settings plus the
immutable per-run :class:`CheckConfig`.

``Settings`` holds the 12-factor style defaults (``CHECKLOG_*`` variables or
a ``.env`` file).  ``CheckConfig`` is built once per invocation, validated,
frozen, and handed explicitly to every component.
"""
from __future__ import annotations

import codecs
import re
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .alerts.thresholds import Threshold
from .errors import ConfigError
from .state import ServiceState

DEFAULT_MISSING_MSG = "No log file found"


class Settings(BaseSettings):
    """checklog defaults — loaded from env vars / .env file."""

    model_config = SettingsConfigDict(env_prefix="CHECKLOG_", env_file=".env", extra="ignore")

    timeout: int = Field(default=15, description="Plugin time-out in seconds (0 = none)")
    state_dir: str = Field(default_factory=tempfile.gettempdir, description="Directory for auto-generated seek files")
    input_encoding: str = Field(default="utf-8", description="Encoding of log and pattern files")
    output_encoding: str = Field(default="utf-8", description="Encoding of the status output")


settings = Settings()


class LogSelect(str, Enum):
    """How to pick one file when a glob matches several."""

    MOST_RECENT = "most_recent"
    FIRST_MATCH = "first_match"
    LAST_MATCH = "last_match"


class HeartbeatMode(str, Enum):
    WARN = "warn"
    CRIT = "crit"


_CONTEXT_RE = re.compile(r"^\s*([+-]?)(\d+)\s*$")


@dataclass(frozen=True)
class ContextSpec:
    """Lines of context around a match: ``N`` both ways, ``-N`` before, ``+N`` after."""

    before: int = 0
    after: int = 0

    @classmethod
    def parse(cls, spec: str | None) -> "ContextSpec":
        if not spec:
            return cls()
        m = _CONTEXT_RE.match(spec)
        if m is None:
            raise ValueError(f"Invalid context: {spec!r} (expected N, -N or +N)")
        sign, count = m.group(1), int(m.group(2))
        if sign == "+":
            return cls(after=count)
        if sign == "-":
            return cls(before=count)
        return cls(before=count, after=count)

    @property
    def enabled(self) -> bool:
        return bool(self.before or self.after)


@dataclass(frozen=True)
class OutputPolicy:
    """Consolidated output-limiting policy.

    ``limit`` stops the scan after that many counted matches (0 = never).
    ``skip_to_eof`` persists end-of-file instead of the stop position, so the
    unread remainder is ignored for good.  ``output_all`` only changes
    retention: every record is kept instead of the most recent one.
    """

    limit: int = 0
    skip_to_eof: bool = False
    output_all: bool = False

    @classmethod
    def from_flags(
        cls,
        output_all: bool = False,
        report_max: int | None = None,
        report_only: int | None = None,
        stop_first_match: bool = False,
        report_first_only: bool = False,
    ) -> "OutputPolicy":
        """Resolve the legacy flags.

        Precedence, highest first: report_first_only, stop_first_match,
        report_only, report_max.
        """
        for value in (report_max, report_only):
            if value is not None and value < 0:
                raise ValueError(f"Invalid match limit: {value}")
        if report_first_only:
            return cls(limit=1, skip_to_eof=True, output_all=output_all)
        if stop_first_match:
            return cls(limit=1, output_all=output_all)
        if report_only:
            return cls(limit=report_only, skip_to_eof=True, output_all=output_all)
        if report_max:
            return cls(limit=report_max, output_all=output_all)
        return cls(output_all=output_all)

    @property
    def accumulate(self) -> bool:
        """True if records are appended rather than replaced."""
        return self.output_all or self.limit > 0


class CheckConfig(BaseModel):
    """Everything a single run needs.  Immutable once built."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    # Log file selection
    logfile: str
    log_pattern: str | None = None
    log_select: LogSelect = LogSelect.LAST_MATCH
    timestamp: str = "now"
    show_filename: bool = False

    # Position store
    seekfile: str | None = None
    seekfile_id: str = ""
    state_dir: str = Field(default_factory=lambda: settings.state_dir)
    freshness: int = Field(default=0, ge=0)

    # Matching
    patterns: tuple[str, ...] = ()
    pattern_file: Path | None = None
    negpatterns: tuple[str, ...] = ()
    negpattern_file: Path | None = None
    and_patterns: bool = False
    case_insensitive: bool = False

    # Classifier
    classifier: str | None = None
    classifier_options: dict[str, str] = Field(default_factory=dict)
    secure: bool = False
    escalate_on_high_result: bool = False

    # Alerting
    warning: Threshold = Threshold(1)
    critical: Threshold = Threshold(0)
    negate: bool = False
    always_ok: bool = False
    heartbeat: HeartbeatMode | None = None
    missing: ServiceState | None = None
    missing_msg: str = DEFAULT_MISSING_MSG
    restart_command: str = ""
    return_message: str = ""

    # Output
    output: OutputPolicy = OutputPolicy()
    context: ContextSpec = ContextSpec()
    quiet: bool = False
    ultraq: bool = False
    no_header: bool = False
    no_perfdata: bool = False
    prometheus: bool = False

    # Runtime
    timeout: int = Field(default_factory=lambda: settings.timeout, ge=0)
    input_encoding: str = Field(default_factory=lambda: settings.input_encoding)
    output_encoding: str = Field(default_factory=lambda: settings.output_encoding)
    crlf: bool = False

    @field_validator("warning", "critical", mode="before")
    @classmethod
    def _parse_threshold(cls, value: Any) -> Threshold:
        if isinstance(value, Threshold):
            return value
        return Threshold.parse(str(value))

    @field_validator("context", mode="before")
    @classmethod
    def _parse_context(cls, value: Any) -> ContextSpec:
        if isinstance(value, ContextSpec):
            return value
        return ContextSpec.parse(value)

    @field_validator("missing", mode="before")
    @classmethod
    def _parse_missing(cls, value: Any) -> ServiceState | None:
        if value is None or isinstance(value, ServiceState):
            return value
        return ServiceState.parse(str(value))

    @field_validator("input_encoding", "output_encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError:
            raise ValueError(f"Unknown encoding: {value}") from None
        return value

    @field_validator("patterns", "negpatterns", mode="before")
    @classmethod
    def _drop_empty(cls, value: Any) -> tuple[str, ...]:
        return tuple(p for p in (value or ()) if p)

    @model_validator(mode="after")
    def _check_mandatory(self) -> "CheckConfig":
        if not self.logfile:
            raise ValueError("Log file not specified.")
        if not (self.patterns or self.pattern_file or self.heartbeat):
            raise ValueError("Regular expression not specified.")
        return self

    @classmethod
    def build(cls, **kwargs: Any) -> "CheckConfig":
        """Validate ``kwargs`` into a config, raising :class:`ConfigError`."""
        try:
            return cls(**kwargs)
        except ValidationError as exc:
            first = exc.errors()[0]
            msg = str(first.get("msg", exc)).removeprefix("Value error, ")
            loc = ".".join(str(p) for p in first.get("loc", ()))
            raise ConfigError(f"{loc}: {msg}" if loc else msg) from exc

    @property
    def active_classifier(self) -> str | None:
        return None if self.secure else self.classifier
