"""Render check results for the monitoring supervisor.

Two formats are supported: the classic Nagios plugin line
(``STATE: text|perfdata``) and Prometheus exposition format for
script_exporter, where the status text is carried as comments.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from ..config import CheckConfig, ContextSpec
from ..scanning.engine import RunSummary
from ..scanning.pipeline import MatchRecord
from ..state import ServiceState

NO_MATCHES = "No matches found."


@dataclass
class CheckResult:
    """The one outcome of a run: state, status text and optional perfdata."""

    state: ServiceState
    text: str
    perfdata: str | None = None
    summary: RunSummary | None = field(default=None, repr=False)
    # Suppress all output (ultra quiet mode when OK)
    silent: bool = False

    @property
    def exit_code(self) -> int:
        return int(self.state)

    @property
    def lines(self) -> int:
        return self.summary.pattern_count if self.summary else 0

    @property
    def parsed(self) -> int:
        return self.summary.parse_count if self.summary else 0


def render_record(
    record: MatchRecord,
    accumulate: bool,
    context: ContextSpec,
    use_display: bool = False,
) -> str:
    """Text for one retained record.

    With back-context the preceding lines are shown instead of the
    ``(n)`` ordinal prefix; accumulated blocks are separated by ``---``.
    """
    if use_display and record.display:
        text = record.display if record.display.endswith("\n") else record.display + "\n"
        return f"({record.ordinal}) {text}" if accumulate else text

    parts: list[str] = []
    if context.before:
        parts.extend(record.before)
        parts.append(record.line)
    elif accumulate:
        parts.append(f"({record.ordinal}) {record.line}")
    else:
        parts.append(record.line)
    parts.extend(record.after)
    if accumulate and context.enabled:
        parts.append("---\n")
    return "".join(parts)


def render_records(
    records: list[MatchRecord],
    accumulate: bool,
    context: ContextSpec,
    use_display: bool = False,
) -> str:
    return "".join(render_record(r, accumulate, context, use_display) for r in records)


class Reporter:
    """Build and format :class:`CheckResult` objects for one configuration."""

    def __init__(self, config: CheckConfig) -> None:
        self.config = config

    def from_summary(self, summary: RunSummary, state: ServiceState) -> CheckResult:
        cfg = self.config
        context = cfg.context
        display_used = False

        if summary.classified:
            display_used = any(r.display for r in summary.parsed)
            body = render_records(summary.parsed, summary.accumulate, context, use_display=True)
            output = "" if cfg.no_header else f"Parsed output ({summary.parse_count} matched): "
            output += body or NO_MATCHES
            perfdata = summary.perfdata
            if perfdata is None and not cfg.no_perfdata:
                perfdata = f"lines={summary.pattern_count} parsed={summary.parse_count}"
        else:
            output = render_records(summary.matches, summary.accumulate, context)
            perfdata = None if cfg.no_perfdata else f"lines={summary.pattern_count}"

        if state == ServiceState.OK and (cfg.quiet or not output):
            output = NO_MATCHES

        # The pipe separates text from perfdata in the plugin API
        output = output.replace("|", "!").rstrip("\n")

        text = ""
        if not cfg.no_header:
            limit = f"/max {cfg.output.limit}" if cfg.output.limit else ""
            text += (
                f"{state}: Found {summary.pattern_count} lines "
                f"(limit={cfg.warning}/{cfg.critical}{limit}): "
            )
        if context.enabled and not (display_used or state == ServiceState.OK):
            text += "\n"
        text += output
        if cfg.show_filename:
            text += f" [{summary.path}]"

        return CheckResult(
            state=state,
            text=text,
            perfdata=perfdata,
            summary=summary,
            silent=cfg.ultraq and state == ServiceState.OK,
        )

    def render(self, result: CheckResult) -> str:
        """The complete stdout payload for ``result``."""
        if result.silent:
            return ""
        if self.config.prometheus:
            return render_prometheus(result)
        if result.perfdata:
            return f"{result.text}|{result.perfdata}\n"
        return f"{result.text}\n"


def _comment(text: str) -> str:
    return "".join(f"# {line}\n" for line in text.split("\n"))


def render_prometheus(result: CheckResult) -> str:
    """Metrics in exposition format; the status text becomes comments."""
    out = [
        "# HELP check_result checklog return code\n",
        "# TYPE check_result gauge\n",
        f"check_result{{}} {result.exit_code}\n",
        "# HELP lines Number of lines that matched the search query\n",
        "# TYPE lines gauge\n",
        f"lines{{}} {result.lines}\n",
        "# HELP parsed Number of lines that matched the extended query\n",
        "# TYPE parsed gauge\n",
        f"parsed{{}} {result.parsed}\n",
        "# Raw plugin output:\n",
        _comment(result.text),
    ]
    return "".join(out)
