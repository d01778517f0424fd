"""Tests for status-line and Prometheus rendering."""
from __future__ import annotations

from checklog.config import ContextSpec, OutputPolicy
from checklog.output.report import CheckResult, Reporter, render_prometheus, render_record
from checklog.plugins.base import ClassifierResult
from checklog.scanning.engine import RunSummary
from checklog.scanning.pipeline import MatchRecord
from checklog.state import ServiceState


def _summary(lines: list[str], total: int = 10, **kwargs) -> RunSummary:
    accumulate = kwargs.pop("accumulate", False)
    records = [MatchRecord(i, line) for i, line in enumerate(lines, start=1)]
    if not accumulate:
        records = records[-1:]
    return RunSummary(
        path="/var/log/app.log",
        total_lines=total,
        pattern_count=len(lines),
        accumulate=accumulate,
        matches=records,
        **kwargs,
    )


# ---------------------------------------------------------------------------
# render_record
# ---------------------------------------------------------------------------

class TestRenderRecord:
    def test_plain(self) -> None:
        assert render_record(MatchRecord(1, "x\n"), False, ContextSpec()) == "x\n"

    def test_accumulated_gets_ordinal(self) -> None:
        assert render_record(MatchRecord(3, "x\n"), True, ContextSpec()) == "(3) x\n"

    def test_back_context_replaces_ordinal(self) -> None:
        record = MatchRecord(1, "x\n", before=("a\n", "b\n"), after=("c\n",))
        assert render_record(record, False, ContextSpec(before=2, after=1)) == "a\nb\nx\nc\n"

    def test_accumulated_context_separator(self) -> None:
        record = MatchRecord(2, "x\n", after=("c\n",))
        assert render_record(record, True, ContextSpec(after=1)) == "(2) x\nc\n---\n"

    def test_display_text(self) -> None:
        record = MatchRecord(2, "raw\n", result=ClassifierResult(1, output="nice"))
        assert render_record(record, False, ContextSpec(), use_display=True) == "nice\n"
        assert render_record(record, True, ContextSpec(), use_display=True) == "(2) nice\n"


# ---------------------------------------------------------------------------
# Reporter
# ---------------------------------------------------------------------------

class TestReporter:
    def test_single_match(self, make_config) -> None:
        reporter = Reporter(make_config("app.log", patterns=["ERROR"]))
        result = reporter.from_summary(_summary(["[ERROR] disk full\n"]), ServiceState.WARNING)
        assert result.text == "WARNING: Found 1 lines (limit=1/0): [ERROR] disk full"
        assert reporter.render(result) == (
            "WARNING: Found 1 lines (limit=1/0): [ERROR] disk full|lines=1\n"
        )

    def test_no_matches(self, make_config) -> None:
        reporter = Reporter(make_config("app.log", patterns=["ERROR"]))
        result = reporter.from_summary(_summary([]), ServiceState.OK)
        assert result.text == "OK: Found 0 lines (limit=1/0): No matches found."

    def test_pipe_is_replaced(self, make_config) -> None:
        reporter = Reporter(make_config("app.log", patterns=["ERROR"]))
        result = reporter.from_summary(_summary(["ERROR a|b\n"]), ServiceState.WARNING)
        assert result.text.endswith("ERROR a!b")

    def test_output_all(self, make_config) -> None:
        cfg = make_config("app.log", patterns=["E"], output=OutputPolicy(output_all=True))
        result = Reporter(cfg).from_summary(
            _summary(["E1\n", "E2\n"], accumulate=True), ServiceState.WARNING
        )
        assert result.text.endswith("): (1) E1\n(2) E2")

    def test_max_shown_in_header(self, make_config) -> None:
        cfg = make_config("app.log", patterns=["E"], warning="2", critical="4", output=OutputPolicy(limit=5))
        result = Reporter(cfg).from_summary(_summary(["E\n"] * 2, accumulate=True), ServiceState.WARNING)
        assert result.text.startswith("WARNING: Found 2 lines (limit=2/4/max 5): ")

    def test_percent_thresholds_in_header(self, make_config) -> None:
        cfg = make_config("app.log", patterns=["E"], warning="25%", critical="50%")
        result = Reporter(cfg).from_summary(_summary(["E\n"]), ServiceState.OK)
        assert "(limit=25%/50%)" in result.text

    def test_no_header(self, make_config) -> None:
        cfg = make_config("app.log", patterns=["E"], no_header=True)
        result = Reporter(cfg).from_summary(_summary(["E here\n"]), ServiceState.WARNING)
        assert result.text == "E here"

    def test_quiet_when_ok(self, make_config) -> None:
        cfg = make_config("app.log", patterns=["E"], quiet=True, warning="5")
        result = Reporter(cfg).from_summary(_summary(["E here\n"]), ServiceState.OK)
        assert result.text.endswith("No matches found.")

    def test_ultraq_silences_ok(self, make_config) -> None:
        reporter = Reporter(make_config("app.log", patterns=["E"], ultraq=True))
        result = reporter.from_summary(_summary([]), ServiceState.OK)
        assert result.silent
        assert reporter.render(result) == ""

    def test_ultraq_keeps_alerts(self, make_config) -> None:
        reporter = Reporter(make_config("app.log", patterns=["E"], ultraq=True))
        result = reporter.from_summary(_summary(["E\n"]), ServiceState.WARNING)
        assert reporter.render(result).startswith("WARNING")

    def test_no_perfdata(self, make_config) -> None:
        reporter = Reporter(make_config("app.log", patterns=["E"], no_perfdata=True))
        result = reporter.from_summary(_summary(["E\n"]), ServiceState.WARNING)
        assert "|" not in reporter.render(result)

    def test_show_filename(self, make_config) -> None:
        reporter = Reporter(make_config("app.log", patterns=["E"], show_filename=True))
        result = reporter.from_summary(_summary(["E\n"]), ServiceState.WARNING)
        assert result.text.endswith("E [/var/log/app.log]")

    def test_context_starts_on_new_line(self, make_config) -> None:
        reporter = Reporter(make_config("app.log", patterns=["E"], context="-1"))
        summary = _summary([])
        summary.pattern_count = 1
        summary.matches = [MatchRecord(1, "E\n", before=("prev\n",))]
        result = reporter.from_summary(summary, ServiceState.WARNING)
        assert result.text == "WARNING: Found 1 lines (limit=1/0): \nprev\nE"

    def test_classified_output(self, make_config) -> None:
        reporter = Reporter(make_config("app.log", patterns=["E"], classifier="regex-extract"))
        summary = _summary(["E raw\n", "E other\n"], classified=True)
        summary.parse_count = 1
        summary.parsed = [MatchRecord(1, "E raw\n", result=ClassifierResult(1, output="custom"))]
        result = reporter.from_summary(summary, ServiceState.WARNING)
        assert result.text == "WARNING: Found 2 lines (limit=1/0): Parsed output (1 matched): custom"
        assert result.perfdata == "lines=2 parsed=1"

    def test_classifier_perfdata_replaces_default(self, make_config) -> None:
        reporter = Reporter(make_config("app.log", patterns=["E"], classifier="regex-extract"))
        summary = _summary(["E\n"], classified=True, perfdata="ms=120")
        result = reporter.from_summary(summary, ServiceState.OK)
        assert result.perfdata == "ms=120"

    def test_error_result_rendering(self, make_config) -> None:
        reporter = Reporter(make_config("app.log", patterns=["E"]))
        result = CheckResult(ServiceState.CRITICAL, "CRITICAL: Unable to read 'x'")
        assert reporter.render(result) == "CRITICAL: Unable to read 'x'\n"


class TestPrometheus:
    def test_metrics_and_comments(self) -> None:
        summary = _summary(["E\n"])
        result = CheckResult(ServiceState.WARNING, "WARNING: line one\nline two", summary=summary)
        out = render_prometheus(result)
        assert "check_result{} 1\n" in out
        assert "lines{} 1\n" in out
        assert "parsed{} 0\n" in out
        assert out.endswith("# Raw plugin output:\n# WARNING: line one\n# line two\n")

    def test_error_without_summary(self) -> None:
        out = render_prometheus(CheckResult(ServiceState.UNKNOWN, "UNKNOWN: boom"))
        assert "check_result{} 3\n" in out
        assert "lines{} 0\n" in out

    def test_reporter_uses_prometheus(self, make_config) -> None:
        reporter = Reporter(make_config("app.log", patterns=["E"], prometheus=True))
        result = reporter.from_summary(_summary([]), ServiceState.OK)
        assert reporter.render(result).startswith("# HELP check_result")
