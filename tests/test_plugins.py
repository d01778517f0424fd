"""Tests for the classifier protocol, registry and built-in classifiers."""
from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from checklog.errors import ConfigError
from checklog.plugins.base import Classifier, ClassifierContext, ClassifierResult, coerce_result
from checklog.plugins.examples.field_threshold import FieldThresholdClassifier
from checklog.plugins.examples.regex_extract import RegexExtractClassifier
from checklog.plugins.registry import ClassifierRegistry


# ---------------------------------------------------------------------------
# Minimal classifier implementations for testing
# ---------------------------------------------------------------------------

class _GoodClassifier:
    @property
    def name(self) -> str:
        return "test-classifier"

    def classify(self, line: str, context: ClassifierContext) -> int:
        return 1


class _BadClassifier:
    """Missing classify()."""

    name = "bad"


CTX = ClassifierContext(ordinal=1)


# ---------------------------------------------------------------------------
# Protocol checks
# ---------------------------------------------------------------------------

class TestProtocol:
    def test_good_classifier(self) -> None:
        assert isinstance(_GoodClassifier(), Classifier)

    def test_bad_classifier(self) -> None:
        assert not isinstance(_BadClassifier(), Classifier)

    def test_builtins_implement_protocol(self) -> None:
        assert isinstance(FieldThresholdClassifier(field=1, limit=0), Classifier)
        assert isinstance(RegexExtractClassifier(regex="x"), Classifier)

    @pytest.mark.parametrize("raw, value", [(None, 0), (False, 0), (True, 1), (0, 0), (3, 3)])
    def test_coerce_result(self, raw, value: int) -> None:
        assert coerce_result(raw) == ClassifierResult(value)

    def test_coerce_passes_results_through(self) -> None:
        result = ClassifierResult(1, output="x")
        assert coerce_result(result) is result

    def test_result_counts(self) -> None:
        assert not ClassifierResult(0).counts
        assert ClassifierResult(2).counts

    def test_context_default_peek(self) -> None:
        assert CTX.peek(3) == []


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestClassifierRegistry:
    def test_builtins_registered(self) -> None:
        reg = ClassifierRegistry()
        assert reg.names() == ["field-threshold", "regex-extract"]
        assert "field-threshold" in reg

    def test_without_builtins(self) -> None:
        assert ClassifierRegistry(builtins=False).names() == []

    def test_register_factory(self) -> None:
        reg = ClassifierRegistry(builtins=False)
        reg.register("test-classifier", _GoodClassifier)
        assert isinstance(reg.create("test-classifier"), _GoodClassifier)

    def test_register_instance(self) -> None:
        reg = ClassifierRegistry(builtins=False)
        instance = _GoodClassifier()
        reg.register_instance(instance)
        assert reg.create("test-classifier") is instance

    def test_register_instance_rejects_bad(self) -> None:
        with pytest.raises(TypeError):
            ClassifierRegistry().register_instance(_BadClassifier())  # type: ignore[arg-type]

    def test_register_non_callable(self) -> None:
        with pytest.raises(TypeError):
            ClassifierRegistry().register("x", "not callable")  # type: ignore[arg-type]

    def test_unknown_name(self) -> None:
        with pytest.raises(ConfigError, match="Unknown classifier"):
            ClassifierRegistry().create("nope")

    def test_bad_options(self) -> None:
        with pytest.raises(ConfigError, match="Invalid options"):
            ClassifierRegistry().create("field-threshold", field="7")

    def test_factory_must_build_classifier(self) -> None:
        reg = ClassifierRegistry(builtins=False)
        reg.register("bad", _BadClassifier)
        with pytest.raises(ConfigError):
            reg.create("bad")

    def test_discover_no_entry_points(self) -> None:
        reg = ClassifierRegistry(builtins=False)
        with patch("importlib.metadata.entry_points", return_value=[]):
            assert reg.discover() == 0

    def test_discover_loads_factory(self) -> None:
        ep = MagicMock()
        ep.name = "test-classifier"
        ep.load.return_value = _GoodClassifier
        reg = ClassifierRegistry(builtins=False)
        with patch("importlib.metadata.entry_points", return_value=[ep]):
            assert reg.discover() == 1
        assert "test-classifier" in reg

    def test_discover_skips_broken_entry_point(self) -> None:
        ep = MagicMock()
        ep.name = "broken"
        ep.load.side_effect = ImportError("no module")
        reg = ClassifierRegistry(builtins=False)
        with patch("importlib.metadata.entry_points", return_value=[ep]):
            assert reg.discover() == 0
        assert "broken" not in reg


# ---------------------------------------------------------------------------
# Built-in classifiers
# ---------------------------------------------------------------------------

class TestFieldThreshold:
    def test_counts_above_limit(self) -> None:
        c = FieldThresholdClassifier(field="3", limit="4000")
        assert c.classify("job,42,5000\n", CTX) == ClassifierResult(1)

    def test_ignores_at_or_below_limit(self) -> None:
        c = FieldThresholdClassifier(field=3, limit=4000)
        assert c.classify("job,42,4000\n", CTX).value == 0

    def test_missing_or_non_numeric_field(self) -> None:
        c = FieldThresholdClassifier(field=3, limit=1)
        assert c.classify("job,42\n", CTX).value == 0
        assert c.classify("job,42,abc\n", CTX).value == 0

    def test_output_template(self) -> None:
        c = FieldThresholdClassifier(
            field=3, limit=100, output="Processing time for {f1} exceeded: {value}"
        )
        result = c.classify("job-7, x, 250\n", CTX)
        assert result.output == "Processing time for job-7 exceeded: 250"

    def test_unknown_template_field_left_alone(self) -> None:
        c = FieldThresholdClassifier(field=1, limit=0, output="{value} {nope}")
        assert c.classify("5\n", CTX).output == "5 {nope}"

    def test_escalate_above(self) -> None:
        c = FieldThresholdClassifier(field=1, limit=10, escalate_above=100)
        assert c.classify("50\n", CTX).value == 1
        assert c.classify("500\n", CTX).value == 2

    def test_custom_delimiter(self) -> None:
        c = FieldThresholdClassifier(field=2, limit=1, delimiter=";")
        assert c.classify("a;5\n", CTX).value == 1

    def test_field_numbers_start_at_one(self) -> None:
        with pytest.raises(ValueError):
            FieldThresholdClassifier(field=0, limit=1)


class TestRegexExtract:
    def test_counts_matches(self) -> None:
        c = RegexExtractClassifier(regex=r"took (?P<ms>\d+)ms")
        assert c.classify("call took 120ms\n", CTX).value == 1
        assert c.classify("call failed\n", CTX).value == 0

    def test_output_and_metric(self) -> None:
        c = RegexExtractClassifier(
            regex=r"took (?P<ms>\d+)ms", output="slow call: {ms} ms", metric="ms"
        )
        result = c.classify("call took 120ms\n", CTX)
        assert result.output == "slow call: 120 ms"
        assert result.perfdata == "ms=120"

    def test_ignore_case_option_string(self) -> None:
        c = RegexExtractClassifier(regex="timeout", ignore_case="true")
        assert c.classify("TIMEOUT\n", CTX).value == 1

    def test_unknown_metric_group(self) -> None:
        with pytest.raises(ValueError):
            RegexExtractClassifier(regex=r"(?P<ms>\d+)", metric="sec")

    def test_invalid_regex(self) -> None:
        with pytest.raises(ValueError):
            RegexExtractClassifier(regex="[")
