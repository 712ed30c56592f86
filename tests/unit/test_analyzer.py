"""Tests for the analysis pipeline."""

import pytest

from pinelint.analyzer import (
    CHECKERS,
    analyze,
    quick_builtin_namespace_check,
    quick_function_signature_check,
    quick_input_type_check,
    quick_line_continuation_check,
    quick_na_object_check,
    quick_naming_check,
    quick_simple_parameter_check,
)
from pinelint.checks.na_objects import NA_ACCESS_RULE
from pinelint.utils.diagnostics import ErrorCategory, ErrorCode, Severity

NA_SOURCE = "type MyType\n    float field = 0.0\n\nvar MyType o = na\nx = o.field\n"


class TestCheckerSelection:
    """Which checkers a registry enables."""

    def test_default_registry(self) -> None:
        result = analyze('indicator("T")')

        assert result.success
        assert result.metrics["checks_performed"] == 3

    def test_all_rules(self, all_rules) -> None:
        result = analyze('indicator("T")', all_rules)
        assert result.metrics["checks_performed"] == len(CHECKERS)

    def test_empty_registry_runs_always_on_checkers(self, rules_factory) -> None:
        result = analyze(NA_SOURCE, rules_factory())

        assert result.metrics["checks_performed"] == 2
        assert [v.rule for v in result.violations] == [NA_ACCESS_RULE]

    def test_violations_follow_checker_order(self, all_rules) -> None:
        source = NA_SOURCE + 'indicator("T", "ShortTitle12")\ny = sma(close, 14)\n'
        rules = [v.rule for v in analyze(source, all_rules).violations]

        assert rules.index(NA_ACCESS_RULE) < rules.index("SHORT_TITLE_TOO_LONG")
        assert rules.index("SHORT_TITLE_TOO_LONG") < rules.index(
            "SYNTAX_COMPATIBILITY_VALIDATION"
        )


class TestResult:
    """Result contents and serialization."""

    def test_function_calls_and_metrics(self) -> None:
        result = analyze('indicator("T")\nplot(close)')

        assert [c.name for c in result.function_calls] == ["indicator", "plot"]
        assert result.metrics["functions_found"] == 2
        assert result.metrics["errors_found"] == 0
        assert result.metrics["total_time_ms"] >= 0

    def test_counts(self) -> None:
        result = analyze('//@version=5\nindicator("T", "ShortTitle12")')

        assert result.error_count == 1
        assert result.warning_count == 0

    def test_to_dict(self) -> None:
        data = analyze('indicator("T", "ShortTitle12")').to_dict()

        assert set(data) == {"success", "violations", "functionCalls", "metrics", "errors"}
        assert set(data["metrics"]) == {
            "totalTimeMs",
            "parseTimeMs",
            "functionsFound",
            "errorsFound",
            "checksPerformed",
        }
        assert data["violations"][0]["rule"] == "SHORT_TITLE_TOO_LONG"
        assert data["violations"][0]["severity"] == "error"
        assert data["functionCalls"][0]["params"]["shorttitle"] == "ShortTitle12"

    def test_parse_errors_are_reported(self) -> None:
        result = analyze("plot(close")

        assert result.success
        assert [e.code for e in result.errors] == [ErrorCode.MISSING_CLOSING_PAREN]

    def test_non_ascii_digit_keeps_later_checks(self) -> None:
        result = analyze('x = 2²\nindicator("T", "ShortTitle12")')

        assert result.success
        assert [v.rule for v in result.violations] == ["SHORT_TITLE_TOO_LONG"]
        assert ErrorCode.INVALID_TOKEN in [e.code for e in result.errors]
        assert ErrorCode.UNHANDLED_EXCEPTION not in [e.code for e in result.errors]


class TestFailureIsolation:
    """A failing checker does not stop the others."""

    def test_checker_failure(self, monkeypatch, all_rules) -> None:
        def boom(context):
            raise RuntimeError("boom")

        monkeypatch.setattr(CHECKERS[0], "run", boom)
        result = analyze('indicator("T", "ShortTitle12")', all_rules)

        assert result.success
        rules = [v.rule for v in result.violations]
        assert rules[0] == "NA_OBJECT_VALIDATION_ERROR"
        assert "SHORT_TITLE_TOO_LONG" in rules

        failure = result.violations[0]
        assert failure.category is ErrorCategory.INTERNAL
        assert failure.severity is Severity.ERROR
        assert "boom" in failure.message
        assert [e.code for e in result.errors] == ["NA_OBJECT_VALIDATION_ERROR"]
        assert result.metrics["checks_performed"] == len(CHECKERS)

    def test_pipeline_failure(self, monkeypatch) -> None:
        def boom(source, max_recovery_attempts=10):
            raise RuntimeError("parser exploded")

        monkeypatch.setattr("pinelint.analyzer.parse", boom)
        result = analyze('indicator("T")')

        assert not result.success
        assert result.violations == []
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.code == ErrorCode.UNHANDLED_EXCEPTION
        assert error.category is ErrorCategory.INTEGRATION
        assert error.message == "parser exploded"
        assert result.to_dict()["metrics"]["errorsFound"] == 1


class TestQuickChecks:
    """Single-purpose entry points."""

    @pytest.mark.parametrize(
        "check, source",
        [
            (quick_na_object_check, NA_SOURCE),
            (quick_naming_check, "plot(close, lineWidth=2)"),
            (quick_function_signature_check, "x = ta.sma(close)"),
            (quick_input_type_check, 'x = ta.sma("x", 14)'),
            (quick_simple_parameter_check, "x = ta.ema(close, cfg.length)"),
            (quick_builtin_namespace_check, "ta = 1"),
            (quick_line_continuation_check, "x = cond ?\n    a : b"),
        ],
    )
    def test_shape(self, check, source) -> None:
        result = check(source)

        assert set(result) == {"violations", "metrics"}
        assert len(result["violations"]) == 1
        assert result["metrics"]["validation_time_ms"] >= 0
