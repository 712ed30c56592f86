"""Tests for numeric range and shorttitle length checks."""

import pytest

from pinelint.analyzer import (
    analyze,
    quick_drawing_limits_check,
    quick_max_bars_back_check,
    quick_precision_check,
    quick_short_title_check,
)
from pinelint.checks.ranges import PRECISION, SHORT_TITLE_RULE, check_range, check_short_title
from pinelint.utils.diagnostics import ErrorCategory


class TestPrecision:
    """precision must be an integer in [0, 8]."""

    def test_out_of_range(self) -> None:
        result = quick_precision_check('indicator("T", precision=9)')
        violations = result["violations"]

        assert len(violations) == 1
        v = violations[0]
        assert v.rule == "INVALID_PRECISION"
        assert v.category is ErrorCategory.PARAMETER_VALIDATION
        assert v.message == "INVALID_PRECISION: precision must be between 0 and 8, got 9"
        assert v.metadata["isOutOfRange"] is True
        assert v.metadata["actualValue"] == 9
        assert (v.metadata["minValue"], v.metadata["maxValue"]) == (0, 8)
        assert (v.line, v.column) == (1, 16)
        assert "validation_time_ms" in result["metrics"]

    def test_non_integer(self) -> None:
        violations = quick_precision_check('indicator("T", precision=2.5)')["violations"]

        assert len(violations) == 1
        assert violations[0].message == "INVALID_PRECISION: precision must be an integer, got 2.5"
        assert violations[0].metadata["violationType"] == "non_integer"

    @pytest.mark.parametrize("value", ["0", "8", "myPrecision", "math.max(1, 2)"])
    def test_accepted(self, value) -> None:
        source = f'indicator("T", precision={value})'
        assert quick_precision_check(source)["violations"] == []

    def test_only_declaration_calls(self, call_infos) -> None:
        assert check_range(call_infos("plot(close, precision=9)"), PRECISION) == []

    def test_multi_line_declaration(self) -> None:
        violations = quick_precision_check('indicator("T",\n     precision=9)')["violations"]
        assert (violations[0].line, violations[0].column) == (2, 6)


class TestHistoryAndDrawingLimits:
    """max_bars_back and drawing object counts."""

    @pytest.mark.parametrize("value", ["0", "5001"])
    def test_max_bars_back(self, value) -> None:
        source = f'strategy("S", max_bars_back={value})'
        violations = quick_max_bars_back_check(source)["violations"]
        assert [v.rule for v in violations] == ["INVALID_MAX_BARS_BACK"]

    def test_drawing_limits(self) -> None:
        source = 'indicator("T", max_lines_count=0, max_labels_count=501, max_boxes_count=500)'
        violations = quick_drawing_limits_check(source)["violations"]
        assert [v.rule for v in violations] == [
            "INVALID_MAX_LINES_COUNT",
            "INVALID_MAX_LABELS_COUNT",
        ]


class TestShortTitle:
    """shorttitle length."""

    def test_positional_shorttitle(self) -> None:
        violations = quick_short_title_check('indicator("T", "ShortTitle12")')["violations"]

        assert len(violations) == 1
        v = violations[0]
        assert v.rule == SHORT_TITLE_RULE
        assert v.metadata["actualLength"] == 12
        assert v.metadata["maxLength"] == 10
        assert v.message == (
            "SHORT_TITLE_TOO_LONG: shorttitle too long - must be 10 characters or less, "
            "got 12 characters"
        )

    def test_named_shorttitle_on_strategy(self) -> None:
        source = 'strategy("S", shorttitle="Much Too Long")'
        assert len(quick_short_title_check(source)["violations"]) == 1

    @pytest.mark.parametrize(
        "source",
        [
            'indicator("T", "TenCharsOK")',
            'indicator("T", shortName)',
            'indicator("Only a title that is long")',
            'plot(close, "Long plot title")',
        ],
    )
    def test_accepted(self, source) -> None:
        assert quick_short_title_check(source)["violations"] == []

    def test_custom_limit(self, call_infos) -> None:
        infos = call_infos('indicator("T", "ShortTitle12")')
        assert check_short_title(infos, max_length=12) == []


class TestRegistryOverrides:
    """Bounds can be overridden by the rule definition."""

    def test_precision_max(self, rules_factory) -> None:
        rules = rules_factory(INVALID_PRECISION={"max": 10})
        result = analyze('indicator("T", precision=9)', rules)
        assert result.violations == []

    def test_short_title_max_length(self, rules_factory) -> None:
        rules = rules_factory(SHORT_TITLE_TOO_LONG={"maxLength": 20})
        result = analyze('indicator("T", "ShortTitle12")', rules)
        assert result.violations == []

    def test_disabled_rule_does_not_run(self, rules_factory) -> None:
        result = analyze('indicator("T", precision=9)', rules_factory())
        assert result.violations == []
