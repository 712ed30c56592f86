"""Tests for version and deprecated API compatibility checks."""

import pytest

from pinelint.analyzer import quick_syntax_compatibility_check
from pinelint.checks.compatibility import (
    COMPATIBILITY_RULE,
    check_syntax_compatibility,
    find_version_directive,
)
from pinelint.utils.diagnostics import ErrorCategory, Severity


class TestVersionDirective:
    """//@version=N detection."""

    def test_outdated_version(self) -> None:
        violations = check_syntax_compatibility("//@version=5\nindicator('x')")

        assert len(violations) == 1
        v = violations[0]
        assert v.rule == COMPATIBILITY_RULE
        assert v.severity is Severity.WARNING
        assert v.category is ErrorCategory.VERSION_COMPATIBILITY
        assert (v.line, v.column) == (1, 1)
        assert v.metadata == {
            "upgradeRecommended": True,
            "currentVersion": 5,
            "recommendedVersion": 6,
        }

    def test_current_version(self) -> None:
        assert check_syntax_compatibility("//@version=6\nindicator('x')") == []

    def test_directive_with_spaces(self) -> None:
        directive = find_version_directive("\n// @version = 4\n")
        assert directive is not None
        assert (directive.version, directive.line) == (4, 2)


class TestBareFunctions:
    """Functions that moved into namespaces."""

    def test_deprecated_function(self) -> None:
        violations = check_syntax_compatibility("x = sma(close, 14)")

        assert len(violations) == 1
        v = violations[0]
        assert v.severity is Severity.ERROR
        assert v.category is ErrorCategory.DEPRECATED_FUNCTION
        assert v.message == "Deprecated function sma() should be replaced with ta.sma()"
        assert v.suggested_fix == "Replace sma() with ta.sma()"
        assert (v.line, v.column) == (1, 5)

    def test_math_namespace(self) -> None:
        violations = check_syntax_compatibility("y = abs(x)")

        assert len(violations) == 1
        v = violations[0]
        assert v.category is ErrorCategory.NAMESPACE_REQUIREMENT
        assert v.message == "Function abs() requires math namespace. Use math.abs() instead."
        assert v.metadata["modernForm"] == "math.abs"

    @pytest.mark.parametrize(
        "source",
        [
            "x = ta.sma(close, 14)",
            "y = math.abs(x)",
            "// sma(close)",
            'label.new(x, y, "sma(close)")',
            "z = my_max(1)",
            "s = str.tostring(close)",
        ],
    )
    def test_not_reported(self, source) -> None:
        assert check_syntax_compatibility(source) == []

    def test_order(self) -> None:
        source = "//@version=4\nx = sma(close, 14) + abs(y)"
        violations = quick_syntax_compatibility_check(source)["violations"]

        assert [v.category for v in violations] == [
            ErrorCategory.VERSION_COMPATIBILITY,
            ErrorCategory.DEPRECATED_FUNCTION,
            ErrorCategory.NAMESPACE_REQUIREMENT,
        ]
