"""Tests for diagnostic value objects, the error collector and rendering."""

import pytest

from pinelint.utils.diagnostics import (
    ErrorCategory,
    ErrorCode,
    ErrorCollector,
    ParseError,
    Severity,
    Violation,
    render_violation,
)
from pinelint.utils.errors import ConfigurationError, SourceLocation


@pytest.fixture
def location() -> SourceLocation:
    return SourceLocation(line=2, column=4, offset=10, length=3)


class TestSeverity:
    @pytest.mark.parametrize(
        "severity, wire",
        [
            (Severity.CRITICAL, "error"),
            (Severity.ERROR, "error"),
            (Severity.WARNING, "warning"),
            (Severity.INFO, "suggestion"),
        ],
    )
    def test_wire_name(self, severity, wire) -> None:
        assert severity.wire_name == wire


class TestSerialization:
    """Wire shapes of violations and parse errors."""

    def test_violation_minimal(self) -> None:
        violation = Violation(rule="R", message="m", line=1, column=1)

        assert violation.to_dict() == {
            "rule": "R",
            "severity": "error",
            "category": "validation_error",
            "message": "m",
            "line": 1,
            "column": 1,
        }

    def test_violation_full(self) -> None:
        violation = Violation(
            rule="R",
            message="m",
            line=3,
            column=5,
            severity=Severity.INFO,
            category=ErrorCategory.NAMING_VALIDATION,
            metadata={"a": 1},
            suggested_fix="do this",
        )
        data = violation.to_dict()

        assert data["severity"] == "suggestion"
        assert data["category"] == "naming_validation"
        assert data["metadata"] == {"a": 1}
        assert data["suggestedFix"] == "do this"

    def test_parse_error(self, location) -> None:
        error = ParseError(
            code=ErrorCode.MISSING_CLOSING_PAREN,
            message="Expected ')'",
            location=location,
        )

        assert error.to_dict() == {
            "code": "MISSING_CLOSING_PAREN",
            "message": "Expected ')'",
            "line": 2,
            "column": 4,
            "severity": "error",
            "category": "syntax_error",
        }


class TestErrorCollector:
    """Recovery budget."""

    def test_errors_and_warnings(self, location) -> None:
        collector = ErrorCollector()
        collector.add_error(ParseError("A", "a", location))
        collector.add_error(ParseError("B", "b", location, severity=Severity.WARNING))

        assert collector.has_errors()
        assert len(collector.warnings) == 1
        assert not collector.has_critical_errors()

    def test_budget_exhausted(self, location) -> None:
        collector = ErrorCollector(max_recovery_attempts=2)

        assert collector.add_recovery(location)
        assert collector.add_recovery(location)
        assert not collector.add_recovery(location)
        assert not collector.add_recovery(location)

        timeouts = [e for e in collector.errors if e.code == ErrorCode.PARSE_TIMEOUT]
        assert len(timeouts) == 1
        assert timeouts[0].severity is Severity.CRITICAL
        assert timeouts[0].category is ErrorCategory.PERFORMANCE
        assert collector.get_summary() == {
            "totalErrors": 1,
            "totalWarnings": 0,
            "recoveryAttempts": 3,
            "hasCriticalErrors": True,
        }


class TestRenderViolation:
    """Text rendering with source context."""

    SOURCE = 'indicator("Title")\nx = sma(close, 14)'

    def test_plain_rendering(self) -> None:
        violation = Violation(
            rule="SYNTAX_COMPATIBILITY_VALIDATION",
            message="Deprecated function sma() should be replaced with ta.sma()",
            line=2,
            column=5,
            suggested_fix="Replace sma() with ta.sma()",
        )

        output = render_violation(violation, self.SOURCE, "script.pine", use_color=False)

        assert output.splitlines() == [
            "error[SYNTAX_COMPATIBILITY_VALIDATION]: "
            "Deprecated function sma() should be replaced with ta.sma()",
            "  --> script.pine:2:5",
            "   |",
            "  2 | x = sma(close, 14)",
            "   |     ^^^",
            "   |",
            "   = help: Replace sma() with ta.sma()",
        ]

    def test_line_outside_source(self) -> None:
        violation = Violation(rule="R", message="m", line=9, column=1)
        output = render_violation(violation, self.SOURCE, use_color=False)
        assert output.splitlines() == ["error[R]: m", "  --> <input>:9:1"]

    def test_colored_rendering(self) -> None:
        violation = Violation(rule="R", message="m", line=1, column=1, severity=Severity.WARNING)
        output = render_violation(violation, self.SOURCE)
        assert "\033[93m" in output


class TestErrors:
    def test_message_with_location(self, location) -> None:
        error = ConfigurationError("bad rules", location)
        assert str(error) == "[2:4] bad rules"
        assert error.message == "bad rules"

    def test_message_without_location(self) -> None:
        assert str(ConfigurationError("bad rules")) == "bad rules"
