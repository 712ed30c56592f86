"""Tests for namespace shadowing and line continuation checks."""

import pytest

from pinelint.checks.structure import (
    LINE_CONTINUATION_RULE,
    NAMESPACE_RULE,
    check_builtin_namespaces,
    check_line_continuation,
)
from pinelint.utils.diagnostics import ErrorCategory


class TestNamespaceShadowing:
    """Assignments to built-in namespace names."""

    def test_plain_assignment(self) -> None:
        violations = check_builtin_namespaces("ta = 1")

        assert len(violations) == 1
        v = violations[0]
        assert v.rule == NAMESPACE_RULE
        assert v.category is ErrorCategory.NAMING_VALIDATION
        assert v.message == "Invalid object name: ta. Namespaces of built-ins cannot be used."
        assert (v.line, v.column) == (1, 1)
        assert v.metadata == {"conflictingNamespace": "ta", "variableAssignment": True}
        assert "'myTa'" in v.suggested_fix

    @pytest.mark.parametrize(
        "source, column",
        [
            ("var color = 1", 5),
            ("float math = 1.0", 7),
            ('if cond\n    str = "a"', 5),
        ],
    )
    def test_declarations(self, source, column) -> None:
        violations = check_builtin_namespaces(source)
        assert len(violations) == 1
        assert violations[0].column == column

    @pytest.mark.parametrize(
        "source",
        [
            "myTa = 1",
            "if ta == 1",
            "ta := 1",
            "// ta = 1",
            "plot(close,\n     color = color.red)",
            "x = ta.sma(close, 14)",
        ],
    )
    def test_not_reported(self, source) -> None:
        assert check_builtin_namespaces(source) == []

    def test_reported_after_multi_line_call_closes(self) -> None:
        violations = check_builtin_namespaces("plot(close,\n     linewidth = 2)\nta = 1")
        assert [v.line for v in violations] == [3]


class TestLineContinuation:
    """Misplaced line continuations."""

    def test_ternary_at_end_of_line(self) -> None:
        violations = check_line_continuation("x = cond ?\n    a : b")

        assert len(violations) == 1
        v = violations[0]
        assert v.rule == LINE_CONTINUATION_RULE
        assert v.category is ErrorCategory.SYNTAX_VALIDATION
        assert v.metadata == {"issue": "ternary_line_break"}
        assert (v.line, v.column) == (1, 10)

    def test_backslash_in_string(self) -> None:
        violations = check_line_continuation('s = "abc \\')

        assert len(violations) == 1
        assert violations[0].metadata == {"issue": "string_literal_continuation"}
        assert violations[0].column == 10

    @pytest.mark.parametrize("source", ["// note \\", "x = 1 // trailing \\"])
    def test_backslash_in_comment(self, source) -> None:
        violations = check_line_continuation(source)

        assert len(violations) == 1
        assert violations[0].metadata == {"issue": "comment_continuation"}
        assert violations[0].column == len(source)

    @pytest.mark.parametrize(
        "source",
        [
            "x = cond ? a : b",
            "x = cond ? a : b // why?",
            'msg = "really?"',
            "",
        ],
    )
    def test_not_reported(self, source) -> None:
        assert check_line_continuation(source) == []
