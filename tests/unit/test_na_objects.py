"""Tests for na object field access detection."""

from pinelint.checks.na_objects import (
    NA_ACCESS_RULE,
    NA_HISTORY_ACCESS_RULE,
    InitState,
    NAObjectAnalyzer,
    detect_unsafe_access,
)
from pinelint.utils.diagnostics import ErrorCategory, Severity

TYPE_DECL = """type MyType
    float field = 0.0
    int count
"""


class TestTypeCollection:
    """Pass 1: type declarations."""

    def test_fields_are_collected(self) -> None:
        analyzer = NAObjectAnalyzer()
        analyzer.analyze(TYPE_DECL + "\nx = 1\n")
        assert analyzer.udt_types == {"MyType": ["field", "count"]}

    def test_object_states(self) -> None:
        analyzer = NAObjectAnalyzer()
        analyzer.analyze("var MyType a = na\nMyType b = na\nc = MyType.new()\nb := MyType.new()")

        assert analyzer.objects["a"].state is InitState.NA
        assert analyzer.objects["a"].is_var
        assert analyzer.objects["b"].state is InitState.INITIALIZED
        assert analyzer.objects["c"].state is InitState.INITIALIZED
        assert analyzer.objects["c"].declaration_line == 3


class TestDirectAccess:
    """Field access on na objects."""

    def test_access_on_na_object(self) -> None:
        violations = detect_unsafe_access(TYPE_DECL + "\nvar MyType o = na\nx = o.field\n")

        assert len(violations) == 1
        v = violations[0]
        assert v.rule == NA_ACCESS_RULE
        assert v.severity is Severity.ERROR
        assert v.category is ErrorCategory.RUNTIME
        assert (v.line, v.column) == (6, 5)
        assert v.metadata["objectName"] == "o"
        assert v.metadata["fieldName"] == "field"
        assert v.metadata["udtType"] == "MyType"
        assert v.metadata["declarationLine"] == 5
        assert v.metadata["knownField"] is True
        assert v.suggested_fix == "Initialize o with MyType.new() before accessing fields"

    def test_unknown_field_is_flagged_in_metadata(self) -> None:
        violations = detect_unsafe_access(TYPE_DECL + "\nvar MyType o = na\nx = o.missing\n")
        assert violations[0].metadata["knownField"] is False

    def test_initialized_object_is_safe(self) -> None:
        source = "var MyType o = na\no := MyType.new()\nx = o.field"
        assert detect_unsafe_access(source) == []

    def test_last_textual_assignment_wins(self) -> None:
        # Branches are ignored: the constructor below counts even for the
        # access that precedes it.
        source = "var MyType o = na\nx = o.field\no := MyType.new()"
        assert detect_unsafe_access(source) == []

    def test_non_var_declaration(self) -> None:
        violations = detect_unsafe_access("MyType o = na\nx = o.value")
        assert [v.rule for v in violations] == [NA_ACCESS_RULE]

    def test_strings_and_comments_are_ignored(self) -> None:
        source = 'var MyType o = na\nlabel.new(bar_index, high, "o.field")\n// o.field\n'
        assert detect_unsafe_access(source) == []

    def test_untracked_objects(self) -> None:
        assert detect_unsafe_access("x = foo.bar") == []


class TestHistoricalAccess:
    """Field access on historical object references."""

    def test_history_on_initialized_object(self) -> None:
        source = "var MyType o = na\no := MyType.new()\ny = (o[1]).field"
        violations = detect_unsafe_access(source)

        assert len(violations) == 1
        v = violations[0]
        assert v.rule == NA_HISTORY_ACCESS_RULE
        assert v.metadata["historicalIndex"] == 1
        assert (v.line, v.column) == (3, 5)
        assert v.suggested_fix == "Add na check: not na(o[1]) ? (o[1]).field : 0"

    def test_history_on_na_object(self) -> None:
        violations = detect_unsafe_access("var MyType o = na\ny = (o[2]).field")
        assert [v.rule for v in violations] == [NA_HISTORY_ACCESS_RULE]

    def test_history_on_untracked_object(self) -> None:
        assert detect_unsafe_access("y = (z[1]).field") == []
