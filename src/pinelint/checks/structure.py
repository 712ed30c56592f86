"""
Line-level structural checks.

Both checks read the raw source one line at a time and never need a parse:

- assignments that shadow a built-in namespace (``ta = 1``);
- misplaced line continuations: a ternary ``?`` ending the line, and a
  trailing ``\\`` inside a string literal or a comment.
"""

from __future__ import annotations

import re

from pinelint.checks.base import (
    CheckContext,
    comment_start,
    is_comment_line,
    is_in_string_or_comment,
    is_in_string_literal,
    strip_comment,
)
from pinelint.utils.diagnostics import ErrorCategory, Severity, Violation

NAMESPACE_RULE = "INVALID_OBJECT_NAME_BUILTIN"
LINE_CONTINUATION_RULE = "INVALID_LINE_CONTINUATION"

BUILTIN_NAMESPACES = frozenset(
    {
        "position", "strategy", "ta", "math", "array", "color", "string",
        "map", "matrix", "request", "input", "plot", "plotshape", "plotbar",
        "plotcandle", "bgcolor", "fill", "line", "label", "box", "table",
        "polyline", "str", "alert", "barcolor", "runtime", "timeframe",
        "ticker", "hline", "indicator", "library", "method", "type",
        "export", "import", "time", "barstate", "session", "syminfo",
        "location", "shape", "size", "scale", "extend",
    }
)  # fmt: skip

# [var|varip] [Type] name = value, at the start of a statement
ASSIGNMENT = re.compile(
    r"^(\s*)(?:(?:var|varip)\s+)?(?:[A-Za-z_][\w.<>]*\s+)?([A-Za-z_]\w*)\s*=(?!=)"
)


# =============================================================================
# Namespace shadowing
# =============================================================================


def _suggested_name(namespace: str) -> str:
    capitalized = namespace[0].upper() + namespace[1:]
    return (
        f"Use a different variable name instead of '{namespace}', such as "
        f"'my{capitalized}', '{namespace}State', or '{namespace}Value'"
    )


def _paren_balance(line: str) -> int:
    """Net parentheses opened by ``line``, ignoring strings and comments."""
    balance = 0
    for i, char in enumerate(strip_comment(line)):
        if char in "()" and not is_in_string_literal(line, i):
            balance += 1 if char == "(" else -1
    return balance


def check_builtin_namespaces(source: str) -> list[Violation]:
    """
    Report statement-level assignments whose target is a built-in namespace.

    Lines inside an open argument list hold named arguments, not
    assignments, and are skipped.
    """
    violations = []
    depth = 0
    for number, line in enumerate(source.split("\n"), start=1):
        if is_comment_line(line):
            continue
        inside_call = depth > 0
        depth = max(0, depth + _paren_balance(line))
        if inside_call:
            continue
        match = ASSIGNMENT.match(strip_comment(line))
        if match is None or match.group(2) not in BUILTIN_NAMESPACES:
            continue

        namespace = match.group(2)
        violations.append(
            Violation(
                rule=NAMESPACE_RULE,
                message=(
                    f"Invalid object name: {namespace}. "
                    "Namespaces of built-ins cannot be used."
                ),
                line=number,
                column=match.start(2) + 1,
                severity=Severity.ERROR,
                category=ErrorCategory.NAMING_VALIDATION,
                metadata={"conflictingNamespace": namespace, "variableAssignment": True},
                suggested_fix=_suggested_name(namespace),
            )
        )
    return violations


class NamespaceChecker:
    name = "builtin_namespace"
    rule_codes = (NAMESPACE_RULE,)
    always_on = False

    def run(self, context: CheckContext) -> list[Violation]:
        return check_builtin_namespaces(context.source)


# =============================================================================
# Line continuation
# =============================================================================


def _continuation(number: int, column: int, message: str, issue: str, fix: str) -> Violation:
    return Violation(
        rule=LINE_CONTINUATION_RULE,
        message=message,
        line=number,
        column=column,
        severity=Severity.ERROR,
        category=ErrorCategory.SYNTAX_VALIDATION,
        metadata={"issue": issue},
        suggested_fix=fix,
    )


def check_line_continuation(source: str) -> list[Violation]:
    violations = []
    for number, line in enumerate(source.split("\n"), start=1):
        if not line.strip():
            continue

        code = strip_comment(line).rstrip()
        question = len(code) - 1
        if code.endswith("?") and not is_in_string_or_comment(line, question):
            violations.append(
                _continuation(
                    number,
                    question + 1,
                    "Syntax error at input 'end of line without line continuation'. "
                    "ternary operators (?) must be properly formatted without line breaks "
                    "at the condition operator.",
                    "ternary_line_break",
                    "Keep ternary operators on a single line or use proper line continuation",
                )
            )

        stripped = line.rstrip()
        if not stripped.endswith("\\"):
            continue
        backslash = len(stripped) - 1
        comment = comment_start(line)

        if 0 <= comment < backslash:
            violations.append(
                _continuation(
                    number,
                    backslash + 1,
                    "Invalid line continuation in comment. "
                    "Line continuation is not valid in comments.",
                    "comment_continuation",
                    "Remove line continuation from comment",
                )
            )
        elif is_in_string_literal(line, backslash):
            violations.append(
                _continuation(
                    number,
                    backslash + 1,
                    "Invalid line continuation within string literal. "
                    "Line continuation is not allowed inside strings.",
                    "string_literal_continuation",
                    "Remove line continuation from string literal or use string concatenation",
                )
            )
    return violations


class LineContinuationChecker:
    name = "line_continuation"
    rule_codes = (LINE_CONTINUATION_RULE,)
    always_on = False

    def run(self, context: CheckContext) -> list[Violation]:
        return check_line_continuation(context.source)
