"""
Language version and deprecated API compatibility checks.

Three independent findings share the ``SYNTAX_COMPATIBILITY_VALIDATION``
rule:

- a ``//@version=N`` directive below the current major version (warning);
- calls to bare functions that moved into a namespace (``sma`` → ``ta.sma``);
- bare math functions that require the ``math`` namespace.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from pinelint.checks.base import CheckContext, is_comment_line, is_in_string_or_comment
from pinelint.utils.diagnostics import ErrorCategory, Severity, Violation

COMPATIBILITY_RULE = "SYNTAX_COMPATIBILITY_VALIDATION"
CURRENT_VERSION = 6

VERSION_DIRECTIVE = re.compile(r"^//\s*@\s*version\s*=\s*(\d+)", re.IGNORECASE)

DEPRECATED_FUNCTIONS = {
    "security": "request.security",
    "rsi": "ta.rsi",
    "sma": "ta.sma",
    "ema": "ta.ema",
    "crossover": "ta.crossover",
    "crossunder": "ta.crossunder",
    "highest": "ta.highest",
    "lowest": "ta.lowest",
    "tostring": "str.tostring",
}

MATH_FUNCTIONS = (
    "abs", "max", "min", "ceil", "floor", "round", "sqrt",
    "pow", "log", "exp", "sin", "cos", "tan",
)  # fmt: skip

_BARE_CALL = re.compile(
    r"\b(" + "|".join(list(DEPRECATED_FUNCTIONS) + list(MATH_FUNCTIONS)) + r")\s*\("
)
_NAMESPACED = re.compile(r"\w+\.\s*$")


@dataclass(frozen=True, slots=True)
class VersionDirective:
    version: int
    line: int


def find_version_directive(source: str) -> Optional[VersionDirective]:
    for number, line in enumerate(source.split("\n"), start=1):
        match = VERSION_DIRECTIVE.match(line.strip())
        if match:
            return VersionDirective(int(match.group(1)), number)
    return None


def _version_violation(directive: VersionDirective) -> Violation:
    return Violation(
        rule=COMPATIBILITY_RULE,
        message=(
            f"Pine Script v{directive.version} is outdated. Consider upgrading to "
            f"v{CURRENT_VERSION} for better performance and features."
        ),
        line=directive.line,
        column=1,
        severity=Severity.WARNING,
        category=ErrorCategory.VERSION_COMPATIBILITY,
        metadata={
            "upgradeRecommended": True,
            "currentVersion": directive.version,
            "recommendedVersion": CURRENT_VERSION,
        },
    )


def _deprecated_violation(name: str, line: int, column: int) -> Violation:
    replacement = DEPRECATED_FUNCTIONS[name]
    return Violation(
        rule=COMPATIBILITY_RULE,
        message=f"Deprecated function {name}() should be replaced with {replacement}()",
        line=line,
        column=column,
        severity=Severity.ERROR,
        category=ErrorCategory.DEPRECATED_FUNCTION,
        metadata={
            "deprecatedFunction": name,
            "modernReplacement": replacement,
            "migrationRequired": True,
        },
        suggested_fix=f"Replace {name}() with {replacement}()",
    )


def _namespace_violation(name: str, line: int, column: int) -> Violation:
    modern = f"math.{name}"
    return Violation(
        rule=COMPATIBILITY_RULE,
        message=f"Function {name}() requires math namespace. Use {modern}() instead.",
        line=line,
        column=column,
        severity=Severity.ERROR,
        category=ErrorCategory.NAMESPACE_REQUIREMENT,
        metadata={
            "functionName": name,
            "requiredNamespace": "math",
            "modernForm": modern,
            "namespaceRequired": True,
        },
        suggested_fix=f"Replace {name}() with {modern}()",
    )


def check_syntax_compatibility(source: str) -> list[Violation]:
    """Report an outdated version directive, then bare calls line by line."""
    violations = []

    directive = find_version_directive(source)
    if directive is not None and directive.version < CURRENT_VERSION:
        violations.append(_version_violation(directive))

    for number, line in enumerate(source.split("\n"), start=1):
        if is_comment_line(line):
            continue
        for match in _BARE_CALL.finditer(line):
            if is_in_string_or_comment(line, match.start()):
                continue
            if _NAMESPACED.search(line[: match.start()]):
                continue
            name = match.group(1)
            if name in DEPRECATED_FUNCTIONS:
                violations.append(_deprecated_violation(name, number, match.start() + 1))
            else:
                violations.append(_namespace_violation(name, number, match.start() + 1))
    return violations


class CompatibilityChecker:
    name = "syntax_compatibility"
    rule_codes = (COMPATIBILITY_RULE,)
    always_on = False

    def run(self, context: CheckContext) -> list[Violation]:
        return check_syntax_compatibility(context.source)
