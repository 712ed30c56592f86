"""
Numeric range and string length checks on declaration arguments.

Applies to the script declaration calls ``indicator(...)`` and
``strategy(...)``. Only literal argument values are judged; names and
expressions cannot be evaluated statically and are left alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from pinelint.checks.base import CheckContext
from pinelint.frontend.ast_nodes import FunctionCall, Literal, LiteralKind, Parameter
from pinelint.frontend.parser import CallInfo
from pinelint.registry import RuleRegistry
from pinelint.utils.diagnostics import ErrorCategory, Severity, Violation

DECLARATION_FUNCTIONS = ("indicator", "strategy")

SHORT_TITLE_RULE = "SHORT_TITLE_TOO_LONG"
SHORT_TITLE_MAX_LENGTH = 10


@dataclass(frozen=True, slots=True)
class RangeRule:
    """Inclusive integer bounds for one named declaration argument."""

    code: str
    parameter: str
    minimum: int
    maximum: int


PRECISION = RangeRule("INVALID_PRECISION", "precision", 0, 8)
MAX_BARS_BACK = RangeRule("INVALID_MAX_BARS_BACK", "max_bars_back", 1, 5000)
MAX_LINES_COUNT = RangeRule("INVALID_MAX_LINES_COUNT", "max_lines_count", 1, 500)
MAX_LABELS_COUNT = RangeRule("INVALID_MAX_LABELS_COUNT", "max_labels_count", 1, 500)
MAX_BOXES_COUNT = RangeRule("INVALID_MAX_BOXES_COUNT", "max_boxes_count", 1, 500)

DRAWING_LIMITS = (MAX_LINES_COUNT, MAX_LABELS_COUNT, MAX_BOXES_COUNT)
RANGE_RULES = (PRECISION, MAX_BARS_BACK) + DRAWING_LIMITS


def _declaration_calls(calls: Iterable[CallInfo]) -> list[FunctionCall]:
    return [info.call for info in calls if info.name in DECLARATION_FUNCTIONS]


def _position(param: Parameter, call: FunctionCall) -> tuple[int, int]:
    loc = param.location or call.location
    if loc is None:
        return 1, 1
    return loc.line, loc.column + 1


def _configured(rules: Optional[RuleRegistry], code: str, key: str, default: int) -> int:
    """Bound override from the rule definition, if it carries one."""
    if rules is None:
        return default
    definition = rules.definition(code)
    if isinstance(definition, Mapping) and isinstance(definition.get(key), int):
        return definition[key]
    return default


# =============================================================================
# Numeric ranges
# =============================================================================


def check_range(calls: Iterable[CallInfo], rule: RangeRule) -> list[Violation]:
    """Report literal values of ``rule.parameter`` outside the rule's bounds."""
    violations = []
    for call in _declaration_calls(calls):
        param = call.get_named(rule.parameter)
        if param is None:
            continue
        value = param.value
        if not isinstance(value, Literal) or value.kind is not LiteralKind.NUMBER:
            continue

        line, column = _position(param, call)
        metadata: dict[str, Any] = {
            "actualValue": value.value,
            "minValue": rule.minimum,
            "maxValue": rule.maximum,
            "functionName": call.name,
            "parameterName": rule.parameter,
        }

        if not value.is_integral:
            message = f"{rule.code}: {rule.parameter} must be an integer, got {value.raw}"
            metadata.update(isNonInteger=True, violationType="non_integer")
        elif not rule.minimum <= value.value <= rule.maximum:
            message = (
                f"{rule.code}: {rule.parameter} must be between {rule.minimum} and "
                f"{rule.maximum}, got {value.value}"
            )
            metadata.update(isOutOfRange=True, violationType="out_of_range")
        else:
            continue

        violations.append(
            Violation(
                rule=rule.code,
                message=message,
                line=line,
                column=column,
                severity=Severity.ERROR,
                category=ErrorCategory.PARAMETER_VALIDATION,
                metadata=metadata,
            )
        )
    return violations


class RangeChecker:
    """Checker for one ``RangeRule``; bounds may be overridden by the rule registry."""

    always_on = False

    def __init__(self, rule: RangeRule) -> None:
        self.rule = rule
        self.name = rule.parameter
        self.rule_codes = (rule.code,)

    def run(self, context: CheckContext) -> list[Violation]:
        if context.extraction is None:
            return []
        rule = RangeRule(
            self.rule.code,
            self.rule.parameter,
            _configured(context.rules, self.rule.code, "min", self.rule.minimum),
            _configured(context.rules, self.rule.code, "max", self.rule.maximum),
        )
        return check_range(context.extraction.function_calls, rule)


# =============================================================================
# Short title
# =============================================================================


def _short_title_argument(call: FunctionCall) -> Optional[Parameter]:
    named = call.get_named("shorttitle")
    if named is not None:
        return named
    positional = call.positional
    return positional[1] if len(positional) > 1 else None


def check_short_title(
    calls: Iterable[CallInfo], max_length: int = SHORT_TITLE_MAX_LENGTH
) -> list[Violation]:
    """
    Report declaration calls whose shorttitle exceeds ``max_length``.

    The shorttitle is the ``shorttitle=`` argument or, failing that, the
    second positional argument. Each call yields at most one violation.
    """
    violations = []
    for call in _declaration_calls(calls):
        param = _short_title_argument(call)
        if param is None:
            continue
        value = param.value
        if not isinstance(value, Literal) or value.kind is not LiteralKind.STRING:
            continue
        length = len(value.value)
        if length <= max_length:
            continue

        line, column = _position(param, call)
        violations.append(
            Violation(
                rule=SHORT_TITLE_RULE,
                message=(
                    f"{SHORT_TITLE_RULE}: shorttitle too long - must be {max_length} "
                    f"characters or less, got {length} characters"
                ),
                line=line,
                column=column,
                severity=Severity.ERROR,
                category=ErrorCategory.PARAMETER_VALIDATION,
                metadata={
                    "actualValue": value.value,
                    "actualLength": length,
                    "maxLength": max_length,
                    "functionName": call.name,
                    "parameterName": "shorttitle",
                    "violationType": "length_exceeded",
                },
            )
        )
    return violations


class ShortTitleChecker:
    name = "short_title"
    rule_codes = (SHORT_TITLE_RULE,)
    always_on = False

    def run(self, context: CheckContext) -> list[Violation]:
        if context.extraction is None:
            return []
        max_length = _configured(
            context.rules, SHORT_TITLE_RULE, "maxLength", SHORT_TITLE_MAX_LENGTH
        )
        return check_short_title(context.extraction.function_calls, max_length)
