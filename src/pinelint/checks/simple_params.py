"""
Series values passed where a built-in expects a simple value.

Fields of user-defined type objects are always series. Passing one as a
length or quantity argument, or through an ``int()``/``float()``
conversion, fails on the host platform with "Cannot call ... with
argument ... Expected simple int".
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from pinelint.checks.base import CheckContext
from pinelint.checks.structure import BUILTIN_NAMESPACES
from pinelint.frontend.ast_nodes import Expression, FunctionCall, Identifier, Parameter
from pinelint.frontend.parser import CallInfo
from pinelint.utils.diagnostics import ErrorCategory, Severity, Violation

SIMPLE_EXPECTED_RULE = "SERIES_TYPE_WHERE_SIMPLE_EXPECTED"

# function -> ((argument index, argument name), ...)
SIMPLE_PARAMETERS: dict[str, tuple[tuple[int, str], ...]] = {
    "ta.ema": ((1, "length"),),
    "ta.sma": ((1, "length"),),
    "ta.rma": ((1, "length"),),
    "ta.rsi": ((1, "length"),),
    "ta.atr": ((0, "length"),),
    "ta.macd": ((1, "fastlen"), (2, "slowlen"), (3, "siglen")),
    "ta.stoch": ((3, "length"),),
    "ta.bb": ((1, "length"), (2, "mult")),
    "strategy.entry": ((2, "qty"),),
    "strategy.exit": ((2, "qty"),),
    "int": ((0, "x"),),
    "float": ((0, "x"),),
}

CONVERSIONS = ("int", "float")

_FIELD_ACCESS = re.compile(r"\b([A-Za-z_]\w*)\.([A-Za-z_]\w*)")


def find_field_access(node: Expression) -> Optional[tuple[str, str]]:
    """The first ``object.field`` in ``node`` whose object is not a built-in namespace."""
    if isinstance(node, FunctionCall):
        for param in node.parameters:
            found = find_field_access(param.value)
            if found:
                return found
        return None
    if not isinstance(node, Identifier):
        return None
    for match in _FIELD_ACCESS.finditer(node.name):
        if match.group(1) not in BUILTIN_NAMESPACES:
            return match.group(1), match.group(2)
    return None


def _argument(call: FunctionCall, index: int, name: str) -> Optional[Parameter]:
    named = call.get_named(name)
    if named is not None:
        return named
    positional = call.positional
    return positional[index] if index < len(positional) else None


def _violation(
    call: FunctionCall, param: Parameter, name: str, field: tuple[str, str]
) -> Violation:
    obj, attr = field
    expression = f"{obj}.{attr}"
    if call.name in CONVERSIONS:
        message = f"Cannot convert series type to simple type using {call.name}({expression})"
        fix = (
            "Use conditional logic with fixed simple values instead of trying to "
            f"convert {expression}"
        )
    else:
        message = (
            f'Cannot call "{call.name}" with argument "{name}" = "{expression}". '
            "Expected simple int type but got series type"
        )
        fix = f"Use a fixed simple value instead of {expression}"

    loc = param.location or call.location
    return Violation(
        rule=SIMPLE_EXPECTED_RULE,
        message=message,
        line=loc.line if loc else 1,
        column=(loc.column + 1) if loc else 1,
        severity=Severity.ERROR,
        category=ErrorCategory.TYPE_VALIDATION,
        metadata={
            "functionName": call.name,
            "parameterName": name,
            "parameterIndex": param.position,
            "udtObject": obj,
            "udtField": attr,
            "expectedType": "simple int/float",
            "actualType": "series (UDT field)",
        },
        suggested_fix=fix,
    )


def check_simple_parameters(calls: Iterable[CallInfo]) -> list[Violation]:
    violations = []
    for info in calls:
        call = info.call
        slots = SIMPLE_PARAMETERS.get(call.name)
        if slots is None:
            continue
        for index, name in slots:
            param = _argument(call, index, name)
            if param is None:
                continue
            # int(obj.f) nested in another argument is reported by its own call
            if isinstance(param.value, FunctionCall) and param.value.name in CONVERSIONS:
                continue
            field = find_field_access(param.value)
            if field is not None:
                violations.append(_violation(call, param, name, field))
    return violations


class SimpleParameterChecker:
    name = "series_type"
    rule_codes = (SIMPLE_EXPECTED_RULE,)
    always_on = False

    def run(self, context: CheckContext) -> list[Violation]:
        if context.extraction is None:
            return []
        return check_simple_parameters(context.extraction.function_calls)
