"""
Type and signature checking for built-in function calls.

Each call with a known signature is checked for argument count and, when
the count is acceptable, for argument types. Types are inferred from the
shape of the argument's AST node and compared through a small
compatibility lattice. Calls to functions without a known signature are
never reported.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from pinelint.checks.base import CheckContext
from pinelint.frontend.ast_nodes import Expression, FunctionCall, Identifier, Literal, LiteralKind
from pinelint.utils.diagnostics import ErrorCategory, Severity, Violation

SIGNATURE_RULE = "FUNCTION_SIGNATURE_VALIDATION"
INPUT_TYPE_RULE = "INPUT_TYPE_MISMATCH"

# Built-in time series that infer as "series float"
BUILTIN_SERIES = frozenset({"close", "open", "high", "low", "volume", "hl2", "hlc3", "ohlc4"})


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    name: str
    type: str
    required: bool = True

    def describe(self) -> str:
        return f"{self.name}: {self.type}{'' if self.required else '?'}"


@dataclass(frozen=True, slots=True)
class Signature:
    name: str
    parameters: tuple[ParameterSpec, ...]

    @property
    def required_count(self) -> int:
        return sum(1 for p in self.parameters if p.required)

    @property
    def total_count(self) -> int:
        return len(self.parameters)

    def index_of(self, name: str) -> Optional[int]:
        for i, param in enumerate(self.parameters):
            if param.name == name:
                return i
        return None

    def describe(self) -> str:
        return ", ".join(p.describe() for p in self.parameters)


def _optional(*specs: tuple[str, str]) -> tuple[ParameterSpec, ...]:
    return tuple(ParameterSpec(name, type_, required=False) for name, type_ in specs)


_MOVING_AVERAGE = (
    ParameterSpec("source", "series int/float"),
    ParameterSpec("length", "int"),
)

_NUMERIC_PAIR = (
    ParameterSpec("value1", "int/float"),
    ParameterSpec("value2", "int/float"),
)

SIGNATURES: dict[str, Signature] = {
    sig.name: sig
    for sig in (
        Signature("ta.sma", _MOVING_AVERAGE),
        Signature("ta.ema", _MOVING_AVERAGE),
        Signature(
            "ta.macd",
            (
                ParameterSpec("source", "series int/float"),
                ParameterSpec("fastlen", "int"),
                ParameterSpec("slowlen", "int"),
                ParameterSpec("siglen", "int"),
            ),
        ),
        Signature(
            "alert",
            (ParameterSpec("message", "string"), ParameterSpec("freq", "identifier", False)),
        ),
        Signature(
            "strategy",
            (ParameterSpec("title", "string"),)
            + _optional(
                ("shorttitle", "string"),
                ("overlay", "bool"),
                ("format", "string"),
                ("precision", "int"),
                ("scale", "identifier"),
                ("pyramiding", "int"),
                ("calc_on_order_fills", "bool"),
                ("calc_on_every_tick", "bool"),
                ("max_bars_back", "int"),
                ("backtest_fill_limits_assumption", "int"),
                ("default_qty_type", "string"),
                ("default_qty_value", "int/float"),
                ("initial_capital", "int/float"),
                ("currency", "string"),
                ("slippage", "int"),
                ("commission_type", "string"),
                ("commission_value", "int/float"),
                ("process_orders_on_close", "bool"),
                ("close_entries_rule", "string"),
                ("margin_long", "int/float"),
                ("margin_short", "int/float"),
                ("explicit_plot_zorder", "bool"),
                ("max_lines_count", "int"),
                ("max_labels_count", "int"),
                ("max_boxes_count", "int"),
            ),
        ),
        Signature("math.max", _NUMERIC_PAIR),
        Signature("math.min", _NUMERIC_PAIR),
        Signature(
            "str.contains",
            (ParameterSpec("source", "string"), ParameterSpec("str", "string")),
        ),
    )
}

# expected type -> additional actual types it accepts
_COMPATIBLE: dict[str, frozenset[str]] = {
    "series int/float": frozenset({"series float", "series int", "int", "float"}),
    "series int": frozenset({"int"}),
    "int/float": frozenset({"int", "float"}),
}


# =============================================================================
# Inference and compatibility
# =============================================================================


def infer_type(node: Expression) -> str:
    """Infer the type tag of an argument from its AST shape."""
    if isinstance(node, Literal):
        if node.kind is LiteralKind.STRING:
            return "string"
        if node.kind is LiteralKind.BOOLEAN:
            return "bool"
        if node.kind is LiteralKind.COLOR:
            return "color"
        return "int" if node.is_integral else "float"
    if isinstance(node, Identifier):
        if node.name in BUILTIN_SERIES:
            return "series float"
        return "identifier"
    if isinstance(node, FunctionCall):
        # Call results are assumed to be time series
        return "series float"
    return "unknown"


def is_compatible(expected: str, actual: str) -> bool:
    if expected == actual or expected == "identifier":
        return True
    return actual in _COMPATIBLE.get(expected, frozenset())


def lookup_signature(name: str) -> Optional[Signature]:
    return SIGNATURES.get(name)


# =============================================================================
# Checks
# =============================================================================


def _violation(
    call: FunctionCall, message: str, metadata: dict, rule: str = SIGNATURE_RULE
) -> Violation:
    loc = call.location
    return Violation(
        rule=rule,
        message=message,
        line=loc.line if loc else 1,
        column=(loc.column + 1) if loc else 1,
        severity=Severity.ERROR,
        category=ErrorCategory.FUNCTION_SIGNATURE
        if rule == SIGNATURE_RULE
        else ErrorCategory.TYPE_VALIDATION,
        metadata=metadata,
    )


def _expected_spec(
    signature: Signature, call: FunctionCall, index: int
) -> Optional[tuple[int, ParameterSpec]]:
    """Signature slot for argument ``index`` of ``call``, by name or position."""
    param = call.parameters[index]
    if param.named:
        slot = signature.index_of(param.name)
        if slot is None:
            return None
        return slot, signature.parameters[slot]
    if index < signature.total_count:
        return index, signature.parameters[index]
    return None


def check_call(call: FunctionCall) -> list[Violation]:
    """Check argument count and types of one call."""
    signature = lookup_signature(call.name)
    if signature is None:
        return []

    actual = len(call.parameters)
    base = {
        "functionName": call.name,
        "expectedSignature": signature.describe(),
        "actualParams": actual,
    }

    if actual < signature.required_count:
        missing = [p.name for p in signature.parameters if p.required][actual:]
        return [
            _violation(
                call,
                f"FUNCTION_SIGNATURE_VALIDATION: Function {call.name} requires at least "
                f"{signature.required_count} parameters but got {actual}",
                {
                    **base,
                    "violationType": "missing_required_parameters",
                    "expectedParams": signature.required_count,
                    "missingParams": missing,
                },
            )
        ]

    if actual > signature.total_count:
        return [
            _violation(
                call,
                f"FUNCTION_SIGNATURE_VALIDATION: Function {call.name} accepts at most "
                f"{signature.total_count} parameters but got {actual}",
                {
                    **base,
                    "violationType": "too_many_parameters",
                    "expectedParams": signature.total_count,
                },
            )
        ]

    violations = []
    for index in range(actual):
        slot = _expected_spec(signature, call, index)
        if slot is None:
            continue
        slot_index, spec = slot
        actual_type = infer_type(call.parameters[index].value)
        if is_compatible(spec.type, actual_type):
            continue
        violations.append(
            _violation(
                call,
                f"FUNCTION_SIGNATURE_VALIDATION: Parameter '{spec.name}' expects type "
                f"'{spec.type}' but got '{actual_type}'",
                {
                    **base,
                    "violationType": "type_mismatch",
                    "parameterName": spec.name,
                    "parameterIndex": slot_index,
                    "expectedType": spec.type,
                    "actualType": actual_type,
                },
            )
        )
    return violations


def check_signatures(calls: Iterable[FunctionCall]) -> list[Violation]:
    violations: list[Violation] = []
    for call in calls:
        violations.extend(check_call(call))
    return violations


def check_input_types(calls: Iterable[FunctionCall]) -> list[Violation]:
    """
    Positional type check without the count rules.

    Reports every positional argument whose inferred type is incompatible
    with the signature slot at the same position.
    """
    violations: list[Violation] = []
    for call in calls:
        signature = lookup_signature(call.name)
        if signature is None:
            continue
        for param in call.parameters:
            if param.named or param.position >= signature.total_count:
                continue
            spec = signature.parameters[param.position]
            actual_type = infer_type(param.value)
            if is_compatible(spec.type, actual_type):
                continue
            violations.append(
                _violation(
                    call,
                    f"Parameter {param.position + 1} of {call.name}() expects {spec.type} "
                    f"but got {actual_type}. (INPUT_TYPE_MISMATCH)",
                    {
                        "functionName": call.name,
                        "parameterName": spec.name,
                        "expectedType": spec.type,
                        "actualType": actual_type,
                    },
                    rule=INPUT_TYPE_RULE,
                )
            )
    return violations


def _context_calls(context: CheckContext) -> list[FunctionCall]:
    if context.extraction is None:
        return []
    return [info.call for info in context.extraction.function_calls]


class SignatureChecker:
    name = "function_signature"
    rule_codes = (SIGNATURE_RULE,)
    always_on = False

    def run(self, context: CheckContext) -> list[Violation]:
        return check_signatures(_context_calls(context))


class InputTypeChecker:
    name = "input_type"
    rule_codes = (INPUT_TYPE_RULE,)
    always_on = False

    def run(self, context: CheckContext) -> list[Violation]:
        return check_input_types(_context_calls(context))
