"""
Parameter naming convention and deprecated parameter checks.

Call sites are found by scanning the source text directly: a function
name followed by ``(``, then a quote-aware balanced-parenthesis scan for
the argument span, then an in-place scan for ``name = value`` pairs.

For every named argument:

1. a deprecated name (from the migration table) is reported with its
   replacement and no further checks run;
2. names known to be legitimate built-in parameters are skipped, using the
   fixed allow-lists, the documentation registry when loaded, and a small
   per-function table;
3. remaining names are classified by casing and reported with a snake_case
   suggestion when they are not snake_case or a single word.
"""

from __future__ import annotations

import bisect
import logging
import re
import weakref
from dataclasses import dataclass
from typing import Optional

from pinelint.checks.base import CheckContext, is_in_string_or_comment
from pinelint.registry import DocumentationRegistry
from pinelint.utils.diagnostics import ErrorCategory, Severity, Violation

logger = logging.getLogger(__name__)

# Registries already warned about missing documentation
_FALLBACK_WARNED: "weakref.WeakSet[DocumentationRegistry]" = weakref.WeakSet()

DEPRECATED_RULE = "DEPRECATED_PARAMETER_NAME"
NAMING_RULE = "INVALID_PARAMETER_NAMING_CONVENTION"

FUNCTION_NAME = re.compile(r"([a-zA-Z_][a-zA-Z0-9_]*(?:\.[a-zA-Z_][a-zA-Z0-9_]*)*)\s*\(")

SINGLE_WORD_PARAMETERS = frozenset(
    {
        "defval", "title", "tooltip", "inline", "group", "confirm", "display",
        "active", "series", "color", "style", "offset", "precision", "format",
        "join", "linewidth", "trackprice", "histbase", "editable", "overlay",
        "bgcolor", "width", "height", "source", "length", "when", "comment",
        "id", "direction", "qty", "limit", "stop", "xloc", "yloc", "size",
        "columns", "rows", "position",
    }
)  # fmt: skip

SNAKE_CASE_PARAMETERS = frozenset(
    {
        "text_color", "text_size", "text_halign", "text_valign", "text_wrap",
        "text_font_family", "text_formatting", "table_id", "column", "row",
        "border_color", "border_width", "border_style", "oca_name",
        "alert_message", "show_last", "force_overlay", "max_bars_back",
        "max_lines_count", "max_labels_count", "max_boxes_count",
    }
)  # fmt: skip

# Accepted by input functions although absent from their formal signatures
HIDDEN_PARAMETERS = frozenset({"minval", "maxval", "step", "options"})

_TEXT_MIGRATIONS = {
    "textColor": "text_color",
    "textSize": "text_size",
    "textHalign": "text_halign",
    "textValign": "text_valign",
}

DEPRECATED_MIGRATIONS: dict[str, dict[str, str]] = {
    "table.cell": dict(_TEXT_MIGRATIONS),
    "box.new": dict(_TEXT_MIGRATIONS),
    "label.new": {"textColor": "text_color", "textSize": "text_size"},
}

# Used when no documentation registry is loaded
BUILTIN_FUNCTION_PARAMETERS: dict[str, frozenset[str]] = {
    "table.cell": frozenset(
        {
            "table_id", "column", "row", "text", "text_color", "text_size",
            "text_halign", "text_valign", "text_wrap", "text_font_family",
        }
    ),
    "strategy.entry": frozenset(
        {
            "id", "direction", "qty", "limit", "stop", "oca_name", "oca_type",
            "comment", "alert_message", "disable_alert",
        }
    ),
}  # fmt: skip

_CAMEL_CASE = re.compile(r"^[a-z][a-zA-Z0-9]*[A-Z]")
_PASCAL_CASE = re.compile(r"^[A-Z][a-zA-Z0-9]*")
_ALL_CAPS = re.compile(r"^[A-Z][A-Z0-9_]*$")
_UPPER = re.compile(r"([A-Z])")


@dataclass(frozen=True, slots=True)
class NamedArgument:
    name: str
    value: str
    offset: int


@dataclass(frozen=True, slots=True)
class CallSite:
    name: str
    offset: int
    arguments: tuple[NamedArgument, ...]


@dataclass(frozen=True, slots=True)
class NamingIssue:
    detected: str
    expected: str
    suggestion: str


# =============================================================================
# Call site extraction
# =============================================================================


def _skip_literal(source: str, i: int) -> int:
    """Index past the string or // comment starting at ``i``, or ``i`` if neither does."""
    char = source[i]
    if char in "\"'":
        j = i + 1
        while j < len(source) and source[j] not in (char, "\n"):
            j += 2 if source[j] == "\\" else 1
        return min(j + 1, len(source))
    if source.startswith("//", i):
        newline = source.find("\n", i)
        return len(source) if newline < 0 else newline
    return i


def _find_closing_paren(source: str, start: int) -> int:
    """Index just past the parenthesis closing the one before ``start``, or -1."""
    depth = 1
    i = start
    while i < len(source) and depth > 0:
        skipped = _skip_literal(source, i)
        if skipped != i:
            i = skipped
            continue
        char = source[i]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        i += 1
    return i if depth == 0 else -1


def _skip_value(source: str, i: int, end: int) -> int:
    """Advance past one argument value, stopping at a top-level comma."""
    depth = 0
    while i < end:
        skipped = _skip_literal(source, i)
        if skipped != i:
            i = min(skipped, end)
            continue
        char = source[i]
        if char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        elif char == "," and depth == 0:
            break
        i += 1
    return i


def extract_named_arguments(source: str, start: int, end: int) -> list[NamedArgument]:
    """Scan ``source[start:end]`` for ``name = value`` arguments."""
    arguments: list[NamedArgument] = []
    i = start
    while i < end:
        while i < end:
            if source[i].isspace() or source[i] == ",":
                i += 1
            elif source.startswith("//", i):
                i = min(_skip_literal(source, i), end)
            else:
                break
        if i >= end:
            break

        name_start = i
        while i < end and (source[i].isalnum() or source[i] == "_"):
            i += 1
        name_end = i
        while i < end and source[i].isspace():
            i += 1

        is_named = (
            name_end > name_start
            and i < end
            and source[i] == "="
            and source[i + 1 : i + 2] != "="
        )
        if is_named:
            i += 1
            while i < end and source[i].isspace():
                i += 1
            value_start = i
            i = _skip_value(source, i, end)
            arguments.append(
                NamedArgument(
                    name=source[name_start:name_end],
                    value=source[value_start:i].strip(),
                    offset=name_start,
                )
            )
        else:
            i = _skip_value(source, i, end)
        i += 1  # comma
    return arguments


def extract_call_sites(source: str) -> list[CallSite]:
    """All call sites with at least one named argument, in source order."""
    sites: list[CallSite] = []
    for match in FUNCTION_NAME.finditer(source):
        line_start = source.rfind("\n", 0, match.start()) + 1
        line_end = source.find("\n", match.start())
        line = source[line_start : line_end if line_end >= 0 else len(source)]
        if is_in_string_or_comment(line, match.start() - line_start):
            continue

        args_start = match.end()
        close = _find_closing_paren(source, args_start)
        if close < 0:
            continue

        arguments = extract_named_arguments(source, args_start, close - 1)
        if arguments:
            sites.append(CallSite(match.group(1), match.start(), tuple(arguments)))
    return sites


# =============================================================================
# Classification
# =============================================================================


def camel_to_snake(name: str) -> str:
    return _UPPER.sub(r"_\1", name).lower()


def pascal_to_snake(name: str) -> str:
    return name[0].lower() + camel_to_snake(name[1:])


def is_all_caps(name: str) -> bool:
    return len(name) > 1 and bool(_ALL_CAPS.match(name))


def classify_name(name: str) -> Optional[NamingIssue]:
    """Return the naming issue for ``name``, or None if it is acceptable."""
    if len(name) == 1:
        return NamingIssue("single character", "descriptive parameter name", f"{name}_value")
    if _CAMEL_CASE.match(name):
        return NamingIssue("camelCase", "snake_case or single word", camel_to_snake(name))
    if _PASCAL_CASE.match(name) and not is_all_caps(name):
        return NamingIssue("PascalCase", "snake_case or single word", pascal_to_snake(name))
    if is_all_caps(name):
        return NamingIssue("ALL_CAPS", "snake_case or single word", name.lower())
    return None


# =============================================================================
# Checker
# =============================================================================


class NamingChecker:
    """
    Naming convention checker bound to an optional documentation registry.

    Usage:
        checker = NamingChecker(documentation)
        violations = checker.check(source)
    """

    name = "naming"
    rule_codes = (DEPRECATED_RULE, NAMING_RULE)
    always_on = True

    def __init__(self, documentation: Optional[DocumentationRegistry] = None) -> None:
        self.documentation = documentation

    def run(self, context: CheckContext) -> list[Violation]:
        documentation = context.documentation or self.documentation
        return NamingChecker(documentation).check(context.source)

    def check(self, source: str) -> list[Violation]:
        line_starts = [0] + [i + 1 for i, c in enumerate(source) if c == "\n"]
        violations: list[Violation] = []

        for site in extract_call_sites(source):
            for argument in site.arguments:
                line_index = bisect.bisect_right(line_starts, argument.offset) - 1
                line = line_index + 1
                column = argument.offset - line_starts[line_index] + 1

                deprecated = self._deprecated(site.name, argument.name, line, column)
                if deprecated is not None:
                    violations.append(deprecated)
                    continue

                naming = self._naming(site.name, argument.name, line, column)
                if naming is not None:
                    violations.append(naming)
        return violations

    def _deprecated(
        self, function: str, parameter: str, line: int, column: int
    ) -> Optional[Violation]:
        replacement = DEPRECATED_MIGRATIONS.get(function, {}).get(parameter)
        if replacement is None:
            return None
        return Violation(
            rule=DEPRECATED_RULE,
            message=(
                f'The "{function}" function does not have an argument with the name '
                f'"{parameter}". Use "{replacement}" instead.'
            ),
            line=line,
            column=column,
            severity=Severity.ERROR,
            category=ErrorCategory.PARAMETER_VALIDATION,
            metadata={
                "functionName": function,
                "parameterName": parameter,
                "correctParameterName": replacement,
            },
            suggested_fix=f'Replace "{parameter}" with "{replacement}"',
        )

    def _naming(self, function: str, parameter: str, line: int, column: int) -> Optional[Violation]:
        if self.is_known_parameter(parameter) or self.is_builtin_parameter(function, parameter):
            return None

        issue = classify_name(parameter)
        if issue is None:
            return None
        return Violation(
            rule=NAMING_RULE,
            message=(
                f'Parameter "{parameter}" in "{function}" uses {issue.detected} naming. '
                f"Pine Script function parameters should use {issue.expected}."
            ),
            line=line,
            column=column,
            severity=Severity.ERROR,
            category=ErrorCategory.PARAMETER_VALIDATION,
            metadata={
                "functionName": function,
                "parameterName": parameter,
                "suggestedParameterName": issue.suggestion,
                "namingConvention": {"detected": issue.detected, "expected": issue.expected},
            },
            suggested_fix=f'Consider using "{issue.suggestion}" instead of "{parameter}"',
        )

    @staticmethod
    def is_known_parameter(parameter: str) -> bool:
        return (
            parameter in SINGLE_WORD_PARAMETERS
            or parameter in SNAKE_CASE_PARAMETERS
            or parameter in HIDDEN_PARAMETERS
        )

    def is_builtin_parameter(self, function: str, parameter: str) -> bool:
        documentation = self.documentation
        if documentation is not None:
            if documentation.is_loaded():
                if documentation.is_valid_parameter(function, parameter):
                    return True
            elif documentation not in _FALLBACK_WARNED:
                _FALLBACK_WARNED.add(documentation)
                logger.warning(
                    "Documentation registry not loaded; using built-in parameter tables"
                )

        known = BUILTIN_FUNCTION_PARAMETERS.get(function)
        return known is not None and parameter in known


def check_naming(
    source: str, documentation: Optional[DocumentationRegistry] = None
) -> list[Violation]:
    """Report deprecated and badly-cased named arguments in ``source``."""
    return NamingChecker(documentation).check(source)
