"""
Shared checker interface and source-text helpers.

A checker is any object with a ``name``, the rule codes it reports and a
``run(context)`` method returning violations. Checkers never see each
other's output; they only read the immutable ``CheckContext``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Protocol

from pinelint.utils.diagnostics import Violation

if TYPE_CHECKING:
    from pinelint.frontend.parser import ExtractionResult, ParseResult
    from pinelint.registry import DocumentationRegistry, RuleRegistry


@dataclass(frozen=True)
class CheckContext:
    """Everything a checker may read during one analysis call."""

    source: str
    parse_result: Optional["ParseResult"] = None
    extraction: Optional["ExtractionResult"] = None
    rules: Optional["RuleRegistry"] = None
    documentation: Optional["DocumentationRegistry"] = None
    lines: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.source.split("\n")))


class Checker(Protocol):
    """Interface implemented by every validator."""

    name: str
    rule_codes: tuple[str, ...]
    always_on: bool

    def run(self, context: CheckContext) -> list[Violation]: ...


def is_enabled(checker: Checker, rules: Optional["RuleRegistry"]) -> bool:
    """Always-on checkers run unconditionally; others need one of their codes."""
    if checker.always_on:
        return True
    if rules is None:
        return False
    return any(rules.has_rule(code) for code in checker.rule_codes)


# =============================================================================
# Source text helpers
# =============================================================================


def _scan_state(line: str, index: int) -> tuple[Optional[str], bool]:
    """
    Scan ``line`` up to ``index``.

    Returns:
        (open quote character or None, whether a // comment has started)
    """
    quote: Optional[str] = None
    i = 0
    while i < index and i < len(line):
        char = line[i]
        if quote:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "/" and line[i + 1 : i + 2] == "/":
            return None, True
        i += 1
    return quote, False


def is_in_string_literal(line: str, index: int) -> bool:
    """True if position ``index`` of ``line`` lies inside a string literal."""
    quote, in_comment = _scan_state(line, index)
    return quote is not None and not in_comment


def is_in_string_or_comment(line: str, index: int) -> bool:
    """True if ``index`` lies inside a string literal or after a // comment."""
    quote, in_comment = _scan_state(line, index)
    return in_comment or quote is not None


def comment_start(line: str) -> int:
    """Index where a // comment starts outside strings, or -1."""
    quote: Optional[str] = None
    i = 0
    while i < len(line):
        char = line[i]
        if quote:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "/" and line[i + 1 : i + 2] == "/":
            return i
        i += 1
    return -1


def strip_comment(line: str) -> str:
    """Return ``line`` without its trailing // comment."""
    start = comment_start(line)
    return line if start < 0 else line[:start]


def is_comment_line(line: str) -> bool:
    return line.lstrip().startswith("//")
