"""
Structured diagnostics for pinelint.

Every problem found while scanning, parsing or validating a script is
reported as a value object: a ``ParseError`` for problems in the token
stream and a ``Violation`` for rule findings. Both are immutable and carry
a severity, a category and optional metadata.

The module also provides the ``ErrorCollector`` used by the parser to
bound its recovery work, and a Rust-like text renderer used by the CLI.

Example output:
    error[INVALID_PRECISION]: INVALID_PRECISION: precision must be between 0 and 8, got 9
      --> script.pine:2:20
       |
      2 | indicator("Title", precision=9)
       |                    ^^^^^^^^^
       |
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pinelint.utils.errors import SourceLocation


# =============================================================================
# Error Codes Catalog
# =============================================================================


class ErrorCode:
    """
    Centralized catalog of error codes produced by the front end.

    Rule codes emitted by individual checkers live next to the checker
    that owns them; this catalog covers the scanner, the parser and the
    integration layer.
    """

    # Lexical errors
    INVALID_TOKEN = "INVALID_TOKEN"
    UNTERMINATED_STRING = "UNTERMINATED_STRING"

    # Syntax errors
    UNEXPECTED_TOKEN = "UNEXPECTED_TOKEN"
    EXPECTED_TOKEN = "EXPECTED_TOKEN"
    MISSING_CLOSING_PAREN = "MISSING_CLOSING_PAREN"
    UNEXPECTED_EXPRESSION = "UNEXPECTED_EXPRESSION"

    # Performance errors
    PARSE_TIMEOUT = "PARSE_TIMEOUT"
    MEMORY_LIMIT_EXCEEDED = "MEMORY_LIMIT_EXCEEDED"

    # Integration errors
    UNHANDLED_EXCEPTION = "UNHANDLED_EXCEPTION"


# =============================================================================
# Severity and Category
# =============================================================================


class Severity(Enum):
    """Severity level of a diagnostic."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def wire_name(self) -> str:
        """Name used in serialized violations (error, warning or suggestion)."""
        if self in (Severity.ERROR, Severity.CRITICAL):
            return "error"
        if self is Severity.WARNING:
            return "warning"
        return "suggestion"

    def color_code(self) -> str:
        """Get ANSI color code for this level."""
        colors = {
            Severity.CRITICAL: "\033[95m",  # Magenta
            Severity.ERROR: "\033[91m",  # Red
            Severity.WARNING: "\033[93m",  # Yellow
            Severity.INFO: "\033[96m",  # Cyan
        }
        return colors.get(self, "")


class ErrorCategory(Enum):
    """
    Closed set of categories a ParseError or Violation can belong to.

    The first six mirror the front end's error taxonomy; the remainder
    classify rule findings by the kind of check that produced them.
    """

    LEXICAL = "lexical_error"
    SYNTAX = "syntax_error"
    SEMANTIC = "semantic_error"
    VALIDATION = "validation_error"
    PERFORMANCE = "performance_error"
    INTEGRATION = "integration_error"

    RUNTIME = "runtime_error"
    PARAMETER_VALIDATION = "parameter_validation"
    NAMING_VALIDATION = "naming_validation"
    SYNTAX_VALIDATION = "syntax_validation"
    TYPE_VALIDATION = "type_validation"
    FUNCTION_SIGNATURE = "function_signature"
    VERSION_COMPATIBILITY = "version_compatibility"
    DEPRECATED_FUNCTION = "deprecated_function"
    NAMESPACE_REQUIREMENT = "namespace_requirement"
    INTERNAL = "internal_error"


class RecoveryStrategy(Enum):
    """How the parser resynchronized after a syntax error."""

    SKIP_TOKEN = "skip_token"
    SKIP_TO_NEWLINE = "skip_to_newline"
    SKIP_TO_CLOSING_PAREN = "skip_to_closing_paren"
    INSERT_MISSING_TOKEN = "insert_missing_token"
    CONTINUE_PARSING = "continue_parsing"


# =============================================================================
# Value Objects
# =============================================================================


@dataclass(frozen=True, slots=True)
class ParseError:
    """
    A problem found while scanning or parsing.

    Attributes:
        code: Error code from ``ErrorCode``
        message: Human readable message
        location: Where the problem was detected
        severity: How serious the problem is
        category: Which stage reported it
        recovery: The strategy the parser applied, if any
        metadata: Extra structured details
    """

    code: str
    message: str
    location: SourceLocation
    severity: Severity = Severity.ERROR
    category: ErrorCategory = ErrorCategory.SYNTAX
    recovery: Optional[RecoveryStrategy] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "line": self.location.line,
            "column": self.location.column,
            "severity": self.severity.value,
            "category": self.category.value,
        }
        if self.recovery is not None:
            data["recovery"] = self.recovery.value
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data


@dataclass(frozen=True, slots=True)
class Violation:
    """
    A rule finding reported to callers.

    ``line`` and ``column`` are both 1-based and point at the first
    character of the offending construct.
    """

    rule: str
    message: str
    line: int
    column: int
    severity: Severity = Severity.ERROR
    category: ErrorCategory = ErrorCategory.VALIDATION
    metadata: dict[str, Any] = field(default_factory=dict)
    suggested_fix: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire shape consumed by tooling integrations."""
        data: dict[str, Any] = {
            "rule": self.rule,
            "severity": self.severity.wire_name,
            "category": self.category.value,
            "message": self.message,
            "line": self.line,
            "column": self.column,
        }
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        if self.suggested_fix:
            data["suggestedFix"] = self.suggested_fix
        return data


# =============================================================================
# Error Collector
# =============================================================================


class ErrorCollector:
    """
    Accumulates parse errors and warnings and bounds recovery work.

    After ``max_recovery_attempts`` recoveries the collector records a
    single CRITICAL ``PARSE_TIMEOUT`` error and refuses further recovery.
    """

    def __init__(self, max_recovery_attempts: int = 10) -> None:
        self.max_recovery_attempts = max_recovery_attempts
        self.errors: list[ParseError] = []
        self.warnings: list[ParseError] = []
        self.recovery_attempts = 0
        self.exhausted = False

    def add_error(self, error: ParseError) -> None:
        if error.severity in (Severity.ERROR, Severity.CRITICAL):
            self.errors.append(error)
        else:
            self.warnings.append(error)

    def add_recovery(self, location: SourceLocation) -> bool:
        """
        Register a recovery attempt.

        Returns:
            True if the parser may recover, False once the budget is spent
        """
        if self.exhausted:
            return False
        self.recovery_attempts += 1
        if self.recovery_attempts > self.max_recovery_attempts:
            self.exhausted = True
            self.errors.append(
                ParseError(
                    code=ErrorCode.PARSE_TIMEOUT,
                    message="Too many parse errors, stopping recovery attempts",
                    location=location,
                    severity=Severity.CRITICAL,
                    category=ErrorCategory.PERFORMANCE,
                    metadata={"recoveryAttempts": self.recovery_attempts - 1},
                )
            )
            return False
        return True

    def has_errors(self) -> bool:
        return bool(self.errors)

    def has_critical_errors(self) -> bool:
        return any(e.severity is Severity.CRITICAL for e in self.errors)

    def get_summary(self) -> dict[str, Any]:
        return {
            "totalErrors": len(self.errors),
            "totalWarnings": len(self.warnings),
            "recoveryAttempts": self.recovery_attempts,
            "hasCriticalErrors": self.has_critical_errors(),
        }


# =============================================================================
# Rendering
# =============================================================================


def render_violation(
    violation: Violation,
    source: str,
    filename: str = "<input>",
    use_color: bool = True,
) -> str:
    """
    Render a violation in a Rust-like format with source context.

    Args:
        violation: The violation to render
        source: The analyzed source text
        filename: Name shown in the location line
        use_color: Whether to use ANSI color codes

    Returns:
        A formatted multi-line string
    """
    lines: list[str] = []
    source_lines = source.splitlines()

    reset = "\033[0m" if use_color else ""
    bold = "\033[1m" if use_color else ""
    blue = "\033[94m" if use_color else ""
    green = "\033[92m" if use_color else ""
    level_color = violation.severity.color_code() if use_color else ""

    level = violation.severity.wire_name
    lines.append(
        f"{level_color}{bold}{level}[{violation.rule}]{reset}: {bold}{violation.message}{reset}"
    )
    lines.append(f"  {blue}-->{reset} {filename}:{violation.line}:{violation.column}")

    if 1 <= violation.line <= len(source_lines):
        source_line = source_lines[violation.line - 1]
        lines.append(f"   {blue}|{reset}")
        lines.append(f"{blue}{violation.line:3} |{reset} {source_line}")

        start = max(violation.column - 1, 0)
        width = _underline_width(source_line, start)
        padding = " " * start
        lines.append(f"   {blue}|{reset} {padding}{level_color}{'^' * width}{reset}")
        lines.append(f"   {blue}|{reset}")

    if violation.suggested_fix:
        lines.append(f"   {blue}={reset} {green}help:{reset} {violation.suggested_fix}")

    return "\n".join(lines)


def _underline_width(source_line: str, start: int) -> int:
    """Underline the identifier-like word at ``start``, or one character."""
    end = start
    while end < len(source_line) and (source_line[end].isalnum() or source_line[end] in "_."):
        end += 1
    return max(1, end - start)
