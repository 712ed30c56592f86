"""
Diagnostic generation for the pinelint LSP.

This module converts parse errors and rule violations from ``analyze``
into LSP diagnostics. Violations carry 1-based lines and columns; LSP
positions are 0-based.
"""

from typing import Optional

from lsprotocol import types

from pinelint.analyzer import analyze
from pinelint.checks.naming import DEPRECATED_RULE
from pinelint.registry import DocumentationRegistry, RuleRegistry
from pinelint.utils.diagnostics import ErrorCategory, ParseError, Severity, Violation

SOURCE = "pinelint"

_SEVERITY_MAP = {
    Severity.CRITICAL: types.DiagnosticSeverity.Error,
    Severity.ERROR: types.DiagnosticSeverity.Error,
    Severity.WARNING: types.DiagnosticSeverity.Warning,
    Severity.INFO: types.DiagnosticSeverity.Information,
}


class DiagnosticProvider:
    """
    Generates LSP diagnostics from Pine Script source code.

    One provider serves one document version; the registries are shared
    across documents and never modified here.
    """

    def __init__(
        self,
        source: str,
        rules: Optional[RuleRegistry] = None,
        documentation: Optional[DocumentationRegistry] = None,
    ) -> None:
        """
        Initialize the diagnostic provider.

        Args:
            source: The Pine Script source to analyze
            rules: Enabled rule codes (defaults apply when omitted)
            documentation: Loaded parameter documentation, if any
        """
        self.source = source
        self.rules = rules
        self.documentation = documentation
        self._lines = source.splitlines()
        self._diagnostics: list[types.Diagnostic] = []

    def get_diagnostics(self) -> list[types.Diagnostic]:
        """
        Get all diagnostics for the document.

        Returns:
            Syntax diagnostics first, then rule violations in checker order
        """
        self._diagnostics = []
        result = analyze(self.source, self.rules, self.documentation)

        for error in result.errors:
            self._add_parse_error(error)
        for violation in result.violations:
            self._add_violation(violation)

        return self._diagnostics

    def _token_end(self, line: int, character: int) -> int:
        """End of the token starting at ``character`` on 0-indexed ``line``."""
        if line >= len(self._lines):
            return character + 1
        rest_of_line = self._lines[line][character:]
        for i, c in enumerate(rest_of_line):
            if c.isspace() or c in "()[]{},:;=":
                return character + max(1, i)
        return character + max(1, len(rest_of_line))

    def _range(self, line: int, character: int) -> types.Range:
        end_character = self._token_end(line, character)
        return types.Range(
            start=types.Position(line=line, character=character),
            end=types.Position(line=line, character=end_character),
        )

    def _add_parse_error(self, error: ParseError) -> None:
        """
        Add a parser or pipeline error as an LSP diagnostic.

        Internal checker failures are already reported as violations and
        are skipped here.
        """
        if error.code.endswith("_VALIDATION_ERROR"):
            return

        line = max(0, error.location.line - 1)
        character = max(0, error.location.column)

        self._diagnostics.append(
            types.Diagnostic(
                range=self._range(line, character),
                message=error.message,
                severity=_SEVERITY_MAP.get(error.severity, types.DiagnosticSeverity.Error),
                source=SOURCE,
                code=error.code,
            )
        )

    def _add_violation(self, violation: Violation) -> None:
        """
        Add a rule violation as an LSP diagnostic.

        Args:
            violation: The violation
        """
        line = max(0, violation.line - 1)
        character = max(0, violation.column - 1)

        message = violation.message
        if violation.suggested_fix:
            message = f"{message}\n\nhint: {violation.suggested_fix}"

        self._diagnostics.append(
            types.Diagnostic(
                range=self._range(line, character),
                message=message,
                severity=_SEVERITY_MAP.get(violation.severity, types.DiagnosticSeverity.Error),
                source=SOURCE,
                code=violation.rule,
                tags=self._get_diagnostic_tags(violation) or None,
            )
        )

    def _get_diagnostic_tags(self, violation: Violation) -> list[types.DiagnosticTag]:
        tags: list[types.DiagnosticTag] = []

        if violation.rule == DEPRECATED_RULE:
            tags.append(types.DiagnosticTag.Deprecated)
        elif violation.category is ErrorCategory.DEPRECATED_FUNCTION:
            tags.append(types.DiagnosticTag.Deprecated)

        return tags


def get_diagnostics_for_document(
    source: str,
    rules: Optional[RuleRegistry] = None,
    documentation: Optional[DocumentationRegistry] = None,
) -> list[types.Diagnostic]:
    """
    Convenience function to get diagnostics for a document.

    Args:
        source: The Pine Script source
        rules: Enabled rule codes
        documentation: Loaded parameter documentation, if any

    Returns:
        List of LSP diagnostics
    """
    provider = DiagnosticProvider(source, rules, documentation)
    return provider.get_diagnostics()
