"""
pinelint Utilities Package.

Common utilities for error handling, source locations, and diagnostics.
"""

from pinelint.utils.diagnostics import (
    ErrorCategory,
    ErrorCode,
    ErrorCollector,
    ParseError,
    RecoveryStrategy,
    Severity,
    Violation,
    render_violation,
)
from pinelint.utils.errors import (
    ConfigurationError,
    DocumentationNotLoadedError,
    PineLintError,
    SourceLocation,
)

__all__ = [
    # Errors
    "PineLintError",
    "ConfigurationError",
    "DocumentationNotLoadedError",
    "SourceLocation",
    # Error codes
    "ErrorCode",
    # Diagnostic types
    "Severity",
    "ErrorCategory",
    "RecoveryStrategy",
    "ParseError",
    "Violation",
    "ErrorCollector",
    "render_violation",
]
