"""
Error types and source location tracking for pinelint.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Attributes:
        line: 1-indexed line number
        column: 0-indexed column number
        offset: 0-indexed character offset from start of source
        length: Number of characters covered
    """

    line: int
    column: int
    offset: int = 0
    length: int = 0

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"

    @property
    def end_offset(self) -> int:
        return self.offset + self.length


class PineLintError(Exception):
    """Base exception for all pinelint errors."""

    def __init__(self, message: str, location: Optional[SourceLocation] = None) -> None:
        self.message = message
        self.location = location
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.location:
            return f"[{self.location}] {self.message}"
        return self.message


class ConfigurationError(PineLintError):
    """Raised when a rule or documentation file cannot be read or is malformed."""

    pass


class DocumentationNotLoadedError(PineLintError):
    """Raised when the documentation registry is queried strictly before loading."""

    pass
