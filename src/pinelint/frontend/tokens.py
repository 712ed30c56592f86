"""
Token definitions for the Pine Script lexer.

This module defines all token types recognized by the scanner, the
keyword set, and the operator lookup tables.
"""

from dataclasses import dataclass
from enum import Enum, auto

from pinelint.utils.errors import SourceLocation


class TokenType(Enum):
    """Enumeration of all token types produced by the scanner."""

    # End of file
    EOF = auto()

    # Literals
    STRING = auto()
    NUMBER = auto()
    BOOLEAN = auto()
    COLOR = auto()  # #RRGGBB or #RRGGBBAA

    # Names
    IDENTIFIER = auto()
    KEYWORD = auto()

    # Operators
    ASSIGN = auto()  # =
    REASSIGN = auto()  # :=
    EQ = auto()  # ==
    NE = auto()  # !=
    LT = auto()  # <
    GT = auto()  # >
    LE = auto()  # <=
    GE = auto()  # >=
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()
    QUESTION = auto()
    COLON = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    DOT = auto()

    # Layout
    NEWLINE = auto()
    INDENT = auto()
    DEDENT = auto()
    COMMENT = auto()

    # Anything the scanner could not classify
    ERROR = auto()


KEYWORDS: frozenset[str] = frozenset(
    {
        # Declarations
        "indicator",
        "strategy",
        "library",
        "var",
        "varip",
        "type",
        "method",
        "import",
        "export",
        # Control flow
        "if",
        "else",
        "for",
        "while",
        "break",
        "continue",
        "switch",
        # Types and qualifiers
        "int",
        "float",
        "bool",
        "string",
        "color",
        "line",
        "label",
        "box",
        "table",
        "array",
        "matrix",
        "series",
        "simple",
        # Values and logic
        "na",
        "and",
        "or",
        "not",
    }
)

# Lexically identifiers, but scanned as BOOLEAN tokens
BOOLEAN_LITERALS: frozenset[str] = frozenset({"true", "false"})

# Keywords that introduce statements and can never name a callable
CONTROL_KEYWORDS: frozenset[str] = frozenset(
    {
        "var",
        "varip",
        "type",
        "method",
        "import",
        "export",
        "if",
        "else",
        "for",
        "while",
        "break",
        "continue",
        "switch",
        "and",
        "or",
        "not",
    }
)

# Single character operators and punctuation
SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    "?": TokenType.QUESTION,
    ":": TokenType.COLON,
    "=": TokenType.ASSIGN,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "<": TokenType.LT,
    ">": TokenType.GT,
}

# Two character operators (checked before single char). Comment markers are
# handled by the lexer directly.
DOUBLE_CHAR_TOKENS: dict[str, TokenType] = {
    ":=": TokenType.REASSIGN,
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
}

LAYOUT_TOKENS: frozenset[TokenType] = frozenset(
    {TokenType.NEWLINE, TokenType.INDENT, TokenType.DEDENT, TokenType.COMMENT}
)


@dataclass(frozen=True, slots=True)
class Token:
    """
    Represents a single token from the source code.

    Attributes:
        type: The type of this token
        value: The lexeme text (decoded for strings)
        location: Source location of this token
    """

    type: TokenType
    value: str
    location: SourceLocation

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.location})"

    @property
    def is_literal(self) -> bool:
        """Check if this token represents a literal value."""
        return self.type in {
            TokenType.STRING,
            TokenType.NUMBER,
            TokenType.BOOLEAN,
            TokenType.COLOR,
        }

    @property
    def is_name(self) -> bool:
        """Check if this token can name a variable, function or parameter."""
        return self.type is TokenType.IDENTIFIER or (
            self.type is TokenType.KEYWORD and self.value not in CONTROL_KEYWORDS
        )
