"""
Pine Script Lexer (Tokenizer).

Transforms Pine Script source code into a stream of tokens. The lexer is
total: it never raises. Characters it cannot classify become ERROR tokens
and unterminated literals are consumed to end of input, with a matching
entry recorded in ``Lexer.errors``.
"""

from typing import Iterator, Optional

from pinelint.frontend.tokens import (
    BOOLEAN_LITERALS,
    DOUBLE_CHAR_TOKENS,
    KEYWORDS,
    SINGLE_CHAR_TOKENS,
    Token,
    TokenType,
)
from pinelint.utils.diagnostics import ErrorCategory, ErrorCode, ParseError, Severity
from pinelint.utils.errors import SourceLocation

TAB_WIDTH = 4

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
    "'": "'",
}

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _is_digit(char: str) -> bool:
    """ASCII 0-9 only."""
    return "0" <= char <= "9"


class Lexer:
    """
    Tokenizer for Pine Script source code.

    The lexer supports:
    - Identifiers, keywords and boolean literals
    - Integer, decimal and exponent number literals
    - String literals (single and double quoted) with escapes
    - Hex color literals (#RRGGBB, #RRGGBBAA)
    - Line (//) and block (/* */) comments, emitted as COMMENT tokens
    - Indentation tracking with INDENT / DEDENT tokens

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()
        # or iterate: for token in lexer: ...
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 0
        self.tokens: list[Token] = []
        self.errors: list[ParseError] = []

        self._indent_stack: list[int] = [0]
        self._at_line_start = True

    @property
    def _current_char(self) -> Optional[str]:
        """Return the current character or None if at end."""
        if self.pos >= len(self.source):
            return None
        return self.source[self.pos]

    @property
    def _peek_char(self) -> Optional[str]:
        """Return the next character without consuming it."""
        return self._peek_ahead(1)

    def _peek_ahead(self, n: int) -> Optional[str]:
        peek_pos = self.pos + n
        if peek_pos >= len(self.source):
            return None
        return self.source[peek_pos]

    def _advance(self) -> str:
        """Consume and return the current character."""
        char = self.source[self.pos]
        self.pos += 1

        if char == "\n":
            self.line += 1
            self.column = 0
        else:
            self.column += 1

        return char

    def _mark(self) -> tuple[int, int, int]:
        return self.pos, self.line, self.column

    def _location_from(self, mark: tuple[int, int, int]) -> SourceLocation:
        """Create a SourceLocation spanning from ``mark`` to the cursor."""
        offset, line, column = mark
        return SourceLocation(line=line, column=column, offset=offset, length=self.pos - offset)

    def _add_token(self, token_type: TokenType, value: str, mark: tuple[int, int, int]) -> Token:
        token = Token(token_type, value, self._location_from(mark))
        self.tokens.append(token)
        return token

    def _error(self, code: str, message: str, location: SourceLocation) -> None:
        self.errors.append(
            ParseError(
                code=code,
                message=message,
                location=location,
                severity=Severity.ERROR,
                category=ErrorCategory.LEXICAL,
            )
        )

    # -------------------------------------------------------------------------
    # Main loop
    # -------------------------------------------------------------------------

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source code.

        Returns:
            List of tokens, always terminated by a zero-length EOF token
        """
        while self._current_char is not None:
            if self._at_line_start:
                self._at_line_start = False
                self._handle_indentation()
                continue

            char = self._current_char

            if char == "\n":
                mark = self._mark()
                self._advance()
                self._add_token(TokenType.NEWLINE, "\n", mark)
                self._at_line_start = True
            elif char in " \t\r\f\v":
                self._advance()
            elif char in "\"'":
                self._scan_string()
            elif self._starts_number():
                self._scan_number()
            elif char.isalpha() or char == "_":
                self._scan_identifier()
            elif char == "#":
                self._scan_color()
            else:
                self._scan_operator()

        # Close any blocks still open at end of input
        end_mark = self._mark()
        while len(self._indent_stack) > 1:
            self._indent_stack.pop()
            self._add_token(TokenType.DEDENT, "", end_mark)

        self._add_token(TokenType.EOF, "", end_mark)
        return self.tokens

    def __iter__(self) -> Iterator[Token]:
        return iter(self.tokenize())

    # -------------------------------------------------------------------------
    # Indentation
    # -------------------------------------------------------------------------

    def _handle_indentation(self) -> None:
        """Measure leading whitespace and emit INDENT/DEDENT tokens."""
        mark = self._mark()
        width = 0
        probe = self.pos
        while probe < len(self.source) and self.source[probe] in " \t":
            width += TAB_WIDTH if self.source[probe] == "\t" else 1
            probe += 1

        # Blank and comment-only lines never change the indentation level
        rest = self.source[probe : probe + 2]
        if probe >= len(self.source) or rest[:1] in ("\n", "\r") or rest == "//":
            while self.pos < probe:
                self._advance()
            return

        while self.pos < probe:
            self._advance()

        if width > self._indent_stack[-1]:
            self._indent_stack.append(width)
            self._add_token(TokenType.INDENT, self.source[mark[0] : self.pos], mark)
        else:
            dedent_mark = self._mark()
            while self._indent_stack[-1] > width:
                self._indent_stack.pop()
                self._add_token(TokenType.DEDENT, "", dedent_mark)

    # -------------------------------------------------------------------------
    # Literals
    # -------------------------------------------------------------------------

    def _scan_string(self) -> None:
        """Scan a quoted string, decoding escape sequences."""
        mark = self._mark()
        quote = self._advance()
        chars: list[str] = []

        while self._current_char is not None and self._current_char != quote:
            char = self._advance()
            if char == "\\" and self._current_char is not None:
                escaped = self._advance()
                chars.append(_ESCAPES.get(escaped, escaped))
            else:
                chars.append(char)

        if self._current_char is None:
            token = self._add_token(TokenType.STRING, "".join(chars), mark)
            self._error(
                ErrorCode.UNTERMINATED_STRING,
                "Unterminated string literal",
                token.location,
            )
            return

        self._advance()  # closing quote
        self._add_token(TokenType.STRING, "".join(chars), mark)

    def _starts_number(self) -> bool:
        char = self._current_char
        peek = self._peek_char
        if char is None:
            return False
        if _is_digit(char):
            return True
        if char == "." and peek is not None and _is_digit(peek):
            return True
        if char == "-" and peek is not None:
            if _is_digit(peek):
                return True
            if peek == "." and _is_digit(self._peek_ahead(2) or ""):
                return True
        return False

    def _scan_number(self) -> None:
        """Scan a number: optional minus, digits, one decimal point, exponent."""
        mark = self._mark()
        if self._current_char == "-":
            self._advance()

        seen_dot = False
        while self._current_char is not None:
            char = self._current_char
            if _is_digit(char):
                self._advance()
            elif char == "." and not seen_dot:
                seen_dot = True
                self._advance()
            else:
                break

        if self._current_char in ("e", "E"):
            peek = self._peek_char
            signed = peek in ("+", "-") and _is_digit(self._peek_ahead(2) or "")
            if (peek is not None and _is_digit(peek)) or signed:
                self._advance()
                if signed:
                    self._advance()
                while self._current_char is not None and _is_digit(self._current_char):
                    self._advance()

        text = self.source[mark[0] : self.pos]
        self._add_token(TokenType.NUMBER, text, mark)

    def _scan_identifier(self) -> None:
        mark = self._mark()
        while self._current_char is not None and (
            self._current_char.isalnum() or self._current_char == "_"
        ):
            self._advance()

        text = self.source[mark[0] : self.pos]
        if text in BOOLEAN_LITERALS:
            token_type = TokenType.BOOLEAN
        elif text in KEYWORDS:
            token_type = TokenType.KEYWORD
        else:
            token_type = TokenType.IDENTIFIER
        self._add_token(token_type, text, mark)

    def _scan_color(self) -> None:
        """Scan a hex color literal such as #FF0000 or #FF000080."""
        mark = self._mark()
        self._advance()  # '#'
        while self._current_char is not None and self._current_char in _HEX_DIGITS:
            self._advance()

        text = self.source[mark[0] : self.pos]
        if len(text) - 1 in (6, 8):
            self._add_token(TokenType.COLOR, text, mark)
            return

        token = self._add_token(TokenType.ERROR, text, mark)
        self._error(ErrorCode.INVALID_TOKEN, f"Invalid color literal '{text}'", token.location)

    # -------------------------------------------------------------------------
    # Comments and operators
    # -------------------------------------------------------------------------

    def _scan_operator(self) -> None:
        mark = self._mark()
        pair = self.source[self.pos : self.pos + 2]

        if pair == "//":
            self._advance()
            self._advance()
            while self._current_char is not None and self._current_char != "\n":
                self._advance()
            text = self.source[mark[0] + 2 : self.pos]
            self._add_token(TokenType.COMMENT, text.strip(), mark)
            return

        if pair == "/*":
            self._advance()
            self._advance()
            while self._current_char is not None and not (
                self._current_char == "*" and self._peek_char == "/"
            ):
                self._advance()
            body_end = self.pos
            if self._current_char is not None:
                self._advance()
                self._advance()
            self._add_token(TokenType.COMMENT, self.source[mark[0] + 2 : body_end].strip(), mark)
            return

        if pair == "*/":
            # Stray block terminator
            self._advance()
            self._advance()
            self._add_token(TokenType.COMMENT, "", mark)
            return

        if pair in DOUBLE_CHAR_TOKENS:
            self._advance()
            self._advance()
            self._add_token(DOUBLE_CHAR_TOKENS[pair], pair, mark)
            return

        char = self._advance()
        if char in SINGLE_CHAR_TOKENS:
            self._add_token(SINGLE_CHAR_TOKENS[char], char, mark)
            return

        token = self._add_token(TokenType.ERROR, char, mark)
        self._error(ErrorCode.INVALID_TOKEN, f"Unexpected character '{char}'", token.location)


def tokenize(source: str) -> list[Token]:
    """Tokenize ``source`` and return the token list."""
    return Lexer(source).tokenize()
