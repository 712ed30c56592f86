"""
Pine Script Parser.

A fault-tolerant recursive descent parser that builds an approximate AST
from the token stream. It recognizes declarations and function calls (with
named and positional arguments, nested calls and dotted names) and skips
everything else. The parser never raises: problems are collected as
``ParseError`` values and the parser resynchronizes, bounded by a
recovery-attempt budget.
"""

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from pinelint.frontend.ast_nodes import (
    Declaration,
    Expression,
    FunctionCall,
    Identifier,
    Literal,
    LiteralKind,
    Parameter,
    Program,
    Statement,
)
from pinelint.frontend.lexer import Lexer
from pinelint.frontend.tokens import LAYOUT_TOKENS, Token, TokenType
from pinelint.utils.diagnostics import (
    ErrorCategory,
    ErrorCode,
    ErrorCollector,
    ParseError,
    RecoveryStrategy,
    Severity,
)
from pinelint.utils.errors import SourceLocation

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"^//@version\s*=\s*(\d+)", re.MULTILINE)
DEFAULT_VERSION = 6
SCRIPT_TYPES = ("indicator", "strategy", "library")
MAX_NESTING_DEPTH = 64

# Declaration functions whose second positional argument is the shorttitle
_SHORTTITLE_FUNCTIONS = ("indicator", "strategy")

_BINARY_OPERATORS = frozenset(
    {
        TokenType.PLUS,
        TokenType.MINUS,
        TokenType.STAR,
        TokenType.SLASH,
        TokenType.PERCENT,
        TokenType.EQ,
        TokenType.NE,
        TokenType.LT,
        TokenType.GT,
        TokenType.LE,
        TokenType.GE,
        TokenType.QUESTION,
        TokenType.COLON,
    }
)

# Tokens the expression fallback must leave for the enclosing construct
_EXPRESSION_TERMINATORS = frozenset(
    {
        TokenType.RPAREN,
        TokenType.RBRACKET,
        TokenType.COMMA,
        TokenType.NEWLINE,
        TokenType.INDENT,
        TokenType.DEDENT,
        TokenType.EOF,
    }
)


def detect_version(source: str) -> int:
    """Return the ``//@version=N`` directive, or the current major version."""
    match = VERSION_PATTERN.search(source)
    return int(match.group(1)) if match else DEFAULT_VERSION


def _number_value(text: str) -> Any:
    if any(c in text for c in ".eE"):
        return float(text)
    return int(text)


class Parser:
    """
    Recursive descent parser for Pine Script.

    Usage:
        tokens = Lexer(source).tokenize()
        parser = Parser(tokens, source)
        program = parser.parse()
        errors = parser.collector.errors
    """

    def __init__(
        self,
        tokens: list[Token],
        source: str = "",
        max_recovery_attempts: int = 10,
    ) -> None:
        """
        Initialize the parser.

        Args:
            tokens: Token stream produced by the lexer
            source: The source text, used to recover raw expression text
            max_recovery_attempts: Recovery budget before parsing halts
        """
        self.tokens = [t for t in tokens if t.type is not TokenType.COMMENT]
        if not self.tokens or self.tokens[-1].type is not TokenType.EOF:
            end = SourceLocation(line=1, column=0, offset=len(source), length=0)
            self.tokens.append(Token(TokenType.EOF, "", end))
        self.source = source
        self.pos = 0
        self.collector = ErrorCollector(max_recovery_attempts)

        # Every call built, including calls nested inside collapsed expressions
        self.function_calls: list[FunctionCall] = []
        self.node_count = 0
        self.max_depth = 0
        self._depth = 0

    # -------------------------------------------------------------------------
    # Token navigation
    # -------------------------------------------------------------------------

    @property
    def _current(self) -> Token:
        """Get the current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[self.pos]

    @property
    def _previous(self) -> Token:
        """Get the previous token."""
        return self.tokens[self.pos - 1] if self.pos > 0 else self.tokens[0]

    def _peek(self, offset: int = 1) -> Token:
        """Peek at a token ahead of the current position."""
        pos = self.pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[pos]

    def _is_at_end(self) -> bool:
        return self._current.type == TokenType.EOF

    def _check(self, *types: TokenType) -> bool:
        """Check if the current token is one of the given types."""
        return self._current.type in types

    def _check_keyword(self, *words: str) -> bool:
        return self._current.type is TokenType.KEYWORD and self._current.value in words

    def _advance(self) -> Token:
        """Consume and return the current token."""
        token = self._current
        if not self._is_at_end():
            self.pos += 1
        return token

    def _match(self, *types: TokenType) -> bool:
        """Consume current token if it matches one of the given types."""
        if self._check(*types):
            self._advance()
            return True
        return False

    def _skip_layout(self) -> None:
        """Skip newlines and indentation tokens (used inside brackets)."""
        while self._current.type in LAYOUT_TOKENS:
            self._advance()

    def _span(self, start: Token, end: Token) -> SourceLocation:
        """Location covering ``start`` through ``end`` inclusive."""
        length = max(0, end.location.end_offset - start.location.offset)
        return SourceLocation(
            line=start.location.line,
            column=start.location.column,
            offset=start.location.offset,
            length=length,
        )

    def _text(self, start: Token, end: Token) -> str:
        if self.source:
            return self.source[start.location.offset : end.location.end_offset]
        first = self.tokens.index(start)
        last = self.tokens.index(end)
        return " ".join(t.value for t in self.tokens[first : last + 1])

    # -------------------------------------------------------------------------
    # Error handling
    # -------------------------------------------------------------------------

    def _error(
        self,
        code: str,
        message: str,
        token: Token,
        severity: Severity = Severity.ERROR,
        category: ErrorCategory = ErrorCategory.SYNTAX,
        recovery: Optional[RecoveryStrategy] = None,
    ) -> None:
        self.collector.add_error(
            ParseError(
                code=code,
                message=message,
                location=token.location,
                severity=severity,
                category=category,
                recovery=recovery,
            )
        )

    def _recover(self, token: Token) -> bool:
        """
        Spend one recovery attempt.

        When the budget is exhausted the cursor jumps to EOF so that every
        enclosing loop terminates.
        """
        if self.collector.add_recovery(token.location):
            return True
        self.pos = len(self.tokens) - 1
        return False

    def _synchronize(self) -> None:
        """Advance to the start of the next statement."""
        self._advance()
        while not self._is_at_end():
            if self._previous.type == TokenType.NEWLINE:
                return
            if self._check(TokenType.KEYWORD):
                return
            self._advance()

    def _skip_to_closing_paren(self) -> None:
        """Advance past the parenthesis closing the current argument list."""
        depth = 0
        while not self._is_at_end():
            token = self._advance()
            if token.type is TokenType.LPAREN:
                depth += 1
            elif token.type is TokenType.RPAREN:
                if depth == 0:
                    return
                depth -= 1

    # -------------------------------------------------------------------------
    # Program and statements
    # -------------------------------------------------------------------------

    def parse(self) -> Program:
        """
        Parse the token stream into a Program.

        Returns:
            The (possibly partial) program AST
        """
        body: list[Statement] = []

        while not self._is_at_end() and not self.collector.exhausted:
            if self._check(
                TokenType.NEWLINE, TokenType.INDENT, TokenType.DEDENT, TokenType.ERROR
            ):
                self._advance()
                continue

            statement = self._parse_statement()
            if statement is not None:
                body.append(statement)

        script_type = next(
            (s.name for s in body if isinstance(s, FunctionCall) and s.name in SCRIPT_TYPES),
            None,
        )
        self.node_count += 1
        return Program(
            body=tuple(body),
            version=detect_version(self.source),
            script_type=script_type,
            location=SourceLocation(line=1, column=0, offset=0, length=len(self.source)),
        )

    def _parse_statement(self) -> Optional[Statement]:
        start = self._current
        is_var = is_varip = False

        if self._check_keyword("var", "varip"):
            is_var = start.value == "var"
            is_varip = start.value == "varip"
            self._advance()
            if not self._current.is_name:
                self._error(
                    ErrorCode.UNEXPECTED_TOKEN,
                    f"Expected variable name after '{start.value}'",
                    self._current,
                    recovery=RecoveryStrategy.SKIP_TO_NEWLINE,
                )
                if self._recover(self._current):
                    self._synchronize()
                return None

        token = self._current
        following = self._peek()

        # Typed declaration: [var] Type name = value
        if token.is_name and following.is_name and self._peek(2).type is TokenType.ASSIGN:
            type_name = self._advance().value
            return self._parse_declaration(start, type_name, is_var, is_varip)

        if token.is_name and following.type in (TokenType.ASSIGN, TokenType.REASSIGN):
            return self._parse_declaration(start, None, is_var, is_varip)

        if is_var or is_varip:
            self._error(
                ErrorCode.EXPECTED_TOKEN,
                "Expected '=' in variable declaration",
                self._current,
                recovery=RecoveryStrategy.SKIP_TO_NEWLINE,
            )
            if self._recover(self._current):
                self._synchronize()
            return None

        if token.is_name and following.type in (TokenType.LPAREN, TokenType.DOT):
            expr = self._parse_expression()
            return expr if isinstance(expr, FunctionCall) else None

        # Constructs the builder does not model are skipped token by token so
        # that calls appearing later on the line are still found.
        self._advance()
        return None

    def _parse_declaration(
        self,
        start: Token,
        type_name: Optional[str],
        is_var: bool,
        is_varip: bool,
    ) -> Declaration:
        name = self._advance()
        operator = self._advance()

        value: Optional[Expression] = None
        if not self._check(TokenType.NEWLINE, TokenType.EOF):
            value = self._parse_expression()

        self.node_count += 1
        return Declaration(
            name=name.value,
            value=value,
            type_name=type_name,
            is_var=is_var,
            is_varip=is_varip,
            is_reassignment=operator.type is TokenType.REASSIGN,
            location=self._span(start, self._previous),
        )

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def _parse_expression(self) -> Expression:
        """
        Parse an expression.

        Literals, names and calls become their own nodes. Operator chains,
        subscripts and member access on results are collapsed into a single
        Identifier holding the raw expression text.
        """
        start = self._current
        expr = self._parse_primary()
        compound = False

        while not self._is_at_end():
            if self._check(*_BINARY_OPERATORS) or self._check_keyword("and", "or"):
                self._advance()
                self._skip_layout()
                self._parse_primary()
            elif self._check(TokenType.NUMBER) and self._current.value.startswith("-"):
                # ``a-1`` scans as IDENTIFIER NUMBER(-1)
                self._advance()
            elif self._check(TokenType.LBRACKET):
                self._advance()
                self._skip_layout()
                self._parse_expression()
                self._skip_layout()
                if not self._match(TokenType.RBRACKET):
                    self._error(
                        ErrorCode.EXPECTED_TOKEN,
                        "Expected ']' after history reference",
                        self._current,
                        recovery=RecoveryStrategy.INSERT_MISSING_TOKEN,
                    )
                    self._recover(self._current)
            elif self._check(TokenType.DOT) and self._peek().is_name:
                self._advance()
                self._advance()
                if self._check(TokenType.LPAREN):
                    self._advance()
                    self._parse_arguments()
            else:
                break
            compound = True

        if not compound:
            return expr

        self.node_count += 1
        return Identifier(
            name=self._text(start, self._previous),
            location=self._span(start, self._previous),
        )

    def _parse_primary(self) -> Expression:
        token = self._current

        if token.is_literal:
            self._advance()
            self.node_count += 1
            return self._literal(token)

        if self._check_keyword("if", "switch"):
            self._advance()
            self.node_count += 1
            return Identifier(name=token.value, location=token.location)

        if self._check(TokenType.MINUS, TokenType.PLUS) or self._check_keyword("not"):
            self._advance()
            self._parse_primary()
            self.node_count += 1
            return Identifier(
                name=self._text(token, self._previous),
                location=self._span(token, self._previous),
            )

        if token.is_name:
            return self._parse_name_or_call()

        if token.type is TokenType.LPAREN:
            self._advance()
            self._skip_layout()
            inner = self._parse_expression()
            self._skip_layout()
            if not self._match(TokenType.RPAREN):
                self._error(
                    ErrorCode.MISSING_CLOSING_PAREN,
                    "Expected ')' to close parenthesized expression",
                    self._current,
                    recovery=RecoveryStrategy.INSERT_MISSING_TOKEN,
                )
                self._recover(self._current)
            return inner

        if token.type is TokenType.LBRACKET:
            # Tuple or array literal: [a, b, c]
            self._advance()
            while not self._is_at_end():
                self._skip_layout()
                if self._match(TokenType.RBRACKET):
                    break
                before = self.pos
                self._parse_expression()
                self._skip_layout()
                if self._match(TokenType.COMMA):
                    continue
                if self._match(TokenType.RBRACKET):
                    break
                if self._check(TokenType.RPAREN):
                    break
                if self.pos == before:
                    self._advance()
            self.node_count += 1
            return Identifier(
                name=self._text(token, self._previous),
                location=self._span(token, self._previous),
            )

        self._error(
            ErrorCode.UNEXPECTED_EXPRESSION,
            f"Unexpected token '{token.value}' in expression",
            token,
            severity=Severity.WARNING,
            recovery=RecoveryStrategy.CONTINUE_PARSING,
        )
        if self._recover(token) and token.type not in _EXPRESSION_TERMINATORS:
            self._advance()
        self.node_count += 1
        return Identifier(name=token.value, location=token.location)

    def _literal(self, token: Token) -> Literal:
        if token.type is TokenType.STRING:
            kind, value = LiteralKind.STRING, token.value
        elif token.type is TokenType.NUMBER:
            kind, value = LiteralKind.NUMBER, _number_value(token.value)
        elif token.type is TokenType.BOOLEAN:
            kind, value = LiteralKind.BOOLEAN, token.value == "true"
        else:
            kind, value = LiteralKind.COLOR, token.value

        raw = self._text(token, token) if self.source else token.value
        return Literal(kind=kind, value=value, raw=raw, location=token.location)

    def _parse_name_or_call(self) -> Expression:
        start = self._current
        parts = [self._advance().value]
        while self._check(TokenType.DOT) and self._peek().is_name:
            self._advance()
            parts.append(self._advance().value)
        name = ".".join(parts)

        # Template arguments: array.new<float>(...)
        if (
            self._check(TokenType.LT)
            and self._peek().is_name
            and self._peek(2).type is TokenType.GT
            and self._peek(3).type is TokenType.LPAREN
        ):
            for _ in range(3):
                self._advance()

        if self._check(TokenType.LPAREN):
            return self._parse_call(name, start)

        self.node_count += 1
        return Identifier(name=name, location=self._span(start, self._previous))

    def _parse_call(self, name: str, start: Token) -> Expression:
        open_paren = self._advance()
        self._depth += 1
        self.max_depth = max(self.max_depth, self._depth)
        try:
            if self._depth > MAX_NESTING_DEPTH:
                self._error(
                    ErrorCode.MEMORY_LIMIT_EXCEEDED,
                    f"Call nesting deeper than {MAX_NESTING_DEPTH} levels",
                    open_paren,
                    category=ErrorCategory.PERFORMANCE,
                    recovery=RecoveryStrategy.SKIP_TO_CLOSING_PAREN,
                )
                if self._recover(open_paren):
                    self._skip_to_closing_paren()
                return Identifier(
                    name=self._text(start, self._previous),
                    location=self._span(start, self._previous),
                )
            parameters = self._parse_arguments()
        finally:
            self._depth -= 1

        call = FunctionCall(
            name=name,
            parameters=tuple(parameters),
            location=self._span(start, self._previous),
        )
        self.function_calls.append(call)
        self.node_count += 1
        return call

    def _parse_arguments(self) -> list[Parameter]:
        """Parse arguments after an opening parenthesis, through the closing one."""
        parameters: list[Parameter] = []

        while True:
            self._skip_layout()
            if self._match(TokenType.RPAREN):
                break
            if self._is_at_end():
                self._error(
                    ErrorCode.MISSING_CLOSING_PAREN,
                    "Expected ')' to close argument list",
                    self._current,
                    recovery=RecoveryStrategy.INSERT_MISSING_TOKEN,
                )
                self._recover(self._current)
                break

            parameters.append(self._parse_parameter(len(parameters)))

            self._skip_layout()
            if self._match(TokenType.COMMA):
                continue
            if self._match(TokenType.RPAREN):
                break
            if self._is_at_end():
                continue

            token = self._current
            self._error(
                ErrorCode.EXPECTED_TOKEN,
                f"Expected ',' or ')' but found '{token.value}'",
                token,
                recovery=RecoveryStrategy.SKIP_TO_CLOSING_PAREN,
            )
            if self._recover(token):
                self._skip_to_closing_paren()
            break

        return parameters

    def _parse_parameter(self, position: int) -> Parameter:
        start = self._current
        name: Optional[str] = None

        if start.is_name and self._peek().type is TokenType.ASSIGN:
            name = self._advance().value
            self._advance()
            self._skip_layout()

        value = self._parse_expression()
        self.node_count += 1
        return Parameter(
            value=value,
            position=position,
            name=name,
            location=self._span(start, self._previous),
        )


# =============================================================================
# Module-level entry points
# =============================================================================


@dataclass
class ParseResult:
    """Outcome of ``parse``: a partial AST plus collected problems."""

    ast: Program
    errors: list[ParseError] = field(default_factory=list)
    warnings: list[ParseError] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)
    function_calls: list[FunctionCall] = field(default_factory=list)


def parse(source: str, max_recovery_attempts: int = 10) -> ParseResult:
    """
    Tokenize and parse ``source``.

    Never raises. Lexical errors, syntax errors and any internal failure are
    reported through ``ParseResult.errors``.
    """
    started = time.perf_counter()
    lexer = Lexer(source)
    tokens = lexer.tokenize()
    parser = Parser(tokens, source, max_recovery_attempts)
    for error in lexer.errors:
        parser.collector.add_error(error)

    try:
        program = parser.parse()
    except Exception as exc:
        logger.exception("Parser failed")
        parser.collector.add_error(
            ParseError(
                code=ErrorCode.UNHANDLED_EXCEPTION,
                message=f"Parser failed: {exc}",
                location=parser._current.location,
                severity=Severity.CRITICAL,
                category=ErrorCategory.INTERNAL,
            )
        )
        program = Program(
            version=detect_version(source),
            location=SourceLocation(line=1, column=0, offset=0, length=len(source)),
        )

    metrics = {
        "parse_time_ms": (time.perf_counter() - started) * 1000,
        "token_count": len(tokens),
        "node_count": parser.node_count,
        "max_depth": parser.max_depth,
        **parser.collector.get_summary(),
    }
    return ParseResult(
        ast=program,
        errors=list(parser.collector.errors),
        warnings=list(parser.collector.warnings),
        metrics=metrics,
        function_calls=list(parser.function_calls),
    )


@dataclass
class CallInfo:
    """A call site with its arguments resolved to plain values."""

    name: str
    line: int
    column: int
    params: dict[str, Any]
    call: FunctionCall

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "line": self.line, "column": self.column, "params": self.params}


@dataclass
class ExtractionResult:
    success: bool
    function_calls: list[CallInfo] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)


def expression_value(node: Expression) -> Any:
    """Plain value of an argument: literal value, name, or call text."""
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, Identifier):
        return node.name
    return f"{node.name}(...)"


def _resolve_params(call: FunctionCall) -> dict[str, Any]:
    params: dict[str, Any] = {}
    for param in call.parameters:
        key = param.name if param.named else f"_{param.position}"
        params[key] = expression_value(param.value)

    if call.name in _SHORTTITLE_FUNCTIONS and "shorttitle" not in params:
        positional = call.positional
        if len(positional) > 1:
            params["shorttitle"] = expression_value(positional[1].value)
    return params


def extract_function_parameters(source: str) -> ExtractionResult:
    """
    Extract every call site with resolved argument values.

    Calls are returned in source order; a call is listed once even if it
    was reached through several enclosing constructs. Line and column are
    1-based.
    """
    return extraction_from(parse(source))


def extraction_from(result: ParseResult) -> ExtractionResult:
    """Build the call extraction from an existing parse."""
    seen: set[tuple[int, int, str]] = set()
    calls: list[CallInfo] = []

    for call in sorted(result.function_calls, key=lambda c: c.location.offset):
        loc = call.location
        key = (loc.line, loc.column, call.name)
        if key in seen:
            continue
        seen.add(key)
        calls.append(
            CallInfo(
                name=call.name,
                line=loc.line,
                column=loc.column + 1,
                params=_resolve_params(call),
                call=call,
            )
        )

    return ExtractionResult(
        success=not any(e.severity is Severity.CRITICAL for e in result.errors),
        function_calls=calls,
        errors=result.errors,
        metrics={**result.metrics, "functions_found": len(calls)},
    )
