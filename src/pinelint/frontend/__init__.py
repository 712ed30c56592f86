"""
pinelint front end.

Scanner, token definitions, AST nodes and the fault-tolerant parser.
"""

from pinelint.frontend.ast_nodes import (
    Declaration,
    FunctionCall,
    Identifier,
    Literal,
    LiteralKind,
    Parameter,
    Program,
)
from pinelint.frontend.lexer import Lexer, tokenize
from pinelint.frontend.parser import (
    CallInfo,
    ExtractionResult,
    Parser,
    ParseResult,
    extract_function_parameters,
    extraction_from,
    parse,
)
from pinelint.frontend.tokens import Token, TokenType

__all__ = [
    "Lexer",
    "tokenize",
    "Token",
    "TokenType",
    "Parser",
    "parse",
    "ParseResult",
    "extract_function_parameters",
    "extraction_from",
    "ExtractionResult",
    "CallInfo",
    "Program",
    "FunctionCall",
    "Parameter",
    "Literal",
    "LiteralKind",
    "Identifier",
    "Declaration",
]
