"""
Abstract Syntax Tree (AST) node definitions for Pine Script.

The tree is intentionally approximate: it models the constructs the
checkers need (declarations and function calls with their arguments) and
collapses everything else into identifiers carrying the raw source text.
Each node is immutable and carries source location information.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from pinelint.utils.errors import SourceLocation


class ASTNode(ABC):
    """Base class for all AST nodes."""

    location: Optional[SourceLocation]

    @abstractmethod
    def accept(self, visitor: "ASTVisitor") -> Any:
        """Accept a visitor for tree traversal."""
        pass


class ASTVisitor(ABC):
    """
    Visitor pattern base class for AST traversal.

    Implement this to create custom AST processors.
    """

    def visit(self, node: ASTNode) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self)


# -----------------------------------------------------------------------------
# Expressions
# -----------------------------------------------------------------------------


class LiteralKind(Enum):
    """Resolved data kind of a literal."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    COLOR = "color"


@dataclass(frozen=True, slots=True)
class Literal(ASTNode):
    """
    A literal value.

    Examples:
        "Title", 14, 2.5, true, #FF0000

    Attributes:
        kind: The resolved data kind
        value: The Python value (str, int, float or bool)
        raw: The literal's source text
    """

    kind: LiteralKind
    value: Any
    raw: str
    location: Optional[SourceLocation] = None

    @property
    def is_integral(self) -> bool:
        return self.kind is LiteralKind.NUMBER and isinstance(self.value, int)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_literal(self)


@dataclass(frozen=True, slots=True)
class Identifier(ASTNode):
    """
    A name reference, possibly dotted (``close``, ``color.red``).

    Compound expressions the builder does not model (operators, subscripts,
    ternaries) are also represented as identifiers whose name is the raw
    expression text.
    """

    name: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_identifier(self)


@dataclass(frozen=True, slots=True)
class FunctionCall(ASTNode):
    """
    A function call.

    Examples:
        plot(close), ta.sma(close, 14), strategy.entry("L", strategy.long)

    Attributes:
        name: Fully qualified name (``ta.sma``)
        parameters: Arguments in source order
    """

    name: str
    parameters: tuple["Parameter", ...] = ()
    location: Optional[SourceLocation] = None

    @property
    def namespace(self) -> Optional[str]:
        if "." not in self.name:
            return None
        return self.name.rsplit(".", 1)[0]

    @property
    def base_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    @property
    def positional(self) -> tuple["Parameter", ...]:
        return tuple(p for p in self.parameters if not p.named)

    def get_named(self, name: str) -> Optional["Parameter"]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_function_call(self)


Expression = Union[Literal, Identifier, FunctionCall]


@dataclass(frozen=True, slots=True)
class Parameter(ASTNode):
    """
    A single argument of a function call.

    Attributes:
        value: The argument value
        position: Zero-based index among all arguments of the call
        name: Parameter name for ``name = value`` arguments
    """

    value: Expression
    position: int
    name: Optional[str] = None
    location: Optional[SourceLocation] = None

    @property
    def named(self) -> bool:
        return self.name is not None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_parameter(self)


# -----------------------------------------------------------------------------
# Statements
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Declaration(ASTNode):
    """
    A variable declaration or reassignment.

    Examples:
        var MyType obj = na
        float x = 1.0
        length = 14
        counter := counter + 1
    """

    name: str
    value: Optional[Expression] = None
    type_name: Optional[str] = None
    is_var: bool = False
    is_varip: bool = False
    is_reassignment: bool = False
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_declaration(self)


Statement = Union[Declaration, FunctionCall]


@dataclass(frozen=True, slots=True)
class Program(ASTNode):
    """
    Root node of a parsed script.

    Attributes:
        body: Top-level declarations and calls in source order
        version: The ``//@version=`` directive (defaults to 6)
        script_type: ``indicator``, ``strategy``, ``library`` or None
    """

    body: tuple[Statement, ...] = ()
    version: int = 6
    script_type: Optional[str] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_program(self)


# -----------------------------------------------------------------------------
# Traversal
# -----------------------------------------------------------------------------


class BaseASTVisitor(ASTVisitor):
    """
    Base visitor with default implementations that traverse children.

    Subclass this and override specific visit_* methods as needed.
    """

    def visit_program(self, node: Program) -> Any:
        for stmt in node.body:
            self.visit(stmt)

    def visit_declaration(self, node: Declaration) -> Any:
        if node.value is not None:
            self.visit(node.value)

    def visit_function_call(self, node: FunctionCall) -> Any:
        for param in node.parameters:
            self.visit(param)

    def visit_parameter(self, node: Parameter) -> Any:
        self.visit(node.value)

    def visit_literal(self, node: Literal) -> Any:
        pass

    def visit_identifier(self, node: Identifier) -> Any:
        pass


class CallCollector(BaseASTVisitor):
    """Collect every function call in a tree, outer calls before inner ones."""

    def __init__(self) -> None:
        self.calls: list[FunctionCall] = []

    def visit_function_call(self, node: FunctionCall) -> Any:
        self.calls.append(node)
        super().visit_function_call(node)


def collect_calls(node: ASTNode) -> list[FunctionCall]:
    collector = CallCollector()
    collector.visit(node)
    return collector.calls
