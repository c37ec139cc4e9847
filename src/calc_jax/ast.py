"""AST nodes for calculator statements and expressions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


def _check_operator_pair(node: object, op: str | None, right: object) -> None:
    if (op is None) != (right is None):
        raise ValueError(f"{type(node).__name__} needs both an operator and a right operand, or neither")


@dataclass(frozen=True)
class Identifier:
    name: str


@dataclass(frozen=True)
class Number:
    text: str


@dataclass(frozen=True)
class Integer:
    text: str


@dataclass(frozen=True)
class List:
    items: tuple["Expr", ...]


@dataclass(frozen=True)
class FunctionCall:
    name: str
    args: tuple["Expr", ...]


@dataclass(frozen=True)
class Term:
    inner: "Expr"


@dataclass(frozen=True)
class RelationalExpression:
    left: "Expr"
    op: str | None = None
    right: "Expr | None" = None

    def __post_init__(self) -> None:
        _check_operator_pair(self, self.op, self.right)


@dataclass(frozen=True)
class SumExpression:
    left: "Expr"
    op: str | None = None
    right: "Expr | None" = None

    def __post_init__(self) -> None:
        _check_operator_pair(self, self.op, self.right)


@dataclass(frozen=True)
class ProductExpression:
    left: "Expr"
    op: str | None = None
    right: "Expr | None" = None

    def __post_init__(self) -> None:
        _check_operator_pair(self, self.op, self.right)


@dataclass(frozen=True)
class ExponentialExpression:
    base: "Expr"
    exponent: "Expr | None" = None


@dataclass(frozen=True)
class UnaryExpression:
    operand: "Expr"
    op: str | None = None


@dataclass(frozen=True)
class ConditionalExpression:
    condition: "Expr"
    then_branch: "Expr | None" = None
    else_branch: "Expr | None" = None

    @property
    def has_branches(self) -> bool:
        return self.then_branch is not None or self.else_branch is not None


@dataclass(frozen=True)
class Assignment:
    name: str
    body: "Expr"


@dataclass(frozen=True)
class FunctionDefinition:
    name: str
    params: tuple[str, ...]
    body: "Expr"


@dataclass(frozen=True)
class Statement:
    inner: "FunctionDefinition | Assignment | Expr"


Expr = Union[
    ConditionalExpression,
    UnaryExpression,
    ExponentialExpression,
    ProductExpression,
    SumExpression,
    RelationalExpression,
    Term,
    Identifier,
    Number,
    Integer,
    List,
    FunctionCall,
]

_ATOMS = (Identifier, Number, Integer, List, FunctionCall)


def to_source(node: object) -> str:
    """Render a node back into source text that parses to the same tree."""
    if isinstance(node, Statement):
        return to_source(node.inner)
    if isinstance(node, FunctionDefinition):
        return f"\\{node.name}({', '.join(node.params)}) -> {to_source(node.body)}"
    if isinstance(node, Assignment):
        return f"let {node.name} = {to_source(node.body)}"
    if isinstance(node, ConditionalExpression):
        text = to_source(node.condition)
        if not node.has_branches:
            return text
        text += " ?"
        if node.then_branch is not None:
            text += f" {to_source(node.then_branch)}"
        if node.else_branch is not None:
            text += f" : {to_source(node.else_branch)}"
        return text
    if isinstance(node, UnaryExpression):
        if node.op is None:
            return to_source(node.operand)
        return f"{node.op} {to_source(node.operand)}"
    if isinstance(node, ExponentialExpression):
        if node.exponent is None:
            return to_source(node.base)
        return f"{to_source(node.base)} ^ {to_source(node.exponent)}"
    if isinstance(node, (ProductExpression, SumExpression, RelationalExpression)):
        if node.op is None:
            return to_source(node.left)
        return f"{to_source(node.left)} {node.op} {to_source(node.right)}"
    if isinstance(node, Term):
        if isinstance(node.inner, _ATOMS):
            return to_source(node.inner)
        return f"({to_source(node.inner)})"
    if isinstance(node, Identifier):
        return node.name
    if isinstance(node, (Number, Integer)):
        return node.text
    if isinstance(node, List):
        return f"[{', '.join(to_source(item) for item in node.items)}]"
    if isinstance(node, FunctionCall):
        return f"{node.name}({', '.join(to_source(arg) for arg in node.args)})"
    raise TypeError(f"Unsupported AST node: {type(node)!r}")
