"""Backtracking recursive-descent parser for calculator statements.

Grammar (each level's operands are the next level down)::

    statement    := funcdef | assignment | expression
    funcdef      := '\\' ident '(' [ ident { ',' ident } ] ')' '->' expression
    assignment   := 'let' ident '=' expression
    expression   := conditional
    conditional  := unary [ '?' [ conditional ] [ ':' conditional ] ]
    unary        := [ 'j' | '-' ] exponential
    exponential  := product [ '^' exponential ]
    product      := sum { ( '*' | '/' ) sum }
    sum          := relational { ( '+' | '-' ) relational }
    relational   := term { ( '=' | '≠' | '>' | '<' | '≥' | '≤' ) term }
    term         := '(' expression ')' | list | call | ident | int | float

Rules are plain functions of ``(source, pos)``. Alternatives are tried in
order and the first success wins. When all fail, the failure that got
furthest into the input is reported. Failures swallowed by backtracking are
still remembered for the whole parse, so a line that only parses up to a
short prefix reports the deeper failure instead of the leftover input.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Callable, Final

from .ast import (
    Assignment,
    ConditionalExpression,
    ExponentialExpression,
    Expr,
    FunctionCall,
    FunctionDefinition,
    Identifier,
    Integer,
    List,
    Number,
    ProductExpression,
    RelationalExpression,
    Statement,
    SumExpression,
    Term,
    UnaryExpression,
)
from .errors import CalcParseError
from .lexer import (
    ParseResult,
    describe,
    fail,
    scan_identifier,
    scan_integer,
    scan_keyword,
    scan_number,
    scan_one_of,
    scan_word,
    skip_whitespace,
)

Rule = Callable[[str, int], ParseResult]

# Longer spellings first; ASCII aliases normalize to the Unicode operator.
_RELATIONAL_SPELLINGS: Final[tuple[str, ...]] = ("=/=", "!=", ">=", "<=", "≠", "≥", "≤", "=", ">", "<")
_RELATIONAL_ALIASES: Final[dict[str, str]] = {"=/=": "≠", "!=": "≠", ">=": "≥", "<=": "≤"}
_SUM_OPS: Final[tuple[str, ...]] = ("+", "-")
_PRODUCT_OPS: Final[tuple[str, ...]] = ("*", "/")

_FARTHEST_FAILURE: ContextVar[CalcParseError | None] = ContextVar("_FARTHEST_FAILURE", default=None)


def _note_failure(err: CalcParseError) -> CalcParseError:
    farthest = _FARTHEST_FAILURE.get()
    if farthest is None or err.start >= farthest.start:
        _FARTHEST_FAILURE.set(err)
    return err


def _first_of(source: str, pos: int, rules: tuple[Rule, ...]) -> ParseResult:
    errors: list[CalcParseError] = []
    for rule in rules:
        try:
            return rule(source, pos)
        except CalcParseError as err:
            errors.append(_note_failure(err))
    furthest = max(err.start for err in errors)
    expected: list[str] = []
    message = errors[0].message
    for err in errors:
        if err.start == furthest:
            if not expected:
                message = err.message
            expected.extend(err.expected)
    raise _note_failure(CalcParseError(
        message,
        furthest,
        min(furthest + 1, len(source)),
        expected=tuple(dict.fromkeys(expected)),
        found=describe(source, furthest),
    ))


def _try_word(words: tuple[str, ...], source: str, pos: int) -> ParseResult | None:
    try:
        return scan_one_of(words, source, pos)
    except CalcParseError as err:
        _note_failure(err)
        return None


def _separated(item: Rule, source: str, pos: int, closer: str) -> ParseResult:
    """Parse ``[ item { ',' item } ] closer`` and return the items as a tuple."""
    items = []
    if source.startswith(closer, pos):
        return ParseResult((), scan_word(closer, source, pos).end)
    first = item(source, pos)
    items.append(first.node)
    pos = first.end
    while source.startswith(",", pos):
        pos = scan_word(",", source, pos).end
        nxt = item(source, pos)
        items.append(nxt.node)
        pos = nxt.end
    if not source.startswith(closer, pos):
        raise fail(source, pos, f"Expected ',' or '{closer}'", "','", repr(closer))
    return ParseResult(tuple(items), scan_word(closer, source, pos).end)


# statements


def _function_definition(source: str, pos: int) -> ParseResult:
    pos = scan_word("\\", source, pos).end
    name = scan_identifier(source, pos)
    pos = scan_word("(", source, name.end).end
    params = _separated(scan_identifier, source, pos, ")")
    pos = scan_word("->", source, params.end).end
    body = _expression(source, pos)
    return ParseResult(FunctionDefinition(name.node, params.node, body.node), body.end)


def _assignment(source: str, pos: int) -> ParseResult:
    pos = scan_keyword("let", source, pos).end
    name = scan_identifier(source, pos)
    pos = scan_word("=", source, name.end).end
    body = _expression(source, pos)
    return ParseResult(Assignment(name.node, body.node), body.end)


def _statement(source: str, pos: int) -> ParseResult:
    pos = skip_whitespace(source, pos)
    result = _first_of(source, pos, (_function_definition, _assignment, _expression))
    return ParseResult(Statement(result.node), result.end)


# expressions


def _expression(source: str, pos: int) -> ParseResult:
    return _conditional(source, pos)


def _conditional(source: str, pos: int) -> ParseResult:
    condition = _unary(source, pos)
    pos = condition.end
    if not source.startswith("?", pos):
        return ParseResult(ConditionalExpression(condition.node), pos)
    pos = scan_word("?", source, pos).end

    then_branch = None
    if not source.startswith(":", pos):
        then_result = _conditional(source, pos)
        then_branch, pos = then_result.node, then_result.end

    else_branch = None
    if source.startswith(":", pos):
        else_result = _conditional(source, scan_word(":", source, pos).end)
        else_branch, pos = else_result.node, else_result.end
    elif then_branch is None:
        raise fail(source, pos, "Expected a branch after '?'", "expression", "':'")

    return ParseResult(ConditionalExpression(condition.node, then_branch, else_branch), pos)


def _is_prefix(source: str, pos: int, op: str) -> bool:
    if not source.startswith(op, pos):
        return False
    if op == "j":
        # 'j' directly followed by a letter starts an identifier instead.
        nxt = pos + 1
        return not (nxt < len(source) and (source[nxt].isalpha() or source[nxt] == "_"))
    return True


def _prefixed(op: str) -> Rule:
    def rule(source: str, pos: int) -> ParseResult:
        if not _is_prefix(source, pos, op):
            raise fail(source, pos, f"Expected '{op}'", repr(op))
        operand = _exponential(source, skip_whitespace(source, pos + len(op)))
        return ParseResult(UnaryExpression(operand.node, op), operand.end)

    return rule


def _plain_unary(source: str, pos: int) -> ParseResult:
    operand = _exponential(source, pos)
    return ParseResult(UnaryExpression(operand.node), operand.end)


_UNARY_RULES: Final[tuple[Rule, ...]] = (_prefixed("j"), _prefixed("-"), _plain_unary)


def _unary(source: str, pos: int) -> ParseResult:
    return _first_of(source, pos, _UNARY_RULES)


def _exponential(source: str, pos: int) -> ParseResult:
    base = _product(source, pos)
    caret = _try_word(("^",), source, base.end)
    if caret is None:
        return ParseResult(ExponentialExpression(base.node), base.end)
    exponent = _exponential(source, caret.end)
    return ParseResult(ExponentialExpression(base.node, exponent.node), exponent.end)


def _binary_level(
    source: str,
    pos: int,
    operand: Rule,
    ops: tuple[str, ...],
    node_type: type,
    aliases: dict[str, str] | None = None,
) -> ParseResult:
    left = operand(source, pos)
    node = node_type(left.node)
    pos = left.end
    while True:
        matched = _try_word(ops, source, pos)
        if matched is None:
            return ParseResult(node, pos)
        op = matched.node if aliases is None else aliases.get(matched.node, matched.node)
        right = operand(source, matched.end)
        if node.op is None:
            node = node_type(node.left, op, right.node)
        else:
            node = node_type(node, op, right.node)
        pos = right.end


def _product(source: str, pos: int) -> ParseResult:
    return _binary_level(source, pos, _sum, _PRODUCT_OPS, ProductExpression)


def _sum(source: str, pos: int) -> ParseResult:
    return _binary_level(source, pos, _relational, _SUM_OPS, SumExpression)


def _relational(source: str, pos: int) -> ParseResult:
    return _binary_level(source, pos, _term, _RELATIONAL_SPELLINGS, RelationalExpression, _RELATIONAL_ALIASES)


# terms


def _parenthesized(source: str, pos: int) -> ParseResult:
    pos = scan_word("(", source, pos).end
    inner = _expression(source, pos)
    if not source.startswith(")", inner.end):
        raise fail(source, inner.end, "Expected ')'", "')'")
    return ParseResult(Term(inner.node), scan_word(")", source, inner.end).end)


def _list(source: str, pos: int) -> ParseResult:
    pos = scan_word("[", source, pos).end
    items = _separated(_expression, source, pos, "]")
    return ParseResult(Term(List(items.node)), items.end)


def _function_call(source: str, pos: int) -> ParseResult:
    name = scan_identifier(source, pos)
    pos = scan_word("(", source, name.end).end
    args = _separated(_expression, source, pos, ")")
    return ParseResult(Term(FunctionCall(name.node, args.node)), args.end)


def _identifier(source: str, pos: int) -> ParseResult:
    name = scan_identifier(source, pos)
    return ParseResult(Term(Identifier(name.node)), name.end)


def _integer(source: str, pos: int) -> ParseResult:
    literal = scan_integer(source, pos)
    return ParseResult(Term(Integer(literal.node)), literal.end)


def _number(source: str, pos: int) -> ParseResult:
    literal = scan_number(source, pos)
    return ParseResult(Term(Number(literal.node)), literal.end)


_TERM_RULES: Final[tuple[Rule, ...]] = (_parenthesized, _list, _function_call, _identifier, _integer, _number)


def _term(source: str, pos: int) -> ParseResult:
    return _first_of(source, pos, _TERM_RULES)


# public API


def _require_end(source: str, result: ParseResult) -> None:
    if result.end != len(source):
        farthest = _FARTHEST_FAILURE.get()
        if farthest is not None and farthest.start > result.end:
            raise farthest
        raise CalcParseError(
            "Unexpected trailing input",
            result.end,
            len(source),
            expected=("end of input",),
            found=describe(source, result.end),
        )


def _parse_whole(rule: Rule, source: str, pos: int):
    token = _FARTHEST_FAILURE.set(None)
    try:
        result = rule(source, pos)
        _require_end(source, result)
        return result.node
    finally:
        _FARTHEST_FAILURE.reset(token)


def parse(source: str) -> Statement:
    """Parse one line into a ``Statement``; the whole line must be consumed."""
    return _parse_whole(_statement, source, 0)


def parse_expression(source: str) -> Expr:
    return _parse_whole(_expression, source, skip_whitespace(source, 0))
