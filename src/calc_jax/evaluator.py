"""Tree-walking evaluator for calculator statements."""

from __future__ import annotations

import logging
import os
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Final, Iterator, Mapping

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
from .builtins import BUILTINS
from .errors import CalcError, CalcNameError, CalcTypeError, CalcUnsupportedError, arity_error, render_error
from .parser import parse
from .plugin import CALL_FUNCTION, ModulePluginHost, PluginHost
from .values import Value, float_value, int_value, list_value

logger = logging.getLogger(__name__)

_PARSE_CACHE_MAX: Final[int] = max(1, int(os.environ.get("CALC_JAX_PARSE_CACHE_MAX", "256")))


@lru_cache(maxsize=_PARSE_CACHE_MAX)
def _parse_cached(source: str) -> Statement:
    return parse(source)


@dataclass(frozen=True)
class UserFunction:
    params: tuple[str, ...]
    body: Expr


class Environment(MutableMapping[str, Value]):
    """Variables (the mapping interface) plus user-defined functions."""

    def __init__(
        self,
        variables: Mapping[str, Value] | None = None,
        functions: Mapping[str, UserFunction] | None = None,
    ) -> None:
        self.variables: dict[str, Value] = {} if variables is None else dict(variables)
        self.functions: dict[str, UserFunction] = {} if functions is None else dict(functions)

    def __getitem__(self, key: str) -> Value:
        return self.variables[key]

    def __setitem__(self, key: str, value: Value) -> None:
        if not isinstance(value, Value):
            raise TypeError(f"env[{key!r}] must be a Value, got {type(value).__name__}")
        self.variables[key] = value

    def __delitem__(self, key: str) -> None:
        del self.variables[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.variables)

    def __len__(self) -> int:
        return len(self.variables)

    def copy(self) -> "Environment":
        return Environment(self.variables, self.functions)

    def extended(self, bindings: Mapping[str, Value]) -> "Environment":
        """A detached copy with ``bindings`` layered over the variables."""
        child = self.copy()
        child.variables.update(bindings)
        return child


@dataclass
class _Context:
    env: Environment
    plugins: PluginHost | None

    def plugin_host(self) -> PluginHost:
        if self.plugins is None:
            self.plugins = ModulePluginHost()
        return self.plugins


def _bare_identifier(expr: Expr) -> str | None:
    """Name of an expression that is nothing but an identifier, else None."""
    node: object = expr
    while True:
        if isinstance(node, Identifier):
            return node.name
        if isinstance(node, Term):
            node = node.inner
        elif isinstance(node, ConditionalExpression) and not node.has_branches:
            node = node.condition
        elif isinstance(node, UnaryExpression) and node.op is None:
            node = node.operand
        elif isinstance(node, ExponentialExpression) and node.exponent is None:
            node = node.base
        elif isinstance(node, (ProductExpression, SumExpression, RelationalExpression)) and node.op is None:
            node = node.left
        else:
            return None


def _eval_args(args: tuple[Expr, ...], ctx: _Context) -> list[Value]:
    return [_eval_expr(arg, ctx) for arg in args]


def _call_plugin(call: FunctionCall, ctx: _Context) -> Value:
    if not call.args:
        raise arity_error(CALL_FUNCTION, "at least 1", 0)
    library = _bare_identifier(call.args[0])
    if library is None:
        raise CalcTypeError(f"Function '{CALL_FUNCTION}' expects a library name as its first argument")
    return ctx.plugin_host().execute(library, _eval_args(call.args[1:], ctx))


def _call_user_function(call: FunctionCall, function: UserFunction, ctx: _Context) -> Value:
    if len(call.args) != len(function.params):
        raise arity_error(call.name, len(function.params), len(call.args))
    bindings = dict(zip(function.params, _eval_args(call.args, ctx)))
    logger.debug("calling %s(%s)", call.name, ", ".join(f"{k}={v}" for k, v in bindings.items()))
    return _eval_expr(function.body, _Context(ctx.env.extended(bindings), ctx.plugins))


def _eval_call(call: FunctionCall, ctx: _Context) -> Value:
    if call.name == CALL_FUNCTION:
        return _call_plugin(call, ctx)
    builtin = BUILTINS.get(call.name)
    if builtin is not None:
        return builtin(_eval_args(call.args, ctx))
    function = ctx.env.functions.get(call.name)
    if function is not None:
        return _call_user_function(call, function, ctx)
    raise CalcNameError(f"No such function '{call.name}'")


def _apply_binary(op: str, left: Value, right: Value) -> Value:
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if op == "/":
        return left / right
    return left.do_cmp(right, op)


def _eval_expr(expr: Expr, ctx: _Context) -> Value:
    if isinstance(expr, ConditionalExpression):
        condition = _eval_expr(expr.condition, ctx)
        if not expr.has_branches:
            return condition
        branch = expr.else_branch if condition.to_string() == "0" else expr.then_branch
        if branch is None:
            return condition
        return _eval_expr(branch, ctx)

    if isinstance(expr, UnaryExpression):
        operand = _eval_expr(expr.operand, ctx)
        if expr.op is None:
            return operand
        if expr.op == "j":
            return operand.to_lateral()
        if expr.op == "-":
            return operand.to_negative()
        raise CalcUnsupportedError(f"Unsupported unary operator {expr.op!r}")

    if isinstance(expr, ExponentialExpression):
        base = _eval_expr(expr.base, ctx)
        if expr.exponent is None:
            return base
        return base ** _eval_expr(expr.exponent, ctx)

    if isinstance(expr, (ProductExpression, SumExpression, RelationalExpression)):
        left = _eval_expr(expr.left, ctx)
        if expr.op is None:
            return left
        assert expr.right is not None
        return _apply_binary(expr.op, left, _eval_expr(expr.right, ctx))

    if isinstance(expr, Term):
        return _eval_expr(expr.inner, ctx)

    if isinstance(expr, Identifier):
        try:
            return ctx.env[expr.name]
        except KeyError:
            raise CalcNameError(f"No such variable '{expr.name}'") from None

    if isinstance(expr, Number):
        return float_value(float(expr.text))

    if isinstance(expr, Integer):
        return int_value(int(expr.text.replace("_", "")))

    if isinstance(expr, List):
        return list_value(_eval_args(expr.items, ctx))

    if isinstance(expr, FunctionCall):
        return _eval_call(expr, ctx)

    raise TypeError(f"Unsupported expression node: {type(expr)!r}")


def eval_expr(expr: Expr, env: Environment, plugins: PluginHost | None = None) -> Value:
    """Evaluate one expression node; errors propagate as ``CalcError``."""
    return _eval_expr(expr, _Context(env, plugins))


def _assign(stmt: Assignment, env: Environment, plugins: PluginHost | None) -> str:
    value = eval_expr(stmt.body, env, plugins)
    existed = stmt.name in env
    env[stmt.name] = value
    logger.debug("%s variable %r = %s", "updated" if existed else "added", stmt.name, value)
    if existed:
        return f"Updated var '{stmt.name}' to {value}"
    return f"Added var '{stmt.name}' with value {value} to environment."


def _define(stmt: FunctionDefinition, env: Environment) -> str:
    existed = stmt.name in env.functions
    env.functions[stmt.name] = UserFunction(stmt.params, stmt.body)
    logger.debug("%s function %r with params %s", "updated" if existed else "added", stmt.name, stmt.params)
    if existed:
        return f"Updated function '{stmt.name}'"
    params = ", ".join(f"'{param}'" for param in stmt.params)
    return f"Added function '{stmt.name}' with args [{params}] to environment."


def evaluate(stmt: Statement, env: Environment, plugins: PluginHost | None = None) -> str:
    """Evaluate a parsed statement against ``env`` and render the outcome.

    Assignments and function definitions report what changed, bare
    expressions render their value, and any ``CalcError`` becomes an
    ``"Error: ..."`` line. The environment is only mutated on success.
    """
    try:
        inner = stmt.inner
        if isinstance(inner, Assignment):
            return _assign(inner, env, plugins)
        if isinstance(inner, FunctionDefinition):
            return _define(inner, env)
        return eval_expr(inner, env, plugins).to_string()
    except CalcError as err:
        return render_error(err)


def run(source: str, env: Environment, plugins: PluginHost | None = None) -> str:
    """Parse and evaluate one line of source."""
    try:
        stmt = _parse_cached(source)
    except CalcError as err:
        return render_error(err)
    return evaluate(stmt, env, plugins)


@dataclass
class StatefulEvaluate:
    """Callable wrapper that runs lines against a persistent environment."""

    env: Environment = field(default_factory=Environment)
    plugins: PluginHost | None = None

    def __post_init__(self) -> None:
        if self.plugins is None:
            self.plugins = ModulePluginHost()

    def __call__(self, source: str) -> str:
        return run(source, self.env, self.plugins)
