"""calc-jax public API."""

from .ast import to_source
from .errors import (
    CalcArityError,
    CalcError,
    CalcNameError,
    CalcParseError,
    CalcPluginError,
    CalcRuntimeError,
    CalcTypeError,
    CalcUnsupportedError,
)
from .evaluator import Environment, StatefulEvaluate, UserFunction, eval_expr, evaluate, run
from .parser import parse, parse_expression
from .plugin import ModulePluginHost, PluginHost
from .values import IMPOSSIBLE, Value, ValueKind, float_value, int_value, list_value

__version__ = "0.1.0"

__all__ = [
    "parse",
    "parse_expression",
    "to_source",
    "evaluate",
    "eval_expr",
    "run",
    "Environment",
    "StatefulEvaluate",
    "UserFunction",
    "PluginHost",
    "ModulePluginHost",
    "Value",
    "ValueKind",
    "IMPOSSIBLE",
    "float_value",
    "int_value",
    "list_value",
    "CalcError",
    "CalcParseError",
    "CalcRuntimeError",
    "CalcNameError",
    "CalcTypeError",
    "CalcArityError",
    "CalcUnsupportedError",
    "CalcPluginError",
]
