"""Builtin function registry consulted before user-defined functions."""

from __future__ import annotations

from types import MappingProxyType
from typing import Callable, Final, Mapping

import jax.numpy as jnp

from .complex import HALF_TURN, FComplex, IComplex
from .errors import CalcRuntimeError, CalcTypeError, CalcUnsupportedError, arity_error
from .values import Scalar, Value, cartesian, float_value, int_value, list_value

Builtin = Callable[[list[Value]], Value]


def _expect_arity(name: str, args: list[Value], *counts: int) -> None:
    if len(args) not in counts:
        expected = " or ".join(str(count) for count in counts)
        raise arity_error(name, expected, len(args))


def _expect_list(name: str, value: Value) -> tuple[Value, ...]:
    if value.items is None:
        raise CalcTypeError(f"Function '{name}' expects a list, got {value.kind.value}")
    return value.items


def _expect_index(name: str, value: Value, length: int) -> int:
    if value.scalar is None:
        raise CalcTypeError(f"Function '{name}' expects a scalar index, got {value.kind.value}")
    real, lateral = cartesian(value.scalar)
    if lateral != 0 or not float(real).is_integer():
        raise CalcTypeError(f"Function '{name}' expects an integer index, got {value}")
    index = int(real)
    if not -length <= index < length:
        raise CalcTypeError(f"Function '{name}' index {index} is out of range for length {length}")
    return index % length


def _map_scalars(value: Value, fn: Callable[[Scalar], Value]) -> Value:
    if value.items is not None:
        return list_value(_map_scalars(item, fn) for item in value.items)
    if value.scalar is None:
        return value
    return fn(value.scalar)


def _complex_fn(jnp_fn: Callable) -> Callable[[Scalar], Value]:
    """Lift a jax.numpy complex function onto a scalar; the result is float kind."""

    def apply(scalar: Scalar) -> Value:
        real, lateral = cartesian(scalar)
        out = complex(jnp_fn(jnp.asarray(complex(real, lateral))))
        return float_value(out.real, out.imag)

    return apply


def _unary(name: str, fn: Callable[[Scalar], Value]) -> Builtin:
    def builtin(args: list[Value]) -> Value:
        _expect_arity(name, args, 1)
        return _map_scalars(args[0], fn)

    builtin.__name__ = name
    return builtin


def _scale(factor: float) -> Callable[[Scalar], Value]:
    def apply(scalar: Scalar) -> Value:
        real, lateral = cartesian(scalar)
        return float_value(real * factor, lateral * factor)

    return apply


def _rounding(jnp_fn: Callable) -> Callable[[Scalar], Value]:
    def apply(scalar: Scalar) -> Value:
        if isinstance(scalar, IComplex):
            return Value(scalar=scalar)
        real, lateral = cartesian(scalar)
        return float_value(float(jnp_fn(real)), float(jnp_fn(lateral)))

    return apply


def _abs(scalar: Scalar) -> Value:
    if isinstance(scalar, IComplex):
        return int_value(abs(scalar.length))
    return float_value(abs(scalar.length))


def _sign(scalar: Scalar) -> Value:
    real = cartesian(scalar)[0]
    sign = (real > 0) - (real < 0)
    if isinstance(scalar, IComplex):
        return int_value(sign)
    return float_value(float(sign))


def _log(args: list[Value]) -> Value:
    _expect_arity("log", args, 1, 2)
    ten = _complex_fn(jnp.log10)
    if len(args) == 1:
        return _map_scalars(args[0], ten)
    ln = _complex_fn(jnp.log)
    return _map_scalars(args[0], ln) / _map_scalars(args[1], ln)


def _constant(name: str, value: float) -> Builtin:
    def builtin(args: list[Value]) -> Value:
        _expect_arity(name, args, 0)
        return float_value(value)

    builtin.__name__ = name
    return builtin


def _float_mod(a: FComplex, b: FComplex) -> FComplex:
    divisor = cartesian(b)[0]
    if divisor == 0:
        raise CalcRuntimeError("Modulo by zero")
    return FComplex.from_polar(float(jnp.mod(cartesian(a)[0], divisor)), 0.0)


def _int_mod(a: IComplex, b: IComplex) -> IComplex:
    divisor = b.to_cartesian()[0]
    if divisor == 0:
        raise CalcRuntimeError("Modulo by zero")
    return IComplex.from_polar(a.to_cartesian()[0] % divisor, 0)


def _mod(args: list[Value]) -> Value:
    _expect_arity("mod", args, 2)
    return args[0].do_op(args[1], _float_mod, _int_mod)


def _len(args: list[Value]) -> Value:
    _expect_arity("len", args, 1)
    return int_value(len(_expect_list("len", args[0])))


def _idx(args: list[Value]) -> Value:
    _expect_arity("idx", args, 2)
    items = _expect_list("idx", args[0])
    return items[_expect_index("idx", args[1], len(items))]


def _app(args: list[Value]) -> Value:
    _expect_arity("app", args, 2)
    return list_value((*_expect_list("app", args[0]), args[1]))


def _del(args: list[Value]) -> Value:
    _expect_arity("del", args, 2)
    items = _expect_list("del", args[0])
    index = _expect_index("del", args[1], len(items))
    return list_value(items[:index] + items[index + 1:])


def _not_implemented(name: str) -> Builtin:
    def builtin(args: list[Value]) -> Value:
        raise CalcUnsupportedError(f"Builtin '{name}' is not implemented")

    builtin.__name__ = name
    return builtin


BUILTINS: Final[Mapping[str, Builtin]] = MappingProxyType(
    {
        "sin": _unary("sin", _complex_fn(jnp.sin)),
        "cos": _unary("cos", _complex_fn(jnp.cos)),
        "tan": _unary("tan", _complex_fn(jnp.tan)),
        "asin": _unary("asin", _complex_fn(jnp.arcsin)),
        "acos": _unary("acos", _complex_fn(jnp.arccos)),
        "atan": _unary("atan", _complex_fn(jnp.arctan)),
        "d2r": _unary("d2r", _scale(HALF_TURN / 180.0)),
        "r2d": _unary("r2d", _scale(180.0 / HALF_TURN)),
        "log": _log,
        "ln": _unary("ln", _complex_fn(jnp.log)),
        "e": _constant("e", float(jnp.e)),
        "pi": _constant("pi", HALF_TURN),
        "mod": _mod,
        "floor": _unary("floor", _rounding(jnp.floor)),
        "ceil": _unary("ceil", _rounding(jnp.ceil)),
        "abs": _unary("abs", _abs),
        "idx": _idx,
        "len": _len,
        "app": _app,
        "del": _del,
        "sign": _unary("sign", _sign),
        "comp": _not_implemented("comp"),
    }
)
