"""Runtime value model: complex scalars of two kinds and nested lists."""

from __future__ import annotations

import math
import operator
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Final, Iterable, Union

from .complex import QUARTER_TURN, FComplex, IComplex

Scalar = Union[FComplex, IComplex]
FloatOp = Callable[[FComplex, FComplex], FComplex]
IntOp = Callable[[IComplex, IComplex], IComplex]

IMPOSSIBLE_TEXT: Final[str] = "IMPOSSIBLE DATA ACHIEVED"

_ZERO_TOLERANCE: Final[float] = 1e-12
_SIGNIFICANT_DIGITS: Final[int] = 15
_EXACT_INTEGER_LIMIT: Final[float] = 1e15


class ValueKind(str, Enum):
    FLOAT = "float"
    INTEGER = "integer"
    LIST = "list"
    IMPOSSIBLE = "impossible"


@dataclass(frozen=True)
class Value:
    """Either one scalar or an ordered list of values; never both.

    A value with neither populated is the impossible sentinel, which only
    shows up when an operator had no evaluation path.
    """

    scalar: Scalar | None = None
    items: tuple["Value", ...] | None = None

    def __post_init__(self) -> None:
        if self.scalar is not None and self.items is not None:
            raise ValueError("Value holds either a scalar or a list, not both")

    @property
    def kind(self) -> ValueKind:
        if self.items is not None:
            return ValueKind.LIST
        if isinstance(self.scalar, FComplex):
            return ValueKind.FLOAT
        if isinstance(self.scalar, IComplex):
            return ValueKind.INTEGER
        return ValueKind.IMPOSSIBLE

    @property
    def is_list(self) -> bool:
        return self.items is not None

    @property
    def is_impossible(self) -> bool:
        return self.scalar is None and self.items is None

    def to_string(self) -> str:
        if self.items is not None:
            return "[ " + "".join(f"{item.to_string()} " for item in self.items) + "]"
        if self.scalar is not None:
            return _format_scalar(self.scalar)
        return IMPOSSIBLE_TEXT

    def __str__(self) -> str:
        return self.to_string()

    def to_lateral(self) -> "Value":
        """Multiply by the imaginary unit."""
        if self.items is not None:
            return list_value(item.to_lateral() for item in self.items)
        if isinstance(self.scalar, FComplex):
            return Value(scalar=FComplex(self.scalar.length, self.scalar.angle + QUARTER_TURN))
        if isinstance(self.scalar, IComplex):
            return Value(scalar=IComplex(self.scalar.length, self.scalar.angle_deg + 90))
        return self

    def to_negative(self) -> "Value":
        """Flip the sign of the length; the angle is kept."""
        if self.items is not None:
            return list_value(item.to_negative() for item in self.items)
        if isinstance(self.scalar, FComplex):
            return Value(scalar=FComplex(-self.scalar.length, self.scalar.angle))
        if isinstance(self.scalar, IComplex):
            return Value(scalar=IComplex(-self.scalar.length, self.scalar.angle_deg))
        return self

    def to_float(self) -> "Value":
        if self.items is not None:
            return list_value(item.to_float() for item in self.items)
        if isinstance(self.scalar, IComplex):
            return Value(scalar=self.scalar.to_fcomplex())
        return self

    def do_op(self, other: "Value", float_op: FloatOp, int_op: IntOp) -> "Value":
        """Apply a binary operator with list broadcasting and kind promotion.

        Two lists cross: every left item meets every right item, left-major,
        so ``[1, 2] + [10, 20]`` is ``[11, 21, 12, 22]``. A list against a
        scalar maps over the list. Scalars promote to the float kind when
        either side is a float.
        """
        if self.items is not None and other.items is not None:
            return list_value(
                item.do_op(other_item, float_op, int_op)
                for item in self.items
                for other_item in other.items
            )
        if self.items is not None:
            return list_value(item.do_op(other, float_op, int_op) for item in self.items)
        if other.items is not None:
            return list_value(self.do_op(item, float_op, int_op) for item in other.items)
        if self.scalar is None or other.scalar is None:
            return IMPOSSIBLE
        if isinstance(self.scalar, FComplex) or isinstance(other.scalar, FComplex):
            left = self.to_float().scalar
            right = other.to_float().scalar
            assert isinstance(left, FComplex) and isinstance(right, FComplex)
            return Value(scalar=float_op(left, right))
        assert isinstance(self.scalar, IComplex) and isinstance(other.scalar, IComplex)
        return Value(scalar=int_op(self.scalar, other.scalar))

    def do_cmp(self, other: "Value", op: str) -> "Value":
        """Compare as a value: -1 when the predicate holds, 0 otherwise."""
        predicate = _COMPARISONS.get(op)
        if predicate is None:
            return IMPOSSIBLE
        return self.do_op(
            other,
            lambda a, b: FComplex(-1.0 if predicate(a, b) else 0.0, 0.0),
            lambda a, b: IComplex(-1 if predicate(a, b) else 0, 0),
        )

    def __add__(self, other: "Value") -> "Value":
        return self.do_op(other, operator.add, operator.add)

    def __sub__(self, other: "Value") -> "Value":
        return self.do_op(other, operator.sub, operator.sub)

    def __mul__(self, other: "Value") -> "Value":
        return self.do_op(other, operator.mul, operator.mul)

    def __truediv__(self, other: "Value") -> "Value":
        return self.do_op(other, operator.truediv, operator.truediv)

    def __pow__(self, other: "Value") -> "Value":
        return self.do_op(other, operator.pow, operator.pow)


IMPOSSIBLE: Final[Value] = Value()


def float_value(real: float, lateral: float = 0.0) -> Value:
    if lateral == 0:
        return Value(scalar=FComplex.from_polar(real, 0.0))
    return Value(scalar=FComplex.from_components(real, lateral))


def int_value(real: int) -> Value:
    return Value(scalar=IComplex.from_polar(real, 0))


def list_value(items: Iterable[Value]) -> Value:
    return Value(items=tuple(items))


def _format_real(x: float) -> str:
    x = float(f"{x:.{_SIGNIFICANT_DIGITS}g}") + 0.0
    if x.is_integer() and abs(x) < _EXACT_INTEGER_LIMIT:
        return str(int(x))
    return f"{x:.{_SIGNIFICANT_DIGITS}g}"


def _format_scalar(scalar: Scalar) -> str:
    if isinstance(scalar, IComplex):
        real, lateral = scalar.to_cartesian()
        text = str(real)
        if lateral != 0:
            text += f"+j{lateral}"
        return text

    freal, flateral = _clean_cartesian(scalar)
    text = _format_real(freal)
    if flateral != 0:
        text += f"+j{_format_real(flateral)}"
    return text


def _clean_cartesian(scalar: FComplex) -> tuple[float, float]:
    """Cartesian parts with polar round-off snapped to zero."""
    real, lateral = scalar.to_cartesian()
    limit = _ZERO_TOLERANCE * max(1.0, abs(scalar.length))
    if abs(real) < limit:
        real = 0.0
    if abs(lateral) < limit:
        lateral = 0.0
    return real, lateral


def cartesian(scalar: Scalar) -> tuple[float, float]:
    if isinstance(scalar, FComplex):
        return _clean_cartesian(scalar)
    real, lateral = scalar.to_cartesian()
    return real, lateral


def _equal(a: Scalar, b: Scalar) -> bool:
    if isinstance(a, IComplex) and isinstance(b, IComplex):
        return a.to_cartesian() == b.to_cartesian()
    (r1, l1), (r2, l2) = cartesian(a), cartesian(b)
    return all(
        math.isclose(x, y, rel_tol=_ZERO_TOLERANCE, abs_tol=_ZERO_TOLERANCE)
        for x, y in ((r1, r2), (l1, l2))
    )


def _real_part(a: Scalar) -> float:
    return cartesian(a)[0]


_COMPARISONS: Final[dict[str, Callable[[Scalar, Scalar], bool]]] = {
    "=": _equal,
    "≠": lambda a, b: not _equal(a, b),
    ">": lambda a, b: _real_part(a) > _real_part(b),
    "<": lambda a, b: _real_part(a) < _real_part(b),
    "≥": lambda a, b: _real_part(a) >= _real_part(b),
    "≤": lambda a, b: _real_part(a) <= _real_part(b),
}

COMPARISON_OPS: Final[frozenset[str]] = frozenset(_COMPARISONS)
