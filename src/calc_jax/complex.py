"""Polar complex scalars: a float/radian kind and an integer/degree kind.

Both kinds keep ``(length, angle)``. Addition and subtraction round-trip
through cartesian form; multiplication and division stay polar; powers use
``z ^ w = e ^ (w * ln z)`` with ``ln z = ln|z| + j * angle(z)``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Final

import jax
import jax.numpy as jnp

from .errors import CalcRuntimeError

jax.config.update("jax_enable_x64", True)

HALF_TURN: Final[float] = float(jnp.pi)
QUARTER_TURN: Final[float] = HALF_TURN / 2


def _real(fn: Callable, *args: float) -> float:
    return float(fn(*args))


def _polar_angle(real: float, lateral: float) -> float:
    # Two-argument arctangent stand-in; real == 0 maps to a half turn.
    if real == 0:
        return HALF_TURN
    if real > 0:
        return _real(jnp.arctan, lateral / real)
    return _real(jnp.arctan, lateral / real) + HALF_TURN


@dataclass(frozen=True)
class FComplex:
    length: float
    angle: float

    @classmethod
    def from_polar(cls, length: float, angle: float) -> "FComplex":
        return cls(float(length), float(angle))

    @classmethod
    def from_cartesian(cls, real: float, lateral: float) -> "FComplex":
        length = _real(jnp.sqrt, real * real + lateral * lateral)
        return cls(length, _polar_angle(real, lateral))

    @classmethod
    def from_components(cls, real: float, lateral: float) -> "FComplex":
        """Exact two-argument conversion for values built outside the operators."""
        return cls(_real(jnp.hypot, real, lateral), _real(jnp.arctan2, lateral, real))

    def to_cartesian(self) -> tuple[float, float]:
        cos, sin = _real(jnp.cos, self.angle), _real(jnp.sin, self.angle)
        # An exactly zero factor stays zero even for an infinite length.
        real = self.length * cos if cos != 0 else 0.0
        lateral = self.length * sin if sin != 0 else 0.0
        return real, lateral

    def normalized(self) -> "FComplex":
        """Same number with a non-negative length."""
        if self.length < 0:
            return FComplex(-self.length, self.angle + HALF_TURN)
        return self

    def __add__(self, other: "FComplex") -> "FComplex":
        r1, l1 = self.to_cartesian()
        r2, l2 = other.to_cartesian()
        return FComplex.from_cartesian(r1 + r2, l1 + l2)

    def __sub__(self, other: "FComplex") -> "FComplex":
        r1, l1 = self.to_cartesian()
        r2, l2 = other.to_cartesian()
        return FComplex.from_cartesian(r1 - r2, l1 - l2)

    def __mul__(self, other: "FComplex") -> "FComplex":
        return FComplex(self.length * other.length, self.angle + other.angle)

    def __truediv__(self, other: "FComplex") -> "FComplex":
        if other.length == 0:
            raise CalcRuntimeError("Division by zero")
        return FComplex(self.length / other.length, self.angle - other.angle)

    def __pow__(self, other: "FComplex") -> "FComplex":
        base = self.normalized()
        if base.length == 0:
            if other.length == 0:
                return FComplex(1.0, 0.0)
            if other.to_cartesian()[0] < 0:
                raise CalcRuntimeError("Division by zero")
            return FComplex(0.0, 0.0)

        # w * ln z with ln z = ln|z| + j angle(z), multiplied out in cartesian form
        ln_length = _real(jnp.log, base.length)
        c, d = other.to_cartesian()
        a = c * ln_length - d * base.angle
        b = c * base.angle + d * ln_length

        # e^(a + jb) has length e^a and angle b
        return FComplex(_real(jnp.exp, a), b)


def _int_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


@dataclass(frozen=True)
class IComplex:
    length: int
    angle_deg: int

    @classmethod
    def from_polar(cls, length: int, angle_deg: int) -> "IComplex":
        return cls(int(length), int(angle_deg))

    @classmethod
    def from_cartesian(cls, real: int, lateral: int) -> "IComplex":
        length = math.isqrt(real * real + lateral * lateral)
        if real == 0:
            return cls(length, 180)
        return cls(length, round(_real(jnp.degrees, _polar_angle(real, lateral))))

    def to_cartesian(self) -> tuple[int, int]:
        turn = self.angle_deg % 360
        if turn == 0:
            return self.length, 0
        if turn == 90:
            return 0, self.length
        if turn == 180:
            return -self.length, 0
        if turn == 270:
            return 0, -self.length
        radians = _real(jnp.radians, self.angle_deg)
        real = round(self.length * _real(jnp.cos, radians))
        lateral = round(self.length * _real(jnp.sin, radians))
        return real, lateral

    def to_fcomplex(self) -> FComplex:
        return FComplex(float(self.length), _real(jnp.radians, self.angle_deg))

    @classmethod
    def from_fcomplex(cls, value: FComplex) -> "IComplex":
        if not (math.isfinite(value.length) and math.isfinite(value.angle)):
            raise CalcRuntimeError("Integer result is not finite")
        return cls(round(value.length), round(_real(jnp.degrees, value.angle)))

    def __add__(self, other: "IComplex") -> "IComplex":
        r1, l1 = self.to_cartesian()
        r2, l2 = other.to_cartesian()
        return IComplex.from_cartesian(r1 + r2, l1 + l2)

    def __sub__(self, other: "IComplex") -> "IComplex":
        r1, l1 = self.to_cartesian()
        r2, l2 = other.to_cartesian()
        return IComplex.from_cartesian(r1 - r2, l1 - l2)

    def __mul__(self, other: "IComplex") -> "IComplex":
        return IComplex(self.length * other.length, self.angle_deg + other.angle_deg)

    def __truediv__(self, other: "IComplex") -> "IComplex":
        if other.length == 0:
            raise CalcRuntimeError("Division by zero")
        return IComplex(_int_div(self.length, other.length), self.angle_deg - other.angle_deg)

    def __pow__(self, other: "IComplex") -> "IComplex":
        return IComplex.from_fcomplex(self.to_fcomplex() ** other.to_fcomplex())
