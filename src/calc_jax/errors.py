"""Structured error types for parser/runtime separation."""

from __future__ import annotations

from dataclasses import dataclass


class CalcError(Exception):
    """Base class for structured calc-jax errors."""


@dataclass(frozen=True)
class CalcParseError(CalcError):
    """Syntax failure with the source span where parsing gave up."""

    message: str
    start: int
    end: int
    expected: tuple[str, ...] = ()
    found: str | None = None

    def __str__(self) -> str:
        expected = ""
        if self.expected:
            expected = f"; expected {', '.join(self.expected)}"
        found = ""
        if self.found is not None:
            found = f"; found {self.found}"
        return f"{self.message} at span [{self.start}, {self.end}){expected}{found}"


class CalcRuntimeError(CalcError):
    """Generic evaluation failure after successful parse."""


class CalcNameError(CalcRuntimeError):
    """Unknown variable or function name."""


class CalcTypeError(CalcRuntimeError):
    """Operand shape/kind compatibility failure."""


class CalcArityError(CalcRuntimeError):
    """Function called with the wrong number of arguments."""


class CalcUnsupportedError(CalcRuntimeError):
    """Builtin exists in the registry but has no implementation."""


class CalcPluginError(CalcRuntimeError):
    """External plugin could not be located, loaded or invoked."""


def arity_error(name: str, expected: int | str, got: int) -> CalcArityError:
    return CalcArityError(f"Function '{name}' expects {expected} argument(s), got {got}")


def render_error(err: CalcError) -> str:
    """Render an error the way the driver prints it."""
    if isinstance(err, CalcParseError):
        return f"Error: Parse error: {err}"
    return f"Error: {err}"
