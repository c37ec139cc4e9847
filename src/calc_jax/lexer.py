"""Terminal scanners for the calculator grammar.

Every scanner takes the full source and an absolute offset, and returns a
``ParseResult`` whose ``end`` already skips trailing whitespace, or raises
``CalcParseError`` pointing at the offset where the token was expected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from .errors import CalcParseError


@dataclass(frozen=True)
class ParseResult:
    node: Any
    end: int


_WHITESPACE_RE = re.compile(r"\s*")
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_DIGITS_AND_SEPARATORS_RE = re.compile(r"[0-9][0-9_]*")
_NUMBER_RE = re.compile(
    r"""
    (?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)    # mantissa
    (?:[eE][+\-]?[0-9]+)?               # exponent
    """,
    re.VERBOSE,
)


def is_ident_char(source: str, pos: int) -> bool:
    return pos < len(source) and (source[pos] == "_" or source[pos].isalnum())


def skip_whitespace(source: str, pos: int) -> int:
    match = _WHITESPACE_RE.match(source, pos)
    assert match is not None
    return match.end()


def describe(source: str, pos: int) -> str:
    if pos >= len(source):
        return "end of input"
    return repr(source[pos])


def fail(source: str, pos: int, message: str, *expected: str) -> CalcParseError:
    return CalcParseError(
        message,
        pos,
        min(pos + 1, len(source)),
        expected=tuple(dict.fromkeys(expected)),
        found=describe(source, pos),
    )


def scan_word(word: str, source: str, pos: int) -> ParseResult:
    if not source.startswith(word, pos):
        raise fail(source, pos, f"Expected '{word}'", repr(word))
    return ParseResult(word, skip_whitespace(source, pos + len(word)))


def scan_keyword(word: str, source: str, pos: int) -> ParseResult:
    if not source.startswith(word, pos) or is_ident_char(source, pos + len(word)):
        raise fail(source, pos, f"Expected keyword '{word}'", repr(word))
    return ParseResult(word, skip_whitespace(source, pos + len(word)))


def scan_one_of(words: tuple[str, ...], source: str, pos: int) -> ParseResult:
    """Match the first of ``words``; callers list longer spellings first."""
    for word in words:
        if source.startswith(word, pos):
            return ParseResult(word, skip_whitespace(source, pos + len(word)))
    raise fail(source, pos, "Expected operator", *(repr(word) for word in words))


def scan_identifier(source: str, pos: int) -> ParseResult:
    match = _IDENT_RE.match(source, pos)
    if match is None:
        raise fail(source, pos, "Expected identifier", "identifier")
    return ParseResult(match.group(), skip_whitespace(source, match.end()))


def scan_integer(source: str, pos: int) -> ParseResult:
    """Integer literals end in the '_' separator, e.g. ``10_`` or ``1_000_``."""
    match = _DIGITS_AND_SEPARATORS_RE.match(source, pos)
    if match is None or not match.group().endswith("_"):
        raise fail(source, pos, "Expected integer literal", "integer")
    return ParseResult(match.group(), skip_whitespace(source, match.end()))


def scan_number(source: str, pos: int) -> ParseResult:
    match = _NUMBER_RE.match(source, pos)
    if match is None:
        raise fail(source, pos, "Expected number", "number")
    return ParseResult(match.group(), skip_whitespace(source, match.end()))
