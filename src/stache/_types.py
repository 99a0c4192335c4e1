"""Token types shared by the Stache lexer and parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Kinds of token produced by the tag scanner."""

    DATA = auto()
    NEWLINE = auto()
    TAG = auto()
    EOF = auto()


@dataclass(frozen=True, slots=True)
class Token:
    """A literal run, a newline, or a tag body.

    For ``TAG`` tokens ``value`` is the raw text between the markers
    (untrimmed). ``lineno`` is 1-based, ``col_offset`` 0-based and both
    point at the first character of the token (the open marker for tags).
    """

    type: TokenType
    value: str
    lineno: int
    col_offset: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.lineno}:{self.col_offset})"
