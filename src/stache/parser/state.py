"""Per-line parser state used for whitespace elision."""

from __future__ import annotations

from dataclasses import dataclass

from stache._types import Token
from stache.nodes import Node, Text


class LineState:
    """Literal text and blank-line bookkeeping for the current physical line.

    Attributes:
        pending: Text seen since the last flush, not yet a node
        blank: True while the line holds only blanks and control tags
        elide_newline: True while the newline ending this line may be dropped
    """

    __slots__ = ("blank", "elide_newline", "pending", "pending_col", "pending_lineno")

    def __init__(self, elide_newline: bool = False):
        self.pending: list[str] = []
        self.pending_lineno = 0
        self.pending_col = 0
        self.blank = True
        self.elide_newline = elide_newline

    def add_text(self, token: Token) -> None:
        if not self.pending:
            self.pending_lineno = token.lineno
            self.pending_col = token.col_offset
        self.pending.append(token.value)
        if token.value.strip(" \t\n"):
            self.blank = False

    def flush(self, body: list[Node]) -> None:
        """Move pending text into ``body`` as one Text node."""
        if self.pending:
            body.append(
                Text(
                    lineno=self.pending_lineno,
                    col_offset=self.pending_col,
                    value="".join(self.pending),
                )
            )
            self.pending = []

    def discard(self) -> None:
        self.pending = []


@dataclass(frozen=True, slots=True)
class SectionEnd:
    """Where a section body stopped: the close tag line and its blankness."""

    lineno: int
    blank: bool


