"""Leaf tag parsing for the Stache parser: variables, partials, comments, pragmas."""

from __future__ import annotations

import warnings
from typing import TYPE_CHECKING

from stache.environment.exceptions import UnsupportedPragmaWarning
from stache.nodes import Comment, Partial, Pragma, Variable

if TYPE_CHECKING:
    from stache._types import Token
    from stache.nodes import Node
    from stache.parser.state import LineState


class LeafTagParsingMixin:
    """Mixin for tags that produce a single node and never nest.

    Variables and partials render something, so they mark the current line
    as non-blank. Comments and pragmas do not.

    Required Host Attributes:
        - _name, _filename: error context
        - _tag_name: method
    """

    if TYPE_CHECKING:
        _name: str | None
        _filename: str | None

        def _tag_name(self, token: Token, content: str) -> str: ...

    def _parse_variable(
        self, token: Token, content: str, body: list[Node], state: LineState
    ) -> None:
        """Parse {{name}} (HTML-escaped)."""
        self._append_leaf(Variable(token.lineno, token.col_offset, content, True), body, state)

    def _parse_triple(
        self, token: Token, content: str, body: list[Node], state: LineState
    ) -> None:
        """Parse {{{name}}}.

        The scanner has already consumed the third closing brace for the
        default markers; with custom markers the body still ends in ``}``.
        """
        inner = content[1:]
        if inner.endswith("}"):
            inner = inner[:-1]
        name = self._tag_name(token, "{" + inner)
        self._append_leaf(Variable(token.lineno, token.col_offset, name, False), body, state)

    def _parse_ampersand(
        self, token: Token, content: str, body: list[Node], state: LineState
    ) -> None:
        """Parse {{&name}}."""
        name = self._tag_name(token, content)
        self._append_leaf(Variable(token.lineno, token.col_offset, name, False), body, state)

    def _parse_partial(
        self, token: Token, content: str, body: list[Node], state: LineState
    ) -> None:
        """Parse {{>name}}."""
        name = self._tag_name(token, content)
        self._append_leaf(Partial(token.lineno, token.col_offset, name), body, state)

    def _parse_comment(
        self, token: Token, content: str, body: list[Node], state: LineState
    ) -> None:
        """Parse {{!text}}. Produces no output."""
        state.flush(body)
        body.append(Comment(token.lineno, token.col_offset, content[1:].strip()))

    def _parse_pragma(
        self, token: Token, content: str, body: list[Node], state: LineState
    ) -> None:
        """Parse {{%text}}. Pragmas are unsupported and only warn."""
        text = content[1:].strip()
        location = f"{self._filename or self._name or '<template>'}:{token.lineno}"
        warnings.warn(
            f"Pragmas are unsupported, ignoring '{text}' at {location}",
            UnsupportedPragmaWarning,
            stacklevel=2,
        )
        state.flush(body)
        body.append(Pragma(token.lineno, token.col_offset, text))

    def _append_leaf(self, node: Node, body: list[Node], state: LineState) -> None:
        state.flush(body)
        body.append(node)
        state.blank = False
