"""Section and inversion parsing for the Stache parser.

Provides the mixin that handles ``{{#name}}``, ``{{^name}}`` and their
``{{/name}}`` closing tags, including the whitespace elision rules that
apply around multi-line sections.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from stache.nodes import Inversion, Section
from stache.parser.blocks.core import BlockStackMixin
from stache.parser.state import LineState, SectionEnd

if TYPE_CHECKING:
    from stache._types import Token
    from stache.nodes import Node


class SectionParsingMixin(BlockStackMixin):
    """Mixin for parsing sections and inversions.

    Required Host Attributes:
        - All from BlockStackMixin
        - _parse_body: method
        - _tag_name: method
    """

    if TYPE_CHECKING:

        def _parse_body(self, state: LineState) -> tuple[list[Node], SectionEnd | None]: ...
        def _tag_name(self, token: Token, content: str) -> str: ...

    def _parse_section(
        self, token: Token, content: str, body: list[Node], state: LineState
    ) -> None:
        """Parse {{#name}}...{{/name}}."""
        self._parse_block(Section, token, content, body, state)

    def _parse_inversion(
        self, token: Token, content: str, body: list[Node], state: LineState
    ) -> None:
        """Parse {{^name}}...{{/name}}."""
        self._parse_block(Inversion, token, content, body, state)

    def _parse_block(
        self,
        node_type: type[Section] | type[Inversion],
        token: Token,
        content: str,
        body: list[Node],
        state: LineState,
    ) -> None:
        name = self._tag_name(token, content)
        self._push_block(name, token)
        children, end = self._parse_body(LineState(elide_newline=True))
        # _parse_body only returns without an end when the input ran out,
        # and _check_unclosed has raised by then
        assert end is not None

        spans_lines = end.lineno > token.lineno
        if spans_lines and state.blank:
            state.discard()
        else:
            state.flush(body)

        body.append(
            node_type(
                lineno=token.lineno,
                col_offset=token.col_offset,
                name=name,
                body=tuple(children),
                end_lineno=end.lineno,
            )
        )

        if spans_lines:
            # The rest of this physical line follows the close tag
            state.elide_newline = True
            state.blank = end.blank
        else:
            state.elide_newline = False
            if children:
                state.blank = False

    def _close_section(
        self, token: Token, content: str, body: list[Node], state: LineState
    ) -> SectionEnd:
        """Handle {{/name}}: verify nesting and finish the body's last line."""
        name = self._tag_name(token, content)
        _, start_lineno = self._pop_block(name, token)
        if state.blank and token.lineno > start_lineno:
            state.discard()
        else:
            state.flush(body)
        return SectionEnd(lineno=token.lineno, blank=state.blank)
