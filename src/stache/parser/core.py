"""Stache Parser — builds the node tree from scanner tokens.

The parser walks the token list once. Tag bodies are dispatched on their
first non-whitespace character through a dict built at construction:

    ```
    #name   → Section      (push, parse body, pop at matching close)
    ^name   → Inversion    (same nesting discipline)
    /name   → close the innermost open section
    >name   → Partial
    {name}  → Variable(escape=False)
    &name   → Variable(escape=False)
    !text   → Comment
    %text   → Pragma (warns, no output)
    other   → Variable(escape=True)
    ```

Whitespace Elision:
A line that holds nothing but section control tags (open, inverted open,
close, comment, pragma) and blanks should not leave an empty line behind
when a section spans several lines. The parser tracks each physical line
in a LineState and applies these rules:

1. The newline ending the first line of a section body is dropped when the
   rest of that line (after the open tag) is blank.
2. Indentation before a multi-line section's open tag is dropped when the
   line is blank up to the tag.
3. Indentation before a close tag is dropped when the line is blank up to
   the tag and the section spans lines.
4. After a multi-line section the newline ending the close tag's line is
   dropped when that line is blank apart from the close tag.

Variables and partials always make a line non-blank. All other literal
text is kept byte-for-byte.

Thread-Safety:
A Parser owns mutable state (position, nesting stack); use one instance
per parse. Environment serializes compiles with its own lock.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from stache._types import Token, TokenType
from stache.environment.exceptions import ErrorCode, TemplateSyntaxError
from stache.nodes import Node, Template
from stache.parser.blocks.sections import SectionParsingMixin
from stache.parser.blocks.tags import LeafTagParsingMixin
from stache.parser.state import LineState, SectionEnd

TagHandler = Callable[[Token, str, list[Node], LineState], None]


class Parser(SectionParsingMixin, LeafTagParsingMixin):
    """Recursive parser for Stache templates.

    Example:
            >>> from stache.lexer import tokenize
            >>> tree = Parser(tokenize("{{#items}}{{.}}{{/items}}")).parse()
            >>> type(tree.body[0]).__name__
            'Section'

    """

    __slots__ = (
        "_block_stack",
        "_filename",
        "_name",
        "_pos",
        "_source",
        "_tag_dispatch",
        "_tokens",
    )

    def __init__(
        self,
        tokens: Sequence[Token],
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
    ):
        self._tokens = tokens
        self._pos = 0
        self._name = name
        self._filename = filename
        self._source = source
        self._block_stack: list[tuple[str, int]] = []
        self._tag_dispatch: dict[str, TagHandler] = {
            "#": self._parse_section,
            "^": self._parse_inversion,
            ">": self._parse_partial,
            "{": self._parse_triple,
            "&": self._parse_ampersand,
            "!": self._parse_comment,
            "%": self._parse_pragma,
        }

    def parse(self) -> Template:
        """Parse the whole token stream into a Template node.

        Raises:
            TemplateSyntaxError: On mismatched, unclosed or empty tags.
        """
        self._pos = 0
        self._block_stack = []
        body, _ = self._parse_body(LineState())
        return Template(lineno=1, col_offset=0, body=tuple(body), name=self._name)

    @property
    def _current(self) -> Token:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return self._tokens[-1]

    def _advance(self) -> Token:
        token = self._current
        if self._pos < len(self._tokens):
            self._pos += 1
        return token

    def _error(
        self, message: str, token: Token, code: ErrorCode | None = None
    ) -> TemplateSyntaxError:
        error = TemplateSyntaxError(
            message,
            token.lineno,
            name=self._name,
            filename=self._filename,
            source=self._source,
        )
        if code is not None:
            error.code = code
        return error

    def _parse_body(self, state: LineState) -> tuple[list[Node], SectionEnd | None]:
        """Parse nodes until a closing tag (nested) or EOF (top level)."""
        body: list[Node] = []
        while True:
            token = self._advance()
            if token.type is TokenType.DATA:
                state.add_text(token)
            elif token.type is TokenType.NEWLINE:
                self._end_line(token, body, state)
            elif token.type is TokenType.TAG:
                content = token.value.strip()
                if not content:
                    raise self._error("Empty tag", token, ErrorCode.EMPTY_TAG)
                marker = content[0]
                if marker == "/":
                    return body, self._close_section(token, content, body, state)
                handler = self._tag_dispatch.get(marker, self._parse_variable)
                handler(token, content, body, state)
            else:
                state.flush(body)
                self._check_unclosed()
                return body, None

    def _end_line(self, token: Token, body: list[Node], state: LineState) -> None:
        if state.elide_newline and state.blank:
            state.discard()
        else:
            state.add_text(token)
            state.flush(body)
        state.elide_newline = False
        state.blank = True

    def _tag_name(self, token: Token, content: str) -> str:
        """Name following a one-character marker, e.g. ``items`` in ``# items``."""
        name = content[1:].strip()
        if not name:
            raise self._error(f"Missing name in '{content}' tag", token, ErrorCode.EMPTY_TAG)
        return name
