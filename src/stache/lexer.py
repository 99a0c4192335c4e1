"""Tag scanner for Stache templates.

Splits template source into literal runs, newlines, and tag bodies:

    >>> from stache.lexer import tokenize
    >>> [t.type.name for t in tokenize("Hi {{name}}!\\n")]
    ['DATA', 'TAG', 'DATA', 'NEWLINE', 'EOF']

Markers are configurable (default ``{{`` / ``}}``). A partial match of the
open marker (a lone ``{``) is literal text, and a partial match of the close
marker inside a tag is part of the tag body. Every ``\\n`` outside a tag is
emitted as its own NEWLINE token so the parser can count lines and apply
whitespace elision.

Triple-mustache tags (``{{{name}}}``) are recognised here: when the body
starts with ``{`` and the close marker ends with ``}``, the character after
the close marker must be the matching ``}``, which is consumed.

Thread-Safety:
A Lexer instance holds scanning state; create one per template. The
module-level ``tokenize()`` does exactly that.
"""

from __future__ import annotations

from typing import TextIO

from stache._types import Token, TokenType
from stache.environment.exceptions import (
    ErrorCode,
    TemplateIOError,
    TemplateSyntaxError,
    UnclosedTagError,
)

DEFAULT_OPEN_MARKER = "{{"
DEFAULT_CLOSE_MARKER = "}}"


def validate_markers(open_marker: str, close_marker: str) -> None:
    """Reject marker pairs the scanner cannot tell apart."""
    if not open_marker or not close_marker:
        raise ValueError("Tag markers must be non-empty strings")
    if open_marker == close_marker:
        raise ValueError(f"Open and close markers must differ, got {open_marker!r} for both")
    if any(ch.isspace() for ch in open_marker + close_marker):
        raise ValueError("Tag markers must not contain whitespace")


def read_source(source: str | TextIO, name: str | None = None) -> str:
    """Return template text, reading it from a stream if necessary.

    Raises:
        TemplateIOError: If the stream cannot be read or decoded.
    """
    if isinstance(source, str):
        return source
    try:
        return source.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise TemplateIOError(f"Failed to read template source: {exc}", name=name) from exc


class Lexer:
    """Scan template source into tokens.

    Attributes:
        source: Full template text
        open_marker: Tag opening delimiter
        close_marker: Tag closing delimiter

    Example:
            >>> lexer = Lexer("<% name %>", open_marker="<%", close_marker="%>")
            >>> lexer.tokenize()[0]
            Token(TAG, ' name ', 1:0)
    """

    __slots__ = (
        "_filename",
        "_line_start",
        "_lineno",
        "_name",
        "_tokens",
        "close_marker",
        "open_marker",
        "source",
    )

    def __init__(
        self,
        source: str | TextIO,
        open_marker: str = DEFAULT_OPEN_MARKER,
        close_marker: str = DEFAULT_CLOSE_MARKER,
        *,
        name: str | None = None,
        filename: str | None = None,
    ):
        validate_markers(open_marker, close_marker)
        self.source = read_source(source, name)
        self.open_marker = open_marker
        self.close_marker = close_marker
        self._name = name
        self._filename = filename
        self._tokens: list[Token] = []
        self._lineno = 1
        self._line_start = 0

    def tokenize(self) -> list[Token]:
        """Scan the whole source. The last token is always EOF."""
        source = self.source
        end = len(source)
        self._tokens = []
        self._lineno = 1
        self._line_start = 0
        pos = 0

        while pos < end:
            tag_start = source.find(self.open_marker, pos)
            if tag_start == -1:
                self._emit_text(pos, end)
                break
            self._emit_text(pos, tag_start)
            pos = self._scan_tag(tag_start)

        self._tokens.append(
            Token(TokenType.EOF, "", self._lineno, end - self._line_start)
        )
        return self._tokens

    def _emit_text(self, start: int, stop: int) -> None:
        """Emit DATA/NEWLINE tokens for source[start:stop]."""
        source = self.source
        pos = start
        while pos < stop:
            newline = source.find("\n", pos, stop)
            if newline == -1:
                self._tokens.append(
                    Token(TokenType.DATA, source[pos:stop], self._lineno, pos - self._line_start)
                )
                return
            if newline > pos:
                self._tokens.append(
                    Token(TokenType.DATA, source[pos:newline], self._lineno, pos - self._line_start)
                )
            self._tokens.append(
                Token(TokenType.NEWLINE, "\n", self._lineno, newline - self._line_start)
            )
            self._lineno += 1
            self._line_start = newline + 1
            pos = newline + 1

    def _scan_tag(self, tag_start: int) -> int:
        """Emit a TAG token for the tag at ``tag_start``; return the resume position."""
        source = self.source
        lineno = self._lineno
        col_offset = tag_start - self._line_start
        body_start = tag_start + len(self.open_marker)

        close = source.find(self.close_marker, body_start)
        if close == -1:
            raise UnclosedTagError(
                f"Unclosed tag: '{self.open_marker}' without matching '{self.close_marker}'",
                lineno,
                name=self._name,
                filename=self._filename,
                source=source,
            )

        body = source[body_start:close]
        resume = close + len(self.close_marker)

        if body.strip().startswith("{") and self.close_marker.endswith("}"):
            if source[resume : resume + 1] != "}":
                error = TemplateSyntaxError(
                    f"Unescaped tag not terminated properly: {body.strip()!r}",
                    lineno,
                    name=self._name,
                    filename=self._filename,
                    source=source,
                )
                error.code = ErrorCode.UNTERMINATED_UNESCAPED
                raise error
            resume += 1

        # Newlines inside a tag body still advance the line counter
        newlines = body.count("\n")
        if newlines:
            self._lineno += newlines
            self._line_start = body_start + body.rindex("\n") + 1

        self._tokens.append(Token(TokenType.TAG, body, lineno, col_offset))
        return resume


def tokenize(
    source: str | TextIO,
    open_marker: str = DEFAULT_OPEN_MARKER,
    close_marker: str = DEFAULT_CLOSE_MARKER,
    *,
    name: str | None = None,
    filename: str | None = None,
) -> list[Token]:
    """Tokenize template source with a fresh Lexer."""
    return Lexer(source, open_marker, close_marker, name=name, filename=filename).tokenize()
