"""Section nesting stack shared by the Stache parser mixins."""

from __future__ import annotations

from typing import TYPE_CHECKING

from stache.environment.exceptions import MismatchedTagError, UnclosedSectionError

if TYPE_CHECKING:
    from stache._types import Token


class BlockStackMixin:
    """Track open sections so closing tags can be checked LIFO.

    The stack holds ``(name, lineno)`` for every section or inversion
    currently open, innermost last.

    Required Host Attributes:
        - _block_stack: list[tuple[str, int]]
        - _name, _filename, _source: error context
    """

    if TYPE_CHECKING:
        _block_stack: list[tuple[str, int]]
        _name: str | None
        _filename: str | None
        _source: str | None

    def _push_block(self, name: str, token: Token) -> None:
        self._block_stack.append((name, token.lineno))

    def _pop_block(self, found: str, token: Token) -> tuple[str, int]:
        """Pop the innermost open section, verifying it is ``found``.

        Raises:
            MismatchedTagError: If nothing is open, or the innermost open
                section has a different name. Carries both names and the
                line of the closing tag.
        """
        if not self._block_stack:
            raise MismatchedTagError(
                None,
                found,
                token.lineno,
                name=self._name,
                filename=self._filename,
                source=self._source,
            )
        expected, start_lineno = self._block_stack.pop()
        if expected != found:
            raise MismatchedTagError(
                expected,
                found,
                token.lineno,
                name=self._name,
                filename=self._filename,
                source=self._source,
            )
        return expected, start_lineno

    def _check_unclosed(self) -> None:
        """Raise for the innermost section still open at end of input."""
        if self._block_stack:
            section, start_lineno = self._block_stack[-1]
            raise UnclosedSectionError(
                section,
                start_lineno,
                name=self._name,
                filename=self._filename,
                source=self._source,
            )
