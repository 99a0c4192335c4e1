"""Section nodes for the Stache node tree."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from stache.nodes.base import Node


@dataclass(frozen=True, slots=True)
class Section(Node):
    """Section: {{#name}}...{{/name}}

    Renders ``body`` once per element of an iterable value, once for any
    other truthy value, and not at all for absent/empty values.
    """

    name: str
    body: Sequence[Node]
    end_lineno: int

    @property
    def spans_lines(self) -> bool:
        """True when the closing tag is on a later line than the opening tag."""
        return self.end_lineno > self.lineno


@dataclass(frozen=True, slots=True)
class Inversion(Node):
    """Inverted section: {{^name}}...{{/name}}

    Renders ``body`` exactly once when the value is absent or empty.
    """

    name: str
    body: Sequence[Node]
    end_lineno: int

    @property
    def spans_lines(self) -> bool:
        return self.end_lineno > self.lineno
