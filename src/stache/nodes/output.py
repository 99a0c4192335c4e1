"""Leaf nodes: literal text, variables, partials, comments, pragmas."""

from __future__ import annotations

from dataclasses import dataclass

from stache.nodes.base import Node


@dataclass(frozen=True, slots=True)
class Text(Node):
    """Literal text between tags (may contain newlines)."""

    value: str


@dataclass(frozen=True, slots=True)
class Variable(Node):
    """Variable reference: {{name}}, or unescaped {{{name}}} / {{&name}}"""

    name: str
    escape: bool = True


@dataclass(frozen=True, slots=True)
class Partial(Node):
    """Partial invocation: {{>name}}"""

    name: str


@dataclass(frozen=True, slots=True)
class Comment(Node):
    """Comment: {{! text }}"""

    text: str


@dataclass(frozen=True, slots=True)
class Pragma(Node):
    """Pragma: {{%NAME}} (unsupported, kept for tooling)"""

    text: str
