"""Root node of a parsed template."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from stache.nodes.base import Node


@dataclass(frozen=True, slots=True)
class Template(Node):
    """Parsed template: the ordered top-level nodes."""

    body: Sequence[Node]
    name: str | None = None
