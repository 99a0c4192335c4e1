"""Base node class for the Stache node tree."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all template nodes.

    Nodes record where their tag (or text run) starts in the source and
    are immutable, so a parsed tree can be shared between threads.

    """

    lineno: int
    col_offset: int
