"""Immutable node tree produced by the Stache parser.

Node kinds:
- Text: literal text
- Variable: ``{{name}}`` (escaped) or ``{{{name}}}`` / ``{{&name}}``
- Section: ``{{#name}}...{{/name}}``
- Inversion: ``{{^name}}...{{/name}}``
- Partial: ``{{>name}}``
- Comment: ``{{!...}}``
- Pragma: ``{{%...}}``

All nodes are frozen, slotted dataclasses carrying ``lineno`` and
``col_offset``.
"""

from __future__ import annotations

from stache.nodes.base import Node
from stache.nodes.control_flow import Inversion, Section
from stache.nodes.output import Comment, Partial, Pragma, Text, Variable
from stache.nodes.structure import Template

__all__ = [
    "Comment",
    "Inversion",
    "Node",
    "Partial",
    "Pragma",
    "Section",
    "Template",
    "Text",
    "Variable",
]
