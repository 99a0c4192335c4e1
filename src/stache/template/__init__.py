"""Stache template package: the Template facade and its render session."""

from stache.template.core import Template, root_scope
from stache.template.session import RenderSession, is_empty_value, section_items, to_text

__all__ = [
    "RenderSession",
    "Template",
    "is_empty_value",
    "root_scope",
    "section_items",
    "to_text",
]
