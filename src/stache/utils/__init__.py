"""Stache utilities."""

from __future__ import annotations

from stache.utils.html import html_escape
from stache.utils.lru_cache import LRUCache

__all__ = ["LRUCache", "html_escape"]
