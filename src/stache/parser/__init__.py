"""Stache parser: scanner tokens → immutable node tree."""

from __future__ import annotations

from stache.parser.core import Parser

__all__ = ["Parser"]
