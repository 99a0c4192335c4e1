"""Scope chain for resolving template variables against render data."""

from __future__ import annotations

from stache.scope.accessors import (
    DEFAULT_ACCESSOR_CACHE,
    Accessor,
    AccessorCache,
    AccessorKind,
    Lookup,
    find_accessor,
)
from stache.scope.core import HostKind, Scope, host_kind, resolve_deferred
from stache.scope.markers import ABSENT, EMPTY, is_missing

__all__ = [
    "ABSENT",
    "DEFAULT_ACCESSOR_CACHE",
    "EMPTY",
    "Accessor",
    "AccessorCache",
    "AccessorKind",
    "HostKind",
    "Lookup",
    "Scope",
    "find_accessor",
    "host_kind",
    "is_missing",
    "resolve_deferred",
]
