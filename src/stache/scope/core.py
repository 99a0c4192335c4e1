"""Scope chain: dotted-path resolution over a stack of context frames.

A ``Scope`` is one frame: optional local bindings, an optional host value,
and an optional parent. Sections push a child frame per element; lookups
that fail in a frame continue in its parent, so names from enclosing
sections stay visible inside nested ones.

Resolution of ``a.b.c``:
1. Look up ``a`` in this frame (locals, then host value).
2. Not found and a parent exists: resolve the whole remaining path in the
   parent, keeping the original frame as requester.
3. ``ABSENT`` or ``EMPTY``: stop, ``b`` and ``c`` are never looked at.
4. Otherwise wrap the value in a transient parentless frame and look up
   ``b`` there, and so on.

Host kinds:
    - NONE: no host value, only locals
    - MAPPING: key lookup; a key mapped to None is not found here
    - ELEMENT: ``xml.etree.ElementTree.Element`` children and attributes
    - DEFERRED: ``concurrent.futures.Future``, resolved by blocking
    - OBJECT: ``Lookup`` protocol or members via ``AccessorCache``

Example:
        >>> root = Scope({"user": {"name": "Ada"}, "site": "docs"})
        >>> root.get("user.name")
        'Ada'
        >>> root.child({"name": "Bob"}).get("site")
        'docs'

Thread-Safety:
Frames are never mutated after construction. Resolution only reads, so a
frame may be shared by concurrent renders.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from concurrent.futures import CancelledError, Future
from enum import Enum
from types import MappingProxyType
from typing import Any
from xml.etree.ElementTree import Element

from stache.environment.exceptions import ErrorCode, TemplateRuntimeError
from stache.scope.accessors import DEFAULT_ACCESSOR_CACHE, AccessorCache
from stache.scope.markers import ABSENT, EMPTY

_NO_LOCALS: Mapping[str, Any] = MappingProxyType({})


class HostKind(Enum):
    NONE = "none"
    MAPPING = "mapping"
    ELEMENT = "element"
    DEFERRED = "deferred"
    OBJECT = "object"


def host_kind(value: Any) -> HostKind:
    if value is None:
        return HostKind.NONE
    if isinstance(value, Future):
        return HostKind.DEFERRED
    if isinstance(value, Mapping):
        return HostKind.MAPPING
    if isinstance(value, Element):
        return HostKind.ELEMENT
    return HostKind.OBJECT


def resolve_deferred(value: Any) -> Any:
    """Block until a ``Future`` completes and return its result.

    Non-futures are returned unchanged. There is no timeout.

    Raises:
        TemplateRuntimeError: If the future failed or was cancelled.
    """
    if not isinstance(value, Future):
        return value
    try:
        return value.result()
    except CancelledError as exc:
        raise TemplateRuntimeError(
            "Deferred value was cancelled before it resolved",
            code=ErrorCode.DEFERRED_FAILED,
        ) from exc
    except Exception as exc:
        raise TemplateRuntimeError(
            f"Deferred value failed: {type(exc).__name__}: {exc}",
            code=ErrorCode.DEFERRED_FAILED,
        ) from exc


class Scope:
    """One frame of the scope chain.

    Attributes:
        host: Host value (may be None)
        parent: Enclosing frame, or None at the root
        locals: Read-only local bindings, consulted before the host value
    """

    __slots__ = ("_accessors", "_host", "_kind", "_locals", "_parent")

    def __init__(
        self,
        host: Any = None,
        parent: Scope | None = None,
        locals: Mapping[str, Any] | None = None,
        *,
        accessors: AccessorCache | None = None,
    ):
        self._host = host
        self._kind = host_kind(host)
        self._parent = parent
        self._locals = MappingProxyType(dict(locals)) if locals else _NO_LOCALS
        if accessors is None:
            accessors = parent._accessors if parent is not None else DEFAULT_ACCESSOR_CACHE
        self._accessors = accessors

    @property
    def host(self) -> Any:
        return self._host

    @property
    def kind(self) -> HostKind:
        return self._kind

    @property
    def parent(self) -> Scope | None:
        return self._parent

    @property
    def locals(self) -> Mapping[str, Any]:
        return self._locals

    @property
    def accessors(self) -> AccessorCache:
        return self._accessors

    def child(self, host: Any = None, locals: Mapping[str, Any] | None = None) -> Scope:
        """New frame wrapping ``host`` whose parent is this frame."""
        return Scope(host, self, locals, accessors=self._accessors)

    def chain(self) -> Iterator[Scope]:
        """Yield this frame and each ancestor up to the root."""
        scope: Scope | None = self
        while scope is not None:
            yield scope
            scope = scope._parent

    @property
    def depth(self) -> int:
        return sum(1 for _ in self.chain()) - 1

    def get(self, path: str, requester: Scope | None = None) -> Any:
        """Resolve ``path``.

        Returns the value, ``ABSENT``/``EMPTY`` when found without a value,
        or ``None`` when no frame in the chain knows the name.
        """
        if requester is None:
            requester = self
        if path == ".":
            return resolve_deferred(self._host)
        return self._get_components(path.split("."), requester)

    def resolve(self, path: str) -> Any:
        """Like ``get()`` but reports an unknown name as ``ABSENT``."""
        value = self.get(path)
        return ABSENT if value is None else value

    def _get_components(self, components: list[str], requester: Scope) -> Any:
        scope = self
        context = requester
        value: Any = None
        for index, component in enumerate(components):
            value = scope._lookup(component, context)
            if value is None:
                if scope._parent is not None:
                    return scope._parent._get_components(components[index:], requester)
                return None
            if value is ABSENT or value is EMPTY:
                return value
            if index + 1 < len(components):
                context = scope
                scope = Scope(value, accessors=self._accessors)
        return value

    def _lookup(self, name: str, requester: Scope) -> Any:
        value = self._locals.get(name)
        if value is not None:
            return value

        kind = self._kind
        host = self._host
        if kind is HostKind.DEFERRED:
            host = resolve_deferred(host)
            kind = host_kind(host)

        if kind is HostKind.NONE:
            return None
        if kind is HostKind.MAPPING:
            return _lookup_mapping(host, name)
        if kind is HostKind.ELEMENT:
            return _lookup_element(host, name)
        accessor = self._accessors.get(type(host), name)
        if accessor is None:
            return None
        return accessor.read(host, requester)

    def __repr__(self) -> str:
        return f"Scope({self._kind.value}, depth={self.depth}, locals={list(self._locals)})"


def _lookup_mapping(mapping: Mapping[Any, Any], name: str) -> Any:
    try:
        return mapping.get(name)
    except TypeError:
        # Mapping with keys that cannot compare to str
        return None


def _lookup_element(element: Element, name: str) -> Any:
    matches = [child for child in element if child.tag == name]
    if not matches:
        return element.attrib.get(name)
    if len(matches) == 1:
        return _unwrap_element(matches[0])
    return [_unwrap_element(child) for child in matches]


def _unwrap_element(element: Element) -> Any:
    if len(element):
        return element
    text = element.text
    if text is None or not text.strip():
        return element if element.attrib else ABSENT
    if text == "true":
        return True
    if text == "false":
        return False
    return text
