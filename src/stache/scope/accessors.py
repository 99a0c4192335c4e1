"""Member accessors for plain host objects, cached per (type, name).

Finding how to read ``name`` from an instance of ``cls`` means walking the
MRO and inspecting signatures, which is too slow to repeat on every
variable. ``AccessorCache`` does it once per ``(cls, name)`` and remembers
the answer, including "no usable member".

Member preference (first match wins):
1. ``Lookup`` protocol: ``cls`` defines ``__stache_lookup__(name, scope)``
2. Field: property, slot, annotated or dataclass field, non-callable class
   attribute, or (when nothing on the class matches) a plain instance
   attribute
3. Method taking no arguments
4. Method taking one argument: the requesting ``Scope``

Names starting with ``__`` are never resolved. The MRO is walked in
order and the first class that defines ``name`` decides its kind, so a
subclass method overriding a base field is read as a method, following
Python's normal override order.

Thread-Safety:
Reads are plain dict lookups. A miss computes the accessor outside any
lock and publishes it with ``dict.setdefault``, so two threads racing on
the same key agree on one stored accessor.
"""

from __future__ import annotations

import collections.abc
import inspect
import types
import typing
import warnings
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from stache.environment.exceptions import ResolutionWarning, TemplateError
from stache.scope.markers import ABSENT, EMPTY

if TYPE_CHECKING:
    from stache.scope.core import Scope

_MISSING = object()


@runtime_checkable
class Lookup(Protocol):
    """Custom member lookup for host objects.

    Return ``None`` when ``name`` is not known, so resolution falls back
    to the parent scope.

    Example:
            >>> class Settings:
            ...     def __stache_lookup__(self, name, scope):
            ...         return os.environ.get(name.upper())
    """

    def __stache_lookup__(self, name: str, scope: Scope) -> Any: ...


class AccessorKind(Enum):
    FIELD = "field"
    METHOD = "method"
    LOOKUP = "lookup"


@dataclass(frozen=True, slots=True)
class Accessor:
    """How to read one member from instances of one type.

    Attributes:
        kind: Field read, method call, or ``__stache_lookup__`` call
        name: Member name
        takes_scope: Method expects the requesting scope as its argument
        iterable: Declared type is iterable, so a ``None`` value means EMPTY
    """

    kind: AccessorKind
    name: str
    takes_scope: bool = False
    iterable: bool = False

    def read(self, obj: Any, scope: Scope) -> Any:
        """Read the member from ``obj``.

        Returns ``None`` when ``obj`` does not have the member, ``ABSENT`` or
        ``EMPTY`` when it has one holding ``None``, else the value.
        """
        try:
            if self.kind is AccessorKind.LOOKUP:
                return obj.__stache_lookup__(self.name, scope)
            if self.kind is AccessorKind.FIELD:
                value = getattr(obj, self.name, _MISSING)
                if value is _MISSING:
                    return None
            elif self.takes_scope:
                value = getattr(obj, self.name)(scope)
            else:
                value = getattr(obj, self.name)()
        except TemplateError:
            raise
        except Exception as exc:
            warnings.warn(
                f"Reading {type(obj).__name__}.{self.name} failed: "
                f"{type(exc).__name__}: {exc}",
                ResolutionWarning,
                stacklevel=2,
            )
            return None

        if value is None:
            return EMPTY if self.iterable else ABSENT
        return value


class AccessorCache:
    """Cache of ``(type, name)`` → ``Accessor`` (or ``None`` for no member).

    Example:
            >>> cache = AccessorCache()
            >>> cache.get(Point, "x")
            Accessor(kind=<AccessorKind.FIELD: 'field'>, name='x', ...)
    """

    __slots__ = ("_accessors",)

    def __init__(self) -> None:
        self._accessors: dict[tuple[type, str], Accessor | None] = {}

    def get(self, cls: type, name: str) -> Accessor | None:
        key = (cls, name)
        try:
            return self._accessors[key]
        except KeyError:
            pass
        return self._accessors.setdefault(key, find_accessor(cls, name))

    def __contains__(self, key: object) -> bool:
        return key in self._accessors

    def __len__(self) -> int:
        return len(self._accessors)

    def clear(self) -> None:
        self._accessors = {}


DEFAULT_ACCESSOR_CACHE = AccessorCache()


def find_accessor(cls: type, name: str) -> Accessor | None:
    """Build the accessor for ``name`` on ``cls``, or None when unusable."""
    if not name or name.startswith("__"):
        return None
    if isinstance(getattr(cls, "__stache_lookup__", None), types.FunctionType):
        return Accessor(AccessorKind.LOOKUP, name)

    for klass in cls.__mro__:
        if klass is object:
            break
        namespace = vars(klass)
        if name in namespace:
            return _accessor_for_attribute(klass, name, namespace[name])
        annotations = inspect.get_annotations(klass)
        if name in annotations:
            return Accessor(
                AccessorKind.FIELD, name, iterable=_is_iterable_annotation(annotations[name])
            )

    # Plain instance attribute set in __init__
    return Accessor(AccessorKind.FIELD, name)


def _accessor_for_attribute(klass: type, name: str, attribute: Any) -> Accessor | None:
    if isinstance(attribute, property):
        returns = getattr(attribute.fget, "__annotations__", {}).get("return")
        return Accessor(AccessorKind.FIELD, name, iterable=_is_iterable_annotation(returns))
    bound = 0 if isinstance(attribute, staticmethod) else 1
    if isinstance(attribute, (staticmethod, classmethod)):
        attribute = attribute.__func__
    if isinstance(attribute, type) or not callable(attribute):
        declared = inspect.get_annotations(klass).get(name)
        return Accessor(AccessorKind.FIELD, name, iterable=_is_iterable_annotation(declared))
    if not inspect.isroutine(attribute):
        # Callable instance stored on the class, read it as a value
        return Accessor(AccessorKind.FIELD, name)

    try:
        signature = inspect.signature(attribute)
    except (TypeError, ValueError):
        return Accessor(AccessorKind.FIELD, name)

    required = [
        param
        for param in signature.parameters.values()
        if param.default is param.empty
        and param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD)
    ]
    arity = len(required) - bound
    if arity not in (0, 1):
        return None
    returns = getattr(attribute, "__annotations__", {}).get("return")
    return Accessor(
        AccessorKind.METHOD,
        name,
        takes_scope=arity == 1,
        iterable=_is_iterable_annotation(returns),
    )


_ITERABLE_NAMES = frozenset(
    {
        "list",
        "tuple",
        "set",
        "frozenset",
        "deque",
        "List",
        "Tuple",
        "Set",
        "FrozenSet",
        "Deque",
        "Sequence",
        "MutableSequence",
        "AbstractSet",
        "MutableSet",
        "Collection",
        "Iterable",
        "Iterator",
        "Generator",
    }
)


def _is_iterable_annotation(annotation: Any) -> bool:
    """True when ``annotation`` names an iterable type other than str, bytes or a mapping."""
    if annotation is None:
        return False
    if isinstance(annotation, str):
        # Postponed annotation: match on the outermost type names
        for part in annotation.split("|"):
            base = part.split("[", 1)[0].strip().rsplit(".", 1)[-1]
            if base in ("Optional", "Union"):
                inner = part.split("[", 1)[1] if "[" in part else ""
                if any(_is_iterable_annotation(arg) for arg in inner.rstrip("] ").split(",")):
                    return True
            elif base in _ITERABLE_NAMES:
                return True
        return False

    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        return any(_is_iterable_annotation(arg) for arg in typing.get_args(annotation))
    target = origin or annotation
    if not isinstance(target, type):
        return False
    return issubclass(target, collections.abc.Iterable) and not issubclass(
        target, (str, bytes, bytearray, collections.abc.Mapping)
    )
