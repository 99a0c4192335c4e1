"""Resolution markers distinct from ``None``.

During resolution ``None`` means "not found in this frame yet", which lets
the lookup fall through to the parent scope. The markers below mean "found,
but there is nothing there" and stop resolution immediately:

- ``ABSENT``: an object member or XML child exists and holds no value
- ``EMPTY``: an iterable-typed member holds no value

Both render as empty text, are falsy, and iterate as empty.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, Final


class _Marker:
    __slots__ = ("_name",)

    def __init__(self, name: str):
        self._name = name

    def __bool__(self) -> bool:
        return False

    def __iter__(self) -> Iterator[Any]:
        return iter(())

    def __len__(self) -> int:
        return 0

    def __str__(self) -> str:
        return ""

    def __repr__(self) -> str:
        return self._name

    def __reduce__(self) -> str:
        # Unpickle to the module-level singleton
        return self._name


ABSENT: Final = _Marker("ABSENT")
EMPTY: Final = _Marker("EMPTY")


def is_missing(value: object) -> bool:
    """True for ``None`` and both markers."""
    return value is None or value is ABSENT or value is EMPTY
