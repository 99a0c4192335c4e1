"""Render program instructions and their canonical lowered form.

A program is a flat tuple of instructions. Sections are bracketed by a
begin instruction and an ``End``; the begin instruction stores the index
of its ``End`` so the interpreter can skip or slice the body directly:

    ```
    0 EmitLiteral('Hello ')
    1 EmitVariable('name', escape=True)
    2 BeginIterable('items', end=5)
    3   EmitVariable('.', escape=True)
    4   EmitLiteral('\\n')
    5 End('items')
    ```

Each instruction lowers to a JSON-compatible list ``[opcode, *fields]``.
The encoded lowered form is what the program cache hashes, and what the
program store writes to disk.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import astuple, dataclass
from typing import Any, ClassVar


@dataclass(frozen=True, slots=True)
class Instruction:
    """Base class for render instructions."""

    opcode: ClassVar[str] = ""

    def lower(self) -> list[Any]:
        return [self.opcode, *astuple(self)]


@dataclass(frozen=True, slots=True)
class EmitLiteral(Instruction):
    """Write literal template text."""

    opcode: ClassVar[str] = "literal"

    text: str


@dataclass(frozen=True, slots=True)
class EmitVariable(Instruction):
    """Resolve ``path`` and write its text, HTML-escaped when ``escape``."""

    opcode: ClassVar[str] = "variable"

    path: str
    escape: bool
    lineno: int


@dataclass(frozen=True, slots=True)
class BeginIterable(Instruction):
    """Run the body once per element of the value at ``path``."""

    opcode: ClassVar[str] = "iterable"

    path: str
    end: int
    lineno: int


@dataclass(frozen=True, slots=True)
class BeginInverted(Instruction):
    """Run the body once if the value at ``path`` is absent or empty."""

    opcode: ClassVar[str] = "inverted"

    path: str
    end: int
    lineno: int


@dataclass(frozen=True, slots=True)
class End(Instruction):
    """Close the section opened by the matching begin instruction."""

    opcode: ClassVar[str] = "end"

    name: str


@dataclass(frozen=True, slots=True)
class InvokePartial(Instruction):
    """Render the template ``name`` in place with the current scope."""

    opcode: ClassVar[str] = "partial"

    name: str
    lineno: int


OPCODES: dict[str, type[Instruction]] = {
    cls.opcode: cls
    for cls in (EmitLiteral, EmitVariable, BeginIterable, BeginInverted, End, InvokePartial)
}


def encode_lowered(instructions: Sequence[Instruction]) -> bytes:
    """Canonical byte encoding of a lowered instruction sequence.

    Order- and byte-sensitive: equal sequences always encode identically.
    """
    lowered = [instruction.lower() for instruction in instructions]
    return json.dumps(lowered, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def from_lowered(lowered: Sequence[Sequence[Any]]) -> tuple[Instruction, ...]:
    """Rebuild instructions from their lowered lists.

    Raises:
        ValueError: On an unknown opcode or wrong field count.
    """
    instructions: list[Instruction] = []
    for item in lowered:
        if not item or item[0] not in OPCODES:
            raise ValueError(f"Unknown instruction: {item!r}")
        try:
            instructions.append(OPCODES[item[0]](*item[1:]))
        except TypeError as exc:
            raise ValueError(f"Malformed instruction {item!r}: {exc}") from None
    return tuple(instructions)
