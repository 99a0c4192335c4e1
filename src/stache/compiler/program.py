"""Compiled render program: an immutable instruction tuple plus its content hash."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from hashlib import sha256

from stache.compiler.instructions import (
    BeginInverted,
    BeginIterable,
    End,
    Instruction,
    encode_lowered,
)


def content_hash(instructions: Sequence[Instruction]) -> str:
    """sha256 hex digest of the canonical lowered form."""
    return sha256(encode_lowered(instructions)).hexdigest()


class Program:
    """Immutable, shareable render program.

    Identity is a pure function of content: programs built from equal
    instruction sequences have equal ``content_hash`` values, and the
    ProgramCache hands out one instance per hash. A Program holds no
    per-render state and may be executed by many threads at once.

    Attributes:
        instructions: The instruction tuple
        content_hash: sha256 hex digest of the lowered form
    """

    __slots__ = ("content_hash", "instructions")

    instructions: tuple[Instruction, ...]
    content_hash: str

    def __init__(self, instructions: Sequence[Instruction], digest: str | None = None):
        object.__setattr__(self, "instructions", tuple(instructions))
        object.__setattr__(self, "content_hash", digest or content_hash(self.instructions))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"Program is immutable, cannot set {name!r}")

    def __len__(self) -> int:
        return len(self.instructions)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.instructions)

    def __repr__(self) -> str:
        return f"<Program {self.content_hash[:12]} ({len(self)} instructions)>"

    @property
    def class_name(self) -> str:
        """Stable name derived from the hash, used for dumps and stored artifacts."""
        return f"Program{self.content_hash}"

    def lowered(self) -> list[list[object]]:
        return [instruction.lower() for instruction in self.instructions]

    def encode(self) -> bytes:
        return encode_lowered(self.instructions)

    def dump(self) -> str:
        """Human-readable listing, indented by section depth.

        Example:
            ```
            # Program3f9a...
            0000 literal 'Hello '
            0001 variable 'name' True 1
            0002 iterable 'items' 5 2
            0003   variable '.' True 2
            0004   literal '\\n'
            0005 end 'items'
            ```
        """
        lines = [f"# {self.class_name}"]
        depth = 0
        for index, instruction in enumerate(self.instructions):
            if isinstance(instruction, End):
                depth -= 1
            lowered = instruction.lower()
            opcode, args = lowered[0], lowered[1:]
            text = " ".join(repr(arg) for arg in args)
            lines.append(f"{index:04d} {'  ' * depth}{opcode} {text}".rstrip())
            if isinstance(instruction, (BeginIterable, BeginInverted)):
                depth += 1
        return "\n".join(lines) + "\n"
