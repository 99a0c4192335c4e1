"""Content-addressed program cache.

``ProgramCache.compile(instructions)`` hashes the canonical lowered form
and returns the Program already registered under that hash, building one
only on a miss. Equal lowered forms therefore always yield the identical
Program instance, and each hash is built at most once per cache.

Thread-Safety:
Hits are a plain dict read with no locking. Misses take a lock and
re-check before building, so concurrent misses on one hash still build a
single Program. Hit/miss counters are informational only.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from hashlib import sha256
from threading import Lock
from typing import TYPE_CHECKING

from stache.compiler.instructions import Instruction, encode_lowered
from stache.compiler.program import Program
from stache.environment.exceptions import CompileError

if TYPE_CHECKING:
    from stache.program_store import ProgramStore

logger = logging.getLogger(__name__)


class ProgramCache:
    """Map content hash → Program.

    Attributes:
        store: Optional ProgramStore consulted on a miss before building,
            and written after building.

    Example:
            >>> from stache.compiler import EmitLiteral
            >>> cache = ProgramCache()
            >>> a = cache.compile([EmitLiteral("hi")])
            >>> b = cache.compile([EmitLiteral("hi")])
            >>> a is b
            True
    """

    __slots__ = ("_hits", "_lock", "_misses", "_programs", "store")

    def __init__(self, store: ProgramStore | None = None):
        self._programs: dict[str, Program] = {}
        self._lock = Lock()
        self._hits = 0
        self._misses = 0
        self.store = store

    def compile(self, instructions: Sequence[Instruction], name: str | None = None) -> Program:
        """Return the Program for ``instructions``, building it on first sight.

        Raises:
            CompileError: If the instructions cannot be encoded. Nothing is
                registered in that case.
        """
        try:
            digest = sha256(encode_lowered(instructions)).hexdigest()
        except (TypeError, ValueError) as exc:
            raise CompileError(f"Cannot encode program: {exc}", name=name) from exc

        program = self._programs.get(digest)
        if program is not None:
            self._hits += 1
            logger.debug("Program cache hit %s (%s)", digest[:12], name or "<string>")
            return program

        with self._lock:
            program = self._programs.get(digest)
            if program is not None:
                self._hits += 1
                return program
            program = self._build(instructions, digest, name)
            self._programs[digest] = program
            self._misses += 1
        return program

    def _build(self, instructions: Sequence[Instruction], digest: str, name: str | None) -> Program:
        if self.store is not None:
            stored = self.store.load(digest)
            if stored is not None:
                logger.debug("Loaded %s from program store", stored.class_name)
                return stored

        program = Program(instructions, digest)
        logger.debug(
            "Built %s (%d instructions) for %s", program.class_name, len(program), name or "<string>"
        )
        if self.store is not None:
            try:
                self.store.save(program)
            except OSError as exc:
                logger.warning("Could not persist %s: %s", program.class_name, exc)
        return program

    def warm(self) -> int:
        """Register every program in the store; return how many were added."""
        if self.store is None:
            return 0
        added = 0
        with self._lock:
            for program in self.store:
                if program.content_hash not in self._programs:
                    self._programs[program.content_hash] = program
                    added += 1
        logger.debug("Warmed program cache with %d stored programs", added)
        return added

    def get(self, digest: str) -> Program | None:
        return self._programs.get(digest)

    def __contains__(self, digest: object) -> bool:
        return digest in self._programs

    def __len__(self) -> int:
        return len(self._programs)

    def clear(self) -> None:
        """Drop all in-memory programs and reset counters. The store is untouched."""
        with self._lock:
            self._programs = {}
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict[str, int]:
        return {"size": len(self._programs), "hits": self._hits, "misses": self._misses}
