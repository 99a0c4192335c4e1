"""Stache compiler: node tree → instructions → cached Program.

Pipeline:
    Template node ──Compiler.lower()──▶ tuple[Instruction, ...]
                  ──ProgramCache.compile()──▶ Program (shared per content hash)
"""

from __future__ import annotations

from stache.compiler.cache import ProgramCache
from stache.compiler.core import Compiler
from stache.compiler.instructions import (
    BeginInverted,
    BeginIterable,
    EmitLiteral,
    EmitVariable,
    End,
    Instruction,
    InvokePartial,
    encode_lowered,
    from_lowered,
)
from stache.compiler.program import Program, content_hash

__all__ = [
    "BeginInverted",
    "BeginIterable",
    "Compiler",
    "EmitLiteral",
    "EmitVariable",
    "End",
    "Instruction",
    "InvokePartial",
    "Program",
    "ProgramCache",
    "content_hash",
    "encode_lowered",
    "from_lowered",
]
