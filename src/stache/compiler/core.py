"""Stache Compiler — lowers the node tree into a flat instruction sequence.

Design Principles:
1. **Flat program**: sections become ``Begin… End`` brackets; the begin
   instruction records the index of its ``End``
2. **Literal coalescing**: adjacent text (including text separated only by
   comments or pragmas) becomes a single ``EmitLiteral``
3. **Escape at emit time**: ``EmitVariable`` only carries the escape flag
4. **O(1) dispatch**: dict-based node type → handler lookup

Example:
        >>> from stache.lexer import tokenize
        >>> from stache.parser import Parser
        >>> tree = Parser(tokenize("Hi {{name}}!")).parse()
        >>> Compiler().lower(tree)
        (EmitLiteral(text='Hi '), EmitVariable(path='name', escape=True, lineno=1), EmitLiteral(text='!'))

"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from stache.compiler.instructions import (
    BeginInverted,
    BeginIterable,
    EmitLiteral,
    EmitVariable,
    End,
    Instruction,
    InvokePartial,
)
from stache.environment.exceptions import CompileError

if TYPE_CHECKING:
    from stache.nodes import Inversion, Node, Partial, Section, Text, Variable
    from stache.nodes import Template as TemplateNode


class Compiler:
    """Lower a parsed Template node into render instructions.

    The compiler is cheap to create and holds state only for the duration
    of one ``lower()`` call.

    Node Dispatch:
        ```python
        dispatch = {
            "Text": self._compile_text,
            "Variable": self._compile_variable,
            "Section": self._compile_section,
            ...
        }
        handler = dispatch[type(node).__name__]
        ```
    """

    __slots__ = ("_instructions", "_name", "_node_dispatch")

    def __init__(self) -> None:
        self._instructions: list[Instruction] = []
        self._name: str | None = None
        self._node_dispatch: dict[str, Callable[[Node], None]] = {
            "Text": self._compile_text,
            "Variable": self._compile_variable,
            "Section": self._compile_section,
            "Inversion": self._compile_inversion,
            "Partial": self._compile_partial,
            "Comment": self._compile_nothing,
            "Pragma": self._compile_nothing,
        }

    def lower(self, node: TemplateNode, name: str | None = None) -> tuple[Instruction, ...]:
        """Lower a Template node.

        Raises:
            CompileError: If the tree contains a node the compiler cannot lower.
        """
        self._instructions = []
        self._name = name or node.name
        self._compile_body(node.body)
        instructions = tuple(self._instructions)
        self._instructions = []
        return instructions

    def _compile_body(self, nodes: Sequence[Node]) -> None:
        for node in nodes:
            handler = self._node_dispatch.get(type(node).__name__)
            if handler is None:
                raise CompileError(
                    f"Cannot lower node {type(node).__name__} at line {node.lineno}",
                    name=self._name,
                )
            handler(node)

    def _compile_text(self, node: Text) -> None:
        if not node.value:
            return
        instructions = self._instructions
        if instructions and isinstance(instructions[-1], EmitLiteral):
            instructions[-1] = EmitLiteral(instructions[-1].text + node.value)
        else:
            instructions.append(EmitLiteral(node.value))

    def _compile_variable(self, node: Variable) -> None:
        self._instructions.append(EmitVariable(node.name, node.escape, node.lineno))

    def _compile_section(self, node: Section) -> None:
        self._compile_block(BeginIterable, node)

    def _compile_inversion(self, node: Inversion) -> None:
        self._compile_block(BeginInverted, node)

    def _compile_block(
        self,
        begin: type[BeginIterable] | type[BeginInverted],
        node: Section | Inversion,
    ) -> None:
        start = len(self._instructions)
        # Placeholder until the End index is known
        self._instructions.append(begin(node.name, -1, node.lineno))
        self._compile_body(node.body)
        self._instructions[start] = begin(node.name, len(self._instructions), node.lineno)
        self._instructions.append(End(node.name))

    def _compile_partial(self, node: Partial) -> None:
        self._instructions.append(InvokePartial(node.name, node.lineno))

    def _compile_nothing(self, node: Node) -> None:
        return None
