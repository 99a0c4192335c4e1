"""RenderSession: executes a Program against a scope chain.

The program is a flat instruction tuple. ``_execute`` walks an index range
and dispatches on instruction type; each handler returns the index of the
next instruction. Section handlers run their body range once per element
and then jump past the matching ``End``:

    ```
    2 BeginIterable('items', end=5)   ──▶ _execute(3, 5) per element, return 6
    3   EmitVariable('.')
    4   EmitLiteral('\\n')
    5 End('items')
    ```

Thread-Safety:
A session belongs to exactly one render call. Programs and scopes it reads
are immutable; the only mutable state is the output sink and the current
RenderContext, both private to the call, plus the items of one-shot
iterators it has already read.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence, Sized
from typing import TYPE_CHECKING, Any
from xml.etree.ElementTree import Element

from stache.compiler.instructions import (
    BeginInverted,
    BeginIterable,
    EmitLiteral,
    EmitVariable,
    End,
    Instruction,
    InvokePartial,
)
from stache.environment.exceptions import (
    TemplateError,
    TemplateRuntimeError,
    build_source_snippet,
)
from stache.render_context import (
    RenderContext,
    get_render_context,
    reset_render_context,
    set_render_context,
)
from stache.scope import ABSENT, EMPTY, Scope, is_missing, resolve_deferred
from stache.utils.html import html_escape

if TYPE_CHECKING:
    from stache.compiler.program import Program
    from stache.environment import Environment

logger = logging.getLogger(__name__)

Handler = Callable[[Sequence[Instruction], int, Scope], int]

_NOTHING = object()


def section_items(value: Any) -> Iterable[Any]:
    """Values a section body runs against, one body run per item.

    - None, ABSENT, EMPTY and falsy values: no runs
    - str, bytes, mappings and XML elements: one run with the value itself
    - other iterables: one run per element; iterables without ``__len__``
      are peeked for a first element instead of tested for truth
    - any other truthy value: one run with the value itself
    """
    if is_missing(value):
        return ()
    if isinstance(value, (str, bytes, bytearray, Mapping, Element)):
        return (value,) if _truthy(value) else ()
    if isinstance(value, Iterable) and not isinstance(value, Sized):
        peeked = _peek(value)
        return () if peeked is None else peeked
    if not value:
        return ()
    if isinstance(value, Iterable):
        return value
    return (value,)


def is_empty_value(value: Any) -> bool:
    """True when an inverted section should run for ``value``.

    An iterator passed here loses its first element; ``RenderSession``
    replays iterators so sections and inversions over one see the same items.
    """
    if is_missing(value):
        return True
    if isinstance(value, (str, bytes, bytearray, Mapping, Element)):
        return not _truthy(value)
    if isinstance(value, Iterable) and not isinstance(value, Sized):
        return _peek(value) is None
    return not value


def _peek(iterable: Iterable[Any]) -> Iterator[Any] | None:
    """None when ``iterable`` yields nothing, else an iterator over all of it."""
    iterator = iter(iterable)
    first = next(iterator, _NOTHING)
    if first is _NOTHING:
        return None
    return itertools.chain((first,), iterator)


def _truthy(value: Any) -> bool:
    # Element truthiness is deprecated; a found element always counts
    return isinstance(value, Element) or bool(value)


def to_text(value: Any) -> str:
    """Text for a variable value. Missing values render as ``""``."""
    if value is None or value is ABSENT or value is EMPTY:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, Element):
        return "".join(value.itertext())
    return str(value)


def enhance_error(error: Exception, render_ctx: RenderContext) -> TemplateRuntimeError:
    """Convert ``error`` into a TemplateRuntimeError located at the current line.

    Used for plain Python exceptions raised by host objects and for runtime
    errors raised before the template position was known.
    """
    lineno = render_ctx.line or None
    snippet = None
    if render_ctx.source and lineno:
        snippet = build_source_snippet(render_ctx.source, lineno)

    if isinstance(error, TemplateRuntimeError):
        message = error.message
        code = error.code
    else:
        detail = str(error).strip() or "no details available"
        message = f"{type(error).__name__}: {detail}"
        code = None

    return TemplateRuntimeError(
        message,
        template_name=render_ctx.template_name or render_ctx.filename,
        lineno=lineno,
        source_snippet=snippet,
        template_stack=render_ctx.template_stack,
        code=code,
    )


class RenderSession:
    """Interpreter state for one render call.

    Attributes:
        scope: The active scope (the innermost section frame while a body runs)
        debug: Log section entry/exit and partial calls at DEBUG
    """

    __slots__ = ("_ctx", "_dispatch", "_env", "_replays", "_write", "debug", "scope")

    def __init__(
        self,
        env: Environment,
        write: Callable[[str], Any],
        scope: Scope,
        debug: bool = False,
    ):
        self._env = env
        self._write = write
        self.scope = scope
        self.debug = debug
        # id(iterator) -> (iterator, its items), kept for the whole render
        self._replays: dict[int, tuple[Iterator[Any], tuple[Any, ...]]] = {}
        ctx = get_render_context()
        self._ctx = ctx if ctx is not None else RenderContext()
        self._dispatch: dict[type[Instruction], Handler] = {
            EmitLiteral: self._emit_literal,
            EmitVariable: self._emit_variable,
            BeginIterable: self._begin_iterable,
            BeginInverted: self._begin_inverted,
            InvokePartial: self._invoke_partial,
            End: self._end,
        }

    def run(self, program: Program) -> None:
        """Execute ``program`` against the session's root scope.

        Raises:
            TemplateRuntimeError: For any failure that is not already a
                TemplateError, with template name, line and source snippet.
        """
        self._run_located(program.instructions, self.scope)

    def _run_located(self, instructions: Sequence[Instruction], scope: Scope) -> None:
        ctx = self._ctx
        try:
            self._execute(instructions, 0, len(instructions), scope)
        except TemplateRuntimeError as exc:
            if exc.template_name is not None:
                raise
            raise enhance_error(exc, ctx) from exc
        except TemplateError:
            raise
        except Exception as exc:
            raise enhance_error(exc, ctx) from exc

    def _execute(
        self, instructions: Sequence[Instruction], start: int, stop: int, scope: Scope
    ) -> None:
        dispatch = self._dispatch
        pc = start
        while pc < stop:
            instruction = instructions[pc]
            pc = dispatch[type(instruction)](instructions, pc, scope)

    def _emit_literal(self, instructions: Sequence[Instruction], pc: int, scope: Scope) -> int:
        self._write(instructions[pc].text)  # type: ignore[attr-defined]
        return pc + 1

    def _emit_variable(self, instructions: Sequence[Instruction], pc: int, scope: Scope) -> int:
        instruction: EmitVariable = instructions[pc]  # type: ignore[assignment]
        self._ctx.line = instruction.lineno
        text = to_text(resolve_deferred(scope.get(instruction.path)))
        if text:
            self._write(html_escape(text) if instruction.escape else text)
        return pc + 1

    def _begin_iterable(self, instructions: Sequence[Instruction], pc: int, scope: Scope) -> int:
        instruction: BeginIterable = instructions[pc]  # type: ignore[assignment]
        self._ctx.line = instruction.lineno
        value = self._replayable(resolve_deferred(scope.get(instruction.path)))
        if self.debug:
            logger.debug("Enter section %r at line %d", instruction.path, instruction.lineno)

        runs = 0
        for item in section_items(value):
            child = scope.child(item)
            self.scope = child
            self._execute(instructions, pc + 1, instruction.end, child)
            runs += 1
        self.scope = scope

        if self.debug:
            logger.debug("Exit section %r after %d run(s)", instruction.path, runs)
        return instruction.end + 1

    def _begin_inverted(self, instructions: Sequence[Instruction], pc: int, scope: Scope) -> int:
        instruction: BeginInverted = instructions[pc]  # type: ignore[assignment]
        self._ctx.line = instruction.lineno
        value = self._replayable(resolve_deferred(scope.get(instruction.path)))
        if is_empty_value(value):
            if self.debug:
                logger.debug("Enter inverted section %r", instruction.path)
            self._execute(instructions, pc + 1, instruction.end, scope)
        return instruction.end + 1

    def _replayable(self, value: Any) -> Any:
        """Items of a one-shot iterator, read once per render and then reused."""
        if not isinstance(value, Iterator):
            return value
        entry = self._replays.get(id(value))
        if entry is None:
            entry = (value, tuple(value))
            self._replays[id(value)] = entry
        return entry[1]

    def _invoke_partial(self, instructions: Sequence[Instruction], pc: int, scope: Scope) -> int:
        instruction: InvokePartial = instructions[pc]  # type: ignore[assignment]
        ctx = self._ctx
        ctx.line = instruction.lineno
        ctx.check_partial_depth(instruction.name)

        template = self._env.get_template(instruction.name)
        child_ctx = ctx.child_context(template.name, template.filename, template.source)
        if self.debug:
            logger.debug("Partial %r at depth %d", instruction.name, child_ctx.partial_depth)

        token = set_render_context(child_ctx)
        self._ctx = child_ctx
        try:
            self._run_located(template.program.instructions, scope)
        finally:
            self._ctx = ctx
            reset_render_context(token)
        return pc + 1

    def _end(self, instructions: Sequence[Instruction], pc: int, scope: Scope) -> int:
        return pc + 1
