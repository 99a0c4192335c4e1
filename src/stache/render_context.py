"""Stache RenderContext: per-render state kept out of the scope chain.

Template name, current line and partial depth are needed for error
messages and recursion limits, but they are not template data. They live
in a ``ContextVar`` for the duration of one render call, so nested partial
renders and concurrent renders in other threads never see each other's
state.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field

from stache.environment.exceptions import ErrorCode, TemplateRuntimeError

DEFAULT_MAX_PARTIAL_DEPTH = 50


@dataclass
class RenderContext:
    """Per-render state isolated from the scope chain.

    Thread Safety:
        ContextVars are thread-local by design. Each thread has its own
        RenderContext instance.

    Attributes:
        template_name: Current template name for error messages
        filename: Source file path for error messages
        source: Template source for runtime error snippets
        line: Line of the instruction being executed
        partial_depth: Current partial nesting depth
        max_partial_depth: Maximum allowed partial depth
        template_stack: Stack of (template_name, line) for error traces
    """

    template_name: str | None = None
    filename: str | None = None
    source: str | None = None

    line: int = 0

    # Deep enough for real templates while catching self-including partials early
    partial_depth: int = 0
    max_partial_depth: int = DEFAULT_MAX_PARTIAL_DEPTH

    template_stack: list[tuple[str, int]] = field(default_factory=list)

    def check_partial_depth(self, partial_name: str) -> None:
        """Raise if rendering ``partial_name`` would exceed the depth limit.

        Raises:
            TemplateRuntimeError: If depth >= max_partial_depth
        """
        if self.partial_depth >= self.max_partial_depth:
            raise TemplateRuntimeError(
                f"Maximum partial depth exceeded ({self.max_partial_depth}) "
                f"when rendering '{partial_name}'",
                template_name=self.template_name,
                lineno=self.line or None,
                template_stack=self.template_stack,
                suggestion="Check for partials that include themselves: A → B → A",
                code=ErrorCode.PARTIAL_DEPTH,
            )

    def child_context(
        self,
        template_name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
    ) -> RenderContext:
        """Context for a partial, one level deeper.

        Appends the current location to ``template_stack`` for error traces.
        """
        new_stack = self.template_stack.copy()
        if self.template_name and self.line > 0:
            new_stack.append((self.template_name, self.line))

        return RenderContext(
            template_name=template_name or self.template_name,
            filename=filename,
            source=source,
            line=0,
            partial_depth=self.partial_depth + 1,
            max_partial_depth=self.max_partial_depth,
            template_stack=new_stack,
        )


_render_context: ContextVar[RenderContext | None] = ContextVar(
    "stache_render_context",
    default=None,
)


def get_render_context() -> RenderContext | None:
    """Current render context, or None outside a render call."""
    return _render_context.get()


@contextmanager
def render_context(
    template_name: str | None = None,
    filename: str | None = None,
    source: str | None = None,
    max_partial_depth: int = DEFAULT_MAX_PARTIAL_DEPTH,
) -> Iterator[RenderContext]:
    """Install a fresh RenderContext for the duration of the block.

    The previous context is restored on exit.

    Example:
        with render_context(template_name="page.mustache") as ctx:
            session.run(program, scope)
            # ctx.line tracks the current instruction for error reporting
    """
    ctx = RenderContext(
        template_name=template_name,
        filename=filename,
        source=source,
        max_partial_depth=max_partial_depth,
    )
    token = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        _render_context.reset(token)


def set_render_context(ctx: RenderContext) -> Token[RenderContext | None]:
    """Set ``ctx`` as current and return the token for ``reset_render_context``.

    For partial rendering, where the context is swapped for a child and
    restored manually.
    """
    return _render_context.set(ctx)


def reset_render_context(token: Token[RenderContext | None]) -> None:
    _render_context.reset(token)
