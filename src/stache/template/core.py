"""Stache Template: a compiled Program bound to its environment.

Architecture:
    ```
    Template
    ├── _env_ref: WeakRef[Environment]  # Prevents circular refs
    ├── _program: Program               # Shared per content hash
    └── _name, _filename, _source       # For error messages
    ```

StringBuilder Pattern:
``render()`` collects output with ``buf.append`` and returns
``"".join(buf)``, O(n) in the output size. ``render_to()`` writes each
piece straight to a caller-supplied sink instead.

Memory Safety:
Uses ``weakref.ref(env)`` to break potential cycles:
``Template → (weak) → Environment → cache → Template``

Thread-Safety:
- Templates are immutable after construction
- ``render()`` creates only local state (buffer, session, root scope)
- Multiple threads can call ``render()`` concurrently
"""

from __future__ import annotations

import weakref
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

from stache.render_context import render_context
from stache.scope import AccessorCache, Scope
from stache.template.session import RenderSession

if TYPE_CHECKING:
    from stache.compiler.program import Program
    from stache.environment import Environment


class Sink(Protocol):
    def write(self, text: str, /) -> Any: ...


class Template:
    """Compiled template ready for rendering.

    Attributes:
        name: Template identifier (for error messages)
        filename: Source file path (for error messages)
        source: Template source (for runtime error snippets)
        program: The executable Program

    Example:
            >>> from stache import Environment
            >>> env = Environment()
            >>> t = env.from_string("Hello, {{name}}!")
            >>> t.render({"name": "World"})
            'Hello, World!'

            >>> t.render(name="World")  # Keywords become root bindings
            'Hello, World!'
    """

    __slots__ = ("_env_ref", "_filename", "_name", "_program", "_source")

    def __init__(
        self,
        env: Environment,
        program: Program,
        name: str | None,
        filename: str | None,
        source: str | None = None,
    ):
        self._env_ref: weakref.ref[Environment] = weakref.ref(env)
        self._program = program
        self._name = name
        self._filename = filename
        self._source = source

    @property
    def _env(self) -> Environment:
        """Get the Environment (dereferences weak reference)."""
        env = self._env_ref()
        if env is None:
            raise RuntimeError(
                f"Environment has been garbage collected (template: {self._name or 'unknown'})"
            )
        return env

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def filename(self) -> str | None:
        return self._filename

    @property
    def source(self) -> str | None:
        return self._source

    @property
    def program(self) -> Program:
        return self._program

    def render(self, context: Any = None, /, **kwargs: Any) -> str:
        """Render against ``context`` and return the output.

        Args:
            context: Root host value: a Scope, mapping, object, XML element
                or ``concurrent.futures.Future``
            **kwargs: Local bindings of the root scope, visible before
                anything in ``context``

        Raises:
            TemplateRuntimeError: If rendering fails; carries template name,
                line and source snippet.
        """
        buf: list[str] = []
        self._render(buf.append, context, kwargs)
        return "".join(buf)

    def render_to(self, sink: Sink, context: Any = None, /, **kwargs: Any) -> None:
        """Render into ``sink`` (anything with ``write(str)``).

        Output already written when an error is raised stays written.
        """
        self._render(sink.write, context, kwargs)

    def _render(
        self, write: Callable[[str], Any], context: Any, bindings: Mapping[str, Any]
    ) -> None:
        env = self._env
        scope = root_scope(context, bindings, env.accessor_cache)
        with render_context(
            template_name=self._name,
            filename=self._filename,
            source=self._source,
            max_partial_depth=env.max_partial_depth,
        ):
            RenderSession(env, write, scope, debug=env.debug).run(self._program)

    def __repr__(self) -> str:
        return f"<Template {self._name or '(inline)'} {self._program.class_name}>"


def root_scope(
    context: Any, bindings: Mapping[str, Any], accessors: AccessorCache | None = None
) -> Scope:
    """Root frame for a render call.

    A ``Scope`` passed as ``context`` keeps its own accessor cache, and so
    does the bindings frame built on it; ``accessors`` applies only when a
    new root frame is created from a plain host value.
    """
    if isinstance(context, Scope):
        return context.child(None, bindings) if bindings else context
    return Scope(context, locals=bindings, accessors=accessors)
