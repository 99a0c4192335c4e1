"""Stache Environment: configuration, caches and the compile pipeline.

The Environment owns everything shared between templates:

    ```
    Environment
    ├── loader              # get_source(name) → (source, filename)
    ├── markers             # tag delimiters, validated once
    ├── _templates          # LRU: name → Template
    ├── _program_cache      # content hash → Program (optionally store-backed)
    └── _accessor_cache     # (type, member) → Accessor
    ```

Compile pipeline (under ``_compile_lock``):
    source ──Lexer──▶ tokens ──Parser──▶ nodes ──Compiler──▶ instructions
           ──ProgramCache──▶ Program ──▶ Template

Thread-Safety:
Compiles are serialized per environment by an ``RLock``, so two threads
asking for the same new template build its Program once. Rendering takes
no environment lock; Templates and Programs are immutable.
"""

from __future__ import annotations

import logging
import threading
from os import PathLike
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

from stache.compiler import Compiler, Instruction, ProgramCache, content_hash
from stache.environment.exceptions import TemplateNotFoundError
from stache.lexer import (
    DEFAULT_CLOSE_MARKER,
    DEFAULT_OPEN_MARKER,
    read_source,
    tokenize,
    validate_markers,
)
from stache.parser import Parser
from stache.program_store import ProgramStore
from stache.render_context import DEFAULT_MAX_PARTIAL_DEPTH
from stache.scope import DEFAULT_ACCESSOR_CACHE, AccessorCache
from stache.template import Template
from stache.utils.lru_cache import LRUCache

if TYPE_CHECKING:
    from stache.compiler.program import Program
    from stache.environment.loaders import Loader

logger = logging.getLogger(__name__)


class Environment:
    """Central configuration and template factory.

    Args:
        loader: Source of named templates (and partials)
        open_marker: Tag opening delimiter
        close_marker: Tag closing delimiter
        debug: Log program dumps and section entry/exit at DEBUG
        debug_dir: When debugging, also write ``Program<hash>.txt`` dumps here
        program_store: Persist built programs; defaults to the store named
            by ``$STACHE_PROGRAM_DIR``, if set
        accessor_cache: Member accessor cache; defaults to the process-wide one
        max_partial_depth: Maximum partial nesting before rendering fails
        cache_size: Maximum number of named templates kept compiled

    Raises:
        ValueError: If the markers are empty, identical or contain whitespace

    Example:
            >>> env = Environment(loader=DictLoader({"hello": "Hello {{name}}!"}))
            >>> env.render("hello", {"name": "World"})
            'Hello World!'

            >>> env = Environment(open_marker="<%", close_marker="%>")
            >>> env.from_string("<%#items%><%.%> <%/items%>").render({"items": [1, 2]})
            '1 2 '
    """

    def __init__(
        self,
        loader: Loader | None = None,
        *,
        open_marker: str = DEFAULT_OPEN_MARKER,
        close_marker: str = DEFAULT_CLOSE_MARKER,
        debug: bool = False,
        debug_dir: str | PathLike[str] | None = None,
        program_store: ProgramStore | None = None,
        accessor_cache: AccessorCache | None = None,
        max_partial_depth: int = DEFAULT_MAX_PARTIAL_DEPTH,
        cache_size: int = 400,
    ):
        validate_markers(open_marker, close_marker)
        if max_partial_depth < 1:
            raise ValueError(f"max_partial_depth must be >= 1, got {max_partial_depth}")

        self.loader = loader
        self.open_marker = open_marker
        self.close_marker = close_marker
        self.debug = debug
        self.debug_dir = Path(debug_dir) if debug_dir is not None else None
        self.max_partial_depth = max_partial_depth

        if program_store is None:
            program_store = ProgramStore.from_env()
        self._program_cache = ProgramCache(program_store)
        self._accessor_cache = (
            accessor_cache if accessor_cache is not None else DEFAULT_ACCESSOR_CACHE
        )
        self._templates: LRUCache[str, Template] = LRUCache(cache_size)
        self._compiler = Compiler()
        self._compile_lock = threading.RLock()

    @property
    def program_cache(self) -> ProgramCache:
        return self._program_cache

    @property
    def accessor_cache(self) -> AccessorCache:
        return self._accessor_cache

    @property
    def program_store(self) -> ProgramStore | None:
        return self._program_cache.store

    def from_string(self, source: str | TextIO, name: str | None = None) -> Template:
        """Compile ``source`` (text or a readable stream) into a Template.

        String templates are not kept in the named-template cache, but their
        Program is shared with any other template of identical content.

        Raises:
            TemplateIOError: If reading the stream fails
            TemplateSyntaxError: On malformed tags or unbalanced sections
            CompileError: If the program cannot be built
        """
        return self._compile(read_source(source, name), name, None)

    def get_template(self, name: str) -> Template:
        """Load, compile and cache the template ``name`` from the loader.

        Raises:
            TemplateNotFoundError: If there is no loader or it has no such template
        """
        template = self._templates.get(name)
        if template is not None:
            return template
        if self.loader is None:
            raise TemplateNotFoundError(f"Template '{name}' not found: no loader configured")

        with self._compile_lock:
            template = self._templates.get(name)
            if template is not None:
                return template
            source, filename = self.loader.get_source(name)
            template = self._compile(source, name, filename)
            self._templates.set(name, template)
        return template

    def render(self, name: str, context: Any = None, /, **kwargs: Any) -> str:
        """Shortcut for ``get_template(name).render(context, **kwargs)``."""
        return self.get_template(name).render(context, **kwargs)

    def list_templates(self) -> list[str]:
        return self.loader.list_templates() if self.loader is not None else []

    def clear_cache(self) -> None:
        """Drop compiled templates and in-memory programs.

        The accessor cache and any program store are left untouched.
        """
        with self._compile_lock:
            self._templates.clear()
            self._program_cache.clear()

    def cache_info(self) -> dict[str, dict[str, int]]:
        return {
            "templates": self._templates.stats(),
            "programs": self._program_cache.stats(),
        }

    def _compile(self, source: str, name: str | None, filename: str | None) -> Template:
        with self._compile_lock:
            tokens = tokenize(
                source, self.open_marker, self.close_marker, name=name, filename=filename
            )
            tree = Parser(tokens, name, filename, source).parse()
            instructions = self._compiler.lower(tree, name)
            is_new = self.debug and self._is_new(instructions)
            program = self._program_cache.compile(instructions, name)
            if is_new:
                self._dump_program(program, name)
        return Template(self, program, name, filename, source)

    def _is_new(self, instructions: tuple[Instruction, ...]) -> bool:
        return content_hash(instructions) not in self._program_cache

    def _dump_program(self, program: Program, name: str | None) -> None:
        dump = program.dump()
        logger.debug("Program for %s:\n%s", name or "<string>", dump)
        if self.debug_dir is None:
            return
        path = self.debug_dir / f"{program.class_name}.txt"
        try:
            self.debug_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(dump, encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not write program dump %s: %s", path, exc)

    def __repr__(self) -> str:
        return (
            f"<Environment markers={self.open_marker!r}/{self.close_marker!r} "
            f"templates={len(self._templates)} programs={len(self._program_cache)}>"
        )
