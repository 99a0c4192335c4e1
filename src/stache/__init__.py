"""Stache: a logic-less template engine with a cached program pipeline.

Quickstart:
    >>> from stache import Environment
    >>> env = Environment()
    >>> template = env.from_string("Hello {{name}}!\\n{{#items}}{{.}}\\n{{/items}}")
    >>> template.render({"name": "World", "items": ["a", "b"]})
    'Hello World!\\na\\nb\\n'

File-based templates and partials:
    >>> from stache import Environment, FileSystemLoader
    >>> env = Environment(loader=FileSystemLoader("templates/"))
    >>> env.render("page", page)   # {{>row}} loads templates/row.mustache

Architecture:
Template Source → Lexer → Parser → node tree → Compiler → instructions
→ ProgramCache → Program → RenderSession over a Scope chain

Pipeline stages:
1. **Lexer**: Splits source into text, newline and tag tokens
2. **Parser**: Builds an immutable node tree, eliding whitespace around
   standalone section tags
3. **Compiler**: Lowers the tree to a flat instruction tuple
4. **ProgramCache**: Shares one immutable Program per content hash,
   optionally persisted by a ProgramStore
5. **Template**: Runs the Program against a root Scope

Data:
Variables resolve dotted paths through a chain of scopes. Each frame may
hold a mapping, a plain object (fields, properties and methods), an
``xml.etree.ElementTree.Element`` or a ``concurrent.futures.Future``.
Unknown names fall back to enclosing sections and finally render as "".

Thread-Safety:
- Compilation is serialized per Environment and idempotent
- Programs, Templates and Scopes are immutable after construction
- Rendering uses only local state plus a ContextVar for error context

Free-Threading (PEP 703):
Declares GIL-independence via the ``_Py_mod_gil`` module attribute.
"""

from stache._types import Token, TokenType
from stache.environment import (
    ChoiceLoader,
    CompileError,
    CompileFailure,
    DictLoader,
    Environment,
    ErrorCode,
    FileSystemLoader,
    FunctionLoader,
    IOFailure,
    MismatchedTagError,
    ResolutionWarning,
    SourceSnippet,
    StructuralError,
    TemplateError,
    TemplateIOError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UnclosedSectionError,
    UnclosedTagError,
    UnsupportedPragmaWarning,
    build_source_snippet,
)
from stache.compiler import Program, ProgramCache
from stache.program_store import ProgramStore
from stache.render_context import RenderContext, get_render_context, render_context
from stache.scope import ABSENT, EMPTY, AccessorCache, Lookup, Scope
from stache.template import Template
from stache.utils.html import html_escape

__version__ = "0.1.0"

__all__ = [
    "ABSENT",
    "EMPTY",
    "AccessorCache",
    "ChoiceLoader",
    "CompileError",
    "CompileFailure",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "FunctionLoader",
    "IOFailure",
    "Lookup",
    "MismatchedTagError",
    "Program",
    "ProgramCache",
    "ProgramStore",
    "RenderContext",
    "ResolutionWarning",
    "Scope",
    "SourceSnippet",
    "StructuralError",
    "Template",
    "TemplateError",
    "TemplateIOError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "Token",
    "TokenType",
    "UnclosedSectionError",
    "UnclosedTagError",
    "UnsupportedPragmaWarning",
    "__version__",
    "build_source_snippet",
    "get_render_context",
    "html_escape",
    "render_context",
]


def __getattr__(name: str) -> object:
    """Module-level getattr for the free-threading declaration."""
    if name == "_Py_mod_gil":
        # 0 = Py_MOD_GIL_NOT_USED
        return 0
    raise AttributeError(f"module 'stache' has no attribute {name!r}")
