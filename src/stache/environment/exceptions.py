"""Exceptions and warnings for the Stache template system.

Exception Hierarchy:
TemplateError (base)
├── TemplateSyntaxError       # Structural error while scanning/parsing
│   ├── UnclosedTagError      # Open marker without a close marker
│   ├── MismatchedTagError    # {{/name}} does not close the open section
│   └── UnclosedSectionError  # Section still open at end of input
├── TemplateIOError           # Reading template source failed
├── CompileError              # Lowering or program construction failed
├── TemplateNotFoundError     # No loader knows the template
└── TemplateRuntimeError      # Render-time failure with template context

Warnings:
ResolutionWarning         # A member lookup raised; position renders empty
UnsupportedPragmaWarning  # {{%pragma}} tags are accepted but ignored

Aliases: StructuralError, IOFailure and CompileFailure name the syntax, IO and
compile errors.

Fatal errors carry the template name and line number. When the source
text is known, the message includes a snippet of the offending line:

    ```
    Syntax Error: Mismatched section tags: expected 'foo', found 'bar'
      --> page.mustache:3
       |
      3 | {{/bar}}
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from stache.environment import terminal


class ErrorCode(Enum):
    """Searchable error codes for Stache errors.

    Format: S-{CATEGORY}-{NUMBER}
    Categories: LEX (scanner), PAR (parser), CMP (compiler),
    RUN (render), TPL (template loading)
    """

    UNCLOSED_TAG = "S-LEX-001"
    UNTERMINATED_UNESCAPED = "S-LEX-002"
    READ_FAILED = "S-LEX-003"

    MISMATCHED_TAG = "S-PAR-001"
    UNCLOSED_SECTION = "S-PAR-002"
    EMPTY_TAG = "S-PAR-003"

    COMPILE_FAILED = "S-CMP-001"

    RUNTIME_ERROR = "S-RUN-001"
    PARTIAL_DEPTH = "S-RUN-002"
    DEFERRED_FAILED = "S-RUN-003"

    TEMPLATE_NOT_FOUND = "S-TPL-001"
    SYNTAX_ERROR = "S-TPL-002"

    @property
    def category(self) -> str:
        """Error category (e.g., 'parser', 'runtime')."""
        prefix = self.value.split("-")[1]
        return {
            "LEX": "lexer",
            "PAR": "parser",
            "CMP": "compiler",
            "RUN": "runtime",
            "TPL": "template",
        }.get(prefix, "unknown")


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Template source lines around an error line.

    Attributes:
        lines: Tuple of (line_number, line_content) pairs.
        error_line: The 1-based line number where the error occurred.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int

    def format(self) -> str:
        parts: list[str] = [terminal.dim_text("   |")]
        for lineno, content in self.lines:
            parts.append(
                terminal.format_source_line(lineno, content, is_error=lineno == self.error_line)
            )
        parts.append(terminal.dim_text("   |"))
        return "\n".join(parts)


def build_source_snippet(source: str, error_line: int, *, context_lines: int = 1) -> SourceSnippet:
    """Build a SourceSnippet with ``context_lines`` lines either side of the error."""
    all_lines = source.splitlines()
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line)


class TemplateError(Exception):
    """Base exception for all Stache template errors.

    Attributes:
        code: Optional ErrorCode identifying the failure class.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format the error as a short terminal diagnostic."""
        header = str(self)
        if self.code and self.code.value not in header:
            header = terminal.format_error_header(self.code.value, header)
        return header


class TemplateNotFoundError(TemplateError):
    """Template not found by any configured loader."""

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class TemplateSyntaxError(TemplateError):
    """Structural error in template source.

    Raised by the scanner and parser; aborts compilation. Includes the
    source location, and a snippet when ``source`` is provided.
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.name = name
        self.filename = filename
        self.source = source
        super().__init__(self._format_message())

    @property
    def location(self) -> str:
        location = self.filename or self.name or "<template>"
        if self.lineno:
            location += f":{self.lineno}"
        return location

    def _format_message(self) -> str:
        header = f"Syntax Error: {self.message}\n  --> {terminal.location(self.location)}"
        if self.source and self.lineno:
            lines = self.source.splitlines()
            if 0 < self.lineno <= len(lines):
                return f"{header}\n   |\n{self.lineno:>3} | {lines[self.lineno - 1]}"
        return header

    def format_compact(self) -> str:
        code_prefix = f"{self.code.value}: " if self.code else ""
        parts = [f"{code_prefix}{self.message}", f"  --> {self.location}"]
        if self.source and self.lineno:
            parts.append(build_source_snippet(self.source, self.lineno).format())
        return "\n".join(parts)


StructuralError = TemplateSyntaxError


class UnclosedTagError(TemplateSyntaxError):
    """An open marker was never followed by a close marker."""

    code: ErrorCode | None = ErrorCode.UNCLOSED_TAG


class MismatchedTagError(TemplateSyntaxError):
    """A closing tag does not match the most recently opened section.

    Attributes:
        expected: Name of the open section, or None when nothing was open.
        found: Name given in the closing tag.
    """

    code: ErrorCode | None = ErrorCode.MISMATCHED_TAG

    def __init__(self, expected: str | None, found: str, lineno: int | None = None, **kwargs: Any):
        self.expected = expected
        self.found = found
        if expected is None:
            message = f"Closing tag '{found}' has no open section"
        else:
            message = f"Mismatched section tags: expected '{expected}', found '{found}'"
        super().__init__(message, lineno, **kwargs)


class UnclosedSectionError(TemplateSyntaxError):
    """A section or inversion was still open at the end of the template.

    Attributes:
        section: Name of the unclosed section.
        start_lineno: Line of its opening tag.
    """

    code: ErrorCode | None = ErrorCode.UNCLOSED_SECTION

    def __init__(self, section: str, start_lineno: int, **kwargs: Any):
        self.section = section
        self.start_lineno = start_lineno
        super().__init__(
            f"Section '{section}' opened on line {start_lineno} is never closed",
            start_lineno,
            **kwargs,
        )


class TemplateIOError(TemplateError):
    """Reading template source failed. The underlying error is ``__cause__``."""

    code: ErrorCode | None = ErrorCode.READ_FAILED

    def __init__(self, message: str, name: str | None = None):
        self.message = message
        self.name = name
        location = f" ({name})" if name else ""
        super().__init__(f"{message}{location}")


IOFailure = TemplateIOError


class CompileError(TemplateError):
    """Lowering a node tree or constructing a program failed."""

    code: ErrorCode | None = ErrorCode.COMPILE_FAILED

    def __init__(self, message: str, name: str | None = None):
        self.message = message
        self.name = name
        location = f" in {name}" if name else ""
        super().__init__(f"Compile Error{location}: {message}")


CompileFailure = CompileError


class TemplateRuntimeError(TemplateError):
    """Render-time error with template context.

    Output Format:
            ```
            Runtime Error: Maximum partial depth exceeded (50) at 'row'
              Location: list.mustache:4
               |
              >  4 | {{>row}}
               |
              Suggestion: Check for partials that include themselves
            ```

    Attributes:
        message: Error description
        template_name: Name of the template being rendered
        lineno: Line number in template source
        suggestion: Actionable fix suggestion
        source_snippet: Lines around the failing tag
        template_stack: (template_name, line) pairs of the partial chain
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        template_name: str | None = None,
        lineno: int | None = None,
        suggestion: str | None = None,
        source_snippet: SourceSnippet | None = None,
        template_stack: list[tuple[str, int]] | None = None,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.template_name = template_name
        self.lineno = lineno
        self.suggestion = suggestion
        self.source_snippet = source_snippet
        self.template_stack = template_stack or []
        if code is not None:
            self.code = code
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [f"Runtime Error: {self.message}"]
        if self.template_name or self.lineno:
            loc = self.template_name or "<template>"
            if self.lineno:
                loc += f":{self.lineno}"
            parts.append(f"  Location: {terminal.location(loc)}")
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        if self.template_stack:
            parts.append(terminal.dim_text("  Partial stack:"))
            parts.extend(
                f"    • {terminal.location(f'{name}:{line}')}" for name, line in self.template_stack
            )
        if self.suggestion:
            parts.append(f"  {terminal.hint('Suggestion:')} {self.suggestion}")
        return "\n".join(parts)


class ResolutionWarning(UserWarning):
    """A host member raised while being resolved; the position renders empty."""


class UnsupportedPragmaWarning(UserWarning):
    """A ``{{%...}}`` pragma tag was ignored."""
