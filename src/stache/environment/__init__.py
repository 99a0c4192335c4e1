"""Stache environment: configuration, loaders, errors and terminal output.

Exceptions and loaders are imported before ``core`` because the compile
pipeline modules import ``stache.environment.exceptions`` themselves.
"""

from stache.environment import terminal
from stache.environment.exceptions import (
    CompileError,
    CompileFailure,
    ErrorCode,
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
from stache.environment.loaders import (
    ChoiceLoader,
    DictLoader,
    FileSystemLoader,
    FunctionLoader,
    Loader,
)
from stache.environment.core import Environment

__all__ = [
    "ChoiceLoader",
    "CompileError",
    "CompileFailure",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "FunctionLoader",
    "Loader",
    "IOFailure",
    "MismatchedTagError",
    "ResolutionWarning",
    "SourceSnippet",
    "StructuralError",
    "TemplateError",
    "TemplateIOError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "UnclosedSectionError",
    "UnclosedTagError",
    "UnsupportedPragmaWarning",
    "build_source_snippet",
    "terminal",
]
