"""Template loaders for the Stache environment.

Loaders provide template source to the Environment. They implement
``get_source(name)`` returning ``(source, filename)``, and
``list_templates()``. Partial tags (``{{>row}}``) are resolved through the
same loader, by name.

Built-in Loaders:
- ``FileSystemLoader``: Load from filesystem directories
- ``DictLoader``: Load from an in-memory dictionary (testing/embedded)
- ``ChoiceLoader``: Try multiple loaders in order (theme fallback)
- ``FunctionLoader``: Wrap a callable as a loader (quick one-offs)

Custom Loaders:
Implement the Loader protocol:
    ```python
    class DatabaseLoader:
        def get_source(self, name: str) -> tuple[str, str | None]:
            row = db.query("SELECT source FROM templates WHERE name = ?", name)
            if not row:
                raise TemplateNotFoundError(f"Template '{name}' not found")
            return row.source, f"db://{name}"

        def list_templates(self) -> list[str]:
            return [r.name for r in db.query("SELECT name FROM templates")]
    ```

Thread-Safety:
Loaders should be safe for concurrent ``get_source()`` calls. All built-in
loaders are: they only read files, dictionaries, or delegate.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from difflib import get_close_matches
from pathlib import Path
from typing import Protocol, runtime_checkable

from stache.environment.exceptions import TemplateIOError, TemplateNotFoundError

DEFAULT_EXTENSIONS = (".mustache", ".html")


@runtime_checkable
class Loader(Protocol):
    def get_source(self, name: str) -> tuple[str, str | None]: ...

    def list_templates(self) -> list[str]: ...


class FileSystemLoader:
    """Load templates from filesystem directories.

    Searches the directories in order; the first match wins. A name without
    a matching file is retried with each of ``extensions`` appended, so
    ``{{>row}}`` finds ``row.mustache``.

    Example:
            >>> loader = FileSystemLoader(["themes/custom/", "themes/default/"])
            >>> source, filename = loader.get_source("row")
            >>> filename
            'themes/default/row.mustache'

    Raises:
        TemplateNotFoundError: If the template is not in any search path
        TemplateIOError: If a matching file exists but cannot be read
    """

    __slots__ = ("_encoding", "_extensions", "_paths")

    def __init__(
        self,
        paths: str | Path | Sequence[str | Path],
        encoding: str = "utf-8",
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    ):
        if isinstance(paths, (str, Path)):
            paths = [paths]
        self._paths = [Path(p) for p in paths]
        self._encoding = encoding
        self._extensions = tuple(extensions)

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def get_source(self, name: str) -> tuple[str, str]:
        """Load template source from the filesystem."""
        candidates = [name, *(name + ext for ext in self._extensions if not name.endswith(ext))]
        for base in self._paths:
            for candidate in candidates:
                path = base / candidate
                if path.is_file():
                    try:
                        return path.read_text(self._encoding), str(path)
                    except (OSError, UnicodeDecodeError) as exc:
                        raise TemplateIOError(
                            f"Cannot read template file {path}: {exc}", name=name
                        ) from exc

        raise TemplateNotFoundError(
            f"Template '{name}' not found in: {', '.join(str(p) for p in self._paths)}"
        )

    def list_templates(self) -> list[str]:
        """List all templates with a known extension in the search paths."""
        templates = set()
        for base in self._paths:
            if base.is_dir():
                for ext in self._extensions:
                    for path in base.rglob(f"*{ext}"):
                        templates.add(path.relative_to(base).as_posix())
        return sorted(templates)


class DictLoader:
    """Load templates from an in-memory dictionary.

    Returns ``None`` as filename since templates are not file-backed.

    Example:
            >>> loader = DictLoader({
            ...     "page": "<ul>{{#items}}{{>item}}{{/items}}</ul>",
            ...     "item": "<li>{{name}}</li>",
            ... })
            >>> env = Environment(loader=loader)
            >>> env.render("page", {"items": [{"name": "a"}]})
            '<ul><li>a</li></ul>'

    Raises:
        TemplateNotFoundError: If the name is not in the mapping
    """

    __slots__ = ("_mapping",)

    def __init__(self, mapping: Mapping[str, str]):
        self._mapping = mapping

    def get_source(self, name: str) -> tuple[str, None]:
        if name not in self._mapping:
            available = sorted(self._mapping.keys())
            msg = f"Template '{name}' not found"
            matches = get_close_matches(name, available, n=1, cutoff=0.6)
            if matches:
                msg += f". Did you mean '{matches[0]}'?"
            elif available:
                msg += f". Available: {', '.join(available[:10])}"
                if len(available) > 10:
                    msg += f" ... ({len(available)} total)"
            raise TemplateNotFoundError(msg)
        return self._mapping[name], None

    def list_templates(self) -> list[str]:
        return sorted(self._mapping.keys())


class ChoiceLoader:
    """Try multiple loaders in order, returning the first match.

    Example:
            >>> custom = DictLoader({"nav": "<nav>Custom</nav>"})
            >>> default = DictLoader({"nav": "<nav>Default</nav>", "footer": "<footer/>"})
            >>> env = Environment(loader=ChoiceLoader([custom, default]))
            >>> env.render("nav")
            '<nav>Custom</nav>'
            >>> env.render("footer")
            '<footer/>'

    Raises:
        TemplateNotFoundError: If no loader can find the template
    """

    __slots__ = ("_loaders",)

    def __init__(self, loaders: Sequence[Loader]):
        self._loaders = list(loaders)

    def get_source(self, name: str) -> tuple[str, str | None]:
        """Try each loader in order, return first match."""
        for loader in self._loaders:
            try:
                return loader.get_source(name)
            except TemplateNotFoundError:
                continue
        raise TemplateNotFoundError(
            f"Template '{name}' not found in any of {len(self._loaders)} loaders"
        )

    def list_templates(self) -> list[str]:
        """Merge template lists from all loaders (deduplicated, sorted)."""
        templates: set[str] = set()
        for loader in self._loaders:
            templates.update(loader.list_templates())
        return sorted(templates)


class FunctionLoader:
    """Wrap a callable as a template loader.

    The function takes a template name and returns the source string, a
    ``(source, filename)`` tuple, or ``None`` when not found.

    Example:
            >>> def load(name):
            ...     return "Hello, {{name}}!" if name == "greeting" else None
            >>> env = Environment(loader=FunctionLoader(load))
            >>> env.render("greeting", name="World")
            'Hello, World!'

    Raises:
        TemplateNotFoundError: If ``load_func`` returns ``None``
    """

    __slots__ = ("_load_func",)

    def __init__(self, load_func: Callable[[str], str | tuple[str, str | None] | None]):
        self._load_func = load_func

    def get_source(self, name: str) -> tuple[str, str | None]:
        result = self._load_func(name)
        if result is None:
            raise TemplateNotFoundError(f"Template '{name}' not found")
        if isinstance(result, str):
            return result, "<function>"
        return result

    def list_templates(self) -> list[str]:
        """FunctionLoader cannot enumerate templates."""
        return []
