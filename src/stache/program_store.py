"""On-disk program store for warming the program cache across restarts.

Each Program is written as JSON under a path derived from its identity:

    ```
    <directory>/stache/programs/3f/Program3f9a….json
    ```

The file holds the content hash and the lowered instruction lists. On
load the hash is recomputed; files that fail to parse or whose content no
longer matches their name are ignored (with a warning) and rebuilt by the
caller. The store is never required for correct rendering.

Example:
        >>> store = ProgramStore("/tmp/stache-cache")
        >>> env = Environment(program_store=store)
        >>> env.from_string("Hello {{name}}")   # built and saved
        >>> Environment(program_store=store).program_cache.warm()
        1

Thread-Safety:
Writes go to a temporary file that is renamed into place, so concurrent
readers never see a partial file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

from stache.compiler.instructions import from_lowered
from stache.compiler.program import Program, content_hash

logger = logging.getLogger(__name__)

NAMESPACE = ("stache", "programs")
PROGRAM_DIR_ENV = "STACHE_PROGRAM_DIR"


class ProgramStore:
    """Persist Programs as JSON files in a directory tree.

    Attributes:
        directory: Root directory of the store
    """

    __slots__ = ("directory",)

    def __init__(self, directory: str | os.PathLike[str]):
        self.directory = Path(directory)

    @classmethod
    def from_env(cls) -> ProgramStore | None:
        """Store rooted at ``$STACHE_PROGRAM_DIR``, or None when unset."""
        directory = os.environ.get(PROGRAM_DIR_ENV)
        return cls(directory) if directory else None

    @property
    def root(self) -> Path:
        return self.directory.joinpath(*NAMESPACE)

    def path_for(self, digest: str) -> Path:
        return self.root / digest[:2] / f"Program{digest}.json"

    def load(self, digest: str) -> Program | None:
        """Return the stored Program for ``digest``, or None."""
        return self._read(self.path_for(digest), digest)

    def save(self, program: Program) -> Path:
        """Write ``program``; returns the file path.

        Raises:
            OSError: If the directory or file cannot be written.
        """
        path = self.path_for(program.content_hash)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(
            {"hash": program.content_hash, "instructions": program.lowered()},
            ensure_ascii=False,
        )
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Saved %s to %s", program.class_name, path)
        return path

    def __iter__(self) -> Iterator[Program]:
        """Yield every readable stored Program."""
        if not self.root.is_dir():
            return
        for path in sorted(self.root.rglob("Program*.json")):
            program = self._read(path, path.stem.removeprefix("Program"))
            if program is not None:
                yield program

    def clear(self) -> int:
        """Delete all stored programs; return how many files were removed."""
        removed = 0
        if self.root.is_dir():
            for path in self.root.rglob("Program*.json"):
                path.unlink(missing_ok=True)
                removed += 1
        return removed

    def stats(self) -> dict[str, int]:
        files = list(self.root.rglob("Program*.json")) if self.root.is_dir() else []
        return {
            "file_count": len(files),
            "total_bytes": sum(path.stat().st_size for path in files),
        }

    def _read(self, path: Path, digest: str) -> Program | None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable stored program %s: %s", path, exc)
            return None

        try:
            instructions = from_lowered(data["instructions"])
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed stored program %s: %s", path, exc)
            return None

        actual = content_hash(instructions)
        if actual != digest or data.get("hash") != digest:
            logger.warning("Ignoring stored program %s: content hash mismatch", path)
            return None
        return Program(instructions, actual)
