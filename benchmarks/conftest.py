from __future__ import annotations

import json
import os
import platform
import sys
from dataclasses import dataclass, field
from importlib import metadata
from pathlib import Path

import pytest

from stache import DictLoader, Environment

BASE_DIR = Path(__file__).resolve().parent
BENCHMARK_OUTPUT_DIR = BASE_DIR.parent / ".benchmarks"

TEMPLATES = {
    "page": (
        "<h1>{{title}}</h1>\n"
        "<ul>\n"
        "{{#items}}\n"
        "  {{>row}}\n"
        "{{/items}}\n"
        "</ul>\n"
        "{{^items}}\n"
        "<p>Nothing here.</p>\n"
        "{{/items}}\n"
    ),
    "row": '<li class="{{kind}}">{{name}}: {{description}}</li>',
}


@dataclass
class Item:
    name: str
    description: str
    kind: str = "plain"
    tags: list[str] = field(default_factory=list)


def _version(dist: str) -> str:
    try:
        return metadata.version(dist)
    except metadata.PackageNotFoundError:
        return "unknown"


def collect_environment_metadata() -> dict[str, object]:
    """Capture reproducibility metadata for each benchmark run."""
    return {
        "python": {
            "version": platform.python_version(),
            "implementation": platform.python_implementation(),
            "executable": sys.executable,
        },
        "os": {
            "system": platform.system(),
            "release": platform.release(),
            "machine": platform.machine(),
        },
        "cpu": {"count": os.cpu_count()},
        "stache": _version("stache"),
    }


@pytest.fixture(scope="session")
def environment_metadata() -> dict[str, object]:
    """Write environment metadata to .benchmarks for ingestion."""
    meta = collect_environment_metadata()
    BENCHMARK_OUTPUT_DIR.mkdir(exist_ok=True)
    (BENCHMARK_OUTPUT_DIR / "environment.json").write_text(json.dumps(meta, indent=2))
    return meta


@pytest.fixture(scope="session")
def stache_env() -> Environment:
    return Environment(loader=DictLoader(TEMPLATES))


@pytest.fixture(scope="session")
def small_context() -> dict[str, object]:
    return {
        "title": "Small",
        "items": [{"name": f"item {i}", "description": "<b>x</b>"} for i in range(10)],
    }


@pytest.fixture(scope="session")
def large_context() -> dict[str, object]:
    return {
        "title": "Large",
        "items": [
            Item(f"item {i}", f"description {i} & more", kind="odd" if i % 2 else "even")
            for i in range(1000)
        ],
    }
