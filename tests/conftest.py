"""Pytest configuration and fixtures for Stache tests."""

import pytest

from stache import DictLoader, Environment
from stache.environment import terminal
from stache.program_store import PROGRAM_DIR_ENV


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Keep tests independent of the caller's shell: no program store, no colors."""
    monkeypatch.delenv(PROGRAM_DIR_ENV, raising=False)
    monkeypatch.setattr(terminal, "_USE_COLORS", False)


@pytest.fixture
def env():
    """Create a basic Stache Environment."""
    return Environment()


@pytest.fixture
def env_with_loader():
    """Create a Stache Environment with DictLoader templates and partials."""
    loader = DictLoader(
        {
            "page": "<ul>\n{{#items}}\n  {{>row}}\n{{/items}}\n</ul>\n",
            "row": "<li>{{name}}</li>\n",
            "greeting": "Hello {{name}}!",
            "header": "<h1>{{title}}</h1>",
            "layout": "{{>header}}\n{{>body}}",
            "body": "<p>{{text}}</p>",
            "loop": "{{>loop}}",
        }
    )
    return Environment(loader=loader)


@pytest.fixture
def program_dir(tmp_path):
    """Directory for on-disk program stores."""
    return tmp_path / "programs"
