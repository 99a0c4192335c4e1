"""Tests for Environment configuration, caching and loaders."""

from __future__ import annotations

import io
import logging

import pytest

from stache import (
    ChoiceLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    FunctionLoader,
    ProgramStore,
)
from stache.environment.exceptions import TemplateIOError, TemplateNotFoundError
from stache.program_store import PROGRAM_DIR_ENV


class TestConfiguration:
    """Constructor validation and defaults."""

    @pytest.mark.parametrize(
        ("open_marker", "close_marker"),
        [("", "}}"), ("{{", ""), ("%%", "%%"), ("{ {", "}}")],
    )
    def test_invalid_markers(self, open_marker, close_marker):
        with pytest.raises(ValueError):
            Environment(open_marker=open_marker, close_marker=close_marker)

    def test_invalid_partial_depth(self):
        with pytest.raises(ValueError, match="max_partial_depth"):
            Environment(max_partial_depth=0)

    def test_custom_markers(self):
        env = Environment(open_marker="<%", close_marker="%>")
        template = env.from_string("<%#items%><%.%> <%/items%>{{literal}}")
        assert template.render({"items": [1, 2]}) == "1 2 {{literal}}"

    def test_from_stream(self, env):
        assert env.from_string(io.StringIO("Hi {{name}}")).render(name="Ada") == "Hi Ada"

    def test_no_store_by_default(self, env):
        assert env.program_store is None

    def test_store_from_environment_variable(self, monkeypatch, program_dir):
        monkeypatch.setenv(PROGRAM_DIR_ENV, str(program_dir))
        env = Environment()
        assert env.program_store is not None
        template = env.from_string("{{x}}")
        assert env.program_store.path_for(template.program.content_hash).is_file()

    def test_repr(self, env):
        assert repr(env) == "<Environment markers='{{'/'}}' templates=0 programs=0>"


class TestTemplateCache:
    """Named templates and shared programs."""

    def test_get_template_is_cached(self, env_with_loader):
        first = env_with_loader.get_template("greeting")
        assert env_with_loader.get_template("greeting") is first
        assert env_with_loader.cache_info()["templates"]["size"] == 1

    def test_equal_sources_share_a_program(self, env):
        a = env.from_string("Hello {{name}}!", name="a")
        b = env.from_string("Hello {{name}}!", name="b")
        assert a is not b
        assert a.program is b.program
        assert env.cache_info()["programs"] == {"size": 1, "hits": 1, "misses": 1}

    def test_line_numbers_distinguish_programs(self, env):
        a = env.from_string("{{#a}}{{/a}}{{name}}")
        b = env.from_string("{{#a}}\n{{/a}}{{name}}")
        assert a.program.content_hash != b.program.content_hash

    def test_clear_cache(self, env_with_loader):
        first = env_with_loader.get_template("greeting")
        env_with_loader.clear_cache()
        assert env_with_loader.cache_info()["programs"]["size"] == 0
        assert env_with_loader.get_template("greeting") is not first

    def test_lru_eviction(self):
        env = Environment(loader=DictLoader({"a": "A", "b": "B"}), cache_size=1)
        first = env.get_template("a")
        env.get_template("b")
        assert env.get_template("a") is not first

    def test_no_loader(self, env):
        with pytest.raises(TemplateNotFoundError, match="no loader"):
            env.get_template("anything")
        assert env.list_templates() == []

    def test_list_templates(self, env_with_loader):
        assert "greeting" in env_with_loader.list_templates()


class TestDebugDumps:
    """Program listings for newly built programs."""

    def test_dump_written_once(self, tmp_path):
        env = Environment(debug=True, debug_dir=tmp_path)
        template = env.from_string("Hello {{name}}")
        path = tmp_path / f"{template.program.class_name}.txt"
        assert path.read_text(encoding="utf-8") == template.program.dump()

        path.unlink()
        env.from_string("Hello {{name}}")
        assert not path.exists()

    def test_dump_logged(self, caplog):
        env = Environment(debug=True)
        with caplog.at_level(logging.DEBUG, logger="stache.environment.core"):
            env.from_string("{{x}}", name="tiny")
        assert "Program for tiny" in caplog.text

    def test_no_dump_without_debug(self, tmp_path):
        Environment(debug_dir=tmp_path).from_string("{{x}}")
        assert list(tmp_path.iterdir()) == []

    def test_unwritable_dump_dir_only_warns(self, tmp_path, caplog):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory", encoding="utf-8")
        env = Environment(debug=True, debug_dir=blocker / "dumps")
        with caplog.at_level(logging.WARNING, logger="stache.environment.core"):
            template = env.from_string("{{x}}")
        assert template.render(x=1) == "1"
        assert "Could not write program dump" in caplog.text


class TestProgramStoreIntegration:
    """Programs survive environment restarts through a store."""

    def test_warm_from_store(self, program_dir):
        store = ProgramStore(program_dir)
        Environment(program_store=store).from_string("Hello {{name}}")

        env = Environment(program_store=store)
        assert env.program_cache.warm() == 1
        template = env.from_string("Hello {{name}}")
        assert env.cache_info()["programs"]["hits"] == 1
        assert template.render(name="Ada") == "Hello Ada"


class TestFileSystemLoader:
    """Loading from directories."""

    @pytest.fixture
    def template_dir(self, tmp_path):
        (tmp_path / "row.mustache").write_text("<li>{{name}}</li>", encoding="utf-8")
        (tmp_path / "page.html").write_text("{{#items}}{{>row}}{{/items}}", encoding="utf-8")
        (tmp_path / "emails").mkdir()
        (tmp_path / "emails" / "welcome.mustache").write_text("Hi {{name}}", encoding="utf-8")
        return tmp_path

    def test_extension_fallback(self, template_dir):
        source, filename = FileSystemLoader(template_dir).get_source("row")
        assert source == "<li>{{name}}</li>"
        assert filename == str(template_dir / "row.mustache")

    def test_exact_name(self, template_dir):
        source, _ = FileSystemLoader(template_dir).get_source("page.html")
        assert "{{>row}}" in source

    def test_nested_names(self, template_dir):
        source, _ = FileSystemLoader(template_dir).get_source("emails/welcome")
        assert source == "Hi {{name}}"

    def test_first_path_wins(self, template_dir, tmp_path_factory):
        override = tmp_path_factory.mktemp("override")
        (override / "row.mustache").write_text("<b>{{name}}</b>", encoding="utf-8")
        loader = FileSystemLoader([override, template_dir])
        assert loader.get_source("row")[0] == "<b>{{name}}</b>"
        assert loader.paths == [override, template_dir]

    def test_not_found(self, template_dir):
        with pytest.raises(TemplateNotFoundError, match="missing"):
            FileSystemLoader(template_dir).get_source("missing")

    def test_undecodable_file(self, template_dir):
        (template_dir / "bad.mustache").write_bytes(b"\xff\xfe{{x}}")
        with pytest.raises(TemplateIOError, match="bad") as exc_info:
            FileSystemLoader(template_dir).get_source("bad")
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)

    def test_list_templates(self, template_dir):
        assert FileSystemLoader(template_dir).list_templates() == [
            "emails/welcome.mustache",
            "page.html",
            "row.mustache",
        ]

    def test_render_with_partials(self, template_dir):
        env = Environment(loader=FileSystemLoader(template_dir))
        out = env.render("page.html", {"items": [{"name": "a"}, {"name": "b"}]})
        assert out == "<li>a</li><li>b</li>"


class TestOtherLoaders:
    """DictLoader, ChoiceLoader and FunctionLoader."""

    def test_dict_loader_suggestion(self):
        loader = DictLoader({"greeting": "hi"})
        with pytest.raises(TemplateNotFoundError, match="Did you mean 'greeting'"):
            loader.get_source("greting")

    def test_dict_loader_lists_available(self):
        loader = DictLoader({"alpha": "a", "beta": "b"})
        with pytest.raises(TemplateNotFoundError, match="Available: alpha, beta"):
            loader.get_source("zzz")

    def test_choice_loader_order(self):
        custom = DictLoader({"nav": "custom"})
        default = DictLoader({"nav": "default", "footer": "footer"})
        env = Environment(loader=ChoiceLoader([custom, default]))
        assert env.render("nav") == "custom"
        assert env.render("footer") == "footer"
        assert env.list_templates() == ["footer", "nav"]

    def test_choice_loader_not_found(self):
        with pytest.raises(TemplateNotFoundError, match="any of 1 loaders"):
            ChoiceLoader([DictLoader({})]).get_source("x")

    def test_function_loader(self):
        def load(name):
            if name == "greeting":
                return "Hello, {{name}}!"
            if name == "tuple":
                return "T", "virtual://tuple"
            return None

        loader = FunctionLoader(load)
        assert loader.get_source("greeting") == ("Hello, {{name}}!", "<function>")
        assert loader.get_source("tuple") == ("T", "virtual://tuple")
        assert loader.list_templates() == []
        with pytest.raises(TemplateNotFoundError):
            loader.get_source("other")
