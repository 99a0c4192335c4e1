"""Full compile pipeline benchmarks: scan → parse → lower → program cache.

Measures env.from_string() for the full pipeline. Each round uses a
fresh Environment so the program cache does not turn compiles into hits,
except in the cache-hit benchmark.

Run with: pytest benchmarks/test_benchmark_compile_pipeline.py --benchmark-only -v
"""

from __future__ import annotations

import pytest
from pytest_benchmark.fixture import BenchmarkFixture

from stache import Environment

MINIMAL = "{{name}}"

SMALL = """\
{{#items}}
  <li>{{name}}</li>
{{/items}}
"""

MEDIUM = """\
{{#user}}
  <div class="profile">
    <h1>{{name}}</h1>
    <p>{{bio}}</p>
    {{#posts}}
      <article>
        <h2>{{title}}</h2>
        <p>{{{content}}}</p>
      </article>
    {{/posts}}
  </div>
{{/user}}
{{^user}}
  <p>Please log in.</p>
{{/user}}
"""

LARGE = MEDIUM * 20


def _compile_fresh(source: str) -> None:
    Environment().from_string(source)


@pytest.mark.benchmark(group="compile:pipeline:minimal")
def test_compile_minimal(benchmark: BenchmarkFixture) -> None:
    """Full pipeline: minimal template."""
    benchmark(_compile_fresh, MINIMAL)


@pytest.mark.benchmark(group="compile:pipeline:small")
def test_compile_small(benchmark: BenchmarkFixture) -> None:
    """Full pipeline: small template."""
    benchmark(_compile_fresh, SMALL)


@pytest.mark.benchmark(group="compile:pipeline:medium")
def test_compile_medium(benchmark: BenchmarkFixture) -> None:
    """Full pipeline: medium template."""
    benchmark(_compile_fresh, MEDIUM)


@pytest.mark.benchmark(group="compile:pipeline:large")
def test_compile_large(benchmark: BenchmarkFixture) -> None:
    """Full pipeline: large template."""
    benchmark(_compile_fresh, LARGE)


@pytest.mark.benchmark(group="compile:pipeline:cache-hit")
def test_compile_large_cached_program(benchmark: BenchmarkFixture) -> None:
    """Scan and parse only: the program is already cached."""
    env = Environment()
    env.from_string(LARGE)
    benchmark(env.from_string, LARGE)
