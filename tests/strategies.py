"""Shared hypothesis strategies for Stache property-based testing.

Strategies generate structurally valid template inputs and matching data:

- **Lexer**: Plain text with no markers, and arbitrary (fuzz-like) text
- **Names**: Variable names that are valid as tag bodies and data keys
- **Templates**: Balanced fragments of text, variables and sections

Individual test modules compose them into property-specific strategies.
"""

from __future__ import annotations

from hypothesis import strategies as st

# ---------------------------------------------------------------------------
# Lexer strategies
# ---------------------------------------------------------------------------

# Plain text that does NOT contain the default markers (no { or })
plain_text = st.text(
    alphabet=st.characters(
        blacklist_categories=("Cs",),  # no surrogates
        blacklist_characters="{}\x00",
    ),
    min_size=1,
    max_size=200,
)

# Arbitrary text that might stress the scanner
arbitrary_template_source = st.text(
    alphabet=st.characters(blacklist_categories=("Cs",)),
    min_size=0,
    max_size=300,
)

# ---------------------------------------------------------------------------
# Name strategies
# ---------------------------------------------------------------------------

identifier = st.from_regex(r"[a-z][a-z0-9_]{0,10}", fullmatch=True)

# Values that render via str() and are safe to compare after escaping
scalar_value = st.one_of(
    st.integers(min_value=-10_000, max_value=10_000),
    st.text(alphabet="abcxyz <>&\"' ", min_size=0, max_size=20),
)

# Custom marker pairs without whitespace and different from each other
marker_pair = st.sampled_from([("{{", "}}"), ("<%", "%>"), ("[[", "]]"), ("<<", ">>")])

# ---------------------------------------------------------------------------
# Template strategies
# ---------------------------------------------------------------------------

# Literal text safe for any of the marker pairs above
literal_text = st.text(alphabet="abc XYZ.,;\t-", min_size=1, max_size=20)


@st.composite
def balanced_template(draw, depth: int = 2) -> str:
    """A template whose sections are always properly nested."""
    parts = []
    for _ in range(draw(st.integers(min_value=1, max_value=4))):
        kind = draw(st.sampled_from(["text", "variable", "section"] if depth else ["text", "variable"]))
        if kind == "text":
            parts.append(draw(literal_text))
        elif kind == "variable":
            parts.append("{{" + draw(identifier) + "}}")
        else:
            name = draw(identifier)
            marker = draw(st.sampled_from(["#", "^"]))
            inner = draw(balanced_template(depth=depth - 1))
            parts.append(f"{{{{{marker}{name}}}}}{inner}{{{{/{name}}}}}")
    return "".join(parts)
