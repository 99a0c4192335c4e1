"""Tests for the Stache parser: tag dispatch, nesting and whitespace elision."""

from __future__ import annotations

import warnings

import pytest

from stache.environment.exceptions import (
    ErrorCode,
    MismatchedTagError,
    TemplateSyntaxError,
    UnclosedSectionError,
    UnsupportedPragmaWarning,
)
from stache.lexer import tokenize
from stache.nodes import Comment, Inversion, Partial, Pragma, Section, Template, Text, Variable
from stache.parser import Parser


def parse(source: str, name: str | None = None) -> Template:
    return Parser(tokenize(source, name=name), name, None, source).parse()


def _shape(nodes) -> list:
    """Compact (type, payload) view of a node list for assertions."""
    shape = []
    for node in nodes:
        if isinstance(node, Text):
            shape.append(("Text", node.value))
        elif isinstance(node, Variable):
            shape.append(("Variable", node.name, node.escape))
        elif isinstance(node, (Section, Inversion)):
            shape.append((type(node).__name__, node.name, _shape(node.body)))
        elif isinstance(node, Partial):
            shape.append(("Partial", node.name))
        else:
            shape.append((type(node).__name__,))
    return shape


class TestTagDispatch:
    """Each tag form produces the right node."""

    def test_text_and_variable(self):
        """Plain variables are escaped by default."""
        assert _shape(parse("Hi {{ name }}!").body) == [
            ("Text", "Hi "),
            ("Variable", "name", True),
            ("Text", "!"),
        ]

    def test_triple_and_ampersand_are_unescaped(self):
        """{{{x}}} and {{&x}} both produce unescaped variables."""
        assert _shape(parse("{{{a}}}{{& b }}").body) == [
            ("Variable", "a", False),
            ("Variable", "b", False),
        ]

    def test_partial(self):
        """{{>name}} produces a Partial."""
        assert _shape(parse("{{> row }}").body) == [("Partial", "row")]

    def test_comment_produces_comment_node(self):
        """Comments are kept as nodes with their text."""
        (node,) = parse("{{! a note }}").body
        assert isinstance(node, Comment)
        assert node.text == "a note"

    def test_pragma_warns(self):
        """Pragmas are accepted but emit UnsupportedPragmaWarning."""
        with pytest.warns(UnsupportedPragmaWarning, match="IMPLICIT-ITERATOR"):
            (node,) = parse("{{%IMPLICIT-ITERATOR}}").body
        assert isinstance(node, Pragma)
        assert node.text == "IMPLICIT-ITERATOR"

    def test_dot_is_a_variable(self):
        """The implicit iterator is an ordinary variable named '.'."""
        assert _shape(parse("{{.}}").body) == [("Variable", ".", True)]

    def test_section_and_inversion(self):
        """Sections and inversions own their children."""
        tree = parse("{{#a}}x{{/a}}{{^b}}y{{/b}}")
        assert _shape(tree.body) == [
            ("Section", "a", [("Text", "x")]),
            ("Inversion", "b", [("Text", "y")]),
        ]

    def test_section_line_range(self):
        """Section nodes record the lines they span."""
        (section,) = parse("{{#a}}\nx\n{{/a}}").body
        assert (section.lineno, section.end_lineno) == (1, 3)
        assert section.spans_lines

    def test_template_name(self):
        """The root node carries the template name."""
        assert parse("x", name="page").name == "page"


class TestNesting:
    """LIFO discipline for section tags."""

    def test_nested_sections(self):
        """Inner sections close before outer ones."""
        tree = parse("{{#a}}{{#b}}{{c}}{{/b}}{{/a}}")
        assert _shape(tree.body) == [("Section", "a", [("Section", "b", [("Variable", "c", True)])])]

    def test_mismatched_close(self):
        """A close tag naming the wrong section reports both names and the line."""
        with pytest.raises(MismatchedTagError) as exc_info:
            parse("{{#foo}}\nbody\n{{/bar}}")
        error = exc_info.value
        assert (error.expected, error.found, error.lineno) == ("foo", "bar", 3)
        assert error.code is ErrorCode.MISMATCHED_TAG
        assert "foo" in str(error) and "bar" in str(error)

    def test_close_without_open(self):
        """A stray close tag has no expected name."""
        with pytest.raises(MismatchedTagError) as exc_info:
            parse("text {{/x}}")
        assert exc_info.value.expected is None
        assert exc_info.value.found == "x"

    def test_unclosed_section(self):
        """A section open at end of input is reported with its opening line."""
        with pytest.raises(UnclosedSectionError) as exc_info:
            parse("a\n{{#items}}\nb")
        assert exc_info.value.section == "items"
        assert exc_info.value.start_lineno == 2

    def test_unclosed_inner_section_is_reported(self):
        """The innermost unclosed section is named."""
        with pytest.raises(UnclosedSectionError) as exc_info:
            parse("{{#outer}}{{#inner}}")
        assert exc_info.value.section == "inner"

    @pytest.mark.parametrize("source", ["{{}}", "{{  }}", "{{#}}", "{{/ }}", "{{>}}"])
    def test_empty_tags_rejected(self, source):
        """Tags without a name are syntax errors."""
        with pytest.raises(TemplateSyntaxError) as exc_info:
            parse(source)
        assert exc_info.value.code is ErrorCode.EMPTY_TAG


class TestWhitespaceElision:
    """Lines holding only section control tags leave no blank lines behind."""

    def test_standalone_section_lines_removed(self):
        """Open and close tags on their own lines vanish with their newlines."""
        tree = parse("{{#items}}\n  x\n{{/items}}\n")
        assert _shape(tree.body) == [("Section", "items", [("Text", "  x\n")])]

    def test_indented_standalone_tags(self):
        """Indentation before standalone open/close tags is dropped too."""
        tree = parse("  {{#a}}\n  x\n  {{/a}}\nend")
        assert _shape(tree.body) == [("Section", "a", [("Text", "  x\n")]), ("Text", "end")]

    def test_inline_section_keeps_surrounding_text(self):
        """A single-line section elides nothing."""
        tree = parse("a {{#x}}b{{/x}} c\n")
        assert _shape(tree.body) == [
            ("Text", "a "),
            ("Section", "x", [("Text", "b")]),
            ("Text", " c\n"),
        ]

    def test_content_after_open_tag_keeps_newline(self):
        """The first body line keeps its newline when it holds output."""
        tree = parse("{{#items}}{{.}}\n{{/items}}")
        assert _shape(tree.body) == [
            ("Section", "items", [("Variable", ".", True), ("Text", "\n")]),
        ]

    def test_text_after_close_tag_is_kept(self):
        """Text following a close tag on the same line stays."""
        tree = parse("{{#a}}\nx\n{{/a}} tail\n")
        assert _shape(tree.body) == [("Section", "a", [("Text", "x\n")]), ("Text", " tail\n")]

    def test_non_blank_line_before_open_tag(self):
        """Text before an open tag is kept together with its line."""
        tree = parse("head {{#a}}\nx\n{{/a}}\n")
        assert _shape(tree.body) == [("Text", "head "), ("Section", "a", [("Text", "x\n")])]

    def test_blank_lines_in_body_are_literal(self):
        """Empty lines inside a body are ordinary text."""
        tree = parse("{{#a}}\n\nx\n{{/a}}")
        assert _shape(tree.body) == [("Section", "a", [("Text", "\n"), ("Text", "x\n")])]

    def test_crlf_is_not_a_blank_line(self):
        """Only spaces and tabs count as blank; other text is reproduced."""
        tree = parse("{{#a}}\r\nx\n{{/a}}")
        assert _shape(tree.body) == [("Section", "a", [("Text", "\r\n"), ("Text", "x\n")])]

    def test_pragma_inside_section_does_not_block_elision(self):
        """Pragmas and comments do not make a line non-blank."""
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UnsupportedPragmaWarning)
            tree = parse("{{#a}}{{%P}}\nx\n{{/a}}")
        (section,) = tree.body
        assert [type(n).__name__ for n in section.body] == ["Pragma", "Text"]
        assert section.body[1].value == "x\n"
