"""Tests for the whole-buffer tree parser."""

import logging

import pytest

from tagged_output_parser.shared import ParserConfig, TreeParserConfig
from tagged_output_parser.tree import (
    ElementNode,
    NodeType,
    TagTreeParser,
    TextNode,
    is_element,
    is_text,
    parse,
)


class TestTopLevelParsing:
    """Test splitting a buffer into text and element nodes."""

    def test_text_and_elements(self):
        """Test text around an element."""
        nodes = parse("Hello <b>bold</b> world")

        assert [n.type for n in nodes] == [NodeType.TEXT, NodeType.ELEMENT, NodeType.TEXT]
        assert nodes[0].content == "Hello"
        assert nodes[1].name == "b"
        assert nodes[1].content == "bold"
        assert nodes[2].content == "world"

    def test_attributes(self):
        """Test that attributes are parsed from the opening tag."""
        (node,) = parse('<output name="msg" channel="main">hi</output>')

        assert node.attributes == {"name": "msg", "channel": "main"}
        assert node.get_attribute("name") == "msg"
        assert node.get_attribute("missing", "x") == "x"

    def test_self_closing(self):
        """Test a self-closing element."""
        (node,) = parse('<img src="x.png"/>')

        assert is_element(node)
        assert node.name == "img"
        assert node.closed is True
        assert node.attributes == {"src": "x.png"}
        assert node.content == ""
        assert node.is_resolved

    def test_text_is_trimmed(self):
        """Test that text nodes are whitespace-trimmed."""
        (node,) = parse("  hello  ")

        assert is_text(node)
        assert node.content == "hello"

    def test_empty_input(self):
        """Test that empty input has no nodes."""
        assert parse("") == []
        assert parse("   ") == []

    def test_empty_element_content(self):
        """Test that whitespace-only content becomes empty."""
        (node,) = parse("<a> </a>")
        assert node.content == ""

    def test_non_string_rejected(self):
        """Test that non-string input raises TypeError."""
        with pytest.raises(TypeError):
            parse(None)

    def test_multiline_content(self):
        """Test that element content may span lines."""
        (node,) = parse("<think>\nline one\nline two\n</think>")
        assert node.content == "line one\nline two"


class TestNestingLimitation:
    """Test the first-closing-tag matching rule."""

    def test_same_name_nesting_ends_early(self):
        """Test that the first closing tag ends the element."""
        nodes = parse("<a>x<a>y</a>z</a>")

        assert len(nodes) == 2
        assert isinstance(nodes[0], ElementNode)
        assert nodes[0].content == "x<a>y"
        assert isinstance(nodes[1], TextNode)
        assert nodes[1].content == "z</a>"

    def test_different_names_nest(self):
        """Test nesting of differently named elements."""
        parser = TagTreeParser()
        (outer,) = parser.parse("<a>1<b>2</b></a>")
        children = parser.children_of(outer)

        assert [c.type for c in children] == [NodeType.TEXT, NodeType.ELEMENT]
        assert children[1].name == "b"
        assert children[1].content == "2"


class TestMalformedInput:
    """Test recovery from input that is not well formed."""

    def test_unterminated_opening_tag(self):
        """Test that parsing stops at an opening tag with no '>'."""
        (node,) = parse("text <a")
        assert node.content == "text"

    def test_missing_closing_tag(self):
        """Test that parsing stops at an element that is never closed."""
        (node,) = parse("before <a>never closed")
        assert node.content == "before"

    def test_closing_tag_case_sensitive(self):
        """Test that closing tags must match case."""
        assert parse("<A>x</a>") == []

    def test_lone_angle_bracket(self):
        """Test that '<' not starting a tag stays in the text."""
        (node,) = parse("1 < 2")
        assert node.content == "1 < 2"

    def test_stray_closing_tag(self):
        """Test that a closing tag with no opener is kept as text."""
        nodes = parse("x </b> y <c>z</c>")

        assert nodes[0].content == "x </b> y"
        assert nodes[1].name == "c"
        assert nodes[1].content == "z"


class TestLazyDescend:
    """Test that children are only parsed on request."""

    def test_children_not_computed_without_descend(self):
        """Test that a visitor not calling descend sees only top level."""
        seen = []
        nodes = parse("<a><b>x</b></a>tail", lambda node, descend: seen.append(node))

        assert seen == nodes
        assert nodes[0].children is None
        assert not nodes[0].is_resolved

    def test_descend_visits_in_document_order(self):
        """Test that descending inside the visitor visits depth-first."""
        seen = []

        def visitor(node, descend):
            seen.append(node.name if is_element(node) else node.content)
            descend()

        parse("<a><b>x</b>y</a>z", visitor)

        assert seen == ["a", "b", "x", "y", "z"]

    def test_descend_for_text_is_empty(self):
        """Test that descend on a text node yields nothing."""
        results = []
        parse("plain", lambda node, descend: results.append(descend()))
        assert results == [[]]

    def test_children_cached(self):
        """Test that children are parsed once."""
        parser = TagTreeParser()
        (outer,) = parser.parse("<a>1<b>2</b></a>")

        first = parser.children_of(outer)
        assert parser.children_of(outer) is first
        assert outer.is_resolved

    def test_selective_descend(self):
        """Test descending only into chosen elements."""
        def visitor(node, descend):
            if is_element(node) and node.name == "keep":
                descend()

        nodes = parse("<keep><i>a</i></keep><skip><i>b</i></skip>", visitor)

        assert nodes[0].children is not None
        assert nodes[1].children is None

    def test_walk(self):
        """Test depth-first flattening."""
        parser = TagTreeParser()
        nodes = parser.parse("<a>1<b>2</b></a>3")
        flat = parser.walk(nodes)

        assert [n.name if is_element(n) else n.content for n in flat] == [
            "a", "1", "b", "2", "3"
        ]


class TestVisitorReplacement:
    """Test replacing nodes from the visitor."""

    def test_replacement_node(self):
        """Test that a returned node replaces the visited one."""
        def visitor(node, descend):
            if is_element(node):
                return TextNode(f"[{node.name}]")
            return None

        nodes = parse("a <b>x</b> c", visitor)

        assert [n.content for n in nodes] == ["a", "[b]", "c"]
        assert all(is_text(n) for n in nodes)
        assert nodes[1].index != -1

    def test_none_keeps_node(self):
        """Test that returning None keeps the original node."""
        nodes = parse("<b>x</b>", lambda node, descend: None)
        assert nodes[0].name == "b"


class TestArena:
    """Test parent links and arena queries."""

    def test_parent_links(self):
        """Test that parents are resolved through the arena."""
        parser = TagTreeParser()
        (outer,) = parser.parse("<a>1<b>2</b></a>")
        inner = parser.children_of(outer)[1]
        (leaf,) = parser.children_of(inner)

        assert parser.parent_of(outer) is None
        assert parser.parent_of(inner) is outer
        assert parser.arena.ancestors_of(leaf) == [inner, outer]
        assert (outer.depth, inner.depth, leaf.depth) == (0, 1, 2)

    def test_arena_indices(self):
        """Test that every node gets a unique arena index."""
        parser = TagTreeParser()
        parser.walk(parser.parse("<a>1<b>2</b></a>"))

        assert len(parser.arena) == 4
        assert [n.index for n in parser.arena] == [0, 1, 2, 3]
        assert parser.arena.get(2).name == "b"

    def test_elements_named(self):
        """Test looking up discovered elements by name."""
        parser = TagTreeParser()
        parser.walk(parser.parse("<i>a</i><b><i>c</i></b>"))

        assert [e.content for e in parser.arena.elements_named("i")] == ["a", "c"]

    def test_to_dict_includes_resolved_children(self):
        """Test dictionary conversion."""
        parser = TagTreeParser()
        (outer,) = parser.parse('<a k="v">1</a>')
        assert "children" not in outer.to_dict()

        parser.children_of(outer)
        assert outer.to_dict() == {
            "type": "element",
            "name": "a",
            "attributes": {"k": "v"},
            "content": "1",
            "children": [{"type": "text", "content": "1"}],
        }


class TestMaxDepth:
    """Test the nesting depth guard."""

    def test_descent_stops_at_max_depth(self):
        """Test that elements at the depth limit get no children."""
        parser = TagTreeParser(TreeParserConfig(max_depth=1))
        (a,) = parser.parse("<a><b><c>x</c></b></a>")
        (b,) = parser.children_of(a)

        assert b.name == "b"
        assert parser.children_of(b) == []
        assert b.content == "<c>x</c>"

    def test_zero_depth_keeps_top_level(self):
        """Test that max_depth=0 still parses the top level."""
        parser = TagTreeParser(TreeParserConfig(max_depth=0))
        (a,) = parser.parse("<a><b>x</b></a>")

        assert a.name == "a"
        assert parser.children_of(a) == []


class TestFromConfig:
    """Test building a tree parser from a ParserConfig."""

    def test_tree_settings_and_logging_applied(self):
        """Test that max_depth, correlation ID and logging level are used."""
        package_logger = logging.getLogger("tagged_output_parser")
        previous_level = package_logger.level
        config = ParserConfig(correlation_id="req-7", logging_level="ERROR").override(
            tree__max_depth=1
        )

        try:
            parser = TagTreeParser.from_config(config)
            assert package_logger.level == logging.ERROR
        finally:
            package_logger.setLevel(previous_level)

        assert parser.correlation_id == "req-7"
        assert parser.logger.correlation_id == "req-7"
        (a,) = parser.parse("<a><b><c>x</c></b></a>")
        (b,) = parser.children_of(a)
        assert parser.children_of(b) == []
