"""Whole-buffer tree parsing for tagged model output.

Key Components:
    TagTreeParser: Parser with lazy child resolution and a node arena
    parse: One-shot parse with an optional visitor
    TextNode, ElementNode: Parsed node types
    NodeArena: Index-based parent links for parsed nodes
    create_tag_parser: Regex extraction of a single tag
"""

from .extract import TagMatch, create_tag_parser, create_tag_regex
from .nodes import (
    ElementNode,
    Node,
    NodeArena,
    NodeType,
    TextNode,
    is_element,
    is_text,
)
from .parser import Descend, NodeVisitor, TagTreeParser, parse

__all__ = [
    "Descend",
    "ElementNode",
    "Node",
    "NodeArena",
    "NodeType",
    "NodeVisitor",
    "TagMatch",
    "TagTreeParser",
    "TextNode",
    "create_tag_parser",
    "create_tag_regex",
    "is_element",
    "is_text",
    "parse",
]
