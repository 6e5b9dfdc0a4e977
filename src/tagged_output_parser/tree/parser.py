"""Whole-buffer tree parser for tagged model output.

Splits a complete response into text and element nodes. Child nodes are only
computed when asked for, either through the descend callback handed to a
visitor or through ``TagTreeParser.children_of``.

Closing tags are matched by the first ``</name>`` after the opening tag, not
by a nesting-aware search: in ``<a>x<a>y</a>z</a>`` the outer element ends at
the inner ``</a>`` and ``z</a>`` remains as text.
"""

import re
from typing import Callable, List, Optional

from tagged_output_parser.shared import (
    ParserConfig,
    TreeParserConfig,
    get_logger,
    set_package_level,
)
from tagged_output_parser.tokenization.attributes import parse_attributes

from .nodes import ElementNode, Node, NodeArena, TextNode

Descend = Callable[[], List[Node]]
NodeVisitor = Callable[[Node, Descend], Optional[Node]]

_TAG_OPENER = re.compile(r"[a-zA-Z]")


def _no_children() -> List[Node]:
    return []


class TagTreeParser:
    """Parser owning the node arena for one or more parse calls."""

    def __init__(
        self,
        config: Optional[TreeParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the tree parser.

        Args:
            config: Tree parser configuration
            correlation_id: Optional correlation ID for log records
        """
        self.config = config or TreeParserConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "tag_tree_parser")
        self.arena = NodeArena()

    @classmethod
    def from_config(cls, config: ParserConfig) -> "TagTreeParser":
        """Build a tree parser from a complete ParserConfig.

        Applies ``logging_level`` to the package logger and carries
        ``correlation_id`` into log records.
        """
        set_package_level(config.logging_level)
        return cls(config.tree, correlation_id=config.correlation_id)

    def parse(self, text: str, visitor: Optional[NodeVisitor] = None) -> List[Node]:
        """Parse a complete buffer into top-level nodes.

        Args:
            text: Complete model output
            visitor: Optional ``visitor(node, descend)`` called for every node
                in document order, before its children are resolved. A
                returned node replaces the visited one; None keeps it.

        Returns:
            Top-level nodes in document order
        """
        if not isinstance(text, str):
            raise TypeError(f"text must be str, not {type(text).__name__}")
        return self._parse(text, visitor, None)

    def children_of(self, node: Node, visitor: Optional[NodeVisitor] = None) -> List[Node]:
        """Get an element's children, parsing its content on first use."""
        if not isinstance(node, ElementNode) or node.closed:
            return []
        if node.children is None:
            if node.depth >= self.config.max_depth:
                self.logger.warning(
                    "Maximum nesting depth reached, not descending",
                    extra={"element": node.name, "depth": node.depth}
                )
                node.children = []
            else:
                node.children = self._parse(node.content, visitor, node)
        return node.children

    def parent_of(self, node: Node) -> Optional[ElementNode]:
        """Get a node's parent element, None at top level."""
        return self.arena.parent_of(node)

    def walk(self, nodes: List[Node]) -> List[Node]:
        """Flatten nodes depth-first, descending into every element."""
        flattened: List[Node] = []
        for node in nodes:
            flattened.append(node)
            flattened.extend(self.walk(self.children_of(node)))
        return flattened

    def _parse(
        self,
        text: str,
        visitor: Optional[NodeVisitor],
        parent: Optional[ElementNode]
    ) -> List[Node]:
        nodes: List[Node] = []
        working = text.strip()
        # Literal text carried over from stray closing tags and lone '<'
        carried = ""

        def emit(node: Node, descend: Descend) -> None:
            self.arena.add(node, parent)
            if visitor is not None:
                replacement = visitor(node, descend)
                if replacement is not None and replacement is not node:
                    if replacement.index == -1:
                        self.arena.add(replacement, parent)
                    node = replacement
            nodes.append(node)

        while working:
            tag_start = working.find("<")
            if tag_start == -1:
                emit(TextNode((carried + working).strip()), _no_children)
                carried = ""
                break

            tag_end = working.find(">", tag_start)
            opener = working[tag_start + 1:tag_start + 2]

            if not _TAG_OPENER.match(opener):
                # Stray closing tag or '<' used as a symbol
                if opener == "/" and tag_end != -1:
                    literal_end = tag_end + 1
                else:
                    literal_end = tag_start + 1
                carried += working[:literal_end]
                working = working[literal_end:]
                continue

            if tag_start > 0 or carried:
                emit(TextNode((carried + working[:tag_start]).strip()), _no_children)
                carried = ""

            if tag_end == -1:
                self.logger.debug(
                    "Unterminated opening tag, stopping",
                    extra={"dropped_chars": len(working) - tag_start}
                )
                break

            tag_content = working[tag_start + 1:tag_end]
            closed = tag_content.endswith("/")
            if closed:
                tag_content = tag_content[:-1]

            parts = tag_content.split(None, 1)
            name = parts[0]
            attributes = parse_attributes(parts[1].strip() if len(parts) > 1 else "")

            if closed:
                element = ElementNode(name=name, attributes=attributes, closed=True)
                emit(element, _no_children)
                working = working[tag_end + 1:].strip()
                continue

            close_tag = f"</{name}>"
            close_pos = working.find(close_tag, tag_end + 1)
            if close_pos == -1:
                self.logger.debug(
                    "No closing tag found, stopping",
                    extra={"element": name}
                )
                break

            element = ElementNode(
                name=name,
                attributes=attributes,
                content=working[tag_end + 1:close_pos].strip(),
            )
            emit(element, self._descender(element, visitor))
            working = working[close_pos + len(close_tag):].strip()

        if carried:
            emit(TextNode(carried.strip()), _no_children)

        return nodes

    def _descender(self, element: ElementNode, visitor: Optional[NodeVisitor]) -> Descend:
        def descend() -> List[Node]:
            return self.children_of(element, visitor)
        return descend


def parse(text: str, visitor: Optional[NodeVisitor] = None) -> List[Node]:
    """Parse a complete buffer with a fresh parser.

    Use TagTreeParser directly to keep access to ``children_of`` and the
    node arena after parsing.
    """
    return TagTreeParser().parse(text, visitor)
