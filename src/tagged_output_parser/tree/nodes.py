"""Node types for the whole-buffer tree parser.

Nodes never reference their parent object. Every node is registered in a
``NodeArena`` owned by the parser and points at its parent by arena index.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, List, Optional, Union


class NodeType(Enum):
    """Kinds of parsed nodes."""

    TEXT = auto()
    ELEMENT = auto()


@dataclass(eq=False)
class TextNode:
    """Plain text between tags. Always a leaf."""

    content: str
    index: int = -1
    parent: Optional[int] = None
    depth: int = 0

    @property
    def type(self) -> NodeType:
        return NodeType.TEXT

    @property
    def children(self) -> List["Node"]:
        return []

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "text", "content": self.content}


@dataclass(eq=False)
class ElementNode:
    """A tagged region: name, attributes and raw inner content.

    ``children`` stays None until the content is descended into.
    """

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    content: str = ""
    closed: bool = False
    children: Optional[List["Node"]] = None
    index: int = -1
    parent: Optional[int] = None
    depth: int = 0

    @property
    def type(self) -> NodeType:
        return NodeType.ELEMENT

    @property
    def is_resolved(self) -> bool:
        """Check whether children have been computed."""
        return self.closed or self.children is not None

    def get_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get attribute value with optional default."""
        return self.attributes.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation.

        Only children already computed are included.
        """
        result: Dict[str, Any] = {
            "type": "element",
            "name": self.name,
            "attributes": dict(self.attributes),
            "content": self.content,
        }
        if self.closed:
            result["closed"] = True
        if self.children is not None:
            result["children"] = [child.to_dict() for child in self.children]
        return result


Node = Union[TextNode, ElementNode]


def is_element(node: Node) -> bool:
    """Check if node is an ElementNode."""
    return node.type is NodeType.ELEMENT


def is_text(node: Node) -> bool:
    """Check if node is a TextNode."""
    return node.type is NodeType.TEXT


class NodeArena:
    """Flat storage of every node created by one parser."""

    def __init__(self) -> None:
        self._nodes: List[Node] = []

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def add(self, node: Node, parent: Optional[ElementNode] = None) -> Node:
        """Register a node and link it to its parent by index."""
        node.index = len(self._nodes)
        if parent is not None:
            node.parent = parent.index
            node.depth = parent.depth + 1
        self._nodes.append(node)
        return node

    def get(self, index: int) -> Node:
        """Get node by arena index."""
        return self._nodes[index]

    def parent_of(self, node: Node) -> Optional[ElementNode]:
        """Resolve a node's parent, None for top-level nodes."""
        if node.parent is None:
            return None
        parent = self._nodes[node.parent]
        if not isinstance(parent, ElementNode):
            raise ValueError(f"Node {node.index} has a non-element parent")
        return parent

    def ancestors_of(self, node: Node) -> List[ElementNode]:
        """List the node's ancestors, nearest first."""
        ancestors = []
        parent = self.parent_of(node)
        while parent is not None:
            ancestors.append(parent)
            parent = self.parent_of(parent)
        return ancestors

    def elements_named(self, name: str) -> List[ElementNode]:
        """Find every element with the given name discovered so far."""
        return [
            node for node in self._nodes
            if isinstance(node, ElementNode) and node.name == name
        ]
