"""Tagged-Output Parser.

A fault-tolerant parser for language-model output that embeds tagged regions
(``<output name="x">...</output>``) in free-form text, without mistaking
quoted tag references for real tags.

Progressive API Disclosure:
- Level 1: Functions - parse(), parse_attributes()
- Level 2: Parsers - TagTreeParser (lazy tree), XMLStreamParser (fragments)
- Level 3: Stream assembly - StreamHandler, handle_stream(), OutputDispatcher
"""

__version__ = "0.1.0"
__author__ = "Tagged Output Parser Team"

from .shared.config import ParserConfig
from .streaming import OutputCall, OutputDispatcher, StreamElement, StreamHandler, handle_stream
from .tokenization import (
    EndTag,
    SelfClosingTag,
    StartTag,
    TextContent,
    XMLStreamParser,
    XMLToken,
    merge_text_tokens,
    parse_attributes,
)
from .tree import ElementNode, Node, TagTreeParser, TextNode, is_element, is_text, parse

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "parse",
    "parse_attributes",

    # Level 2: Parsers and their results
    "TagTreeParser",
    "XMLStreamParser",
    "Node",
    "TextNode",
    "ElementNode",
    "is_element",
    "is_text",
    "XMLToken",
    "StartTag",
    "EndTag",
    "SelfClosingTag",
    "TextContent",
    "merge_text_tokens",

    # Level 3: Stream assembly and dispatch
    "StreamHandler",
    "StreamElement",
    "handle_stream",
    "OutputDispatcher",
    "OutputCall",

    # Configuration
    "ParserConfig",
]
