"""Tokenization engine for tagged model output.

Key Components:
    parse_attributes: Flat ``key="value"`` attribute list parser
    XMLStreamParser: Resumable tokenizer fed one text fragment at a time
    StartTag, EndTag, SelfClosingTag, TextContent: Stream token types
    merge_text_tokens: Merge adjacent text tokens
"""

from .attributes import parse_attributes
from .stream import ShouldParse, XMLStreamParser
from .tokens import (
    EndTag,
    SelfClosingTag,
    StartTag,
    TextContent,
    TokenType,
    XMLToken,
    merge_text_tokens,
)

__all__ = [
    "EndTag",
    "SelfClosingTag",
    "ShouldParse",
    "StartTag",
    "TextContent",
    "TokenType",
    "XMLStreamParser",
    "XMLToken",
    "merge_text_tokens",
    "parse_attributes",
]
