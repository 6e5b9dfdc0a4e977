"""Token types produced by the incremental stream tokenizer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Union


class TokenType(Enum):
    """Stream token types."""

    START = "start"
    END = "end"
    SELF_CLOSING = "self-closing"
    TEXT = "text"


@dataclass(frozen=True)
class StartTag:
    """Opening tag of a recognized element: ``<name attrs>``."""

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)

    @property
    def type(self) -> TokenType:
        return TokenType.START


@dataclass(frozen=True)
class EndTag:
    """Closing tag of a recognized element: ``</name>``."""

    name: str

    @property
    def type(self) -> TokenType:
        return TokenType.END


@dataclass(frozen=True)
class SelfClosingTag:
    """Complete element without content: ``<name attrs/>``."""

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)

    @property
    def type(self) -> TokenType:
        return TokenType.SELF_CLOSING


@dataclass(frozen=True)
class TextContent:
    """A run of plain text, including reclassified tag-like text."""

    content: str

    @property
    def type(self) -> TokenType:
        return TokenType.TEXT


XMLToken = Union[StartTag, EndTag, SelfClosingTag, TextContent]


def merge_text_tokens(tokens: Iterable[XMLToken]) -> List[XMLToken]:
    """Merge runs of adjacent TextContent tokens into one.

    Fragment boundaries split text arbitrarily; consumers comparing token
    sequences or rendering text usually want the merged form.
    """
    merged: List[XMLToken] = []
    for token in tokens:
        if (
            isinstance(token, TextContent)
            and merged
            and isinstance(merged[-1], TextContent)
        ):
            merged[-1] = TextContent(merged[-1].content + token.content)
        else:
            merged.append(token)
    return merged
