"""Regex-based extraction of every occurrence of a single tag.

A lighter alternative to the tree parser when only one tag name matters and
its occurrences are not nested in each other.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, Pattern, TypeVar

from tagged_output_parser.tokenization.attributes import parse_attributes

T = TypeVar("T")


@dataclass
class TagMatch(Generic[T]):
    """One ``<tag ...>content</tag>`` occurrence."""

    tag: str
    params: Dict[str, str] = field(default_factory=dict)
    content: Any = ""


def create_tag_regex(tag_name: str) -> Pattern[str]:
    """Create a regex matching ``<tag_name attrs>content</tag_name>``.

    Group 1 is the opening tag, group 2 the (non-greedy) content.
    """
    name = re.escape(tag_name)
    return re.compile(rf"(<{name}(?:\s+[^>]*)?>)(.*?)</{name}>", re.DOTALL)


def create_tag_parser(
    tag_name: str,
    content_parser: Optional[Callable[[str], T]] = None
) -> Callable[[str], List[TagMatch[T]]]:
    """Create a function extracting every occurrence of ``tag_name``.

    Args:
        tag_name: Tag to extract
        content_parser: Optional conversion applied to each trimmed content

    Returns:
        Callable mapping a text to its list of TagMatch objects
    """
    regex = create_tag_regex(tag_name)

    def parse_tags(text: str) -> List[TagMatch[T]]:
        matches = []
        for match in regex.finditer(text):
            content = match.group(2).strip()
            matches.append(TagMatch(
                tag=tag_name,
                params=parse_attributes(match.group(1)),
                content=content_parser(content) if content_parser else content,
            ))
        return matches

    return parse_tags
