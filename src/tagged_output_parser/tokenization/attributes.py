"""Attribute list parsing for tag openers."""

import re
from typing import Dict

# Only double-quoted values are attributes; anything else is skipped
_ATTRIBUTE_PATTERN = re.compile(r'(\w+)="([^"]*)"')


def parse_attributes(text: str) -> Dict[str, str]:
    """Parse a flat ``key="value"`` attribute list.

    Args:
        text: Raw text following the tag name, up to but excluding ``>`` or ``/>``

    Returns:
        Mapping of attribute name to value. Unquoted or single-quoted
        attributes and stray text are ignored; a repeated name keeps the
        last value.
    """
    attributes: Dict[str, str] = {}
    if not text:
        return attributes

    for match in _ATTRIBUTE_PATTERN.finditer(text):
        attributes[match.group(1)] = match.group(2)

    return attributes
