"""Prefix and suffix wrapping of model responses.

Models are prompted to answer inside a ``<response>`` (or ``<think>``)
element but the opening tag is part of the prompt, not of the output. These
helpers add it back, along with a closing tag when the model omitted it.
"""

import re
from typing import AsyncIterable, AsyncIterator

RESPONSE_CLOSE = "</response>"


async def wrap_stream(
    stream: AsyncIterable[str],
    prefix: str,
    suffix: str
) -> AsyncIterator[str]:
    """Yield ``prefix``, the stream's fragments, then ``suffix``.

    A ``</response>`` suffix is skipped when the stream already produced one.
    """
    yield prefix

    check_suffix = suffix == RESPONSE_CLOSE
    window = len(suffix) - 1
    tail = ""
    seen_suffix = False

    async for chunk in stream:
        if check_suffix and not seen_suffix:
            searchable = tail + chunk
            seen_suffix = suffix in searchable
            tail = searchable[-window:] if window else ""
        yield chunk

    if not seen_suffix:
        yield suffix


def wrap_text(text: str, prefix: str, suffix: str = RESPONSE_CLOSE) -> str:
    """Whole-buffer counterpart of wrap_stream.

    Trailing repeated suffixes are collapsed; the suffix is appended when the
    cleaned text no longer contains one.
    """
    closing = re.escape(suffix)
    cleaned = re.sub(rf"{closing}\s*({closing}\s*)*$", "", text)
    needs_suffix = suffix not in cleaned
    return prefix + cleaned + (suffix if needs_suffix else "")
