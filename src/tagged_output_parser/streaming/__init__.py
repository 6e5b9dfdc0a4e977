"""Stream element assembly and output dispatch.

Key Components:
    StreamHandler: Builds elements from stream tokens with nesting rules
    handle_stream: Async driver over a model text stream
    OutputDispatcher: Calls handlers for finished elements by tag name
    wrap_stream, wrap_text: Restore prompt-side opening and closing tags
"""

from .dispatch import OutputCall, OutputDispatcher, OutputHandler
from .handler import (
    ContentChunk,
    ElementChunk,
    EndChunk,
    StreamElement,
    StreamElementChunk,
    StreamHandler,
    handle_stream,
)
from .wrap import RESPONSE_CLOSE, wrap_stream, wrap_text

__all__ = [
    "ContentChunk",
    "ElementChunk",
    "EndChunk",
    "OutputCall",
    "OutputDispatcher",
    "OutputHandler",
    "RESPONSE_CLOSE",
    "StreamElement",
    "StreamElementChunk",
    "StreamHandler",
    "handle_stream",
    "wrap_stream",
    "wrap_text",
]
