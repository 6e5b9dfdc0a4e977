"""Assembly of stream tokens into logical elements.

``StreamHandler`` drives an ``XMLStreamParser`` with a nesting-aware
predicate and turns its tokens into ``StreamElement`` objects: one per
recognized tag, accumulating text until the element is closed. Every update
is pushed to a callback, optionally together with fine-grained chunk events
for incremental rendering.
"""

import asyncio
from dataclasses import dataclass, field, replace
from typing import AsyncIterable, Callable, Dict, Iterable, List, Optional, Union

from tagged_output_parser.shared import (
    ParserConfig,
    StreamHandlerConfig,
    StreamParserConfig,
    get_logger,
    set_package_level,
)
from tagged_output_parser.tokenization import (
    EndTag,
    SelfClosingTag,
    StartTag,
    TextContent,
    XMLStreamParser,
    XMLToken,
)


@dataclass
class StreamElement:
    """A recognized element being assembled from the stream."""

    index: int
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    content: str = ""
    done: bool = False
    # Same-named openings swallowed as text, each awaiting its own closing tag
    depth: int = 0

    def snapshot(self, **changes: object) -> "StreamElement":
        """Copy the element, optionally changing fields."""
        changes.setdefault("attributes", dict(self.attributes))
        return replace(self, **changes)


@dataclass(frozen=True)
class ElementChunk:
    """A new element was opened (or a self-closing one completed)."""

    el: StreamElement
    type: str = "el"


@dataclass(frozen=True)
class ContentChunk:
    """Text appended to the element with the given index."""

    index: int
    content: str
    type: str = "content"


@dataclass(frozen=True)
class EndChunk:
    """The element with the given index was closed."""

    index: int
    type: str = "end"


StreamElementChunk = Union[ElementChunk, ContentChunk, EndChunk]
PushElement = Callable[[StreamElement], object]
PushChunk = Callable[[StreamElementChunk], object]


class StreamHandler:
    """Build elements from a fragment stream.

    Rules for tags met while an element is open:

    * a same-named opening is text; unless the tag is non-nesting it raises
      the element's depth so that its matching closing tag is text too
    * a same-named closing tag closes the element once depth is back to 0
    * inside a container tag every recognized tag is parsed
    * a closing tag for an element further down the stack closes everything
      above it first; a closing tag for anything else is text
    """

    def __init__(
        self,
        push: PushElement,
        push_chunk: Optional[PushChunk] = None,
        tags: Optional[Iterable[str]] = None,
        initial_index: int = 0,
        config: Optional[StreamHandlerConfig] = None,
        stream_config: Optional[StreamParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the stream handler.

        Args:
            push: Called with every new or updated element; finished
                elements are pushed as copies with ``done=True``
            push_chunk: Optional receiver of fine-grained chunk events
            tags: Tag names to recognize, ``config.tags`` by default
            initial_index: Index given to the first element
            config: Nesting rules and default tags
            stream_config: Configuration for the underlying tokenizer
            correlation_id: Optional correlation ID for log records
        """
        self.config = config or StreamHandlerConfig()
        self.push = push
        self.push_chunk = push_chunk
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "stream_handler")

        self.current: Optional[StreamElement] = None
        self.stack: List[StreamElement] = []
        self.next_index = initial_index

        self.parser = XMLStreamParser(
            self.config.tags if tags is None else tags,
            self._should_parse,
            config=stream_config,
            correlation_id=correlation_id,
        )

    @classmethod
    def from_config(
        cls,
        config: ParserConfig,
        push: PushElement,
        push_chunk: Optional[PushChunk] = None,
        tags: Optional[Iterable[str]] = None,
        initial_index: int = 0
    ) -> "StreamHandler":
        """Build a handler from a complete ParserConfig.

        Uses its handler and stream components, applies ``logging_level``
        to the package logger and carries ``correlation_id`` into log records.
        """
        set_package_level(config.logging_level)
        return cls(
            push,
            push_chunk,
            tags=tags,
            initial_index=initial_index,
            config=config.handler,
            stream_config=config.stream,
            correlation_id=config.correlation_id,
        )

    @property
    def open_elements(self) -> List[StreamElement]:
        """Elements not yet closed, outermost first."""
        if self.current is None:
            return list(self.stack)
        return [*self.stack, self.current]

    def handle_chunk(self, chunk: str) -> None:
        """Feed one text fragment."""
        for token in self.parser.iter_feed(chunk):
            self._handle_token(token)

    def finish(self) -> None:
        """Flush the tokenizer at the end of the stream.

        Elements still open stay unfinished.
        """
        for token in self.parser.iter_close():
            self._handle_token(token)

        if self.current is not None:
            self.logger.debug(
                "Stream ended with open elements",
                extra={"open_tags": [el.tag for el in self.open_elements]}
            )

    def _emit_chunk(self, chunk: StreamElementChunk) -> None:
        if self.push_chunk is not None:
            self.push_chunk(chunk)

    def _finish_element(self, element: StreamElement) -> None:
        self.push(element.snapshot(done=True))
        self._emit_chunk(EndChunk(element.index))

    def _should_parse(self, tag_name: str, is_closing_tag: bool) -> bool:
        current = self.current

        if current is not None and current.tag == tag_name:
            if not is_closing_tag:
                if tag_name not in self.config.non_nesting_tags:
                    current.depth += 1
                return False
            if current.depth > 0:
                current.depth -= 1
                return False
            return True

        if current is None or current.tag in self.config.container_tags:
            return True

        if is_closing_tag and self.stack:
            position = next(
                (i for i, el in enumerate(self.stack) if el.tag == tag_name), -1
            )
            if position == -1:
                return False

            self._finish_element(current)
            self.current = None

            closed = self.stack[position + 1:]
            del self.stack[position + 1:]
            for element in reversed(closed):
                self._finish_element(element)

            # The matching element is closed by the EndTag token itself
            self.current = self.stack.pop()
            return True

        return False

    def _handle_token(self, token: XMLToken) -> None:
        if isinstance(token, StartTag):
            if self.current is not None:
                self.stack.append(self.current)
            self.current = StreamElement(
                index=self.next_index,
                tag=token.name,
                attributes=dict(token.attributes),
            )
            self.next_index += 1
            self.push(self.current)
            self._emit_chunk(ElementChunk(self.current.snapshot()))

        elif isinstance(token, EndTag):
            if self.current is not None:
                self._finish_element(self.current)
                self.current = self.stack.pop() if self.stack else None

        elif isinstance(token, TextContent):
            # TODO: route text outside any element to a default output
            if self.current is not None:
                self._emit_chunk(ContentChunk(self.current.index, token.content))
                self.current.content += token.content
                self.push(self.current)

        elif isinstance(token, SelfClosingTag):
            element = StreamElement(
                index=self.next_index,
                tag=token.name,
                attributes=dict(token.attributes),
                done=True,
            )
            self.next_index += 1
            self.push(element)
            self._emit_chunk(ElementChunk(element))


async def handle_stream(
    text_stream: AsyncIterable[str],
    push: PushElement,
    push_chunk: Optional[PushChunk] = None,
    tags: Optional[Iterable[str]] = None,
    initial_index: int = 0,
    cancel_event: Optional[asyncio.Event] = None,
    config: Optional[StreamHandlerConfig] = None,
    stream_config: Optional[StreamParserConfig] = None,
    correlation_id: Optional[str] = None,
    parser_config: Optional[ParserConfig] = None
) -> StreamHandler:
    """Consume a model text stream, pushing elements as they form.

    Stops without finishing the tokenizer when ``cancel_event`` is set.
    A ``parser_config`` takes the place of ``config``, ``stream_config``
    and ``correlation_id``.

    Returns:
        The handler, whose ``next_index`` continues the element numbering
    """
    if parser_config is not None:
        handler = StreamHandler.from_config(
            parser_config,
            push,
            push_chunk,
            tags=tags,
            initial_index=initial_index,
        )
    else:
        handler = StreamHandler(
            push,
            push_chunk,
            tags=tags,
            initial_index=initial_index,
            config=config,
            stream_config=stream_config,
            correlation_id=correlation_id,
        )

    async for chunk in text_stream:
        if cancel_event is not None and cancel_event.is_set():
            handler.logger.info("Stream handling cancelled")
            return handler
        handler.handle_chunk(chunk)

    handler.finish()
    handler.logger.info(
        "Stream handled",
        extra={
            "elements": handler.next_index - initial_index,
            "statistics": handler.parser.statistics.to_dict(),
        }
    )
    return handler
