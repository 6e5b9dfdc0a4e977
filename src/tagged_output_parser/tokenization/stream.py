"""Incremental stream tokenizer for tagged model output.

Text arrives as fragments of arbitrary size. The tokenizer keeps only the
unresolved tail of the input (at most one tag that has not seen its ``>``
yet) and emits start, end, self-closing and text tokens as soon as they can be
decided. Characters already classified are never scanned again.
"""

import re
from collections.abc import Iterable as IterableABC
from typing import (
    AsyncIterable,
    AsyncIterator,
    Callable,
    Iterable,
    Iterator,
    List,
    Optional,
)

from tagged_output_parser.shared import (
    ConfigValidationError,
    EndOfStreamPolicy,
    ParserConfig,
    StreamParserConfig,
    StreamStatistics,
    get_logger,
    set_package_level,
)

from .attributes import parse_attributes
from .tokens import EndTag, SelfClosingTag, StartTag, TextContent, XMLToken

ShouldParse = Callable[[str, bool], bool]

# A '<' only opens a tag when followed by an ASCII letter or '/'
_TAG_OPENER = re.compile(r"[a-zA-Z/]")


def _parse_everything(tag_name: str, is_closing_tag: bool) -> bool:
    return True


class XMLStreamParser:
    """Resumable tokenizer for text arriving in fragments.

    Only tags named in ``parse_tags`` and accepted by ``should_parse`` become
    tag tokens; every other tag-like construct is passed through as text.
    Tags quoted with a wrapper character (``'<tag>``, ``(<tag>)``,
    ```<tag>```) are treated as literal text.

    Example:
        >>> parser = XMLStreamParser({"output"})
        >>> tokens = parser.feed('<output name="msg">hel')
        >>> tokens += parser.feed("lo</output>")
        >>> tokens += parser.close()
    """

    def __init__(
        self,
        parse_tags: Iterable[str],
        should_parse: Optional[ShouldParse] = None,
        config: Optional[StreamParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the stream tokenizer.

        Args:
            parse_tags: Tag names eligible for tokenization
            should_parse: Predicate ``(tag_name, is_closing_tag) -> bool``
                consulted once per complete, eligible tag; lets the caller
                suppress a tag depending on its own state
            config: Stream tokenizer configuration
            correlation_id: Optional correlation ID for log records

        Raises:
            ConfigValidationError: If parse_tags or should_parse are invalid
        """
        if isinstance(parse_tags, str) or not isinstance(parse_tags, IterableABC):
            raise ConfigValidationError(
                "parse_tags must be a collection of tag names",
                field_name="parse_tags",
            )
        tags = frozenset(parse_tags)
        for tag in tags:
            if not isinstance(tag, str) or not tag:
                raise ConfigValidationError(
                    f"Invalid tag name in parse_tags: {tag!r}",
                    field_name="parse_tags",
                )

        if should_parse is None:
            should_parse = _parse_everything
        elif not callable(should_parse):
            raise ConfigValidationError(
                "should_parse must be callable",
                field_name="should_parse",
            )

        self.parse_tags = tags
        self.should_parse = should_parse
        self.config = config or StreamParserConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "stream_tokenizer")
        self.statistics = StreamStatistics()

        self._wrappers = frozenset(self.config.wrapper_chars)
        self._reset_state()

    @classmethod
    def from_config(
        cls,
        config: ParserConfig,
        parse_tags: Optional[Iterable[str]] = None,
        should_parse: Optional[ShouldParse] = None
    ) -> "XMLStreamParser":
        """Build a tokenizer from a complete ParserConfig.

        Applies ``logging_level`` to the package logger and carries
        ``correlation_id`` into log records. ``parse_tags`` defaults to
        ``config.handler.tags``.
        """
        set_package_level(config.logging_level)
        parser = cls(
            config.handler.tags if parse_tags is None else parse_tags,
            should_parse,
            config=config.stream,
            correlation_id=config.correlation_id,
        )
        parser.logger.debug("Tokenizer configured", extra={"config_name": config.name})
        return parser

    def _reset_state(self) -> None:
        """Reset per-stream state."""
        self._buffer = ""
        self._text = ""
        # Last input character consumed, used by the wrapper guard
        self._previous_char = ""

    @property
    def buffered_text(self) -> str:
        """Input received but not yet classified."""
        return self._buffer

    @property
    def pending_text(self) -> str:
        """Text classified but not yet emitted."""
        return self._text

    def feed(self, fragment: Optional[str]) -> List[XMLToken]:
        """Process the next fragment.

        Args:
            fragment: Next piece of model output; empty or None is a no-op

        Returns:
            All tokens that could be resolved, in document order
        """
        return list(self.iter_feed(fragment))

    def iter_feed(self, fragment: Optional[str]) -> Iterator[XMLToken]:
        """Process the next fragment, yielding tokens as they are resolved.

        Classification resumes only when the caller asks for the next token,
        so a ``should_parse`` predicate sees any state the caller updated
        while handling the previous tokens.
        """
        if not fragment:
            self.statistics.empty_fragments += 1
            return
        if not isinstance(fragment, str):
            raise TypeError(f"fragment must be str, not {type(fragment).__name__}")

        self.statistics.fragments_processed += 1
        self.statistics.characters_processed += len(fragment)

        self._buffer += fragment
        yield from self._drain(final=False)
        self.statistics.record_buffer(len(self._buffer))

        if self._buffer and self.logger.is_debug_enabled():
            self.logger.debug(
                "Waiting for more input to resolve tag",
                extra={"buffered_chars": len(self._buffer)}
            )

    def close(self) -> List[XMLToken]:
        """Finish the stream.

        Resolves anything held back for lookahead, then applies the
        configured end-of-stream policy to an unterminated tag. The
        tokenizer can afterwards be fed a new stream.

        Returns:
            Remaining tokens
        """
        return list(self.iter_close())

    def iter_close(self) -> Iterator[XMLToken]:
        """Finish the stream, yielding the remaining tokens lazily."""
        yield from self._drain(final=True)

        self.logger.debug(
            "Stream closed",
            extra={"statistics": self.statistics.to_dict()}
        )

        self._reset_state()

    def tokenize(self, fragments: Iterable[str]) -> Iterator[XMLToken]:
        """Tokenize a complete sequence of fragments, closing at the end."""
        for fragment in fragments:
            yield from self.iter_feed(fragment)
        yield from self.iter_close()

    async def atokenize(self, fragments: AsyncIterable[str]) -> AsyncIterator[XMLToken]:
        """Tokenize an asynchronous fragment stream, closing at the end."""
        async for fragment in fragments:
            for token in self.iter_feed(fragment):
                yield token
        for token in self.iter_close():
            yield token

    def _advance(self, count: int) -> str:
        """Consume ``count`` characters from the buffer and return them."""
        consumed = self._buffer[:count]
        self._buffer = self._buffer[count:]
        self._previous_char = consumed[-1]
        return consumed

    def _flush_text(self) -> Iterator[XMLToken]:
        if self._text:
            text, self._text = self._text, ""
            self.statistics.tokens_emitted += 1
            self.statistics.text_tokens += 1
            yield TextContent(text)

    def _mark_literal(self, raw: str, reason: str) -> None:
        self.statistics.literal_tags += 1
        if self.logger.is_debug_enabled():
            self.logger.debug(
                "Tag-like text kept as literal",
                extra={"raw": raw, "reason": reason}
            )

    def _drain(self, final: bool) -> Iterator[XMLToken]:
        """Classify as much of the buffer as the available input allows."""
        wrappers = self._wrappers
        max_tag_length = self.config.max_tag_length

        while self._buffer:
            buffer = self._buffer
            tag_start = buffer.find("<")

            if tag_start == -1:
                self._text += self._advance(len(buffer))
                break

            if tag_start > 0:
                if buffer[tag_start - 1] in wrappers:
                    # '<' right after a wrapper is quoted: keep both as text
                    self._text += self._advance(tag_start + 1)
                    self._mark_literal(buffer[tag_start - 1:tag_start + 1], "wrapped")
                else:
                    self._text += self._advance(tag_start)
                    yield from self._flush_text()
                continue

            # The buffer starts with '<'
            if self._previous_char in wrappers:
                self._text += self._advance(1)
                self._mark_literal("<", "wrapped")
                continue

            if len(buffer) == 1:
                break

            if not _TAG_OPENER.match(buffer[1]):
                # Only the '<' is text, not the rest of the buffer, so the
                # result does not depend on where fragments were split
                self._text += self._advance(1)
                continue

            if max_tag_length is None:
                tag_end = buffer.find(">", 1)
            else:
                tag_end = buffer.find(">", 1, max_tag_length)
                if tag_end == -1 and len(buffer) >= max_tag_length:
                    self._text += self._advance(1)
                    self._mark_literal(buffer[:max_tag_length], "too long")
                    continue

            if tag_end == -1:
                break

            next_index = tag_end + 1
            if next_index == len(buffer) and self.config.await_wrapper_lookahead and not final:
                # The character after '>' decides whether the tag is quoted
                break

            if next_index < len(buffer) and buffer[next_index] in wrappers:
                raw_tag = self._advance(next_index)
                self._text += raw_tag
                self._mark_literal(raw_tag, "wrapped")
                continue

            tag_content = buffer[1:tag_end]
            is_closing_tag = tag_content.startswith("/")
            tag_name = self._tag_name(tag_content, is_closing_tag)

            if tag_name in self.parse_tags:
                # The predicate must see the caller's state after all preceding text
                yield from self._flush_text()
                if self.should_parse(tag_name, is_closing_tag):
                    self._advance(next_index)
                    self.statistics.tokens_emitted += 1
                    self.statistics.tag_tokens += 1
                    yield self._tag_token(tag_name, tag_content, is_closing_tag)
                    continue

            raw_tag = self._advance(next_index)
            self._text += raw_tag
            self._mark_literal(raw_tag, "not parsed")

        if final and self._buffer:
            if self.config.end_of_stream is EndOfStreamPolicy.FLUSH_AS_TEXT:
                self._text += self._buffer
                self._mark_literal(self._buffer, "unterminated")
            else:
                self.logger.debug(
                    "Discarding unterminated input at end of stream",
                    extra={"discarded_chars": len(self._buffer)}
                )
            self._buffer = ""

        yield from self._flush_text()

    @staticmethod
    def _tag_name(tag_content: str, is_closing_tag: bool) -> str:
        body = tag_content[1:] if is_closing_tag else tag_content
        parts = body.split(None, 1)
        if not parts:
            return ""
        name = parts[0]
        if not is_closing_tag and name.endswith("/"):
            name = name[:-1]
        return name

    @staticmethod
    def _tag_token(tag_name: str, tag_content: str, is_closing_tag: bool) -> XMLToken:
        if is_closing_tag:
            return EndTag(tag_name)

        attributes = parse_attributes(tag_content[len(tag_name):])
        if tag_content.rstrip().endswith("/"):
            return SelfClosingTag(tag_name, attributes)
        return StartTag(tag_name, attributes)
