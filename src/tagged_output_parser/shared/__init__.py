"""Shared utilities for tagged-output parsing.

This module provides configuration objects, statistics types and logging
helpers used by the tokenizer, tree parser and stream assembler.
"""

from .config import (
    DEFAULT_CONTAINER_TAGS,
    DEFAULT_NON_NESTING_TAGS,
    DEFAULT_STREAM_TAGS,
    DEFAULT_WRAPPER_CHARS,
    ConfigError,
    ConfigValidationError,
    EndOfStreamPolicy,
    ParserConfig,
    StreamHandlerConfig,
    StreamParserConfig,
    TreeParserConfig,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    set_package_level,
    get_logger,
)
from .result import StreamStatistics

__all__ = [
    "DEFAULT_CONTAINER_TAGS",
    "DEFAULT_NON_NESTING_TAGS",
    "DEFAULT_STREAM_TAGS",
    "DEFAULT_WRAPPER_CHARS",
    "ConfigError",
    "ConfigValidationError",
    "EndOfStreamPolicy",
    "ParserConfig",
    "StreamHandlerConfig",
    "StreamParserConfig",
    "TreeParserConfig",
    "CorrelationLogger",
    "configure_logging",
    "set_package_level",
    "get_logger",
    "StreamStatistics",
]
