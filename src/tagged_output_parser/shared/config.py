"""Configuration classes for tagged-output parsing.

This module provides configuration objects for the stream tokenizer, the
whole-buffer tree parser and the stream element assembler.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Any, Dict, FrozenSet, List, Optional

DEFAULT_WRAPPER_CHARS = "'`()"

DEFAULT_STREAM_TAGS: FrozenSet[str] = frozenset({
    "think",
    "thinking",
    "response",
    "output",
    "action_call",
    "reasoning",
})

# Same-named openings inside these are text and do not count towards depth
DEFAULT_NON_NESTING_TAGS: FrozenSet[str] = frozenset({"think", "response", "reasoning"})

DEFAULT_CONTAINER_TAGS: FrozenSet[str] = frozenset({"response"})

_LOGGING_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_COMPONENTS = ["stream", "tree", "handler"]


class EndOfStreamPolicy(Enum):
    """What the stream tokenizer does with unresolved input on close()."""

    FLUSH_AS_TEXT = auto()  # Emit the unterminated tail as plain text
    DISCARD = auto()        # Drop it silently


def _validate_tag_names(names: FrozenSet[str], field_name: str) -> None:
    for name in names:
        if not isinstance(name, str) or not name:
            raise ValueError(f"{field_name} must contain non-empty strings")


@dataclass
class StreamParserConfig:
    """Configuration for the incremental stream tokenizer."""

    wrapper_chars: str = DEFAULT_WRAPPER_CHARS
    await_wrapper_lookahead: bool = True
    max_tag_length: Optional[int] = None
    end_of_stream: EndOfStreamPolicy = EndOfStreamPolicy.FLUSH_AS_TEXT

    def __post_init__(self) -> None:
        """Validate stream parser configuration."""
        if not isinstance(self.wrapper_chars, str):
            raise ValueError("wrapper_chars must be a string")
        if "<" in self.wrapper_chars or ">" in self.wrapper_chars:
            raise ValueError("wrapper_chars cannot contain '<' or '>'")
        if self.max_tag_length is not None and self.max_tag_length <= 1:
            raise ValueError("max_tag_length must be > 1 or None")
        if isinstance(self.end_of_stream, str):
            self.end_of_stream = EndOfStreamPolicy[self.end_of_stream]


@dataclass
class TreeParserConfig:
    """Configuration for the whole-buffer tree parser."""

    max_depth: int = 100

    def __post_init__(self) -> None:
        """Validate tree parser configuration."""
        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")


@dataclass
class StreamHandlerConfig:
    """Configuration for assembling stream tokens into elements."""

    tags: FrozenSet[str] = DEFAULT_STREAM_TAGS
    non_nesting_tags: FrozenSet[str] = DEFAULT_NON_NESTING_TAGS
    container_tags: FrozenSet[str] = DEFAULT_CONTAINER_TAGS

    def __post_init__(self) -> None:
        """Validate handler configuration and normalize tag collections."""
        for field_name in ("tags", "non_nesting_tags", "container_tags"):
            value = getattr(self, field_name)
            if isinstance(value, str):
                raise ValueError(f"{field_name} must be a collection of tag names")
            names = frozenset(value)
            _validate_tag_names(names, field_name)
            setattr(self, field_name, names)


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ParserConfig:
    """Complete configuration for all parser components.

    Immutable at the top level; use override() to derive variants.
    """

    stream: StreamParserConfig = field(default_factory=StreamParserConfig)
    tree: TreeParserConfig = field(default_factory=TreeParserConfig)
    handler: StreamHandlerConfig = field(default_factory=StreamHandlerConfig)

    logging_level: str = "INFO"
    correlation_id: Optional[str] = None
    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete parser configuration."""
        try:
            self.stream.__post_init__()
            self.tree.__post_init__()
            self.handler.__post_init__()

            if self.logging_level not in _LOGGING_LEVELS:
                raise ValueError(f"logging_level must be one of {_LOGGING_LEVELS}")

            self._validate_cross_component_dependencies()

        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    def _validate_cross_component_dependencies(self) -> None:
        unknown = (
            self.handler.non_nesting_tags | self.handler.container_tags
        ) - self.handler.tags
        if unknown:
            raise ConfigValidationError(
                f"Handler tags {sorted(unknown)} are not in handler.tags",
                field_name="handler",
                suggestions=["Add them to handler.tags", "Remove them"],
            )

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Fields to override; component fields use the
                ``component__field`` notation

        Returns:
            New ParserConfig instance with overrides applied

        Example:
            >>> config = ParserConfig()
            >>> new_config = config.override(
            ...     stream__max_tag_length=256,
            ...     logging_level="DEBUG"
            ... )
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                        suggestions=_COMPONENTS,
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        for component in _COMPONENTS:
            current_config = getattr(self, component)
            if component in nested_overrides:
                try:
                    new_fields[component] = replace(
                        current_config, **nested_overrides[component]
                    )
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=component) from e
            else:
                new_fields[component] = current_config

        for key, value in nested_overrides.items():
            if key not in _COMPONENTS:
                new_fields[key] = value

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            if isinstance(obj, Enum):
                return obj.name
            if isinstance(obj, (set, frozenset)):
                return sorted(_dataclass_to_dict(item) for item in obj)
            if isinstance(obj, (list, tuple)):
                return [_dataclass_to_dict(item) for item in obj]
            if isinstance(obj, dict):
                return {key: _dataclass_to_dict(value) for key, value in obj.items()}
            return obj

        result = _dataclass_to_dict(self)
        if not isinstance(result, dict):
            raise ConfigValidationError("Configuration serialization failed")
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected with ConfigValidationError.
        """
        def _dict_to_dataclass(data_dict: Dict[str, Any], target_class: type) -> Any:
            fields = target_class.__dataclass_fields__
            unknown = set(data_dict) - set(fields)
            if unknown:
                raise ConfigValidationError(
                    f"Unknown fields for {target_class.__name__}: {sorted(unknown)}",
                    field_name=target_class.__name__,
                )

            field_values: Dict[str, Any] = {}
            for field_name, value in data_dict.items():
                field_type = fields[field_name].type
                if hasattr(field_type, "__dataclass_fields__") and isinstance(value, dict):
                    field_values[field_name] = _dict_to_dataclass(value, field_type)
                else:
                    field_values[field_name] = value

            try:
                return target_class(**field_values)
            except (KeyError, ValueError) as e:
                raise ConfigValidationError(str(e), field_name=target_class.__name__) from e

        result = _dict_to_dataclass(data, cls)
        if not isinstance(result, cls):
            raise ConfigValidationError(f"Failed to deserialize to {cls.__name__}")
        return result

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def default(cls) -> "ParserConfig":
        """Create the default configuration."""
        return cls(name="default")

    @classmethod
    def legacy_compatible(cls) -> "ParserConfig":
        """Create a preset matching the first-generation stream parser.

        Tags are resolved as soon as their ``>`` arrives and unterminated tags
        are dropped at end of stream.
        """
        return cls(
            stream=StreamParserConfig(
                await_wrapper_lookahead=False,
                end_of_stream=EndOfStreamPolicy.DISCARD,
            ),
            name="legacy_compatible",
        )
