"""Structured logging utilities for tagged-output parsing.

Every record carries the emitting component and an optional correlation ID so
that log lines from one model response can be grouped together.
"""

import logging
from typing import Any, Dict, Optional

PACKAGE_LOGGER_NAME = "tagged_output_parser"


class CorrelationLogger:
    """Logger that automatically includes correlation ID and component information."""

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None
    ) -> None:
        """Initialize correlation logger.

        Args:
            name: Logger name (typically __name__)
            correlation_id: Optional correlation ID for request tracking
            component: Component name for structured logging
        """
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        self.component = component or name.split(".")[-1]

    def _get_extra(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        combined_extra = {
            "component": self.component,
            "correlation_id": self.correlation_id,
        }

        if extra:
            combined_extra.update(extra)

        return combined_extra

    def is_debug_enabled(self) -> bool:
        """Check whether DEBUG records would be emitted.

        Hot loops use this to skip building ``extra`` dictionaries.
        """
        return self.logger.isEnabledFor(logging.DEBUG)

    def child(self, component: str) -> "CorrelationLogger":
        """Create a logger for a sub-component sharing this correlation ID."""
        return CorrelationLogger(self.logger.name, self.correlation_id, component)

    def debug(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = False
    ) -> None:
        """Log debug message with correlation info."""
        self.logger.debug(message, extra=self._get_extra(extra), exc_info=exc_info)

    def info(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = False
    ) -> None:
        """Log info message with correlation info."""
        self.logger.info(message, extra=self._get_extra(extra), exc_info=exc_info)

    def warning(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = False
    ) -> None:
        """Log warning message with correlation info."""
        self.logger.warning(message, extra=self._get_extra(extra), exc_info=exc_info)

    def error(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = True
    ) -> None:
        """Log error message with correlation info."""
        self.logger.error(message, extra=self._get_extra(extra), exc_info=exc_info)


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Get a correlation-aware logger instance.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID for request tracking
        component: Component name for structured logging

    Returns:
        CorrelationLogger instance
    """
    return CorrelationLogger(name, correlation_id, component)


class _ComponentDefaultFilter(logging.Filter):
    """Give records logged outside CorrelationLogger a component field."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "component"):
            record.component = record.name.split(".")[-1]
        return True


def set_package_level(level: str) -> logging.Logger:
    """Set the package logger's level without attaching any handler.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        The package logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.setLevel(level.upper())
    return package_logger


def configure_logging(
    level: str = "INFO",
    handler: Optional[logging.Handler] = None
) -> logging.Logger:
    """Attach a handler to the package logger and set its level.

    Library code never calls this; applications embedding the parser may.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        handler: Handler to attach, a stderr StreamHandler by default

    Returns:
        The configured package logger
    """
    package_logger = set_package_level(level)

    if handler is None:
        if package_logger.handlers:
            return package_logger
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s [%(component)s] %(message)s"
        ))
        handler.addFilter(_ComponentDefaultFilter())

    if handler not in package_logger.handlers:
        package_logger.addHandler(handler)

    return package_logger
