"""Dispatch of finished stream elements to handlers keyed by tag name."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from tagged_output_parser.shared import ConfigValidationError, get_logger

from .handler import StreamElement


@dataclass
class OutputCall:
    """A complete logical call assembled from one element."""

    tag: str
    name: Optional[str]
    params: Dict[str, str] = field(default_factory=dict)
    content: str = ""
    index: int = -1

    @classmethod
    def from_element(cls, element: StreamElement) -> "OutputCall":
        """Build a call; the ``name`` attribute names it, the rest are params."""
        params = dict(element.attributes)
        name = params.pop("name", None)
        return cls(
            tag=element.tag,
            name=name,
            params=params,
            content=element.content,
            index=element.index,
        )


OutputHandler = Callable[[OutputCall], Any]


class OutputDispatcher:
    """Invoke a registered handler once per finished element.

    Instances are callable and can be passed to ``StreamHandler`` as its
    ``push`` callback; unfinished updates are ignored.
    """

    def __init__(
        self,
        handlers: Optional[Dict[str, OutputHandler]] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.logger = get_logger(__name__, correlation_id, "output_dispatcher")
        self.calls: List[OutputCall] = []
        self._handlers: Dict[str, OutputHandler] = {}
        # A container finishes after the elements inside it, so indices
        # complete out of order
        self._dispatched: Set[int] = set()

        for tag, handler in (handlers or {}).items():
            self.register(tag, handler)

    @property
    def handlers(self) -> Dict[str, OutputHandler]:
        return dict(self._handlers)

    def register(self, tag: str, handler: OutputHandler) -> None:
        """Register the handler for a tag name, replacing any previous one."""
        if not isinstance(tag, str) or not tag:
            raise ConfigValidationError("Handler tag must be a non-empty string")
        if not callable(handler):
            raise ConfigValidationError(f"Handler for {tag!r} must be callable")
        self._handlers[tag] = handler

    def unregister(self, tag: str) -> bool:
        """Remove a tag's handler; returns whether one was registered."""
        return self._handlers.pop(tag, None) is not None

    def __call__(self, element: StreamElement) -> Any:
        if not element.done or element.index in self._dispatched:
            return None
        self._dispatched.add(element.index)

        call = OutputCall.from_element(element)
        self.calls.append(call)

        handler = self._handlers.get(call.tag)
        if handler is None:
            self.logger.debug(
                "No handler registered for element",
                extra={"tag": call.tag, "index": call.index}
            )
            return None

        return handler(call)
