import logging
from typing import Any, Callable, Optional, Union

from nylium.common.exceptions import InvalidArgumentError
from nylium.config.enumerations import LogicalEvent

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


def as_event(event: Union[LogicalEvent, str]) -> LogicalEvent:
    try:
        return LogicalEvent(event)
    except ValueError:
        raise InvalidArgumentError(f"unknown event '{event}'") from None


class EventRegistry:
    """Fan-out of logical events to caller handlers.

    Handlers for an event run synchronously in registration order. A handler
    that raises is logged and skipped; the remaining handlers still run.
    """

    def __init__(self) -> None:
        # dict keys as an ordered set
        self.handlers: dict[LogicalEvent, dict[Handler, None]] = {}

    def on(self, event: Union[LogicalEvent, str], handler: Handler) -> None:
        self.handlers.setdefault(as_event(event), {})[handler] = None

    def off(self, event: Union[LogicalEvent, str], handler: Handler) -> None:
        handlers = self.handlers.get(as_event(event))
        if handlers is not None:
            handlers.pop(handler, None)

    def remove_all_listeners(self, event: Optional[Union[LogicalEvent, str]] = None) -> None:
        if event is None:
            self.handlers.clear()
        else:
            self.handlers.pop(as_event(event), None)

    def listener_count(self, event: Union[LogicalEvent, str]) -> int:
        return len(self.handlers.get(as_event(event), {}))

    def emit(self, event: LogicalEvent, data: Any = None) -> None:
        handlers = self.handlers.get(event)
        if not handlers:
            return

        # Snapshot so handlers may register or remove handlers mid-delivery
        for handler in list(handlers):
            try:
                handler(data)
            except Exception:
                logger.exception("Error in %s handler %r", event.value, handler)
