"""
WalletSDK - Lifecycle Events

Callbacks fired while operations are created, signed, broadcast and
polled. Every event describes one operation at one stage.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional


class EventType(Enum):
    BEFORE_CREATE = "before_create"
    AFTER_CREATE = "after_create"
    BEFORE_SIGN = "before_sign"
    AFTER_SIGN = "after_sign"
    BEFORE_BROADCAST = "before_broadcast"
    AFTER_BROADCAST = "after_broadcast"
    ON_POLL = "on_poll"
    ON_TERMINAL = "on_terminal"
    ON_TIMEOUT = "on_timeout"
    ON_ERROR = "on_error"


@dataclass(frozen=True)
class Event:
    """
    Snapshot of an operation when the event fired.

    ``operation_id``, ``kind`` and ``status`` are empty for BEFORE_CREATE
    and for errors raised before the platform returned an operation.
    ``attempt`` counts reloads during polling.
    """
    type: EventType
    operation_id: Optional[str] = None
    kind: Optional[str] = None
    status: Optional[str] = None
    tx_hash: Optional[str] = None
    stage: Optional[str] = None
    attempt: Optional[int] = None
    elapsed_seconds: Optional[float] = None
    error: Optional[Exception] = None
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def for_operation(cls, event_type: EventType, operation=None, **fields) -> "Event":
        if operation is None:
            return cls(type=event_type, **fields)
        return cls(
            type=event_type,
            operation_id=operation.id,
            kind=type(operation).__name__,
            status=operation.get_status().value,
            tx_hash=operation.get_transaction_hash(),
            **fields,
        )


EventHandler = Callable[[Event], None]


class EventEmitter:
    """
    Dispatches lifecycle events to registered handlers.

    A failing handler is logged and reported as an ON_ERROR event with
    ``stage="handler"``; the operation being observed carries on.

    Example:
        emitter = EventEmitter()

        @emitter.on(EventType.ON_TERMINAL, EventType.ON_TIMEOUT)
        def settled(event):
            print(event.operation_id, event.status, event.elapsed_seconds)
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self.logger = logger or logging.getLogger(__name__)

    def on(self, *event_types: EventType) -> Callable[[EventHandler], EventHandler]:
        """Decorator registering one handler for one or more event types."""
        def decorator(handler: EventHandler) -> EventHandler:
            for event_type in event_types:
                self.add_handler(event_type, handler)
            return handler
        return decorator

    def add_handler(self, event_type: EventType, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def emit(self, event_type: EventType, operation=None, **fields) -> Event:
        """Build the event for ``operation`` and hand it to every handler."""
        event = Event.for_operation(event_type, operation, **fields)
        for handler in self._handlers.get(event_type, []):
            try:
                handler(event)
            except Exception as e:
                self.logger.exception("Handler for %s failed", event_type.value)
                if event_type is not EventType.ON_ERROR:
                    self._report_handler_error(e, event)
        return event

    def _report_handler_error(self, error: Exception, source: Event) -> None:
        error_event = Event(
            type=EventType.ON_ERROR,
            operation_id=source.operation_id,
            kind=source.kind,
            status=source.status,
            stage="handler",
            error=error,
        )
        for handler in self._handlers.get(EventType.ON_ERROR, []):
            try:
                handler(error_event)
            except Exception:
                self.logger.exception("ON_ERROR handler failed")
