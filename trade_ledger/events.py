"""Lifecycle events published by the engines.

Engines never talk to metrics or streaming backends directly; they publish
``LifecycleEvent`` objects on an ``EventBus``. Listeners run synchronously
and a failing listener is logged and skipped, so it can never change the
outcome of the operation that produced the event.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    TRADE_CREATED = "trade.created"
    TRADE_FAILED = "trade.failed"
    TRADE_CONFIRMED = "trade.confirmed"
    TRADE_SETTLED = "trade.settled"
    TRADE_STATUS_CHANGED = "trade.status_changed"
    TRADE_UPDATED = "trade.updated"
    TRADE_DELETED = "trade.deleted"
    TRADE_CREATION_TIME = "trade.creation_time"
    TRADE_PROCESSING_TIME = "trade.processing_time"
    COUNTERPARTY_CREATED = "counterparty.created"
    COUNTERPARTY_UPDATED = "counterparty.updated"
    COUNTERPARTY_ACTIVATED = "counterparty.activated"
    COUNTERPARTY_DEACTIVATED = "counterparty.deactivated"
    COUNTERPARTY_DELETED = "counterparty.deleted"
    COUNTERPARTY_CREATION_TIME = "counterparty.creation_time"

    @property
    def entity(self) -> str:
        return self.value.split(".", 1)[0]

    @property
    def is_timing(self) -> bool:
        return self.value.endswith("_time")


@dataclass(frozen=True)
class LifecycleEvent:
    """A single notification emitted by a lifecycle engine.

    ``tags`` carries low-cardinality labels (instrument, type, error_type,
    operation); ``data`` carries the record snapshot for streaming sinks.
    """

    event_type: EventType
    subject: str | None = None
    tags: dict[str, str] = field(default_factory=dict)
    data: dict[str, Any] = field(default_factory=dict)
    value: Decimal | None = None
    duration_seconds: float | None = None
    occurred_at: datetime = field(default_factory=datetime.now)


@runtime_checkable
class LifecycleListener(Protocol):
    def on_event(self, event: LifecycleEvent) -> None: ...


class EventBus:
    """Fan-out of lifecycle events to registered listeners."""

    def __init__(self, listeners: list[LifecycleListener] | None = None) -> None:
        self._listeners: list[LifecycleListener] = list(listeners or [])

    @property
    def listeners(self) -> tuple[LifecycleListener, ...]:
        return tuple(self._listeners)

    def subscribe(self, listener: LifecycleListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: LifecycleListener) -> None:
        self._listeners.remove(listener)

    def publish(self, event: LifecycleEvent) -> None:
        for listener in self._listeners:
            try:
                listener.on_event(event)
            except Exception:
                logger.exception(
                    "Listener %s failed handling %s",
                    type(listener).__name__,
                    event.event_type.value,
                )

    def emit(self, event_type: EventType, **kwargs: Any) -> None:
        """Build and publish an event in one call."""
        self.publish(LifecycleEvent(event_type=event_type, **kwargs))


class RecordingListener:
    """Listener that keeps every event it receives, in order."""

    def __init__(self) -> None:
        self.events: list[LifecycleEvent] = []

    def on_event(self, event: LifecycleEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: EventType) -> list[LifecycleEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def clear(self) -> None:
        self.events.clear()
