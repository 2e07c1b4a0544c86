"""
Event system for progress reporting.

The translator and the name scout publish events here instead of writing to
the terminal; the CLI subscribes a renderer. Listeners run synchronously in
publication order.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
import logging

_logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events emitted during a run."""
    STREAM_PROGRESS = "stream_progress"
    CHUNK_TRANSLATED = "chunk_translated"
    CHUNK_RETRY = "chunk_retry"
    CHUNK_FAILED = "chunk_failed"
    NAME_BATCH = "name_batch"
    SCOUT_CHUNK_FAILED = "scout_chunk_failed"


@dataclass
class Event:
    """Event data structure.

    Attributes:
        type: Type of event
        data: Event-specific data
        timestamp: When the event occurred
        source: Component that emitted the event
    """
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
    source: Optional[str] = None


EventListener = Callable[[Event], None]


class EventBus:
    """Publish/subscribe hub for pipeline events."""

    def __init__(self, record_history: bool = False):
        self._listeners: Dict[EventType, List[EventListener]] = {}
        self._record_history = record_history
        self._history: List[Event] = []

    def subscribe(self, event_type: EventType, callback: EventListener) -> None:
        self._listeners.setdefault(event_type, []).append(callback)

    def subscribe_multiple(self, event_types: List[EventType], callback: EventListener) -> None:
        for event_type in event_types:
            self.subscribe(event_type, callback)

    def unsubscribe(self, event_type: EventType, callback: EventListener) -> None:
        listeners = self._listeners.get(event_type, [])
        if callback in listeners:
            listeners.remove(callback)

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribers.

        A failing listener is logged and does not stop the pipeline.
        """
        if self._record_history:
            self._history.append(event)

        for listener in list(self._listeners.get(event.type, [])):
            try:
                listener(event)
            except Exception:
                _logger.exception("Event listener failed for %s", event.type.value)

    def emit(self, event_type: EventType, source: Optional[str] = None, **data: Any) -> Event:
        event = Event(type=event_type, data=data, source=source)
        self.publish(event)
        return event

    def get_history(self) -> List[Event]:
        return self._history.copy()

    def get_events_by_type(self, event_type: EventType) -> List[Event]:
        return [e for e in self._history if e.type == event_type]

    def clear_history(self) -> None:
        self._history.clear()
