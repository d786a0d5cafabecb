"""
Business Event Recording

Services report what happened (a book was borrowed, a loan went
overdue, ...) to an event sink instead of a concrete logger. The sink is
injected by whoever builds the service: the API passes the logging sink,
tests pass one that keeps events in memory.

Usage:
    from library_api.services.events import Event, EventType, get_event_sink

    sink = get_event_sink()
    sink.record(Event(EventType.BOOK_BORROWED, {"book_id": 1}))
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


# =============================================================================
# Event Types
# =============================================================================


class EventType(StrEnum):
    """Types of business events the core emits."""

    # Catalog events
    AUTHOR_CREATED = "AUTHOR_CREATED"
    AUTHOR_UPDATED = "AUTHOR_UPDATED"
    AUTHOR_DELETED = "AUTHOR_DELETED"
    BOOK_CREATED = "BOOK_CREATED"
    BOOK_UPDATED = "BOOK_UPDATED"
    BOOK_DELETED = "BOOK_DELETED"

    # Borrowing lifecycle events
    BOOK_BORROWED = "BOOK_BORROWED"
    BOOK_RETURNED = "BOOK_RETURNED"
    BORROWING_OVERDUE = "BORROWING_OVERDUE"
    AVAILABILITY_RESTORE_FAILED = "AVAILABILITY_RESTORE_FAILED"


@dataclass
class Event:
    """
    A single business event.

    Attributes:
        type: The event type
        data: Event payload (ids, names, dates)
        timestamp: When the event occurred
    """

    type: EventType
    data: dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary for JSON serialization."""
        return {
            "type": self.type.value,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        """Convert event to JSON string. Dates in the payload become strings."""
        return json.dumps(self.to_dict(), default=str)


# =============================================================================
# Sinks
# =============================================================================


class EventSink(Protocol):
    """Anything that can take a business event."""

    def record(self, event: Event) -> None: ...


class LoggingEventSink:
    """
    Writes each event as one log line.

    Overdue loans and failed side effects are warnings; everything else
    is informational.
    """

    WARNING_TYPES = frozenset(
        {EventType.BORROWING_OVERDUE, EventType.AVAILABILITY_RESTORE_FAILED}
    )

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logger

    def record(self, event: Event) -> None:
        level = logging.WARNING if event.type in self.WARNING_TYPES else logging.INFO
        self._log.log(level, f"[BUSINESS_EVENT] {event.type.value} {event.to_json()}")


# =============================================================================
# Global Sink Instance
# =============================================================================

event_sink = LoggingEventSink()


def get_event_sink() -> EventSink:
    """Get the process-wide event sink."""
    return event_sink
