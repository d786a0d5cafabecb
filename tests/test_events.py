"""
Event System Tests

Tests for business event records and the logging sink.
"""

import json
import logging
from datetime import UTC, date, datetime

from library_api.services.events import (
    Event,
    EventType,
    LoggingEventSink,
    get_event_sink,
)


class TestEventType:
    """Tests for EventType enum."""

    def test_lifecycle_event_types(self):
        assert EventType.BOOK_BORROWED == "BOOK_BORROWED"
        assert EventType.BOOK_RETURNED == "BOOK_RETURNED"
        assert EventType.BORROWING_OVERDUE == "BORROWING_OVERDUE"

    def test_catalog_event_types(self):
        assert EventType.BOOK_CREATED == "BOOK_CREATED"
        assert EventType.AUTHOR_DELETED == "AUTHOR_DELETED"


class TestEvent:
    """Tests for Event dataclass."""

    def test_event_creation(self):
        event = Event(type=EventType.BOOK_CREATED, data={"book_id": 1})

        assert event.type == EventType.BOOK_CREATED
        assert event.data["book_id"] == 1
        assert event.timestamp.tzinfo is not None

    def test_event_to_dict(self):
        custom_time = datetime(2024, 1, 20, 12, 0, 0, tzinfo=UTC)
        event = Event(EventType.BOOK_RETURNED, {"days_late": 2}, timestamp=custom_time)

        assert event.to_dict() == {
            "type": "BOOK_RETURNED",
            "data": {"days_late": 2},
            "timestamp": "2024-01-20T12:00:00+00:00",
        }

    def test_event_to_json_with_dates(self):
        """Dates in the payload are serialized as strings."""
        event = Event(EventType.BOOK_BORROWED, {"due_date": date(2024, 1, 15)})

        parsed = json.loads(event.to_json())

        assert parsed["type"] == "BOOK_BORROWED"
        assert parsed["data"]["due_date"] == "2024-01-15"


class TestLoggingEventSink:
    """Tests for LoggingEventSink."""

    def test_logs_business_event(self, caplog):
        sink = LoggingEventSink()

        with caplog.at_level(logging.INFO, logger="library_api.services.events"):
            sink.record(Event(EventType.BOOK_CREATED, {"book_id": 7}))

        (record,) = caplog.records
        assert record.levelno == logging.INFO
        assert record.getMessage().startswith("[BUSINESS_EVENT] BOOK_CREATED ")
        assert '"book_id": 7' in record.getMessage()

    def test_overdue_is_a_warning(self, caplog):
        sink = LoggingEventSink()

        with caplog.at_level(logging.INFO, logger="library_api.services.events"):
            sink.record(Event(EventType.BORROWING_OVERDUE, {"borrowing_id": 3}))
            sink.record(Event(EventType.AVAILABILITY_RESTORE_FAILED, {"borrowing_id": 3}))

        assert [r.levelno for r in caplog.records] == [logging.WARNING, logging.WARNING]

    def test_custom_logger(self, caplog):
        sink = LoggingEventSink(logging.getLogger("audit"))

        with caplog.at_level(logging.INFO, logger="audit"):
            sink.record(Event(EventType.AUTHOR_CREATED, {"author_id": 1}))

        assert caplog.records[0].name == "audit"


class TestGetEventSink:
    """Tests for the global sink accessor."""

    def test_singleton(self):
        assert get_event_sink() is get_event_sink()
        assert isinstance(get_event_sink(), LoggingEventSink)
