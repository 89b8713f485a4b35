"""
Tests for logging setup and model mapping.
"""

from sqlalchemy import inspect

from ticket_reserve.core.config import get_settings
from ticket_reserve.core.logging import add_service_context
from ticket_reserve.models import Event, Reservation


def test_log_entries_carry_service_context():
    entry = add_service_context(None, "info", {"event": "reservation_committed"})

    assert entry["service"] == get_settings().APP_NAME
    assert entry["environment"] == "test"


def test_log_entries_keep_explicit_context():
    entry = add_service_context(None, "info", {"event": "x", "environment": "staging"})

    assert entry["environment"] == "staging"


def test_event_and_reservation_are_mapped_without_relationships():
    """Rows are linked by event_id only; services read them with explicit queries."""
    assert list(inspect(Event).relationships) == []
    assert list(inspect(Reservation).relationships) == []
