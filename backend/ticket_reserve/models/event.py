"""
Event model with capacity tracking.

Key design decisions:
- `total_reserved` is denormalized (avoids SUM over reservations on every check)
- `ticket_stock = 0` means the event has no seat limit
- Reservation window dates are `YYYY.MM.DD` strings, compared lexicographically
- `version` column enables optimistic locking for concurrent reservations
- Rows are created by the administrative tooling, not by this service
"""

from sqlalchemy import Column, Integer, String, Boolean, Text, Index, CheckConstraint

from ticket_reserve.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)
    date = Column(String(10), nullable=False)
    venue = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    ticket_stock = Column(Integer, nullable=False, default=0)
    total_reserved = Column(Integer, nullable=False, default=0)
    is_accept_reserve = Column(Boolean, nullable=False, default=False)
    accept_start_date = Column(String(10), nullable=True)
    accept_end_date = Column(String(10), nullable=True)
    max_companions = Column(Integer, nullable=False, default=0)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("ticket_stock >= 0", name="check_ticket_stock_non_negative"),
        CheckConstraint("total_reserved >= 0", name="check_total_reserved_non_negative"),
        CheckConstraint("max_companions >= 0", name="check_max_companions_non_negative"),
        Index("ix_events_date", "date"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, reserved={self.total_reserved}/{self.ticket_stock})>"
