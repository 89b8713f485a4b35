"""
Reservation model: one row per (event, user).

Key design decisions:
- Primary key is `f"{event_id}_{user_id}"`, so an upsert is a single keyed
  write instead of query-then-insert
- `kind` discriminates the payload: general rows carry `representative_name`
  and `companions`, invited rows carry `groups`; the other columns are NULL
- `total_count` is the headcount charged against the event's capacity
"""

from sqlalchemy import Column, Integer, String, ForeignKey, JSON, CheckConstraint

from ticket_reserve.db.base import Base, TimestampMixin

KIND_GENERAL = "general"
KIND_INVITED = "invited"


class Reservation(Base, TimestampMixin):
    __tablename__ = "reservations"

    id = Column(String(200), primary_key=True)
    event_id = Column(String(64), ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    kind = Column(String(16), nullable=False)
    total_count = Column(Integer, nullable=False)
    reservation_number = Column(String(16), nullable=False)
    representative_name = Column(String(255), nullable=True)
    companions = Column(JSON, nullable=True)
    groups = Column(JSON, nullable=True)

    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("total_count >= 0", name="check_reservation_total_non_negative"),
        CheckConstraint("kind IN ('general', 'invited')", name="check_reservation_kind"),
    )

    def __repr__(self) -> str:
        return f"<Reservation(id={self.id}, kind={self.kind}, total={self.total_count})>"
