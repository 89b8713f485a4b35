"""
User profile and the archive written when an account is withdrawn.
Credentials live with the identity provider; only the profile is stored here.
"""

from sqlalchemy import Column, String, Boolean, DateTime, Integer, JSON

from ticket_reserve.db.base import Base, TimestampMixin, utcnow


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(String(128), primary_key=True)
    display_name = Column(String(255), nullable=True)
    # Performing members may make invited reservations
    is_member = Column(Boolean, default=False, nullable=False)

    def to_archive(self) -> dict:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "is_member": self.is_member,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<User(id={self.id}, member={self.is_member})>"


class ArchivedUser(Base):
    __tablename__ = "archived_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False, index=True)
    data = Column(JSON, nullable=False)
    archived_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
