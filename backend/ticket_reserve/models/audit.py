"""
Audit trail of state-changing operations, success and failure alike.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON, Index

from ticket_reserve.db.base import Base, utcnow


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    operation_id = Column(String(200), nullable=False)
    action = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False)  # success, error
    error_detail = Column(JSON, nullable=True)
    user_id = Column(String(128), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_audit_logs_operation", "operation_id", "created_at"),
    )
