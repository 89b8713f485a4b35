"""
Audit sink for state-changing operations.

Entries are written in their own short transaction after the operation has
committed or rolled back, so a failed audit write never undoes a reservation.
"""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ticket_reserve.core.logging import get_logger
from ticket_reserve.models.audit import AuditLog

logger = get_logger(__name__)

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"


async def record_audit(
    db: AsyncSession,
    operation_id: str,
    action: str,
    status: str = STATUS_SUCCESS,
    error_detail: Optional[dict[str, Any]] = None,
    user_id: Optional[str] = None,
) -> None:
    """Append an audit entry. Failures are logged, never raised."""
    try:
        db.add(
            AuditLog(
                operation_id=operation_id,
                action=action,
                status=status,
                error_detail=error_detail,
                user_id=user_id,
            )
        )
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error("audit_write_failed", operation_id=operation_id, action=action, error=str(e))


def error_detail(exc: Exception) -> dict[str, Any]:
    detail: dict[str, Any] = {"type": type(exc).__name__, "message": getattr(exc, "message", str(exc))}
    code = getattr(exc, "code", None)
    if code is not None:
        detail["code"] = code.value
    return detail
