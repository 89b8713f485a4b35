"""
Cancellation and account withdrawal.

Cancelling gives a reservation's headcount back to its event in the same
transaction that deletes the record. Both operations are idempotent:
cancelling something that is already gone is a no-op.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_reserve.core.logging import get_logger
from ticket_reserve.core.metrics import record_cancellation, record_seat_delta
from ticket_reserve.db.base import utcnow
from ticket_reserve.db.transaction import run_transaction, versioned_delete, versioned_update
from ticket_reserve.models.event import Event
from ticket_reserve.models.reservation import Reservation
from ticket_reserve.models.user import ArchivedUser, User
from ticket_reserve.schemas.reservation import WithdrawalResult
from ticket_reserve.services import audit_service
from ticket_reserve.services.identity import reservation_key

logger = get_logger(__name__)

ACTION_CANCEL = "reservation.cancel"
ACTION_WITHDRAW = "account.withdraw"


async def release_reservation(db: AsyncSession, key: str) -> Optional[int]:
    """
    Transaction body: delete the reservation and give its seats back.

    Returns the released headcount, or None when there was nothing to cancel.
    """
    reservation = await db.get(Reservation, key, populate_existing=True)
    if reservation is None:
        return None

    released = reservation.total_count
    await versioned_delete(db, Reservation, key, reservation.version)

    event = await db.get(Event, reservation.event_id, populate_existing=True)
    if event is not None and released:
        await versioned_update(
            db, Event, event.id, event.version,
            total_reserved=max(event.total_reserved - released, 0),
            updated_at=utcnow(),
        )
    return released


async def cancel_reservation(db: AsyncSession, event_id: str, user_id: str) -> bool:
    """Cancel the user's reservation for an event. Returns False if there was none."""
    key = reservation_key(event_id, user_id)

    try:
        released = await run_transaction(
            db, lambda session: release_reservation(session, key), operation=ACTION_CANCEL
        )
    except Exception as e:
        logger.error("cancellation_failed", reservation_id=key, error=str(e))
        record_cancellation("error")
        await audit_service.record_audit(
            db, key, ACTION_CANCEL, audit_service.STATUS_ERROR,
            error_detail=audit_service.error_detail(e), user_id=user_id,
        )
        raise

    if released is None:
        logger.info("cancellation_noop", reservation_id=key)
        record_cancellation("noop")
        return False

    record_cancellation("cancelled")
    record_seat_delta(-released)
    logger.info("reservation_cancelled", reservation_id=key, event_id=event_id, seats_released=released)
    await audit_service.record_audit(db, key, ACTION_CANCEL, user_id=user_id)
    return True


async def archive_and_delete_user(db: AsyncSession, user_id: str) -> bool:
    """Transaction body: snapshot the profile into archived_users, then delete it."""
    user = await db.get(User, user_id, populate_existing=True)
    if user is None:
        return False
    db.add(ArchivedUser(user_id=user.id, data=user.to_archive()))
    await db.delete(user)
    await db.flush()
    return True


async def withdraw_account(db: AsyncSession, user_id: str) -> WithdrawalResult:
    """
    Cancel every reservation the user holds, then archive and delete the profile.

    A reservation that fails to cancel is logged and reported, and the rest
    are still processed.
    """
    result = await db.execute(select(Reservation.event_id).where(Reservation.user_id == user_id))
    event_ids = list(result.scalars().all())

    outcome = WithdrawalResult(user_id=user_id)
    for event_id in event_ids:
        try:
            if await cancel_reservation(db, event_id, user_id):
                outcome.cancelled.append(event_id)
        except Exception as e:
            logger.warning("withdrawal_cancel_failed", user_id=user_id, event_id=event_id, error=str(e))
            outcome.failed.append(event_id)

    try:
        outcome.profile_archived = await run_transaction(
            db, lambda session: archive_and_delete_user(session, user_id), operation=ACTION_WITHDRAW
        )
    except Exception as e:
        logger.error("withdrawal_archive_failed", user_id=user_id, error=str(e))
        detail = audit_service.error_detail(e)
        if outcome.failed:
            detail["failed_events"] = outcome.failed
        await audit_service.record_audit(
            db, user_id, ACTION_WITHDRAW, audit_service.STATUS_ERROR,
            error_detail=detail, user_id=user_id,
        )
        raise

    logger.info(
        "account_withdrawn",
        user_id=user_id,
        cancelled=len(outcome.cancelled),
        failed=len(outcome.failed),
        profile_archived=outcome.profile_archived,
    )
    await audit_service.record_audit(
        db, user_id, ACTION_WITHDRAW,
        audit_service.STATUS_ERROR if outcome.failed else audit_service.STATUS_SUCCESS,
        error_detail={"failed_events": outcome.failed} if outcome.failed else None,
        user_id=user_id,
    )
    return outcome
