"""
Reservation transaction engine.

A submission is normalized first (aggregator), then applied in one
transaction that reads the event and the caller's existing reservation,
charges only the *difference* in headcount against the event, and writes both
rows with version checks (see ticket_reserve.db.transaction).

Capacity rule:
  delta = new_total - previous_total
  reject when delta > 0 and ticket_stock > 0 and total_reserved + delta > ticket_stock

Reductions are never rejected, so an event that is already full (or was
over-sold by an administrator lowering its stock) can still shrink.
"""

import time
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_reserve.core.exceptions import (
    CapacityExceededError,
    NotFoundError,
    PermissionDeniedError,
    ReservationClosedError,
    ReservationError,
    TransactionConflictError,
)
from ticket_reserve.core.logging import get_logger
from ticket_reserve.core.metrics import record_reservation_attempt, record_seat_delta, reservation_latency
from ticket_reserve.db.base import utcnow
from ticket_reserve.db.transaction import run_transaction, versioned_update
from ticket_reserve.models.event import Event
from ticket_reserve.models.reservation import KIND_GENERAL, KIND_INVITED, Reservation
from ticket_reserve.models.user import User
from ticket_reserve.schemas.reservation import (
    GeneralReservationIn,
    InvitedReservationIn,
    ReservationResult,
)
from ticket_reserve.services import audit_service
from ticket_reserve.services.aggregator import NormalizedReservation, aggregate
from ticket_reserve.services.event_service import get_event, is_in_reservation_window, today_str
from ticket_reserve.services.identity import assign_group_numbers, reservation_key, resolve_base_number

logger = get_logger(__name__)

ACTION_SUBMIT = "reservation.submit"


@dataclass
class _Outcome:
    reservation_number: str
    delta: int
    created: bool
    group_numbers: list[str]


def _kind_payload(record: NormalizedReservation, base_number: str, prior: Optional[Reservation]) -> dict:
    """Column values for the reservation's variant; the other variant is cleared."""
    if record.kind == KIND_GENERAL:
        return {
            "kind": KIND_GENERAL,
            "representative_name": record.representative_name,
            "companions": list(record.companions),
            "groups": None,
        }

    prior_groups = prior.groups if prior is not None and prior.kind == KIND_INVITED else None
    return {
        "kind": KIND_INVITED,
        "representative_name": None,
        "companions": None,
        "groups": assign_group_numbers(base_number, record.groups, prior_groups),
    }


async def _is_member(db: AsyncSession, user_id: str) -> bool:
    user = await db.get(User, user_id)
    return bool(user and user.is_member)


async def apply_reservation(
    db: AsyncSession,
    event_id: str,
    user_id: str,
    record: NormalizedReservation,
) -> _Outcome:
    """
    Transaction body: capacity check plus both writes.

    Safe to re-run; it only reads and writes through `db`.
    """
    event = await db.get(Event, event_id, populate_existing=True)
    if event is None:
        raise NotFoundError(f"Event {event_id} not found")

    key = reservation_key(event_id, user_id)
    prior = await db.get(Reservation, key, populate_existing=True)
    prior_total = prior.total_count if prior is not None else 0

    delta = record.total_count - prior_total
    if delta > 0 and event.ticket_stock > 0 and event.total_reserved + delta > event.ticket_stock:
        raise CapacityExceededError(
            requested=record.total_count,
            remaining=event.ticket_stock - event.total_reserved + prior_total,
        )

    base_number = resolve_base_number(prior.reservation_number if prior is not None else None)
    values = _kind_payload(record, base_number, prior)
    values.update(
        total_count=record.total_count,
        reservation_number=base_number,
        updated_at=utcnow(),
    )

    if prior is None:
        # A concurrent first submission for the same key fails here on the primary key.
        await db.execute(
            insert(Reservation).values(id=key, event_id=event_id, user_id=user_id, version=1, **values)
        )
    else:
        await versioned_update(db, Reservation, key, prior.version, **values)

    if delta != 0:
        await versioned_update(
            db, Event, event_id, event.version,
            total_reserved=event.total_reserved + delta,
            updated_at=utcnow(),
        )

    group_numbers = [g["reservation_number"] for g in values["groups"] or []]
    return _Outcome(base_number, delta, prior is None, group_numbers)


async def submit_reservation(
    db: AsyncSession,
    event_id: str,
    user_id: str,
    payload: Union[GeneralReservationIn, InvitedReservationIn],
    today: Optional[str] = None,
) -> ReservationResult:
    """
    Create or replace the caller's reservation for an event.

    Raises:
        NotFoundError: the event does not exist.
        ReservationClosedError: the event is not accepting reservations today.
        PermissionDeniedError: a non-member submitted an invited reservation.
        ValidationError: the submission has no attendees or too many companions.
        CapacityExceededError: the extra headcount does not fit.
        TransactionConflictError: concurrent writers exhausted the retries.
    """
    key = reservation_key(event_id, user_id)
    start = time.perf_counter()

    try:
        event = await get_event(db, event_id)
        if not is_in_reservation_window(event, today or today_str()):
            raise ReservationClosedError("Reservations are not being accepted for this event")

        record = aggregate(payload, max_companions=event.max_companions)
        if record.kind == KIND_INVITED and not await _is_member(db, user_id):
            raise PermissionDeniedError("Invited reservations are limited to performing members")

        outcome = await run_transaction(
            db,
            lambda session: apply_reservation(session, event_id, user_id, record),
            operation=ACTION_SUBMIT,
        )
    except ReservationError as e:
        logger.warning(
            "reservation_failed",
            reservation_id=key,
            event_id=event_id,
            user_id=user_id,
            reason=e.code.value,
            error=e.message,
        )
        if isinstance(e, CapacityExceededError):
            record_reservation_attempt("capacity_exceeded")
        elif isinstance(e, TransactionConflictError):
            record_reservation_attempt("conflict")
        else:
            record_reservation_attempt("rejected")
        await audit_service.record_audit(
            db, key, ACTION_SUBMIT, audit_service.STATUS_ERROR,
            error_detail=audit_service.error_detail(e), user_id=user_id,
        )
        raise
    except Exception as e:
        logger.error("reservation_error", reservation_id=key, error=str(e))
        record_reservation_attempt("error")
        await audit_service.record_audit(
            db, key, ACTION_SUBMIT, audit_service.STATUS_ERROR,
            error_detail=audit_service.error_detail(e), user_id=user_id,
        )
        raise
    finally:
        reservation_latency.observe(time.perf_counter() - start)

    record_reservation_attempt("success")
    record_seat_delta(outcome.delta)
    logger.info(
        "reservation_committed",
        reservation_id=key,
        event_id=event_id,
        user_id=user_id,
        kind=record.kind,
        total=record.total_count,
        delta=outcome.delta,
        created=outcome.created,
    )
    await audit_service.record_audit(db, key, ACTION_SUBMIT, user_id=user_id)

    return ReservationResult(
        reservation_id=key,
        reservation_number=outcome.reservation_number,
        kind=record.kind,
        total_count=record.total_count,
        delta=outcome.delta,
        created=outcome.created,
        group_numbers=outcome.group_numbers,
    )


async def get_reservation(db: AsyncSession, event_id: str, user_id: str) -> Reservation:
    reservation = await db.get(Reservation, reservation_key(event_id, user_id), populate_existing=True)
    if reservation is None:
        raise NotFoundError("Reservation not found")
    return reservation


def find_group(groups: Optional[list[dict]], ref: Union[int, str]) -> Optional[dict]:
    """
    Find an invited group by its issued number.

    `ref` is either the full sub-number ("4602-2") or its ordinal ("2").
    Groups are matched on the stored number, never on list position, so a
    link keeps pointing at the same group after other groups are removed.
    """
    ref = str(ref).strip()
    if not ref:
        return None
    for group in groups or []:
        number = group.get("reservation_number") or ""
        if number == ref or number.rsplit("-", 1)[-1] == ref:
            return group
    return None


async def get_ticket(
    db: AsyncSession, reservation_id: str, group: Optional[Union[int, str]] = None
) -> tuple[Reservation, Optional[dict]]:
    """Look up a shared ticket; `group` is the group number from the link."""
    reservation = await db.get(Reservation, reservation_id, populate_existing=True)
    if reservation is None:
        raise NotFoundError("Ticket not found")
    if group is None:
        return reservation, None

    found = find_group(reservation.groups, group)
    if found is None:
        raise NotFoundError("Ticket group not found")
    return reservation, found


async def list_user_reservations(db: AsyncSession, user_id: str) -> list[Reservation]:
    """All reservations held by a user, most recently changed first."""
    result = await db.execute(
        select(Reservation)
        .where(Reservation.user_id == user_id)
        .order_by(Reservation.updated_at.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())
