"""
Tests for cancellation and account withdrawal.
"""

import pytest
from sqlalchemy import select

from ticket_reserve.models import ArchivedUser, AuditLog, Event, User
from ticket_reserve.schemas.reservation import GeneralReservationIn
from ticket_reserve.services import cancellation_service
from ticket_reserve.services.cancellation_service import cancel_reservation, withdraw_account
from ticket_reserve.services.reservation_service import submit_reservation


async def reserve(session_factory, event_id, user_id, headcount):
    async with session_factory() as session:
        return await submit_reservation(
            session,
            event_id,
            user_id,
            GeneralReservationIn(
                representative_name="Rep",
                companions=[f"guest {i}" for i in range(headcount - 1)],
            ),
        )


async def cancel(session_factory, event_id, user_id) -> bool:
    async with session_factory() as session:
        return await cancel_reservation(session, event_id, user_id)


@pytest.mark.asyncio
async def test_cancel_releases_seats(session_factory, make_event, fetch_event, fetch_reservation):
    await make_event(ticket_stock=10)
    await reserve(session_factory, "live-1", "u1", 3)
    await reserve(session_factory, "live-1", "u2", 2)

    assert await cancel(session_factory, "live-1", "u1") is True

    assert await fetch_reservation("live-1", "u1") is None
    assert (await fetch_event()).total_reserved == 2


@pytest.mark.asyncio
async def test_cancel_missing_reservation_is_noop(session_factory, make_event, fetch_event):
    await make_event(total_reserved=4)

    assert await cancel(session_factory, "live-1", "nobody") is False
    assert (await fetch_event()).total_reserved == 4


@pytest.mark.asyncio
async def test_cancel_twice(session_factory, make_event, fetch_event):
    await make_event()
    await reserve(session_factory, "live-1", "u1", 2)

    assert await cancel(session_factory, "live-1", "u1") is True
    assert await cancel(session_factory, "live-1", "u1") is False
    assert (await fetch_event()).total_reserved == 0


@pytest.mark.asyncio
async def test_cancel_never_drives_total_negative(session_factory, make_event, fetch_event):
    await make_event()
    await reserve(session_factory, "live-1", "u1", 3)
    # counter drifted below what the record holds
    async with session_factory() as session:
        event = await session.get(Event, "live-1")
        event.total_reserved = 1
        await session.commit()

    assert await cancel(session_factory, "live-1", "u1") is True
    assert (await fetch_event()).total_reserved == 0


@pytest.mark.asyncio
async def test_cancel_is_audited(session_factory, make_event):
    await make_event()
    await reserve(session_factory, "live-1", "u1", 1)
    await cancel(session_factory, "live-1", "u1")

    async with session_factory() as session:
        actions = (
            await session.execute(select(AuditLog.action).where(AuditLog.operation_id == "live-1_u1").order_by(AuditLog.id))
        ).scalars().all()

    assert actions == ["reservation.submit", "reservation.cancel"]


@pytest.mark.asyncio
async def test_withdraw_account(session_factory, make_event, make_user, fetch_event):
    await make_event("live-1")
    await make_event("live-2")
    await make_user("u1", display_name="Hanako")
    await reserve(session_factory, "live-1", "u1", 2)
    await reserve(session_factory, "live-2", "u1", 3)
    await reserve(session_factory, "live-1", "u2", 1)

    async with session_factory() as session:
        result = await withdraw_account(session, "u1")

    assert sorted(result.cancelled) == ["live-1", "live-2"]
    assert result.failed == []
    assert result.profile_archived is True
    assert (await fetch_event("live-1")).total_reserved == 1
    assert (await fetch_event("live-2")).total_reserved == 0

    async with session_factory() as session:
        assert await session.get(User, "u1") is None
        archived = (await session.execute(select(ArchivedUser))).scalars().all()
    assert len(archived) == 1
    assert archived[0].user_id == "u1"
    assert archived[0].data["display_name"] == "Hanako"


@pytest.mark.asyncio
async def test_withdraw_again_is_noop(session_factory, make_event, make_user):
    await make_event()
    await make_user("u1")
    await reserve(session_factory, "live-1", "u1", 2)

    async with session_factory() as session:
        await withdraw_account(session, "u1")
    async with session_factory() as session:
        result = await withdraw_account(session, "u1")

    assert result.cancelled == []
    assert result.profile_archived is False


@pytest.mark.asyncio
async def test_withdraw_continues_past_failures(session_factory, make_event, make_user, fetch_event, monkeypatch):
    await make_event("live-1")
    await make_event("live-2")
    await make_user("u1")
    await reserve(session_factory, "live-1", "u1", 2)
    await reserve(session_factory, "live-2", "u1", 3)

    real_cancel = cancellation_service.cancel_reservation

    async def flaky_cancel(db, event_id, user_id):
        if event_id == "live-1":
            raise RuntimeError("boom")
        return await real_cancel(db, event_id, user_id)

    monkeypatch.setattr(cancellation_service, "cancel_reservation", flaky_cancel)

    async with session_factory() as session:
        result = await withdraw_account(session, "u1")

    assert result.cancelled == ["live-2"]
    assert result.failed == ["live-1"]
    assert result.profile_archived is True
    assert (await fetch_event("live-1")).total_reserved == 2
    assert (await fetch_event("live-2")).total_reserved == 0

    async with session_factory() as session:
        entry = (
            await session.execute(select(AuditLog).where(AuditLog.action == "account.withdraw"))
        ).scalar_one()
    assert entry.status == "error"
    assert entry.error_detail == {"failed_events": ["live-1"]}


@pytest.mark.asyncio
async def test_withdraw_audits_archive_failure(session_factory, make_event, make_user, fetch_event, monkeypatch):
    await make_event()
    await make_user("u1")
    await reserve(session_factory, "live-1", "u1", 2)

    async def broken_archive(db, user_id):
        raise RuntimeError("archive unavailable")

    monkeypatch.setattr(cancellation_service, "archive_and_delete_user", broken_archive)

    async with session_factory() as session:
        with pytest.raises(RuntimeError):
            await withdraw_account(session, "u1")

    assert (await fetch_event()).total_reserved == 0

    async with session_factory() as session:
        assert await session.get(User, "u1") is not None
        entry = (
            await session.execute(select(AuditLog).where(AuditLog.action == "account.withdraw"))
        ).scalar_one()
    assert entry.status == "error"
    assert entry.error_detail["type"] == "RuntimeError"
    assert entry.error_detail["message"] == "archive unavailable"
