"""
Account withdrawal: releases every reservation, then archives the profile.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_reserve.core.security import get_current_user_id
from ticket_reserve.db.session import get_db
from ticket_reserve.schemas.reservation import WithdrawalResult
from ticket_reserve.services.cache_service import invalidate_event_cache
from ticket_reserve.services.cancellation_service import withdraw_account

router = APIRouter(prefix="/account", tags=["Account"])


@router.delete("", response_model=WithdrawalResult)
async def withdraw_account_endpoint(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    result = await withdraw_account(db, user_id)
    if result.cancelled:
        await invalidate_event_cache()
    return result
