from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from arpu.core.database import get_db
from arpu.models.donation import PaymentStatus
from arpu.models.user import User
from arpu.schemas.common import Page
from arpu.schemas.donation import DonationResponse
from arpu.modules.auth.dependencies import get_current_coordinator
from arpu.services.donation_service import donation_service

router = APIRouter()


@router.get("/donations", response_model=Page[DonationResponse])
async def team_donations(
    status: Optional[PaymentStatus] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_coordinator),
    db: AsyncSession = Depends(get_db)
):
    """Donations attributed to me or anyone in my team"""
    return await donation_service.list_for_coordinator(db, current_user, page, page_size, status)
