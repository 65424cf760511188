"""
Admin donation listing, statistics and CSV export.
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime
from typing import Optional

from arpu.core.database import get_db
from arpu.core.logging_config import logger
from arpu.models.donation import PaymentStatus
from arpu.models.user import User
from arpu.modules.auth.dependencies import get_current_admin
from arpu.schemas.common import Page
from arpu.schemas.donation import DonationResponse, DonationStatsResponse
from arpu.services.donation_service import donation_service
from arpu.services.export_service import export_donations
from arpu.services.target_service import to_naive_utc
from arpu.utils.pagination import paginate

router = APIRouter()


@router.get("", response_model=Page[DonationResponse])
async def list_donations(
    status: Optional[PaymentStatus] = None,
    program_id: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    query = donation_service.admin_query(
        status, program_id, to_naive_utc(date_from), to_naive_utc(date_to), search
    )
    return await paginate(db, query, page, page_size)


@router.get("/stats", response_model=DonationStatsResponse)
async def donation_stats(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    return await donation_service.stats(db)


@router.get("/export")
async def export_donations_csv(
    status: Optional[PaymentStatus] = None,
    program_id: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Export donations (same filters as the list) to CSV"""
    query = donation_service.admin_query(status, program_id, to_naive_utc(date_from), to_naive_utc(date_to))
    content = await export_donations(db, query)

    logger.info(f"[Admin] {current_admin.email} exported donations")
    filename = f"donations_{datetime.utcnow():%Y%m%d}.csv"
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )
