from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arpu.core.database import get_db
from arpu.schemas.donation import DonorHighlightsResponse
from arpu.services.donor_highlights_service import donor_highlights_service

router = APIRouter()


@router.get("/highlights", response_model=DonorHighlightsResponse)
async def donor_highlights(
    limit: int = Query(30, ge=1),
    page: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db)
):
    """Public donor wall; limit is capped at 100, page is 0-indexed"""
    return await donor_highlights_service.get_highlights(db, limit=limit, page=page)
