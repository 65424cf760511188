"""
Field survey endpoints. Anyone can submit; coordinators and admins review.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from arpu.core.database import get_db
from arpu.models.survey import SurveyType, SurveyStatus
from arpu.models.user import User
from arpu.schemas.common import Page
from arpu.schemas.outreach import SurveyCreate, SurveyUpdate, SurveyResponse
from arpu.modules.auth.dependencies import get_optional_user, get_current_coordinator
from arpu.services.survey_service import survey_service
from arpu.utils.pagination import paginate

router = APIRouter()


@router.post("", response_model=SurveyResponse, status_code=201)
async def submit_survey(
    data: SurveyCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """Public; linked to the submitter when a token is sent"""
    return await survey_service.create(db, data, current_user)


@router.get("", response_model=Page[SurveyResponse])
async def list_surveys(
    survey_type: Optional[SurveyType] = None,
    status: Optional[SurveyStatus] = None,
    state: Optional[str] = None,
    district: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_coordinator),
    db: AsyncSession = Depends(get_db)
):
    query = survey_service.list_query(survey_type, status, state, district, search)
    return await paginate(db, query, page, page_size)


@router.get("/stats")
async def survey_stats(
    current_user: User = Depends(get_current_coordinator),
    db: AsyncSession = Depends(get_db)
):
    return await survey_service.stats(db)


@router.get("/{survey_id}", response_model=SurveyResponse)
async def get_survey(
    survey_id: str,
    current_user: User = Depends(get_current_coordinator),
    db: AsyncSession = Depends(get_db)
):
    return await survey_service.get(db, survey_id)


@router.patch("/{survey_id}", response_model=SurveyResponse)
async def update_survey(
    survey_id: str,
    data: SurveyUpdate,
    current_user: User = Depends(get_current_coordinator),
    db: AsyncSession = Depends(get_db)
):
    return await survey_service.update(db, survey_id, data, current_user)


@router.delete("/{survey_id}")
async def delete_survey(
    survey_id: str,
    current_user: User = Depends(get_current_coordinator),
    db: AsyncSession = Depends(get_db)
):
    await survey_service.delete(db, survey_id)
    return {"success": True, "message": "Survey deleted"}
