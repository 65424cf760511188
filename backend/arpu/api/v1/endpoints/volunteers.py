"""
Volunteer applications and the volunteer certificate.
"""
from fastapi import APIRouter, Depends, Query, Request, BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from arpu.api.v1.endpoints.donations import pdf_response
from arpu.core.database import get_db
from arpu.core.rate_limiter import auth_rate_limit
from arpu.models.user import User
from arpu.models.volunteer import VolunteerStatus, VolunteerInterest
from arpu.schemas.common import Page
from arpu.schemas.outreach import VolunteerRequestCreate, VolunteerRequestUpdate, VolunteerRequestResponse
from arpu.modules.auth.dependencies import get_current_user, get_current_admin
from arpu.services.certificate_service import certificate_service
from arpu.services.volunteer_service import volunteer_service
from arpu.tasks.notifications import send_volunteer_welcome
from arpu.utils.pagination import paginate

router = APIRouter()


@router.post("/requests", response_model=VolunteerRequestResponse, status_code=201)
@auth_rate_limit()
async def apply(
    request: Request,
    data: VolunteerRequestCreate,
    db: AsyncSession = Depends(get_db)
):
    """Public volunteer application (rate limited: 5/min)"""
    return await volunteer_service.apply(db, data)


@router.get("/requests", response_model=Page[VolunteerRequestResponse])
async def list_requests(
    status: Optional[VolunteerStatus] = None,
    state: Optional[str] = None,
    interest: Optional[VolunteerInterest] = None,
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await paginate(db, volunteer_service.list_query(status, state, interest, search), page, page_size)


@router.get("/requests/{request_id}", response_model=VolunteerRequestResponse)
async def get_request(
    request_id: str,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await volunteer_service.get(db, request_id)


@router.patch("/requests/{request_id}", response_model=VolunteerRequestResponse)
async def update_request(
    request_id: str,
    data: VolunteerRequestUpdate,
    background_tasks: BackgroundTasks,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    volunteer = await volunteer_service.update(db, request_id, data, current_admin)
    if data.status == VolunteerStatus.ACCEPTED:
        background_tasks.add_task(send_volunteer_welcome, volunteer.email, volunteer.name)
    return volunteer


@router.delete("/requests/{request_id}")
async def delete_request(
    request_id: str,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await volunteer_service.delete(db, request_id)
    return {"success": True, "message": "Volunteer request deleted"}


@router.get("/certificate")
async def volunteer_certificate(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """PDF certificate for the caller's accepted volunteer application"""
    certificate = await certificate_service.volunteer_certificate(db, current_user)
    return pdf_response(certificate_service.render_pdf(certificate), certificate.certificate_number, "certificate")
