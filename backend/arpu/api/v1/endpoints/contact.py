from fastapi import APIRouter, Depends, Query, Request, BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from arpu.core.database import get_db
from arpu.core.rate_limiter import auth_rate_limit, get_client_ip
from arpu.models.contact import ContactStatus, InquiryType
from arpu.models.user import User
from arpu.schemas.common import Page
from arpu.schemas.outreach import ContactCreate, ContactUpdate, ContactResponse
from arpu.modules.auth.dependencies import get_current_admin
from arpu.services.contact_service import contact_service
from arpu.tasks.notifications import send_contact_acknowledgement
from arpu.utils.pagination import paginate

router = APIRouter()


@router.post("", response_model=ContactResponse, status_code=201)
@auth_rate_limit()
async def submit_message(
    request: Request,
    data: ContactCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db)
):
    """Public contact form (rate limited: 5/min)"""
    message = await contact_service.submit(db, data, ip_address=get_client_ip(request))
    background_tasks.add_task(send_contact_acknowledgement, message.email, message.name, message.subject)
    return message


@router.get("", response_model=Page[ContactResponse])
async def list_messages(
    status: Optional[ContactStatus] = None,
    inquiry_type: Optional[InquiryType] = None,
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await paginate(db, contact_service.list_query(status, inquiry_type, search), page, page_size)


@router.patch("/{message_id}", response_model=ContactResponse)
async def update_message(
    message_id: str,
    data: ContactUpdate,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await contact_service.update(db, message_id, data, current_admin)


@router.delete("/{message_id}")
async def delete_message(
    message_id: str,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await contact_service.delete(db, message_id)
    return {"success": True, "message": "Message deleted"}
