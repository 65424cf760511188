"""
Certificate endpoints.

Numbers look like ARPU/VOL/2025/00042, so the public verify route takes
the whole remaining path.
"""
from fastapi import APIRouter, Depends, Query, BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from arpu.api.v1.endpoints.donations import pdf_response
from arpu.core.database import get_db
from arpu.core.exceptions import AuthorizationError, ValidationError
from arpu.models.certificate import CertificateType
from arpu.models.user import User
from arpu.schemas.common import Page
from arpu.schemas.outreach import CertificateCreate, CertificateResponse, CertificateVerifyResponse
from arpu.modules.auth.dependencies import get_current_user, get_current_admin
from arpu.services.certificate_service import certificate_service
from arpu.tasks.notifications import send_certificate_in_background
from arpu.utils.pagination import paginate

router = APIRouter()


@router.post("", response_model=CertificateResponse, status_code=201)
async def issue_certificate(
    data: CertificateCreate,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await certificate_service.issue(db, data, issued_by=current_admin.id)


@router.get("", response_model=Page[CertificateResponse])
async def list_certificates(
    certificate_type: Optional[CertificateType] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """All certificates for admins; your own for everyone else"""
    query = certificate_service.list_query(current_user, certificate_type)
    return await paginate(db, query, page, page_size)


@router.get("/verify/{number:path}", response_model=CertificateVerifyResponse)
async def verify_certificate(number: str, db: AsyncSession = Depends(get_db)):
    """Public authenticity check"""
    certificate = await certificate_service.get_by_number(db, number.strip().upper())
    if not certificate:
        return CertificateVerifyResponse(valid=False, certificate_number=number)
    return CertificateVerifyResponse(
        valid=True,
        certificate_number=certificate.certificate_number,
        recipient_name=certificate.recipient_name,
        certificate_type=certificate.certificate_type,
        issue_date=certificate.issue_date,
    )


@router.get("/{certificate_id}/download")
async def download_certificate(
    certificate_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    certificate = await certificate_service.get(db, certificate_id)
    if not certificate_service.can_access(current_user, certificate):
        raise AuthorizationError("You cannot access this certificate")
    return pdf_response(certificate_service.render_pdf(certificate), certificate.certificate_number, "certificate")


@router.post("/{certificate_id}/send")
async def send_certificate(
    certificate_id: str,
    background_tasks: BackgroundTasks,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Email the PDF to the recipient; status becomes SENT once delivered"""
    certificate = await certificate_service.get(db, certificate_id)
    if not certificate.recipient_email:
        raise ValidationError("Certificate has no recipient email", field="recipient_email")
    background_tasks.add_task(send_certificate_in_background, certificate.id)
    return {"success": True, "message": f"Certificate will be emailed to {certificate.recipient_email}"}
