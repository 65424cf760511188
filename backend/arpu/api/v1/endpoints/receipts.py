from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from arpu.api.v1.endpoints.donations import pdf_response
from arpu.core.database import get_db
from arpu.core.exceptions import AuthorizationError
from arpu.models.user import User
from arpu.schemas.donation import ReceiptCreate, ReceiptResponse
from arpu.modules.auth.dependencies import get_current_user
from arpu.services.donation_service import donation_service
from arpu.services.receipt_service import receipt_service

router = APIRouter()


async def _check_access(db: AsyncSession, user: User, donation_id: str) -> None:
    donation = await donation_service.get(db, donation_id)
    if not await donation_service.can_view(db, user, donation):
        raise AuthorizationError("You cannot access receipts for this donation")


@router.post("/{donation_id}", response_model=ReceiptResponse, status_code=status.HTTP_201_CREATED)
async def generate_receipt(
    donation_id: str,
    data: Optional[ReceiptCreate] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Issue the tax receipt for a successful donation (idempotent)"""
    await _check_access(db, current_user, donation_id)
    return await receipt_service.get_or_create(db, donation_id, donor_pan=data.donor_pan if data else None)


@router.get("/{donation_id}/download")
async def download_receipt(
    donation_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await _check_access(db, current_user, donation_id)
    receipt = await receipt_service.get_or_create(db, donation_id)
    return pdf_response(receipt_service.render_pdf(receipt), receipt.receipt_number, "receipt")
