"""
Donation endpoints - Razorpay checkout, webhook and manual entries.

Checkout flow:
1. POST /create-order   -> order id + key for the Razorpay widget
2. POST /verify-payment -> signature check, SUCCESS, receipt email queued
The webhook covers payments whose browser callback never arrives.
"""
from fastapi import APIRouter, Depends, Query, Request, BackgroundTasks
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from arpu.core.database import get_db
from arpu.core.exceptions import AuthorizationError
from arpu.core.logging_config import logger
from arpu.core.rate_limiter import payment_rate_limit, get_client_ip
from arpu.models.user import User
from arpu.schemas.donation import (
    DonationOrderCreate,
    DonationOrderResponse,
    PaymentVerifyRequest,
    PaymentFailRequest,
    ManualDonationCreate,
    DonationResponse,
)
from arpu.modules.auth.dependencies import get_current_user, get_current_coordinator
from arpu.services.certificate_service import certificate_service
from arpu.services.donation_service import donation_service
from arpu.tasks.notifications import send_receipt_in_background

router = APIRouter()


def pdf_response(pdf_bytes: bytes, number: str, kind: str) -> Response:
    filename = f"{kind}-{number.replace('/', '-')}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@router.post("/create-order", response_model=DonationOrderResponse)
@payment_rate_limit()
async def create_order(
    request: Request,
    data: DonationOrderCreate,
    db: AsyncSession = Depends(get_db)
):
    """Open a Razorpay order for a donation (public)"""
    return await donation_service.create_order(
        db,
        data,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


@router.post("/verify-payment", response_model=DonationResponse)
async def verify_payment(
    data: PaymentVerifyRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db)
):
    """Checkout callback: verify the signature and mark the donation successful"""
    donation = await donation_service.verify_payment(
        db, data.razorpay_order_id, data.razorpay_payment_id, data.razorpay_signature
    )
    background_tasks.add_task(send_receipt_in_background, donation.id)
    return donation


@router.post("/fail", response_model=DonationResponse)
async def mark_failed(
    data: PaymentFailRequest,
    db: AsyncSession = Depends(get_db)
):
    """Checkout was dismissed or errored on the client"""
    return await donation_service.mark_failed(db, data.razorpay_order_id, data.reason)


@router.post("/webhook")
async def razorpay_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db)
):
    """Razorpay webhook (payment.captured, payment.failed, order.paid)"""
    body = await request.body()
    result = await donation_service.handle_webhook(db, body, request.headers.get("X-Razorpay-Signature"))
    if result.get("donation_id"):
        background_tasks.add_task(send_receipt_in_background, result["donation_id"])
    return {key: value for key, value in result.items() if key != "donation_id"}


@router.post("/manual", response_model=DonationResponse, status_code=201)
async def record_manual_donation(
    data: ManualDonationCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_coordinator),
    db: AsyncSession = Depends(get_db)
):
    """Offline donation (cash, cheque...) recorded by a coordinator or admin"""
    donation = await donation_service.record_manual(db, current_user, data)
    background_tasks.add_task(send_receipt_in_background, donation.id)
    return donation


@router.get("/by-referral", response_model=List[DonationResponse])
async def donations_by_referral(
    code: str = Query(..., min_length=3, max_length=50),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await donation_service.list_by_referral(db, current_user, code)


@router.get("/{donation_id}", response_model=DonationResponse)
async def get_donation(
    donation_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    donation = await donation_service.get(db, donation_id)
    if not await donation_service.can_view(db, current_user, donation):
        raise AuthorizationError("You cannot view this donation")
    return donation


@router.get("/{donation_id}/certificate")
async def donation_certificate(
    donation_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """CONTRIBUTION certificate PDF for a successful donation"""
    donation = await donation_service.get(db, donation_id)
    if not await donation_service.can_view(db, current_user, donation):
        raise AuthorizationError("You cannot view this donation")

    certificate = await certificate_service.contribution_certificate(db, donation_id)
    logger.info(f"[Certificates] Contribution certificate {certificate.certificate_number} downloaded")
    return pdf_response(certificate_service.render_pdf(certificate), certificate.certificate_number, "certificate")
