"""
Outgoing mail jobs.

Each job has an async body that takes a session, reused by FastAPI
BackgroundTasks, the Celery receipt sweep and tests.
"""

import asyncio

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from arpu.core.celery_app import celery_app
from arpu.core.database import AsyncSessionLocal, close_db
from arpu.core.logging_config import logger
from arpu.models.donation import Donation, PaymentStatus, Receipt
from arpu.services.certificate_service import certificate_service, TITLES
from arpu.services.email_service import email_service
from arpu.services.receipt_service import receipt_service


async def deliver_donation_receipt(db: AsyncSession, donation_id: str) -> bool:
    """Create the receipt if missing and mail the PDF to the donor"""
    receipt = await receipt_service.get_or_create(db, donation_id)
    if receipt.email_sent:
        return True
    if not receipt.donor_email:
        logger.info(f"[Receipts] No donor email for {receipt.receipt_number}, not sending")
        return False

    sent = await email_service.send_donation_receipt(
        receipt.donor_email,
        receipt.donor_name,
        receipt.amount_inr,
        receipt.receipt_number,
        receipt_service.render_pdf(receipt),
    )
    if sent:
        await receipt_service.mark_emailed(db, receipt)
    return sent


async def deliver_certificate(db: AsyncSession, certificate_id: str) -> bool:
    certificate = await certificate_service.get(db, certificate_id)
    if not certificate.recipient_email:
        logger.info(f"[Certificates] No recipient email for {certificate.certificate_number}")
        return False

    sent = await email_service.send_certificate(
        certificate.recipient_email,
        certificate.recipient_name,
        certificate.certificate_number,
        TITLES[certificate.certificate_type],
        certificate_service.render_pdf(certificate),
    )
    if sent:
        await certificate_service.mark_sent(db, certificate)
    return sent


async def pending_receipt_donation_ids(db: AsyncSession, limit: int = 100):
    """SUCCESS donations with a donor email and no mailed receipt"""
    result = await db.execute(
        select(Donation.id)
        .outerjoin(Receipt, Receipt.donation_id == Donation.id)
        .where(and_(
            Donation.payment_status == PaymentStatus.SUCCESS,
            Donation.donor_email.isnot(None),
            (Receipt.id.is_(None)) | (Receipt.email_sent.is_(False)),
        ))
        .order_by(Donation.created_at)
        .limit(limit)
    )
    return [row[0] for row in result.all()]


# ==================== BACKGROUND TASK ENTRY POINTS ====================
# Called through FastAPI BackgroundTasks after the response is sent.

async def send_receipt_in_background(donation_id: str) -> None:
    if not email_service.is_configured:
        return
    async with AsyncSessionLocal() as db:
        try:
            await deliver_donation_receipt(db, donation_id)
        except Exception as e:
            logger.log_error_with_context(e, context="receipt email", donation_id=donation_id)


async def send_certificate_in_background(certificate_id: str) -> None:
    if not email_service.is_configured:
        return
    async with AsyncSessionLocal() as db:
        try:
            await deliver_certificate(db, certificate_id)
        except Exception as e:
            logger.log_error_with_context(e, context="certificate email", certificate_id=certificate_id)


async def send_account_approved(email: str, name: str, role_display: str) -> None:
    await email_service.send_account_approved(email, name, role_display)


async def send_volunteer_welcome(email: str, name: str) -> None:
    await email_service.send_volunteer_welcome(email, name)


async def send_contact_acknowledgement(email: str, name: str, subject: str) -> None:
    await email_service.send_contact_acknowledgement(email, name, subject)


async def send_password_reset(email: str, name: str, token: str) -> None:
    await email_service.send_password_reset(email, name, token)


async def send_email_verification(email: str, name: str, token: str) -> None:
    await email_service.send_email_verification(email, name, token)


# ==================== CELERY TASKS ====================

async def _send_pending_receipts(limit: int) -> dict:
    try:
        async with AsyncSessionLocal() as db:
            ids = await pending_receipt_donation_ids(db, limit)
            sent = 0
            for donation_id in ids:
                if await deliver_donation_receipt(db, donation_id):
                    sent += 1
            return {"checked": len(ids), "sent": sent}
    finally:
        # pooled connections belong to this asyncio.run loop
        await close_db()


@celery_app.task(name="arpu.tasks.notifications.send_pending_receipts")
def send_pending_receipts(limit: int = 100):
    """Retry receipts whose first delivery did not go out"""
    result = asyncio.run(_send_pending_receipts(limit))
    logger.info(f"[Celery] Pending receipts: {result}")
    return result
