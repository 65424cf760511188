"""
Donation Service - Razorpay checkout, webhooks and manual donations

Flow:
1. create_order  -> Razorpay order + PENDING donation
2. verify_payment (checkout callback) or the webhook -> SUCCESS
3. on SUCCESS: program / referral / referrer stats, commission distribution

Amounts are paise throughout.
"""

from datetime import datetime
from typing import Optional, Dict, Any, List
import json
import time

import razorpay
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_, or_

from arpu.core.config import settings
from arpu.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DonationNotFoundError,
    GatewayNotConfiguredError,
    PaymentError,
    PaymentVerificationError,
    ValidationError,
)
from arpu.core.logging_config import logger
from arpu.core.roles import is_coordinator
from arpu.core.security import verify_signature
from arpu.models.donation import Donation, PaymentStatus
from arpu.models.program import Program
from arpu.models.referral_code import ReferralCode
from arpu.models.user import User
from arpu.schemas.donation import DonationOrderCreate, ManualDonationCreate
from arpu.services.commission_service import commission_service
from arpu.services.hierarchy_service import hierarchy_service
from arpu.services.program_service import program_service
from arpu.services.referral_service import referral_service
from arpu.utils.pagination import paginate


def calculate_fees(amount: int) -> Dict[str, int]:
    """Gateway fee incl. GST, rounded to the paise"""
    fees = int(round(amount * settings.PAYMENT_FEE_PERCENT / 100))
    return {"amount": amount, "fees": fees, "net_amount": amount - fees}


class DonationService:

    def __init__(self):
        self._client = None

    def get_client(self):
        """Razorpay client, created on first use"""
        if self._client is None:
            if not settings.razorpay_configured:
                raise GatewayNotConfiguredError()
            self._client = razorpay.Client(auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET))
        return self._client

    # ==================== LOOKUPS ====================

    async def get(self, db: AsyncSession, donation_id: str) -> Donation:
        donation = await db.get(Donation, donation_id)
        if not donation:
            raise DonationNotFoundError(donation_id)
        return donation

    async def get_by_order(self, db: AsyncSession, order_id: str) -> Donation:
        result = await db.execute(select(Donation).where(Donation.razorpay_order_id == order_id))
        donation = result.scalar_one_or_none()
        if not donation:
            raise DonationNotFoundError(order_id)
        return donation

    async def can_view(self, db: AsyncSession, user: User, donation: Donation) -> bool:
        """Admin, the attributed user, or anyone above them in the chain"""
        if user.is_admin:
            return True
        if donation.attributed_to_user_id:
            return await hierarchy_service.can_view_user(db, user, donation.attributed_to_user_id)
        return bool(donation.donor_email) and donation.donor_email == user.email

    async def _validate_program(self, db: AsyncSession, program_id: Optional[str]) -> Optional[Program]:
        if not program_id:
            return None
        program = await db.get(Program, program_id)
        if not program or not program.active:
            raise ValidationError("Program not found or inactive", field="program_id")
        return program

    # ==================== CHECKOUT ====================

    async def create_order(
        self,
        db: AsyncSession,
        data: DonationOrderCreate,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Dict[str, Any]:
        await self._validate_program(db, data.program_id)

        referral, owner = await referral_service.resolve_attribution(db, data.referral_code)
        if data.referral_code and owner is None:
            raise ValidationError("Invalid referral code", field="referral_code")

        client = self.get_client()
        order_data = {
            "amount": data.amount,
            "currency": data.currency.value,
            "receipt": f"don_{int(time.time())}",
            "notes": {
                "donor_name": data.donor_name,
                "donor_email": data.donor_email or "",
                "program_id": data.program_id or "",
                "referral_code": data.referral_code or "",
            },
        }
        try:
            order = client.order.create(data=order_data)
        except razorpay.errors.BadRequestError as e:
            logger.log_payment_event("order_create", data.amount, success=False, error=str(e))
            raise PaymentError(f"Could not create payment order: {e}")

        donation = Donation(
            donor_name=data.donor_name,
            donor_email=data.donor_email,
            donor_phone=data.donor_phone,
            is_anonymous=data.is_anonymous,
            amount=data.amount,
            currency=data.currency,
            program_id=data.program_id,
            payment_status=PaymentStatus.PENDING,
            razorpay_order_id=order["id"],
            referral_code_id=referral.id if referral else None,
            attributed_to_user_id=owner.id if owner else None,
            ip_address=ip_address,
            user_agent=(user_agent or "")[:500] or None,
        )
        db.add(donation)
        await db.commit()
        await db.refresh(donation)

        logger.log_payment_event("order_created", data.amount, reference=order["id"], donation_id=donation.id)
        return {
            "donation_id": donation.id,
            "order_id": order["id"],
            "amount": donation.amount,
            "amount_inr": donation.amount_inr,
            "currency": donation.currency.value,
            "key_id": settings.RAZORPAY_KEY_ID,
            "donor_name": donation.donor_name,
            "referral_valid": owner is not None,
        }

    async def verify_payment(
        self,
        db: AsyncSession,
        order_id: str,
        payment_id: str,
        signature: str,
    ) -> Donation:
        """Checkout callback. Idempotent: an already-SUCCESS donation is returned as is."""
        if not settings.RAZORPAY_KEY_SECRET:
            raise GatewayNotConfiguredError()

        donation = await self.get_by_order(db, order_id)
        if donation.payment_status == PaymentStatus.SUCCESS:
            return donation

        message = f"{order_id}|{payment_id}".encode()
        if not verify_signature(settings.RAZORPAY_KEY_SECRET, message, signature):
            donation.payment_status = PaymentStatus.FAILED
            donation.failure_reason = "Invalid payment signature"
            await db.commit()
            logger.log_payment_event("verify", donation.amount, reference=order_id, success=False)
            raise PaymentVerificationError(order_id)

        donation.razorpay_signature = signature
        return await self.mark_success(db, donation, payment_id)

    async def mark_success(self, db: AsyncSession, donation: Donation, payment_id: Optional[str]) -> Donation:
        donation.payment_status = PaymentStatus.SUCCESS
        donation.razorpay_payment_id = payment_id or donation.razorpay_payment_id
        donation.failure_reason = None
        await self._apply_success_stats(db, donation)
        await db.commit()

        logger.log_payment_event("donation_success", donation.amount, reference=donation.razorpay_order_id or donation.id)
        await self._distribute_safely(db, donation)
        return donation

    async def _apply_success_stats(self, db: AsyncSession, donation: Donation) -> None:
        if donation.program_id:
            await program_service.update_funding_stats(db, donation.program_id)
        if donation.referral_code_id:
            await referral_service.update_stats(db, donation.referral_code_id)
        if donation.attributed_to_user_id:
            referrer = await db.get(User, donation.attributed_to_user_id)
            if referrer:
                referrer.total_donations_referred = (referrer.total_donations_referred or 0) + 1
                referrer.total_amount_referred = (referrer.total_amount_referred or 0) + donation.amount

    async def _distribute_safely(self, db: AsyncSession, donation: Donation) -> None:
        if not donation.attributed_to_user_id:
            return
        donation_id = donation.id
        try:
            await commission_service.distribute(db, donation_id)
        except Exception as e:
            await db.rollback()
            logger.log_error_with_context(e, context="commission distribution", donation_id=donation_id)
        await db.refresh(donation)

    async def mark_failed(self, db: AsyncSession, order_id: str, reason: Optional[str] = None) -> Donation:
        donation = await self.get_by_order(db, order_id)
        if donation.payment_status != PaymentStatus.PENDING:
            raise ValidationError(
                f"Only pending donations can be marked failed (status: {donation.payment_status.value})",
                field="payment_status",
            )
        donation.payment_status = PaymentStatus.FAILED
        donation.failure_reason = (reason or "Payment failed")[:500]
        await db.commit()
        await db.refresh(donation)
        logger.log_payment_event("donation_failed", donation.amount, reference=order_id, success=False)
        return donation

    # ==================== WEBHOOK ====================

    async def handle_webhook(self, db: AsyncSession, body: bytes, signature: Optional[str]) -> Dict[str, str]:
        """
        Razorpay webhook: payment.captured / order.paid -> SUCCESS,
        payment.failed -> FAILED. Unknown orders are ignored.

        A newly successful donation's id comes back under "donation_id"
        so the caller can queue the receipt.
        """
        if not settings.RAZORPAY_WEBHOOK_SECRET:
            logger.warning("[Webhook] Webhook secret not configured")
            return {"status": "skipped", "reason": "webhook not configured"}

        if not verify_signature(settings.RAZORPAY_WEBHOOK_SECRET, body, signature):
            logger.warning("[Webhook] Invalid webhook signature")
            raise AuthenticationError("Invalid webhook signature")

        try:
            payload = json.loads(body.decode() or "{}")
        except ValueError:
            raise ValidationError("Invalid webhook payload")
        event = payload.get("event")
        logger.info(f"[Webhook] Received event: {event}")

        entities = payload.get("payload", {})
        payment = entities.get("payment", {}).get("entity", {})
        order = entities.get("order", {}).get("entity", {})
        order_id = payment.get("order_id") or order.get("id")
        if not order_id:
            return {"status": "ignored", "reason": "no order id"}

        result = await db.execute(select(Donation).where(Donation.razorpay_order_id == order_id))
        donation = result.scalar_one_or_none()
        if not donation:
            logger.warning(f"[Webhook] Donation not found for order {order_id}")
            return {"status": "ignored", "reason": "unknown order"}

        if event in ("payment.captured", "order.paid"):
            if donation.payment_status != PaymentStatus.SUCCESS:
                await self.mark_success(db, donation, payment.get("id") or order.get("payment_id"))
                return {"status": "ok", "donation_id": donation.id}
        elif event == "payment.failed":
            if donation.payment_status == PaymentStatus.PENDING:
                donation.payment_status = PaymentStatus.FAILED
                donation.failure_reason = (payment.get("error_description") or "Payment failed")[:500]
                await db.commit()
        return {"status": "ok"}

    # ==================== MANUAL ====================

    async def record_manual(self, db: AsyncSession, actor: User, data: ManualDonationCreate) -> Donation:
        """Offline donation, SUCCESS immediately; attributed to the caller unless a code is given"""
        if not (actor.is_admin or is_coordinator(actor.role)):
            raise AuthorizationError("Only coordinators and admins can record manual donations")
        await self._validate_program(db, data.program_id)

        referral, owner = None, actor
        if data.referral_code:
            referral, owner = await referral_service.resolve_attribution(db, data.referral_code)
            if owner is None:
                raise ValidationError("Invalid referral code", field="referral_code")

        donation = Donation(
            donor_name=data.donor_name,
            donor_email=data.donor_email,
            donor_phone=data.donor_phone,
            is_anonymous=data.is_anonymous,
            amount=data.amount,
            currency=data.currency,
            program_id=data.program_id,
            payment_status=PaymentStatus.PENDING,
            razorpay_payment_id=data.payment_reference,
            is_manual=True,
            recorded_by=actor.id,
            referral_code_id=referral.id if referral else None,
            attributed_to_user_id=owner.id if owner and not owner.is_admin else None,
        )
        db.add(donation)
        await db.flush()

        logger.info(f"[Donations] Manual donation recorded by {actor.email}", extra={"donation_id": donation.id})
        return await self.mark_success(db, donation, data.payment_reference)

    # ==================== LISTINGS ====================

    async def list_by_referral(self, db: AsyncSession, user: User, code: str) -> List[Donation]:
        referral = (await db.execute(
            select(ReferralCode).where(ReferralCode.code == code.strip().upper())
        )).scalar_one_or_none()
        if referral:
            if not user.is_admin and referral.owner_user_id != user.id:
                raise AuthorizationError("You can only view donations for your own referral code")
            condition = Donation.referral_code_id == referral.id
        else:
            owner = (await db.execute(
                select(User).where(User.referral_code == code.strip().upper())
            )).scalar_one_or_none()
            if not owner:
                raise ValidationError("Referral code not found", field="code")
            if not user.is_admin and owner.id != user.id:
                raise AuthorizationError("You can only view donations for your own referral code")
            condition = Donation.attributed_to_user_id == owner.id

        result = await db.execute(select(Donation).where(condition).order_by(Donation.created_at.desc()))
        return list(result.scalars().all())

    async def list_for_coordinator(
        self,
        db: AsyncSession,
        user: User,
        page: int = 1,
        page_size: int = 20,
        status: Optional[PaymentStatus] = None,
    ) -> dict:
        ids = [user.id] + await hierarchy_service.get_subordinate_ids(db, user.id)
        query = select(Donation).where(Donation.attributed_to_user_id.in_(ids))
        if status:
            query = query.where(Donation.payment_status == status)
        return await paginate(db, query.order_by(Donation.created_at.desc()), page, page_size)

    def admin_query(
        self,
        status: Optional[PaymentStatus] = None,
        program_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        search: Optional[str] = None,
    ):
        query = select(Donation)
        if status:
            query = query.where(Donation.payment_status == status)
        if program_id:
            query = query.where(Donation.program_id == program_id)
        if date_from:
            query = query.where(Donation.created_at >= date_from)
        if date_to:
            query = query.where(Donation.created_at <= date_to)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(or_(
                Donation.donor_name.ilike(pattern),
                Donation.donor_email.ilike(pattern),
                Donation.donor_phone.ilike(pattern),
                Donation.razorpay_payment_id.ilike(pattern),
            ))
        return query.order_by(Donation.created_at.desc())

    async def stats(self, db: AsyncSession) -> Dict[str, Any]:
        counts = await db.execute(select(Donation.payment_status, func.count(Donation.id)).group_by(Donation.payment_status))
        by_status = {status: 0 for status in PaymentStatus}
        for status, count in counts.all():
            by_status[status] = count

        success = and_(Donation.payment_status == PaymentStatus.SUCCESS)
        total = int((await db.execute(
            select(func.coalesce(func.sum(Donation.amount), 0)).where(success)
        )).scalar() or 0)
        success_count = by_status[PaymentStatus.SUCCESS]
        average = int(round(total / success_count)) if success_count else 0

        top = await db.execute(
            select(Program.id, Program.name, func.count(Donation.id), func.sum(Donation.amount))
            .join(Donation, Donation.program_id == Program.id)
            .where(success)
            .group_by(Program.id, Program.name)
            .order_by(func.sum(Donation.amount).desc())
            .limit(5)
        )

        return {
            "total_amount": total,
            "total_amount_inr": total / 100,
            "total_count": sum(by_status.values()),
            "success_count": success_count,
            "failed_count": by_status[PaymentStatus.FAILED],
            "pending_count": by_status[PaymentStatus.PENDING],
            "refunded_count": by_status[PaymentStatus.REFUNDED],
            "average_amount": average,
            "average_amount_inr": average / 100,
            "top_programs": [
                {"program_id": pid, "name": name, "count": count, "amount": int(amount or 0)}
                for pid, name, count, amount in top.all()
            ],
        }


donation_service = DonationService()

__all__ = ["donation_service", "DonationService", "calculate_fees"]
