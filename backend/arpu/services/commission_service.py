"""
Commission Service - splits each referred donation up the coordinator chain

The attributed user (the referral code owner) earns the direct share:
5% for a volunteer, 15% for any other role. Every coordinator above them
earns 2%, up to COMMISSION_MAX_DEPTH levels. Whatever is left is the
organization fund.

Example for ₹1,000 referred by a volunteer with three coordinators above:

    volunteer        5%   ₹50
    prerna sakhi     2%   ₹20
    prerak           2%   ₹20
    nodal officer    2%   ₹20
    organization         ₹890
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import List, Optional, Sequence, Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_

from arpu.core.config import settings
from arpu.core.exceptions import (
    AuthorizationError,
    ConflictError,
    DonationNotFoundError,
    ResourceNotFoundError,
    ValidationError,
)
from arpu.core.logging_config import logger
from arpu.core.roles import UserRole, hierarchy_level_name
from arpu.models.commission import CommissionLog, CommissionStatus
from arpu.models.donation import Donation, PaymentStatus
from arpu.models.user import User
from arpu.services.hierarchy_service import hierarchy_service
from arpu.utils.pagination import paginate


@dataclass
class CommissionShare:
    user_id: str
    user_name: str
    user_role: str
    hierarchy_level: str
    depth: int
    percentage: float
    amount: int

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["amount_inr"] = self.amount / 100
        return data


def direct_percentage(role) -> float:
    if UserRole(role) == UserRole.VOLUNTEER:
        return settings.COMMISSION_VOLUNTEER_PERCENT
    return settings.COMMISSION_COORDINATOR_PERCENT


def share_amount(amount: int, percentage: float) -> int:
    return int(round(amount * percentage / 100))


def calculate_commissions(amount: int, chain: Sequence[User]) -> List[CommissionShare]:
    """
    Commission shares for a donation of `amount` paise.

    `chain` is the attributed user followed by their coordinators, nearest
    first. The walk stops at a repeated user or after COMMISSION_MAX_DEPTH
    ancestors.
    """
    shares: List[CommissionShare] = []
    seen = set()

    for depth, user in enumerate(chain):
        if depth > settings.COMMISSION_MAX_DEPTH or user.id in seen:
            break
        seen.add(user.id)

        pct = direct_percentage(user.role) if depth == 0 else settings.COMMISSION_ANCESTOR_PERCENT
        shares.append(CommissionShare(
            user_id=user.id,
            user_name=user.name,
            user_role=UserRole(user.role).value,
            hierarchy_level=hierarchy_level_name(user.role),
            depth=depth,
            percentage=pct,
            amount=share_amount(amount, pct),
        ))

    return shares


def organization_fund(amount: int, shares: Sequence[CommissionShare]) -> int:
    return max(0, amount - sum(s.amount for s in shares))


class CommissionService:

    # ==================== DISTRIBUTION ====================

    async def preview(self, db: AsyncSession, donation: Donation) -> List[CommissionShare]:
        if not donation.attributed_to_user_id:
            return []
        chain = await hierarchy_service.get_hierarchy_path(db, donation.attributed_to_user_id)
        return calculate_commissions(donation.amount, chain)

    async def distribute(self, db: AsyncSession, donation_id: str) -> Dict[str, Any]:
        """Create PENDING commission logs for a successful, attributed donation (once)"""
        donation = await db.get(Donation, donation_id)
        if not donation:
            raise DonationNotFoundError(donation_id)
        if donation.payment_status != PaymentStatus.SUCCESS:
            raise ValidationError("Only successful donations can be distributed", field="payment_status")
        if donation.distributed:
            raise ConflictError("Commission already distributed for this donation", details={"donation_id": donation_id})
        if not donation.attributed_to_user_id:
            raise ValidationError("Donation is not attributed to any coordinator", field="attributed_to_user_id")

        shares = await self.preview(db, donation)
        fund = organization_fund(donation.amount, shares)

        for share in shares:
            db.add(CommissionLog(
                donation_id=donation.id,
                user_id=share.user_id,
                user_name=share.user_name,
                user_role=share.user_role,
                hierarchy_level=share.hierarchy_level,
                depth=share.depth,
                commission_amount=share.amount,
                commission_percentage=share.percentage,
                status=CommissionStatus.PENDING,
            ))
            recipient = await db.get(User, share.user_id)
            recipient.commission_wallet = (recipient.commission_wallet or 0) + share.amount

        total = sum(s.amount for s in shares)
        donation.distributed = True
        donation.distributed_at = datetime.utcnow()
        donation.total_commission_distributed = total
        donation.organization_fund_amount = fund
        await db.commit()

        logger.log_payment_event(
            "commission_distributed", total, reference=donation.id,
            recipients=len(shares), organization_fund=fund,
        )
        return {
            "donation_id": donation.id,
            "donation_amount": donation.amount,
            "total_commission": total,
            "organization_fund": fund,
            "commissions": [s.as_dict() for s in shares],
        }

    async def get_undistributed_donations(self, db: AsyncSession, limit: int = 50) -> List[Donation]:
        result = await db.execute(
            select(Donation)
            .where(and_(
                Donation.payment_status == PaymentStatus.SUCCESS,
                Donation.distributed.is_(False),
                Donation.attributed_to_user_id.isnot(None),
            ))
            .order_by(Donation.created_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def distribute_pending(self, db: AsyncSession, limit: int = 50) -> Dict[str, List]:
        distributed, failed = [], []
        donation_ids = [d.id for d in await self.get_undistributed_donations(db, limit)]
        for donation_id in donation_ids:
            try:
                distributed.append(await self.distribute(db, donation_id))
            except (ValidationError, ConflictError) as e:
                logger.warning(f"[Commission] Skipped {donation_id}: {e.message}")
                failed.append({"donation_id": donation_id, "error": e.message})
        return {"distributed": distributed, "failed": failed}

    # ==================== SETTLEMENT ====================

    async def _get_log(self, db: AsyncSession, log_id: str) -> CommissionLog:
        log = await db.get(CommissionLog, log_id)
        if not log:
            raise ResourceNotFoundError("Commission", log_id)
        return log

    def _transition(self, log: CommissionLog, new_status: CommissionStatus) -> None:
        if not log.can_transition_to(new_status):
            raise ValidationError(
                f"Cannot move commission from {log.status.value} to {new_status.value}",
                field="status",
            )
        log.status = new_status

    async def _debit_wallet(self, db: AsyncSession, log: CommissionLog) -> None:
        user = await db.get(User, log.user_id)
        if user:
            user.commission_wallet = max(0, (user.commission_wallet or 0) - log.commission_amount)

    async def mark_paid(
        self,
        db: AsyncSession,
        actor: User,
        log_ids: List[str],
        transaction_id: Optional[str] = None,
        payment_method: str = "MANUAL",
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """PENDING -> PAID for each log; anything else is skipped and reported"""
        if not actor.is_admin:
            raise AuthorizationError("Only admins can settle commissions")

        paid, skipped = [], []
        total_paid = 0
        now = datetime.utcnow()

        for log_id in dict.fromkeys(log_ids):
            log = await db.get(CommissionLog, log_id)
            if not log:
                skipped.append({"id": log_id, "reason": "not found"})
                continue
            if log.status != CommissionStatus.PENDING:
                skipped.append({"id": log_id, "reason": f"status is {log.status.value}"})
                continue

            self._transition(log, CommissionStatus.PAID)
            log.paid_at = now
            log.transaction_id = transaction_id
            log.payment_method = payment_method
            if notes:
                log.notes = notes
            await self._debit_wallet(db, log)
            paid.append(log.id)
            total_paid += log.commission_amount

        await db.commit()
        logger.log_payment_event(
            "commission_paid", total_paid, reference=transaction_id,
            paid_count=len(paid), skipped_count=len(skipped), admin_id=actor.id,
        )
        return {"paid": paid, "skipped": skipped, "total_paid": total_paid, "total_paid_inr": total_paid / 100}

    async def mark_failed(self, db: AsyncSession, actor: User, log_id: str, reason: str) -> CommissionLog:
        if not actor.is_admin:
            raise AuthorizationError("Only admins can settle commissions")
        log = await self._get_log(db, log_id)
        self._transition(log, CommissionStatus.FAILED)
        log.notes = reason
        await db.commit()
        await db.refresh(log)
        logger.log_payment_event("commission_failed", log.commission_amount, reference=log.id, success=False)
        return log

    async def retry(self, db: AsyncSession, actor: User, log_id: str) -> CommissionLog:
        """FAILED -> PENDING so the payout can be attempted again"""
        if not actor.is_admin:
            raise AuthorizationError("Only admins can settle commissions")
        log = await self._get_log(db, log_id)
        self._transition(log, CommissionStatus.PENDING)
        await db.commit()
        await db.refresh(log)
        return log

    async def cancel(self, db: AsyncSession, actor: User, log_id: str, reason: str) -> CommissionLog:
        """PENDING -> CANCELLED, taking the amount back out of the wallet"""
        if not actor.is_admin:
            raise AuthorizationError("Only admins can cancel commissions")
        log = await self._get_log(db, log_id)
        self._transition(log, CommissionStatus.CANCELLED)
        log.notes = reason
        await self._debit_wallet(db, log)
        await db.commit()
        await db.refresh(log)
        logger.log_payment_event("commission_cancelled", log.commission_amount, reference=log.id, reason=reason)
        return log

    # ==================== REPORTING ====================

    async def list_logs(
        self,
        db: AsyncSession,
        user_id: Optional[str] = None,
        status: Optional[CommissionStatus] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> dict:
        query = select(CommissionLog)
        if user_id:
            query = query.where(CommissionLog.user_id == user_id)
        if status:
            query = query.where(CommissionLog.status == status)
        return await paginate(db, query.order_by(CommissionLog.created_at.desc()), page, page_size)

    async def _sum_by_status(self, db: AsyncSession, *conditions) -> Dict[CommissionStatus, int]:
        result = await db.execute(
            select(CommissionLog.status, func.coalesce(func.sum(CommissionLog.commission_amount), 0))
            .where(*conditions)
            .group_by(CommissionLog.status)
        )
        totals = {status: 0 for status in CommissionStatus}
        for status, amount in result.all():
            totals[status] = int(amount)
        return totals

    async def get_user_summary(self, db: AsyncSession, user_id: str) -> Dict[str, Any]:
        user = await hierarchy_service.get_user(db, user_id)
        totals = await self._sum_by_status(db, CommissionLog.user_id == user_id)
        count = (await db.execute(
            select(func.count(CommissionLog.id)).where(CommissionLog.user_id == user_id)
        )).scalar() or 0
        recent = await db.execute(
            select(CommissionLog)
            .where(CommissionLog.user_id == user_id)
            .order_by(CommissionLog.created_at.desc())
            .limit(10)
        )

        earned = totals[CommissionStatus.PENDING] + totals[CommissionStatus.PAID]
        return {
            "user_id": user_id,
            "total_earned": earned,
            "total_earned_inr": earned / 100,
            "pending": totals[CommissionStatus.PENDING],
            "pending_inr": totals[CommissionStatus.PENDING] / 100,
            "paid": totals[CommissionStatus.PAID],
            "paid_inr": totals[CommissionStatus.PAID] / 100,
            "commission_count": count,
            "wallet_balance": user.commission_wallet or 0,
            "recent": list(recent.scalars().all()),
        }

    async def get_organization_summary(self, db: AsyncSession) -> Dict[str, Any]:
        totals = await self._sum_by_status(db)
        counts = await db.execute(
            select(func.count(CommissionLog.id), func.count(func.distinct(CommissionLog.user_id)))
        )
        count, recipients = counts.one()
        fund = (await db.execute(
            select(func.coalesce(func.sum(Donation.organization_fund_amount), 0)).where(Donation.distributed.is_(True))
        )).scalar() or 0
        undistributed = (await db.execute(
            select(func.count(Donation.id)).where(and_(
                Donation.payment_status == PaymentStatus.SUCCESS,
                Donation.distributed.is_(False),
                Donation.attributed_to_user_id.isnot(None),
            ))
        )).scalar() or 0

        distributed = totals[CommissionStatus.PENDING] + totals[CommissionStatus.PAID]
        return {
            "total_distributed": distributed,
            "total_distributed_inr": distributed / 100,
            "pending": totals[CommissionStatus.PENDING],
            "paid": totals[CommissionStatus.PAID],
            "cancelled": totals[CommissionStatus.CANCELLED],
            "failed": totals[CommissionStatus.FAILED],
            "commission_count": count,
            "unique_recipients": recipients,
            "organization_fund": int(fund),
            "organization_fund_inr": int(fund) / 100,
            "undistributed_donations": undistributed,
        }


commission_service = CommissionService()
