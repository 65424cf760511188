"""
Referral Service - coordinator referral codes

Handles:
- Human-readable code generation (name + region, numbered on collision)
- Attribution lookups for donations
- Usage statistics and analytics
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from sqlalchemy.orm import selectinload
from typing import Optional, List, Tuple
import re

from arpu.core.exceptions import ConflictError, ResourceNotFoundError
from arpu.core.logging_config import logger
from arpu.models.referral_code import ReferralCode, ReferralCodeType
from arpu.models.donation import Donation, PaymentStatus
from arpu.models.user import User

MAX_COLLISION_SUFFIX = 999


def code_base(name: str, region: str) -> str:
    """
    "Ravi Kumar", "Bihar" -> "RAVKUM-BIH"

    First three letters of each name word (max six letters), then the
    region's first three alphanumerics padded with X.
    """
    words = [re.sub(r"[^A-Za-z]", "", w) for w in name.split()]
    prefix = "".join(w[:3] for w in words if w).upper()[:6] or "ARPU"
    region_part = re.sub(r"[^A-Za-z0-9]", "", region).upper()[:3].ljust(3, "X")
    return f"{prefix}-{region_part}"


class ReferralService:

    async def code_exists(self, db: AsyncSession, code: str) -> bool:
        result = await db.execute(select(ReferralCode.id).where(ReferralCode.code == code))
        return result.scalar_one_or_none() is not None

    async def generate_unique_code(self, db: AsyncSession, name: str, region: str) -> str:
        base = code_base(name, region)
        if not await self.code_exists(db, base):
            return base

        for n in range(1, MAX_COLLISION_SUFFIX + 1):
            candidate = f"{base}-{n:02d}"
            if not await self.code_exists(db, candidate):
                return candidate

        raise ConflictError(f"Unable to generate a unique referral code for {base}")

    async def get_active_code_for_user(self, db: AsyncSession, user_id: str) -> Optional[ReferralCode]:
        result = await db.execute(
            select(ReferralCode)
            .where(and_(ReferralCode.owner_user_id == user_id, ReferralCode.active.is_(True)))
            .order_by(ReferralCode.created_at.desc())
        )
        return result.scalars().first()

    async def create_for_user(
        self,
        db: AsyncSession,
        user: User,
        region: str,
        parent_code: Optional[ReferralCode] = None,
        code: Optional[str] = None,
    ) -> ReferralCode:
        """One active code per user; codes under a parent become SUB_COORDINATOR"""
        if await self.get_active_code_for_user(db, user.id):
            raise ConflictError("User already has an active referral code", details={"user_id": user.id})

        if code:
            if await self.code_exists(db, code):
                raise ConflictError(f"Referral code '{code}' already exists")
        else:
            code = await self.generate_unique_code(db, user.name, region)

        referral = ReferralCode(
            code=code,
            owner_user_id=user.id,
            parent_code_id=parent_code.id if parent_code else None,
            type=ReferralCodeType.SUB_COORDINATOR if parent_code else ReferralCodeType.COORDINATOR,
            region=region,
            active=True,
        )
        db.add(referral)
        await db.commit()
        await db.refresh(referral)

        logger.info(f"[Referral] Created {referral.code} for {user.email}")
        return referral

    async def get_by_id(self, db: AsyncSession, code_id: str) -> ReferralCode:
        referral = await db.get(ReferralCode, code_id)
        if not referral:
            raise ResourceNotFoundError("Referral code", code_id)
        return referral

    async def find_by_code(self, db: AsyncSession, code: str) -> Optional[ReferralCode]:
        """Active code lookup; input is case-insensitive"""
        result = await db.execute(
            select(ReferralCode)
            .options(selectinload(ReferralCode.owner))
            .where(and_(ReferralCode.code == code.strip().upper(), ReferralCode.active.is_(True)))
        )
        return result.scalar_one_or_none()

    async def resolve_attribution(
        self,
        db: AsyncSession,
        code: Optional[str]
    ) -> Tuple[Optional[ReferralCode], Optional[User]]:
        """
        (referral_code, owner) for a donation.

        Falls back to a user's personal code (e.g. DC0427) when no
        ReferralCode row matches.
        """
        if not code:
            return None, None

        referral = await self.find_by_code(db, code)
        if referral:
            return referral, referral.owner

        result = await db.execute(select(User).where(User.referral_code == code.strip().upper()))
        owner = result.scalar_one_or_none()
        if owner and owner.is_active:
            return None, owner

        return None, None

    async def get_hierarchy_chain(self, db: AsyncSession, code: str) -> List[ReferralCode]:
        """The code followed by each parent code up to the root"""
        result = await db.execute(select(ReferralCode).where(ReferralCode.code == code.strip().upper()))
        current = result.scalar_one_or_none()
        if not current:
            raise ResourceNotFoundError("Referral code", code)

        chain: List[ReferralCode] = []
        seen = set()
        while current is not None and current.id not in seen:
            seen.add(current.id)
            chain.append(current)
            current = await db.get(ReferralCode, current.parent_code_id) if current.parent_code_id else None
        return chain

    async def update_stats(self, db: AsyncSession, code_id: str) -> ReferralCode:
        """Recompute totals from SUCCESS donations"""
        referral = await self.get_by_id(db, code_id)
        await db.flush()
        result = await db.execute(
            select(
                func.count(Donation.id),
                func.coalesce(func.sum(Donation.amount), 0),
                func.max(Donation.created_at),
            ).where(
                and_(Donation.referral_code_id == code_id, Donation.payment_status == PaymentStatus.SUCCESS)
            )
        )
        count, total, last_used = result.one()
        referral.total_donations = count
        referral.total_amount = int(total)
        referral.last_used = last_used
        await db.flush()
        return referral

    async def list_for_owner(self, db: AsyncSession, user_id: str) -> List[ReferralCode]:
        result = await db.execute(
            select(ReferralCode)
            .where(ReferralCode.owner_user_id == user_id)
            .order_by(ReferralCode.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_children(self, db: AsyncSession, code_id: str) -> List[ReferralCode]:
        result = await db.execute(
            select(ReferralCode).options(selectinload(ReferralCode.owner)).where(ReferralCode.parent_code_id == code_id)
        )
        return list(result.scalars().all())

    async def top_performers(self, db: AsyncSession, limit: int = 10,
                             owner_ids: Optional[List[str]] = None) -> List[ReferralCode]:
        query = select(ReferralCode).where(ReferralCode.active.is_(True))
        if owner_ids is not None:
            query = query.where(ReferralCode.owner_user_id.in_(owner_ids))
        result = await db.execute(
            query.order_by(ReferralCode.total_amount.desc(), ReferralCode.total_donations.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def set_active(self, db: AsyncSession, code_id: str, active: bool) -> ReferralCode:
        referral = await self.get_by_id(db, code_id)
        if active and not referral.active:
            other = await self.get_active_code_for_user(db, referral.owner_user_id)
            if other:
                raise ConflictError("Owner already has another active referral code")
        referral.active = active
        await db.commit()
        await db.refresh(referral)
        logger.info(f"[Referral] {referral.code} {'activated' if active else 'deactivated'}")
        return referral

    async def activate(self, db: AsyncSession, code_id: str) -> ReferralCode:
        return await self.set_active(db, code_id, True)

    async def deactivate(self, db: AsyncSession, code_id: str) -> ReferralCode:
        return await self.set_active(db, code_id, False)

    async def analytics(self, db: AsyncSession, owner_ids: Optional[List[str]] = None) -> dict:
        conditions = [ReferralCode.owner_user_id.in_(owner_ids)] if owner_ids is not None else []
        result = await db.execute(
            select(
                func.count(ReferralCode.id),
                func.coalesce(func.sum(ReferralCode.total_donations), 0),
                func.coalesce(func.sum(ReferralCode.total_amount), 0),
            ).where(*conditions)
        )
        total_codes, total_donations, total_amount = result.one()
        active = await db.execute(
            select(func.count(ReferralCode.id)).where(ReferralCode.active.is_(True), *conditions)
        )
        return {
            "total_codes": total_codes,
            "active_codes": active.scalar() or 0,
            "total_donations": int(total_donations),
            "total_amount": int(total_amount),
            "total_amount_inr": int(total_amount) / 100,
            "top_performers": await self.top_performers(db, 10, owner_ids),
        }


referral_service = ReferralService()
