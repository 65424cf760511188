"""
Admin Dashboard endpoints - KPIs and recent activity.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from datetime import datetime
from typing import List

from arpu.core.database import get_db
from arpu.models.donation import Donation, PaymentStatus
from arpu.models.user import User, UserStatus
from arpu.modules.auth.dependencies import get_current_admin
from arpu.schemas.admin import AdminDashboardStats
from arpu.schemas.auth import UserResponse
from arpu.schemas.donation import DonationResponse
from arpu.services.commission_service import commission_service

router = APIRouter()


def month_bounds(now: datetime):
    """(start of this month, start of last month)"""
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if month_start.month == 1:
        last_month_start = month_start.replace(year=month_start.year - 1, month=12)
    else:
        last_month_start = month_start.replace(month=month_start.month - 1)
    return month_start, last_month_start


def growth_percent(current: int, previous: int) -> float:
    if previous <= 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 2)


@router.get("/stats", response_model=AdminDashboardStats)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Get dashboard KPI statistics"""
    month_start, last_month_start = month_bounds(datetime.utcnow())
    success = Donation.payment_status == PaymentStatus.SUCCESS

    # Donation stats (paise)
    total_amount = await db.scalar(select(func.coalesce(func.sum(Donation.amount), 0)).where(success))
    total_count = await db.scalar(select(func.count(Donation.id)).where(success))
    this_month = await db.scalar(
        select(func.coalesce(func.sum(Donation.amount), 0)).where(
            and_(success, Donation.created_at >= month_start)
        )
    )
    last_month = await db.scalar(
        select(func.coalesce(func.sum(Donation.amount), 0)).where(
            and_(success, Donation.created_at >= last_month_start, Donation.created_at < month_start)
        )
    )

    # User stats
    total_users = await db.scalar(select(func.count(User.id)))
    active_users = await db.scalar(select(func.count(User.id)).where(User.status == UserStatus.ACTIVE))
    pending_users = await db.scalar(select(func.count(User.id)).where(User.status == UserStatus.PENDING))
    new_users_month = await db.scalar(select(func.count(User.id)).where(User.created_at >= month_start))

    commissions = await commission_service.get_organization_summary(db)

    total_amount, this_month, last_month = int(total_amount or 0), int(this_month or 0), int(last_month or 0)
    return AdminDashboardStats(
        donations={
            "total_amount": total_amount,
            "total_amount_inr": total_amount / 100,
            "total_count": total_count or 0,
            "this_month": this_month,
            "this_month_inr": this_month / 100,
            "last_month": last_month,
            "last_month_inr": last_month / 100,
            "growth_percent": growth_percent(this_month, last_month),
        },
        users={
            "total": total_users or 0,
            "active": active_users or 0,
            "pending": pending_users or 0,
            "new_this_month": new_users_month or 0,
        },
        commissions={
            "total_distributed": commissions["total_distributed"],
            "pending": commissions["pending"],
            "paid": commissions["paid"],
            "organization_fund": commissions["organization_fund"],
            "undistributed_donations": commissions["undistributed_donations"],
        },
    )


@router.get("/recent-donations", response_model=List[DonationResponse])
async def recent_donations(
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    result = await db.execute(select(Donation).order_by(Donation.created_at.desc()).limit(limit))
    return result.scalars().all()


@router.get("/recent-users", response_model=List[UserResponse])
async def recent_users(
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    result = await db.execute(select(User).order_by(User.created_at.desc()).limit(limit))
    return result.scalars().all()
