"""
Commission (revenue sharing) endpoints.

Distribution and settlement are admin actions; everyone can read their
own commission logs and summary.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List, Union

from arpu.core.database import get_db
from arpu.models.commission import CommissionStatus
from arpu.models.user import User
from arpu.schemas.commission import (
    CommissionLogResponse,
    CommissionPayRequest,
    CommissionPayResponse,
    CommissionReasonRequest,
    DistributeRequest,
    DistributeResponse,
    UserCommissionSummary,
    OrganizationCommissionSummary,
)
from arpu.schemas.common import Page
from arpu.schemas.donation import DonationResponse
from arpu.modules.auth.dependencies import get_current_user, get_current_admin
from arpu.services.commission_service import commission_service

router = APIRouter()


@router.get("/commissions", response_model=Page[CommissionLogResponse])
async def list_commissions(
    user_id: Optional[str] = Query(None, description="Admin only: filter by recipient"),
    status: Optional[CommissionStatus] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Own commission logs; admins may look at anyone's (or everyone's)"""
    if not current_user.is_admin:
        user_id = current_user.id
    return await commission_service.list_logs(db, user_id=user_id, status=status, page=page, page_size=page_size)


@router.post("/commissions/pay", response_model=CommissionPayResponse)
async def pay_commissions(
    data: CommissionPayRequest,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await commission_service.mark_paid(
        db, current_admin, data.log_ids,
        transaction_id=data.transaction_id,
        payment_method=data.payment_method,
        notes=data.notes,
    )


@router.post("/commissions/{log_id}/cancel", response_model=CommissionLogResponse)
async def cancel_commission(
    log_id: str,
    data: CommissionReasonRequest,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await commission_service.cancel(db, current_admin, log_id, data.reason)


@router.post("/commissions/{log_id}/fail", response_model=CommissionLogResponse)
async def fail_commission(
    log_id: str,
    data: CommissionReasonRequest,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Record a payout that bounced"""
    return await commission_service.mark_failed(db, current_admin, log_id, data.reason)


@router.post("/commissions/{log_id}/retry", response_model=CommissionLogResponse)
async def retry_commission(
    log_id: str,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await commission_service.retry(db, current_admin, log_id)


@router.post("/distribute", response_model=DistributeResponse)
async def distribute(
    data: DistributeRequest,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Distribute one donation, or every undistributed one when no id is given"""
    if data.donation_id:
        return {"distributed": [await commission_service.distribute(db, data.donation_id)], "failed": []}
    return await commission_service.distribute_pending(db)


@router.get("/distribute/pending", response_model=List[DonationResponse])
async def pending_distribution(
    limit: int = Query(50, ge=1, le=500),
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await commission_service.get_undistributed_donations(db, limit)


@router.get("/dashboard", response_model=Union[UserCommissionSummary, OrganizationCommissionSummary])
async def revenue_dashboard(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Organization summary for admins, personal summary for everyone else"""
    if current_user.is_admin:
        return await commission_service.get_organization_summary(db)
    return await commission_service.get_user_summary(db, current_user.id)
