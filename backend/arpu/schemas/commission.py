from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from arpu.models.commission import CommissionStatus


class CommissionLogResponse(BaseModel):
    id: str
    donation_id: str
    user_id: str
    user_name: str
    user_role: str
    hierarchy_level: str
    depth: int
    commission_amount: int  # in paise
    commission_amount_inr: float
    commission_percentage: float
    status: CommissionStatus
    paid_at: Optional[datetime] = None
    transaction_id: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CommissionPayRequest(BaseModel):
    log_ids: List[str] = Field(..., min_length=1)
    transaction_id: Optional[str] = Field(None, max_length=100)
    payment_method: str = Field(default="MANUAL", max_length=50)
    notes: Optional[str] = Field(None, max_length=500)


class CommissionPayResponse(BaseModel):
    paid: List[str]
    skipped: List[dict]
    total_paid: int
    total_paid_inr: float


class CommissionReasonRequest(BaseModel):
    reason: str = Field(..., min_length=3, max_length=500)


class DistributeRequest(BaseModel):
    """One donation, or every undistributed donation when omitted"""
    donation_id: Optional[str] = None


class CommissionShare(BaseModel):
    user_id: str
    user_name: str
    user_role: str
    hierarchy_level: str
    depth: int
    percentage: float
    amount: int
    amount_inr: float


class DistributionResult(BaseModel):
    donation_id: str
    donation_amount: int
    total_commission: int
    organization_fund: int
    commissions: List[CommissionShare]


class DistributeResponse(BaseModel):
    distributed: List[DistributionResult]
    failed: List[dict]


class UserCommissionSummary(BaseModel):
    user_id: str
    total_earned: int
    total_earned_inr: float
    pending: int
    pending_inr: float
    paid: int
    paid_inr: float
    commission_count: int
    wallet_balance: int
    recent: List[CommissionLogResponse]


class OrganizationCommissionSummary(BaseModel):
    total_distributed: int
    total_distributed_inr: float
    pending: int
    paid: int
    cancelled: int
    failed: int
    commission_count: int
    unique_recipients: int
    organization_fund: int
    organization_fund_inr: float
    undistributed_donations: int
