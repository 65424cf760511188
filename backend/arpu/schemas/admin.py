"""
Admin dashboard schemas
"""
from pydantic import BaseModel


class DonationKPIs(BaseModel):
    total_amount: int
    total_amount_inr: float
    total_count: int
    this_month: int
    this_month_inr: float
    last_month: int
    last_month_inr: float
    growth_percent: float


class UserKPIs(BaseModel):
    total: int
    active: int
    pending: int
    new_this_month: int


class CommissionKPIs(BaseModel):
    total_distributed: int
    pending: int
    paid: int
    organization_fund: int
    undistributed_donations: int


class AdminDashboardStats(BaseModel):
    donations: DonationKPIs
    users: UserKPIs
    commissions: CommissionKPIs
