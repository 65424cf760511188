from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime

from arpu.models.target import TargetStatus, PaymentMode, TransactionStatus

MAX_TARGET_PAISE = 100_000_000 * 100  # ₹10 crore
MAX_TRANSACTION_PAISE = 10_000_000 * 100


class TargetDivision(BaseModel):
    assignee_id: str
    amount: int = Field(..., gt=0, le=MAX_TARGET_PAISE, description="Amount in paise")
    description: Optional[str] = Field(None, max_length=500)


class TargetAssignRequest(BaseModel):
    """
    Either assign one target to `assignee_id`, or pass `subdivisions` to
    take the whole amount yourself as a divided target and hand out the parts.
    """
    assignee_id: Optional[str] = None
    target_amount: int = Field(..., ge=100, le=MAX_TARGET_PAISE, description="Amount in paise")
    start_date: datetime
    end_date: datetime
    description: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=1000)
    subdivisions: Optional[List[TargetDivision]] = None

    @model_validator(mode='after')
    def check_request(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        if not self.assignee_id and not self.subdivisions:
            raise ValueError("Provide either assignee_id or subdivisions")
        return self


class TargetDivideRequest(BaseModel):
    parent_target_id: str
    divisions: List[TargetDivision] = Field(..., min_length=1)


class CollectionRequest(BaseModel):
    amount: int = Field(..., ge=100, le=MAX_TRANSACTION_PAISE, description="Amount in paise")
    payment_mode: PaymentMode
    donor_name: Optional[str] = Field(None, max_length=100)
    donor_contact: Optional[str] = Field(None, max_length=20)
    donor_email: Optional[str] = Field(None, max_length=255)
    purpose: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = Field(None, max_length=1000)
    collection_date: Optional[datetime] = None


class TargetCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class TargetResponse(BaseModel):
    id: str
    assigned_to: str
    assigned_by: Optional[str] = None
    parent_target_id: Optional[str] = None
    target_amount: int  # in paise
    target_amount_inr: float
    personal_collection: int
    team_collection: int
    total_collection: int
    total_collection_inr: float
    remaining_amount: int
    remaining_amount_inr: float
    progress_percentage: float
    start_date: datetime
    end_date: datetime
    status: TargetStatus
    is_overdue: bool
    is_divided: bool
    description: Optional[str] = None
    notes: Optional[str] = None
    level: str
    region: Optional[str] = None
    state: Optional[str] = None
    zone: Optional[str] = None
    district: Optional[str] = None
    block: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TargetListResponse(BaseModel):
    my_targets: List[TargetResponse]
    assigned_by_me: List[TargetResponse]


class TargetAssignResponse(BaseModel):
    target: TargetResponse
    children: List[TargetResponse] = []


class TargetDivideResponse(BaseModel):
    parent: TargetResponse
    children: List[TargetResponse]
    total_divided: int
    remaining: int


class TransactionCreate(CollectionRequest):
    """Recorded pending; flows into the target only once verified"""
    receipt_number: Optional[str] = Field(None, max_length=50)
    transaction_id: Optional[str] = Field(None, max_length=100)
    referral_code_id: Optional[str] = None


class TransactionVerifyRequest(BaseModel):
    approve: bool
    rejection_reason: Optional[str] = Field(None, max_length=500)

    @model_validator(mode='after')
    def reason_required(self):
        if not self.approve and not (self.rejection_reason and self.rejection_reason.strip()):
            raise ValueError("A rejection reason is required")
        return self


class TransactionResponse(BaseModel):
    id: str
    user_id: str
    target_id: Optional[str] = None
    donation_id: Optional[str] = None
    amount: int
    amount_inr: float
    payment_mode: PaymentMode
    status: TransactionStatus
    donor_name: Optional[str] = None
    donor_contact: Optional[str] = None
    donor_email: Optional[str] = None
    purpose: Optional[str] = None
    notes: Optional[str] = None
    receipt_number: Optional[str] = None
    transaction_id: Optional[str] = None
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    collection_date: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class CollectionResponse(BaseModel):
    transaction: TransactionResponse
    target: TargetResponse
    progress_label: str


class TargetStatsResponse(BaseModel):
    total_targets: int
    by_status: dict
    total_target_amount: int
    total_collected: int
    average_progress: float
