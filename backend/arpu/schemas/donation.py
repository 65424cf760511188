from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime

from arpu.core.config import settings
from arpu.models.donation import PaymentStatus, Currency
from arpu.schemas.auth import clean_name, clean_phone


class DonorDetails(BaseModel):
    donor_name: str = Field(..., min_length=2, max_length=100)
    donor_email: Optional[EmailStr] = None
    donor_phone: Optional[str] = None
    is_anonymous: bool = False

    @field_validator('donor_name')
    @classmethod
    def validate_name(cls, v):
        return clean_name(v)

    @field_validator('donor_phone')
    @classmethod
    def validate_phone(cls, v):
        return clean_phone(v)

    @field_validator('donor_email')
    @classmethod
    def lowercase_email(cls, v):
        return v.lower() if v else v


class DonationOrderCreate(DonorDetails):
    """Open a Razorpay order for a donation"""
    amount: int = Field(..., description="Amount in paise (10000 = ₹100)")
    currency: Currency = Currency.INR
    program_id: Optional[str] = None
    referral_code: Optional[str] = Field(None, max_length=50)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        if v < settings.DONATION_MIN_PAISE:
            raise ValueError(f"Minimum donation is ₹{settings.DONATION_MIN_PAISE / 100:,.0f}")
        if v > settings.DONATION_MAX_PAISE:
            raise ValueError(f"Maximum donation is ₹{settings.DONATION_MAX_PAISE / 100:,.0f}")
        return v

    @field_validator('referral_code')
    @classmethod
    def uppercase_code(cls, v):
        return v.strip().upper() or None if v else None


class DonationOrderResponse(BaseModel):
    donation_id: str
    order_id: str
    amount: int
    amount_inr: float
    currency: str
    key_id: str
    donor_name: str
    referral_valid: bool = False


class PaymentVerifyRequest(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class PaymentFailRequest(BaseModel):
    razorpay_order_id: str
    reason: Optional[str] = Field(None, max_length=500)


class ManualDonationCreate(DonorDetails):
    """Offline donation recorded by a coordinator or admin"""
    amount: int = Field(..., gt=0, description="Amount in paise")
    currency: Currency = Currency.INR
    program_id: Optional[str] = None
    referral_code: Optional[str] = Field(None, max_length=50)
    payment_reference: Optional[str] = Field(None, max_length=100)

    @field_validator('referral_code')
    @classmethod
    def uppercase_code(cls, v):
        return v.strip().upper() or None if v else None


class DonationResponse(BaseModel):
    id: str
    donor_name: str
    donor_email: Optional[str] = None
    donor_phone: Optional[str] = None
    is_anonymous: bool
    amount: int  # in paise
    amount_inr: float
    currency: Currency
    program_id: Optional[str] = None
    payment_status: PaymentStatus
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    failure_reason: Optional[str] = None
    is_manual: bool
    referral_code_id: Optional[str] = None
    attributed_to_user_id: Optional[str] = None
    distributed: bool
    distributed_at: Optional[datetime] = None
    total_commission_distributed: int
    organization_fund_amount: int
    created_at: datetime

    class Config:
        from_attributes = True


class DonationStatsResponse(BaseModel):
    total_amount: int
    total_amount_inr: float
    total_count: int
    success_count: int
    failed_count: int
    pending_count: int
    refunded_count: int
    average_amount: int
    average_amount_inr: float
    top_programs: List[dict]


class ReceiptResponse(BaseModel):
    id: str
    receipt_number: str
    donation_id: str
    cin_number: str
    pan_number: str
    registration_number: str
    donor_name: str
    donor_email: Optional[str] = None
    amount: int
    amount_inr: float
    currency: str
    program_name: Optional[str] = None
    payment_reference: Optional[str] = None
    donation_date: datetime
    email_sent: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ReceiptCreate(BaseModel):
    donor_pan: Optional[str] = Field(None, pattern=r"^[A-Z]{5}\d{4}[A-Z]$")


class DonorHighlight(BaseModel):
    name: str
    amount: Optional[int] = None
    amount_inr: Optional[float] = None
    donation_count: int
    last_donation_date: datetime
    is_anonymous: bool


class DonorHighlightsResponse(BaseModel):
    donors: List[DonorHighlight]
    total_count: int
    current_page: int
    total_pages: int
    has_more: bool
    last_updated: datetime
