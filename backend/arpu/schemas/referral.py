from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
import re

from arpu.models.referral_code import ReferralCodeType

CODE_PATTERN = re.compile(r"^[A-Z0-9_-]+$")


def normalize_code(value: str) -> str:
    value = value.strip().upper()
    if not CODE_PATTERN.match(value):
        raise ValueError("Code may only contain letters, digits, '-' and '_'")
    return value


class ReferralCodeCreate(BaseModel):
    """Create a code for yourself, or (managers) for a subordinate"""
    region: str = Field(..., min_length=2, max_length=100)
    owner_user_id: Optional[str] = None
    parent_code: Optional[str] = Field(None, min_length=3, max_length=50)
    code: Optional[str] = Field(None, min_length=3, max_length=50, description="Custom code; generated when omitted")

    @field_validator('code', 'parent_code')
    @classmethod
    def uppercase_code(cls, v):
        return normalize_code(v) if v else v


class ReferralCodeUpdate(BaseModel):
    active: bool


class ReferralCodeResponse(BaseModel):
    id: str
    code: str
    owner_user_id: str
    parent_code_id: Optional[str] = None
    type: ReferralCodeType
    region: str
    active: bool
    total_donations: int
    total_amount: int  # in paise
    total_amount_inr: float
    last_used: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ReferralValidateRequest(BaseModel):
    code: str = Field(..., min_length=3, max_length=50)

    @field_validator('code')
    @classmethod
    def uppercase_code(cls, v):
        return v.strip().upper()


class ReferralValidateResponse(BaseModel):
    valid: bool
    code: str
    owner_name: Optional[str] = None
    owner_role: Optional[str] = None
    region: Optional[str] = None
    message: str


class ReferralChainEntry(BaseModel):
    code: str
    owner_user_id: str
    owner_name: Optional[str] = None
    type: ReferralCodeType
    region: str


class ReferralAnalyticsResponse(BaseModel):
    total_codes: int
    active_codes: int
    total_donations: int
    total_amount: int
    total_amount_inr: float
    top_performers: List[ReferralCodeResponse]
