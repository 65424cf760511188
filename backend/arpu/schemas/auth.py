from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime
import re

from arpu.core.roles import UserRole
from arpu.models.user import UserStatus

NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z .]*$")
PHONE_PATTERN = re.compile(r"^\+?\d{10,15}$")


def clean_name(value: str) -> str:
    """Letters and spaces only; collapses repeated whitespace"""
    value = " ".join(value.split())
    if not NAME_PATTERN.match(value):
        raise ValueError("Name can only contain letters and spaces")
    return value


def clean_phone(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    digits = re.sub(r"[\s-]", "", value)
    if not PHONE_PATTERN.match(digits):
        raise ValueError("Phone must be 10-15 digits")
    return digits


def check_password_strength(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not re.search(r"[a-z]", value):
        raise ValueError("Password must contain a lowercase letter")
    if not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain an uppercase letter")
    if not re.search(r"\d", value):
        raise ValueError("Password must contain a digit")
    return value


class GeographyFields(BaseModel):
    region: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zone: Optional[str] = Field(None, max_length=100)
    district: Optional[str] = Field(None, max_length=100)
    block: Optional[str] = Field(None, max_length=100)
    panchayat: Optional[str] = Field(None, max_length=100)
    gram_sabha: Optional[str] = Field(None, max_length=100)
    revenue_village: Optional[str] = Field(None, max_length=100)


class UserRegister(GeographyFields):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., min_length=2, max_length=100)
    phone: Optional[str] = None
    role: UserRole = UserRole.VOLUNTEER
    parent_coordinator_id: Optional[str] = None
    father_name: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=500)

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v):
        return v.lower()

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return clean_name(v)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        return clean_phone(v)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return check_password_strength(v)

    @model_validator(mode='after')
    def no_admin_signup(self):
        if self.role == UserRole.ADMIN:
            raise ValueError("Admin accounts cannot be self-registered")
        return self


class UserLogin(BaseModel):
    email: EmailStr
    password: str

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v):
        return v.lower()


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    phone: Optional[str] = None
    role: UserRole
    status: UserStatus
    is_verified: bool
    parent_coordinator_id: Optional[str] = None
    father_name: Optional[str] = None
    region: Optional[str] = None
    state: Optional[str] = None
    zone: Optional[str] = None
    district: Optional[str] = None
    block: Optional[str] = None
    panchayat: Optional[str] = None
    gram_sabha: Optional[str] = None
    revenue_village: Optional[str] = None
    referral_code: Optional[str] = None
    hierarchy_level: str
    total_donations_referred: int = 0
    total_amount_referred: int = 0  # in paise
    total_amount_referred_inr: float = 0.0
    commission_wallet: int = 0  # in paise
    commission_wallet_inr: float = 0.0
    created_at: datetime
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginResponse(Token):
    user: UserResponse


class RegisterResponse(BaseModel):
    user: UserResponse
    requires_approval: bool
    message: str


class AccountStatusResponse(BaseModel):
    email: str
    status: UserStatus
    role: UserRole
    message: str


class ProfileUpdate(GeographyFields):
    """Fields a user may change on their own profile"""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = None
    father_name: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=500)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return clean_name(v) if v is not None else v

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        return clean_phone(v)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8, max_length=128)

    @field_validator('new_password')
    @classmethod
    def validate_password(cls, v):
        return check_password_strength(v)


class AdminUserUpdate(ProfileUpdate):
    """Admin edits; role / status / parent changes re-validate the hierarchy"""
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    parent_coordinator_id: Optional[str] = None
    is_verified: Optional[bool] = None


class ApprovalRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class PersonalReferralCodeResponse(BaseModel):
    referral_code: str
    message: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v):
        return v.lower()


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)
    confirm_password: str

    @field_validator('new_password')
    @classmethod
    def validate_password(cls, v):
        return check_password_strength(v)

    @model_validator(mode='after')
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    message: str
    success: bool = True


class ResendVerificationRequest(ForgotPasswordRequest):
    pass
