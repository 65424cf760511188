"""Surveys, certificates, volunteer requests and contact messages"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List, Any, Dict
from datetime import datetime

from arpu.models.survey import SurveyType, SurveyStatus
from arpu.models.certificate import CertificateType, CertificateStatus
from arpu.models.volunteer import VolunteerStatus, VolunteerInterest
from arpu.models.contact import ContactStatus, InquiryType
from arpu.schemas.auth import clean_name, clean_phone


# ============== Surveys ==============

class SurveyCreate(BaseModel):
    survey_type: SurveyType
    location: str = Field(..., min_length=2, max_length=200)
    district: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    surveyor_name: str = Field(..., min_length=2, max_length=100)
    surveyor_contact: Optional[str] = Field(None, max_length=20)
    survey_date: Optional[datetime] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    status: SurveyStatus = SurveyStatus.SUBMITTED


class SurveyUpdate(BaseModel):
    status: Optional[SurveyStatus] = None
    location: Optional[str] = Field(None, max_length=200)
    district: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    data: Optional[Dict[str, Any]] = None
    notes: Optional[str] = Field(None, max_length=2000)


class SurveyResponse(BaseModel):
    id: str
    survey_type: SurveyType
    status: SurveyStatus
    location: str
    district: Optional[str] = None
    state: Optional[str] = None
    surveyor_name: str
    surveyor_contact: Optional[str] = None
    survey_date: datetime
    data: Dict[str, Any]
    submitted_by: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# ============== Certificates ==============

class CertificateCreate(BaseModel):
    certificate_type: CertificateType
    recipient_name: str = Field(..., min_length=2, max_length=100)
    recipient_email: Optional[EmailStr] = None
    recipient_designation: Optional[str] = Field(None, max_length=100)
    user_id: Optional[str] = None
    donation_id: Optional[str] = None
    event_name: Optional[str] = Field(None, max_length=200)
    activity_description: Optional[str] = Field(None, max_length=2000)
    date_of_event: Optional[datetime] = None
    place_of_event: Optional[str] = Field(None, max_length=200)
    membership_id: Optional[str] = Field(None, max_length=50)
    membership_start: Optional[datetime] = None
    membership_type: Optional[str] = Field(None, max_length=50)
    signature_name: Optional[str] = Field(None, max_length=100)


class CertificateResponse(BaseModel):
    id: str
    certificate_number: str
    certificate_type: CertificateType
    status: CertificateStatus
    recipient_name: str
    recipient_email: Optional[str] = None
    recipient_designation: Optional[str] = None
    user_id: Optional[str] = None
    event_name: Optional[str] = None
    date_of_event: Optional[datetime] = None
    place_of_event: Optional[str] = None
    membership_id: Optional[str] = None
    issue_date: datetime
    generated_at: Optional[datetime] = None
    email_sent: bool
    created_at: datetime

    class Config:
        from_attributes = True


class CertificateVerifyResponse(BaseModel):
    valid: bool
    certificate_number: str
    recipient_name: Optional[str] = None
    certificate_type: Optional[CertificateType] = None
    issue_date: Optional[datetime] = None


# ============== Volunteer requests ==============

class VolunteerRequestCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: str = Field(..., pattern=r"^\d{10}$", description="10-digit mobile number")
    state: str = Field(..., min_length=2, max_length=100)
    city: str = Field(..., min_length=2, max_length=100)
    interests: List[VolunteerInterest] = Field(..., min_length=1)
    message: Optional[str] = Field(None, max_length=1000)
    availability: Optional[str] = Field(None, max_length=200)
    experience: Optional[str] = Field(None, max_length=2000)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return clean_name(v)

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v):
        return v.lower()


class VolunteerRequestUpdate(BaseModel):
    status: Optional[VolunteerStatus] = None
    notes: Optional[str] = Field(None, max_length=2000)


class VolunteerRequestResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    state: str
    city: str
    interests: List[VolunteerInterest]
    message: Optional[str] = None
    availability: Optional[str] = None
    experience: Optional[str] = None
    status: VolunteerStatus
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    notes: Optional[str] = None
    certificate_issued: bool
    created_at: datetime

    class Config:
        from_attributes = True


# ============== Contact ==============

class ContactCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = None
    subject: str = Field(..., min_length=3, max_length=200)
    message: str = Field(..., min_length=10, max_length=2000)
    inquiry_type: InquiryType = InquiryType.GENERAL

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return clean_name(v)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        return clean_phone(v)


class ContactUpdate(BaseModel):
    status: Optional[ContactStatus] = None
    admin_notes: Optional[str] = Field(None, max_length=2000)


class ContactResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str
    inquiry_type: InquiryType
    status: ContactStatus
    admin_notes: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
