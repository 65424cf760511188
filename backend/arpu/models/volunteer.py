from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Enum as SQLEnum, Index, Text
from datetime import datetime
import enum

from arpu.core.database import Base
from arpu.core.types import GUID, generate_uuid, JSONDocument


class VolunteerStatus(str, enum.Enum):
    PENDING = "PENDING"
    REVIEWED = "REVIEWED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class VolunteerInterest(str, enum.Enum):
    TEACHING = "TEACHING"
    HEALTHCARE = "HEALTHCARE"
    FUNDRAISING = "FUNDRAISING"
    SOCIAL_WORK = "SOCIAL_WORK"
    ADMINISTRATIVE = "ADMINISTRATIVE"
    TECHNICAL = "TECHNICAL"
    OTHER = "OTHER"


class VolunteerRequest(Base):
    """Public volunteer application"""
    __tablename__ = "volunteer_requests"

    __table_args__ = (
        Index('ix_volunteer_requests_email_status', 'email', 'status'),
        Index('ix_volunteer_requests_created', 'created_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(10), nullable=False)
    state = Column(String(100), nullable=False)
    city = Column(String(100), nullable=False)
    interests = Column(JSONDocument, nullable=False, default=list)
    message = Column(String(1000), nullable=True)
    availability = Column(String(200), nullable=True)
    experience = Column(Text, nullable=True)

    status = Column(SQLEnum(VolunteerStatus), default=VolunteerStatus.PENDING, nullable=False)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)

    certificate_issued = Column(Boolean, default=False, nullable=False)
    certificate_id = Column(GUID, ForeignKey("certificates.id", ondelete="SET NULL"), nullable=True)
    certificate_issued_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
