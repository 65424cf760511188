from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Enum as SQLEnum, Index, Text
from datetime import datetime
import enum

from arpu.core.database import Base
from arpu.core.types import GUID, generate_uuid


class CertificateType(str, enum.Enum):
    APPRECIATION = "APPRECIATION"
    MEMBERSHIP = "MEMBERSHIP"
    CONTRIBUTION = "CONTRIBUTION"
    VOLUNTEER = "VOLUNTEER"
    EVENT = "EVENT"
    CONTEST = "CONTEST"


class CertificateStatus(str, enum.Enum):
    PENDING = "PENDING"
    GENERATED = "GENERATED"
    SENT = "SENT"


class Certificate(Base):
    __tablename__ = "certificates"

    __table_args__ = (
        Index('ix_certificates_user_type', 'user_id', 'certificate_type'),
        Index('ix_certificates_issue_date', 'issue_date'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    certificate_number = Column(String(50), unique=True, nullable=False, index=True)
    certificate_type = Column(SQLEnum(CertificateType), nullable=False)
    status = Column(SQLEnum(CertificateStatus), default=CertificateStatus.PENDING, nullable=False)

    recipient_name = Column(String(100), nullable=False)
    recipient_email = Column(String(255), nullable=True)
    recipient_designation = Column(String(100), nullable=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    donation_id = Column(GUID, ForeignKey("donations.id", ondelete="SET NULL"), nullable=True)

    # Event / contest / appreciation
    event_name = Column(String(200), nullable=True)
    activity_description = Column(Text, nullable=True)
    date_of_event = Column(DateTime, nullable=True)
    place_of_event = Column(String(200), nullable=True)

    # Membership
    membership_id = Column(String(50), nullable=True)
    membership_start = Column(DateTime, nullable=True)
    membership_type = Column(String(50), nullable=True)

    issue_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    issued_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    signature_name = Column(String(100), nullable=True)

    generated_at = Column(DateTime, nullable=True)
    email_sent = Column(Boolean, default=False, nullable=False)
    email_sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
