from sqlalchemy import Column, String, DateTime, ForeignKey, Enum as SQLEnum, Index, Text
from datetime import datetime
import enum

from arpu.core.database import Base
from arpu.core.types import GUID, generate_uuid


class ContactStatus(str, enum.Enum):
    NEW = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class InquiryType(str, enum.Enum):
    GENERAL = "general"
    VOLUNTEER = "volunteer"
    PARTNERSHIP = "partnership"
    DONATION = "donation"
    MEDIA = "media"
    OTHER = "other"


class ContactMessage(Base):
    __tablename__ = "contact_messages"

    __table_args__ = (
        Index('ix_contact_messages_status_created', 'status', 'created_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    subject = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    inquiry_type = Column(SQLEnum(InquiryType), default=InquiryType.GENERAL, nullable=False)

    status = Column(SQLEnum(ContactStatus), default=ContactStatus.NEW, nullable=False)
    admin_notes = Column(Text, nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    resolved_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    ip_address = Column(String(64), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
