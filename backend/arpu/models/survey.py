from sqlalchemy import Column, String, DateTime, ForeignKey, Enum as SQLEnum, Index, Text
from datetime import datetime
import enum

from arpu.core.database import Base
from arpu.core.types import GUID, generate_uuid, JSONDocument


class SurveyType(str, enum.Enum):
    HOSPITAL = "HOSPITAL"
    SCHOOL = "SCHOOL"
    HEALTH_CAMP = "HEALTH_CAMP"
    COMMUNITY_WELFARE = "COMMUNITY_WELFARE"
    STAFF_VOLUNTEER = "STAFF_VOLUNTEER"
    BUSINESS = "BUSINESS"
    CITIZEN = "CITIZEN"
    POLITICAL_ANALYSIS = "POLITICAL_ANALYSIS"


class SurveyStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    REVIEWED = "REVIEWED"
    ARCHIVED = "ARCHIVED"


class Survey(Base):
    """Field survey; the questionnaire answers live in `data` and vary per type"""
    __tablename__ = "surveys"

    __table_args__ = (
        Index('ix_surveys_type_status', 'survey_type', 'status'),
        Index('ix_surveys_state_district', 'state', 'district'),
        Index('ix_surveys_created', 'created_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    survey_type = Column(SQLEnum(SurveyType), nullable=False)
    status = Column(SQLEnum(SurveyStatus), default=SurveyStatus.SUBMITTED, nullable=False)

    location = Column(String(200), nullable=False)
    district = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    surveyor_name = Column(String(100), nullable=False)
    surveyor_contact = Column(String(20), nullable=True)
    survey_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    data = Column(JSONDocument, nullable=False, default=dict)

    submitted_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
