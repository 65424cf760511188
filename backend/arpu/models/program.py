from sqlalchemy import Column, String, DateTime, Integer, BigInteger, Boolean, Text, Index
from datetime import datetime

from arpu.core.database import Base
from arpu.core.types import GUID, generate_uuid, JSONDocument


class Program(Base):
    """A fundraising program donors can give to"""
    __tablename__ = "programs"

    __table_args__ = (
        Index('ix_programs_active_priority', 'active', 'priority'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False, index=True)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(String(500), nullable=False)
    long_description = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)
    gallery = Column(JSONDocument, nullable=False, default=list)

    # Funding (paise)
    target_amount = Column(BigInteger, nullable=True)
    raised_amount = Column(BigInteger, default=0, nullable=False)
    donation_count = Column(Integer, default=0, nullable=False)

    active = Column(Boolean, default=True, nullable=False)
    featured = Column(Boolean, default=False, nullable=False)
    priority = Column(Integer, default=0, nullable=False)

    meta_title = Column(String(60), nullable=True)
    meta_description = Column(String(160), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Program {self.slug}>"

    @property
    def funding_progress(self) -> float:
        if not self.target_amount:
            return 0.0
        return round(min(100.0, (self.raised_amount or 0) / self.target_amount * 100), 2)

    @property
    def is_fully_funded(self) -> bool:
        return bool(self.target_amount) and (self.raised_amount or 0) >= self.target_amount

    @property
    def target_amount_inr(self) -> float:
        return (self.target_amount or 0) / 100

    @property
    def raised_amount_inr(self) -> float:
        return (self.raised_amount or 0) / 100
