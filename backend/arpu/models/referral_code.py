"""
Referral codes - attach a donation to the coordinator who brought it in.

Codes form their own tree (parent_code_id) mirroring the coordinator
chain, so a sub-coordinator's code points at their coordinator's code.
"""

from sqlalchemy import Column, String, DateTime, Integer, BigInteger, Boolean, ForeignKey, Enum as SQLEnum, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from arpu.core.database import Base
from arpu.core.types import GUID, generate_uuid


class ReferralCodeType(str, enum.Enum):
    COORDINATOR = "COORDINATOR"
    SUB_COORDINATOR = "SUB_COORDINATOR"


class ReferralCode(Base):
    __tablename__ = "referral_codes"

    __table_args__ = (
        Index('ix_referral_codes_owner_active', 'owner_user_id', 'active'),
        Index('ix_referral_codes_parent', 'parent_code_id'),
        Index('ix_referral_codes_region', 'region'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    code = Column(String(50), unique=True, nullable=False, index=True)

    owner_user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_code_id = Column(GUID, ForeignKey("referral_codes.id", ondelete="SET NULL"), nullable=True)

    type = Column(SQLEnum(ReferralCodeType), default=ReferralCodeType.COORDINATOR, nullable=False)
    region = Column(String(100), nullable=False)
    active = Column(Boolean, default=True, nullable=False)

    # Usage stats (amount in paise)
    total_donations = Column(Integer, default=0, nullable=False)
    total_amount = Column(BigInteger, default=0, nullable=False)
    last_used = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", foreign_keys=[owner_user_id])
    parent_code = relationship("ReferralCode", remote_side=[id], foreign_keys=[parent_code_id])

    def __repr__(self):
        return f"<ReferralCode {self.code} (Owner: {self.owner_user_id})>"

    @property
    def total_amount_inr(self) -> float:
        return (self.total_amount or 0) / 100
