"""
Commission ledger.

One row per (donation, recipient). Rows are created PENDING when a
donation is distributed and an admin later settles them.

    PENDING -> PAID | FAILED | CANCELLED
    FAILED  -> PENDING (retry)
"""

from sqlalchemy import Column, String, DateTime, BigInteger, Float, ForeignKey, Enum as SQLEnum, Index, Integer
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from arpu.core.database import Base
from arpu.core.types import GUID, generate_uuid


class CommissionStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


COMMISSION_TRANSITIONS = {
    CommissionStatus.PENDING: {CommissionStatus.PAID, CommissionStatus.FAILED, CommissionStatus.CANCELLED},
    CommissionStatus.FAILED: {CommissionStatus.PENDING},
    CommissionStatus.PAID: set(),
    CommissionStatus.CANCELLED: set(),
}


class CommissionLog(Base):
    __tablename__ = "commission_logs"

    __table_args__ = (
        Index('ix_commission_logs_donation', 'donation_id'),
        Index('ix_commission_logs_user_status', 'user_id', 'status'),
        Index('ix_commission_logs_created', 'created_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    donation_id = Column(GUID, ForeignKey("donations.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Snapshot of the recipient at distribution time
    user_name = Column(String(100), nullable=False)
    user_role = Column(String(50), nullable=False)
    hierarchy_level = Column(String(50), nullable=False)
    depth = Column(Integer, default=0, nullable=False)  # 0 = attributed user, 1 = their coordinator, ...

    commission_amount = Column(BigInteger, nullable=False)  # paise
    commission_percentage = Column(Float, nullable=False)

    status = Column(SQLEnum(CommissionStatus), default=CommissionStatus.PENDING, nullable=False)
    paid_at = Column(DateTime, nullable=True)
    transaction_id = Column(String(100), nullable=True)
    payment_method = Column(String(50), nullable=True)
    notes = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    donation = relationship("Donation")
    user = relationship("User")

    def __repr__(self):
        return f"<CommissionLog {self.user_name} {self.commission_amount} {self.status.value}>"

    @property
    def commission_amount_inr(self) -> float:
        return (self.commission_amount or 0) / 100

    def can_transition_to(self, new_status: CommissionStatus) -> bool:
        return new_status in COMMISSION_TRANSITIONS[self.status]
