"""
Fundraising targets and the collection transactions that feed them.

A target belongs to one user (assigned_to) and is set by a superior
(assigned_by). The owner may divide it among direct team members; the
children point back through parent_target_id and their amounts never
add up to more than the parent's.
"""

from sqlalchemy import Column, String, DateTime, BigInteger, Float, Boolean, ForeignKey, Enum as SQLEnum, Index, Text
from sqlalchemy.orm import relationship
from datetime import datetime
from typing import Optional
import enum
import math

from arpu.core.database import Base
from arpu.core.types import GUID, generate_uuid


class TargetStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


ACTIVE_TARGET_STATUSES = (TargetStatus.PENDING, TargetStatus.IN_PROGRESS, TargetStatus.OVERDUE)


class Target(Base):
    __tablename__ = "targets"

    __table_args__ = (
        Index('ix_targets_assignee_status', 'assigned_to', 'status'),
        Index('ix_targets_assigner', 'assigned_by'),
        Index('ix_targets_parent', 'parent_target_id'),
        Index('ix_targets_end_date', 'end_date'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    assigned_to = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    assigned_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    parent_target_id = Column(GUID, ForeignKey("targets.id", ondelete="SET NULL"), nullable=True)

    # Amounts in paise
    target_amount = Column(BigInteger, nullable=False)
    personal_collection = Column(BigInteger, default=0, nullable=False)
    team_collection = Column(BigInteger, default=0, nullable=False)
    total_collection = Column(BigInteger, default=0, nullable=False)
    remaining_amount = Column(BigInteger, default=0, nullable=False)
    progress_percentage = Column(Float, default=0.0, nullable=False)

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    status = Column(SQLEnum(TargetStatus), default=TargetStatus.PENDING, nullable=False)
    is_overdue = Column(Boolean, default=False, nullable=False)
    is_divided = Column(Boolean, default=False, nullable=False)

    description = Column(String(500), nullable=True)
    notes = Column(String(1000), nullable=True)

    # Hierarchy level name of the assignee and the area the target covers
    level = Column(String(50), nullable=False)
    region = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    zone = Column(String(100), nullable=True)
    district = Column(String(100), nullable=True)
    block = Column(String(100), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assignee = relationship("User", foreign_keys=[assigned_to])
    assigner = relationship("User", foreign_keys=[assigned_by])
    parent_target = relationship("Target", remote_side=[id], foreign_keys=[parent_target_id])

    def __repr__(self):
        return f"<Target {self.id} {self.total_collection}/{self.target_amount} {self.status.value}>"

    def days_remaining(self, now: Optional[datetime] = None) -> int:
        """Whole days until end_date, rounded up; negative once past due"""
        now = now or datetime.utcnow()
        return math.ceil((self.end_date - now).total_seconds() / 86400)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_TARGET_STATUSES

    def recalculate(self, now: Optional[datetime] = None) -> None:
        """Refresh derived totals and move the status forward. Call after every change."""
        personal = self.personal_collection or 0
        team = self.team_collection or 0
        self.total_collection = personal + team
        self.remaining_amount = max(0, self.target_amount - self.total_collection)
        if self.target_amount > 0:
            self.progress_percentage = round(min(100.0, self.total_collection / self.target_amount * 100), 2)
        else:
            self.progress_percentage = 0.0

        days = self.days_remaining(now)
        self.is_overdue = days < 0 and self.status != TargetStatus.COMPLETED

        if self.total_collection >= self.target_amount and self.status != TargetStatus.CANCELLED:
            self.status = TargetStatus.COMPLETED
            self.is_overdue = False
        elif self.is_overdue and self.status == TargetStatus.IN_PROGRESS:
            self.status = TargetStatus.OVERDUE
        elif self.total_collection > 0 and self.status == TargetStatus.PENDING:
            self.status = TargetStatus.IN_PROGRESS

    @property
    def target_amount_inr(self) -> float:
        return self.target_amount / 100

    @property
    def total_collection_inr(self) -> float:
        return (self.total_collection or 0) / 100

    @property
    def remaining_amount_inr(self) -> float:
        return (self.remaining_amount or 0) / 100


class PaymentMode(str, enum.Enum):
    CASH = "cash"
    ONLINE = "online"
    CHEQUE = "cheque"
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"
    OTHER = "other"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class Transaction(Base):
    """Money a coordinator collected in the field toward their target"""
    __tablename__ = "transactions"

    __table_args__ = (
        Index('ix_transactions_user_status', 'user_id', 'status'),
        Index('ix_transactions_target', 'target_id'),
        Index('ix_transactions_collection_date', 'collection_date'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    target_id = Column(GUID, ForeignKey("targets.id", ondelete="SET NULL"), nullable=True)
    donation_id = Column(GUID, ForeignKey("donations.id", ondelete="SET NULL"), nullable=True)
    referral_code_id = Column(GUID, ForeignKey("referral_codes.id", ondelete="SET NULL"), nullable=True)

    amount = Column(BigInteger, nullable=False)  # paise
    payment_mode = Column(SQLEnum(PaymentMode), nullable=False)
    status = Column(SQLEnum(TransactionStatus), default=TransactionStatus.PENDING, nullable=False)

    donor_name = Column(String(100), nullable=True)
    donor_contact = Column(String(20), nullable=True)
    donor_email = Column(String(255), nullable=True)
    purpose = Column(String(200), nullable=True)
    notes = Column(Text, nullable=True)
    receipt_number = Column(String(50), nullable=True)
    transaction_id = Column(String(100), nullable=True)

    verified_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    verified_at = Column(DateTime, nullable=True)
    rejection_reason = Column(String(500), nullable=True)
    collection_date = Column(DateTime, default=datetime.utcnow, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    collector = relationship("User", foreign_keys=[user_id])
    target = relationship("Target")

    @property
    def amount_inr(self) -> float:
        return self.amount / 100
