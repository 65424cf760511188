"""
Donation and Receipt models.

Amounts are integer paise. A donation is created PENDING when the
Razorpay order is opened and becomes SUCCESS once the checkout
signature (or the webhook) is verified. Commission distribution stamps
the distributed_* columns exactly once.
"""

from sqlalchemy import Column, String, DateTime, BigInteger, Boolean, ForeignKey, Enum as SQLEnum, Text, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from arpu.core.database import Base
from arpu.core.types import GUID, generate_uuid


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class Currency(str, enum.Enum):
    INR = "INR"
    USD = "USD"


class Donation(Base):
    __tablename__ = "donations"

    __table_args__ = (
        Index('ix_donations_status_created', 'payment_status', 'created_at'),
        Index('ix_donations_attributed', 'attributed_to_user_id'),
        Index('ix_donations_referral', 'referral_code_id'),
        Index('ix_donations_program', 'program_id'),
        Index('ix_donations_distributed', 'distributed'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)

    # Donor
    donor_name = Column(String(100), nullable=False)
    donor_email = Column(String(255), nullable=True, index=True)
    donor_phone = Column(String(15), nullable=True)
    is_anonymous = Column(Boolean, default=False, nullable=False)

    # Money
    amount = Column(BigInteger, nullable=False)  # paise
    currency = Column(SQLEnum(Currency), default=Currency.INR, nullable=False)
    program_id = Column(GUID, ForeignKey("programs.id", ondelete="SET NULL"), nullable=True)

    # Gateway
    payment_status = Column(SQLEnum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    razorpay_order_id = Column(String(100), unique=True, nullable=True)
    razorpay_payment_id = Column(String(100), nullable=True)
    razorpay_signature = Column(String(255), nullable=True)
    failure_reason = Column(String(500), nullable=True)
    is_manual = Column(Boolean, default=False, nullable=False)
    recorded_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Attribution
    referral_code_id = Column(GUID, ForeignKey("referral_codes.id", ondelete="SET NULL"), nullable=True)
    attributed_to_user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Request metadata
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)

    # Commission distribution
    distributed = Column(Boolean, default=False, nullable=False)
    distributed_at = Column(DateTime, nullable=True)
    total_commission_distributed = Column(BigInteger, default=0, nullable=False)
    organization_fund_amount = Column(BigInteger, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    program = relationship("Program")
    referral_code = relationship("ReferralCode")
    attributed_to = relationship("User", foreign_keys=[attributed_to_user_id])

    def __repr__(self):
        return f"<Donation {self.id} {self.amount} {self.payment_status.value if self.payment_status else '-'}>"

    @property
    def amount_inr(self) -> float:
        return (self.amount or 0) / 100

    @property
    def referral_code_value(self):
        return self.referral_code.code if self.referral_code else None


class Receipt(Base):
    """Tax receipt issued for a successful donation (one per donation)"""
    __tablename__ = "receipts"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    receipt_number = Column(String(50), unique=True, nullable=False, index=True)
    donation_id = Column(GUID, ForeignKey("donations.id", ondelete="CASCADE"), unique=True, nullable=False)

    # Organization details frozen at issue time
    cin_number = Column(String(50), nullable=False)
    pan_number = Column(String(20), nullable=False)
    registration_number = Column(String(50), nullable=False)
    documentation_number = Column(String(50), nullable=False)

    donor_name = Column(String(100), nullable=False)
    donor_email = Column(String(255), nullable=True)
    donor_phone = Column(String(15), nullable=True)
    donor_pan = Column(String(10), nullable=True)

    amount = Column(BigInteger, nullable=False)
    currency = Column(String(3), default="INR", nullable=False)
    program_name = Column(String(100), nullable=True)
    payment_reference = Column(String(100), nullable=True)
    donation_date = Column(DateTime, nullable=False)

    email_sent = Column(Boolean, default=False, nullable=False)
    email_sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    donation = relationship("Donation")

    @property
    def amount_inr(self) -> float:
        return (self.amount or 0) / 100
