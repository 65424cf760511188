from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Integer, BigInteger, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from arpu.core.database import Base
from arpu.core.types import GUID, generate_uuid
from arpu.core.roles import UserRole, role_level, hierarchy_level_name


class UserStatus(str, enum.Enum):
    """Account status - coordinators start PENDING until a superior approves"""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    PENDING = "PENDING"


class User(Base):
    """Volunteer, coordinator, donor or admin account"""
    __tablename__ = "users"

    __table_args__ = (
        Index('ix_users_role_status', 'role', 'status'),
        Index('ix_users_parent', 'parent_coordinator_id'),
        Index('ix_users_state_district', 'state', 'district'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)
    phone = Column(String(15), nullable=True)
    hashed_password = Column(String(255), nullable=False)

    role = Column(SQLEnum(UserRole), default=UserRole.VOLUNTEER, nullable=False)
    status = Column(SQLEnum(UserStatus), default=UserStatus.PENDING, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)

    # sha256 of the outstanding password reset JWT; cleared once used
    reset_token_hash = Column(String(64), nullable=True)
    reset_token_expires = Column(DateTime, nullable=True)

    # Coordinator chain
    parent_coordinator_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Personal details
    father_name = Column(String(100), nullable=True)
    address = Column(Text, nullable=True)

    # Geography
    region = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    zone = Column(String(100), nullable=True)
    district = Column(String(100), nullable=True)
    block = Column(String(100), nullable=True)
    panchayat = Column(String(100), nullable=True)
    gram_sabha = Column(String(100), nullable=True)
    revenue_village = Column(String(100), nullable=True)

    # Referral counters (amounts in paise)
    referral_code = Column(String(20), unique=True, nullable=True)
    total_donations_referred = Column(Integer, default=0, nullable=False)
    total_amount_referred = Column(BigInteger, default=0, nullable=False)
    commission_wallet = Column(BigInteger, default=0, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    parent_coordinator = relationship("User", remote_side=[id], foreign_keys=[parent_coordinator_id])

    def __repr__(self):
        return f"<User {self.email} ({self.role.value if self.role else '-'})>"

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def level(self) -> int:
        return role_level(self.role)

    @property
    def hierarchy_level(self) -> str:
        return hierarchy_level_name(self.role)

    @property
    def commission_wallet_inr(self) -> float:
        return (self.commission_wallet or 0) / 100

    @property
    def total_amount_referred_inr(self) -> float:
        return (self.total_amount_referred or 0) / 100
