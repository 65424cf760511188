"""
User Service - registration, login and account management
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from datetime import datetime, timedelta
from typing import Optional, Tuple
import re

from arpu.core.config import settings
from arpu.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    UserNotFoundError,
    ValidationError,
)
from arpu.core.logging_config import logger
from arpu.core.roles import REFERRAL_PREFIXES, SELF_ACTIVATING_ROLES, UserRole
from arpu.core.security import (
    EMAIL_VERIFICATION_TOKEN,
    PASSWORD_RESET_TOKEN,
    create_purpose_token,
    decode_purpose_token,
    generate_numeric_suffix,
    get_password_hash,
    token_digest,
    verify_password,
)
from arpu.models.user import User, UserStatus
from arpu.schemas.auth import UserRegister, ProfileUpdate, AdminUserUpdate
from arpu.services.hierarchy_service import (
    hierarchy_service,
    validate_hierarchy_assignment,
    ensure_can_manage,
)
from arpu.utils.pagination import paginate


PERSONAL_CODE_PATTERN = re.compile(r"^[A-Z]{2,3}\d{4}$")
PERSONAL_CODE_ATTEMPTS = 10

STATUS_MESSAGES = {
    UserStatus.ACTIVE: "Your account is active.",
    UserStatus.PENDING: "Your account is pending approval from your coordinator.",
    UserStatus.INACTIVE: "Your account has been deactivated. Please contact your coordinator.",
}


class UserService:

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def register(self, db: AsyncSession, data: UserRegister) -> User:
        """
        Create an account.

        Volunteers and donors are active immediately; every coordinator
        role waits for approval by someone higher in the chain.
        """
        if await self.get_by_email(db, data.email):
            raise ConflictError("Email already registered", details={"email": data.email})

        if data.parent_coordinator_id:
            parent = await db.get(User, data.parent_coordinator_id)
            if not parent:
                raise ValidationError("Parent coordinator not found", field="parent_coordinator_id")
            validate_hierarchy_assignment(data.role, data.state, parent)

        user = User(
            email=data.email,
            name=data.name,
            phone=data.phone,
            hashed_password=get_password_hash(data.password),
            role=data.role,
            status=UserStatus.ACTIVE if data.role in SELF_ACTIVATING_ROLES else UserStatus.PENDING,
            parent_coordinator_id=data.parent_coordinator_id,
            father_name=data.father_name,
            address=data.address,
            region=data.region,
            state=data.state,
            zone=data.zone,
            district=data.district,
            block=data.block,
            panchayat=data.panchayat,
            gram_sabha=data.gram_sabha,
            revenue_village=data.revenue_village,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)

        logger.log_auth_event("register", True, user_email=user.email, role=user.role.value)
        return user

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> User:
        user = await self.get_by_email(db, email)
        if not user or not verify_password(password, user.hashed_password):
            logger.log_auth_event("login", False, user_email=email, reason="invalid credentials")
            raise AuthenticationError("Incorrect email or password")

        if user.status != UserStatus.ACTIVE:
            logger.log_auth_event("login", False, user_email=email, reason=f"status {user.status.value}")
            raise AuthorizationError(STATUS_MESSAGES[user.status])

        user.last_login = datetime.utcnow()
        await db.commit()
        await db.refresh(user)

        logger.log_auth_event("login", True, user_email=user.email)
        return user

    async def account_status(self, db: AsyncSession, email: str) -> Tuple[User, str]:
        user = await self.get_by_email(db, email)
        if not user:
            raise UserNotFoundError(email)
        return user, STATUS_MESSAGES[user.status]

    async def update_profile(self, db: AsyncSession, user: User, data: ProfileUpdate) -> User:
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        await db.commit()
        await db.refresh(user)
        return user

    async def change_password(self, db: AsyncSession, user: User, current: str, new: str) -> None:
        if not verify_password(current, user.hashed_password):
            raise ValidationError("Current password is incorrect", field="current_password")
        if current == new:
            raise ValidationError("New password must differ from the current one", field="new_password")
        user.hashed_password = get_password_hash(new)
        await db.commit()
        logger.log_auth_event("password_change", True, user_email=user.email)

    # ==================== EMAILED LINKS ====================

    async def request_password_reset(self, db: AsyncSession, email: str) -> Optional[Tuple[User, str]]:
        """
        Issue a reset token and remember its digest on the user.

        Returns None for unknown or deactivated accounts; callers must answer
        the same way in both cases so the endpoint does not reveal which
        emails are registered.
        """
        user = await self.get_by_email(db, email)
        if not user or user.status == UserStatus.INACTIVE:
            logger.log_auth_event("password_reset_request", False, user_email=email, reason="no active account")
            return None

        lifetime = timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
        token = create_purpose_token(user, PASSWORD_RESET_TOKEN, lifetime)
        user.reset_token_hash = token_digest(token)
        user.reset_token_expires = datetime.utcnow() + lifetime
        await db.commit()

        logger.log_auth_event("password_reset_request", True, user_email=user.email)
        return user, token

    async def reset_password(self, db: AsyncSession, token: str, new_password: str) -> User:
        payload = decode_purpose_token(token, PASSWORD_RESET_TOKEN)
        if not payload:
            raise ValidationError("Invalid or expired reset link", field="token")

        user = await db.get(User, payload.get("sub"))
        if not user or user.email != payload.get("email") or user.reset_token_hash != token_digest(token):
            logger.log_auth_event("password_reset", False, user_email=payload.get("email"), reason="token not outstanding")
            raise ValidationError("Invalid or expired reset link", field="token")

        if not user.reset_token_expires or user.reset_token_expires < datetime.utcnow():
            raise ValidationError("Reset link has expired, please request a new one", field="token")

        user.hashed_password = get_password_hash(new_password)
        user.reset_token_hash = None
        user.reset_token_expires = None
        await db.commit()
        await db.refresh(user)

        logger.log_auth_event("password_reset", True, user_email=user.email)
        return user

    def email_verification_token(self, user: User) -> str:
        lifetime = timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS)
        return create_purpose_token(user, EMAIL_VERIFICATION_TOKEN, lifetime)

    async def verify_email(self, db: AsyncSession, token: str) -> Tuple[User, bool]:
        """Mark the address verified; second element is True when it already was"""
        payload = decode_purpose_token(token, EMAIL_VERIFICATION_TOKEN)
        if not payload:
            raise ValidationError("Invalid or expired verification link", field="token")

        user = await db.get(User, payload.get("sub"))
        if not user or user.email != payload.get("email"):
            raise ValidationError("Invalid or expired verification link", field="token")

        if user.is_verified:
            return user, True

        user.is_verified = True
        await db.commit()
        await db.refresh(user)

        logger.log_auth_event("email_verified", True, user_email=user.email)
        return user, False

    async def generate_personal_referral_code(self, db: AsyncSession, user: User) -> str:
        """Role prefix + 4 random digits, e.g. DC0427"""
        if user.referral_code:
            raise ConflictError("You already have a referral code", details={"referral_code": user.referral_code})

        prefix = REFERRAL_PREFIXES[user.role]
        for _ in range(PERSONAL_CODE_ATTEMPTS):
            code = f"{prefix}{generate_numeric_suffix(4)}"
            if not PERSONAL_CODE_PATTERN.match(code):
                continue
            taken = await db.execute(select(User.id).where(User.referral_code == code))
            if taken.scalar_one_or_none() is None:
                user.referral_code = code
                await db.commit()
                await db.refresh(user)
                logger.info(f"[Users] Referral code {code} generated for {user.email}")
                return code

        raise ConflictError("Could not generate a unique referral code, please try again")

    # ==================== ADMIN ====================

    async def list_users(
        self,
        db: AsyncSession,
        page: int = 1,
        page_size: int = 20,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
        state: Optional[str] = None,
        search: Optional[str] = None,
    ) -> dict:
        query = select(User)
        if role:
            query = query.where(User.role == role)
        if status:
            query = query.where(User.status == status)
        if state:
            query = query.where(func.lower(User.state) == state.lower())
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(or_(User.name.ilike(pattern), User.email.ilike(pattern), User.phone.ilike(pattern)))
        return await paginate(db, query.order_by(User.created_at.desc()), page, page_size)

    async def admin_update(self, db: AsyncSession, actor: User, user_id: str, data: AdminUserUpdate) -> User:
        user = await hierarchy_service.get_user(db, user_id)
        ensure_can_manage(actor, user)
        changes = data.model_dump(exclude_unset=True)

        new_role = changes.get("role", user.role)
        new_state = changes.get("state", user.state)
        parent_id = changes.get("parent_coordinator_id", user.parent_coordinator_id)

        if parent_id:
            if parent_id == user.id:
                raise ValidationError("A user cannot be their own coordinator", field="parent_coordinator_id")
            parent = await db.get(User, parent_id)
            if not parent:
                raise ValidationError("Parent coordinator not found", field="parent_coordinator_id")
            if await hierarchy_service.is_ancestor(db, user.id, parent.id):
                raise ValidationError("Parent coordinator is inside this user's team", field="parent_coordinator_id")
            validate_hierarchy_assignment(new_role, new_state, parent)

        for field, value in changes.items():
            setattr(user, field, value)
        await db.commit()
        await db.refresh(user)

        logger.info(f"[Users] {actor.email} updated {user.email}: {sorted(changes)}")
        return user

    async def deactivate(self, db: AsyncSession, actor: User, user_id: str) -> User:
        user = await hierarchy_service.get_user(db, user_id)
        if user.id == actor.id:
            raise ValidationError("You cannot deactivate your own account")
        ensure_can_manage(actor, user)
        user.status = UserStatus.INACTIVE
        await db.commit()
        await db.refresh(user)
        logger.info(f"[Users] {actor.email} deactivated {user.email}")
        return user

    async def count_by_status(self, db: AsyncSession) -> dict:
        result = await db.execute(select(User.status, func.count(User.id)).group_by(User.status))
        counts = {status.value: 0 for status in UserStatus}
        for status, count in result.all():
            counts[status.value] = count
        return counts


user_service = UserService()

