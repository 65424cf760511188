from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from arpu.core.database import get_db
from arpu.core.security import create_token_pair, decode_token
from arpu.core.logging_config import logger, set_user_id
from arpu.core.rate_limiter import strict_rate_limit, auth_rate_limit, get_client_ip
from arpu.models.user import User, UserStatus
from arpu.schemas.auth import (
    UserRegister,
    UserLogin,
    Token,
    LoginResponse,
    RegisterResponse,
    RefreshTokenRequest,
    UserResponse,
    AccountStatusResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
    ResendVerificationRequest,
    MessageResponse,
)
from arpu.modules.auth.dependencies import get_current_user
from arpu.services.user_service import user_service
from arpu.tasks.notifications import send_email_verification, send_password_reset

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
@strict_rate_limit()
async def register(
    request: Request,
    user_data: UserRegister,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db)
):
    """Register a new account (rate limited: 3/min). Coordinators wait for approval."""
    user = await user_service.register(db, user_data)
    requires_approval = user.status == UserStatus.PENDING
    background_tasks.add_task(
        send_email_verification, user.email, user.name, user_service.email_verification_token(user)
    )

    logger.info(f"[Auth] Registered {user.email} from {get_client_ip(request)}")
    return RegisterResponse(
        user=UserResponse.model_validate(user),
        requires_approval=requires_approval,
        message=(
            "Registration successful. Your account is awaiting approval."
            if requires_approval else "Registration successful. You can now sign in."
        ),
    )


@router.post("/login", response_model=LoginResponse)
@auth_rate_limit()
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login with email and password (rate limited: 5/min)"""
    user = await user_service.authenticate(db, credentials.email, credentials.password)
    set_user_id(user.id)
    return LoginResponse(**create_token_pair(user), user=UserResponse.model_validate(user))


@router.post("/refresh", response_model=Token)
async def refresh_token(
    request_data: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db)
):
    """Exchange a refresh token for a new token pair"""
    payload = decode_token(request_data.refresh_token)
    if payload.get("type") != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type"
        )

    user = await db.get(User, payload.get("sub"))
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )

    logger.log_auth_event("refresh", True, user_email=user.email)
    return Token(**create_token_pair(user))


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current user info"""
    return current_user


@router.get("/check-status", response_model=AccountStatusResponse)
async def check_status(
    email: str = Query(..., min_length=3, max_length=255),
    db: AsyncSession = Depends(get_db)
):
    """Account status for the pending-approval screen"""
    user, message = await user_service.account_status(db, email)
    return AccountStatusResponse(email=user.email, status=user.status, role=user.role, message=message)


RESET_REQUESTED_MESSAGE = "If an account with that email exists, a password reset link has been sent."
VERIFICATION_SENT_MESSAGE = "If an account with that email exists, a verification email has been sent."


@router.post("/forgot-password", response_model=MessageResponse)
@strict_rate_limit()
async def forgot_password(
    request: Request,
    data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db)
):
    """
    Email a password reset link.

    Answers identically whether or not the address is registered.
    """
    issued = await user_service.request_password_reset(db, data.email)
    if issued:
        user, token = issued
        background_tasks.add_task(send_password_reset, user.email, user.name, token)
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
@auth_rate_limit()
async def reset_password(
    request: Request,
    data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    """Set a new password using the token from the reset email"""
    await user_service.reset_password(db, data.token, data.new_password)
    return MessageResponse(message="Password has been reset. You can now sign in with your new password.")


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(
    data: VerifyEmailRequest,
    db: AsyncSession = Depends(get_db)
):
    _, already_verified = await user_service.verify_email(db, data.token)
    if already_verified:
        return MessageResponse(message="Email is already verified.")
    return MessageResponse(message="Email verified successfully.")


@router.post("/resend-verification", response_model=MessageResponse)
@strict_rate_limit()
async def resend_verification(
    request: Request,
    data: ResendVerificationRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db)
):
    """Send a fresh verification link; same answer for unknown addresses"""
    user = await user_service.get_by_email(db, data.email)
    if user and user.is_verified:
        return MessageResponse(message="This email is already verified. You can sign in.")
    if user:
        background_tasks.add_task(
            send_email_verification, user.email, user.name, user_service.email_verification_token(user)
        )
    return MessageResponse(message=VERIFICATION_SENT_MESSAGE)
