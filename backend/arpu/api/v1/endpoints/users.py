"""
Profile, personal referral codes and account approvals.
"""
from fastapi import APIRouter, Depends, BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from arpu.core.database import get_db
from arpu.core.roles import role_display_name
from arpu.models.user import User, UserStatus
from arpu.schemas.auth import (
    UserResponse,
    ProfileUpdate,
    ChangePasswordRequest,
    ApprovalRequest,
    PersonalReferralCodeResponse,
)
from arpu.modules.auth.dependencies import get_current_user, get_current_coordinator
from arpu.services.hierarchy_service import hierarchy_service
from arpu.services.user_service import user_service
from arpu.tasks.notifications import send_account_approved

router = APIRouter()


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await user_service.update_profile(db, current_user, data)


@router.post("/me/change-password")
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await user_service.change_password(db, current_user, data.current_password, data.new_password)
    return {"success": True, "message": "Password changed successfully"}


@router.post("/me/referral-code", response_model=PersonalReferralCodeResponse)
async def generate_referral_code(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Generate the caller's personal referral code (e.g. DC0427)"""
    code = await user_service.generate_personal_referral_code(db, current_user)
    return PersonalReferralCodeResponse(referral_code=code, message="Referral code generated")


@router.get("/pending", response_model=List[UserResponse])
async def list_pending_approvals(
    current_user: User = Depends(get_current_coordinator),
    db: AsyncSession = Depends(get_db)
):
    """PENDING accounts the caller is allowed to approve"""
    return await hierarchy_service.get_pending_approvals(db, current_user)


@router.post("/{user_id}/approve", response_model=UserResponse)
async def approve_user(
    user_id: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_coordinator),
    db: AsyncSession = Depends(get_db)
):
    user = await hierarchy_service.set_status(db, current_user, user_id, UserStatus.ACTIVE)
    background_tasks.add_task(send_account_approved, user.email, user.name, role_display_name(user.role))
    return user


@router.post("/{user_id}/reject", response_model=UserResponse)
async def reject_user(
    user_id: str,
    data: ApprovalRequest = None,
    current_user: User = Depends(get_current_coordinator),
    db: AsyncSession = Depends(get_db)
):
    return await hierarchy_service.set_status(db, current_user, user_id, UserStatus.INACTIVE)
