"""
Admin User Management endpoints.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from arpu.core.database import get_db
from arpu.core.roles import UserRole
from arpu.models.user import User, UserStatus
from arpu.modules.auth.dependencies import get_current_admin
from arpu.schemas.auth import UserResponse, AdminUserUpdate
from arpu.schemas.common import Page
from arpu.services.hierarchy_service import hierarchy_service
from arpu.services.user_service import user_service

router = APIRouter()


@router.get("", response_model=Page[UserResponse])
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    role: Optional[UserRole] = None,
    status: Optional[UserStatus] = None,
    state: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """List all users with filtering and pagination"""
    return await user_service.list_users(
        db, page=page, page_size=page_size, role=role, status=status, state=state, search=search
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    return await hierarchy_service.get_user(db, user_id)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    data: AdminUserUpdate,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Update profile, role, status or coordinator; hierarchy rules are re-checked"""
    return await user_service.admin_update(db, current_admin, user_id, data)


@router.delete("/{user_id}", response_model=UserResponse)
async def deactivate_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Soft delete: the account becomes INACTIVE"""
    return await user_service.deactivate(db, current_admin, user_id)
