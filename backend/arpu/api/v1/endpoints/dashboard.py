"""
Role-aware dashboard for coordinators and volunteers.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, Dict, Any

from arpu.core.database import get_db
from arpu.core.roles import UserRole, role_display_name
from arpu.models.user import User, UserStatus
from arpu.modules.auth.dependencies import get_current_user
from arpu.services.hierarchy_service import hierarchy_service
from arpu.services.target_service import target_service, target_summary

router = APIRouter()


@router.get("")
async def get_dashboard(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    """Stats, visible features and geographic scope for the caller's role"""
    stats = await hierarchy_service.get_dashboard_stats(db, current_user)
    features, scope = stats.pop("features"), stats.pop("scope")
    target = await target_service.get_active_target(db, current_user.id)
    return {
        "user": {
            "id": current_user.id,
            "name": current_user.name,
            "role": current_user.role.value,
            "role_display": role_display_name(current_user.role),
            "hierarchy_level": current_user.hierarchy_level,
            "referral_code": current_user.referral_code,
            "commission_wallet": current_user.commission_wallet,
            "commission_wallet_inr": current_user.commission_wallet_inr,
        },
        "stats": stats,
        "features": features,
        "scope": scope,
        "active_target": target_summary(target) if target else None,
    }


@router.get("/hierarchy")
async def get_hierarchy(
    max_depth: int = Query(5, ge=1, le=12),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    return await hierarchy_service.get_hierarchy_tree(db, current_user.id, max_depth)


@router.get("/team")
async def get_team(
    role: Optional[UserRole] = None,
    status: Optional[UserStatus] = None,
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    """Everyone below me, any status, paginated"""
    return await hierarchy_service.get_team_members(
        db, current_user, page=page, page_size=page_size, role=role, status=status, search=search
    )
