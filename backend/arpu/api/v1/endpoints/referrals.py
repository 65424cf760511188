"""
Referral code endpoints.

Validation is public (used by the donation form); everything else needs
an account. Managers can create codes for people in their team.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from arpu.core.database import get_db
from arpu.core.exceptions import AuthorizationError, ResourceNotFoundError, ValidationError
from arpu.core.roles import role_display_name
from arpu.models.user import User
from arpu.schemas.referral import (
    ReferralCodeCreate,
    ReferralCodeUpdate,
    ReferralCodeResponse,
    ReferralValidateRequest,
    ReferralValidateResponse,
    ReferralChainEntry,
    ReferralAnalyticsResponse,
)
from arpu.modules.auth.dependencies import get_current_user
from arpu.services.hierarchy_service import hierarchy_service, ensure_can_manage
from arpu.services.referral_service import referral_service

router = APIRouter()


async def _ensure_owner_or_manager(db: AsyncSession, user: User, owner_id: str) -> None:
    if user.is_admin or owner_id == user.id:
        return
    if not await hierarchy_service.is_ancestor(db, user.id, owner_id):
        raise AuthorizationError("You can only manage referral codes in your team")


@router.post("/validate", response_model=ReferralValidateResponse)
async def validate_code(
    data: ReferralValidateRequest,
    db: AsyncSession = Depends(get_db)
):
    """Check a code before checkout"""
    referral, owner = await referral_service.resolve_attribution(db, data.code)
    if owner is None:
        return ReferralValidateResponse(valid=False, code=data.code, message="Invalid or inactive referral code")
    return ReferralValidateResponse(
        valid=True,
        code=data.code,
        owner_name=owner.name,
        owner_role=role_display_name(owner.role),
        region=referral.region if referral else owner.state,
        message="Referral code is valid",
    )


@router.get("/mine", response_model=List[ReferralCodeResponse])
async def my_codes(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await referral_service.list_for_owner(db, current_user.id)


@router.post("", response_model=ReferralCodeResponse, status_code=201)
async def create_code(
    data: ReferralCodeCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    owner = current_user
    if data.owner_user_id and data.owner_user_id != current_user.id:
        owner = await hierarchy_service.get_user(db, data.owner_user_id)
        if not current_user.is_admin:
            ensure_can_manage(current_user, owner)
            await _ensure_owner_or_manager(db, current_user, owner.id)

    parent = None
    if data.parent_code:
        parent = await referral_service.find_by_code(db, data.parent_code)
        if not parent:
            raise ValidationError("Parent referral code not found or inactive", field="parent_code")

    return await referral_service.create_for_user(db, owner, data.region, parent_code=parent, code=data.code)


@router.get("/hierarchy")
async def code_hierarchy(
    code: Optional[str] = Query(None, description="Defaults to your active code"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """The code's parent chain up to the root, plus its direct sub-codes"""
    if code:
        chain = await referral_service.get_hierarchy_chain(db, code)
        await _ensure_owner_or_manager(db, current_user, chain[0].owner_user_id)
    else:
        mine = await referral_service.get_active_code_for_user(db, current_user.id)
        if not mine:
            raise ResourceNotFoundError("Referral code", current_user.id)
        chain = await referral_service.get_hierarchy_chain(db, mine.code)

    entries = []
    for item in chain:
        owner = await db.get(User, item.owner_user_id)
        entries.append(ReferralChainEntry(
            code=item.code,
            owner_user_id=item.owner_user_id,
            owner_name=owner.name if owner else None,
            type=item.type,
            region=item.region,
        ))

    children = await referral_service.list_children(db, chain[0].id)
    return {
        "code": chain[0].code,
        "chain": entries,
        "children": [ReferralCodeResponse.model_validate(c) for c in children],
    }


@router.get("/analytics", response_model=ReferralAnalyticsResponse)
async def code_analytics(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Totals over the caller's codes and their team's (all codes for admins)"""
    owner_ids = None
    if not current_user.is_admin:
        owner_ids = [current_user.id] + await hierarchy_service.get_subordinate_ids(db, current_user.id)
    return await referral_service.analytics(db, owner_ids)


@router.get("/{code_id}", response_model=ReferralCodeResponse)
async def get_code(
    code_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    referral = await referral_service.get_by_id(db, code_id)
    await _ensure_owner_or_manager(db, current_user, referral.owner_user_id)
    return referral


@router.patch("/{code_id}", response_model=ReferralCodeResponse)
async def update_code(
    code_id: str,
    data: ReferralCodeUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Activate or deactivate a code"""
    referral = await referral_service.get_by_id(db, code_id)
    await _ensure_owner_or_manager(db, current_user, referral.owner_user_id)
    return await referral_service.set_active(db, code_id, data.active)
