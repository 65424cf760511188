"""
Target endpoints - assignment, division, collection and reporting.

Every collection rolls up the coordinator chain (team_collection) so a
parent's progress reflects the whole team under them.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List, Dict, Any

from arpu.core.database import get_db
from arpu.core.exceptions import AuthorizationError, TargetNotFoundError
from arpu.models.user import User
from arpu.schemas.target import (
    TargetAssignRequest,
    TargetAssignResponse,
    TargetDivideRequest,
    TargetDivideResponse,
    CollectionRequest,
    CollectionResponse,
    TargetCancelRequest,
    TargetResponse,
    TargetListResponse,
    TargetStatsResponse,
    TransactionResponse,
)
from arpu.modules.auth.dependencies import get_current_user, get_current_coordinator
from arpu.services.hierarchy_service import hierarchy_service
from arpu.services.target_service import target_service, progress_label

router = APIRouter()


@router.get("", response_model=TargetListResponse)
async def list_targets(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Targets assigned to me plus the ones I assigned"""
    return await target_service.list_for_user(db, current_user)


@router.post("/assign", response_model=TargetAssignResponse, status_code=201)
async def assign_target(
    data: TargetAssignRequest,
    current_user: User = Depends(get_current_coordinator),
    db: AsyncSession = Depends(get_db)
):
    target, children = await target_service.assign(
        db,
        current_user,
        data.assignee_id,
        data.target_amount,
        data.start_date,
        data.end_date,
        description=data.description,
        notes=data.notes,
        subdivisions=[d.model_dump() for d in data.subdivisions] if data.subdivisions else None,
    )
    return {"target": target, "children": children}


@router.post("/divide", response_model=TargetDivideResponse, status_code=201)
async def divide_target(
    data: TargetDivideRequest,
    current_user: User = Depends(get_current_coordinator),
    db: AsyncSession = Depends(get_db)
):
    """Split my target among my direct team"""
    return await target_service.divide(
        db, current_user, data.parent_target_id, [d.model_dump() for d in data.divisions]
    )


@router.post("/collect", response_model=CollectionResponse, status_code=201)
async def record_collection(
    data: CollectionRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record money collected against my active target"""
    transaction, target = await target_service.collect(
        db,
        current_user,
        data.amount,
        data.payment_mode,
        donor_name=data.donor_name,
        donor_contact=data.donor_contact,
        donor_email=data.donor_email,
        purpose=data.purpose,
        notes=data.notes,
        collection_date=data.collection_date,
    )
    return {"transaction": transaction, "target": target, "progress_label": progress_label(target)}


@router.get("/dashboard")
async def target_dashboard(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    data = await target_service.dashboard(db, current_user)
    data["recent_transactions"] = [
        TransactionResponse.model_validate(t) for t in data["recent_transactions"]
    ]
    return data


@router.get("/leaderboard")
async def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> List[Dict[str, Any]]:
    """Active targets in my team (everyone's for admins) by progress"""
    return await target_service.leaderboard(db, current_user, limit)


@router.get("/hierarchy")
async def target_hierarchy(
    target_id: Optional[str] = Query(None, description="Defaults to my active target"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    """A target with its divided children, recursively"""
    if target_id:
        target = await target_service.get(db, target_id)
        if not await hierarchy_service.can_view_user(db, current_user, target.assigned_to):
            raise AuthorizationError("You cannot view this target")
    else:
        target = await target_service.get_active_target(db, current_user.id)
        if not target:
            raise TargetNotFoundError(message="No active target found")
    return await target_service.target_tree(db, target)


@router.get("/hierarchy-ranking")
async def hierarchy_ranking(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, List[Dict[str, Any]]]:
    return await target_service.hierarchy_ranking(db, current_user)


@router.get("/stats", response_model=TargetStatsResponse)
async def target_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await target_service.stats(db, current_user)


@router.post("/{target_id}/cancel", response_model=TargetResponse)
async def cancel_target(
    target_id: str,
    data: Optional[TargetCancelRequest] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await target_service.cancel(db, current_user, target_id, data.reason if data else None)
