from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, Any

from arpu.core.database import get_db
from arpu.core.exceptions import AuthorizationError
from arpu.models.user import User
from arpu.modules.auth.dependencies import get_current_user
from arpu.services.hierarchy_service import hierarchy_service, user_summary

router = APIRouter()


@router.get("/{user_id}")
async def get_user_hierarchy(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    """Coordinator path to the root and team size; self, ancestors or admins"""
    user = await hierarchy_service.get_user(db, user_id)
    if not await hierarchy_service.can_view_user(db, current_user, user.id):
        raise AuthorizationError("You can only view users in your own team")

    path = await hierarchy_service.get_hierarchy_path(db, user.id)
    subordinates = await hierarchy_service.get_subordinate_ids(db, user.id, active_only=False)
    return {
        "user": user_summary(user),
        "path": [user_summary(u) for u in path],
        "depth": len(path) - 1,
        "subordinate_count": len(subordinates),
    }
