"""
Hierarchy Service - walks the coordinator tree

Handles:
- Subordinate / ancestor lookups over parent_coordinator_id
- Nested team trees for the dashboard
- Team listings and dashboard statistics
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_, or_
from typing import Optional, List, Dict, Any, Set

from arpu.core.exceptions import HierarchyViolationError, UserNotFoundError, ValidationError
from arpu.core.logging_config import logger
from arpu.core.roles import (
    UserRole,
    can_manage,
    dashboard_features,
    geographic_scope,
    hierarchy_assignment_error,
    role_display_name,
)
from arpu.models.user import User, UserStatus
from arpu.models.donation import Donation, PaymentStatus
from arpu.utils.pagination import clamp_page, create_paginated_response


def validate_hierarchy_assignment(role: UserRole, state: Optional[str], parent: User) -> None:
    """Raise HierarchyViolationError unless `parent` may coordinate a user of this role/state"""
    reason = hierarchy_assignment_error(role, state, parent.role, parent.state)
    if reason:
        raise HierarchyViolationError(reason, actor_role=parent.role.value, target_role=UserRole(role).value)


def ensure_can_manage(actor: User, target: User) -> None:
    if not can_manage(actor.role, target.role):
        raise HierarchyViolationError(
            f"{role_display_name(actor.role)} cannot manage {role_display_name(target.role)}",
            actor_role=actor.role.value,
            target_role=target.role.value,
        )


def user_summary(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "role_display": role_display_name(user.role),
        "status": user.status.value,
        "hierarchy_level": user.hierarchy_level,
        "state": user.state,
        "district": user.district,
        "referral_code": user.referral_code,
    }


class HierarchyService:
    """Queries over the coordinator chain"""

    async def get_user(self, db: AsyncSession, user_id: str) -> User:
        user = await db.get(User, user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user

    async def get_subordinates(
        self,
        db: AsyncSession,
        user_id: str,
        active_only: bool = True
    ) -> List[User]:
        """
        Every user below `user_id`, breadth first.

        Walks parent_coordinator_id one level per query. The visited set
        stops the walk if the data ever contains a cycle.
        """
        visited: Set[str] = {user_id}
        frontier = [user_id]
        subordinates: List[User] = []

        while frontier:
            query = select(User).where(User.parent_coordinator_id.in_(frontier))
            if active_only:
                query = query.where(User.status == UserStatus.ACTIVE)
            result = await db.execute(query)

            frontier = []
            for member in result.scalars().all():
                if member.id in visited:
                    continue
                visited.add(member.id)
                subordinates.append(member)
                frontier.append(member.id)

        return subordinates

    async def get_subordinate_ids(self, db: AsyncSession, user_id: str, active_only: bool = True) -> List[str]:
        return [u.id for u in await self.get_subordinates(db, user_id, active_only)]

    async def get_direct_team(self, db: AsyncSession, user_id: str, active_only: bool = True) -> List[User]:
        query = select(User).where(User.parent_coordinator_id == user_id)
        if active_only:
            query = query.where(User.status == UserStatus.ACTIVE)
        result = await db.execute(query.order_by(User.name))
        return list(result.scalars().all())

    async def get_hierarchy_path(self, db: AsyncSession, user_id: str) -> List[User]:
        """The user followed by each coordinator up to the root"""
        path: List[User] = []
        seen: Set[str] = set()
        current = await db.get(User, user_id)

        while current is not None and current.id not in seen:
            seen.add(current.id)
            path.append(current)
            if not current.parent_coordinator_id:
                break
            current = await db.get(User, current.parent_coordinator_id)

        return path

    async def is_ancestor(self, db: AsyncSession, ancestor_id: str, user_id: str) -> bool:
        path = await self.get_hierarchy_path(db, user_id)
        return any(u.id == ancestor_id for u in path[1:])

    async def can_view_user(self, db: AsyncSession, viewer: User, user_id: str) -> bool:
        """Self, any ancestor, or an admin"""
        if viewer.is_admin or viewer.id == user_id:
            return True
        return await self.is_ancestor(db, viewer.id, user_id)

    async def get_hierarchy_tree(
        self,
        db: AsyncSession,
        user_id: str,
        max_depth: int = 5
    ) -> Dict[str, Any]:
        """Nested {user, children[]} down to max_depth levels"""
        root = await self.get_user(db, user_id)
        visited: Set[str] = {root.id}

        async def build(node: User, depth: int) -> Dict[str, Any]:
            entry = {"user": user_summary(node), "children": []}
            if depth >= max_depth:
                return entry
            for child in await self.get_direct_team(db, node.id):
                if child.id in visited:
                    continue
                visited.add(child.id)
                entry["children"].append(await build(child, depth + 1))
            return entry

        return await build(root, 0)

    async def get_team_members(
        self,
        db: AsyncSession,
        user: User,
        page: int = 1,
        page_size: int = 20,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
        search: Optional[str] = None,
    ) -> dict:
        """Paginated view over every subordinate (any status)"""
        members = await self.get_subordinates(db, user.id, active_only=False)

        if role:
            members = [m for m in members if m.role == role]
        if status:
            members = [m for m in members if m.status == status]
        if search:
            needle = search.strip().lower()
            members = [
                m for m in members
                if needle in m.name.lower() or needle in m.email.lower()
                or (m.phone and needle in m.phone)
            ]

        members.sort(key=lambda m: (m.level, m.name.lower()))
        page, page_size = clamp_page(page, page_size)
        start = (page - 1) * page_size
        return create_paginated_response(
            [user_summary(m) for m in members[start:start + page_size]],
            len(members),
            page,
            page_size,
        )

    async def get_dashboard_stats(self, db: AsyncSession, user: User) -> Dict[str, Any]:
        team = await self.get_subordinates(db, user.id, active_only=False)
        active_team_ids = [m.id for m in team if m.status == UserStatus.ACTIVE]
        direct = [m for m in team if m.parent_coordinator_id == user.id]

        scope_ids = [user.id] + active_team_ids
        totals = await db.execute(
            select(func.count(Donation.id), func.coalesce(func.sum(Donation.amount), 0)).where(
                and_(
                    Donation.payment_status == PaymentStatus.SUCCESS,
                    Donation.attributed_to_user_id.in_(scope_ids),
                )
            )
        )
        total_count, total_amount = totals.one()

        personal = await db.execute(
            select(func.count(Donation.id), func.coalesce(func.sum(Donation.amount), 0)).where(
                and_(
                    Donation.payment_status == PaymentStatus.SUCCESS,
                    Donation.attributed_to_user_id == user.id,
                )
            )
        )
        personal_count, personal_amount = personal.one()

        return {
            "total_donations": total_count,
            "total_amount": int(total_amount),
            "total_amount_inr": int(total_amount) / 100,
            "personal_donations": personal_count,
            "personal_amount": int(personal_amount),
            "personal_amount_inr": int(personal_amount) / 100,
            "direct_team_count": len(direct),
            "total_team_count": len(team),
            "active_team_count": len(active_team_ids),
            "pending_team_count": sum(1 for m in team if m.status == UserStatus.PENDING),
            "features": dashboard_features(user.role),
            "scope": geographic_scope(user.role).value,
        }

    async def get_pending_approvals(self, db: AsyncSession, approver: User) -> List[User]:
        """PENDING users the approver outranks; admins see all, others only their subtree"""
        query = select(User).where(User.status == UserStatus.PENDING).order_by(User.created_at)
        if not approver.is_admin:
            team_ids = await self.get_subordinate_ids(db, approver.id, active_only=False)
            query = query.where(
                or_(User.id.in_(team_ids), User.parent_coordinator_id == approver.id)
            )
        result = await db.execute(query)
        return [u for u in result.scalars().all() if can_manage(approver.role, u.role)]

    async def set_status(
        self,
        db: AsyncSession,
        approver: User,
        user_id: str,
        status: UserStatus,
    ) -> User:
        """Approve (ACTIVE) or reject (INACTIVE) a PENDING user"""
        user = await self.get_user(db, user_id)
        if user.status != UserStatus.PENDING:
            raise ValidationError(f"User is not pending approval (status: {user.status.value})", field="status")
        ensure_can_manage(approver, user)

        user.status = status
        await db.commit()
        await db.refresh(user)

        logger.info(
            f"[Hierarchy] {approver.email} set {user.email} to {status.value}",
            extra={"approver_id": approver.id, "user_id": user.id},
        )
        return user


hierarchy_service = HierarchyService()
