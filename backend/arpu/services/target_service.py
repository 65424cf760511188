"""
Target Service - fundraising targets, division and collection

A superior assigns a target; its owner may divide it among direct team
members (children never add up to more than the parent). Collections
land on the collector's active target and roll up the chain as
team_collection.
"""

from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Set, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_

from arpu.core.exceptions import (
    AuthorizationError,
    ConflictError,
    HierarchyViolationError,
    TargetExceededError,
    TargetNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from arpu.core.logging_config import logger
from arpu.core.roles import can_manage, hierarchy_level_name, role_display_name
from arpu.models.target import (
    ACTIVE_TARGET_STATUSES,
    PaymentMode,
    Target,
    TargetStatus,
    Transaction,
    TransactionStatus,
)
from arpu.models.user import User, UserStatus
from arpu.services.hierarchy_service import hierarchy_service, user_summary


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive UTC"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def validate_assignment(
    assigner: User,
    assignee: User,
    amount: int,
    start_date: Optional[datetime],
    end_date: Optional[datetime],
) -> None:
    if amount is None or amount <= 0:
        raise ValidationError("Target amount must be greater than zero", field="target_amount")
    if not start_date or not end_date:
        raise ValidationError("Start date and end date are required", field="start_date")
    if to_naive_utc(end_date) <= to_naive_utc(start_date):
        raise ValidationError("End date must be after start date", field="end_date")
    if not can_manage(assigner.role, assignee.role):
        raise HierarchyViolationError(
            f"{role_display_name(assigner.role)} cannot assign targets to {role_display_name(assignee.role)}",
            actor_role=assigner.role.value,
            target_role=assignee.role.value,
        )


def progress_label(target: Target) -> str:
    if target.is_overdue:
        return "Overdue"
    progress = target.progress_percentage or 0
    if progress >= 100:
        return "Completed"
    if progress >= 75:
        return "On Track"
    if progress >= 50:
        return "Moderate"
    if progress >= 25:
        return "Slow"
    return "Very Slow"


def target_summary(target: Target, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "id": target.id,
        "assigned_to": target.assigned_to,
        "target_amount": target.target_amount,
        "total_collection": target.total_collection,
        "total_collection_inr": target.total_collection_inr,
        "progress_percentage": target.progress_percentage,
        "remaining_amount": target.remaining_amount,
        "status": target.status.value,
        "is_overdue": target.is_overdue,
        "is_divided": target.is_divided,
        "days_remaining": target.days_remaining(now),
        "progress_label": progress_label(target),
        "level": target.level,
    }


def _sort_key(target: Target):
    return (-(target.progress_percentage or 0), -(target.total_collection or 0))


class TargetService:

    # ==================== LOOKUPS ====================

    async def get(self, db: AsyncSession, target_id: str) -> Target:
        target = await db.get(Target, target_id)
        if not target:
            raise TargetNotFoundError(target_id)
        return target

    async def get_active_target(self, db: AsyncSession, user_id: str) -> Optional[Target]:
        """Newest PENDING / IN_PROGRESS / OVERDUE target for the user"""
        result = await db.execute(
            select(Target)
            .where(and_(Target.assigned_to == user_id, Target.status.in_(ACTIVE_TARGET_STATUSES)))
            .order_by(Target.created_at.desc())
        )
        return result.scalars().first()

    async def list_for_user(self, db: AsyncSession, user: User) -> Dict[str, List[Target]]:
        mine = await db.execute(
            select(Target).where(Target.assigned_to == user.id).order_by(Target.created_at.desc())
        )
        assigned = await db.execute(
            select(Target)
            .where(and_(Target.assigned_by == user.id, Target.assigned_to != user.id))
            .order_by(Target.created_at.desc())
        )
        return {"my_targets": list(mine.scalars().all()), "assigned_by_me": list(assigned.scalars().all())}

    async def get_children(self, db: AsyncSession, target_id: str) -> List[Target]:
        result = await db.execute(select(Target).where(Target.parent_target_id == target_id))
        return list(result.scalars().all())

    async def _ensure_no_active_target(self, db: AsyncSession, user: User) -> None:
        existing = await self.get_active_target(db, user.id)
        if existing:
            raise ConflictError(
                f"{user.name} already has an active target",
                details={"user_id": user.id, "target_id": existing.id},
            )

    def _new_target(
        self,
        assignee: User,
        assigned_by: Optional[str],
        amount: int,
        start_date: datetime,
        end_date: datetime,
        description: Optional[str] = None,
        notes: Optional[str] = None,
        parent: Optional[Target] = None,
    ) -> Target:
        # Children inherit the parent's area; top-level targets take the assignee's
        area = parent if parent is not None else assignee
        target = Target(
            assigned_to=assignee.id,
            assigned_by=assigned_by,
            parent_target_id=parent.id if parent is not None else None,
            target_amount=amount,
            personal_collection=0,
            team_collection=0,
            start_date=start_date,
            end_date=end_date,
            status=TargetStatus.PENDING,
            is_overdue=False,
            is_divided=False,
            description=description,
            notes=notes,
            level=hierarchy_level_name(assignee.role),
            region=area.region,
            state=area.state,
            zone=area.zone,
            district=area.district,
            block=area.block,
        )
        target.recalculate()
        return target

    async def _load_active_user(self, db: AsyncSession, user_id: str) -> User:
        user = await db.get(User, user_id)
        if not user:
            raise UserNotFoundError(user_id)
        if user.status != UserStatus.ACTIVE:
            raise ValidationError(f"{user.name} is not an active user", field="assignee_id")
        return user

    # ==================== ASSIGN / DIVIDE ====================

    async def assign(
        self,
        db: AsyncSession,
        assigner: User,
        assignee_id: Optional[str],
        amount: int,
        start_date: datetime,
        end_date: datetime,
        description: Optional[str] = None,
        notes: Optional[str] = None,
        subdivisions: Optional[List[Dict[str, Any]]] = None,
    ) -> Tuple[Target, List[Target]]:
        """
        Assign a target to one subordinate, or (with subdivisions) create
        a divided target for the assigner and a child for each part.
        """
        start_date, end_date = to_naive_utc(start_date), to_naive_utc(end_date)

        if subdivisions:
            total = sum(int(s["amount"]) for s in subdivisions)
            if total > amount:
                raise TargetExceededError(amount, total)

            members = await self._load_division_members(db, assigner, subdivisions)
            for member, part in zip(members, subdivisions):
                validate_assignment(assigner, member, int(part["amount"]), start_date, end_date)
            await self._ensure_no_active_target(db, assigner)

            parent = self._new_target(
                assigner, assigner.id, amount, start_date, end_date,
                description or "Total target for team", notes,
            )
            parent.is_divided = True
            db.add(parent)
            await db.flush()

            children = []
            for member, part in zip(members, subdivisions):
                child = self._new_target(
                    member, assigner.id, int(part["amount"]), start_date, end_date,
                    part.get("description") or description or f"Target assigned by {assigner.name}",
                    parent=parent,
                )
                db.add(child)
                children.append(child)

            await db.commit()
            logger.info(
                f"[Targets] {assigner.email} divided {amount} paise among {len(children)} members",
                extra={"target_id": parent.id},
            )
            return parent, children

        if not assignee_id:
            raise ValidationError("Provide either assignee_id or subdivisions", field="assignee_id")

        assignee = await self._load_active_user(db, assignee_id)
        validate_assignment(assigner, assignee, amount, start_date, end_date)
        await self._ensure_no_active_target(db, assignee)

        target = self._new_target(
            assignee, assigner.id, amount, start_date, end_date,
            description or f"Target assigned by {assigner.name}", notes,
        )
        db.add(target)
        await db.commit()
        await db.refresh(target)

        logger.info(
            f"[Targets] {assigner.email} assigned {amount} paise to {assignee.email}",
            extra={"target_id": target.id},
        )
        return target, []

    async def _load_division_members(
        self,
        db: AsyncSession,
        owner: User,
        divisions: List[Dict[str, Any]],
        direct_only: bool = False,
    ) -> List[User]:
        seen: Set[str] = set()
        members = []
        for part in divisions:
            assignee_id = part["assignee_id"]
            if assignee_id in seen:
                raise ValidationError("Each team member can only receive one division", field="divisions")
            seen.add(assignee_id)
            if int(part["amount"]) <= 0:
                raise ValidationError("Division amounts must be greater than zero", field="divisions")

            member = await self._load_active_user(db, assignee_id)
            if direct_only and member.parent_coordinator_id != owner.id:
                raise ValidationError(f"{member.name} is not in your direct team", field="divisions")
            await self._ensure_no_active_target(db, member)
            members.append(member)
        return members

    async def divide(
        self,
        db: AsyncSession,
        owner: User,
        parent_target_id: str,
        divisions: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """Split the owner's target among direct team members"""
        parent = await self.get(db, parent_target_id)
        if parent.assigned_to != owner.id:
            raise AuthorizationError("You can only divide your own target")
        if parent.is_divided:
            raise ConflictError("Target has already been divided", details={"target_id": parent.id})
        if parent.status not in ACTIVE_TARGET_STATUSES:
            raise ValidationError(f"Cannot divide a {parent.status.value} target", field="parent_target_id")
        if not divisions:
            raise ValidationError("At least one division is required", field="divisions")
        if any(int(d["amount"]) <= 0 for d in divisions):
            raise ValidationError("Division amounts must be greater than zero", field="divisions")

        total = sum(int(d["amount"]) for d in divisions)
        if total > parent.target_amount:
            raise TargetExceededError(parent.target_amount, total)

        members = await self._load_division_members(db, owner, divisions, direct_only=True)

        children = []
        for member, part in zip(members, divisions):
            child = self._new_target(
                member, owner.id, int(part["amount"]), parent.start_date, parent.end_date,
                part.get("description") or f"Part of {owner.name}'s target",
                parent=parent,
            )
            db.add(child)
            children.append(child)

        parent.is_divided = True
        await db.commit()
        await db.refresh(parent)

        logger.info(
            f"[Targets] {owner.email} divided target {parent.id} into {len(children)} parts",
            extra={"total_divided": total},
        )
        return {
            "parent": parent,
            "children": children,
            "total_divided": total,
            "remaining": parent.target_amount - total,
        }

    # ==================== COLLECTION ====================

    async def collect(
        self,
        db: AsyncSession,
        user: User,
        amount: int,
        payment_mode: Optional[PaymentMode],
        donor_name: Optional[str] = None,
        donor_contact: Optional[str] = None,
        donor_email: Optional[str] = None,
        purpose: Optional[str] = None,
        notes: Optional[str] = None,
        collection_date: Optional[datetime] = None,
    ) -> Tuple[Transaction, Target]:
        """Record a verified collection on the user's active target and roll it up"""
        if amount is None or amount <= 0:
            raise ValidationError("Amount must be greater than zero", field="amount")
        if not payment_mode:
            raise ValidationError("Payment mode is required", field="payment_mode")

        target = await self.get_active_target(db, user.id)
        if not target:
            raise TargetNotFoundError(message="No active target found. Ask your coordinator to assign one.")

        now = datetime.utcnow()
        transaction = Transaction(
            user_id=user.id,
            target_id=target.id,
            amount=amount,
            payment_mode=payment_mode,
            status=TransactionStatus.VERIFIED,
            donor_name=donor_name,
            donor_contact=donor_contact,
            donor_email=donor_email,
            purpose=purpose,
            notes=notes,
            verified_by=user.id,
            verified_at=now,
            collection_date=to_naive_utc(collection_date) or now,
        )
        db.add(transaction)

        await self.apply_collection(db, target, amount)
        await db.refresh(transaction)
        return transaction, target

    async def apply_collection(self, db: AsyncSession, target: Target, amount: int) -> Target:
        target.personal_collection = (target.personal_collection or 0) + amount
        target.recalculate()
        await db.commit()

        logger.log_payment_event("collection", amount, reference=target.id, user_id=target.assigned_to)
        await self.propagate_safely(db, target)
        return target

    async def propagate_safely(self, db: AsyncSession, target: Target) -> None:
        target_id = target.id
        try:
            await self.propagate(db, target)
        except Exception as e:
            await db.rollback()
            logger.log_error_with_context(e, context="target propagation", target_id=target_id)
            await db.refresh(target)

    async def _find_parent_target(self, db: AsyncSession, target: Target) -> Optional[Target]:
        if target.parent_target_id:
            return await db.get(Target, target.parent_target_id)
        assignee = await db.get(User, target.assigned_to)
        if assignee and assignee.parent_coordinator_id:
            return await self.get_active_target(db, assignee.parent_coordinator_id)
        return None

    async def recompute_team_collection(self, db: AsyncSession, parent: Target) -> int:
        if parent.is_divided:
            query = select(func.coalesce(func.sum(Target.total_collection), 0)).where(
                and_(Target.parent_target_id == parent.id, Target.status != TargetStatus.CANCELLED)
            )
        else:
            team_ids = select(User.id).where(User.parent_coordinator_id == parent.assigned_to)
            query = select(func.coalesce(func.sum(Target.total_collection), 0)).where(
                and_(
                    Target.assigned_to.in_(team_ids),
                    Target.status != TargetStatus.CANCELLED,
                    Target.start_date <= parent.end_date,
                    Target.end_date >= parent.start_date,
                )
            )
        return int((await db.execute(query)).scalar() or 0)

    async def propagate(self, db: AsyncSession, target: Target) -> None:
        """Refresh team_collection on every ancestor target"""
        visited: Set[str] = {target.id}
        current = target

        while True:
            parent = await self._find_parent_target(db, current)
            if parent is None or parent.id in visited:
                break
            visited.add(parent.id)

            parent.team_collection = await self.recompute_team_collection(db, parent)
            parent.recalculate()
            await db.commit()
            current = parent

    # ==================== REPORTING ====================

    async def team_performance(self, db: AsyncSession, user: User) -> List[Dict[str, Any]]:
        now = datetime.utcnow()
        entries = []
        for member in await hierarchy_service.get_direct_team(db, user.id):
            target = await self.get_active_target(db, member.id)
            entries.append({
                "user": user_summary(member),
                "target": target_summary(target, now) if target else None,
            })
        entries.sort(key=lambda e: -(e["target"]["total_collection"] if e["target"] else -1))
        return entries

    async def _scoped_targets(self, db: AsyncSession, user: Optional[User], include_self: bool,
                              active_only: bool = True) -> List[Target]:
        query = select(Target)
        if active_only:
            query = query.where(Target.status.in_(ACTIVE_TARGET_STATUSES))
        if user is not None and not user.is_admin:
            ids = await hierarchy_service.get_subordinate_ids(db, user.id)
            if include_self:
                ids.append(user.id)
            query = query.where(Target.assigned_to.in_(ids))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def _with_users(self, db: AsyncSession, targets: List[Target]) -> Dict[str, User]:
        ids = {t.assigned_to for t in targets}
        if not ids:
            return {}
        result = await db.execute(select(User).where(User.id.in_(ids)))
        return {u.id: u for u in result.scalars().all()}

    async def leaderboard(self, db: AsyncSession, user: Optional[User] = None, limit: int = 10) -> List[Dict[str, Any]]:
        targets = sorted(await self._scoped_targets(db, user, include_self=False), key=_sort_key)[:limit]
        users = await self._with_users(db, targets)
        now = datetime.utcnow()
        return [
            {
                "rank": i + 1,
                "user": user_summary(users[t.assigned_to]) if t.assigned_to in users else None,
                "target": target_summary(t, now),
            }
            for i, t in enumerate(targets)
        ]

    async def hierarchy_ranking(self, db: AsyncSession, user: User) -> Dict[str, List[Dict[str, Any]]]:
        targets = await self._scoped_targets(db, user, include_self=False)
        users = await self._with_users(db, targets)
        now = datetime.utcnow()

        grouped: Dict[str, List[Target]] = {}
        for t in targets:
            grouped.setdefault(t.level, []).append(t)

        ranking = {}
        for level, level_targets in grouped.items():
            ranking[level] = [
                {
                    "rank": i + 1,
                    "user": user_summary(users[t.assigned_to]) if t.assigned_to in users else None,
                    "target": target_summary(t, now),
                }
                for i, t in enumerate(sorted(level_targets, key=_sort_key))
            ]
        return ranking

    async def stats(self, db: AsyncSession, user: User) -> Dict[str, Any]:
        targets = await self._scoped_targets(db, user, include_self=True, active_only=False)
        by_status = {status.value: 0 for status in TargetStatus}
        for t in targets:
            by_status[t.status.value] += 1
        return {
            "total_targets": len(targets),
            "by_status": by_status,
            "total_target_amount": sum(t.target_amount for t in targets),
            "total_collected": sum(t.total_collection or 0 for t in targets),
            "average_progress": round(
                sum(t.progress_percentage or 0 for t in targets) / len(targets), 2
            ) if targets else 0.0,
        }

    async def target_tree(self, db: AsyncSession, target: Target, max_depth: int = 5) -> Dict[str, Any]:
        visited: Set[str] = {target.id}
        now = datetime.utcnow()

        async def build(node: Target, depth: int) -> Dict[str, Any]:
            entry = {"target": target_summary(node, now), "children": []}
            if depth >= max_depth:
                return entry
            for child in await self.get_children(db, node.id):
                if child.id in visited:
                    continue
                visited.add(child.id)
                entry["children"].append(await build(child, depth + 1))
            return entry

        return await build(target, 0)

    async def dashboard(self, db: AsyncSession, user: User) -> Dict[str, Any]:
        target = await self.get_active_target(db, user.id)
        recent = await db.execute(
            select(Transaction)
            .where(Transaction.user_id == user.id)
            .order_by(Transaction.created_at.desc())
            .limit(10)
        )
        return {
            "active_target": target_summary(target) if target else None,
            "team_performance": await self.team_performance(db, user),
            "recent_transactions": list(recent.scalars().all()),
        }

    # ==================== LIFECYCLE ====================

    async def cancel(self, db: AsyncSession, actor: User, target_id: str, reason: Optional[str] = None) -> Target:
        target = await self.get(db, target_id)
        if not actor.is_admin and target.assigned_by != actor.id:
            raise AuthorizationError("Only the assigner or an admin can cancel this target")
        if target.status in (TargetStatus.COMPLETED, TargetStatus.CANCELLED):
            raise ValidationError(f"Cannot cancel a {target.status.value} target", field="status")

        target.status = TargetStatus.CANCELLED
        target.is_overdue = False
        if reason:
            target.notes = reason
        await db.commit()
        await db.refresh(target)

        logger.info(f"[Targets] {actor.email} cancelled target {target.id}")
        await self.propagate_safely(db, target)
        return target

    async def refresh_overdue(self, db: AsyncSession, now: Optional[datetime] = None) -> int:
        """Re-run recalculate on active targets past their end date"""
        now = now or datetime.utcnow()
        result = await db.execute(
            select(Target).where(and_(Target.status.in_(ACTIVE_TARGET_STATUSES), Target.end_date < now))
        )
        targets = list(result.scalars().all())
        for target in targets:
            target.recalculate(now)
        await db.commit()
        return len(targets)


target_service = TargetService()
