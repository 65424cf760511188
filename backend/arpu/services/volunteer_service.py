"""
Volunteer Service - public applications reviewed by admins
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, cast, String

from arpu.core.exceptions import ConflictError, ResourceNotFoundError
from arpu.core.logging_config import logger
from arpu.models.user import User
from arpu.models.volunteer import VolunteerRequest, VolunteerStatus, VolunteerInterest
from arpu.schemas.outreach import VolunteerRequestCreate, VolunteerRequestUpdate


class VolunteerService:

    async def apply(self, db: AsyncSession, data: VolunteerRequestCreate) -> VolunteerRequest:
        """One open (PENDING) application per email"""
        existing = await db.execute(
            select(VolunteerRequest.id).where(
                VolunteerRequest.email == data.email,
                VolunteerRequest.status == VolunteerStatus.PENDING,
            )
        )
        if existing.first():
            raise ConflictError("A volunteer application for this email is already pending review")

        request = VolunteerRequest(
            **data.model_dump(exclude={"interests"}),
            interests=[interest.value for interest in data.interests],
        )
        db.add(request)
        await db.commit()
        await db.refresh(request)

        logger.info(f"[Volunteers] New application from {request.email}")
        return request

    async def get(self, db: AsyncSession, request_id: str) -> VolunteerRequest:
        request = await db.get(VolunteerRequest, request_id)
        if not request:
            raise ResourceNotFoundError("Volunteer request", request_id)
        return request

    def list_query(
        self,
        status: Optional[VolunteerStatus] = None,
        state: Optional[str] = None,
        interest: Optional[VolunteerInterest] = None,
        search: Optional[str] = None,
    ):
        query = select(VolunteerRequest)
        if status:
            query = query.where(VolunteerRequest.status == status)
        if state:
            query = query.where(VolunteerRequest.state.ilike(state.strip()))
        if interest:
            # interests is a JSON list of enum values
            query = query.where(json_list_contains(VolunteerRequest.interests, interest.value))
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(or_(
                VolunteerRequest.name.ilike(pattern),
                VolunteerRequest.email.ilike(pattern),
                VolunteerRequest.city.ilike(pattern),
            ))
        return query.order_by(VolunteerRequest.created_at.desc())

    async def update(
        self,
        db: AsyncSession,
        request_id: str,
        data: VolunteerRequestUpdate,
        reviewer: User,
    ) -> VolunteerRequest:
        request = await self.get(db, request_id)
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(request, field, value)

        if changes.get("status"):
            request.reviewed_by = reviewer.id
            request.reviewed_at = datetime.utcnow()

        await db.commit()
        await db.refresh(request)
        if changes.get("status"):
            logger.info(f"[Volunteers] {request.email} marked {request.status.value} by {reviewer.email}")
        return request

    async def delete(self, db: AsyncSession, request_id: str) -> None:
        request = await self.get(db, request_id)
        await db.delete(request)
        await db.commit()


def json_list_contains(column, value: str):
    """Portable 'JSON list contains value' via the serialized text"""
    return cast(column, String).like(f'%"{value}"%')


volunteer_service = VolunteerService()
