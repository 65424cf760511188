"""
Survey Service - field surveys submitted by volunteers and the public
"""

from datetime import datetime
from typing import Optional, Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_

from arpu.core.exceptions import ResourceNotFoundError
from arpu.core.logging_config import logger
from arpu.models.survey import Survey, SurveyType, SurveyStatus
from arpu.models.user import User
from arpu.schemas.outreach import SurveyCreate, SurveyUpdate
from arpu.services.target_service import to_naive_utc


class SurveyService:

    async def create(self, db: AsyncSession, data: SurveyCreate, user: Optional[User] = None) -> Survey:
        survey = Survey(
            **data.model_dump(exclude={"survey_date"}),
            survey_date=to_naive_utc(data.survey_date) if data.survey_date else datetime.utcnow(),
            submitted_by=user.id if user else None,
        )
        db.add(survey)
        await db.commit()
        await db.refresh(survey)

        logger.info(f"[Surveys] {survey.survey_type.value} survey submitted for {survey.location}")
        return survey

    async def get(self, db: AsyncSession, survey_id: str) -> Survey:
        survey = await db.get(Survey, survey_id)
        if not survey:
            raise ResourceNotFoundError("Survey", survey_id)
        return survey

    def list_query(
        self,
        survey_type: Optional[SurveyType] = None,
        status: Optional[SurveyStatus] = None,
        state: Optional[str] = None,
        district: Optional[str] = None,
        search: Optional[str] = None,
    ):
        query = select(Survey)
        if survey_type:
            query = query.where(Survey.survey_type == survey_type)
        if status:
            query = query.where(Survey.status == status)
        if state:
            query = query.where(Survey.state.ilike(state.strip()))
        if district:
            query = query.where(Survey.district.ilike(district.strip()))
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(or_(
                Survey.location.ilike(pattern),
                Survey.surveyor_name.ilike(pattern),
                Survey.notes.ilike(pattern),
            ))
        return query.order_by(Survey.created_at.desc())

    async def update(self, db: AsyncSession, survey_id: str, data: SurveyUpdate, reviewer: User) -> Survey:
        survey = await self.get(db, survey_id)
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(survey, field, value)

        if changes.get("status") == SurveyStatus.REVIEWED:
            survey.reviewed_by = reviewer.id
            survey.reviewed_at = datetime.utcnow()

        await db.commit()
        await db.refresh(survey)
        return survey

    async def delete(self, db: AsyncSession, survey_id: str) -> None:
        survey = await self.get(db, survey_id)
        await db.delete(survey)
        await db.commit()
        logger.info(f"[Surveys] Deleted survey {survey_id}")

    async def stats(self, db: AsyncSession) -> Dict[str, Any]:
        async def grouped(column) -> Dict[str, int]:
            rows = await db.execute(select(column, func.count(Survey.id)).group_by(column))
            return {
                (key.value if hasattr(key, "value") else key or "Unknown"): count
                for key, count in rows.all()
            }

        by_type = await grouped(Survey.survey_type)
        return {
            "total": sum(by_type.values()),
            "by_type": by_type,
            "by_status": await grouped(Survey.status),
            "by_state": await grouped(Survey.state),
        }


survey_service = SurveyService()
