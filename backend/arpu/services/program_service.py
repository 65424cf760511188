"""
Program Service - fundraising programs and their funding totals
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from typing import List

from arpu.core.exceptions import ConflictError, ResourceNotFoundError
from arpu.core.logging_config import logger
from arpu.models.program import Program
from arpu.models.donation import Donation, PaymentStatus
from arpu.schemas.program import ProgramCreate, ProgramUpdate, slugify


class ProgramService:

    async def get(self, db: AsyncSession, program_id: str) -> Program:
        program = await db.get(Program, program_id)
        if not program:
            raise ResourceNotFoundError("Program", program_id)
        return program

    async def get_by_slug(self, db: AsyncSession, slug: str, active_only: bool = True) -> Program:
        query = select(Program).where(Program.slug == slug)
        if active_only:
            query = query.where(Program.active.is_(True))
        program = (await db.execute(query)).scalar_one_or_none()
        if not program:
            raise ResourceNotFoundError("Program", slug)
        return program

    async def list_public(self, db: AsyncSession, featured_only: bool = False) -> List[Program]:
        query = select(Program).where(Program.active.is_(True))
        if featured_only:
            query = query.where(Program.featured.is_(True))
        result = await db.execute(query.order_by(Program.priority.desc(), Program.name))
        return list(result.scalars().all())

    async def list_all(self, db: AsyncSession) -> List[Program]:
        result = await db.execute(select(Program).order_by(Program.priority.desc(), Program.name))
        return list(result.scalars().all())

    async def _ensure_slug_free(self, db: AsyncSession, slug: str, exclude_id: str = None) -> None:
        query = select(Program.id).where(Program.slug == slug)
        if exclude_id:
            query = query.where(Program.id != exclude_id)
        if (await db.execute(query)).scalar_one_or_none():
            raise ConflictError(f"Program slug '{slug}' already exists")

    async def create(self, db: AsyncSession, data: ProgramCreate) -> Program:
        slug = data.slug or slugify(data.name)
        await self._ensure_slug_free(db, slug)

        program = Program(slug=slug, **data.model_dump(exclude={"slug"}))
        db.add(program)
        await db.commit()
        await db.refresh(program)

        logger.info(f"[Programs] Created {program.slug}")
        return program

    async def update(self, db: AsyncSession, program_id: str, data: ProgramUpdate) -> Program:
        program = await self.get(db, program_id)
        changes = data.model_dump(exclude_unset=True)
        if "slug" in changes and changes["slug"]:
            await self._ensure_slug_free(db, changes["slug"], exclude_id=program.id)

        for field, value in changes.items():
            setattr(program, field, value)
        await db.commit()
        await db.refresh(program)
        return program

    async def delete(self, db: AsyncSession, program_id: str) -> None:
        program = await self.get(db, program_id)
        await db.delete(program)
        await db.commit()
        logger.info(f"[Programs] Deleted {program.slug}")

    async def update_funding_stats(self, db: AsyncSession, program_id: str) -> Program:
        """Recompute raised_amount / donation_count from SUCCESS donations"""
        program = await self.get(db, program_id)
        await db.flush()
        result = await db.execute(
            select(func.count(Donation.id), func.coalesce(func.sum(Donation.amount), 0)).where(
                and_(Donation.program_id == program_id, Donation.payment_status == PaymentStatus.SUCCESS)
            )
        )
        count, total = result.one()
        program.donation_count = count
        program.raised_amount = int(total)
        await db.flush()
        return program

    async def stats(self, db: AsyncSession) -> dict:
        programs = await self.list_all(db)
        total_raised = sum(p.raised_amount or 0 for p in programs)
        return {
            "total_programs": len(programs),
            "active_programs": sum(1 for p in programs if p.active),
            "featured_programs": sum(1 for p in programs if p.featured),
            "total_raised": total_raised,
            "total_raised_inr": total_raised / 100,
            "total_donations": sum(p.donation_count or 0 for p in programs),
            "fully_funded": sum(1 for p in programs if p.is_fully_funded),
        }


program_service = ProgramService()
