from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from arpu.core.database import get_db
from arpu.schemas.program import ProgramResponse
from arpu.services.program_service import program_service

router = APIRouter()


@router.get("", response_model=List[ProgramResponse])
async def list_programs(
    featured: bool = Query(False, description="Only featured programs"),
    db: AsyncSession = Depends(get_db)
):
    """Active programs, highest priority first"""
    return await program_service.list_public(db, featured_only=featured)


@router.get("/{slug}", response_model=ProgramResponse)
async def get_program(slug: str, db: AsyncSession = Depends(get_db)):
    return await program_service.get_by_slug(db, slug)
