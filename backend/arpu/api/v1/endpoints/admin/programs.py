"""
Admin Program management.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from arpu.core.database import get_db
from arpu.models.user import User
from arpu.modules.auth.dependencies import get_current_admin
from arpu.schemas.program import ProgramCreate, ProgramUpdate, ProgramResponse, ProgramStatsResponse
from arpu.services.program_service import program_service

router = APIRouter()


@router.get("", response_model=List[ProgramResponse])
async def list_all_programs(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """All programs including inactive ones"""
    return await program_service.list_all(db)


@router.get("/stats", response_model=ProgramStatsResponse)
async def program_stats(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    return await program_service.stats(db)


@router.post("", response_model=ProgramResponse, status_code=status.HTTP_201_CREATED)
async def create_program(
    data: ProgramCreate,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    return await program_service.create(db, data)


@router.get("/{program_id}", response_model=ProgramResponse)
async def get_program(
    program_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    return await program_service.get(db, program_id)


@router.patch("/{program_id}", response_model=ProgramResponse)
async def update_program(
    program_id: str,
    data: ProgramUpdate,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    return await program_service.update(db, program_id, data)


@router.delete("/{program_id}")
async def delete_program(
    program_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    await program_service.delete(db, program_id)
    return {"success": True, "message": "Program deleted"}
