from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from arpu.core.database import get_db
from arpu.models.target import TransactionStatus
from arpu.models.user import User
from arpu.schemas.common import Page
from arpu.schemas.target import TransactionCreate, TransactionVerifyRequest, TransactionResponse
from arpu.modules.auth.dependencies import get_current_user, get_current_coordinator
from arpu.services.transaction_service import transaction_service

router = APIRouter()


@router.post("", response_model=TransactionResponse, status_code=201)
async def record_transaction(
    data: TransactionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record a collection that needs checking (cheques etc.); credited once verified"""
    return await transaction_service.create(db, current_user, data)


@router.post("/{transaction_id}/verify", response_model=TransactionResponse)
async def verify_transaction(
    transaction_id: str,
    data: TransactionVerifyRequest,
    current_user: User = Depends(get_current_coordinator),
    db: AsyncSession = Depends(get_db)
):
    return await transaction_service.verify(
        db, current_user, transaction_id, data.approve, data.rejection_reason
    )


@router.get("", response_model=Page[TransactionResponse])
async def list_transactions(
    include_team: bool = Query(False, description="Include transactions from my whole team"),
    status: Optional[TransactionStatus] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await transaction_service.list_for_user(
        db, current_user, include_team=include_team, status=status, page=page, page_size=page_size
    )
