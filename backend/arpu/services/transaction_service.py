"""
Transaction Service - field collections that need checking before they count

A pending transaction (e.g. a cheque) does not touch any target until a
manager of the collector verifies it.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from arpu.core.exceptions import AuthorizationError, ResourceNotFoundError, TargetNotFoundError, ValidationError
from arpu.core.logging_config import logger
from arpu.models.target import Transaction, TransactionStatus
from arpu.models.user import User
from arpu.schemas.target import TransactionCreate
from arpu.services.hierarchy_service import hierarchy_service, ensure_can_manage
from arpu.services.target_service import target_service, to_naive_utc
from arpu.utils.pagination import paginate


class TransactionService:

    async def get(self, db: AsyncSession, transaction_id: str) -> Transaction:
        transaction = await db.get(Transaction, transaction_id)
        if not transaction:
            raise ResourceNotFoundError("Transaction", transaction_id)
        return transaction

    async def create(self, db: AsyncSession, user: User, data: TransactionCreate) -> Transaction:
        target = await target_service.get_active_target(db, user.id)
        transaction = Transaction(
            user_id=user.id,
            target_id=target.id if target else None,
            referral_code_id=data.referral_code_id,
            amount=data.amount,
            payment_mode=data.payment_mode,
            status=TransactionStatus.PENDING,
            donor_name=data.donor_name,
            donor_contact=data.donor_contact,
            donor_email=data.donor_email,
            purpose=data.purpose,
            notes=data.notes,
            receipt_number=data.receipt_number,
            transaction_id=data.transaction_id,
            collection_date=to_naive_utc(data.collection_date) or datetime.utcnow(),
        )
        db.add(transaction)
        await db.commit()
        await db.refresh(transaction)

        logger.log_payment_event("transaction_recorded", data.amount, reference=transaction.id,
                                 payment_mode=data.payment_mode.value)
        return transaction

    async def verify(
        self,
        db: AsyncSession,
        verifier: User,
        transaction_id: str,
        approve: bool,
        rejection_reason: Optional[str] = None,
    ) -> Transaction:
        transaction = await self.get(db, transaction_id)
        if transaction.status != TransactionStatus.PENDING:
            raise ValidationError(f"Transaction is already {transaction.status.value}", field="status")

        collector = await hierarchy_service.get_user(db, transaction.user_id)
        if not verifier.is_admin:
            ensure_can_manage(verifier, collector)
            if not await hierarchy_service.is_ancestor(db, verifier.id, collector.id):
                raise AuthorizationError("You can only verify collections from your own team")

        transaction.verified_by = verifier.id
        transaction.verified_at = datetime.utcnow()

        if not approve:
            if not rejection_reason or not rejection_reason.strip():
                raise ValidationError("A rejection reason is required", field="rejection_reason")
            transaction.status = TransactionStatus.REJECTED
            transaction.rejection_reason = rejection_reason.strip()
            await db.commit()
            await db.refresh(transaction)
            logger.log_payment_event("transaction_rejected", transaction.amount, reference=transaction.id, success=False)
            return transaction

        target = await target_service.get_active_target(db, collector.id)
        if not target:
            raise TargetNotFoundError(message=f"{collector.name} has no active target to credit")

        transaction.status = TransactionStatus.VERIFIED
        transaction.target_id = target.id
        await target_service.apply_collection(db, target, transaction.amount)
        await db.refresh(transaction)
        return transaction

    async def list_for_user(
        self,
        db: AsyncSession,
        user: User,
        include_team: bool = False,
        status: Optional[TransactionStatus] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> dict:
        query = select(Transaction)
        if not (user.is_admin and include_team):
            ids = [user.id]
            if include_team:
                ids += await hierarchy_service.get_subordinate_ids(db, user.id)
            query = query.where(Transaction.user_id.in_(ids))
        if status:
            query = query.where(Transaction.status == status)
        return await paginate(db, query.order_by(Transaction.collection_date.desc()), page, page_size)


transaction_service = TransactionService()
