"""
Contact Service - messages from the public contact form
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_

from arpu.core.exceptions import ResourceNotFoundError
from arpu.core.logging_config import logger
from arpu.models.contact import ContactMessage, ContactStatus, InquiryType
from arpu.models.user import User
from arpu.schemas.outreach import ContactCreate, ContactUpdate


class ContactService:

    async def submit(self, db: AsyncSession, data: ContactCreate, ip_address: Optional[str] = None) -> ContactMessage:
        message = ContactMessage(**data.model_dump(), ip_address=ip_address)
        db.add(message)
        await db.commit()
        await db.refresh(message)

        logger.info(f"[Contact] {message.inquiry_type.value} inquiry from {message.email}")
        return message

    async def get(self, db: AsyncSession, message_id: str) -> ContactMessage:
        message = await db.get(ContactMessage, message_id)
        if not message:
            raise ResourceNotFoundError("Contact message", message_id)
        return message

    def list_query(
        self,
        status: Optional[ContactStatus] = None,
        inquiry_type: Optional[InquiryType] = None,
        search: Optional[str] = None,
    ):
        query = select(ContactMessage)
        if status:
            query = query.where(ContactMessage.status == status)
        if inquiry_type:
            query = query.where(ContactMessage.inquiry_type == inquiry_type)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(or_(
                ContactMessage.name.ilike(pattern),
                ContactMessage.email.ilike(pattern),
                ContactMessage.subject.ilike(pattern),
            ))
        return query.order_by(ContactMessage.created_at.desc())

    async def update(self, db: AsyncSession, message_id: str, data: ContactUpdate, admin: User) -> ContactMessage:
        message = await self.get(db, message_id)
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(message, field, value)

        if changes.get("status") == ContactStatus.RESOLVED:
            message.resolved_by = admin.id
            message.resolved_at = datetime.utcnow()

        await db.commit()
        await db.refresh(message)
        return message

    async def delete(self, db: AsyncSession, message_id: str) -> None:
        message = await self.get(db, message_id)
        await db.delete(message)
        await db.commit()


contact_service = ContactService()
