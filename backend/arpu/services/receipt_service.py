"""
Receipt Service - numbered tax receipts for successful donations
"""

from datetime import datetime
from typing import Optional
import io

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from arpu.core.config import settings
from arpu.core.exceptions import DonationNotFoundError, ResourceNotFoundError, ValidationError
from arpu.core.logging_config import logger
from arpu.models.donation import Donation, Receipt, PaymentStatus
from arpu.models.program import Program


def format_receipt_number(sequence: int, when: datetime) -> str:
    """ARPU/2025/03/000042"""
    return f"{settings.ORG_DOCUMENT_PREFIX}/{when:%Y}/{when:%m}/{sequence:06d}"


class ReceiptService:

    async def next_receipt_number(self, db: AsyncSession, when: Optional[datetime] = None) -> str:
        count = (await db.execute(select(func.count(Receipt.id)))).scalar() or 0
        return format_receipt_number(count + 1, when or datetime.utcnow())

    async def get_for_donation(self, db: AsyncSession, donation_id: str) -> Optional[Receipt]:
        result = await db.execute(select(Receipt).where(Receipt.donation_id == donation_id))
        return result.scalar_one_or_none()

    async def get_or_create(self, db: AsyncSession, donation_id: str, donor_pan: Optional[str] = None) -> Receipt:
        """One receipt per donation; only SUCCESS donations qualify"""
        existing = await self.get_for_donation(db, donation_id)
        if existing:
            return existing

        donation = await db.get(Donation, donation_id)
        if not donation:
            raise DonationNotFoundError(donation_id)
        if donation.payment_status != PaymentStatus.SUCCESS:
            raise ValidationError("Receipts are only issued for successful donations", field="payment_status")

        program_name = None
        if donation.program_id:
            program = await db.get(Program, donation.program_id)
            program_name = program.name if program else None

        receipt = Receipt(
            receipt_number=await self.next_receipt_number(db),
            donation_id=donation.id,
            cin_number=settings.ORG_CIN,
            pan_number=settings.ORG_PAN,
            registration_number=settings.ORG_REGISTRATION_NO,
            documentation_number=settings.ORG_DOCUMENTATION_NO,
            donor_name=donation.donor_name,
            donor_email=donation.donor_email,
            donor_phone=donation.donor_phone,
            donor_pan=donor_pan,
            amount=donation.amount,
            currency=donation.currency.value,
            program_name=program_name,
            payment_reference=donation.razorpay_payment_id,
            donation_date=donation.created_at,
        )
        db.add(receipt)
        await db.commit()
        await db.refresh(receipt)

        logger.info(f"[Receipts] Issued {receipt.receipt_number} for donation {donation.id}")
        return receipt

    async def get_receipt(self, db: AsyncSession, donation_id: str) -> Receipt:
        receipt = await self.get_for_donation(db, donation_id)
        if not receipt:
            raise ResourceNotFoundError("Receipt", donation_id)
        return receipt

    async def mark_emailed(self, db: AsyncSession, receipt: Receipt) -> None:
        receipt.email_sent = True
        receipt.email_sent_at = datetime.utcnow()
        await db.commit()

    def render_pdf(self, receipt: Receipt) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=2*cm,
            leftMargin=2*cm,
            topMargin=2*cm,
            bottomMargin=2*cm
        )

        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            'ReceiptTitle',
            parent=styles['Heading1'],
            fontSize=20,
            textColor=colors.HexColor('#c2410c'),
            alignment=TA_CENTER,
            spaceAfter=4
        )
        small_style = ParagraphStyle(
            'ReceiptSmall',
            parent=styles['Normal'],
            fontSize=9,
            textColor=colors.HexColor('#4a5568'),
            alignment=TA_CENTER,
            spaceAfter=2
        )
        body_style = ParagraphStyle(
            'ReceiptBody',
            parent=styles['Normal'],
            fontSize=11,
            textColor=colors.HexColor('#2d3748'),
            spaceAfter=6
        )

        content = [
            Paragraph(settings.ORG_NAME, title_style),
            Paragraph(f"CIN: {receipt.cin_number} | PAN: {receipt.pan_number}", small_style),
            Paragraph(
                f"Registration No: {receipt.registration_number} | "
                f"Documentation No: {receipt.documentation_number}",
                small_style
            ),
            Spacer(1, 20),
            Paragraph("<b>DONATION RECEIPT</b>", ParagraphStyle('ReceiptHeading', parent=title_style, fontSize=14)),
            Spacer(1, 12),
        ]

        rows = [
            ['Receipt No.', receipt.receipt_number],
            ['Date', receipt.donation_date.strftime('%d %B %Y')],
            ['Received from', receipt.donor_name],
            ['Email', receipt.donor_email or '-'],
            ['Phone', receipt.donor_phone or '-'],
            ['Donor PAN', receipt.donor_pan or '-'],
            ['Amount', f"{receipt.currency} {receipt.amount_inr:,.2f}"],
            ['Program', receipt.program_name or 'General Fund'],
            ['Payment Reference', receipt.payment_reference or '-'],
        ]
        table = Table(rows, colWidths=[5*cm, 11*cm])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTNAME', (1, 0), (1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('BACKGROUND', (0, 0), (0, -1), colors.HexColor('#fff7ed')),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#cbd5e0')),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('TOPPADDING', (0, 0), (-1, -1), 6),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ]))
        content.append(table)
        content.append(Spacer(1, 24))
        content.append(Paragraph(
            "Thank you for supporting our work. This is a computer generated receipt "
            "and does not require a signature.",
            body_style
        ))
        content.append(Spacer(1, 30))
        content.append(Paragraph(f"For {settings.ORG_NAME}", body_style))
        content.append(Paragraph(settings.ORG_SIGNATORY, body_style))

        doc.build(content)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        return pdf_bytes


receipt_service = ReceiptService()
