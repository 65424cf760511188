"""
Certificate Service - numbered certificates rendered as landscape PDFs
"""

from datetime import datetime
from typing import Optional, List, Dict
from xml.sax.saxutils import escape
import io

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm, inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from arpu.core.config import settings
from arpu.core.exceptions import DonationNotFoundError, ResourceNotFoundError, ValidationError
from arpu.core.logging_config import logger
from arpu.models.certificate import Certificate, CertificateType, CertificateStatus
from arpu.models.donation import Donation, PaymentStatus
from arpu.models.user import User
from arpu.models.volunteer import VolunteerRequest, VolunteerStatus
from arpu.schemas.outreach import CertificateCreate

TITLES: Dict[CertificateType, str] = {
    CertificateType.APPRECIATION: "Certificate of Appreciation",
    CertificateType.MEMBERSHIP: "Certificate of Membership",
    CertificateType.CONTRIBUTION: "Certificate of Contribution",
    CertificateType.VOLUNTEER: "Volunteer Certificate",
    CertificateType.EVENT: "Certificate of Participation",
    CertificateType.CONTEST: "Certificate of Achievement",
}


def format_certificate_number(certificate_type: CertificateType, sequence: int, when: datetime) -> str:
    """ARPU/VOL/2025/00042"""
    return f"{settings.ORG_DOCUMENT_PREFIX}/{certificate_type.value[:3]}/{when:%Y}/{sequence:05d}"


def body_lines(certificate: Certificate) -> List[str]:
    """Paragraph text under the recipient's name, per certificate type"""
    ctype = certificate.certificate_type
    event = escape(certificate.event_name or "")
    place = f" at {escape(certificate.place_of_event)}" if certificate.place_of_event else ""
    on_date = f" on {certificate.date_of_event:%d %B %Y}" if certificate.date_of_event else ""

    if ctype == CertificateType.MEMBERSHIP:
        since = f" since {certificate.membership_start:%d %B %Y}" if certificate.membership_start else ""
        lines = [f"is a valued {escape(certificate.membership_type or 'member')} of {settings.ORG_NAME}{since}."]
        if certificate.membership_id:
            lines.append(f"Membership ID: <b>{escape(certificate.membership_id)}</b>")
        return lines
    if ctype == CertificateType.CONTRIBUTION:
        return [
            f"in grateful recognition of a generous contribution to {settings.ORG_NAME}.",
            escape(certificate.activity_description or "Your support helps us reach more lives."),
        ]
    if ctype == CertificateType.VOLUNTEER:
        return [
            f"has volunteered with {settings.ORG_NAME} with dedication and commitment.",
            escape(certificate.activity_description or "We thank you for your selfless service."),
        ]
    if ctype == CertificateType.EVENT:
        return [f"has participated in <b>{event}</b>{place}{on_date}."]
    if ctype == CertificateType.CONTEST:
        return [
            f"has achieved distinction in <b>{event}</b>{place}{on_date}.",
            escape(certificate.activity_description or ""),
        ]
    return [
        f"in appreciation of outstanding work{' in ' + event if event else ''}{place}{on_date}.",
        escape(certificate.activity_description or ""),
    ]


class CertificateService:
    """Issue, render and verify certificates"""

    async def next_number(self, db: AsyncSession, certificate_type: CertificateType,
                          when: Optional[datetime] = None) -> str:
        count = (await db.execute(select(func.count(Certificate.id)))).scalar() or 0
        return format_certificate_number(certificate_type, count + 1, when or datetime.utcnow())

    async def issue(self, db: AsyncSession, data: CertificateCreate, issued_by: Optional[str] = None) -> Certificate:
        now = datetime.utcnow()
        certificate = Certificate(
            certificate_number=await self.next_number(db, data.certificate_type, now),
            status=CertificateStatus.GENERATED,
            issue_date=now,
            generated_at=now,
            issued_by=issued_by,
            **data.model_dump(exclude={"signature_name"}),
            signature_name=data.signature_name or settings.ORG_SIGNATORY,
        )
        db.add(certificate)
        await db.commit()
        await db.refresh(certificate)

        logger.info(f"[Certificates] Issued {certificate.certificate_number} to {certificate.recipient_name}")
        return certificate

    async def get(self, db: AsyncSession, certificate_id: str) -> Certificate:
        certificate = await db.get(Certificate, certificate_id)
        if not certificate:
            raise ResourceNotFoundError("Certificate", certificate_id)
        return certificate

    async def get_by_number(self, db: AsyncSession, number: str) -> Optional[Certificate]:
        result = await db.execute(select(Certificate).where(Certificate.certificate_number == number))
        return result.scalar_one_or_none()

    def list_query(self, user: Optional[User] = None,
                   certificate_type: Optional[CertificateType] = None):
        """Query for certificates; non-admins only see their own"""
        query = select(Certificate)
        if user is not None and not user.is_admin:
            query = query.where((Certificate.user_id == user.id) | (Certificate.recipient_email == user.email))
        if certificate_type:
            query = query.where(Certificate.certificate_type == certificate_type)
        return query.order_by(Certificate.issue_date.desc())

    def can_access(self, user: User, certificate: Certificate) -> bool:
        return user.is_admin or certificate.user_id == user.id or certificate.recipient_email == user.email

    async def mark_sent(self, db: AsyncSession, certificate: Certificate) -> Certificate:
        certificate.status = CertificateStatus.SENT
        certificate.email_sent = True
        certificate.email_sent_at = datetime.utcnow()
        await db.commit()
        await db.refresh(certificate)
        return certificate

    async def volunteer_certificate(self, db: AsyncSession, user: User) -> Certificate:
        """VOLUNTEER certificate for the caller's ACCEPTED application, created once"""
        result = await db.execute(
            select(VolunteerRequest)
            .where(VolunteerRequest.email == user.email.lower(), VolunteerRequest.status == VolunteerStatus.ACCEPTED)
            .order_by(VolunteerRequest.created_at.desc())
        )
        request = result.scalars().first()
        if not request:
            raise ResourceNotFoundError("Accepted volunteer request", user.email)

        if request.certificate_id:
            return await self.get(db, request.certificate_id)

        certificate = await self.issue(db, CertificateCreate(
            certificate_type=CertificateType.VOLUNTEER,
            recipient_name=request.name,
            recipient_email=request.email,
            recipient_designation="Volunteer",
            user_id=user.id,
            activity_description=f"Areas of service: {', '.join(i.title().replace('_', ' ') for i in request.interests)}",
        ))
        request.certificate_issued = True
        request.certificate_id = certificate.id
        request.certificate_issued_at = datetime.utcnow()
        await db.commit()
        return certificate

    async def contribution_certificate(self, db: AsyncSession, donation_id: str) -> Certificate:
        """CONTRIBUTION certificate for a SUCCESS donation, created once"""
        donation = await db.get(Donation, donation_id)
        if not donation:
            raise DonationNotFoundError(donation_id)
        if donation.payment_status != PaymentStatus.SUCCESS:
            raise ValidationError("Certificates are only issued for successful donations", field="payment_status")

        result = await db.execute(
            select(Certificate).where(
                Certificate.donation_id == donation.id,
                Certificate.certificate_type == CertificateType.CONTRIBUTION,
            )
        )
        existing = result.scalars().first()
        if existing:
            return existing

        return await self.issue(db, CertificateCreate(
            certificate_type=CertificateType.CONTRIBUTION,
            recipient_name=donation.donor_name,
            recipient_email=donation.donor_email,
            donation_id=donation.id,
            activity_description=f"Contribution of {donation.currency.value} {donation.amount_inr:,.2f} "
                                 f"on {donation.created_at:%d %B %Y}",
        ))

    def render_pdf(self, certificate: Certificate) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=landscape(A4),
            rightMargin=1.5*cm,
            leftMargin=1.5*cm,
            topMargin=1.5*cm,
            bottomMargin=1.5*cm
        )

        styles = getSampleStyleSheet()
        org_style = ParagraphStyle(
            'CertOrg',
            parent=styles['Heading1'],
            fontSize=22,
            textColor=colors.HexColor('#c2410c'),
            alignment=TA_CENTER,
            spaceAfter=6
        )
        title_style = ParagraphStyle(
            'CertTitle',
            parent=styles['Heading1'],
            fontSize=28,
            textColor=colors.HexColor('#1a365d'),
            alignment=TA_CENTER,
            spaceAfter=10
        )
        name_style = ParagraphStyle(
            'RecipientName',
            parent=styles['Heading1'],
            fontSize=26,
            textColor=colors.HexColor('#2d3748'),
            alignment=TA_CENTER,
            spaceBefore=10,
            spaceAfter=10
        )
        body_style = ParagraphStyle(
            'CertBody',
            parent=styles['Normal'],
            fontSize=13,
            textColor=colors.HexColor('#4a5568'),
            alignment=TA_CENTER,
            spaceAfter=6
        )
        small_style = ParagraphStyle(
            'CertSmall',
            parent=styles['Normal'],
            fontSize=9,
            textColor=colors.HexColor('#718096'),
            alignment=TA_CENTER,
            spaceAfter=4
        )

        content = [
            Paragraph(settings.ORG_NAME, org_style),
            Paragraph(f"CIN: {settings.ORG_CIN} | Reg. No: {settings.ORG_REGISTRATION_NO}", small_style),
            Spacer(1, 16),
            Paragraph(TITLES[certificate.certificate_type], title_style),
            Spacer(1, 10),
            Paragraph("This is to certify that", body_style),
            Paragraph(f"<b>{escape(certificate.recipient_name)}</b>", name_style),
        ]
        if certificate.recipient_designation:
            content.append(Paragraph(escape(certificate.recipient_designation), body_style))
        for line in body_lines(certificate):
            if line:
                content.append(Paragraph(line, body_style))
        content.append(Spacer(1, 40))

        footer = Table(
            [
                [f"Certificate No: {certificate.certificate_number}", certificate.signature_name or settings.ORG_SIGNATORY],
                [f"Issued on: {certificate.issue_date:%d %B %Y}", "Authorised Signatory"],
            ],
            colWidths=[5*inch, 5*inch],
        )
        footer.setStyle(TableStyle([
            ('ALIGN', (0, 0), (0, -1), 'LEFT'),
            ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#4a5568')),
            ('LINEABOVE', (1, 0), (1, 0), 0.75, colors.HexColor('#2d3748')),
        ]))
        content.append(footer)
        content.append(Spacer(1, 12))
        content.append(Paragraph(
            f"Verify at {settings.FRONTEND_URL}/certificates/verify/{certificate.certificate_number}",
            small_style
        ))

        doc.build(content)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        return pdf_bytes


certificate_service = CertificateService()
