"""
Email Service for Arpu Foundation
=================================
Handles outgoing mail:
- Donation receipts (PDF attached)
- Certificates (PDF attached)
- Account approval notices
- Volunteer welcome and contact acknowledgements

Supports both SMTP and SendGrid. Sending is best-effort: callers get
False back instead of an exception.
"""

import aiosmtplib
import asyncio
import base64
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, List, Tuple

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import (
    Attachment,
    Content,
    Disposition,
    Email,
    FileContent,
    FileName,
    FileType,
    Mail,
    To,
)

from arpu.core.config import settings
from arpu.core.logging_config import logger

# (filename, bytes, mime type)
EmailAttachment = Tuple[str, bytes, str]


class EmailService:
    """Async email service using SMTP or SendGrid"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.frontend_url = settings.FRONTEND_URL
        self.sendgrid_api_key = settings.SENDGRID_API_KEY
        self.use_sendgrid = settings.USE_SENDGRID and bool(self.sendgrid_api_key)

    @property
    def is_configured(self) -> bool:
        if settings.TESTING:
            return False
        if self.use_sendgrid:
            return True
        return bool(self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        attachments: Optional[List[EmailAttachment]] = None,
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning(f"[Email] Email service not configured, skipping '{subject}' to {to_email}")
            return False

        if self.use_sendgrid:
            return await self._send_via_sendgrid(to_email, subject, html_content, text_content, attachments)
        return await self._send_via_smtp(to_email, subject, html_content, text_content, attachments)

    async def _send_via_sendgrid(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str],
        attachments: Optional[List[EmailAttachment]],
    ) -> bool:
        try:
            message = Mail(
                from_email=Email(self.from_email, self.from_name),
                to_emails=To(to_email),
                subject=subject,
                html_content=Content("text/html", html_content)
            )
            if text_content:
                message.add_content(Content("text/plain", text_content))
            for filename, data, mime_type in attachments or []:
                message.add_attachment(Attachment(
                    FileContent(base64.b64encode(data).decode()),
                    FileName(filename),
                    FileType(mime_type),
                    Disposition("attachment"),
                ))

            sg = SendGridAPIClient(self.sendgrid_api_key)
            # SendGrid's client is synchronous
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(None, sg.send, message)

            if response.status_code in (200, 201, 202):
                logger.info(f"[Email/SendGrid] Sent '{subject}' to {to_email}")
                return True
            logger.error(f"[Email/SendGrid] Failed with status {response.status_code}: {response.body}")
            return False

        except Exception as e:
            logger.error(f"[Email/SendGrid] Failed to send email to {to_email}: {e}")
            return False

    async def _send_via_smtp(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str],
        attachments: Optional[List[EmailAttachment]],
    ) -> bool:
        try:
            message = MIMEMultipart("mixed")
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject

            body = MIMEMultipart("alternative")
            if text_content:
                body.attach(MIMEText(text_content, "plain"))
            body.attach(MIMEText(html_content, "html"))
            message.attach(body)

            for filename, data, mime_type in attachments or []:
                part = MIMEApplication(data, _subtype=mime_type.split("/")[-1])
                part.add_header("Content-Disposition", "attachment", filename=filename)
                message.attach(part)

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True
            )

            logger.info(f"[Email/SMTP] Sent '{subject}' to {to_email}")
            return True

        except Exception as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

    # ==================== TEMPLATES ====================

    def _wrap(self, title: str, body: str) -> str:
        return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <div style="background: #f97316; color: white; padding: 20px; text-align: center;">
                <h2 style="margin: 0;">{settings.ORG_NAME}</h2>
            </div>
            <div style="padding: 24px; color: #333;">
                <h3>{title}</h3>
                {body}
            </div>
            <div style="padding: 12px; font-size: 12px; color: #888; text-align: center;">
                CIN: {settings.ORG_CIN} | PAN: {settings.ORG_PAN}
            </div>
        </div>
        """

    async def send_donation_receipt(
        self,
        to_email: str,
        donor_name: str,
        amount_inr: float,
        receipt_number: str,
        pdf_bytes: bytes,
    ) -> bool:
        html = self._wrap(
            "Thank you for your donation",
            f"<p>Dear {donor_name},</p>"
            f"<p>We have received your generous donation of <strong>₹{amount_inr:,.2f}</strong>.</p>"
            f"<p>Your receipt <strong>{receipt_number}</strong> is attached.</p>"
        )
        text = f"Dear {donor_name}, thank you for your donation of Rs. {amount_inr:,.2f}. Receipt: {receipt_number}"
        filename = f"receipt-{receipt_number.replace('/', '-')}.pdf"
        return await self.send_email(
            to_email, f"Donation Receipt {receipt_number}", html, text,
            attachments=[(filename, pdf_bytes, "application/pdf")],
        )

    async def send_certificate(
        self,
        to_email: str,
        recipient_name: str,
        certificate_number: str,
        certificate_label: str,
        pdf_bytes: bytes,
    ) -> bool:
        html = self._wrap(
            f"Your {certificate_label}",
            f"<p>Dear {recipient_name},</p>"
            f"<p>Please find your certificate <strong>{certificate_number}</strong> attached.</p>"
            f"<p>You can verify it any time at {self.frontend_url}/certificates/verify.</p>"
        )
        filename = f"certificate-{certificate_number.replace('/', '-')}.pdf"
        return await self.send_email(
            to_email, f"{certificate_label} - {settings.ORG_NAME}", html,
            attachments=[(filename, pdf_bytes, "application/pdf")],
        )

    async def send_account_approved(self, to_email: str, name: str, role_display: str) -> bool:
        html = self._wrap(
            "Your account has been approved",
            f"<p>Dear {name},</p>"
            f"<p>Your {role_display} account is now active.</p>"
            f"<p><a href=\"{self.frontend_url}/login\">Sign in</a> to get started.</p>"
        )
        return await self.send_email(to_email, "Account approved", html)

    async def send_volunteer_welcome(self, to_email: str, name: str) -> bool:
        html = self._wrap(
            "Welcome aboard!",
            f"<p>Dear {name},</p>"
            "<p>Your volunteer application has been accepted. Our team will reach out with next steps.</p>"
        )
        return await self.send_email(to_email, "Welcome to Arpu Foundation", html)

    async def send_contact_acknowledgement(self, to_email: str, name: str, subject: str) -> bool:
        html = self._wrap(
            "We received your message",
            f"<p>Dear {name},</p>"
            f"<p>Thank you for writing to us about \"{subject}\". We will get back to you shortly.</p>"
        )
        return await self.send_email(to_email, "We received your message", html)

    async def send_password_reset(self, to_email: str, name: str, token: str) -> bool:
        link = f"{self.frontend_url}/reset-password?token={token}"
        html = self._wrap(
            "Reset your password",
            f"<p>Dear {name},</p>"
            f"<p>We received a request to reset your password. "
            f"<a href=\"{link}\">Choose a new password</a>.</p>"
            f"<p>The link expires in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes. "
            "If you did not ask for this, you can ignore this email.</p>"
        )
        text = f"Dear {name}, reset your password here: {link}"
        return await self.send_email(to_email, "Reset your password", html, text)

    async def send_email_verification(self, to_email: str, name: str, token: str) -> bool:
        link = f"{self.frontend_url}/verify-email?token={token}"
        html = self._wrap(
            "Confirm your email address",
            f"<p>Dear {name},</p>"
            f"<p>Please <a href=\"{link}\">confirm your email address</a> to finish setting up your account.</p>"
        )
        text = f"Dear {name}, confirm your email address here: {link}"
        return await self.send_email(to_email, "Confirm your email address", html, text)


email_service = EmailService()
