"""
Unit Tests for receipts, certificates and pending collection transactions
"""
import pytest
from datetime import datetime, timedelta

from arpu.core.exceptions import (
    AuthorizationError,
    DonationNotFoundError,
    ResourceNotFoundError,
    TargetNotFoundError,
    ValidationError,
)
from arpu.core.roles import UserRole
from arpu.models.certificate import CertificateStatus, CertificateType
from arpu.models.donation import Donation, PaymentStatus
from arpu.models.target import PaymentMode, TransactionStatus
from arpu.models.volunteer import VolunteerRequest, VolunteerStatus
from arpu.schemas.donation import ManualDonationCreate
from arpu.schemas.outreach import CertificateCreate
from arpu.schemas.target import TransactionCreate
from arpu.services.certificate_service import (
    body_lines,
    certificate_service,
    format_certificate_number,
)
from arpu.services.donation_service import donation_service
from arpu.services.email_service import email_service
from arpu.services.receipt_service import format_receipt_number, receipt_service
from arpu.services.target_service import target_service
from arpu.services.transaction_service import transaction_service
from arpu.tasks.notifications import deliver_donation_receipt, pending_receipt_donation_ids


async def manual_donation(db, actor, amount=50000, name="Kiran Patel"):
    return await donation_service.record_manual(
        db, actor, ManualDonationCreate(donor_name=name, donor_email="kiran@example.com", amount=amount)
    )


class TestNumbering:

    def test_receipt_number(self):
        assert format_receipt_number(42, datetime(2026, 3, 9)) == "ARPU/2026/03/000042"

    def test_certificate_number(self):
        when = datetime(2026, 3, 9)
        assert format_certificate_number(CertificateType.VOLUNTEER, 7, when) == "ARPU/VOL/2026/00007"
        assert format_certificate_number(CertificateType.CONTRIBUTION, 12, when) == "ARPU/CON/2026/00012"


@pytest.mark.asyncio
class TestReceipts:

    async def test_issued_once_per_donation(self, db_session, coordinator_chain):
        donation = await manual_donation(db_session, coordinator_chain["district"])

        first = await receipt_service.get_or_create(db_session, donation.id, donor_pan="ABCDE1234F")
        second = await receipt_service.get_or_create(db_session, donation.id)

        assert first.id == second.id
        assert first.receipt_number.endswith("/000001")
        assert first.amount == 50000
        assert first.donor_pan == "ABCDE1234F"

    async def test_numbers_increase(self, db_session, coordinator_chain):
        one = await manual_donation(db_session, coordinator_chain["district"])
        two = await manual_donation(db_session, coordinator_chain["district"], name="Sameer Joshi")

        await receipt_service.get_or_create(db_session, one.id)
        receipt = await receipt_service.get_or_create(db_session, two.id)

        assert receipt.receipt_number.endswith("/000002")

    async def test_only_successful_donations(self, db_session):
        donation = Donation(donor_name="Meera Iyer", amount=25000, payment_status=PaymentStatus.PENDING)
        db_session.add(donation)
        await db_session.commit()

        with pytest.raises(ValidationError):
            await receipt_service.get_or_create(db_session, donation.id)

    async def test_unknown_donation(self, db_session):
        with pytest.raises(DonationNotFoundError):
            await receipt_service.get_or_create(db_session, "00000000-0000-0000-0000-000000000000")

    async def test_missing_receipt(self, db_session, coordinator_chain):
        donation = await manual_donation(db_session, coordinator_chain["district"])
        with pytest.raises(ResourceNotFoundError):
            await receipt_service.get_receipt(db_session, donation.id)

    async def test_mark_emailed_and_pdf(self, db_session, coordinator_chain):
        donation = await manual_donation(db_session, coordinator_chain["district"])
        receipt = await receipt_service.get_or_create(db_session, donation.id)

        await receipt_service.mark_emailed(db_session, receipt)

        assert receipt.email_sent is True
        assert receipt_service.render_pdf(receipt).startswith(b"%PDF")


@pytest.mark.asyncio
class TestCertificates:

    async def test_issue(self, db_session, admin_user):
        certificate = await certificate_service.issue(db_session, CertificateCreate(
            certificate_type=CertificateType.EVENT,
            recipient_name="Rohit Yadav",
            event_name="Tree Plantation Drive",
            place_of_event="Bodh Gaya",
        ), issued_by=admin_user.id)

        assert certificate.status == CertificateStatus.GENERATED
        assert certificate.signature_name == "President"
        assert certificate.certificate_number.startswith("ARPU/EVE/")
        assert await certificate_service.get_by_number(db_session, certificate.certificate_number) is not None
        assert "Tree Plantation Drive" in body_lines(certificate)[0]
        assert certificate_service.render_pdf(certificate).startswith(b"%PDF")

    async def test_access_rules(self, db_session, coordinator_chain, admin_user):
        prerak = coordinator_chain["prerak"]
        certificate = await certificate_service.issue(db_session, CertificateCreate(
            certificate_type=CertificateType.APPRECIATION, recipient_name="Amit Singh", user_id=prerak.id,
        ))

        assert certificate_service.can_access(prerak, certificate)
        assert certificate_service.can_access(admin_user, certificate)
        assert not certificate_service.can_access(coordinator_chain["volunteer"], certificate)

    async def test_mark_sent(self, db_session):
        certificate = await certificate_service.issue(db_session, CertificateCreate(
            certificate_type=CertificateType.APPRECIATION, recipient_name="Amit Singh",
        ))

        sent = await certificate_service.mark_sent(db_session, certificate)

        assert sent.status == CertificateStatus.SENT
        assert sent.email_sent is True

    async def test_contribution_certificate_once(self, db_session, coordinator_chain):
        donation = await manual_donation(db_session, coordinator_chain["district"], amount=123400)

        first = await certificate_service.contribution_certificate(db_session, donation.id)
        second = await certificate_service.contribution_certificate(db_session, donation.id)

        assert first.id == second.id
        assert first.certificate_type == CertificateType.CONTRIBUTION
        assert "INR 1,234.00" in first.activity_description

    async def test_volunteer_certificate(self, db_session, make_user):
        user = await make_user(UserRole.VOLUNTEER, email="rohit@example.com", name="Rohit Yadav")
        request = VolunteerRequest(name="Rohit Yadav", email="rohit@example.com", phone="9123456780",
                                   state="Bihar", city="Gaya", interests=["TEACHING"],
                                   status=VolunteerStatus.ACCEPTED)
        db_session.add(request)
        await db_session.commit()

        certificate = await certificate_service.volunteer_certificate(db_session, user)
        again = await certificate_service.volunteer_certificate(db_session, user)

        assert certificate.id == again.id
        assert certificate.certificate_type == CertificateType.VOLUNTEER
        assert request.certificate_issued is True

    async def test_volunteer_certificate_needs_acceptance(self, db_session, make_user):
        user = await make_user(UserRole.VOLUNTEER)
        with pytest.raises(ResourceNotFoundError):
            await certificate_service.volunteer_certificate(db_session, user)


@pytest.mark.asyncio
class TestTransactions:

    async def _target_for(self, db, assigner, assignee, amount=100000):
        now = datetime.utcnow()
        target, _ = await target_service.assign(db, assigner, assignee.id, amount,
                                                now - timedelta(days=1), now + timedelta(days=30))
        return target

    async def test_recorded_pending(self, db_session, coordinator_chain):
        prerak = coordinator_chain["prerak"]
        target = await self._target_for(db_session, coordinator_chain["district"], prerak)

        transaction = await transaction_service.create(
            db_session, prerak, TransactionCreate(amount=20000, payment_mode=PaymentMode.CASH)
        )

        assert transaction.status == TransactionStatus.PENDING
        assert transaction.target_id == target.id
        await db_session.refresh(target)
        assert target.personal_collection == 0

    async def test_approval_credits_target(self, db_session, coordinator_chain):
        district, prerak = coordinator_chain["district"], coordinator_chain["prerak"]
        target = await self._target_for(db_session, district, prerak)
        transaction = await transaction_service.create(
            db_session, prerak, TransactionCreate(amount=20000, payment_mode=PaymentMode.UPI)
        )

        verified = await transaction_service.verify(db_session, district, transaction.id, approve=True)

        assert verified.status == TransactionStatus.VERIFIED
        assert verified.verified_by == district.id
        await db_session.refresh(target)
        assert target.personal_collection == 20000

    async def test_rejection_needs_reason(self, db_session, coordinator_chain):
        district, prerak = coordinator_chain["district"], coordinator_chain["prerak"]
        await self._target_for(db_session, district, prerak)
        transaction = await transaction_service.create(
            db_session, prerak, TransactionCreate(amount=20000, payment_mode=PaymentMode.CASH)
        )

        with pytest.raises(ValidationError):
            await transaction_service.verify(db_session, district, transaction.id, approve=False)

        rejected = await transaction_service.verify(db_session, district, transaction.id, approve=False,
                                                    rejection_reason="Receipt book mismatch")
        assert rejected.status == TransactionStatus.REJECTED

        with pytest.raises(ValidationError):
            await transaction_service.verify(db_session, district, transaction.id, approve=True)

    async def test_outside_team_cannot_verify(self, db_session, coordinator_chain, make_user):
        other_district = await make_user(UserRole.DISTRICT_COORDINATOR, parent=coordinator_chain["state"])
        prerak = coordinator_chain["prerak"]
        await self._target_for(db_session, coordinator_chain["district"], prerak)
        transaction = await transaction_service.create(
            db_session, prerak, TransactionCreate(amount=20000, payment_mode=PaymentMode.CASH)
        )

        with pytest.raises(AuthorizationError):
            await transaction_service.verify(db_session, other_district, transaction.id, approve=True)

    async def test_approval_without_target(self, db_session, coordinator_chain, admin_user):
        transaction = await transaction_service.create(
            db_session, coordinator_chain["prerak"], TransactionCreate(amount=20000, payment_mode=PaymentMode.CASH)
        )
        assert transaction.target_id is None

        with pytest.raises(TargetNotFoundError):
            await transaction_service.verify(db_session, admin_user, transaction.id, approve=True)


@pytest.mark.asyncio
class TestReceiptDelivery:

    async def test_mails_once(self, db_session, coordinator_chain, monkeypatch):
        sent = []

        async def fake_send(email, name, amount_inr, receipt_number, pdf_bytes):
            sent.append((email, receipt_number, pdf_bytes[:4]))
            return True

        monkeypatch.setattr(email_service, "send_donation_receipt", fake_send)
        donation = await manual_donation(db_session, coordinator_chain["district"])
        assert await pending_receipt_donation_ids(db_session) == [donation.id]

        assert await deliver_donation_receipt(db_session, donation.id) is True
        assert await deliver_donation_receipt(db_session, donation.id) is True

        assert len(sent) == 1
        assert sent[0][0] == "kiran@example.com"
        assert sent[0][2] == b"%PDF"
        assert await pending_receipt_donation_ids(db_session) == []

    async def test_failed_send_stays_pending(self, db_session, coordinator_chain, monkeypatch):
        async def fake_send(*args):
            return False

        monkeypatch.setattr(email_service, "send_donation_receipt", fake_send)
        donation = await manual_donation(db_session, coordinator_chain["district"])

        assert await deliver_donation_receipt(db_session, donation.id) is False
        assert await pending_receipt_donation_ids(db_session) == [donation.id]
