"""
Unit Tests for Donation Service: Razorpay checkout, webhooks, manual donations
"""
import json
import pytest
from sqlalchemy import select

from arpu.core.config import settings
from arpu.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    GatewayNotConfiguredError,
    PaymentVerificationError,
    ValidationError,
)
from arpu.core.roles import UserRole
from arpu.core.security import sign_payload
from arpu.models.commission import CommissionLog
from arpu.models.donation import PaymentStatus
from arpu.schemas.donation import DonationOrderCreate, ManualDonationCreate
from arpu.services.donation_service import calculate_fees, donation_service
from arpu.services.referral_service import referral_service


def order_request(**overrides):
    data = {"donor_name": "Meera Iyer", "donor_email": "Meera@Example.com", "amount": 50000}
    data.update(overrides)
    return DonationOrderCreate(**data)


def checkout_signature(order_id, payment_id):
    return sign_payload("test_key_secret", f"{order_id}|{payment_id}".encode())


def webhook_body(event, order_id, payment_id="pay_hook_1"):
    return json.dumps({
        "event": event,
        "payload": {"payment": {"entity": {"id": payment_id, "order_id": order_id,
                                           "error_description": "Card declined"}}},
    }).encode()


class TestFees:

    def test_fee_split(self):
        fees = calculate_fees(100000)
        assert fees == {"amount": 100000, "fees": 2360, "net_amount": 97640}


@pytest.mark.asyncio
class TestCreateOrder:

    async def test_creates_pending_donation(self, db_session, razorpay_client, program):
        result = await donation_service.create_order(db_session, order_request(program_id=program.id))

        assert result["order_id"].startswith("order_")
        assert result["amount"] == 50000
        assert result["amount_inr"] == 500.0
        assert result["key_id"] == "rzp_test_key"
        assert result["referral_valid"] is False

        sent = razorpay_client.order.created[0]
        assert sent["amount"] == 50000
        assert sent["currency"] == "INR"
        assert sent["notes"]["donor_email"] == "meera@example.com"

        donation = await donation_service.get(db_session, result["donation_id"])
        assert donation.payment_status == PaymentStatus.PENDING
        assert donation.razorpay_order_id == result["order_id"]

    async def test_referral_code_attributes_donation(self, db_session, razorpay_client, coordinator_chain):
        district = coordinator_chain["district"]
        referral = await referral_service.create_for_user(db_session, district, "Bihar")

        result = await donation_service.create_order(db_session, order_request(referral_code=referral.code.lower()))

        assert result["referral_valid"] is True
        donation = await donation_service.get(db_session, result["donation_id"])
        assert donation.referral_code_id == referral.id
        assert donation.attributed_to_user_id == district.id

    async def test_invalid_referral_code(self, db_session, razorpay_client):
        with pytest.raises(ValidationError):
            await donation_service.create_order(db_session, order_request(referral_code="NOPE-XXX"))

    async def test_inactive_program(self, db_session, razorpay_client, program):
        program.active = False
        await db_session.commit()
        with pytest.raises(ValidationError):
            await donation_service.create_order(db_session, order_request(program_id=program.id))

    async def test_gateway_not_configured(self, db_session, monkeypatch):
        donation_service._client = None
        monkeypatch.setattr(settings, "RAZORPAY_KEY_ID", "")
        with pytest.raises(GatewayNotConfiguredError):
            await donation_service.create_order(db_session, order_request())


@pytest.mark.asyncio
class TestVerifyPayment:

    async def test_valid_signature_marks_success(self, db_session, razorpay_client, program, coordinator_chain):
        volunteer = coordinator_chain["volunteer"]
        referral = await referral_service.create_for_user(db_session, volunteer, "Bihar")
        order = await donation_service.create_order(
            db_session, order_request(program_id=program.id, referral_code=referral.code)
        )

        donation = await donation_service.verify_payment(
            db_session, order["order_id"], "pay_1", checkout_signature(order["order_id"], "pay_1")
        )

        assert donation.payment_status == PaymentStatus.SUCCESS
        assert donation.razorpay_payment_id == "pay_1"
        assert donation.distributed is True
        assert donation.total_commission_distributed == 5000 * 50000 // 100000 + 3 * 1000

        await db_session.refresh(program)
        assert program.raised_amount == 50000
        assert program.donation_count == 1
        await db_session.refresh(referral)
        assert referral.total_donations == 1
        assert referral.total_amount == 50000
        await db_session.refresh(volunteer)
        assert volunteer.total_donations_referred == 1
        assert volunteer.total_amount_referred == 50000

    async def test_bad_signature_fails_donation(self, db_session, razorpay_client):
        order = await donation_service.create_order(db_session, order_request())

        with pytest.raises(PaymentVerificationError):
            await donation_service.verify_payment(db_session, order["order_id"], "pay_1", "forged")

        donation = await donation_service.get(db_session, order["donation_id"])
        assert donation.payment_status == PaymentStatus.FAILED
        assert donation.failure_reason == "Invalid payment signature"

    async def test_verification_is_idempotent(self, db_session, razorpay_client, coordinator_chain):
        prerak = coordinator_chain["prerak"]
        referral = await referral_service.create_for_user(db_session, prerak, "Bihar")
        order = await donation_service.create_order(db_session, order_request(referral_code=referral.code))
        signature = checkout_signature(order["order_id"], "pay_1")

        await donation_service.verify_payment(db_session, order["order_id"], "pay_1", signature)
        again = await donation_service.verify_payment(db_session, order["order_id"], "pay_1", signature)

        assert again.payment_status == PaymentStatus.SUCCESS
        logs = (await db_session.execute(select(CommissionLog))).scalars().all()
        # prerak, district, state: one log each despite the second call
        assert len(logs) == 3

    async def test_mark_failed(self, db_session, razorpay_client):
        order = await donation_service.create_order(db_session, order_request())

        donation = await donation_service.mark_failed(db_session, order["order_id"], "User closed checkout")

        assert donation.payment_status == PaymentStatus.FAILED
        with pytest.raises(ValidationError):
            await donation_service.mark_failed(db_session, order["order_id"])


@pytest.mark.asyncio
class TestWebhook:

    async def test_payment_captured(self, db_session, razorpay_client):
        order = await donation_service.create_order(db_session, order_request())
        body = webhook_body("payment.captured", order["order_id"])

        result = await donation_service.handle_webhook(db_session, body, sign_payload("test_webhook_secret", body))

        assert result == {"status": "ok", "donation_id": order["donation_id"]}
        donation = await donation_service.get(db_session, order["donation_id"])
        assert donation.payment_status == PaymentStatus.SUCCESS
        assert donation.razorpay_payment_id == "pay_hook_1"

    async def test_captured_twice_is_noop(self, db_session, razorpay_client):
        order = await donation_service.create_order(db_session, order_request())
        body = webhook_body("payment.captured", order["order_id"])
        signature = sign_payload("test_webhook_secret", body)

        await donation_service.handle_webhook(db_session, body, signature)
        result = await donation_service.handle_webhook(db_session, body, signature)

        assert result == {"status": "ok"}

    async def test_payment_failed(self, db_session, razorpay_client):
        order = await donation_service.create_order(db_session, order_request())
        body = webhook_body("payment.failed", order["order_id"])

        await donation_service.handle_webhook(db_session, body, sign_payload("test_webhook_secret", body))

        donation = await donation_service.get(db_session, order["donation_id"])
        assert donation.payment_status == PaymentStatus.FAILED
        assert donation.failure_reason == "Card declined"

    async def test_bad_signature(self, db_session):
        body = webhook_body("payment.captured", "order_x")
        with pytest.raises(AuthenticationError):
            await donation_service.handle_webhook(db_session, body, "forged")

    async def test_unknown_order_ignored(self, db_session):
        body = webhook_body("payment.captured", "order_unknown")
        result = await donation_service.handle_webhook(db_session, body, sign_payload("test_webhook_secret", body))
        assert result["status"] == "ignored"


@pytest.mark.asyncio
class TestManualDonation:

    def _manual(self, **overrides):
        data = {"donor_name": "Gram Panchayat Trust", "amount": 100000, "payment_reference": "CHQ-1182"}
        data.update(overrides)
        return ManualDonationCreate(**data)

    async def test_coordinator_gets_attribution(self, db_session, coordinator_chain):
        district = coordinator_chain["district"]

        donation = await donation_service.record_manual(db_session, district, self._manual())

        assert donation.payment_status == PaymentStatus.SUCCESS
        assert donation.is_manual is True
        assert donation.recorded_by == district.id
        assert donation.attributed_to_user_id == district.id
        # district 15%, state president 2%
        assert donation.total_commission_distributed == 17000
        assert donation.organization_fund_amount == 83000

    async def test_admin_donation_unattributed(self, db_session, admin_user):
        donation = await donation_service.record_manual(db_session, admin_user, self._manual())

        assert donation.attributed_to_user_id is None
        assert donation.distributed is False

    async def test_referral_code_overrides_actor(self, db_session, coordinator_chain, make_user):
        sakhi = await make_user(UserRole.PRERNA_SAKHI, parent=coordinator_chain["prerak"], referral_code="PS0427")

        donation = await donation_service.record_manual(
            db_session, coordinator_chain["district"], self._manual(referral_code="ps0427")
        )

        assert donation.attributed_to_user_id == sakhi.id

    async def test_volunteer_cannot_record(self, db_session, coordinator_chain):
        with pytest.raises(AuthorizationError):
            await donation_service.record_manual(db_session, coordinator_chain["volunteer"], self._manual())


@pytest.mark.asyncio
class TestListingsAndStats:

    async def test_stats(self, db_session, razorpay_client, coordinator_chain, program):
        await donation_service.record_manual(
            db_session, coordinator_chain["district"], ManualDonationCreate(
                donor_name="Asha Verma", amount=40000, program_id=program.id,
            )
        )
        pending = await donation_service.create_order(db_session, order_request())
        failed = await donation_service.create_order(db_session, order_request())
        await donation_service.mark_failed(db_session, failed["order_id"])

        stats = await donation_service.stats(db_session)

        assert stats["total_amount"] == 40000
        assert stats["success_count"] == 1
        assert stats["pending_count"] == 1
        assert stats["failed_count"] == 1
        assert stats["total_count"] == 3
        assert stats["average_amount"] == 40000
        assert stats["top_programs"][0]["program_id"] == program.id
        assert pending["donation_id"]

    async def test_coordinator_sees_team_donations(self, db_session, coordinator_chain):
        await donation_service.record_manual(
            db_session, coordinator_chain["prerak"], ManualDonationCreate(donor_name="Asha Verma", amount=20000)
        )

        state_view = await donation_service.list_for_coordinator(db_session, coordinator_chain["state"])
        volunteer_view = await donation_service.list_for_coordinator(db_session, coordinator_chain["volunteer"])

        assert state_view["total"] == 1
        assert volunteer_view["total"] == 0

    async def test_list_by_personal_code(self, db_session, coordinator_chain):
        prerak = coordinator_chain["prerak"]
        prerak.referral_code = "PR1234"
        await db_session.commit()
        await donation_service.record_manual(
            db_session, prerak, ManualDonationCreate(donor_name="Asha Verma", amount=20000)
        )

        donations = await donation_service.list_by_referral(db_session, prerak, "pr1234")
        assert len(donations) == 1

        with pytest.raises(AuthorizationError):
            await donation_service.list_by_referral(db_session, coordinator_chain["volunteer"], "PR1234")
