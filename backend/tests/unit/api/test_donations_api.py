"""
API Tests for the donation checkout flow
"""
import json
import pytest
from httpx import AsyncClient

from arpu.core.security import sign_payload

BASE = "/api/v1/donations"


def order_payload(**overrides):
    payload = {"donor_name": "Meera Iyer", "donor_email": "meera@example.com", "amount": 25000}
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
class TestCheckout:

    async def test_create_and_verify(self, client: AsyncClient, razorpay_client, program):
        created = await client.post(f"{BASE}/create-order", json=order_payload(program_id=program.id))

        assert created.status_code == 200
        order = created.json()
        assert order["key_id"] == "rzp_test_key"
        assert order["amount_inr"] == 250.0

        verified = await client.post(f"{BASE}/verify-payment", json={
            "razorpay_order_id": order["order_id"],
            "razorpay_payment_id": "pay_42",
            "razorpay_signature": sign_payload("test_key_secret", f"{order['order_id']}|pay_42".encode()),
        })

        assert verified.status_code == 200
        assert verified.json()["payment_status"] == "SUCCESS"
        assert verified.json()["razorpay_payment_id"] == "pay_42"

    async def test_forged_signature(self, client: AsyncClient, razorpay_client):
        order = (await client.post(f"{BASE}/create-order", json=order_payload())).json()

        response = await client.post(f"{BASE}/verify-payment", json={
            "razorpay_order_id": order["order_id"],
            "razorpay_payment_id": "pay_42",
            "razorpay_signature": "0" * 64,
        })

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PAYMENT_VERIFICATION_FAILED"

    async def test_amount_below_minimum(self, client: AsyncClient, razorpay_client):
        response = await client.post(f"{BASE}/create-order", json=order_payload(amount=5000))
        assert response.status_code == 422

    async def test_unknown_referral_code(self, client: AsyncClient, razorpay_client):
        response = await client.post(f"{BASE}/create-order", json=order_payload(referral_code="ZZZ-999"))
        assert response.status_code == 400

    async def test_client_side_failure(self, client: AsyncClient, razorpay_client):
        order = (await client.post(f"{BASE}/create-order", json=order_payload())).json()

        response = await client.post(f"{BASE}/fail", json={"razorpay_order_id": order["order_id"], "reason": "closed"})

        assert response.status_code == 200
        assert response.json()["payment_status"] == "FAILED"


@pytest.mark.asyncio
class TestWebhookEndpoint:

    async def test_captured(self, client: AsyncClient, razorpay_client):
        order = (await client.post(f"{BASE}/create-order", json=order_payload())).json()
        body = json.dumps({
            "event": "payment.captured",
            "payload": {"payment": {"entity": {"id": "pay_77", "order_id": order["order_id"]}}},
        }).encode()

        response = await client.post(
            f"{BASE}/webhook",
            content=body,
            headers={"X-Razorpay-Signature": sign_payload("test_webhook_secret", body),
                     "Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    async def test_bad_signature_rejected(self, client: AsyncClient):
        response = await client.post(
            f"{BASE}/webhook", content=b'{"event": "payment.captured"}',
            headers={"X-Razorpay-Signature": "forged"},
        )
        assert response.status_code == 401


@pytest.mark.asyncio
class TestManualAndAccess:

    async def test_coordinator_records_manual(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        response = await client.post(
            f"{BASE}/manual",
            json={"donor_name": "Gram Sabha Trust", "amount": 100000, "payment_reference": "CASH-17"},
            headers=auth_headers_for(coordinator_chain["prerak"]),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["is_manual"] is True
        assert body["attributed_to_user_id"] == coordinator_chain["prerak"].id
        assert body["distributed"] is True

    async def test_volunteer_cannot_record_manual(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        response = await client.post(
            f"{BASE}/manual",
            json={"donor_name": "Gram Sabha Trust", "amount": 100000},
            headers=auth_headers_for(coordinator_chain["volunteer"]),
        )
        assert response.status_code == 403

    async def test_visibility_follows_chain(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        created = await client.post(
            f"{BASE}/manual",
            json={"donor_name": "Gram Sabha Trust", "amount": 100000},
            headers=auth_headers_for(coordinator_chain["prerak"]),
        )
        donation_id = created.json()["id"]

        above = await client.get(f"{BASE}/{donation_id}", headers=auth_headers_for(coordinator_chain["state"]))
        below = await client.get(f"{BASE}/{donation_id}", headers=auth_headers_for(coordinator_chain["volunteer"]))

        assert above.status_code == 200
        assert below.status_code == 403

    async def test_missing_donation(self, client: AsyncClient, admin_auth_headers):
        response = await client.get(f"{BASE}/00000000-0000-0000-0000-000000000000", headers=admin_auth_headers)
        assert response.status_code == 404


@pytest.mark.asyncio
class TestDonorWall:

    async def test_highlights(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        await client.post(
            f"{BASE}/manual",
            json={"donor_name": "Kiran Patel", "amount": 100000},
            headers=auth_headers_for(coordinator_chain["district"]),
        )

        response = await client.get("/api/v1/donors/highlights", params={"limit": 10})

        assert response.status_code == 200
        body = response.json()
        assert body["total_count"] == 1
        assert body["donors"][0]["name"] == "Kiran P."
        assert body["donors"][0]["amount"] == 100000
