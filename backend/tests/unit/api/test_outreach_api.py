"""
API Tests for volunteer applications, the contact form and field surveys
"""
import pytest
from httpx import AsyncClient


def volunteer_application(**overrides):
    payload = {
        "name": "Rohit Yadav",
        "email": "Rohit.Yadav@example.com",
        "phone": "9123456780",
        "state": "Bihar",
        "city": "Gaya",
        "interests": ["TEACHING", "FUNDRAISING"],
        "availability": "Weekends",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
class TestVolunteerRequests:

    async def test_apply(self, client: AsyncClient):
        response = await client.post("/api/v1/volunteer/requests", json=volunteer_application())

        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "rohit.yadav@example.com"
        assert body["status"] == "PENDING"
        assert body["interests"] == ["TEACHING", "FUNDRAISING"]

    async def test_one_open_application_per_email(self, client: AsyncClient):
        await client.post("/api/v1/volunteer/requests", json=volunteer_application())
        response = await client.post("/api/v1/volunteer/requests", json=volunteer_application())
        assert response.status_code == 409

    async def test_phone_must_be_ten_digits(self, client: AsyncClient):
        response = await client.post("/api/v1/volunteer/requests", json=volunteer_application(phone="12345"))
        assert response.status_code == 422

    async def test_admin_review(self, client: AsyncClient, admin_user, admin_auth_headers):
        created = await client.post("/api/v1/volunteer/requests", json=volunteer_application())
        request_id = created.json()["id"]

        listing = await client.get("/api/v1/volunteer/requests", params={"status": "PENDING"},
                                   headers=admin_auth_headers)
        assert listing.json()["total"] == 1

        reviewed = await client.patch(f"/api/v1/volunteer/requests/{request_id}",
                                      json={"status": "ACCEPTED", "notes": "Call on Saturday"},
                                      headers=admin_auth_headers)

        assert reviewed.status_code == 200
        assert reviewed.json()["status"] == "ACCEPTED"
        assert reviewed.json()["reviewed_by"] == admin_user.id

    async def test_listing_admin_only(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        response = await client.get("/api/v1/volunteer/requests", headers=auth_headers_for(coordinator_chain["state"]))
        assert response.status_code == 403


@pytest.mark.asyncio
class TestContact:

    async def test_submit_and_resolve(self, client: AsyncClient, admin_user, admin_auth_headers):
        created = await client.post("/api/v1/contact", json={
            "name": "Farah Khan",
            "email": "farah@example.com",
            "subject": "CSR partnership",
            "message": "We would like to sponsor school kits in Gaya.",
            "inquiry_type": "partnership",
        })
        assert created.status_code == 201
        assert created.json()["status"] == "NEW"

        resolved = await client.patch(f"/api/v1/contact/{created.json()['id']}",
                                      json={"status": "RESOLVED", "admin_notes": "Forwarded to CSR team"},
                                      headers=admin_auth_headers)

        assert resolved.status_code == 200
        assert resolved.json()["resolved_by"] == admin_user.id
        assert resolved.json()["resolved_at"] is not None

    async def test_message_too_short(self, client: AsyncClient):
        response = await client.post("/api/v1/contact", json={
            "name": "Farah Khan", "email": "farah@example.com", "subject": "Hi", "message": "Hello",
        })
        assert response.status_code == 422


@pytest.mark.asyncio
class TestSurveys:

    async def test_public_submission_and_stats(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        response = await client.post("/api/v1/surveys", json={
            "survey_type": "SCHOOL",
            "location": "Government Middle School, Bodh Gaya",
            "state": "Bihar",
            "surveyor_name": "Rohit Yadav",
            "data": {"students": 340, "toilets": 2},
        })
        assert response.status_code == 201
        assert response.json()["submitted_by"] is None

        stats = await client.get("/api/v1/surveys/stats", headers=auth_headers_for(coordinator_chain["district"]))

        assert stats.status_code == 200
        assert stats.json()["total"] == 1
        assert stats.json()["by_type"] == {"SCHOOL": 1}

    async def test_submission_linked_to_user(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        prerak = coordinator_chain["prerak"]
        response = await client.post("/api/v1/surveys", json={
            "survey_type": "HEALTH_CAMP", "location": "Sherghati", "surveyor_name": "Amit Singh",
        }, headers=auth_headers_for(prerak))

        assert response.json()["submitted_by"] == prerak.id

    async def test_listing_needs_coordinator(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        response = await client.get("/api/v1/surveys", headers=auth_headers_for(coordinator_chain["volunteer"]))
        assert response.status_code == 403
