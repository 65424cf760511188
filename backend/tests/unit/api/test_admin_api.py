"""
API Tests for the admin panel and the health check
"""
import csv
import io
import pytest
from datetime import datetime
from httpx import AsyncClient

from arpu.api.v1.endpoints.admin.dashboard import growth_percent, month_bounds
from arpu.core.roles import UserRole
from arpu.models.user import UserStatus

ADMIN = "/api/v1/admin"


async def record_manual(client, headers, amount=100000, name="Kiran Patel"):
    response = await client.post("/api/v1/donations/manual",
                                 json={"donor_name": name, "amount": amount}, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestDashboardHelpers:

    def test_month_bounds(self):
        assert month_bounds(datetime(2026, 3, 17, 9, 30)) == (datetime(2026, 3, 1), datetime(2026, 2, 1))

    def test_month_bounds_january(self):
        assert month_bounds(datetime(2026, 1, 5)) == (datetime(2026, 1, 1), datetime(2025, 12, 1))

    @pytest.mark.parametrize("current,previous,expected", [
        (150, 100, 50.0),
        (50, 100, -50.0),
        (100, 0, 100.0),
        (0, 0, 0.0),
        (1, 3, -66.67),
    ])
    def test_growth_percent(self, current, previous, expected):
        assert growth_percent(current, previous) == expected


@pytest.mark.asyncio
class TestAdminDashboard:

    async def test_stats(self, client: AsyncClient, coordinator_chain, auth_headers_for, admin_auth_headers):
        await record_manual(client, auth_headers_for(coordinator_chain["district"]))

        response = await client.get(f"{ADMIN}/dashboard/stats", headers=admin_auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["donations"]["total_amount"] == 100000
        assert body["donations"]["this_month"] == 100000
        assert body["donations"]["growth_percent"] == 100.0
        assert body["users"]["total"] == 5
        assert body["users"]["active"] == 5
        # district 15% + state president 2%
        assert body["commissions"]["total_distributed"] == 17000
        assert body["commissions"]["organization_fund"] == 83000

    async def test_requires_admin(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        response = await client.get(f"{ADMIN}/dashboard/stats", headers=auth_headers_for(coordinator_chain["state"]))
        assert response.status_code == 403

    async def test_recent_lists(self, client: AsyncClient, coordinator_chain, auth_headers_for, admin_auth_headers):
        await record_manual(client, auth_headers_for(coordinator_chain["district"]))

        donations = await client.get(f"{ADMIN}/dashboard/recent-donations", params={"limit": 5},
                                     headers=admin_auth_headers)
        users = await client.get(f"{ADMIN}/dashboard/recent-users", params={"limit": 2},
                                 headers=admin_auth_headers)

        assert len(donations.json()) == 1
        assert len(users.json()) == 2


@pytest.mark.asyncio
class TestAdminDonations:

    async def test_list_and_search(self, client: AsyncClient, coordinator_chain, auth_headers_for, admin_auth_headers):
        headers = auth_headers_for(coordinator_chain["district"])
        await record_manual(client, headers, name="Kiran Patel")
        await record_manual(client, headers, name="Sameer Joshi")

        response = await client.get(f"{ADMIN}/donations", params={"search": "sameer"}, headers=admin_auth_headers)

        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert response.json()["items"][0]["donor_name"] == "Sameer Joshi"

    async def test_export_csv(self, client: AsyncClient, coordinator_chain, auth_headers_for, admin_auth_headers):
        await record_manual(client, auth_headers_for(coordinator_chain["district"]), amount=123450)

        response = await client.get(f"{ADMIN}/donations/export", params={"status": "SUCCESS"},
                                    headers=admin_auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment; filename=donations_" in response.headers["content-disposition"]
        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0][0] == "Date"
        assert rows[1][4] == "1234.50"

    async def test_stats(self, client: AsyncClient, coordinator_chain, auth_headers_for, admin_auth_headers):
        await record_manual(client, auth_headers_for(coordinator_chain["district"]), amount=30000)

        response = await client.get(f"{ADMIN}/donations/stats", headers=admin_auth_headers)

        assert response.json()["success_count"] == 1
        assert response.json()["average_amount_inr"] == 300.0


@pytest.mark.asyncio
class TestAdminUsers:

    async def test_filter_by_role(self, client: AsyncClient, coordinator_chain, admin_auth_headers):
        response = await client.get(f"{ADMIN}/users", params={"role": "PRERAK"}, headers=admin_auth_headers)

        assert response.status_code == 200
        assert [u["name"] for u in response.json()["items"]] == ["Amit Singh"]

    async def test_approve_via_update(self, client: AsyncClient, coordinator_chain, make_user, admin_auth_headers):
        pending = await make_user(UserRole.PRERAK, parent=coordinator_chain["district"], status=UserStatus.PENDING)

        response = await client.patch(f"{ADMIN}/users/{pending.id}", json={"status": "ACTIVE"},
                                      headers=admin_auth_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "ACTIVE"

    async def test_deactivate(self, client: AsyncClient, coordinator_chain, admin_auth_headers):
        volunteer = coordinator_chain["volunteer"]
        response = await client.delete(f"{ADMIN}/users/{volunteer.id}", headers=admin_auth_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "INACTIVE"

    async def test_unknown_user(self, client: AsyncClient, admin_auth_headers):
        response = await client.get(f"{ADMIN}/users/00000000-0000-0000-0000-000000000000",
                                    headers=admin_auth_headers)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "USER_NOT_FOUND"


@pytest.mark.asyncio
class TestAdminPrograms:

    async def test_create_with_generated_slug(self, client: AsyncClient, admin_auth_headers):
        response = await client.post(f"{ADMIN}/programs", json={
            "name": "Clean Water & Sanitation",
            "description": "Hand pumps and toilets for village schools",
            "target_amount": 50000000,
        }, headers=admin_auth_headers)

        assert response.status_code == 201
        assert response.json()["slug"] == "clean-water-sanitation"

    async def test_duplicate_slug(self, client: AsyncClient, program, admin_auth_headers):
        response = await client.post(f"{ADMIN}/programs", json={
            "name": "Education for All",
            "description": "Duplicate of an existing program",
        }, headers=admin_auth_headers)
        assert response.status_code == 409


@pytest.mark.asyncio
class TestHealth:

    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "connected"

    async def test_root(self, client: AsyncClient):
        response = await client.get("/")
        assert response.json()["health"] == "/health"
