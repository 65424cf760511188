"""
API Tests for targets: assign, divide, collect
"""
import pytest
from datetime import datetime, timedelta
from httpx import AsyncClient

BASE = "/api/v1/targets"


def period():
    now = datetime.utcnow()
    return {
        "start_date": (now - timedelta(days=1)).isoformat(),
        "end_date": (now + timedelta(days=30)).isoformat(),
    }


@pytest.mark.asyncio
class TestTargetFlow:

    async def test_assign_divide_collect(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        state, district, prerak = coordinator_chain["state"], coordinator_chain["district"], coordinator_chain["prerak"]

        assigned = await client.post(
            f"{BASE}/assign",
            json={"assignee_id": district.id, "target_amount": 200000, **period()},
            headers=auth_headers_for(state),
        )
        assert assigned.status_code == 201
        parent_id = assigned.json()["target"]["id"]

        divided = await client.post(
            f"{BASE}/divide",
            json={"parent_target_id": parent_id, "divisions": [{"assignee_id": prerak.id, "amount": 150000}]},
            headers=auth_headers_for(district),
        )
        assert divided.status_code == 201
        assert divided.json()["remaining"] == 50000

        collected = await client.post(
            f"{BASE}/collect",
            json={"amount": 75000, "payment_mode": "cash", "donor_name": "Ward Committee"},
            headers=auth_headers_for(prerak),
        )
        assert collected.status_code == 201
        body = collected.json()
        assert body["target"]["progress_percentage"] == 50.0
        assert body["progress_label"] == "Moderate"
        assert body["transaction"]["status"] == "verified"

        listing = await client.get(BASE, headers=auth_headers_for(district))
        mine = listing.json()["my_targets"][0]
        assert mine["team_collection"] == 75000
        assert mine["is_divided"] is True

        tree = await client.get(f"{BASE}/hierarchy", headers=auth_headers_for(district))
        assert tree.status_code == 200
        assert len(tree.json()["children"]) == 1

    async def test_upward_assignment_forbidden(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        response = await client.post(
            f"{BASE}/assign",
            json={"assignee_id": coordinator_chain["state"].id, "target_amount": 10000, **period()},
            headers=auth_headers_for(coordinator_chain["prerak"]),
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "HIERARCHY_VIOLATION"

    async def test_volunteer_cannot_assign(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        response = await client.post(
            f"{BASE}/assign",
            json={"assignee_id": coordinator_chain["prerak"].id, "target_amount": 10000, **period()},
            headers=auth_headers_for(coordinator_chain["volunteer"]),
        )
        assert response.status_code == 403

    async def test_division_over_parent(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        district = coordinator_chain["district"]
        assigned = await client.post(
            f"{BASE}/assign",
            json={"assignee_id": district.id, "target_amount": 10000, **period()},
            headers=auth_headers_for(coordinator_chain["state"]),
        )

        response = await client.post(
            f"{BASE}/divide",
            json={"parent_target_id": assigned.json()["target"]["id"],
                  "divisions": [{"assignee_id": coordinator_chain["prerak"].id, "amount": 20000}]},
            headers=auth_headers_for(district),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "TARGET_EXCEEDED"

    async def test_collect_without_target(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        response = await client.post(
            f"{BASE}/collect",
            json={"amount": 5000, "payment_mode": "upi"},
            headers=auth_headers_for(coordinator_chain["prerak"]),
        )
        assert response.status_code == 404

    async def test_end_before_start_rejected(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        now = datetime.utcnow()
        response = await client.post(
            f"{BASE}/assign",
            json={"assignee_id": coordinator_chain["district"].id, "target_amount": 10000,
                  "start_date": now.isoformat(), "end_date": (now - timedelta(days=2)).isoformat()},
            headers=auth_headers_for(coordinator_chain["state"]),
        )
        assert response.status_code == 422

    async def test_cancel(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        assigned = await client.post(
            f"{BASE}/assign",
            json={"assignee_id": coordinator_chain["district"].id, "target_amount": 10000, **period()},
            headers=auth_headers_for(coordinator_chain["state"]),
        )

        response = await client.post(
            f"{BASE}/{assigned.json()['target']['id']}/cancel",
            json={"reason": "Budget revised"},
            headers=auth_headers_for(coordinator_chain["state"]),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"

    async def test_stats(self, client: AsyncClient, coordinator_chain, auth_headers_for):
        await client.post(
            f"{BASE}/assign",
            json={"assignee_id": coordinator_chain["prerak"].id, "target_amount": 10000, **period()},
            headers=auth_headers_for(coordinator_chain["district"]),
        )

        response = await client.get(f"{BASE}/stats", headers=auth_headers_for(coordinator_chain["state"]))

        assert response.status_code == 200
        assert response.json()["total_targets"] == 1
        assert response.json()["by_status"]["PENDING"] == 1
