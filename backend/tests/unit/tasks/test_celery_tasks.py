"""
Unit Tests for Celery task entry points

Each task drives its coroutine with asyncio.run, so the engine has to be
disposed before the loop closes or the next run inherits dead connections.
"""
import pytest

from arpu.services.target_service import target_service
from arpu.tasks import notifications, targets


class FakeSessionFactory:
    def __call__(self):
        return self

    async def __aenter__(self):
        return "session"

    async def __aexit__(self, *exc_info):
        return False


@pytest.fixture
def disposals(monkeypatch):
    calls = []

    async def fake_close_db():
        calls.append(True)

    monkeypatch.setattr(targets, "AsyncSessionLocal", FakeSessionFactory())
    monkeypatch.setattr(targets, "close_db", fake_close_db)
    monkeypatch.setattr(notifications, "AsyncSessionLocal", FakeSessionFactory())
    monkeypatch.setattr(notifications, "close_db", fake_close_db)
    return calls


class TestRefreshOverdueTargets:

    def test_engine_disposed_after_each_run(self, disposals, monkeypatch):
        async def fake_refresh(db):
            return 3

        monkeypatch.setattr(target_service, "refresh_overdue", fake_refresh)

        assert targets.refresh_overdue_targets() == 3
        assert targets.refresh_overdue_targets() == 3
        assert len(disposals) == 2

    def test_engine_disposed_on_failure(self, disposals, monkeypatch):
        async def failing_refresh(db):
            raise RuntimeError("database went away")

        monkeypatch.setattr(target_service, "refresh_overdue", failing_refresh)

        with pytest.raises(RuntimeError):
            targets.refresh_overdue_targets()
        assert len(disposals) == 1


class TestSendPendingReceipts:

    def test_counts_and_disposes(self, disposals, monkeypatch):
        async def fake_pending(db, limit):
            return ["d1", "d2", "d3"]

        async def fake_deliver(db, donation_id):
            return donation_id != "d2"

        monkeypatch.setattr(notifications, "pending_receipt_donation_ids", fake_pending)
        monkeypatch.setattr(notifications, "deliver_donation_receipt", fake_deliver)

        assert notifications.send_pending_receipts(limit=10) == {"checked": 3, "sent": 2}
        assert notifications.send_pending_receipts(limit=10) == {"checked": 3, "sent": 2}
        assert len(disposals) == 2
