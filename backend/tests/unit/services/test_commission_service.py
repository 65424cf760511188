"""
Unit Tests for commission calculation, distribution and settlement
"""
import pytest
from types import SimpleNamespace
from sqlalchemy import select

from arpu.core.exceptions import AuthorizationError, ConflictError, ValidationError
from arpu.core.roles import UserRole
from arpu.models.commission import CommissionLog, CommissionStatus
from arpu.models.donation import Donation, PaymentStatus
from arpu.services.commission_service import (
    calculate_commissions,
    commission_service,
    organization_fund,
    share_amount,
)


def member(user_id, role):
    return SimpleNamespace(id=user_id, name=user_id.title(), role=role)


async def successful_donation(db, amount, attributed_to=None):
    donation = Donation(
        donor_name="Meera Iyer",
        amount=amount,
        payment_status=PaymentStatus.SUCCESS,
        attributed_to_user_id=attributed_to.id if attributed_to else None,
    )
    db.add(donation)
    await db.commit()
    await db.refresh(donation)
    return donation


class TestCalculateCommissions:
    """Pure split of a donation up the chain"""

    def test_volunteer_with_three_coordinators(self):
        chain = [
            member("vol", UserRole.VOLUNTEER),
            member("sakhi", UserRole.PRERNA_SAKHI),
            member("prerak", UserRole.PRERAK),
            member("nodal", UserRole.NODAL_OFFICER),
        ]
        shares = calculate_commissions(100000, chain)

        assert [s.amount for s in shares] == [5000, 2000, 2000, 2000]
        assert [s.depth for s in shares] == [0, 1, 2, 3]
        assert shares[0].percentage == 5.0
        assert organization_fund(100000, shares) == 89000

    def test_coordinator_direct_share(self):
        shares = calculate_commissions(100000, [member("dc", UserRole.DISTRICT_COORDINATOR)])
        assert shares[0].percentage == 15.0
        assert shares[0].amount == 15000
        assert shares[0].hierarchy_level == "district_coord"

    def test_repeated_user_stops_walk(self):
        a = member("a", UserRole.PRERAK)
        b = member("b", UserRole.NODAL_OFFICER)
        shares = calculate_commissions(10000, [a, b, a, b])
        assert [s.user_id for s in shares] == ["a", "b"]

    def test_depth_cap(self):
        chain = [member(f"u{i}", UserRole.PRERAK) for i in range(30)]
        shares = calculate_commissions(100000, chain)
        # attributed user plus 20 ancestors
        assert len(shares) == 21

    def test_empty_chain(self):
        assert calculate_commissions(100000, []) == []
        assert organization_fund(100000, []) == 100000

    def test_share_rounding(self):
        assert share_amount(12345, 2.0) == 247
        assert share_amount(333, 5.0) == 17


@pytest.mark.asyncio
class TestDistribute:

    async def test_creates_pending_logs_and_credits_wallets(self, db_session, coordinator_chain):
        volunteer = coordinator_chain["volunteer"]
        donation = await successful_donation(db_session, 100000, volunteer)

        result = await commission_service.distribute(db_session, donation.id)

        # volunteer 5%, prerak / district / state 2% each
        assert result["total_commission"] == 5000 + 2000 * 3
        assert result["organization_fund"] == 100000 - 11000
        logs = (await db_session.execute(select(CommissionLog))).scalars().all()
        assert len(logs) == 4
        assert all(log.status == CommissionStatus.PENDING for log in logs)

        await db_session.refresh(volunteer)
        assert volunteer.commission_wallet == 5000
        await db_session.refresh(donation)
        assert donation.distributed is True
        assert donation.organization_fund_amount == 89000

    async def test_distribute_once(self, db_session, coordinator_chain):
        donation = await successful_donation(db_session, 50000, coordinator_chain["prerak"])
        await commission_service.distribute(db_session, donation.id)

        with pytest.raises(ConflictError):
            await commission_service.distribute(db_session, donation.id)

    async def test_requires_success(self, db_session, coordinator_chain):
        donation = Donation(donor_name="Asha", amount=50000, payment_status=PaymentStatus.PENDING,
                            attributed_to_user_id=coordinator_chain["prerak"].id)
        db_session.add(donation)
        await db_session.commit()

        with pytest.raises(ValidationError):
            await commission_service.distribute(db_session, donation.id)

    async def test_requires_attribution(self, db_session):
        donation = await successful_donation(db_session, 50000)
        with pytest.raises(ValidationError):
            await commission_service.distribute(db_session, donation.id)

    async def test_distribute_pending(self, db_session, coordinator_chain):
        await successful_donation(db_session, 20000, coordinator_chain["volunteer"])
        await successful_donation(db_session, 30000, coordinator_chain["prerak"])
        await successful_donation(db_session, 40000)

        result = await commission_service.distribute_pending(db_session)

        assert len(result["distributed"]) == 2
        assert result["failed"] == []


@pytest.mark.asyncio
class TestSettlement:

    async def _logs(self, db_session, coordinator_chain):
        donation = await successful_donation(db_session, 100000, coordinator_chain["volunteer"])
        await commission_service.distribute(db_session, donation.id)
        result = await db_session.execute(select(CommissionLog).order_by(CommissionLog.depth))
        return list(result.scalars().all())

    async def test_mark_paid_debits_wallet(self, db_session, coordinator_chain, admin_user):
        logs = await self._logs(db_session, coordinator_chain)
        volunteer = coordinator_chain["volunteer"]

        result = await commission_service.mark_paid(
            db_session, admin_user, [logs[0].id, logs[0].id, "missing"], transaction_id="UTR123"
        )

        assert result["paid"] == [logs[0].id]
        assert result["total_paid"] == 5000
        assert result["skipped"] == [{"id": "missing", "reason": "not found"}]
        await db_session.refresh(volunteer)
        assert volunteer.commission_wallet == 0
        await db_session.refresh(logs[0])
        assert logs[0].status == CommissionStatus.PAID
        assert logs[0].transaction_id == "UTR123"

    async def test_paid_log_skipped_second_time(self, db_session, coordinator_chain, admin_user):
        logs = await self._logs(db_session, coordinator_chain)
        await commission_service.mark_paid(db_session, admin_user, [logs[1].id])

        result = await commission_service.mark_paid(db_session, admin_user, [logs[1].id])
        assert result["paid"] == []
        assert result["skipped"][0]["reason"] == "status is PAID"

    async def test_non_admin_cannot_settle(self, db_session, coordinator_chain):
        logs = await self._logs(db_session, coordinator_chain)
        with pytest.raises(AuthorizationError):
            await commission_service.mark_paid(db_session, coordinator_chain["state"], [logs[0].id])

    async def test_fail_then_retry(self, db_session, coordinator_chain, admin_user):
        logs = await self._logs(db_session, coordinator_chain)

        failed = await commission_service.mark_failed(db_session, admin_user, logs[2].id, "Bank rejected")
        assert failed.status == CommissionStatus.FAILED
        assert failed.notes == "Bank rejected"

        retried = await commission_service.retry(db_session, admin_user, logs[2].id)
        assert retried.status == CommissionStatus.PENDING

    async def test_cancel_returns_wallet_amount(self, db_session, coordinator_chain, admin_user):
        logs = await self._logs(db_session, coordinator_chain)
        prerak = coordinator_chain["prerak"]

        cancelled = await commission_service.cancel(db_session, admin_user, logs[1].id, "Duplicate")

        assert cancelled.status == CommissionStatus.CANCELLED
        await db_session.refresh(prerak)
        assert prerak.commission_wallet == 0

    async def test_cancelled_log_cannot_be_paid_again(self, db_session, coordinator_chain, admin_user):
        logs = await self._logs(db_session, coordinator_chain)
        await commission_service.cancel(db_session, admin_user, logs[0].id, "Duplicate")

        with pytest.raises(ValidationError):
            await commission_service.retry(db_session, admin_user, logs[0].id)


@pytest.mark.asyncio
class TestSummaries:

    async def test_user_and_organization_summary(self, db_session, coordinator_chain, admin_user):
        donation = await successful_donation(db_session, 100000, coordinator_chain["volunteer"])
        await commission_service.distribute(db_session, donation.id)

        summary = await commission_service.get_user_summary(db_session, coordinator_chain["volunteer"].id)
        assert summary["total_earned"] == 5000
        assert summary["pending"] == 5000
        assert summary["commission_count"] == 1

        org = await commission_service.get_organization_summary(db_session)
        assert org["total_distributed"] == 11000
        assert org["unique_recipients"] == 4
        assert org["organization_fund"] == 89000
        assert org["undistributed_donations"] == 0
