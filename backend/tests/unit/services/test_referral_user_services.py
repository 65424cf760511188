"""
Unit Tests for referral codes and account management
"""
import pytest

from arpu.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    HierarchyViolationError,
    ValidationError,
)
from arpu.core.roles import UserRole
from arpu.models.donation import Donation, PaymentStatus
from arpu.models.referral_code import ReferralCodeType
from arpu.models.user import UserStatus
from arpu.schemas.auth import AdminUserUpdate, UserRegister
from arpu.services.referral_service import code_base, referral_service
from arpu.services.user_service import user_service

TEST_PASSWORD = "Testpass123"


class TestCodeBase:

    @pytest.mark.parametrize("name,region,expected", [
        ("Ravi Kumar", "Bihar", "RAVKUM-BIH"),
        ("Sunita", "UP", "SUN-UPX"),
        ("A. P. J. Kalam", "Tamil Nadu", "APJKAL-TAM"),
        ("Mohammed Ali Khan", "Jammu & Kashmir", "MOHALI-JAM"),
        ("...", "Goa", "ARPU-GOA"),
    ])
    def test_code_base(self, name, region, expected):
        assert code_base(name, region) == expected


@pytest.mark.asyncio
class TestReferralCodes:

    async def test_numbered_on_collision(self, db_session, make_user):
        first = await make_user(UserRole.PRERAK, name="Ravi Kumar")
        second = await make_user(UserRole.PRERAK, name="Ravi Kumar")
        third = await make_user(UserRole.PRERAK, name="Ravi Kumaran")

        codes = [
            (await referral_service.create_for_user(db_session, user, "Bihar")).code
            for user in (first, second, third)
        ]

        assert codes == ["RAVKUM-BIH", "RAVKUM-BIH-01", "RAVKUM-BIH-02"]

    async def test_one_active_code_per_user(self, db_session, coordinator_chain):
        await referral_service.create_for_user(db_session, coordinator_chain["prerak"], "Bihar")
        with pytest.raises(ConflictError):
            await referral_service.create_for_user(db_session, coordinator_chain["prerak"], "Bihar")

    async def test_sub_coordinator_chain(self, db_session, coordinator_chain):
        parent = await referral_service.create_for_user(db_session, coordinator_chain["district"], "Bihar")
        child = await referral_service.create_for_user(
            db_session, coordinator_chain["prerak"], "Bihar", parent_code=parent
        )

        assert parent.type == ReferralCodeType.COORDINATOR
        assert child.type == ReferralCodeType.SUB_COORDINATOR
        chain = await referral_service.get_hierarchy_chain(db_session, child.code.lower())
        assert [c.id for c in chain] == [child.id, parent.id]

    async def test_resolve_attribution(self, db_session, coordinator_chain, make_user):
        referral = await referral_service.create_for_user(db_session, coordinator_chain["district"], "Bihar")
        personal = await make_user(UserRole.PRERAK, referral_code="PR0427")
        inactive = await make_user(UserRole.PRERAK, referral_code="PR0999", status=UserStatus.INACTIVE)

        code, owner = await referral_service.resolve_attribution(db_session, " ravkum-bih ")
        assert code.id == referral.id
        assert owner.id == coordinator_chain["district"].id

        code, owner = await referral_service.resolve_attribution(db_session, "pr0427")
        assert code is None
        assert owner.id == personal.id

        assert await referral_service.resolve_attribution(db_session, inactive.referral_code) == (None, None)
        assert await referral_service.resolve_attribution(db_session, None) == (None, None)

    async def test_deactivated_code_no_longer_resolves(self, db_session, coordinator_chain):
        referral = await referral_service.create_for_user(db_session, coordinator_chain["district"], "Bihar")
        await referral_service.deactivate(db_session, referral.id)

        assert await referral_service.resolve_attribution(db_session, referral.code) == (None, None)

    async def test_update_stats_counts_success_only(self, db_session, coordinator_chain):
        referral = await referral_service.create_for_user(db_session, coordinator_chain["district"], "Bihar")
        for status, amount in ((PaymentStatus.SUCCESS, 10000), (PaymentStatus.SUCCESS, 25000),
                               (PaymentStatus.FAILED, 99999)):
            db_session.add(Donation(donor_name="Asha", amount=amount, payment_status=status,
                                    referral_code_id=referral.id))
        await db_session.commit()

        updated = await referral_service.update_stats(db_session, referral.id)

        assert updated.total_donations == 2
        assert updated.total_amount == 35000
        assert updated.last_used is not None


def registration(**overrides):
    data = {"email": "Kavya.Rao@Example.com", "password": TEST_PASSWORD, "name": "Kavya Rao"}
    data.update(overrides)
    return UserRegister(**data)


@pytest.mark.asyncio
class TestAccounts:

    async def test_volunteer_active_on_signup(self, db_session):
        user = await user_service.register(db_session, registration())

        assert user.email == "kavya.rao@example.com"
        assert user.status == UserStatus.ACTIVE
        assert user.hashed_password != TEST_PASSWORD

    async def test_coordinator_waits_for_approval(self, db_session, coordinator_chain):
        user = await user_service.register(db_session, registration(
            role=UserRole.PRERAK, parent_coordinator_id=coordinator_chain["district"].id, state="Bihar",
        ))
        assert user.status == UserStatus.PENDING

        with pytest.raises(AuthorizationError):
            await user_service.authenticate(db_session, "kavya.rao@example.com", TEST_PASSWORD)

    async def test_parent_must_outrank(self, db_session, coordinator_chain):
        with pytest.raises(HierarchyViolationError):
            await user_service.register(db_session, registration(
                role=UserRole.DISTRICT_COORDINATOR, parent_coordinator_id=coordinator_chain["prerak"].id,
            ))

    async def test_duplicate_email(self, db_session):
        await user_service.register(db_session, registration())
        with pytest.raises(ConflictError):
            await user_service.register(db_session, registration(email="kavya.rao@example.com"))

    async def test_authenticate(self, db_session):
        await user_service.register(db_session, registration())

        user = await user_service.authenticate(db_session, "KAVYA.RAO@example.com", TEST_PASSWORD)
        assert user.last_login is not None

        with pytest.raises(AuthenticationError):
            await user_service.authenticate(db_session, "kavya.rao@example.com", "Wrongpass123")

    async def test_personal_referral_code(self, db_session, coordinator_chain):
        district = coordinator_chain["district"]

        code = await user_service.generate_personal_referral_code(db_session, district)

        assert code.startswith("DC")
        assert len(code) == 6
        with pytest.raises(ConflictError):
            await user_service.generate_personal_referral_code(db_session, district)

    async def test_change_password(self, db_session, coordinator_chain):
        prerak = coordinator_chain["prerak"]
        with pytest.raises(ValidationError):
            await user_service.change_password(db_session, prerak, "Wrongpass123", "Newpass1234")

        await user_service.change_password(db_session, prerak, TEST_PASSWORD, "Newpass1234")
        assert (await user_service.authenticate(db_session, prerak.email, "Newpass1234")).id == prerak.id


@pytest.mark.asyncio
class TestAdminUserManagement:

    async def test_reparent_into_own_team_rejected(self, db_session, coordinator_chain, admin_user):
        with pytest.raises(ValidationError):
            await user_service.admin_update(
                db_session, admin_user, coordinator_chain["district"].id,
                AdminUserUpdate(parent_coordinator_id=coordinator_chain["prerak"].id),
            )

    async def test_role_change_revalidates_parent(self, db_session, coordinator_chain, admin_user):
        with pytest.raises(HierarchyViolationError):
            await user_service.admin_update(
                db_session, admin_user, coordinator_chain["prerak"].id,
                AdminUserUpdate(role=UserRole.STATE_PRESIDENT),
            )

    async def test_update_fields(self, db_session, coordinator_chain, admin_user):
        user = await user_service.admin_update(
            db_session, admin_user, coordinator_chain["volunteer"].id,
            AdminUserUpdate(name="Priya  Sharma Rao", is_verified=True),
        )
        assert user.name == "Priya Sharma Rao"
        assert user.is_verified is True

    async def test_deactivate(self, db_session, coordinator_chain, admin_user):
        user = await user_service.deactivate(db_session, admin_user, coordinator_chain["volunteer"].id)
        assert user.status == UserStatus.INACTIVE

        with pytest.raises(ValidationError):
            await user_service.deactivate(db_session, admin_user, admin_user.id)

    async def test_list_users_filters(self, db_session, coordinator_chain, admin_user):
        page = await user_service.list_users(db_session, role=UserRole.PRERAK)
        assert page["total"] == 1

        page = await user_service.list_users(db_session, state="bihar")
        assert page["total"] == 4

        page = await user_service.list_users(db_session, search="Sunita")
        assert [u.name for u in page["items"]] == ["Sunita Devi"]
