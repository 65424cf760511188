"""
Unit Tests for the role ladder
"""
import pytest

from arpu.core.roles import (
    UserRole,
    GeographicScope,
    ROLE_HIERARCHY,
    role_level,
    can_manage,
    is_coordinator,
    hierarchy_level_name,
    role_display_name,
    visible_roles,
    geographic_scope,
    dashboard_features,
    hierarchy_assignment_error,
)


class TestRoleLevels:

    def test_ladder_order(self):
        assert role_level(UserRole.ADMIN) == 0
        assert role_level(UserRole.CENTRAL_PRESIDENT) == 1
        assert role_level(UserRole.PRERNA_SAKHI) == 10
        assert role_level(UserRole.VOLUNTEER) == 11
        assert role_level("DONOR") == 12

    def test_every_role_ranked(self):
        assert set(ROLE_HIERARCHY) == set(UserRole)


class TestCanManage:

    def test_admin_manages_everyone(self):
        for role in UserRole:
            assert can_manage(UserRole.ADMIN, role)

    def test_strictly_higher_rank_required(self):
        assert can_manage(UserRole.STATE_PRESIDENT, UserRole.DISTRICT_COORDINATOR)
        assert not can_manage(UserRole.DISTRICT_COORDINATOR, UserRole.STATE_PRESIDENT)
        assert not can_manage(UserRole.PRERAK, UserRole.PRERAK)

    def test_donor_manages_nobody(self):
        assert not can_manage(UserRole.DONOR, UserRole.DONOR)
        assert not can_manage(UserRole.DONOR, UserRole.VOLUNTEER)


class TestRoleHelpers:

    @pytest.mark.parametrize("role,expected", [
        (UserRole.CENTRAL_PRESIDENT, True),
        (UserRole.PRERNA_SAKHI, True),
        (UserRole.VOLUNTEER, False),
        (UserRole.DONOR, False),
    ])
    def test_is_coordinator(self, role, expected):
        assert is_coordinator(role) is expected

    def test_level_and_display_names(self):
        assert hierarchy_level_name(UserRole.ADMIN) == "national"
        assert hierarchy_level_name(UserRole.DISTRICT_COORDINATOR) == "district_coord"
        assert role_display_name(UserRole.PRERNA_SAKHI) == "Prerna Sakhi"

    def test_visible_roles(self):
        assert visible_roles(UserRole.ADMIN) == list(UserRole)
        roles = visible_roles(UserRole.PRERAK)
        assert UserRole.PRERAK in roles
        assert UserRole.VOLUNTEER in roles
        assert UserRole.NODAL_OFFICER not in roles

    def test_geographic_scope(self):
        assert geographic_scope(UserRole.ADMIN) == GeographicScope.NATIONAL
        assert geographic_scope(UserRole.ZONE_COORDINATOR) == GeographicScope.ZONE
        assert geographic_scope(UserRole.VOLUNTEER) == GeographicScope.INDIVIDUAL


class TestDashboardFeatures:

    def test_top_of_ladder(self):
        features = dashboard_features(UserRole.CENTRAL_PRESIDENT)
        assert all(features.values())

    def test_volunteer_sees_nothing(self):
        features = dashboard_features(UserRole.VOLUNTEER)
        assert not any(features.values())

    def test_prerak_thresholds(self):
        features = dashboard_features(UserRole.PRERAK)
        assert features["can_view_team"] is True
        assert features["show_performance_metrics"] is True
        assert features["can_view_analytics"] is False
        assert features["can_view_all_states"] is False


class TestHierarchyAssignment:

    def test_valid_parent(self):
        assert hierarchy_assignment_error(UserRole.PRERAK, "Bihar", UserRole.NODAL_OFFICER, "Bihar") is None

    def test_parent_must_outrank(self):
        reason = hierarchy_assignment_error(UserRole.PRERAK, None, UserRole.VOLUNTEER, None)
        assert "cannot be the coordinator" in reason

    def test_state_mismatch(self):
        reason = hierarchy_assignment_error(UserRole.PRERAK, "Bihar", UserRole.NODAL_OFFICER, "Assam")
        assert reason == "Coordinator must belong to the same state"

    def test_state_match_ignores_case_and_whitespace(self):
        assert hierarchy_assignment_error(UserRole.PRERAK, " bihar", UserRole.NODAL_OFFICER, "Bihar ") is None
