"""
Coordinator hierarchy
=====================

Every role has a numeric level; a LOWER level means a HIGHER rank.
ADMIN (0) outranks everyone and DONOR sits below the whole ladder.

An actor may approve, manage or assign targets to a user only when the
actor's level is strictly lower than the user's, or the actor is ADMIN.
"""

import enum
from typing import Dict, List, Optional


class UserRole(str, enum.Enum):
    """User roles, highest rank first"""
    ADMIN = "ADMIN"
    CENTRAL_PRESIDENT = "CENTRAL_PRESIDENT"
    STATE_PRESIDENT = "STATE_PRESIDENT"
    STATE_COORDINATOR = "STATE_COORDINATOR"
    ZONE_COORDINATOR = "ZONE_COORDINATOR"
    DISTRICT_PRESIDENT = "DISTRICT_PRESIDENT"
    DISTRICT_COORDINATOR = "DISTRICT_COORDINATOR"
    BLOCK_COORDINATOR = "BLOCK_COORDINATOR"
    NODAL_OFFICER = "NODAL_OFFICER"
    PRERAK = "PRERAK"
    PRERNA_SAKHI = "PRERNA_SAKHI"
    VOLUNTEER = "VOLUNTEER"
    DONOR = "DONOR"


class GeographicScope(str, enum.Enum):
    NATIONAL = "NATIONAL"
    STATE = "STATE"
    ZONE = "ZONE"
    DISTRICT = "DISTRICT"
    BLOCK = "BLOCK"
    PANCHAYAT = "PANCHAYAT"
    GRAM_SABHA = "GRAM_SABHA"
    REVENUE_VILLAGE = "REVENUE_VILLAGE"
    INDIVIDUAL = "INDIVIDUAL"


ROLE_HIERARCHY: Dict[UserRole, int] = {
    UserRole.ADMIN: 0,
    UserRole.CENTRAL_PRESIDENT: 1,
    UserRole.STATE_PRESIDENT: 2,
    UserRole.STATE_COORDINATOR: 3,
    UserRole.ZONE_COORDINATOR: 4,
    UserRole.DISTRICT_PRESIDENT: 5,
    UserRole.DISTRICT_COORDINATOR: 6,
    UserRole.BLOCK_COORDINATOR: 7,
    UserRole.NODAL_OFFICER: 8,
    UserRole.PRERAK: 9,
    UserRole.PRERNA_SAKHI: 10,
    UserRole.VOLUNTEER: 11,
    UserRole.DONOR: 12,
}

# Level names stored on targets and commission logs
HIERARCHY_LEVEL_NAMES: Dict[UserRole, str] = {
    UserRole.ADMIN: "national",
    UserRole.CENTRAL_PRESIDENT: "national",
    UserRole.STATE_PRESIDENT: "state",
    UserRole.STATE_COORDINATOR: "state_coord",
    UserRole.ZONE_COORDINATOR: "zone",
    UserRole.DISTRICT_PRESIDENT: "district_pres",
    UserRole.DISTRICT_COORDINATOR: "district_coord",
    UserRole.BLOCK_COORDINATOR: "block",
    UserRole.NODAL_OFFICER: "nodal",
    UserRole.PRERAK: "prerak",
    UserRole.PRERNA_SAKHI: "prerna",
    UserRole.VOLUNTEER: "volunteer",
    UserRole.DONOR: "donor",
}

ROLE_DISPLAY_NAMES: Dict[UserRole, str] = {
    UserRole.ADMIN: "Admin",
    UserRole.CENTRAL_PRESIDENT: "National",
    UserRole.STATE_PRESIDENT: "State",
    UserRole.STATE_COORDINATOR: "State Coordinator",
    UserRole.ZONE_COORDINATOR: "Zone",
    UserRole.DISTRICT_PRESIDENT: "District President",
    UserRole.DISTRICT_COORDINATOR: "District Coordinator",
    UserRole.BLOCK_COORDINATOR: "Block",
    UserRole.NODAL_OFFICER: "Nodal",
    UserRole.PRERAK: "Prerak",
    UserRole.PRERNA_SAKHI: "Prerna Sakhi",
    UserRole.VOLUNTEER: "Volunteer",
    UserRole.DONOR: "Donor",
}

# Two/three letter prefixes for personal referral codes
REFERRAL_PREFIXES: Dict[UserRole, str] = {
    UserRole.ADMIN: "AD",
    UserRole.CENTRAL_PRESIDENT: "CP",
    UserRole.STATE_PRESIDENT: "SP",
    UserRole.STATE_COORDINATOR: "SC",
    UserRole.ZONE_COORDINATOR: "ZC",
    UserRole.DISTRICT_PRESIDENT: "DP",
    UserRole.DISTRICT_COORDINATOR: "DC",
    UserRole.BLOCK_COORDINATOR: "BC",
    UserRole.NODAL_OFFICER: "NO",
    UserRole.PRERAK: "PR",
    UserRole.PRERNA_SAKHI: "PS",
    UserRole.VOLUNTEER: "VL",
    UserRole.DONOR: "DN",
}

_SCOPES: Dict[UserRole, GeographicScope] = {
    UserRole.ADMIN: GeographicScope.NATIONAL,
    UserRole.CENTRAL_PRESIDENT: GeographicScope.NATIONAL,
    UserRole.STATE_PRESIDENT: GeographicScope.STATE,
    UserRole.STATE_COORDINATOR: GeographicScope.STATE,
    UserRole.ZONE_COORDINATOR: GeographicScope.ZONE,
    UserRole.DISTRICT_PRESIDENT: GeographicScope.DISTRICT,
    UserRole.DISTRICT_COORDINATOR: GeographicScope.DISTRICT,
    UserRole.BLOCK_COORDINATOR: GeographicScope.BLOCK,
    UserRole.NODAL_OFFICER: GeographicScope.PANCHAYAT,
    UserRole.PRERAK: GeographicScope.GRAM_SABHA,
    UserRole.PRERNA_SAKHI: GeographicScope.REVENUE_VILLAGE,
    UserRole.VOLUNTEER: GeographicScope.INDIVIDUAL,
    UserRole.DONOR: GeographicScope.INDIVIDUAL,
}

# Roles that may sign up without approval
SELF_ACTIVATING_ROLES = {UserRole.VOLUNTEER, UserRole.DONOR}


def _as_role(role) -> UserRole:
    return role if isinstance(role, UserRole) else UserRole(role)


def role_level(role) -> int:
    return ROLE_HIERARCHY[_as_role(role)]


def can_manage(actor_role, target_role) -> bool:
    """True when the actor may approve / manage / assign to the target role"""
    actor = _as_role(actor_role)
    if actor == UserRole.ADMIN:
        return True
    if actor == UserRole.DONOR:
        return False
    return role_level(actor) < role_level(target_role)


def is_coordinator(role) -> bool:
    """Any role that can hold a team (everything except volunteers and donors)"""
    return role_level(role) < ROLE_HIERARCHY[UserRole.VOLUNTEER]


def hierarchy_level_name(role) -> str:
    return HIERARCHY_LEVEL_NAMES[_as_role(role)]


def role_display_name(role) -> str:
    return ROLE_DISPLAY_NAMES[_as_role(role)]


def visible_roles(role) -> List[UserRole]:
    """The role itself and every role ranked below it"""
    actor = _as_role(role)
    if actor == UserRole.ADMIN:
        return list(UserRole)
    level = role_level(actor)
    return [r for r, lvl in ROLE_HIERARCHY.items() if lvl >= level]


def geographic_scope(role) -> GeographicScope:
    return _SCOPES[_as_role(role)]


def dashboard_features(role) -> Dict[str, bool]:
    """Which dashboard panels a role gets"""
    actor = _as_role(role)
    level = role_level(actor)
    return {
        "can_view_team": level <= 10,
        "can_view_analytics": level <= 8,
        "can_manage_users": level <= 7,
        "can_export_data": level <= 5,
        "can_generate_reports": level <= 6,
        "show_hierarchy_tree": level <= 4,
        "show_performance_metrics": level <= 9,
        "can_view_all_states": actor in (UserRole.CENTRAL_PRESIDENT, UserRole.ADMIN),
    }


def hierarchy_assignment_error(role, state: Optional[str], parent_role, parent_state: Optional[str]) -> Optional[str]:
    """
    Reason a user may not sit under the given parent, or None when valid.

    The parent must outrank the user, and when both carry a state the
    states must match.
    """
    if role_level(parent_role) >= role_level(role):
        return (
            f"{role_display_name(parent_role)} cannot be the coordinator of "
            f"{role_display_name(role)}"
        )
    if state and parent_state and state.strip().lower() != parent_state.strip().lower():
        return "Coordinator must belong to the same state"
    return None
