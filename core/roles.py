# core/roles.py

"""
Role capabilities.

`ROLE_PROFILES` is the one place that says what each role can see:
its home path, its navigation menu, its dashboard metrics and which
sites it may read. Route guarding, dashboard aggregation, navigation
and site scoping all read from it.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Tuple, Union

from core.errors import ForbiddenError
from models.enums import Role


# ============================================================
# Access requirements
# ============================================================
@dataclass(frozen=True)
class NoRequirement:
    """Any authenticated role."""


@dataclass(frozen=True)
class ExactRole:
    role: Role


@dataclass(frozen=True)
class AnyOf:
    roles: FrozenSet[Role]

    def __init__(self, roles: Iterable[Role]):
        object.__setattr__(self, "roles", frozenset(roles))


AccessRequirement = Union[NoRequirement, ExactRole, AnyOf]

NO_REQUIREMENT = NoRequirement()


def can_access(role: Optional[Role], requirement: AccessRequirement) -> bool:
    """
    Decide whether `role` satisfies `requirement`.
    Never raises; anything unrecognised is simply denied.
    """
    if not isinstance(role, Role):
        return False

    if isinstance(requirement, NoRequirement):
        return True
    if isinstance(requirement, ExactRole):
        return role == requirement.role
    if isinstance(requirement, AnyOf):
        return role in requirement.roles

    return False


# ============================================================
# Role dispatch table
# ============================================================
SITE_SCOPE_ALL = "all"
SITE_SCOPE_OWNED = "owned"


@dataclass(frozen=True)
class NavItem:
    title: str
    url: str


@dataclass(frozen=True)
class RoleProfile:
    role: Role
    home_path: str
    menu: Tuple[NavItem, ...]
    dashboard_metrics: Tuple[str, ...]
    site_scope: str
    can_record_visits: bool = False
    can_manage: bool = False
    label: str = field(default="")


DASHBOARD_ITEM = NavItem("Dashboard", "/")

ROLE_PROFILES = {

    # =====================================================
    # ADMIN: manages sites, checklists and users
    # =====================================================
    Role.admin: RoleProfile(
        role=Role.admin,
        home_path="/",
        menu=(
            DASHBOARD_ITEM,
            NavItem("Sites", "/admin/sites"),
            NavItem("Checklists", "/admin/checklists"),
            NavItem("Users", "/admin/users"),
            NavItem("All Visits", "/admin/visits"),
            NavItem("DB Inspector", "/admin/db-inspect"),
        ),
        dashboard_metrics=("sites", "today_visits", "users", "checklists"),
        site_scope=SITE_SCOPE_ALL,
        can_record_visits=True,
        can_manage=True,
        label="Admin",
    ),

    # =====================================================
    # STAFF: field inspectors logging visits
    # =====================================================
    Role.staff: RoleProfile(
        role=Role.staff,
        home_path="/",
        menu=(
            DASHBOARD_ITEM,
            NavItem("My Sites", "/staff/sites"),
            NavItem("Add Visit", "/staff/visits/new"),
            NavItem("Visit History", "/staff/visits"),
        ),
        dashboard_metrics=("sites", "my_visits"),
        site_scope=SITE_SCOPE_ALL,
        can_record_visits=True,
        label="Staff",
    ),

    # =====================================================
    # CLIENT: read-only history for owned sites
    # =====================================================
    Role.client: RoleProfile(
        role=Role.client,
        home_path="/",
        menu=(
            DASHBOARD_ITEM,
            NavItem("My Sites", "/client/sites"),
            NavItem("Visit History", "/client/visits"),
        ),
        dashboard_metrics=("my_sites", "total_visits"),
        site_scope=SITE_SCOPE_OWNED,
        label="Client",
    ),
}


def role_profile(role: Role) -> RoleProfile:
    return ROLE_PROFILES[Role.parse(role)]


def require(user, requirement: AccessRequirement, action: str):
    """Raise ForbiddenError unless `user` satisfies `requirement`."""
    if not can_access(getattr(user, "role", None), requirement):
        raise ForbiddenError(f"Not allowed to {action}")


# Convenience requirements matching the portal's route groups
ADMIN_ONLY = ExactRole(Role.admin)
STAFF_OR_ADMIN = AnyOf([Role.admin, Role.staff])
ANY_ROLE = AnyOf(list(Role))
