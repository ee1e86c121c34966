# core/route_guard.py

"""
Route guard.

`evaluate()` is a pure function of the caller's session state and the
route's declared requirement. The order of checks matters: an
unresolved session or a profile that has not loaded yet is Pending,
never a login redirect or an access denial.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from core.roles import (
    ADMIN_ONLY,
    ANY_ROLE,
    NO_REQUIREMENT,
    STAFF_OR_ADMIN,
    AccessRequirement,
    can_access,
    role_profile,
)
from models.profile import Profile


LOGIN_PATH = "/auth"


# ============================================================
# Session state
# ============================================================
class SessionStatus(str, Enum):
    unknown = "unknown"
    unauthenticated = "unauthenticated"
    authenticated = "authenticated"


@dataclass(frozen=True)
class SessionState:
    status: SessionStatus
    user_id: Optional[str] = None
    profile: Optional[Profile] = None

    @classmethod
    def unknown(cls) -> "SessionState":
        return cls(SessionStatus.unknown)

    @classmethod
    def unauthenticated(cls) -> "SessionState":
        return cls(SessionStatus.unauthenticated)

    @classmethod
    def authenticated(cls, user_id: str, profile: Optional[Profile] = None) -> "SessionState":
        return cls(SessionStatus.authenticated, user_id=user_id, profile=profile)


# ============================================================
# Guard decisions
# ============================================================
class GuardOutcome(str, Enum):
    allow = "allow"
    pending = "pending"
    redirect_to_login = "redirect_to_login"
    redirect_to_home = "redirect_to_home"


@dataclass(frozen=True)
class GuardDecision:
    outcome: GuardOutcome
    redirect_to: Optional[str] = None
    return_to: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.outcome is GuardOutcome.allow

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "redirect_to": self.redirect_to,
            "return_to": self.return_to,
        }


ALLOW = GuardDecision(GuardOutcome.allow)
PENDING = GuardDecision(GuardOutcome.pending)


def evaluate(
    session: SessionState,
    requirement: AccessRequirement,
    requested_path: Optional[str] = None,
) -> GuardDecision:
    if session.status is SessionStatus.unknown:
        return PENDING

    if session.status is SessionStatus.unauthenticated:
        return GuardDecision(
            GuardOutcome.redirect_to_login,
            redirect_to=LOGIN_PATH,
            return_to=requested_path,
        )

    if session.profile is None:
        return PENDING

    if not can_access(session.profile.role, requirement):
        return GuardDecision(
            GuardOutcome.redirect_to_home,
            redirect_to=role_profile(session.profile.role).home_path,
        )

    return ALLOW


# ============================================================
# Route declarations
# ============================================================
# Exact paths win; otherwise the longest matching "/prefix/" applies.
ROUTE_REQUIREMENTS = {
    "/": NO_REQUIREMENT,
    "/admin/": ADMIN_ONLY,
    "/staff/": STAFF_OR_ADMIN,
    "/client/": ANY_ROLE,
}


def requirement_for(path: str, routes: Optional[dict] = None) -> AccessRequirement:
    """Resolve the declared requirement for `path`."""
    routes = ROUTE_REQUIREMENTS if routes is None else routes
    normalized = path if path == "/" else path.rstrip("/")

    if normalized in routes:
        return routes[normalized]

    best = None
    for prefix in routes:
        if prefix.endswith("/") and prefix != "/" and (normalized + "/").startswith(prefix):
            if best is None or len(prefix) > len(best):
                best = prefix

    if best is not None:
        return routes[best]

    return NO_REQUIREMENT
