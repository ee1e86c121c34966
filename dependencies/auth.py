from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from core.identity import IdentityProvider
from core.roles import NO_REQUIREMENT, AccessRequirement
from core.route_guard import GuardDecision, GuardOutcome, SessionState, evaluate
from core.supabase_client import get_supabase_client
from models.profile import Profile


bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================
# Current User Model
# ============================================================
class CurrentUser(Profile):
    """The authenticated caller's profile row."""


# ============================================================
# SESSION RESOLUTION (Supabase: validates JWT + loads profile)
# ============================================================
async def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    client=Depends(get_supabase_client),
) -> SessionState:
    token = credentials.credentials if credentials else None
    return await IdentityProvider(client).resolve_session(token)


# ============================================================
# Guard decision → HTTP
# ============================================================
def raise_for_decision(decision: GuardDecision, requirement: AccessRequirement = NO_REQUIREMENT):
    if decision.outcome is GuardOutcome.allow:
        return

    if decision.outcome is GuardOutcome.redirect_to_login:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if decision.outcome is GuardOutcome.pending:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Profile not available yet",
            headers={"Retry-After": "1"},
        )

    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=f"Insufficient role: {describe_requirement(requirement)} required",
    )


def describe_requirement(requirement: AccessRequirement) -> str:
    roles = getattr(requirement, "roles", None)
    if roles is not None:
        return "one of " + ", ".join(sorted(r.value for r in roles))
    role = getattr(requirement, "role", None)
    if role is not None:
        return role.value
    return "authentication"


async def get_current_user(
    session: SessionState = Depends(get_current_session),
) -> CurrentUser:
    raise_for_decision(evaluate(session, NO_REQUIREMENT))
    return CurrentUser(**session.profile.model_dump())


# ============================================================
# ROLE CHECKER (same rules as the route guard)
# ============================================================
def requires_access(requirement: AccessRequirement):
    """
    Usage:
        @router.post("/", dependencies=[Depends(requires_access(ADMIN_ONLY))])
    """

    async def checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        session = SessionState.authenticated(current_user.id, current_user)
        raise_for_decision(evaluate(session, requirement), requirement)
        return current_user

    return checker
