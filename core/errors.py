# core/errors.py

from typing import Optional

from fastapi import HTTPException
from postgrest.exceptions import APIError


# ============================================================
# Error taxonomy
# ============================================================
class PortalError(Exception):
    """Base class for errors raised by the portal core."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class QueryFailure(PortalError):
    """
    Any datastore error that is not a relationship ambiguity.
    The original exception is kept on `cause` (and chained via `from`).
    """

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        detail = extract_supabase_error(cause) if cause is not None else "unknown error"
        super().__init__(f"{operation}: {detail}")
        self.operation = operation
        self.cause = cause


class NotFoundError(PortalError):
    status_code = 404


class InvalidInputError(PortalError):
    """Well-formed input that does not fit the stored data it refers to."""

    status_code = 400


class ForbiddenError(PortalError):
    """Authenticated, but the caller's role does not allow the operation."""

    status_code = 403


class IntegrityViolation(PortalError):
    """
    A mutation that would break a referential rule. Rejected before the
    mutation is attempted.
    """

    status_code = 409

    def __init__(self, message: str, referencing_count: Optional[int] = None):
        super().__init__(message)
        self.referencing_count = referencing_count


class UnknownRoleError(IntegrityViolation):
    """A stored role value outside admin / staff / client."""

    status_code = 500

    def __init__(self, value):
        super().__init__(f"Unknown role value: {value!r}")
        self.value = value


# ============================================================
# Supabase error helpers
# ============================================================
AMBIGUITY_CODES = {"PGRST200", "PGRST201"}

AMBIGUITY_MESSAGES = (
    "more than one relationship",
    "could not embed",
    "could not find a relationship",
)


def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: PostgREST / GoTrue errors expose .message
    message = getattr(error, "message", None)
    if message:
        return str(message)

    # Case 2: errors with args (common)
    if getattr(error, "args", None):
        return str(error.args[0])

    # Case 3: Plain string fallback
    return str(error) or error.__class__.__name__


def is_relationship_ambiguity(error: BaseException) -> bool:
    """
    True when PostgREST rejected an embedded resource because the join
    path between two tables is ambiguous or missing. Only PostgREST
    errors qualify; anything else is a plain query failure.
    """
    if not isinstance(error, APIError):
        return False

    if error.code in AMBIGUITY_CODES:
        return True

    detail = extract_supabase_error(error).lower()
    return any(fragment in detail for fragment in AMBIGUITY_MESSAGES)


def handle_supabase_error(error: Exception, operation: str = "Database operation", status_code: int = 500) -> HTTPException:
    """
    Handle Supabase errors with consistent formatting.
    Returns HTTPException (doesn't raise) so caller can customize or re-raise.

    Args:
        error: The exception that occurred
        operation: Description of what operation failed (e.g., "Failed to create site")
        status_code: HTTP status code (default 500)

    Returns:
        HTTPException with standardized error message
    """
    from core.logging_config import logger

    cause = error.cause if isinstance(error, QueryFailure) and error.cause is not None else error
    error_detail = extract_supabase_error(cause)
    logger.error(f"{operation}: {error_detail}")

    # Provide user-friendly messages for common errors
    error_lower = error_detail.lower()
    if "duplicate" in error_lower or "unique" in error_lower:
        return HTTPException(status_code=400, detail=f"{operation}: Record already exists")
    elif "foreign key" in error_lower or "violates foreign key" in error_lower:
        return HTTPException(status_code=400, detail=f"{operation}: Invalid reference")
    elif "not found" in error_lower or "does not exist" in error_lower:
        return HTTPException(status_code=404, detail=f"{operation}: Resource not found")
    else:
        return HTTPException(status_code=status_code, detail=operation)
