from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# ROLE
# -----------------------------------------------------
class Role(BaseStrEnum):
    """Closed set of portal roles. Anything else is a data error."""

    admin = "admin"
    staff = "staff"
    client = "client"

    @classmethod
    def parse(cls, value) -> "Role":
        """
        Convert a stored role value into a Role.
        Raises UnknownRoleError instead of inventing a new role.
        """
        from core.errors import UnknownRoleError

        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownRoleError(value) from None


# -----------------------------------------------------
# VISIT DAY
# -----------------------------------------------------
class VisitDay(BaseStrEnum):
    """Weekly recurrence day for a site's scheduled visit."""

    mon = "mon"
    tue = "tue"
    wed = "wed"
    thu = "thu"
    fri = "fri"
    sat = "sat"
    sun = "sun"

    @classmethod
    def for_date(cls, value) -> "VisitDay":
        return list(cls)[value.weekday()]


# -----------------------------------------------------
# COMPLETION GRADE
# -----------------------------------------------------
class CompletionGrade(BaseStrEnum):
    """Grade derived from a visit report's completed/total line."""

    complete = "complete"
    mostly_done = "mostly-done"
    partial = "partial"
    started = "started"
    no_data = "no-data"
