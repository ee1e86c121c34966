
# -------------------------
# Enums
# -------------------------
from .enums import (
    Role,
    VisitDay,
    CompletionGrade,
)

# -------------------------
# Profile Models
# -------------------------
from .profile import (
    Profile,
    ProfileUpdate,
)

# -------------------------
# Site Models
# -------------------------
from .site import (
    SiteBase,
    SiteCreate,
    SiteUpdate,
    SiteView,
    ChecklistRef,
)

# -------------------------
# Checklist Models
# -------------------------
from .checklist import (
    ChecklistItem,
    ChecklistCreate,
    ChecklistUpdate,
    ChecklistRead,
)

# -------------------------
# Visit Models
# -------------------------
from .visit import (
    ChecklistItemResult,
    VisitReport,
    VisitCreate,
    VisitRead,
    SiteVisitStats,
)

__all__ = [
    # enums
    "Role",
    "VisitDay",
    "CompletionGrade",

    # profiles
    "Profile",
    "ProfileUpdate",

    # sites
    "SiteBase",
    "SiteCreate",
    "SiteUpdate",
    "SiteView",
    "ChecklistRef",

    # checklists
    "ChecklistItem",
    "ChecklistCreate",
    "ChecklistUpdate",
    "ChecklistRead",

    # visits
    "ChecklistItemResult",
    "VisitReport",
    "VisitCreate",
    "VisitRead",
    "SiteVisitStats",
]
