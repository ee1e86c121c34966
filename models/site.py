# models/site.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, computed_field, field_validator

from .enums import VisitDay


UNASSIGNED_LABEL = "Unassigned"
NO_CHECKLIST_LABEL = "No checklist"

TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9](:[0-5][0-9])?$"


# -------------------------------------------------
# Shared fields
# -------------------------------------------------
class SiteBase(BaseModel):
    site_name: str = Field(..., min_length=1, max_length=100)
    site_address: str = Field(..., min_length=1, max_length=200)
    visit_day: VisitDay
    visit_time: str = Field(..., pattern=TIME_PATTERN)


# -------------------------------------------------
# Create
# -------------------------------------------------
class SiteCreate(SiteBase):
    """
    Owner and checklist are both optional weak references.
    No ID supplied; Supabase generates it.
    """
    profile_id: Optional[str] = None
    checklist_id: Optional[int] = None


# -------------------------------------------------
# Update (PATCH semantics via exclude_unset)
# -------------------------------------------------
class SiteUpdate(BaseModel):
    site_name: Optional[str] = Field(None, min_length=1, max_length=100)
    site_address: Optional[str] = Field(None, min_length=1, max_length=200)
    visit_day: Optional[VisitDay] = None
    visit_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    profile_id: Optional[str] = None
    checklist_id: Optional[int] = None


# -------------------------------------------------
# Denormalized read view
# -------------------------------------------------
class ChecklistRef(BaseModel):
    id: int
    title: str


class SiteView(BaseModel):
    """
    A site together with its owner's name and assigned checklist.
    Produced by core.relational_resolver whichever query path was used.
    """
    id: int
    site_name: str
    site_address: Optional[str] = None
    profile_id: Optional[str] = None
    checklist_id: Optional[int] = None
    visit_day: Optional[VisitDay] = None
    visit_time: Optional[str] = None
    created_at: Optional[datetime] = None

    owner_name: Optional[str] = None
    checklist: Optional[ChecklistRef] = None

    @field_validator("created_at", mode="before")
    def normalize_created_at(cls, v):
        if isinstance(v, str) and v.endswith("Z"):
            return v.replace("Z", "+00:00")
        return v

    @computed_field
    @property
    def owner_label(self) -> str:
        return self.owner_name or UNASSIGNED_LABEL

    @computed_field
    @property
    def checklist_label(self) -> str:
        return self.checklist.title if self.checklist else NO_CHECKLIST_LABEL
