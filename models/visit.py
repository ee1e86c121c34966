# models/visit.py

from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from .enums import CompletionGrade


# -------------------------------------------------
# Checklist completion captured during a visit
# -------------------------------------------------
class ChecklistItemResult(BaseModel):
    text: str = Field(..., min_length=1, max_length=200)
    completed: bool = False
    notes: Optional[str] = Field(None, max_length=500)


# -------------------------------------------------
# Structured view of a visit's report body
# -------------------------------------------------
GRADE_LABELS = {
    CompletionGrade.complete: "Complete",
    CompletionGrade.mostly_done: "Mostly Done",
    CompletionGrade.partial: "Partial",
    CompletionGrade.started: "Started",
}


class VisitReport(BaseModel):
    checklist_title: Optional[str] = None
    total: int = 0
    completed: int = 0
    percentage: Optional[int] = None
    grade: CompletionGrade = CompletionGrade.no_data
    format_version: int = 0

    # Only populated when built from live input, never by decoding
    items: List[ChecklistItemResult] = []

    @property
    def label(self) -> str:
        if self.grade is CompletionGrade.no_data:
            return "No data"
        return f"{GRADE_LABELS[self.grade]} ({self.completed}/{self.total})"


# -------------------------------------------------
# Create (staff / admin)
# -------------------------------------------------
class VisitCreate(BaseModel):
    """
    Visits are immutable once created; there is no update model.
    Item results are matched to the site's checklist by label; checklist
    items without a result are recorded as incomplete.
    """
    site_id: int = Field(..., gt=0)
    visit_date: date
    visit_checkin_time: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=1000)
    items: Optional[List[ChecklistItemResult]] = None


# -------------------------------------------------
# Read
# -------------------------------------------------
class VisitRead(BaseModel):
    id: int
    site_id: int
    profile_id: str
    checklist_id: Optional[int] = None
    visit_date: date
    visit_checkin_time: Optional[datetime] = None
    visit_checkout_time: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    site_name: Optional[str] = None
    site_address: Optional[str] = None
    staff_name: Optional[str] = None
    checklist_title: Optional[str] = None
    report: VisitReport = Field(default_factory=VisitReport)

    @field_validator("visit_checkin_time", "visit_checkout_time", "created_at", mode="before")
    def normalize_timestamps(cls, v):
        if isinstance(v, str) and v.endswith("Z"):
            return v.replace("Z", "+00:00")
        return v


class SiteVisitStats(BaseModel):
    site_id: int
    total_visits: int
    last_visit: Optional[date] = None
