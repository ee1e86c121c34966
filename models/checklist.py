# models/checklist.py

from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, Field, field_validator


def item_labels(items: Any) -> List[str]:
    """
    Normalize a stored `items` column into task labels.
    Rows written by older clients hold plain strings or {"text"} /
    {"name"} objects.
    """
    if not isinstance(items, list):
        return []

    labels = []
    for index, item in enumerate(items):
        if isinstance(item, str):
            labels.append(item)
        elif isinstance(item, dict):
            labels.append(item.get("text") or item.get("name") or f"Item {index + 1}")
        else:
            labels.append(f"Item {index + 1}")
    return labels


class ChecklistItem(BaseModel):
    text: str = Field(..., min_length=1, max_length=200)


# -------------------------------------------------
# Create / Update
# -------------------------------------------------
class ChecklistCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    items: List[ChecklistItem] = Field(..., min_length=1)


class ChecklistUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    items: Optional[List[ChecklistItem]] = Field(None, min_length=1)


# -------------------------------------------------
# Read
# -------------------------------------------------
class ChecklistRead(BaseModel):
    id: int
    title: str
    items: List[str] = []
    created_at: Optional[datetime] = None
    site_count: Optional[int] = None

    @field_validator("items", mode="before")
    def normalize_items(cls, v):
        return item_labels(v)
