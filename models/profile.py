# models/profile.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from .enums import Role


# -------------------------------------------------
# Read (Supabase → API response)
# -------------------------------------------------
class Profile(BaseModel):
    """
    One row of `profiles`. Created by the identity provider on first
    sign-in; the id is the auth user id.
    """
    id: str
    full_name: Optional[str] = None
    role: Role
    created_at: Optional[datetime] = None

    # Stored roles outside the enum are integrity errors, not 422s
    @field_validator("role", mode="before")
    def parse_role(cls, v):
        return Role.parse(v)

    @field_validator("id", mode="before")
    def normalize_id(cls, v):
        return str(v)

    @property
    def first_name(self) -> str:
        if not self.full_name:
            return "User"
        return self.full_name.split(" ")[0]


# -------------------------------------------------
# Update (admin only)
# -------------------------------------------------
class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    role: Optional[Role] = None
