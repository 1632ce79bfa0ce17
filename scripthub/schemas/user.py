"""User schemas for responses"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

PostingPermission = Literal["allowed", "needs_confirmation", "blocked"]


class UserResponse(BaseModel):
    """User basic response"""
    id: int
    name: str
    banned_at: datetime | None
    trusted_reports: bool
    created_at: datetime

    class Config:
        from_attributes = True


class PostingPermissionResponse(BaseModel):
    posting_permission: PostingPermission
    allow_posting_profile: bool


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    locale: str | None = Field(None, max_length=10)
