"""Moderation request/response schemas"""

from datetime import datetime

from pydantic import BaseModel, Field


class BanRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)
    private_reason: str | None = Field(None, max_length=2000)
    ban_related: bool = True


class BanResponse(BaseModel):
    banned_user_ids: list[int]


class ReportResponse(BaseModel):
    id: int
    item_type: str
    item_id: int
    reporter_id: int | None
    reported_user_id: int | None
    reason: str
    result: str | None
    resolved_at: datetime | None

    class Config:
        from_attributes = True


class ReportStats(BaseModel):
    pending: int
    dismissed: int
    upheld: int
