"""Pydantic schemas for request/response validation"""

from scripthub.schemas.common import ErrorResponse, MessageResponse
from scripthub.schemas.user import UserResponse, PostingPermissionResponse
from scripthub.schemas.script_version import (
    UploadedFile,
    AdditionalInfoSubmission,
    ScriptVersionSubmission,
    ScreenshotResponse,
    AdditionalInfoResponse,
    ScriptResponse,
    NewVersionFormResponse,
    DeleteVersionRequest,
)
from scripthub.schemas.moderation import (
    BanRequest,
    BanResponse,
    ReportResponse,
    ReportStats,
)

__all__ = [
    # Common
    "ErrorResponse",
    "MessageResponse",
    # User
    "UserResponse",
    "PostingPermissionResponse",
    # Script versions
    "UploadedFile",
    "AdditionalInfoSubmission",
    "ScriptVersionSubmission",
    "ScreenshotResponse",
    "AdditionalInfoResponse",
    "ScriptResponse",
    "NewVersionFormResponse",
    "DeleteVersionRequest",
    # Moderation
    "BanRequest",
    "BanResponse",
    "ReportResponse",
    "ReportStats",
]
