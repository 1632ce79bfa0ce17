"""Script version submission and script response schemas"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

Markup = Literal["html", "markdown", "text"]


class UploadedFile(BaseModel):
    """A file received with a submission, already read into memory"""
    filename: str
    content_type: str | None = None
    content: bytes


class AdditionalInfoSubmission(BaseModel):
    """One localized additional info entry from the version form"""
    locale: str | None = None
    attribute_value: str | None = None
    attribute_default: bool = False
    value_markup: Markup = "html"


class ScriptVersionSubmission(BaseModel):
    """Every field the new-version form can send.

    Screenshots and the code upload travel separately as UploadedFile
    instances.
    """
    # Script fields
    script_type: int = 1
    locale: str | None = None
    language: Literal["js", "css"] = "js"
    adult_content_self_report: bool = False
    not_adult_content_self_report: bool = False
    # Library name/description (libraries may have no meta block)
    name: str | None = None
    description: str | None = None

    # Version fields
    code: str | None = None
    changelog: str | None = None
    changelog_markup: Markup = "text"
    version_check_override: bool = False
    add_missing_version: bool = False
    namespace_check_override: bool = False
    add_missing_namespace: bool = False
    minified_confirmation: bool = False
    sensitive_site_confirmation: bool = False
    not_js_convertible_override: bool = False
    allow_code_previously_posted: bool = False
    additional_info: list[AdditionalInfoSubmission] = Field(default_factory=list)

    # Screenshots carried over from the previous version
    edit_screenshot_captions: list[str] = Field(default_factory=list)
    remove_screenshot_ids: list[int] = Field(default_factory=list)
    screenshot_captions: list[str] = Field(default_factory=list)

    # Form actions
    preview: bool = False
    add_additional_info: bool = False
    recaptcha_token: str | None = None

    @property
    def save_record(self) -> bool:
        return not self.preview and not self.add_additional_info


class ScreenshotResponse(BaseModel):
    id: int | None = None
    filename: str
    caption: str | None = None

    class Config:
        from_attributes = True


class AdditionalInfoResponse(BaseModel):
    locale: str | None = None
    attribute_value: str | None = None
    attribute_default: bool = False
    value_markup: str = "html"

    class Config:
        from_attributes = True


class ScriptResponse(BaseModel):
    """Script with fields derived from its newest version"""
    id: int
    name: str | None
    description: str | None
    namespace: str | None
    version: str | None
    script_type: int
    language: str
    locale: str | None
    review_state: str
    locked: bool
    additional_info: str | None
    additional_info_markup: str
    code_updated_at: datetime | None
    created_at: datetime

    class Config:
        from_attributes = True


class VersionSummaryResponse(BaseModel):
    """One entry of a script's version history"""
    id: int
    version: str | None
    changelog: str | None
    changelog_markup: str
    created_at: datetime

    class Config:
        from_attributes = True


class NewVersionFormResponse(BaseModel):
    """Defaults for the new-version form"""
    script_id: int | None
    language: str
    code: str
    not_js_convertible_override: bool
    additional_info: list[AdditionalInfoResponse]
    current_screenshots: list[ScreenshotResponse]


class DeleteVersionRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)
