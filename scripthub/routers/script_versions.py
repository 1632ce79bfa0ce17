"""Script versions router: posting new versions and deleting old ones"""

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from scripthub.db import get_db
from scripthub.models import User
from scripthub.schemas.common import MessageResponse
from scripthub.schemas.script_version import (
    AdditionalInfoSubmission,
    DeleteVersionRequest,
    NewVersionFormResponse,
    ScriptResponse,
    ScriptVersionSubmission,
    UploadedFile,
    VersionSummaryResponse,
)
from scripthub.services.firebase import get_current_user, get_optional_user
from scripthub.services.publication import PublicationRejected, publication_service
from scripthub.services.script_state import script_state_service
from scripthub.services.version_deletion import version_deletion_service
from scripthub.utils.response_utils import success, validation_error

router = APIRouter(prefix="/scripts", tags=["Script Versions"])

additional_info_adapter = TypeAdapter(list[AdditionalInfoSubmission])


def submission_form(
    script_type: int = Form(1),
    locale: str | None = Form(None),
    language: str = Form("js"),
    adult_content_self_report: bool = Form(False),
    not_adult_content_self_report: bool = Form(False),
    name: str | None = Form(None),
    description: str | None = Form(None),
    code: str | None = Form(None),
    changelog: str | None = Form(None),
    changelog_markup: str = Form("text"),
    version_check_override: bool = Form(False),
    add_missing_version: bool = Form(False),
    namespace_check_override: bool = Form(False),
    add_missing_namespace: bool = Form(False),
    minified_confirmation: bool = Form(False),
    sensitive_site_confirmation: bool = Form(False),
    not_js_convertible_override: bool = Form(False),
    allow_code_previously_posted: bool = Form(False),
    additional_info: str = Form("[]", description="JSON list of additional info entries"),
    edit_screenshot_captions: list[str] = Form([]),
    remove_screenshot_ids: list[int] = Form([]),
    screenshot_captions: list[str] = Form([]),
    preview: bool = Form(False),
    add_additional_info: bool = Form(False),
    recaptcha_token: str | None = Form(None, alias="g-recaptcha-response"),
) -> ScriptVersionSubmission:
    """Multipart form fields as a ScriptVersionSubmission"""
    try:
        return ScriptVersionSubmission(
            script_type=script_type,
            locale=locale,
            language=language,
            adult_content_self_report=adult_content_self_report,
            not_adult_content_self_report=not_adult_content_self_report,
            name=name,
            description=description,
            code=code,
            changelog=changelog,
            changelog_markup=changelog_markup,
            version_check_override=version_check_override,
            add_missing_version=add_missing_version,
            namespace_check_override=namespace_check_override,
            add_missing_namespace=add_missing_namespace,
            minified_confirmation=minified_confirmation,
            sensitive_site_confirmation=sensitive_site_confirmation,
            not_js_convertible_override=not_js_convertible_override,
            allow_code_previously_posted=allow_code_previously_posted,
            additional_info=additional_info_adapter.validate_json(additional_info),
            edit_screenshot_captions=edit_screenshot_captions,
            remove_screenshot_ids=remove_screenshot_ids,
            screenshot_captions=screenshot_captions,
            preview=preview,
            add_additional_info=add_additional_info,
            recaptcha_token=recaptcha_token,
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))


async def read_upload(upload: UploadFile | None) -> UploadedFile | None:
    """Read a form file into memory. Empty file inputs count as no upload."""
    if upload is None or not upload.filename:
        return None
    return UploadedFile(
        filename=upload.filename,
        content_type=upload.content_type,
        content=await upload.read(),
    )


def rejection_response(rejection: PublicationRejected) -> JSONResponse:
    """422 with field errors and redisplay state, or 200 for previews."""
    details = {
        "errors": rejection.errors,
        "script_id": rejection.script_id,
        "script_type": rejection.script_type,
        "code": rejection.code,
        "current_screenshots": [s.model_dump(mode="json") for s in rejection.current_screenshots],
        "additional_info": [a.model_dump(mode="json") for a in rejection.additional_info],
    }
    if not rejection.errors:
        return JSONResponse(status_code=status.HTTP_200_OK, content=success(details, "Not saved"))

    message = "The uploaded file is not valid UTF-8" if rejection.encoding_error else "The version was not saved"
    return validation_error(message, details)


async def _create_version(
    request: Request,
    db: AsyncSession,
    user: User,
    submission: ScriptVersionSubmission,
    code_upload: UploadFile | None,
    screenshots: list[UploadFile],
    script_id: int | None = None,
):
    uploads = [await read_upload(s) for s in screenshots]
    result = await publication_service.create_version(
        db,
        user,
        submission,
        code_upload=await read_upload(code_upload),
        screenshot_uploads=[u for u in uploads if u is not None],
        script_id=script_id,
        remote_ip=request.client.host if request.client else None,
    )
    if isinstance(result, PublicationRejected):
        return rejection_response(result)

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=ScriptResponse.model_validate(result.script).model_dump(mode="json"),
    )


@router.get("/versions/new", response_model=NewVersionFormResponse)
async def new_script_form(
    language: str = "js",
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Form defaults for posting a new script.

    Returns 403 unless the account may post.
    """
    return await publication_service.new_version_form(db, user, language=language)


@router.get("/{script_id}/versions", response_model=list[VersionSummaryResponse])
async def list_versions(
    script_id: int,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Version history, newest first. No sign-in needed.

    Deleted scripts answer 404 except to their authors and moderators.
    """
    versions = await script_state_service.list_versions(db, script_id, viewer)
    return [VersionSummaryResponse.model_validate(v) for v in versions]


@router.get("/{script_id}/versions/new", response_model=NewVersionFormResponse)
async def new_version_form(
    script_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Form defaults for a new version, prefilled from the newest one."""
    return await publication_service.new_version_form(db, user, script_id=script_id)


@router.post(
    "/versions",
    response_model=ScriptResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"description": "Not saved; errors and form state in error.details"}},
)
async def create_script(
    request: Request,
    submission: ScriptVersionSubmission = Depends(submission_form),
    code_upload: UploadFile | None = File(None),
    screenshots: list[UploadFile] = File([]),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Post a new script with its first version."""
    return await _create_version(request, db, user, submission, code_upload, screenshots)


@router.post(
    "/{script_id}/versions",
    response_model=ScriptResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"description": "Not saved; errors and form state in error.details"}},
)
async def create_version(
    script_id: int,
    request: Request,
    submission: ScriptVersionSubmission = Depends(submission_form),
    code_upload: UploadFile | None = File(None),
    screenshots: list[UploadFile] = File([]),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Post a new version of an existing script."""
    return await _create_version(request, db, user, submission, code_upload, screenshots, script_id)


@router.delete("/{script_id}/versions/{version_id}", response_model=MessageResponse)
async def delete_version(
    script_id: int,
    version_id: int,
    payload: DeleteVersionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete one version of a script (moderators only).

    Returns 409 if it is the script's only version.
    """
    notice = await version_deletion_service.delete_version(
        db, version_id, user, payload.reason, script_id=script_id
    )
    return MessageResponse(message=notice)
