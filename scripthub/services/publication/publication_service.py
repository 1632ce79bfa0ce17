"""Script version publication workflow.

create_version() takes a submission from Draft to either Persisted (the
version and its script are committed together) or Rejected (nothing is
written and the caller gets the errors plus what it needs to show the form
again). Every rejection happens before the first flush.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from scripthub.config import settings
from scripthub.db.database import get_db_session
from scripthub.errors import ForbiddenError, NotFoundError
from scripthub.models.script import Author, ReviewState, Script
from scripthub.models.script_version import LocalizedScriptVersionAttribute, Screenshot, ScriptVersion
from scripthub.models.user import User
from scripthub.schemas.script_version import (
    AdditionalInfoResponse,
    AdditionalInfoSubmission,
    NewVersionFormResponse,
    ScreenshotResponse,
    ScriptVersionSubmission,
    UploadedFile,
)
from scripthub.services.accounts import account_service
from scripthub.services.captcha import captcha_service
from scripthub.services.content_validation import content_validation_service
from scripthub.services.content_validation.content_validation_service import truncate_filename
from scripthub.services.email_checking import email_checking_service
from scripthub.services.moderation import moderation_service
from scripthub.services.posting_permission import PostingPermission, posting_permission_service
from scripthub.services.scheduler import scheduler_service
from scripthub.services.script_checking import Verdict, script_checking_service
from scripthub.services.script_state import script_state_service
from scripthub.services.storage import storage_service
from scripthub.utils.sentry_utils import wrap_with_sentry

logger = logging.getLogger(__name__)

CAPTCHA_FAILED_MESSAGE = "Please complete the captcha."


@dataclass
class AdditionalInfoPlan:
    """Changes turning a version's current additional info into the submitted set.

    keep holds existing entries the submission repeats unchanged, add the
    new or changed ones, remove everything else.
    """

    keep: list = field(default_factory=list)
    add: list[AdditionalInfoSubmission] = field(default_factory=list)
    remove: list = field(default_factory=list)


def _same_additional_info(attribute, entry: AdditionalInfoSubmission) -> bool:
    return (
        attribute.locale == entry.locale
        and (attribute.attribute_value or "") == (entry.attribute_value or "")
        and bool(attribute.attribute_default) == entry.attribute_default
        and attribute.value_markup == entry.value_markup
    )


def plan_additional_info(
    existing: list,
    submitted: list[AdditionalInfoSubmission],
    save_record: bool,
    default_locale: str | None = None,
) -> AdditionalInfoPlan:
    """Diff existing additional info against a submission.

    Entries without a locale take default_locale. When the submission will
    be saved, blank entries are skipped; otherwise they stay so the form can
    show an empty field. Existing entries the submission omits are removed.
    """
    plan = AdditionalInfoPlan()
    remaining = list(existing)

    for entry in submitted:
        if save_record and not (entry.attribute_value or "").strip():
            continue
        if entry.locale is None:
            entry = entry.model_copy(update={"locale": default_locale})

        match = next((a for a in remaining if _same_additional_info(a, entry)), None)
        if match is not None:
            plan.keep.append(match)
            remaining.remove(match)
        else:
            plan.add.append(entry)

    plan.remove = remaining
    return plan


@dataclass
class PublicationPersisted:
    script: Script
    version: ScriptVersion
    verdict: Verdict = Verdict.ALLOW


@dataclass
class PublicationRejected:
    """Nothing was saved. errors is empty for preview and add-info-field requests."""

    errors: dict[str, list[str]]
    script_id: int | None
    script_type: int
    code: str | None = None
    current_screenshots: list[ScreenshotResponse] = field(default_factory=list)
    additional_info: list[AdditionalInfoResponse] = field(default_factory=list)
    encoding_error: bool = False


def _ensure_default_additional_info(entries: list[AdditionalInfoResponse], markup: str) -> None:
    if not any(entry.attribute_default for entry in entries):
        entries.insert(0, AdditionalInfoResponse(attribute_default=True, value_markup=markup))


@wrap_with_sentry
async def ban_and_delete_job(script_id: int, findings: list[dict]) -> None:
    """Delayed consequence of a ban verdict, run in its own session."""
    async with get_db_session() as db:
        await moderation_service.ban_and_delete_script(script_id, findings, db)


class PublicationService:
    """Creates new script versions."""

    async def _require_posting_allowed(self, user: User, db: AsyncSession) -> None:
        permission = await posting_permission_service.evaluate(user, db)
        if permission != PostingPermission.ALLOWED:
            logger.info(f"User {user.id} can't post: {permission.value}")
            raise ForbiddenError("You must confirm your email before posting scripts")

        if not await email_checking_service.check_user(user):
            logger.info(f"User {user.id} failed the email check")
            raise ForbiddenError("Your email address can't be used to post scripts")

    async def _load_target_script(self, db: AsyncSession, user: User, script_id: int) -> Script:
        """Existing script the user may add a version to."""
        script = await script_state_service.load_script(db, script_id)
        if script is None:
            raise NotFoundError("Script")

        is_author = await script_state_service.is_author(db, script.id, user)
        is_moderator = await account_service.is_moderator(user, db)

        if script.deleted and not (is_author or is_moderator):
            raise NotFoundError("Script")
        if not (is_author or is_moderator):
            raise ForbiddenError("Only the script's authors can post new versions")
        if script.locked and not is_moderator:
            raise ForbiddenError("This script has been locked")
        return script

    def _default_namespace(self, user: User) -> str:
        return f"{settings.site_url.rstrip('/')}/users/{user.id}"

    async def new_version_form(
        self,
        db: AsyncSession,
        user: User,
        script_id: int | None = None,
        language: str = "js",
    ) -> NewVersionFormResponse:
        """Defaults for the new version form, behind the same gate as create_version()."""
        await self._require_posting_allowed(user, db)

        if script_id is None:
            additional_info = []
            _ensure_default_additional_info(additional_info, user.preferred_markup)
            return NewVersionFormResponse(
                script_id=None,
                language=language,
                code="",
                not_js_convertible_override=False,
                additional_info=additional_info,
                current_screenshots=[],
            )

        script = await self._load_target_script(db, user, script_id)
        previous = await script_state_service.newest_saved_version(db, script.id)
        additional_info = [
            AdditionalInfoResponse.model_validate(a)
            for a in (previous.localized_attributes if previous else [])
            if a.attribute_key == "additional_info"
        ]
        _ensure_default_additional_info(additional_info, user.preferred_markup)

        return NewVersionFormResponse(
            script_id=script.id,
            language=script.language,
            code=previous.code if previous else "",
            not_js_convertible_override=script.not_js_convertible_override,
            additional_info=additional_info,
            current_screenshots=[ScreenshotResponse.model_validate(s) for s in (previous.screenshots if previous else [])],
        )

    async def _reject(
        self,
        db: AsyncSession,
        user: User,
        script: Script,
        version: ScriptVersion,
        previous: ScriptVersion | None,
        errors: dict[str, list[str]],
        script_type: int,
        encoding_error: bool = False,
    ) -> PublicationRejected:
        """Build the redisplay state, then drop every pending change."""
        additional_info = [
            AdditionalInfoResponse.model_validate(a)
            for a in version.localized_attributes
            if a.attribute_key == "additional_info"
        ]
        _ensure_default_additional_info(additional_info, user.preferred_markup)

        # Screenshot choices can't be carried over, so offer the saved ones again
        rejection = PublicationRejected(
            errors=errors,
            script_id=script.id,
            script_type=script_type,
            code=version.code,
            current_screenshots=[ScreenshotResponse.model_validate(s) for s in (previous.screenshots if previous else [])],
            additional_info=additional_info,
            encoding_error=encoding_error,
        )
        await db.rollback()
        return rejection

    async def create_version(
        self,
        db: AsyncSession,
        user: User,
        submission: ScriptVersionSubmission,
        code_upload: UploadedFile | None = None,
        screenshot_uploads: list[UploadedFile] | None = None,
        script_id: int | None = None,
        remote_ip: str | None = None,
    ) -> PublicationPersisted | PublicationRejected:
        """Validate a submitted version and, if it passes, save it.

        Raises:
            ForbiddenError: posting not allowed, or not an author of the script
            NotFoundError: script_id doesn't exist
        """
        await self._require_posting_allowed(user, db)

        if script_id is None:
            script = Script(language=submission.language, localized_attributes=[])
            previous = None
        else:
            script = await self._load_target_script(db, user, script_id)
            previous = await script_state_service.newest_saved_version(db, script.id)

        script.script_type = submission.script_type
        if submission.locale is not None:
            script.locale = submission.locale
        script.adult_content_self_report = submission.adult_content_self_report
        script.not_adult_content_self_report_date = (
            datetime.utcnow() if submission.not_adult_content_self_report else None
        )

        save_record = submission.save_record

        version = ScriptVersion(
            code=submission.code or "",
            changelog=submission.changelog,
            changelog_markup=submission.changelog_markup,
            version_check_override=submission.version_check_override,
            add_missing_version=submission.add_missing_version,
            namespace_check_override=submission.namespace_check_override,
            add_missing_namespace=submission.add_missing_namespace,
            minified_confirmation=submission.minified_confirmation,
            sensitive_site_confirmation=submission.sensitive_site_confirmation,
            not_js_convertible_override=submission.not_js_convertible_override,
            allow_code_previously_posted=submission.allow_code_previously_posted,
            localized_attributes=[],
            screenshots=[],
        )

        plan = plan_additional_info(
            [a for a in (previous.localized_attributes if previous else []) if a.attribute_key == "additional_info"],
            submission.additional_info,
            save_record,
            script.locale,
        )
        for attribute in plan.keep:
            version.localized_attributes.append(
                LocalizedScriptVersionAttribute(
                    attribute_key="additional_info",
                    attribute_value=attribute.attribute_value,
                    attribute_default=attribute.attribute_default,
                    locale=attribute.locale,
                    value_markup=attribute.value_markup,
                )
            )
        for entry in plan.add:
            version.localized_attributes.append(
                LocalizedScriptVersionAttribute(
                    attribute_key="additional_info",
                    attribute_value=entry.attribute_value,
                    attribute_default=entry.attribute_default,
                    locale=entry.locale,
                    value_markup=entry.value_markup,
                )
            )

        validation = content_validation_service.validate(
            code_upload,
            script,
            version,
            name=submission.name,
            description=submission.description,
            default_namespace=self._default_namespace(user),
        )
        if validation.encoding_error:
            return await self._reject(
                db, user, script, version, previous, validation.errors, submission.script_type, encoding_error=True
            )

        if submission.add_additional_info:
            version.localized_attributes.append(
                LocalizedScriptVersionAttribute(
                    attribute_key="additional_info", attribute_default=False, value_markup=user.preferred_markup
                )
            )

        # Existing screenshots, in the order their captions were submitted
        for i, screenshot in enumerate(previous.screenshots if previous else []):
            if i < len(submission.edit_screenshot_captions):
                screenshot.caption = submission.edit_screenshot_captions[i]
            if screenshot.id not in submission.remove_screenshot_ids:
                version.screenshots.append(screenshot)

        new_uploads = []
        for i, upload in enumerate(screenshot_uploads or []):
            screenshot = Screenshot(
                filename=truncate_filename(upload.filename),
                content_type=upload.content_type or "application/octet-stream",
                file_size_bytes=len(upload.content),
                caption=submission.screenshot_captions[i] if i < len(submission.screenshot_captions) else None,
            )
            version.screenshots.append(screenshot)
            new_uploads.append((screenshot, upload))

        # Every check runs so the author sees all problems at once
        records = await content_validation_service.validate_records(db, script, version, validation.meta)
        captcha_ok = True
        if save_record and await account_service.needs_captcha(user, db):
            captcha_ok = await captcha_service.verify(submission.recaptcha_token, remote_ip)
        findings, verdict = await script_checking_service.check(db, script, version)

        errors = dict(records.errors)
        if not captcha_ok:
            errors.setdefault("base", []).append(CAPTCHA_FAILED_MESSAGE)
        if verdict == Verdict.BLOCK:
            errors.setdefault("base", []).append(findings[0].public_reason)

        if not save_record or errors:
            if errors:
                logger.info(f"Rejected version for script {script.id} by user {user.id}: {sorted(errors)}")
            return await self._reject(db, user, script, version, previous, errors, submission.script_type)

        if verdict == Verdict.REVIEW and script.review_state != ReviewState.APPROVED.value:
            script.review_state = ReviewState.REQUIRED.value

        uploaded_keys = []
        try:
            if script.id is None:
                db.add(script)
                await db.flush()
                db.add(Author(script_id=script.id, user_id=user.id))

            for screenshot, upload in new_uploads:
                screenshot.storage_key = storage_service.generate_screenshot_key(script.id, screenshot.filename)

            version.script_id = script.id
            db.add(version)
            await db.flush()

            for screenshot, upload in new_uploads:
                stored = await storage_service.upload_screenshot(
                    upload.content, screenshot.storage_key, screenshot.content_type
                )
                if stored:
                    uploaded_keys.append(screenshot.storage_key)

            await script_state_service.recompute(db, script, supplied_keys=validation.supplied_keys)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to save version for script {script.id}: {e}", exc_info=True)
            await storage_service.delete_screenshots(uploaded_keys)
            raise

        logger.info(
            f"User {user.id} posted version {version.id} ({version.version}) of script {script.id}"
        )

        if verdict == Verdict.BAN:
            await scheduler_service.schedule(
                ban_and_delete_job,
                script.id,
                [f.to_dict() for f in findings],
                delay=settings.script_checker_ban_delay_seconds,
            )

        return PublicationPersisted(script=script, version=version, verdict=verdict)


# Global instance
publication_service = PublicationService()
