"""Content validation for script versions.

Validation runs in two passes. validate() handles the upload itself
(encoding, library name/description fields, deleted-script description)
and recomputes the version's derived fields from its code; it fails fast on
undecodable uploads. validate_records() then runs the structural checks on
the script and the version and reports every problem it finds.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from scripthub.models.script import Script
from scripthub.models.script_version import ScriptVersion
from scripthub.schemas.script_version import UploadedFile
from scripthub.services.script_metadata import compare_versions, missing_version_string, parse_meta
from scripthub.services.script_state import script_state_service
from scripthub.services.script_state.script_state_service import default_localized_value
from scripthub.utils.constants import (
    ALLOWED_IMAGE_TYPES,
    DELETED_SCRIPT_DESCRIPTION,
    MAX_ADDITIONAL_INFO_LENGTH,
    MAX_CHANGELOG_LENGTH,
    MAX_CODE_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    MAX_SCREENSHOT_SIZE_BYTES,
    MAX_SCREENSHOTS_PER_VERSION,
    MAX_UPLOAD_FILENAME_LENGTH,
    SCRIPT_TYPES,
    SUPPORTED_SCRIPT_LANGUAGES,
)

logger = logging.getLogger(__name__)

NOT_UTF8_MESSAGE = "The uploaded file is not valid UTF-8. Save it as UTF-8 and upload it again."


@dataclass
class ValidationResult:
    """Field errors keyed by field name ("base" for errors not tied to a field)."""

    errors: dict[str, list[str]] = field(default_factory=dict)
    meta: dict[str, list[str]] | None = None
    encoding_error: bool = False
    # Localized keys given as fields rather than in the meta block
    supplied_keys: frozenset[str] = frozenset()

    @property
    def ok(self) -> bool:
        return not self.errors

    def add(self, field_name: str, message: str) -> None:
        self.errors.setdefault(field_name, []).append(message)

    def merge(self, other: "ValidationResult") -> None:
        for field_name, messages in other.errors.items():
            for message in messages:
                self.add(field_name, message)


def truncate_filename(filename: str) -> str:
    """Shorten long upload names, keeping everything after the first dot.

    "averyveryverylong....name.min.png" keeps ".min.png" and the first 51
    characters of the stem.
    """
    if len(filename) <= MAX_UPLOAD_FILENAME_LENGTH:
        return filename
    stem, *extension = filename.split(".", 1)
    truncated = stem[: MAX_UPLOAD_FILENAME_LENGTH + 1]
    if extension:
        truncated += "." + extension[0]
    return truncated


def decode_upload(upload: UploadedFile) -> str | None:
    """Uploaded code as text, or None if it isn't valid UTF-8."""
    try:
        return upload.content.decode("utf-8")
    except UnicodeDecodeError:
        return None


class ContentValidationService:
    """Validates a new version and the script it will be attached to."""

    def calculate_all(
        self,
        version: ScriptVersion,
        language: str,
        default_namespace: str | None = None,
    ) -> dict[str, list[str]] | None:
        """Recompute version, namespace from the code's meta block.

        Applies add_missing_version / add_missing_namespace. Returns the
        parsed meta block (None if there is none).
        """
        meta = parse_meta(version.code, language)
        values = meta or {}

        versions = [v for v in values.get("version", []) if v]
        version.version = versions[0] if versions else None
        if version.version is None and version.add_missing_version:
            version.version = missing_version_string()

        namespaces = [n for n in values.get("namespace", []) if n]
        version.namespace = namespaces[0] if namespaces else None
        if version.namespace is None and version.add_missing_namespace:
            version.namespace = default_namespace

        return meta

    def validate(
        self,
        upload: UploadedFile | None,
        script: Script,
        version: ScriptVersion,
        name: str | None = None,
        description: str | None = None,
        default_namespace: str | None = None,
    ) -> ValidationResult:
        """Apply the upload and recompute derived fields.

        Only an undecodable upload fails here; everything else is left to
        validate_records(). script.localized_attributes must be loaded.
        """
        result = ValidationResult()

        if upload is not None:
            code = decode_upload(upload)
            if code is None:
                logger.info(f"Rejected non-UTF-8 upload for script {script.id}")
                result.add("code", NOT_UTF8_MESSAGE)
                result.encoding_error = True
                return result
            version.code = code

        if script.library:
            # Libraries may have no meta block, so name and description come as fields
            if name is not None:
                script_state_service.replace_localized_attribute(script, "name", name, script.locale)
            if description is not None:
                script_state_service.replace_localized_attribute(
                    script, "description", description, script.locale
                )
            result.supplied_keys = frozenset(
                key for key, value in (("name", name), ("description", description)) if value is not None
            )
            version.add_missing_version = True

        if script.deleted and default_localized_value(script.localized_attributes, "description") is None:
            script_state_service.replace_localized_attribute(
                script, "description", DELETED_SCRIPT_DESCRIPTION, script.locale
            )

        result.meta = self.calculate_all(version, script.language, default_namespace)
        script_state_service.apply_from_script_version(
            script, version, result.meta or {}, supplied_keys=result.supplied_keys
        )
        return result

    def validate_script(self, script: Script) -> ValidationResult:
        result = ValidationResult()

        if script.script_type not in SCRIPT_TYPES:
            result.add("script_type", "is not a valid script type")
        if script.language not in SUPPORTED_SCRIPT_LANGUAGES:
            result.add("language", "is not a supported language")

        if not script.name:
            result.add("name", "can't be blank")
        elif len(script.name) > MAX_NAME_LENGTH:
            result.add("name", f"is too long (maximum is {MAX_NAME_LENGTH} characters)")

        if not script.library and not script.description:
            result.add("description", "can't be blank")
        elif script.description and len(script.description) > MAX_DESCRIPTION_LENGTH:
            result.add("description", f"is too long (maximum is {MAX_DESCRIPTION_LENGTH} characters)")

        return result

    def validate_version(
        self,
        version: ScriptVersion,
        script: Script,
        meta: dict[str, list[str]] | None,
        previous_version: ScriptVersion | None,
    ) -> ValidationResult:
        result = ValidationResult()

        if not version.code or not version.code.strip():
            result.add("code", "can't be blank")
            return result
        if len(version.code) > MAX_CODE_LENGTH:
            result.add("code", f"is too long (maximum is {MAX_CODE_LENGTH} characters)")

        if meta is None and not script.library:
            block = "==UserStyle==" if script.language == "css" else "==UserScript=="
            result.add("code", f"must contain a {block} meta block")

        if not version.version and not version.version_check_override:
            result.add("version", "is missing; add @version to the meta block")

        if (
            script.language == "js"
            and not script.library
            and not version.namespace
            and not version.namespace_check_override
        ):
            result.add("namespace", "is missing; add @namespace to the meta block")

        if (
            previous_version is not None
            and previous_version.version
            and version.version
            and not version.version_check_override
            and compare_versions(version.version, previous_version.version) < 0
        ):
            result.add(
                "version",
                f"must not be lower than the previous version ({previous_version.version})",
            )

        if version.changelog and len(version.changelog) > MAX_CHANGELOG_LENGTH:
            result.add("changelog", f"is too long (maximum is {MAX_CHANGELOG_LENGTH} characters)")

        for attribute in version.localized_attributes:
            if attribute.attribute_value and len(attribute.attribute_value) > MAX_ADDITIONAL_INFO_LENGTH:
                result.add(
                    "additional_info",
                    f"is too long (maximum is {MAX_ADDITIONAL_INFO_LENGTH} characters)",
                )

        if len(version.screenshots) > MAX_SCREENSHOTS_PER_VERSION:
            result.add("screenshots", f"are limited to {MAX_SCREENSHOTS_PER_VERSION}")
        for screenshot in version.screenshots:
            if screenshot.content_type not in ALLOWED_IMAGE_TYPES:
                result.add("screenshots", f"{screenshot.filename} is not a supported image type")
            if screenshot.file_size_bytes and screenshot.file_size_bytes > MAX_SCREENSHOT_SIZE_BYTES:
                result.add("screenshots", f"{screenshot.filename} is too large")

        return result

    async def validate_records(
        self,
        db: AsyncSession,
        script: Script,
        version: ScriptVersion,
        meta: dict[str, list[str]] | None,
    ) -> ValidationResult:
        """Run every structural check on script and version; never short-circuits."""
        previous_version = None
        if script.id is not None:
            previous_version = await script_state_service.newest_saved_version(db, script.id)

        result = self.validate_script(script)
        result.merge(self.validate_version(version, script, meta, previous_version))
        return result


# Global instance
content_validation_service = ContentValidationService()
