from scripthub.models import Script, ScriptDeleteType, ScriptVersion
from scripthub.models.script_version import Screenshot
from scripthub.schemas.script_version import UploadedFile
from scripthub.services.content_validation import content_validation_service, truncate_filename
from scripthub.services.content_validation.content_validation_service import NOT_UTF8_MESSAGE
from scripthub.utils.constants import MAX_CHANGELOG_LENGTH, SCRIPT_TYPE_LIBRARY

from conftest import userscript


def new_script(**kwargs):
    kwargs.setdefault("script_type", 1)
    kwargs.setdefault("language", "js")
    return Script(localized_attributes=[], **kwargs)


def new_version(code, **kwargs):
    return ScriptVersion(code=code, localized_attributes=[], screenshots=[], **kwargs)


def test_truncate_filename_keeps_full_extension():
    name = "a" * 60 + ".user.png"

    assert truncate_filename(name) == "a" * 51 + ".user.png"
    assert truncate_filename("short.png") == "short.png"
    assert truncate_filename("b" * 70) == "b" * 51


def test_validate_rejects_non_utf8_upload():
    script = new_script()
    version = new_version("")

    result = content_validation_service.validate(
        UploadedFile(filename="x.user.js", content=b"\xff\xfe\xfa"), script, version
    )

    assert result.encoding_error
    assert result.errors == {"code": [NOT_UTF8_MESSAGE]}
    assert version.code == ""


def test_validate_applies_upload_and_derived_fields():
    script = new_script()
    version = new_version("")
    upload = UploadedFile(filename="x.user.js", content=userscript(name="Uploaded", version="3.0").encode())

    result = content_validation_service.validate(upload, script, version)

    assert result.ok
    assert version.version == "3.0"
    assert version.namespace == "https://example.com/test"
    assert script.name == "Uploaded"
    assert script.description == "Does things"
    assert script.version == "3.0"


def test_validate_library_takes_name_and_forces_version():
    script = new_script(script_type=SCRIPT_TYPE_LIBRARY)
    version = new_version("function helper() {}\n")

    content_validation_service.validate(None, script, version, name="Helpers", description="Shared code")

    assert version.add_missing_version
    assert version.version.startswith("0.0.1.")
    assert script.name == "Helpers"
    assert script.description == "Shared code"


def test_validate_deleted_script_gets_placeholder_description():
    script = new_script(script_delete_type=ScriptDeleteType.KEEP.value)
    version = new_version(userscript(description=None))

    content_validation_service.validate(None, script, version)

    assert script.description == "Deleted"


def test_add_missing_namespace_uses_default():
    version = new_version(userscript(namespace=None), add_missing_namespace=True)

    content_validation_service.calculate_all(version, "js", "https://scripthub.local/users/1")

    assert version.namespace == "https://scripthub.local/users/1"


def test_structural_validation_reports_every_problem():
    script = new_script()
    version = new_version(userscript(name=None, description=None, version=None, namespace=None))
    version.changelog = "x" * (MAX_CHANGELOG_LENGTH + 1)
    meta = content_validation_service.validate(None, script, version).meta

    result = content_validation_service.validate_script(script)
    result.merge(content_validation_service.validate_version(version, script, meta, None))

    assert set(result.errors) == {"name", "description", "version", "namespace", "changelog"}


def test_missing_meta_block_is_an_error_for_scripts_not_libraries():
    script = new_script()
    library = new_script(script_type=SCRIPT_TYPE_LIBRARY)
    version = new_version("alert(1);", add_missing_version=True, version="1")

    assert "code" in content_validation_service.validate_version(version, script, None, None).errors
    assert "code" not in content_validation_service.validate_version(version, library, None, None).errors


def test_version_must_not_decrease_without_override():
    script = new_script()
    previous = new_version(userscript(version="2.0"), version="2.0")
    lower = new_version(userscript(version="1.5"), version="1.5", namespace="ns")
    overridden = new_version(
        userscript(version="1.5"), version="1.5", namespace="ns", version_check_override=True
    )
    meta = {"name": ["x"]}

    assert "version" in content_validation_service.validate_version(lower, script, meta, previous).errors
    assert "version" not in content_validation_service.validate_version(overridden, script, meta, previous).errors


def test_screenshot_type_checked():
    script = new_script()
    version = new_version(userscript(), version="1.0", namespace="ns")
    version.screenshots.append(Screenshot(filename="notes.txt", content_type="text/plain", file_size_bytes=10))

    result = content_validation_service.validate_version(version, script, {"name": ["x"]}, None)

    assert result.errors["screenshots"] == ["notes.txt is not a supported image type"]
