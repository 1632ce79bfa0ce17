from datetime import datetime

import pytest
from sqlalchemy import func, select

from scripthub.errors import ForbiddenError, NotFoundError
from scripthub.models import (
    Author,
    ModeratorAction,
    ReviewState,
    Script,
    ScriptDeleteType,
    ScriptVersion,
)
from scripthub.models.script_version import LocalizedScriptVersionAttribute, Screenshot
from scripthub.schemas.script_version import AdditionalInfoSubmission, ScriptVersionSubmission, UploadedFile
from scripthub.services.captcha import captcha_service
from scripthub.services.content_validation.content_validation_service import NOT_UTF8_MESSAGE
from scripthub.services.publication import (
    PublicationPersisted,
    PublicationRejected,
    plan_additional_info,
    publication_service,
)
from scripthub.services.script_checking import CodePatternChecker, script_checking_service
from scripthub.services.script_state import script_state_service
from scripthub.services.storage import storage_service
from scripthub.services.version_deletion import version_deletion_service
from scripthub.utils.constants import SCRIPT_TYPE_LIBRARY

from conftest import userscript


@pytest.fixture(autouse=True)
def no_default_checkers(monkeypatch):
    monkeypatch.setattr(script_checking_service, "checkers", [CodePatternChecker([], [], [])])


def use_patterns(monkeypatch, ban=(), block=(), review=()):
    monkeypatch.setattr(
        script_checking_service,
        "checkers",
        [CodePatternChecker(list(ban), list(block), list(review))],
    )


def submission(code=None, **kwargs):
    return ScriptVersionSubmission(code=code if code is not None else userscript(), **kwargs)


async def count(db, model, *conditions):
    return (await db.execute(select(func.count(model.id)).where(*conditions))).scalar()


async def add_screenshot(db, script):
    version = await script_state_service.newest_saved_version(db, script.id)
    version.screenshots.append(Screenshot(filename="shot.png", content_type="image/png", file_size_bytes=100))
    await db.commit()
    return version.screenshots[0]


# New scripts

async def test_new_script_is_persisted_with_its_author(db, make_user):
    user = await make_user()

    result = await publication_service.create_version(db, user, submission(userscript(name="Fresh", version="1.2")))

    assert isinstance(result, PublicationPersisted)
    script = result.script
    assert script.name == "Fresh"
    assert script.version == "1.2"
    assert script.description == "Does things"
    assert script.code_updated_at == result.version.created_at
    assert await count(db, ScriptVersion, ScriptVersion.script_id == script.id) == 1
    assert await count(db, Author, Author.script_id == script.id, Author.user_id == user.id) == 1


async def test_invalid_new_script_writes_nothing(db, make_user):
    user = await make_user()

    result = await publication_service.create_version(db, user, submission(userscript(description=None)))

    assert isinstance(result, PublicationRejected)
    assert "description" in result.errors
    assert result.script_id is None
    assert await count(db, Script) == 0
    assert await count(db, ScriptVersion) == 0


async def test_permission_is_checked_first(db, make_user):
    user = await make_user(confirmed=False)

    with pytest.raises(ForbiddenError):
        await publication_service.create_version(db, user, submission())
    assert await count(db, Script) == 0


async def test_disposable_email_is_forbidden(db, make_user):
    user = await make_user(email="throwaway@mailinator.com")

    with pytest.raises(ForbiddenError):
        await publication_service.create_version(db, user, submission())


# Existing scripts

async def test_new_version_updates_derived_fields(db, make_user, make_script):
    user = await make_user()
    script = await make_script(user, codes=[userscript(version="1.0")])

    result = await publication_service.create_version(
        db, user, submission(userscript(name="Renamed", version="2.0")), script_id=script.id
    )

    assert isinstance(result, PublicationPersisted)
    assert result.script.id == script.id
    assert result.script.name == "Renamed"
    assert result.script.version == "2.0"
    assert await script_state_service.count_versions(db, script.id) == 2


async def test_missing_script_is_not_found(db, make_user):
    user = await make_user()

    with pytest.raises(NotFoundError):
        await publication_service.create_version(db, user, submission(), script_id=999)


async def test_only_authors_post_versions(db, make_user, make_script):
    script = await make_script(await make_user())
    stranger = await make_user()

    with pytest.raises(ForbiddenError):
        await publication_service.create_version(db, stranger, submission(), script_id=script.id)


async def test_deleted_script_is_hidden_from_non_authors(db, make_user, make_script):
    script = await make_script(await make_user(), deleted=True)
    stranger = await make_user()

    with pytest.raises(NotFoundError):
        await publication_service.create_version(db, stranger, submission(), script_id=script.id)


async def test_locked_script_only_takes_moderator_versions(db, make_user, make_script):
    author = await make_user()
    moderator = await make_user(moderator=True)
    script = await make_script(author, locked=True)

    with pytest.raises(ForbiddenError):
        await publication_service.create_version(db, author, submission(), script_id=script.id)

    result = await publication_service.create_version(
        db, moderator, submission(userscript(version="1.1")), script_id=script.id
    )
    assert isinstance(result, PublicationPersisted)


# Libraries

async def test_library_name_follows_newest_version(db, make_user):
    author = await make_user()
    moderator = await make_user(moderator=True)

    first = await publication_service.create_version(
        db, author, submission(userscript(name="Alpha", version="1.0"), script_type=SCRIPT_TYPE_LIBRARY)
    )
    assert isinstance(first, PublicationPersisted)
    script_id = first.script.id
    assert first.script.name == "Alpha"

    second = await publication_service.create_version(
        db,
        author,
        submission(userscript(name="Beta", version="2.0"), script_type=SCRIPT_TYPE_LIBRARY),
        script_id=script_id,
    )
    assert isinstance(second, PublicationPersisted)
    assert second.script.name == "Beta"
    assert second.script.version == "2.0"

    await version_deletion_service.delete_version(db, second.version.id, moderator, "Revert", script_id=script_id)

    stored = await db.get(Script, script_id)
    assert stored.name == "Alpha"
    assert stored.version == "1.0"


async def test_library_name_field_wins_over_meta(db, make_user):
    user = await make_user()

    result = await publication_service.create_version(
        db,
        user,
        submission(userscript(name="Alpha"), script_type=SCRIPT_TYPE_LIBRARY, name="Helpers"),
    )

    assert isinstance(result, PublicationPersisted)
    assert result.script.name == "Helpers"
    assert result.script.description == "Does things"


async def test_library_without_meta_keeps_field_name(db, make_user):
    user = await make_user()
    first = await publication_service.create_version(
        db,
        user,
        submission("function helper() {}\n", script_type=SCRIPT_TYPE_LIBRARY, name="Helpers"),
    )
    assert isinstance(first, PublicationPersisted)

    second = await publication_service.create_version(
        db,
        user,
        submission("function helper() { return 1; }\n", script_type=SCRIPT_TYPE_LIBRARY),
        script_id=first.script.id,
    )

    assert isinstance(second, PublicationPersisted)
    assert second.script.name == "Helpers"
    assert second.version.version.startswith("0.0.1.")


# Rejections

async def test_non_utf8_upload_is_rejected_with_prior_screenshots(db, make_user, make_script):
    user = await make_user()
    script = await make_script(user)
    await add_screenshot(db, script)
    script_id = script.id

    result = await publication_service.create_version(
        db,
        user,
        submission(""),
        code_upload=UploadedFile(filename="x.user.js", content=b"\xc3\x28 broken"),
        script_id=script_id,
    )

    assert isinstance(result, PublicationRejected)
    assert result.encoding_error
    assert result.errors == {"code": [NOT_UTF8_MESSAGE]}
    assert [s.filename for s in result.current_screenshots] == ["shot.png"]
    assert await script_state_service.count_versions(db, script_id) == 1


async def test_block_verdict_rejects_with_reason(db, make_user, make_script, monkeypatch):
    use_patterns(monkeypatch, block=[r"document\.cookie"])
    user = await make_user()
    script = await make_script(user, codes=[userscript(version="1.0")])
    script_id = script.id

    result = await publication_service.create_version(
        db,
        user,
        submission(userscript(version="2.0", body="send(document.cookie);")),
        script_id=script_id,
    )

    assert isinstance(result, PublicationRejected)
    assert result.errors["base"] == ["This script contains code that is not allowed on this site."]
    assert await script_state_service.count_versions(db, script_id) == 1

    stored = await db.get(Script, script_id)
    await db.refresh(stored)
    assert stored.version == "1.0"


async def test_captcha_failure_rejects(db, make_user, monkeypatch):
    async def fail(token, remote_ip=None):
        return False

    monkeypatch.setattr(captcha_service, "verify", fail)
    user = await make_user()

    result = await publication_service.create_version(db, user, submission())

    assert isinstance(result, PublicationRejected)
    assert result.errors["base"] == ["Please complete the captcha."]
    assert await count(db, Script) == 0


async def test_established_authors_skip_the_captcha(db, make_user, make_script, monkeypatch):
    challenged = []

    async def fail(token, remote_ip=None):
        challenged.append(token)
        return False

    monkeypatch.setattr(captcha_service, "verify", fail)
    user = await make_user()
    script = await make_script(user)
    script.created_at = datetime(2024, 1, 1)
    await db.commit()

    result = await publication_service.create_version(db, user, submission(userscript(name="Second")))

    assert isinstance(result, PublicationPersisted)
    assert challenged == []


async def test_recent_or_deleted_scripts_do_not_skip_the_captcha(db, make_user, make_script, monkeypatch):
    challenged = []

    async def fail(token, remote_ip=None):
        challenged.append(token)
        return False

    monkeypatch.setattr(captcha_service, "verify", fail)
    user = await make_user()
    await make_script(user)
    old_deleted = await make_script(user, deleted=True)
    old_deleted.created_at = datetime(2024, 1, 1)
    await db.commit()

    result = await publication_service.create_version(
        db, user, submission(userscript(name="Third"), recaptcha_token="tok")
    )

    assert isinstance(result, PublicationRejected)
    assert result.errors["base"] == ["Please complete the captcha."]
    assert challenged == ["tok"]


async def test_preview_never_saves(db, make_user):
    user = await make_user()

    result = await publication_service.create_version(db, user, submission(preview=True))

    assert isinstance(result, PublicationRejected)
    assert result.errors == {}
    assert await count(db, Script) == 0


async def test_add_additional_info_field_adds_blank_entry(db, make_user):
    user = await make_user()

    result = await publication_service.create_version(db, user, submission(add_additional_info=True))

    assert isinstance(result, PublicationRejected)
    assert result.errors == {}
    assert [a.attribute_default for a in result.additional_info] == [True, False]


# Moderation consequences

async def test_review_verdict_requires_review(db, make_user, monkeypatch):
    use_patterns(monkeypatch, review=[r"eval\("])
    user = await make_user()

    result = await publication_service.create_version(db, user, submission(userscript(body="eval('1');")))

    assert isinstance(result, PublicationPersisted)
    assert result.script.review_state == ReviewState.REQUIRED.value


async def test_review_verdict_keeps_approval(db, make_user, make_script, monkeypatch):
    use_patterns(monkeypatch, review=[r"eval\("])
    user = await make_user()
    script = await make_script(user)
    script.review_state = ReviewState.APPROVED.value
    await db.commit()

    result = await publication_service.create_version(
        db, user, submission(userscript(version="1.1", body="eval('1');")), script_id=script.id
    )

    assert result.script.review_state == ReviewState.APPROVED.value


async def test_ban_verdict_persists_then_bans_and_deletes(db, make_user, monkeypatch):
    use_patterns(monkeypatch, ban=[r"coinhive"])
    user = await make_user()

    result = await publication_service.create_version(db, user, submission(userscript(body="coinhive.start();")))

    assert isinstance(result, PublicationPersisted)
    script = result.script
    await db.refresh(user)
    await db.refresh(script)
    assert user.banned
    assert script.locked
    assert script.script_delete_type == ScriptDeleteType.BLANKED.value
    assert await count(db, ScriptVersion, ScriptVersion.script_id == script.id) == 1
    actions = (await db.execute(select(ModeratorAction.action).order_by(ModeratorAction.id))).scalars().all()
    assert actions == ["Ban", "Delete and lock"]


# Additional info and screenshots

def test_plan_additional_info_diff():
    kept = LocalizedScriptVersionAttribute(
        attribute_key="additional_info", attribute_value="Same", attribute_default=True, locale="en", value_markup="html"
    )
    dropped = LocalizedScriptVersionAttribute(
        attribute_key="additional_info", attribute_value="Old", attribute_default=False, locale="fr", value_markup="html"
    )
    submitted = [
        AdditionalInfoSubmission(locale="en", attribute_value="Same", attribute_default=True),
        AdditionalInfoSubmission(attribute_value="Neu", locale="de"),
        AdditionalInfoSubmission(attribute_value="   ", locale="es"),
    ]

    plan = plan_additional_info([kept, dropped], submitted, save_record=True)

    assert plan.keep == [kept]
    assert [a.attribute_value for a in plan.add] == ["Neu"]
    assert plan.remove == [dropped]


def test_plan_additional_info_keeps_blanks_when_not_saving():
    submitted = [AdditionalInfoSubmission(attribute_value="")]

    plan = plan_additional_info([], submitted, save_record=False, default_locale="en")

    assert [(a.locale, a.attribute_value) for a in plan.add] == [("en", "")]


async def test_additional_info_is_saved_and_denormalized(db, make_user):
    user = await make_user()
    info = [
        AdditionalInfoSubmission(attribute_value="Read me", attribute_default=True, value_markup="markdown"),
        AdditionalInfoSubmission(attribute_value="Lisez-moi", locale="fr"),
    ]

    result = await publication_service.create_version(db, user, submission(additional_info=info))

    assert result.script.additional_info == "Read me"
    assert result.script.additional_info_markup == "markdown"
    assert sorted(a.attribute_value for a in result.version.localized_attributes) == ["Lisez-moi", "Read me"]


async def test_screenshots_carry_over_and_upload(db, make_user, make_script):
    user = await make_user()
    script = await make_script(user)
    old = await add_screenshot(db, script)
    long_name = "s" * 60 + ".png"

    result = await publication_service.create_version(
        db,
        user,
        submission(userscript(version="1.1"), edit_screenshot_captions=["Old one"], screenshot_captions=["New one"]),
        screenshot_uploads=[UploadedFile(filename=long_name, content_type="image/png", content=b"\x89PNG")],
        script_id=script.id,
    )

    assert isinstance(result, PublicationPersisted)
    screenshots = result.version.screenshots
    assert [s.id for s in screenshots][0] == old.id
    assert [s.caption for s in screenshots] == ["Old one", "New one"]
    assert screenshots[1].filename == "s" * 51 + ".png"
    assert screenshots[1].storage_key.startswith(f"screenshots/{script.id}/")


async def test_failed_save_removes_uploaded_screenshots(db, make_user, monkeypatch):
    uploaded, deleted = [], []

    async def upload(content, key, content_type=None):
        uploaded.append(key)
        return True

    async def delete(keys):
        deleted.extend(keys)
        return []

    async def broken_recompute(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(storage_service, "upload_screenshot", upload)
    monkeypatch.setattr(storage_service, "delete_screenshots", delete)
    monkeypatch.setattr(script_state_service, "recompute", broken_recompute)
    user = await make_user()

    with pytest.raises(RuntimeError):
        await publication_service.create_version(
            db,
            user,
            submission(screenshot_captions=["Shot"]),
            screenshot_uploads=[UploadedFile(filename="shot.png", content_type="image/png", content=b"\x89PNG")],
        )

    assert len(uploaded) == 1
    assert deleted == uploaded
    assert await count(db, Script) == 0


async def test_removed_screenshots_are_not_carried_over(db, make_user, make_script):
    user = await make_user()
    script = await make_script(user)
    old = await add_screenshot(db, script)

    result = await publication_service.create_version(
        db, user, submission(userscript(version="1.1"), remove_screenshot_ids=[old.id]), script_id=script.id
    )

    assert result.version.screenshots == []


async def test_new_version_form_prefills_from_newest_version(db, make_user, make_script):
    user = await make_user()
    code = userscript(version="4.0")
    script = await make_script(user, codes=[userscript(version="3.0"), code])

    form = await publication_service.new_version_form(db, user, script_id=script.id)

    assert form.code == code
    assert form.additional_info[0].attribute_default
    assert form.current_screenshots == []


async def test_new_version_form_is_gated(db, make_user):
    user = await make_user(confirmed=False)

    with pytest.raises(ForbiddenError):
        await publication_service.new_version_form(db, user)
