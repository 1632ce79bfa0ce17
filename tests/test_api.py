from scripthub.models import Report, ReportItemType
from scripthub.services.firebase import TokenData, get_optional_user, get_token_data
from scripthub.utils import API_PREFIX

from conftest import userscript


async def test_health(api_client, db):
    response = await api_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["database"] == "connected"


async def test_requests_need_a_token(api_client):
    response = await api_client.get(f"{API_PREFIX}/users/me/posting-permission")

    assert response.status_code == 401


async def test_posting_permission(api_client, make_user, login):
    login(await make_user(confirmed=False))

    response = await api_client.get(f"{API_PREFIX}/users/me/posting-permission")

    assert response.status_code == 200
    assert response.json() == {"posting_permission": "needs_confirmation", "allow_posting_profile": False}


async def test_new_script_form(api_client, make_user, login):
    login(await make_user())

    response = await api_client.get(f"{API_PREFIX}/scripts/versions/new", params={"language": "css"})

    assert response.status_code == 200
    body = response.json()
    assert body["language"] == "css"
    assert body["script_id"] is None
    assert body["additional_info"][0]["attribute_default"] is True


async def test_post_new_script(api_client, make_user, login):
    login(await make_user())

    response = await api_client.post(
        f"{API_PREFIX}/scripts/versions",
        data={"code": userscript(name="From the API"), "changelog": "First"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "From the API"
    assert body["version"] == "1.0"
    assert body["review_state"] == "not_required"


async def test_post_with_code_upload_and_additional_info(api_client, make_user, login):
    login(await make_user())

    response = await api_client.post(
        f"{API_PREFIX}/scripts/versions",
        data={"additional_info": '[{"attribute_value": "Read me", "attribute_default": true}]'},
        files={"code_upload": ("test.user.js", userscript().encode(), "text/javascript")},
    )

    assert response.status_code == 201
    assert response.json()["additional_info"] == "Read me"


async def test_invalid_version_is_422_with_form_state(api_client, make_user, login):
    login(await make_user())
    code = userscript(description=None)

    response = await api_client.post(f"{API_PREFIX}/scripts/versions", data={"code": code})

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert "description" in error["details"]["errors"]
    assert error["details"]["code"] == code


async def test_non_utf8_upload_is_422(api_client, make_user, login):
    login(await make_user())

    response = await api_client.post(
        f"{API_PREFIX}/scripts/versions",
        data={"code": ""},
        files={"code_upload": ("test.user.js", b"\xff\xfe\x00bad", "text/javascript")},
    )

    assert response.status_code == 422
    assert response.json()["error"]["message"] == "The uploaded file is not valid UTF-8"


async def test_preview_is_200_and_not_saved(api_client, make_user, login):
    login(await make_user())

    response = await api_client.post(
        f"{API_PREFIX}/scripts/versions",
        data={"code": userscript(), "preview": "true"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Not saved"
    assert body["data"]["errors"] == {}


async def test_malformed_additional_info_is_422(api_client, make_user, login):
    login(await make_user())

    response = await api_client.post(
        f"{API_PREFIX}/scripts/versions",
        data={"code": userscript(), "additional_info": "not json"},
    )

    assert response.status_code == 422


async def test_unconfirmed_user_cannot_post(api_client, make_user, login):
    login(await make_user(confirmed=False))

    response = await api_client.post(f"{API_PREFIX}/scripts/versions", data={"code": userscript()})

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


async def test_post_version_to_missing_script_is_404(api_client, make_user, login):
    login(await make_user())

    response = await api_client.post(f"{API_PREFIX}/scripts/999/versions", data={"code": userscript()})

    assert response.status_code == 404


async def test_post_new_version(api_client, make_user, make_script, login):
    user = await make_user()
    script = await make_script(user)
    login(user)

    response = await api_client.post(
        f"{API_PREFIX}/scripts/{script.id}/versions",
        data={"code": userscript(version="1.1")},
    )

    assert response.status_code == 201
    assert response.json()["id"] == script.id
    assert response.json()["version"] == "1.1"


async def test_delete_only_version_is_409(api_client, make_user, make_script, login):
    moderator = await make_user(moderator=True)
    script = await make_script(await make_user())
    login(moderator)

    response = await api_client.request(
        "DELETE",
        f"{API_PREFIX}/scripts/{script.id}/versions/1",
        json={"reason": "Spam"},
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


async def test_delete_version(api_client, make_user, make_script, login):
    moderator = await make_user(moderator=True)
    script = await make_script(await make_user(), codes=[userscript(version="1.0"), userscript(version="2.0")])
    login(moderator)

    response = await api_client.request(
        "DELETE",
        f"{API_PREFIX}/scripts/{script.id}/versions/2",
        json={"reason": "Malware"},
    )

    assert response.status_code == 200
    assert response.json() == {"message": "Version deleted."}


async def test_delete_version_requires_moderator(api_client, make_user, make_script, login):
    author = await make_user()
    script = await make_script(author, codes=[userscript(version="1.0"), userscript(version="2.0")])
    login(author)

    response = await api_client.request(
        "DELETE",
        f"{API_PREFIX}/scripts/{script.id}/versions/2",
        json={"reason": "Mine"},
    )

    assert response.status_code == 403


async def test_ban_endpoint(api_client, make_user, login):
    moderator = await make_user(moderator=True)
    target = await make_user(email="target@mailbox.org")
    alias = await make_user(email="target+alt@mailbox.org")
    login(moderator)

    response = await api_client.post(f"{API_PREFIX}/users/{target.id}/ban", json={"reason": "Spam"})

    assert response.status_code == 200
    assert sorted(response.json()["banned_user_ids"]) == sorted([target.id, alias.id])

    again = await api_client.post(f"{API_PREFIX}/users/{target.id}/ban", json={"reason": "Spam"})
    assert again.json()["banned_user_ids"] == []


async def test_ban_endpoint_requires_moderator(api_client, make_user, login):
    user = await make_user()
    target = await make_user()
    login(user)

    response = await api_client.post(f"{API_PREFIX}/users/{target.id}/ban", json={"reason": "Spam"})

    assert response.status_code == 403


async def test_report_resolution_endpoints(api_client, db, make_user, login):
    moderator = await make_user(moderator=True)
    reporter = await make_user()
    report = Report(item_type=ReportItemType.SCRIPT.value, item_id=1, reporter_id=reporter.id, reason="spam")
    db.add(report)
    await db.commit()
    report_id = report.id
    login(moderator)

    response = await api_client.post(f"{API_PREFIX}/reports/{report_id}/dismiss")
    assert response.status_code == 200
    assert response.json()["result"] == "dismissed"

    response = await api_client.post(f"{API_PREFIX}/reports/{report_id}/uphold")
    assert response.status_code == 409

    response = await api_client.post(f"{API_PREFIX}/reports/12345/uphold")
    assert response.status_code == 404

    stats = await api_client.get(f"{API_PREFIX}/users/{reporter.id}/report-stats")
    assert stats.json() == {"pending": 0, "dismissed": 1, "upheld": 0}


async def test_delete_account_endpoint(api_client, make_user, login):
    moderator = await make_user(moderator=True)
    target = await make_user()
    login(moderator)

    response = await api_client.delete(f"{API_PREFIX}/users/{target.id}")
    assert response.status_code == 200

    response = await api_client.delete(f"{API_PREFIX}/users/{target.id}")
    assert response.status_code == 404


async def test_register_endpoint(api_client, db):
    from main import app

    app.dependency_overrides[get_token_data] = lambda: TokenData(
        uid="uid-api", email="someone@mailbox.org", email_verified=True
    )

    response = await api_client.post(f"{API_PREFIX}/auth/register", json={"name": "someone"})
    assert response.status_code == 201
    assert response.json()["name"] == "someone"

    repeat = await api_client.post(f"{API_PREFIX}/auth/register", json={"name": "someone-else"})
    assert repeat.status_code == 409


async def test_register_endpoint_refuses_banned_email(api_client, make_user):
    from main import app

    await make_user(email="troll@mailbox.org", banned=True)
    app.dependency_overrides[get_token_data] = lambda: TokenData(uid="uid-troll", email="Troll+2@mailbox.org")

    response = await api_client.post(f"{API_PREFIX}/auth/register", json={"name": "troll2"})

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"]["errors"]["base"] == ["This email has been banned."]


async def test_list_versions_is_public(api_client, make_user, make_script):
    script = await make_script(await make_user(), codes=[userscript(version="1.0"), userscript(version="2.0")])

    response = await api_client.get(f"{API_PREFIX}/scripts/{script.id}/versions")

    assert response.status_code == 200
    assert [v["version"] for v in response.json()] == ["2.0", "1.0"]


async def test_list_versions_of_deleted_script(api_client, make_user, make_script):
    from main import app

    author = await make_user()
    script = await make_script(author, deleted=True)

    hidden = await api_client.get(f"{API_PREFIX}/scripts/{script.id}/versions")
    assert hidden.status_code == 404

    app.dependency_overrides[get_optional_user] = lambda: author
    shown = await api_client.get(f"{API_PREFIX}/scripts/{script.id}/versions")
    assert shown.status_code == 200
    assert len(shown.json()) == 1
