import pytest
from sqlalchemy import func, select

from scripthub.errors import ConflictError, ValidationFailedError
from scripthub.models import Author, BannedEmailHash, BlockType, Script, SpammyEmailDomain, User
from scripthub.services.abuse_prevention import abuse_prevention_service
from scripthub.services.accounts import account_service, canonicalize_email
from scripthub.services.accounts.account_service import BANNED_EMAIL_MESSAGE


def test_canonicalize_email():
    assert canonicalize_email("Foo.Bar+scripts@GoogleMail.com") == "foobar@gmail.com"
    assert canonicalize_email("first.last+tag@Example.org") == "first.last@example.org"
    assert canonicalize_email(None) is None
    assert canonicalize_email("not-an-email") is None


def test_prepare_for_save_derives_email_fields():
    user = account_service.prepare_for_save(User(name="x", email="Some.One@GMail.com"))

    assert user.canonical_email == "someone@gmail.com"
    assert user.email_domain == "gmail.com"


async def test_moderator_role(db, make_user):
    moderator = await make_user(moderator=True)
    user = await make_user()

    assert await account_service.is_moderator(moderator, db)
    assert not await account_service.is_moderator(user, db)
    assert not await account_service.is_administrator(moderator, db)


async def hash_count(db):
    return (await db.execute(select(func.count(BannedEmailHash.id)))).scalar()


async def test_deleting_banned_accounts_keeps_one_hash(db, make_user):
    first = await make_user(email="mallory+1@mailbox.org", banned=True)
    second = await make_user(email="Mallory@mailbox.org", banned=True)

    await account_service.delete_account(first, db)
    await account_service.delete_account(second, db)

    assert await hash_count(db) == 1
    assert await abuse_prevention_service.email_previously_banned_and_deleted("mallory@mailbox.org", db)


async def test_deleting_unbanned_account_keeps_no_hash(db, make_user):
    user = await make_user()

    await account_service.delete_account(user, db)

    assert await hash_count(db) == 0


async def test_delete_account_removes_sole_authored_scripts(db, make_user, make_script):
    user = await make_user()
    coauthor = await make_user()
    solo = await make_script(user)
    shared = await make_script(user)
    db.add(Author(script_id=shared.id, user_id=coauthor.id))
    await db.commit()
    solo_id, shared_id = solo.id, shared.id

    await account_service.delete_account(user, db)

    remaining = (await db.execute(select(Script.id))).scalars().all()
    assert remaining == [shared_id]
    assert solo_id not in remaining


async def test_registration_refuses_banned_emails(db, make_user):
    banned = await make_user(email="troll@mailbox.org", banned=True)
    await account_service.delete_account(banned, db)

    candidate = account_service.prepare_for_save(User(name="new", email="Troll+again@mailbox.org"))
    errors = await account_service.registration_errors(candidate, db)

    assert errors == {"base": [BANNED_EMAIL_MESSAGE]}


async def test_registration_refuses_live_banned_email(db, make_user):
    await make_user(email="troll@mailbox.org", banned=True)

    candidate = account_service.prepare_for_save(User(name="new", email="troll@mailbox.org"))

    assert BANNED_EMAIL_MESSAGE in (await account_service.registration_errors(candidate, db))["base"]


async def test_registration_checks_email_and_domain(db):
    db.add(SpammyEmailDomain(domain="spam.example", block_type=BlockType.REGISTER.value))
    await db.commit()

    spammy = account_service.prepare_for_save(User(name="a", email="someone@spam.example"))
    invalid = account_service.prepare_for_save(User(name="b", email="no at sign"))
    fine = account_service.prepare_for_save(User(name="c", email="someone@mailbox.org"))

    assert "is not allowed" in (await account_service.registration_errors(spammy, db))["email"]
    assert "email" in await account_service.registration_errors(invalid, db)
    assert await account_service.registration_errors(fine, db) == {}


async def test_register_stores_canonical_email(db):
    user = await account_service.register(db, "uid-1", "New.Person+x@GoogleMail.com", " newbie ", email_verified=True)

    assert user.id is not None
    assert user.name == "newbie"
    assert user.canonical_email == "newperson@gmail.com"
    assert user.email_domain == "googlemail.com"
    assert user.confirmed


async def test_register_refuses_banned_email(db, make_user):
    banned = await make_user(email="troll@mailbox.org", banned=True)
    await account_service.delete_account(banned, db)

    with pytest.raises(ValidationFailedError) as exc_info:
        await account_service.register(db, "uid-2", "troll+again@mailbox.org", "troll2")

    assert exc_info.value.errors == {"base": [BANNED_EMAIL_MESSAGE]}
    assert (await db.execute(select(func.count(User.id)))).scalar() == 0


async def test_register_refuses_taken_name_and_repeat_sign_in(db, make_user):
    await make_user(name="taken")

    with pytest.raises(ValidationFailedError) as exc_info:
        await account_service.register(db, "uid-3", "fresh@mailbox.org", "taken")
    assert exc_info.value.errors == {"name": ["has already been taken"]}

    await account_service.register(db, "uid-3", "fresh@mailbox.org", "fresh")
    with pytest.raises(ConflictError):
        await account_service.register(db, "uid-3", "other@mailbox.org", "other")
