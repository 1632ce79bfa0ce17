import itertools
import os
import sys
from datetime import datetime
from pathlib import Path

# Must be set before anything from scripthub is imported
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_FILE"] = ""

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from scripthub.db import AsyncSessionLocal, Base, async_engine
from scripthub.models import (
    MODERATOR_ROLE,
    Author,
    Role,
    Script,
    ScriptDeleteType,
    ScriptVersion,
    User,
)
from scripthub.services.accounts import account_service
from scripthub.services.content_validation import content_validation_service
from scripthub.services.script_state import script_state_service


def userscript(
    name="Test script",
    version="1.0",
    description="Does things",
    namespace="https://example.com/test",
    body="console.log('hello');",
):
    lines = ["// ==UserScript=="]
    if name is not None:
        lines.append(f"// @name        {name}")
    if namespace is not None:
        lines.append(f"// @namespace   {namespace}")
    if version is not None:
        lines.append(f"// @version     {version}")
    if description is not None:
        lines.append(f"// @description {description}")
    lines.append("// ==/UserScript==")
    lines.append(body)
    return "\n".join(lines) + "\n"


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database per test."""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        yield session

    await async_engine.dispose()


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    async def _make(
        name=None,
        email="__default__",
        confirmed=True,
        moderator=False,
        banned=False,
        created_at=None,
    ):
        n = next(counter)
        user = User(
            name=name or f"user{n}",
            email=f"user{n}@example.com" if email == "__default__" else email,
            confirmed_at=datetime(2024, 1, 1) if confirmed else None,
            banned_at=datetime(2024, 6, 1) if banned else None,
            created_at=created_at or datetime(2024, 1, 1),
        )
        if moderator:
            role = (await db.execute(select(Role).where(Role.name == MODERATOR_ROLE))).scalar_one_or_none()
            user.roles = [role or Role(name=MODERATOR_ROLE)]
        account_service.prepare_for_save(user)
        db.add(user)
        await db.commit()
        return user

    return _make


@pytest.fixture
def make_script(db):
    async def _make(author, codes=None, language="js", script_type=1, locked=False, deleted=False):
        script = Script(
            script_type=script_type,
            language=language,
            locked=locked,
            script_delete_type=ScriptDeleteType.KEEP.value if deleted else None,
            localized_attributes=[],
        )
        db.add(script)
        await db.flush()
        db.add(Author(script_id=script.id, user_id=author.id))

        for code in codes or [userscript()]:
            version = ScriptVersion(script_id=script.id, code=code, localized_attributes=[], screenshots=[])
            content_validation_service.calculate_all(version, language)
            db.add(version)
            await db.flush()

        await script_state_service.recompute(db, script)
        await db.commit()
        return script

    return _make


@pytest_asyncio.fixture
async def api_client(db):
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def login():
    """Make API requests as the given user."""
    from main import app
    from scripthub.services.firebase import get_current_user

    def _login(user):
        app.dependency_overrides[get_current_user] = lambda: user

    return _login
