"""Resolves the signed-in account from a Firebase ID token"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends, HTTPException, Request, status
from firebase_admin import auth
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scripthub.db import get_db
from scripthub.models.user import User
from scripthub.services.firebase.firebase_config import get_firebase_app
from scripthub.utils.sentry_utils import set_user_context

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

# Most specific first: the expired and revoked errors subclass InvalidIdTokenError
TOKEN_ERRORS = (
    (auth.ExpiredIdTokenError, "Token has expired"),
    (auth.RevokedIdTokenError, "Token has been revoked"),
    (auth.InvalidIdTokenError, "Invalid token"),
)


@dataclass
class TokenData:
    """Claims we use from a verified ID token"""

    uid: str
    email: str | None = None
    name: str | None = None
    email_verified: bool = False


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


async def verify_token_async(id_token: str) -> TokenData:
    """Verify an ID token in a worker thread (the SDK call blocks).

    Raises:
        HTTPException: 401 for any token that doesn't verify
    """
    get_firebase_app()

    try:
        claims = await asyncio.to_thread(auth.verify_id_token, id_token)
    except Exception as e:
        for error_type, detail in TOKEN_ERRORS:
            if isinstance(e, error_type):
                raise _unauthorized(detail)
        logger.error(f"Token verification failed: {e}")
        raise _unauthorized("Authentication failed")

    return TokenData(
        uid=claims["uid"],
        email=claims.get("email"),
        name=claims.get("name"),
        email_verified=bool(claims.get("email_verified")),
    )


def get_token_from_header(request: Request) -> str:
    header = request.headers.get("Authorization")
    if not header:
        raise _unauthorized("Authorization header missing")
    if not header.startswith(BEARER_PREFIX):
        raise _unauthorized(f"Expected '{BEARER_PREFIX}<token>' in the Authorization header")
    return header[len(BEARER_PREFIX):]


async def get_token_data(request: Request) -> TokenData:
    """FastAPI dependency returning the verified token, account or not."""
    return await verify_token_async(get_token_from_header(request))


async def _find_account(db: AsyncSession, token_data: TokenData) -> User | None:
    """Match by UID; on a first sign-in, match by email and link the UID."""
    user = (
        await db.execute(select(User).where(User.firebase_uid == token_data.uid))
    ).scalar_one_or_none()
    if user is not None or not token_data.email:
        return user

    user = (
        await db.execute(select(User).where(User.email == token_data.email))
    ).scalar_one_or_none()
    if user is None:
        return None

    user.firebase_uid = token_data.uid
    if token_data.email_verified and not user.confirmed:
        user.confirmed_at = datetime.utcnow()
    await db.commit()
    logger.info(f"Linked Firebase UID to account {user.id}")
    return user


async def get_current_user(
    token_data: TokenData = Depends(get_token_data),
    db: AsyncSession = Depends(get_db),
) -> User:
    """FastAPI dependency returning the signed-in account.

    404 when no account matches the token, 403 when the account is banned.
    """
    user = await _find_account(db, token_data)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Account not found. Register at /auth/register first."
        )
    if user.banned:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This account has been banned")

    set_user_context(user.id)
    return user


async def get_optional_user(request: Request, db: AsyncSession = Depends(get_db)) -> User | None:
    """Like get_current_user, but None for anonymous, unknown or banned callers."""
    if not request.headers.get("Authorization"):
        return None
    try:
        token_data = await get_token_data(request)
    except HTTPException:
        return None

    user = await _find_account(db, token_data)
    if user is None or user.banned:
        return None
    set_user_context(user.id)
    return user
