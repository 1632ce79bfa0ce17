"""Users router: posting permission and moderator actions on accounts"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from scripthub.db import get_db
from scripthub.errors import NotFoundError
from scripthub.models import User
from scripthub.schemas.common import MessageResponse
from scripthub.schemas.moderation import BanRequest, BanResponse, ReportStats
from scripthub.schemas.user import PostingPermissionResponse, UserResponse
from scripthub.services.accounts import account_service
from scripthub.services.firebase import get_current_user
from scripthub.services.moderation import moderation_service
from scripthub.services.posting_permission import posting_permission_service

router = APIRouter(prefix="/users", tags=["Users"])


async def _get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User")
    return user


@router.get("/me/posting-permission", response_model=PostingPermissionResponse)
async def get_posting_permission(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Whether the current account may post scripts right now."""
    permission = await posting_permission_service.evaluate(user, db)
    return PostingPermissionResponse(
        posting_permission=permission.value,
        allow_posting_profile=await posting_permission_service.allow_posting_profile(user, db),
    )


@router.post("/{user_id}/ban", response_model=BanResponse)
async def ban_user(
    user_id: int,
    payload: BanRequest,
    moderator: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Ban an account (moderators only).

    With ban_related, accounts sharing its canonical email are banned too.
    Banning a banned account does nothing.
    """
    await account_service.require_moderator(moderator, db)
    target = await _get_user(db, user_id)

    banned_ids = await moderation_service.ban(
        target,
        moderator,
        payload.reason,
        db,
        private_reason=payload.private_reason,
        propagate=payload.ban_related,
    )
    return BanResponse(banned_user_ids=banned_ids)


@router.post("/{user_id}/trusted-reports", response_model=UserResponse)
async def recompute_trusted_reports(
    user_id: int,
    moderator: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Recompute whether the account's reports are trusted (moderators only)."""
    await account_service.require_moderator(moderator, db)
    target = await _get_user(db, user_id)

    await moderation_service.trusted_reports_recompute(target, db)
    return UserResponse.model_validate(target)


@router.get("/{user_id}/report-stats", response_model=ReportStats)
async def get_report_stats(
    user_id: int,
    moderator: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await account_service.require_moderator(moderator, db)
    target = await _get_user(db, user_id)
    return ReportStats(**await moderation_service.report_stats(target, db))


@router.delete("/{user_id}", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def delete_user(
    user_id: int,
    moderator: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete an account and the scripts only it authored (moderators only).

    Banned accounts leave a hash of their email behind so it can't register again.
    """
    await account_service.require_moderator(moderator, db)
    target = await _get_user(db, user_id)

    await account_service.delete_account(target, db)
    return MessageResponse(message="Account deleted.")
