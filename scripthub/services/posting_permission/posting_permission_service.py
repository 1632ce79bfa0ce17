"""Decides whether an account may post scripts."""

import logging
from datetime import datetime, timedelta
from enum import Enum as PyEnum

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from scripthub.config import settings
from scripthub.models.script import Author, Script
from scripthub.models.spammy_email_domain import SpammyEmailDomain
from scripthub.models.user import Identity, User

logger = logging.getLogger(__name__)


class PostingPermission(str, PyEnum):
    ALLOWED = "allowed"
    NEEDS_CONFIRMATION = "needs_confirmation"
    BLOCKED = "blocked"


class PostingPermissionService:
    """Evaluates posting permission. Read-only: never writes."""

    def in_confirmation_period(self, user: User, now: datetime | None = None) -> bool:
        now = now or datetime.utcnow()
        grace_period = timedelta(seconds=settings.confirmation_grace_period_seconds)
        return user.created_at > now - grace_period

    async def evaluate(
        self,
        user: User,
        db: AsyncSession,
        now: datetime | None = None,
    ) -> PostingPermission:
        """Rules in order, first match wins:

        1. A linked identity provider account: allowed. Providers are
           trusted to keep bots out.
        2. No email: allowed.
        3. Spammy domain that blocks posting: blocked.
        4. Spammy domain, account still in its grace period: needs confirmation.
        5. Unconfirmed email: needs confirmation.
        6. Otherwise allowed.
        """
        identity_count = await db.execute(
            select(func.count(Identity.id)).where(Identity.user_id == user.id)
        )
        if identity_count.scalar() > 0:
            return PostingPermission.ALLOWED

        if not user.email:
            return PostingPermission.ALLOWED

        domain = user.email.split("@")[-1].lower()
        result = await db.execute(
            select(SpammyEmailDomain).where(SpammyEmailDomain.domain == domain)
        )
        spammy_domain = result.scalar_one_or_none()
        if spammy_domain:
            if spammy_domain.blocked_script_posting:
                logger.info(f"Posting blocked for user {user.id}: spammy domain {domain}")
                return PostingPermission.BLOCKED
            if self.in_confirmation_period(user, now):
                return PostingPermission.NEEDS_CONFIRMATION

        if not user.confirmed:
            return PostingPermission.NEEDS_CONFIRMATION

        return PostingPermission.ALLOWED

    async def allow_posting_profile(self, user: User, db: AsyncSession) -> bool:
        """Profiles may contain links only for accounts that have posted something."""
        if await self.evaluate(user, db) != PostingPermission.ALLOWED:
            return False

        result = await db.execute(
            select(func.count(Script.id))
            .join(Author, Author.script_id == Script.id)
            .where(Author.user_id == user.id, Script.script_delete_type.is_(None))
        )
        return result.scalar() > 0


# Global instance
posting_permission_service = PostingPermissionService()
