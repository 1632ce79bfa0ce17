"""Abuse prevention service for banned email tracking."""

import hashlib
import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scripthub.config import settings
from scripthub.models.banned_email_hash import BannedEmailHash

logger = logging.getLogger(__name__)


class AbusePreventionService:
    """Keeps salted hashes of canonical emails of banned accounts that were deleted."""

    @staticmethod
    def hash_email(canonical_email: str) -> str:
        """Salted SHA1 of a canonical email, as stored in BannedEmailHash."""
        return hashlib.sha1((settings.banned_email_salt + canonical_email).encode()).hexdigest()

    async def email_previously_banned_and_deleted(
        self,
        canonical_email: str | None,
        db: AsyncSession,
    ) -> bool:
        """Check if a deleted, banned account used this canonical email."""
        if not canonical_email:
            return False

        result = await db.execute(
            select(BannedEmailHash.id).where(
                BannedEmailHash.email_hash == self.hash_email(canonical_email)
            )
        )
        return result.first() is not None

    async def record_banned_account_deletion(
        self,
        canonical_email: str,
        banned_at: datetime,
        db: AsyncSession,
    ) -> BannedEmailHash:
        """Record the email hash of a banned account being deleted.

        Idempotent: an existing record for the hash is returned unchanged.
        Flushes but does not commit; the caller owns the transaction.
        """
        email_hash = self.hash_email(canonical_email)

        result = await db.execute(
            select(BannedEmailHash).where(BannedEmailHash.email_hash == email_hash)
        )
        existing = result.scalar_one_or_none()
        if existing:
            logger.info(f"Banned email hash {email_hash[:8]}... already recorded")
            return existing

        record = BannedEmailHash(
            email_hash=email_hash,
            banned_at=banned_at,
            deleted_at=datetime.utcnow(),
        )
        db.add(record)
        await db.flush()

        logger.info(f"Recorded banned email hash {email_hash[:8]}...")
        return record


# Global instance
abuse_prevention_service = AbusePreventionService()
