"""Moderation rule engine.

Every moderator decision leaves a ModeratorAction. Bans are propagated to
other accounts sharing the banned account's canonical email.
"""

import json
import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from scripthub.config import settings
from scripthub.errors import ConflictError
from scripthub.models.moderator_action import ModeratorAction
from scripthub.models.report import Report, ReportItemType, ReportResult
from scripthub.models.script import Author, Script, ScriptDeleteType
from scripthub.models.user import MODERATOR_ROLE, Role, User
from scripthub.utils.constants import TRUSTED_REPORTS_MIN_RESOLVED, TRUSTED_REPORTS_THRESHOLD

logger = logging.getLogger(__name__)


class ModerationService:
    """Bans, report resolution, trusted-reporter scoring and script locking."""

    # Reports

    async def _resolve(
        self,
        report: Report,
        result: ReportResult,
        moderator: User | None,
        db: AsyncSession,
    ) -> None:
        if not report.pending:
            raise ConflictError(f"Report {report.id} is already {report.result}")
        report.result = result.value
        report.resolver_id = moderator.id if moderator else None
        report.resolved_at = datetime.utcnow()

    async def dismiss(self, report: Report, moderator: User | None, db: AsyncSession) -> Report:
        """pending -> dismissed. Commits and rescores the reporter."""
        await self._resolve(report, ReportResult.DISMISSED, moderator, db)
        await db.commit()
        await self._rescore_reporter(report, db)
        return report

    async def uphold(self, report: Report, moderator: User | None, db: AsyncSession) -> Report:
        """pending -> upheld. Commits and rescores the reporter."""
        await self._resolve(report, ReportResult.UPHELD, moderator, db)
        await db.commit()
        await self._rescore_reporter(report, db)
        return report

    async def _rescore_reporter(self, report: Report, db: AsyncSession) -> None:
        if report.reporter_id is None:
            return
        reporter = await db.get(User, report.reporter_id)
        if reporter is not None and not reporter.banned:
            await self.trusted_reports_recompute(reporter, db)

    async def report_stats(
        self,
        user: User,
        db: AsyncSession,
        ignore_report_id: int | None = None,
    ) -> dict[str, int]:
        """Counts of reports filed by user, by outcome."""
        query = (
            select(Report.result, func.count(Report.id))
            .where(Report.reporter_id == user.id)
            .group_by(Report.result)
        )
        if ignore_report_id is not None:
            query = query.where(Report.id != ignore_report_id)

        counts = dict((await db.execute(query)).all())
        return {
            "pending": counts.get(None, 0),
            "dismissed": counts.get(ReportResult.DISMISSED.value, 0),
            "upheld": counts.get(ReportResult.UPHELD.value, 0),
        }

    async def trusted_reports_recompute(self, user: User, db: AsyncSession) -> bool:
        """Recompute and store whether user's reports can be trusted.

        resolved = resolved reports about the account + resolved reports it
        filed. Fewer than 3 resolved is too small a sample. Otherwise the
        account is trusted when (upheld reports about it + resolved reports
        it filed) / resolved reaches 0.75. Commits.
        """
        async def count(*conditions) -> int:
            result = await db.execute(select(func.count(Report.id)).where(*conditions))
            return result.scalar()

        resolved_as_subject = await count(Report.reported_user_id == user.id, Report.result.is_not(None))
        upheld_as_subject = await count(
            Report.reported_user_id == user.id, Report.result == ReportResult.UPHELD.value
        )
        resolved_as_reporter = await count(Report.reporter_id == user.id, Report.result.is_not(None))

        resolved = resolved_as_subject + resolved_as_reporter
        if resolved < TRUSTED_REPORTS_MIN_RESOLVED:
            trusted = False
        else:
            trusted = (upheld_as_subject + resolved_as_reporter) / resolved >= TRUSTED_REPORTS_THRESHOLD

        user.trusted_reports = trusted
        await db.commit()
        return trusted

    # Bans

    async def _ban_one(
        self,
        user: User,
        moderator: User | None,
        reason: str,
        private_reason: str | None,
        propagate: bool,
        db: AsyncSession,
    ) -> list[User]:
        """Audit record, ban stamp and dismissal of the account's open reports.

        Doesn't commit. Returns every account it banned.
        """
        if user.banned:
            return []

        db.add(
            ModeratorAction(
                moderator_id=moderator.id if moderator else None,
                user_id=user.id,
                action="Ban",
                reason=reason,
                private_reason=private_reason,
            )
        )
        user.banned_at = datetime.utcnow()

        open_reports = await db.execute(
            select(Report).where(
                Report.reporter_id == user.id,
                Report.item_type != ReportItemType.USER.value,
                Report.result.is_(None),
            )
        )
        for report in open_reports.scalars().all():
            await self._resolve(report, ReportResult.DISMISSED, moderator, db)

        banned = [user]
        if propagate and user.canonical_email:
            related = await db.execute(
                select(User).where(
                    User.canonical_email == user.canonical_email,
                    User.banned_at.is_(None),
                    User.id != user.id,
                )
            )
            for related_user in related.scalars().all():
                banned += await self._ban_one(
                    related_user, moderator, reason, private_reason, False, db
                )
        return banned

    async def ban(
        self,
        user: User,
        moderator: User | None,
        reason: str,
        db: AsyncSession,
        private_reason: str | None = None,
        propagate: bool = True,
    ) -> list[int]:
        """Ban user and, with propagate, every unbanned account sharing its canonical email.

        Accounts that are already banned are left alone. Related accounts are
        found with one lookup and banned with propagate=False, so propagation
        is never more than one level deep. All bans commit together; reports
        against the banned accounts are upheld afterwards.

        Returns the ids of the accounts banned by this call.
        """
        if user.banned:
            return []

        try:
            banned = await self._ban_one(user, moderator, reason, private_reason, propagate, db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        banned_ids = [banned_user.id for banned_user in banned]
        logger.info(f"Banned users {banned_ids}: {reason}")

        reports = await db.execute(
            select(Report).where(
                Report.item_type == ReportItemType.USER.value,
                Report.item_id.in_(banned_ids),
                Report.result.is_(None),
            )
        )
        for report in reports.scalars().all():
            await self.uphold(report, moderator, db)

        return banned_ids

    # Scripts

    async def lock_all_scripts(
        self,
        user: User,
        reason: str,
        moderator: User | None,
        delete_type: ScriptDeleteType,
        db: AsyncSession,
    ) -> int:
        """Delete and lock every unlocked script user authored. Commits."""
        result = await db.execute(
            select(Script)
            .join(Author, Author.script_id == Script.id)
            .where(Author.user_id == user.id, Script.locked.is_(False))
        )
        scripts = result.scalars().all()
        for script in scripts:
            self._delete_and_lock(script, reason, moderator, delete_type, db)

        await db.commit()
        return len(scripts)

    def _delete_and_lock(
        self,
        script: Script,
        reason: str,
        moderator: User | None,
        delete_type: ScriptDeleteType,
        db: AsyncSession,
    ) -> None:
        script.delete_reason = reason
        script.locked = True
        script.script_delete_type = delete_type.value
        db.add(
            ModeratorAction(
                moderator_id=moderator.id if moderator else None,
                script_id=script.id,
                action="Delete and lock",
                reason=reason,
            )
        )

    async def get_system_moderator(self, db: AsyncSession) -> User:
        """Account that automated moderation acts as; created on first use."""
        result = await db.execute(select(User).where(User.name == settings.system_moderator_name))
        moderator = result.scalar_one_or_none()
        if moderator:
            return moderator

        role_result = await db.execute(select(Role).where(Role.name == MODERATOR_ROLE))
        role = role_result.scalar_one_or_none() or Role(name=MODERATOR_ROLE)
        moderator = User(
            name=settings.system_moderator_name,
            confirmed_at=datetime.utcnow(),
            roles=[role],
        )
        db.add(moderator)
        await db.flush()
        logger.info(f"Created system moderator account {moderator.id}")
        return moderator

    async def ban_and_delete_script(
        self,
        script_id: int,
        findings: list[dict],
        db: AsyncSession,
    ) -> None:
        """Act on a ban verdict from the automated checker.

        Bans every author, then deletes and locks their scripts, including
        this one.
        """
        script = await db.get(Script, script_id)
        if script is None:
            logger.warning(f"Script {script_id} gone before ban-and-delete ran")
            return

        moderator = await self.get_system_moderator(db)
        reason = findings[0]["public_reason"] if findings else "Automated script check"
        private_reason = json.dumps(findings)

        authors = await db.execute(
            select(User).join(Author, Author.user_id == User.id).where(Author.script_id == script_id)
        )
        authors = authors.scalars().all()
        for author in authors:
            await self.ban(author, moderator, reason, db, private_reason=private_reason)
            await self.lock_all_scripts(author, reason, moderator, ScriptDeleteType.BLANKED, db)

        if not script.locked:
            self._delete_and_lock(script, reason, moderator, ScriptDeleteType.BLANKED, db)
            await db.commit()

        logger.info(f"Ban-and-delete done for script {script_id}, authors {[a.id for a in authors]}")


# Global instance
moderation_service = ModerationService()
