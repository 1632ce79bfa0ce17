"""Deletes a single version of a script, keeping at least one."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from scripthub.errors import ConflictError, NotFoundError
from scripthub.models.moderator_action import ModeratorAction
from scripthub.models.script_version import ScriptVersion
from scripthub.models.user import User
from scripthub.services.accounts import account_service
from scripthub.services.script_state import script_state_service

logger = logging.getLogger(__name__)

VERSION_DELETED_NOTICE = "Version deleted."


class VersionDeletionService:
    async def delete_version(
        self,
        db: AsyncSession,
        version_id: int,
        moderator: User,
        reason: str,
        script_id: int | None = None,
    ) -> str:
        """Delete a version and re-derive its script from the newest one left.

        The audit entry is flushed before the version is removed, and all of
        it commits together. Returns the notice to show the moderator.

        Raises:
            ForbiddenError: moderator isn't one
            NotFoundError: no such version (under script_id, when given)
            ConflictError: it's the script's only version
        """
        await account_service.require_moderator(moderator, db)

        version = await db.get(ScriptVersion, version_id)
        if version is None or (script_id is not None and version.script_id != script_id):
            raise NotFoundError("Script version")

        if await script_state_service.count_versions(db, version.script_id) <= 1:
            raise ConflictError("A script's only version can't be deleted")

        try:
            db.add(
                ModeratorAction(
                    moderator_id=moderator.id,
                    script_id=version.script_id,
                    action=f"Delete version {version.version}, ID {version.id}",
                    reason=reason,
                )
            )
            await db.flush()

            await db.delete(version)
            await db.flush()

            script = await script_state_service.load_script(db, version.script_id)
            await script_state_service.recompute(db, script)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to delete version {version_id}: {e}", exc_info=True)
            raise

        logger.info(f"Moderator {moderator.id} deleted version {version_id} of script {script.id}")
        return VERSION_DELETED_NOTICE


# Global instance
version_deletion_service = VersionDeletionService()
