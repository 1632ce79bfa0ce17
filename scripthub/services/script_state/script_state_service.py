"""Recomputes a script's denormalized fields from its newest saved version."""

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from scripthub.errors import NotFoundError
from scripthub.models.script import Author, Script, ScriptLocalizedAttribute
from scripthub.models.script_version import ScriptVersion
from scripthub.models.user import User
from scripthub.services.accounts import account_service
from scripthub.services.script_metadata import localized_meta_values, parse_meta

logger = logging.getLogger(__name__)

LOCALIZED_META_KEYS = ("name", "description")


def default_localized_value(attributes, key: str) -> str | None:
    """Value of the default attribute for key, else of the first one."""
    matching = [a for a in attributes if a.attribute_key == key]
    for attribute in matching:
        if attribute.attribute_default:
            return attribute.attribute_value
    return matching[0].attribute_value if matching else None


class ScriptStateService:
    """Keeps Script.name/description/version/... equal to the newest saved version."""

    async def load_script(self, db: AsyncSession, script_id: int) -> Script | None:
        result = await db.execute(
            select(Script)
            .where(Script.id == script_id)
            .options(selectinload(Script.localized_attributes))
        )
        return result.scalar_one_or_none()

    async def newest_saved_version(
        self,
        db: AsyncSession,
        script_id: int,
    ) -> ScriptVersion | None:
        result = await db.execute(
            select(ScriptVersion)
            .where(ScriptVersion.script_id == script_id)
            .options(
                selectinload(ScriptVersion.localized_attributes),
                selectinload(ScriptVersion.screenshots),
            )
            .order_by(ScriptVersion.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def count_versions(self, db: AsyncSession, script_id: int) -> int:
        result = await db.execute(
            select(func.count(ScriptVersion.id)).where(ScriptVersion.script_id == script_id)
        )
        return result.scalar()

    async def is_author(self, db: AsyncSession, script_id: int, user: User) -> bool:
        result = await db.execute(
            select(Author.id).where(Author.script_id == script_id, Author.user_id == user.id)
        )
        return result.first() is not None

    async def list_versions(
        self,
        db: AsyncSession,
        script_id: int,
        viewer: User | None = None,
    ) -> list[ScriptVersion]:
        """Saved versions of a script, newest first.

        Deleted scripts only show to their authors and moderators.

        Raises:
            NotFoundError: no such script, or it is deleted and hidden from viewer
        """
        script = await db.get(Script, script_id)
        if script is None:
            raise NotFoundError("Script")
        if script.deleted and not (
            viewer is not None
            and (await self.is_author(db, script.id, viewer) or await account_service.is_moderator(viewer, db))
        ):
            raise NotFoundError("Script")

        result = await db.execute(
            select(ScriptVersion)
            .where(ScriptVersion.script_id == script.id)
            .order_by(ScriptVersion.id.desc())
        )
        return list(result.scalars().all())

    def replace_localized_attribute(
        self,
        script: Script,
        key: str,
        value: str | None,
        locale: str | None,
        default: bool = True,
        markup: str = "text",
    ) -> None:
        """Drop every localized attribute for key and, if value is given, add one."""
        for attribute in [a for a in script.localized_attributes if a.attribute_key == key]:
            script.localized_attributes.remove(attribute)
        if value is not None:
            script.localized_attributes.append(
                ScriptLocalizedAttribute(
                    attribute_key=key,
                    attribute_value=value,
                    attribute_default=default,
                    locale=locale,
                    value_markup=markup,
                )
            )

    def apply_from_script_version(
        self,
        script: Script,
        version: ScriptVersion,
        meta: dict[str, list[str]] | None = None,
        supplied_keys: frozenset[str] = frozenset(),
    ) -> None:
        """Copy derived fields from version onto script.

        script.localized_attributes must already be loaded. Localized
        name/description come from the meta block, except for keys in
        supplied_keys, which were given as fields with this submission.
        Keys the meta block doesn't mention keep their current attributes.
        """
        if meta is None:
            meta = parse_meta(version.code, script.language) or {}

        for key in LOCALIZED_META_KEYS:
            values = localized_meta_values(meta, key)
            if not values or key in supplied_keys:
                continue
            for attribute in [a for a in script.localized_attributes if a.attribute_key == key]:
                script.localized_attributes.remove(attribute)
            for locale, value in values.items():
                script.localized_attributes.append(
                    ScriptLocalizedAttribute(
                        attribute_key=key,
                        attribute_value=value,
                        attribute_default=locale is None,
                        locale=locale or script.locale,
                        value_markup="text",
                    )
                )

        script.name = default_localized_value(script.localized_attributes, "name")
        script.description = default_localized_value(script.localized_attributes, "description")
        script.version = version.version
        script.namespace = version.namespace

        additional_info = [a for a in version.localized_attributes if a.attribute_key == "additional_info"]
        default_info = next((a for a in additional_info if a.attribute_default), None)
        if default_info is None and additional_info:
            default_info = additional_info[0]
        script.additional_info = default_info.attribute_value if default_info else None
        script.additional_info_markup = default_info.value_markup if default_info else "html"

        script.code_updated_at = version.created_at or datetime.utcnow()

    async def recompute(
        self,
        db: AsyncSession,
        script: Script,
        supplied_keys: frozenset[str] = frozenset(),
    ) -> ScriptVersion | None:
        """Re-derive script fields from its newest saved version.

        Returns the version used, or None if the script has no saved versions.
        """
        newest = await self.newest_saved_version(db, script.id)
        if newest is None:
            logger.warning(f"Script {script.id} has no saved versions to derive state from")
            return None
        self.apply_from_script_version(script, newest, supplied_keys=supplied_keys)
        return newest


# Global instance
script_state_service = ScriptStateService()
