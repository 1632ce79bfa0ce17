"""Account service: derived email fields, role checks, registration and deletion."""

import logging
from datetime import datetime, timedelta

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from scripthub.errors import ConflictError, ForbiddenError, ValidationFailedError
from scripthub.models.script import Author, Script
from scripthub.models.spammy_email_domain import BlockType, SpammyEmailDomain
from scripthub.models.user import ADMINISTRATOR_ROLE, MODERATOR_ROLE, Identity, Role, User, user_roles
from scripthub.services.abuse_prevention import abuse_prevention_service

logger = logging.getLogger(__name__)

# Providers that ignore dots in the local part
DOTLESS_DOMAINS = {"gmail.com": "gmail.com", "googlemail.com": "gmail.com"}

BANNED_EMAIL_MESSAGE = "This email has been banned."

# Authors with a live script at least this old skip the captcha
CAPTCHA_EXEMPT_SCRIPT_AGE = timedelta(days=30)


def canonicalize_email(email: str | None) -> str | None:
    """Normalized form of an email used to match the same mailbox.

    Lowercases, drops any "+tag" from the local part and, for providers
    that ignore them, dots as well.
    """
    if not email or "@" not in email:
        return None

    local, domain = email.strip().lower().rsplit("@", 1)
    local = local.split("+", 1)[0]
    if domain in DOTLESS_DOMAINS:
        local = local.replace(".", "")
        domain = DOTLESS_DOMAINS[domain]
    return f"{local}@{domain}"


class AccountService:
    """Account rules that used to hide in model callbacks, as explicit steps."""

    def prepare_for_save(self, user: User) -> User:
        """Refresh fields derived from the email. Call before every persist."""
        user.canonical_email = canonicalize_email(user.email)
        user.email_domain = user.email.split("@")[-1].lower() if user.email else None
        return user

    async def has_role(self, user: User, role_name: str, db: AsyncSession) -> bool:
        result = await db.execute(
            select(func.count(Role.id))
            .join(user_roles, user_roles.c.role_id == Role.id)
            .where(user_roles.c.user_id == user.id, Role.name == role_name)
        )
        return result.scalar() > 0

    async def is_moderator(self, user: User, db: AsyncSession) -> bool:
        return await self.has_role(user, MODERATOR_ROLE, db)

    async def is_administrator(self, user: User, db: AsyncSession) -> bool:
        return await self.has_role(user, ADMINISTRATOR_ROLE, db)

    async def require_moderator(self, user: User, db: AsyncSession) -> None:
        if not await self.is_moderator(user, db):
            raise ForbiddenError("Only moderators can do that")

    async def needs_captcha(self, user: User, db: AsyncSession) -> bool:
        """False once the user authors a non-deleted script older than a month."""
        cutoff = datetime.utcnow() - CAPTCHA_EXEMPT_SCRIPT_AGE
        result = await db.execute(
            select(func.count(Script.id))
            .join(Author, Author.script_id == Script.id)
            .where(
                Author.user_id == user.id,
                Script.script_delete_type.is_(None),
                Script.created_at <= cutoff,
            )
        )
        return result.scalar() == 0

    async def email_banned(self, canonical_email: str | None, db: AsyncSession) -> bool:
        """A banned account, live or deleted, used this canonical email."""
        if not canonical_email:
            return False

        result = await db.execute(
            select(func.count(User.id)).where(
                User.canonical_email == canonical_email,
                User.banned_at.is_not(None),
            )
        )
        if result.scalar() > 0:
            return True
        return await abuse_prevention_service.email_previously_banned_and_deleted(canonical_email, db)

    async def registration_errors(self, user: User, db: AsyncSession) -> dict[str, list[str]]:
        """Checks a new account (or an email change) must pass before saving.

        Expects prepare_for_save() to have run.
        """
        errors: dict[str, list[str]] = {}

        has_identity = False
        if user.id is not None:
            identity_count = await db.execute(
                select(func.count(Identity.id)).where(Identity.user_id == user.id)
            )
            has_identity = identity_count.scalar() > 0

        if not has_identity:
            try:
                validate_email(user.email or "", check_deliverability=False)
            except EmailNotValidError as e:
                errors.setdefault("email", []).append(str(e))

        if user.email_domain:
            result = await db.execute(
                select(func.count(SpammyEmailDomain.id)).where(
                    SpammyEmailDomain.domain == user.email_domain,
                    SpammyEmailDomain.block_type == BlockType.REGISTER.value,
                )
            )
            if result.scalar() > 0:
                errors.setdefault("email", []).append("is not allowed")

        if await self.email_banned(user.canonical_email, db):
            errors.setdefault("base", []).append(BANNED_EMAIL_MESSAGE)

        return errors

    async def register(
        self,
        db: AsyncSession,
        firebase_uid: str,
        email: str | None,
        name: str,
        email_verified: bool = False,
        locale: str | None = None,
    ) -> User:
        """Create the account for a Firebase sign-in that has none yet.

        Raises:
            ConflictError: the sign-in already has an account
            ValidationFailedError: name taken, or the email fails registration_errors()
        """
        existing = await db.execute(select(User.id).where(User.firebase_uid == firebase_uid))
        if existing.first() is not None:
            raise ConflictError("This sign-in already has an account")

        user = self.prepare_for_save(
            User(
                name=name.strip(),
                email=email,
                firebase_uid=firebase_uid,
                confirmed_at=datetime.utcnow() if email_verified else None,
                locale=locale,
            )
        )

        errors = await self.registration_errors(user, db)
        if (await db.execute(select(User.id).where(User.name == user.name))).first() is not None:
            errors.setdefault("name", []).append("has already been taken")
        if email and (await db.execute(select(User.id).where(User.email == email))).first() is not None:
            errors.setdefault("email", []).append("has already been taken")
        if errors:
            logger.info(f"Registration refused for {user.email_domain}: {sorted(errors)}")
            raise ValidationFailedError(errors, "The account was not created")

        db.add(user)
        await db.commit()
        logger.info(f"Registered account {user.id}")
        return user

    async def delete_account(self, user: User, db: AsyncSession) -> None:
        """Delete an account and the scripts only it authored.

        If the account was banned, its canonical email hash is kept so the
        address can't quietly register again. Commits.
        """
        sole_author_scripts = await db.execute(
            select(Script).where(
                Script.id.in_(select(Author.script_id).where(Author.user_id == user.id)),
                ~Script.id.in_(select(Author.script_id).where(Author.user_id != user.id)),
            )
        )
        for script in sole_author_scripts.scalars().all():
            logger.info(f"Deleting script {script.id} with account {user.id}")
            await db.delete(script)

        canonical_email = user.canonical_email
        banned_at = user.banned_at
        user_id = user.id

        await db.delete(user)
        await db.flush()

        if canonical_email and banned_at:
            await abuse_prevention_service.record_banned_account_deletion(
                canonical_email=canonical_email,
                banned_at=banned_at,
                db=db,
            )

        await db.commit()
        logger.info(f"Deleted account {user_id}")


# Global instance
account_service = AccountService()
