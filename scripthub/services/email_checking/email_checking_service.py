"""Checks that an account's email isn't from a disposable mail provider."""

import httpx

from scripthub.models.user import User
from scripthub.services.email_checking.email_checking_config import EmailCheckSettings
from scripthub.utils import logger


class EmailCheckingService:
    def __init__(self):
        self.settings = EmailCheckSettings()

    async def _remote_disposable(self, domain: str) -> bool:
        headers = {"Authorization": f"Bearer {self.settings.API_KEY}"} if self.settings.API_KEY else {}
        try:
            async with httpx.AsyncClient(timeout=self.settings.TIMEOUT) as client:
                response = await client.get(f"{self.settings.API_URL.rstrip('/')}/{domain}", headers=headers)
        except httpx.HTTPError as e:
            # An unreachable checker shouldn't stop everyone from posting
            logger.warning(f"Email check for {domain} failed, allowing: {e}")
            return False

        if response.status_code != 200:
            logger.warning(f"Email check for {domain} returned {response.status_code}, allowing")
            return False

        try:
            payload = response.json()
        except ValueError:
            logger.warning(f"Email check for {domain} returned a non-JSON body, allowing")
            return False
        return isinstance(payload, dict) and bool(payload.get("disposable"))

    async def check_user(self, user: User) -> bool:
        """True if the user's email is acceptable for posting.

        Accounts without an email (identity provider sign-ins) pass.
        """
        if not user.email:
            return True

        domain = user.email.split("@")[-1].lower()
        if domain in {d.lower() for d in self.settings.DISPOSABLE_DOMAINS}:
            logger.info(f"User {user.id} has a disposable email domain {domain}")
            return False

        if self.settings.API_URL and await self._remote_disposable(domain):
            logger.info(f"User {user.id} email domain {domain} reported disposable")
            return False

        return True


# Global instance
email_checking_service = EmailCheckingService()
