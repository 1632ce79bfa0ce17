"""Verifies reCAPTCHA tokens sent with script submissions."""

import httpx

from scripthub.services.captcha.captcha_config import RecaptchaSettings
from scripthub.utils import is_test, logger


class CaptchaService:
    """Pass/fail check of a submission's challenge token"""

    def __init__(self):
        self.settings = RecaptchaSettings()

    @property
    def enabled(self) -> bool:
        return bool(self.settings.SECRET_KEY) and not is_test()

    async def verify(self, token: str | None, remote_ip: str | None = None) -> bool:
        """True if the token passes, or verification is disabled.

        Network failures count as a failed challenge.
        """
        if not self.enabled:
            return True

        if not token:
            return False

        data = {"secret": self.settings.SECRET_KEY, "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip

        try:
            async with httpx.AsyncClient(timeout=self.settings.TIMEOUT) as client:
                response = await client.post(self.settings.VERIFY_URL, data=data)
        except httpx.TimeoutException:
            logger.error("reCAPTCHA verification timed out")
            return False
        except httpx.HTTPError as e:
            logger.error(f"reCAPTCHA verification failed: {e}")
            return False

        if response.status_code != 200:
            logger.error(f"reCAPTCHA verification returned {response.status_code}")
            return False

        try:
            result = response.json()
        except ValueError:
            logger.error("reCAPTCHA verification returned a non-JSON body")
            return False

        if not isinstance(result, dict) or not result.get("success"):
            logger.info(f"reCAPTCHA rejected: {result}")
            return False
        return True


# Global instance
captcha_service = CaptchaService()
