"""Bot-mitigation challenge (reCAPTCHA) verification."""

from scripthub.services.captcha.captcha_config import RecaptchaSettings
from scripthub.services.captcha.captcha_service import captcha_service, CaptchaService

__all__ = ["RecaptchaSettings", "captcha_service", "CaptchaService"]
