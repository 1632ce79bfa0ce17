"""reCAPTCHA configuration"""

from pydantic_settings import BaseSettings


class RecaptchaSettings(BaseSettings):
    """Google reCAPTCHA settings. Verification is skipped when SECRET_KEY is empty."""

    SECRET_KEY: str = ""
    VERIFY_URL: str = "https://www.google.com/recaptcha/api/siteverify"
    TIMEOUT: int = 10  # seconds

    class Config:
        env_prefix = "RECAPTCHA_"
