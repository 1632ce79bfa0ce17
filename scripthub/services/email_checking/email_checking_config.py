"""Email checking configuration"""

from pydantic_settings import BaseSettings


class EmailCheckSettings(BaseSettings):
    """Disposable email detection.

    DISPOSABLE_DOMAINS is always consulted. When API_URL is set, domains
    not on the list are also looked up at f"{API_URL}/{domain}", which must
    answer JSON with a boolean "disposable".
    """

    DISPOSABLE_DOMAINS: list[str] = [
        "mailinator.com",
        "guerrillamail.com",
        "10minutemail.com",
        "trashmail.com",
        "yopmail.com",
    ]
    API_URL: str = ""
    API_KEY: str = ""
    TIMEOUT: int = 5  # seconds

    class Config:
        env_prefix = "EMAIL_CHECK_"
