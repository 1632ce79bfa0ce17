from pydantic_settings import BaseSettings

from scripthub.utils.constants import (
    BANNED_EMAIL_SALT,
    CONFIRMATION_GRACE_PERIOD_SECONDS,
    SCRIPT_CHECKER_BAN_DELAY_SECONDS,
)


class Settings(BaseSettings):
    # Database
    db_name: str = "scripthub_db"
    db_user: str = "postgres"
    db_password: str = ""
    db_host: str = "localhost"
    db_port: str = "5432"
    database_url: str | None = None

    # Environment
    env: str = "local"
    debug: bool = True

    # Requests slower than this are logged as warnings
    slow_request_threshold_seconds: float = 1.0

    # Public URL, used for generated @namespace values
    site_url: str = "https://scripthub.local"

    # Accounts and moderation
    banned_email_salt: str = BANNED_EMAIL_SALT
    confirmation_grace_period_seconds: int = CONFIRMATION_GRACE_PERIOD_SECONDS
    system_moderator_name: str = "ScriptHub Moderation Bot"

    # Automated script checking
    script_checker_ban_delay_seconds: int = SCRIPT_CHECKER_BAN_DELAY_SECONDS
    blocked_code_patterns: list[str] = []
    review_code_patterns: list[str] = []
    ban_code_patterns: list[str] = []

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
