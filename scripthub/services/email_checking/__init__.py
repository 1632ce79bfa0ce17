"""Disposable / invalid email checks for accounts about to post."""

from scripthub.services.email_checking.email_checking_config import EmailCheckSettings
from scripthub.services.email_checking.email_checking_service import (
    email_checking_service,
    EmailCheckingService,
)

__all__ = ["EmailCheckSettings", "email_checking_service", "EmailCheckingService"]
