"""Account lifecycle: canonical emails, roles, registration checks and deletion."""

from scripthub.services.accounts.account_service import (
    account_service,
    AccountService,
    canonicalize_email,
)

__all__ = ["account_service", "AccountService", "canonicalize_email"]
