"""Sentry error reporting.

Enabled only in deployed environments with SENTRY_DSN set. Every helper
here is a no-op otherwise, so callers never check.
"""

import functools
import os
from typing import Any, Callable, TypeVar

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from scripthub.utils.environment import get_environment, is_debug, is_test

F = TypeVar("F", bound=Callable[..., Any])

_sentry_initialized = False


def configure_sentry(dsn_env_var: str = "SENTRY_DSN") -> bool:
    """Initialize Sentry. Returns whether it is active."""
    global _sentry_initialized

    if _sentry_initialized:
        return True
    if is_debug() or is_test():
        return False

    dsn = os.getenv(dsn_env_var)
    if not dsn:
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=get_environment(),
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.2")),
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        # Account emails stay out of error reports
        send_default_pii=False,
    )
    _sentry_initialized = True
    return True


def capture_exception(exception: Exception) -> None:
    if _sentry_initialized:
        sentry_sdk.capture_exception(exception)


def set_user_context(user_id: int | str) -> None:
    """Tag later events in this scope with the account id."""
    if _sentry_initialized:
        sentry_sdk.set_user({"id": str(user_id)})


def wrap_with_sentry(func: F) -> F:
    """Report exceptions from an async function, then re-raise them.

    For delayed jobs, which run outside any request and so outside the
    FastAPI integration.
    """
    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            capture_exception(e)
            raise

    return wrapper  # type: ignore
