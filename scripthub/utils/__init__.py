"""Utility modules for the scripthub backend."""

from scripthub.utils.logger import logger, setup_logger
from scripthub.utils.environment import (
    is_production,
    is_staging,
    is_test,
    is_debug,
    get_environment,
)
from scripthub.utils.sentry_utils import configure_sentry, wrap_with_sentry
from scripthub.utils.response_utils import success, error_response
from scripthub.utils.constants import (
    API_VERSION,
    API_PREFIX,
    MAX_CODE_LENGTH,
    MAX_SCREENSHOT_SIZE_BYTES,
    ALLOWED_IMAGE_TYPES,
)

__all__ = [
    # Logger
    "logger",
    "setup_logger",
    # Environment
    "is_production",
    "is_staging",
    "is_test",
    "is_debug",
    "get_environment",
    # Sentry
    "configure_sentry",
    "wrap_with_sentry",
    # Response
    "success",
    "error_response",
    # Constants
    "API_VERSION",
    "API_PREFIX",
    "MAX_CODE_LENGTH",
    "MAX_SCREENSHOT_SIZE_BYTES",
    "ALLOWED_IMAGE_TYPES",
]
