"""Environment detection utilities."""

import os


def get_environment() -> str:
    """Get the current environment name.

    Returns:
        Environment name: 'local', 'test', 'staging', or 'production'
    """
    return os.getenv("ENV", "local")


def is_production() -> bool:
    """Check if running in production environment."""
    return get_environment() == "production"


def is_staging() -> bool:
    """Check if running in staging environment."""
    return get_environment() == "staging"


def is_test() -> bool:
    """Check if running under the test suite.

    Delayed jobs run inline and external challenge checks are skipped
    when this is True.
    """
    return get_environment() == "test"


def is_debug() -> bool:
    """Check if running in debug/local mode.

    Returns:
        True if ENV is 'local' or not set
    """
    return get_environment() == "local"

