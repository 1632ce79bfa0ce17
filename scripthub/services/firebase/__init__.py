"""Firebase service module for authentication"""

from scripthub.services.firebase.firebase_config import (
    get_firebase_app,
    initialize_firebase,
)
from scripthub.services.firebase.firebase_auth import (
    TokenData,
    get_current_user,
    get_optional_user,
    get_token_data,
    verify_token_async,
)

__all__ = [
    "get_firebase_app",
    "initialize_firebase",
    "TokenData",
    "get_current_user",
    "get_optional_user",
    "get_token_data",
    "verify_token_async",
]
