"""API routers module"""

from scripthub.routers.auth import router as auth_router
from scripthub.routers.script_versions import router as script_versions_router
from scripthub.routers.users import router as users_router
from scripthub.routers.reports import router as reports_router

__all__ = [
    "auth_router",
    "script_versions_router",
    "users_router",
    "reports_router",
]
