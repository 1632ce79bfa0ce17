import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment-specific .env file BEFORE any scripthub imports
env = os.getenv("ENV", "local")
dotenv_file = f".env.{env}"
load_dotenv(dotenv_file)

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from scripthub.db import get_db
from scripthub.errors import ScriptHubError
from scripthub.middleware import RequestTimingMiddleware
from scripthub.utils import (
    logger,
    configure_sentry,
    is_debug,
    API_PREFIX,
)
from scripthub.utils.response_utils import error_response
from scripthub.utils.sentry_utils import capture_exception
from scripthub.routers import (
    auth_router,
    script_versions_router,
    users_router,
    reports_router,
)
from scripthub.services.scheduler import scheduler_service

# Initialize Sentry for error tracking (not in local or test)
sentry_enabled = configure_sentry()
if sentry_enabled:
    logger.info("Sentry error tracking initialized")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start and stop the delayed job runner with the app."""
    await scheduler_service.start()

    yield

    await scheduler_service.stop()


app = FastAPI(
    title="ScriptHub Backend",
    description="Userscript hosting: publishing, versions and moderation",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestTimingMiddleware)

# Register routers
app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(script_versions_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)
app.include_router(reports_router, prefix=API_PREFIX)


@app.exception_handler(ScriptHubError)
async def scripthub_exception_handler(request: Request, exc: ScriptHubError):
    """Forbidden, not found and conflict errors raised by services."""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
    return error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Anything else is a bug: report it and answer 500 without details."""
    logger.error(
        f"Unhandled {exc.__class__.__name__} on {request.method} {request.url.path}: {exc}",
        exc_info=True,
    )
    capture_exception(exc)
    return error_response(
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        status_code=500,
    )


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Database reachability and the delayed job runner's state."""
    try:
        await db.execute(text("SELECT 1"))
        database = "connected"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        database = "disconnected"

    return {
        "status": "healthy" if database == "connected" else "degraded",
        "database": database,
        "scheduler": "running" if scheduler_service.running else "stopped",
        "pending_jobs": scheduler_service.pending_count,
    }


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting ScriptHub Backend (env={env}, debug={is_debug()})")
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=is_debug())
