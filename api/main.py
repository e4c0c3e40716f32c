"""
FastAPI application initialization and configuration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import health
from api.routes.v1 import (
    applications,
    auth,
    institutions,
    jobs,
    memberships,
    notifications,
    saved_jobs,
    users,
)
from core.config import settings
from core.middleware import (
    AuthenticationMiddleware,
    ErrorHandlingMiddleware,
    StructuredLoggingMiddleware,
    setup_error_handlers,
    setup_logging,
)
from database.engine import close_db, init_db

# Setup structured logging (do this first, before anything else)
setup_logging(
    log_level=settings.log_level,
    json_logs=settings.json_logs,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    logger.info(f"Starting {settings.app_name} in {settings.app_env} environment")
    if settings.app_env == "development":
        await init_db()

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Multi-tenant job board",
    version="0.1.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Setup error handlers (before middleware)
setup_error_handlers(app)

# Middleware executes in reverse order of registration: the last one added is outermost
# 1. Error handling (innermost)
app.add_middleware(ErrorHandlingMiddleware, debug=settings.debug)

# 2. Structured request logging
app.add_middleware(
    StructuredLoggingMiddleware,
    log_request_body=settings.log_request_body,
    max_body_size=settings.log_max_body_size,
)

# 3. Bearer token -> scope["identity"]
app.add_middleware(AuthenticationMiddleware)

# 4. CORS (outermost)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["health"])
for module in (
    auth,
    users,
    institutions,
    memberships,
    jobs,
    applications,
    saved_jobs,
    notifications,
):
    app.include_router(module.router, prefix=settings.api_v1_prefix)


@app.get("/")
async def root():
    return {"message": settings.app_name, "version": "0.1.0"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
