"""FastAPI application factory — entry point for the collaboration graph service."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes.blocks import router as blocks_router
from app.api.routes.connections import router as connections_router
from app.api.routes.matches import router as matches_router
from app.api.routes.profiles import router as profiles_router
from app.api.routes.users import router as users_router
from app.config import settings
from app.domain.errors import (
    AlreadyExistsError,
    BlockedError,
    DomainError,
    InvalidRequestError,
    LimitExceededError,
    NotActiveError,
    NotFoundError,
    RepositoryError,
    SelfReferenceError,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[DomainError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    NotActiveError: status.HTTP_403_FORBIDDEN,
    BlockedError: status.HTTP_403_FORBIDDEN,
    SelfReferenceError: status.HTTP_400_BAD_REQUEST,
    AlreadyExistsError: status.HTTP_409_CONFLICT,
    LimitExceededError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidRequestError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    RepositoryError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Translate a named domain failure into its HTTP response."""
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "code": exc.code})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown events."""
    logger.info("Collaboration graph service starting up...")
    logger.info("Match cache backend: %s", settings.match_cache_backend.value)
    logger.info("Match cache TTL: %ds", settings.match_cache_ttl_seconds)
    yield
    logger.info("Collaboration graph service shutting down...")


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Collaboration Graph",
        description="Connections, blocking and collaborator matching for artists and producers",
        version="1.0.0",
        lifespan=lifespan,
    )

    # ── Middleware ──────────────────────────────────
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Errors ─────────────────────────────────────
    application.add_exception_handler(DomainError, domain_error_handler)

    # ── Routes ─────────────────────────────────────
    application.include_router(users_router)
    application.include_router(matches_router)
    application.include_router(connections_router)
    application.include_router(blocks_router)
    application.include_router(profiles_router)

    # ── Health Check ───────────────────────────────
    @application.get("/health", tags=["System"])
    async def health() -> dict[str, str]:
        return {"status": "healthy", "service": "collabgraph"}

    return application


app = create_app()
