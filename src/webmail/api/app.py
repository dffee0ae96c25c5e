"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from webmail import __version__
from webmail.api.auth import router as auth_router
from webmail.api.compose import router as compose_router
from webmail.api.mail import router as mail_router
from webmail.api.settings import router as settings_router
from webmail.config import Settings, get_settings
from webmail.exceptions import (
    AuthenticationError,
    GatewayTimeoutError,
    NotFoundError,
    TransientGatewayError,
    ValidationError,
)
from webmail.persistence import SettingsRepository
from webmail.session import DemoSessionService, SessionRegistry

logger = structlog.get_logger()


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app(
    settings: Settings | None = None, registry: SessionRegistry | None = None
) -> FastAPI:
    """Build the webmail API.

    Args:
        settings: Application settings. If None, uses default settings.
        registry: Session registry; a demo login with the SQLite settings
            store is wired up when omitted.
    """
    settings = settings or get_settings()

    if registry is None:
        repository = SettingsRepository(
            settings.settings_db_path,
            default_send_delay_seconds=settings.default_send_delay_seconds,
        )
        repository.initialize()
        registry = SessionRegistry(
            DemoSessionService(), settings=settings, settings_repository=repository
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("webmail_api_started", host=settings.host, port=settings.port)
        yield
        await registry.close_all()
        logger.info("webmail_api_stopped")

    app = FastAPI(title="Webmail Backend", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(mail_router)
    app.include_router(compose_router)
    app.include_router(settings_router)

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return _error(400, exc)

    @app.exception_handler(AuthenticationError)
    async def _authentication_error(request: Request, exc: AuthenticationError) -> JSONResponse:
        return _error(401, exc)

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error(404, exc)

    @app.exception_handler(TransientGatewayError)
    async def _gateway_error(request: Request, exc: TransientGatewayError) -> JSONResponse:
        logger.warning("request_failed_transient", path=request.url.path, error=str(exc))
        return _error(504 if isinstance(exc, GatewayTimeoutError) else 503, exc)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "sessions": len(registry)}

    return app
