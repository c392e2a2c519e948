from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth_relay.core.config import Settings, settings as default_settings
from auth_relay.core.errors import ApiError
from auth_relay.core.logging import configure_logging
from auth_relay.core.responses import send_response
from auth_relay.middleware.request_logging import REQUEST_ID_HEADER, register_request_logging_middleware
from auth_relay.routes.auth import router as auth_router
from auth_relay.services.cognito_client import CognitoIdentityProvider
from auth_relay.services.identity_provider import IdentityProvider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # An injected provider (tests, embedding) wins over the configured one.
    if app.state.identity_provider is None:
        app.state.identity_provider = CognitoIdentityProvider.from_settings(app.state.settings)
    logger.info(
        "Startup config: ENV=%s provider=%s",
        app.state.settings.ENV,
        type(app.state.identity_provider).__name__,
    )
    yield
    logger.info("Auth relay shutdown complete")


async def api_error_handler(request: Request, exc: ApiError):  # noqa: ARG001
    return send_response(exc.status_code, False, exc.message, headers=exc.headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):  # noqa: ARG001
    detail = exc.detail
    message = detail if isinstance(detail, str) and detail else "Request failed"
    return send_response(exc.status_code, False, message, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):  # noqa: ARG001
    return send_response(
        400,
        False,
        "Invalid request payload",
        {"errors": jsonable_encoder(exc.errors())},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    # Handler errors are caught by the request logging middleware; this covers
    # failures outside it (outer middleware). Starlette re-raises if a response
    # has already started.
    request_id = getattr(request.state, "request_id", None)
    logger.exception(
        "Unhandled error in %s %s request_id=%s: %s",
        request.method,
        request.url.path,
        request_id,
        exc,
    )
    headers = {REQUEST_ID_HEADER: request_id} if request_id else None
    return send_response(500, False, "Internal Server Error", headers=headers)


def create_app(
    settings: Settings | None = None,
    provider: IdentityProvider | None = None,
) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Auth Relay",
        lifespan=lifespan,
        docs_url="/docs" if settings.EXPOSE_DOCS else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.EXPOSE_DOCS else None,
    )
    app.state.settings = settings
    app.state.identity_provider = provider

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    register_request_logging_middleware(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    app.include_router(auth_router)

    @app.get("/")
    def root():
        return send_response(200, True, "Hello from the auth relay!")

    @app.get("/health")
    def health_check():
        return send_response(200, True, "ok", {"status": "ok"})

    return app


app = create_app()
