from __future__ import annotations

import logging
import time
import uuid

from fastapi import FastAPI, Request

from auth_relay.core.responses import send_response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def generate_correlation_id(existing: str | None = None) -> str:
    if existing and existing.strip():
        return existing.strip()
    return uuid.uuid4().hex


def register_request_logging_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        """
        Tag every request with a correlation id and log method, path, status
        and latency once the response is ready. Headers and bodies are never
        logged since they carry credentials.

        Unclassified errors from handlers are turned into the 500 envelope
        here so the response still carries the correlation id.
        """
        request_id = generate_correlation_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Unhandled error in %s %s request_id=%s",
                request.method,
                request.url.path,
                request_id,
            )
            response = send_response(500, False, "Internal Server Error")
        ms = (time.perf_counter() - start) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "%s %s %d %.1fms request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            request_id,
        )
        return response
