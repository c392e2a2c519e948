from __future__ import annotations

from typing import Any, Mapping

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field


class Envelope(BaseModel):
    """Uniform response body for every endpoint, success or failure."""

    code: int
    success: bool
    message: str
    data: dict[str, Any] = Field(default_factory=dict)


def build_envelope(
    status_code: int = 200,
    success: bool = True,
    message: str = "",
    data: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    return Envelope(
        code=status_code,
        success=success,
        message=message,
        data=dict(data or {}),
    ).model_dump()


def send_response(
    status_code: int = 200,
    success: bool = True,
    message: str = "",
    data: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """
    Build the JSON response for an envelope.

    The transport status always equals ``code``. ``data`` must already be
    JSON-serializable (see ``Account.to_public``).
    """
    return JSONResponse(
        status_code=status_code,
        content=build_envelope(status_code, success, message, data),
        headers=dict(headers) if headers else None,
    )
