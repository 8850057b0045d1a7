"""Error taxonomy and JSON error envelopes for the sentiment API."""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class SentimentAPIError(Exception):
    """Domain error mapped to a stable code and HTTP status."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.request_id = request_id

    def to_error(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            error["details"] = self.details
        return error


class ValidationError(SentimentAPIError):
    """Ticker or request input is empty or malformed."""

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(SentimentAPIError):
    """The post source has no data for the ticker."""

    status_code = 404
    code = "NOT_FOUND"


class UpstreamError(SentimentAPIError):
    """Transport or payload failure in the post source."""

    status_code = 502
    code = "UPSTREAM_ERROR"


class EmptyInputError(SentimentAPIError):
    """Ingestion succeeded but no posts reached the aggregator."""

    status_code = 422
    code = "EMPTY_INPUT"


class RequestCancelledError(SentimentAPIError):
    """The caller abandoned the request before classification started."""

    # nginx's "client closed request"
    status_code = 499
    code = "REQUEST_CANCELLED"


def error_envelope(
    *,
    code: str,
    message: str,
    request_id: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the canonical ErrorResponse payload."""
    payload: dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
        },
        "requestId": request_id,
    }
    if details is not None:
        payload["error"]["details"] = details
    return payload


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or "req-unknown"


async def sentiment_api_error_handler(request: Request, exc: SentimentAPIError) -> JSONResponse:
    """Convert domain exceptions into canonical JSON error payloads."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(
            code=exc.code,
            message=exc.message,
            request_id=exc.request_id or _request_id(request),
            details=exc.details,
        ),
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Re-envelope FastAPI parameter validation failures as VALIDATION_ERROR."""
    fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
    return JSONResponse(
        status_code=ValidationError.status_code,
        content=error_envelope(
            code=ValidationError.code,
            message="Request parameters failed validation.",
            request_id=_request_id(request),
            details={"fields": fields},
        ),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler preserving the error envelope."""
    return JSONResponse(
        status_code=500,
        content=error_envelope(
            code="INTERNAL_ERROR",
            message="Internal server error",
            request_id=_request_id(request),
        ),
    )
