"""Structured observability helpers for runtime logs."""

from __future__ import annotations

import logging

from fastapi import Request


def pipeline_log_fields(
    *,
    request_id: str | None,
    component: str,
    operation: str,
    ticker: str | None = None,
    status_code: int | None = None,
    **details: object,
) -> dict[str, object]:
    fields: dict[str, object] = {
        "requestId": request_id or "req-local",
        "component": component,
        "operation": operation,
    }
    if ticker is not None:
        fields["ticker"] = ticker
    if status_code is not None:
        fields["statusCode"] = status_code
    for key, value in details.items():
        if value is None:
            continue
        fields[key] = value
    return fields


def request_log_fields(
    *,
    request: Request,
    component: str,
    operation: str,
    status_code: int | None = None,
    **details: object,
) -> dict[str, object]:
    request_id = getattr(request.state, "request_id", None) or request.headers.get("X-Request-Id") or "req-unknown"
    fields: dict[str, object] = {
        "requestId": request_id,
        "component": component,
        "operation": operation,
        "resourceType": "request",
        "resourceId": request.url.path,
    }
    if status_code is not None:
        fields["statusCode"] = status_code
    for key, value in details.items():
        if value is None:
            continue
        fields[key] = value
    return fields


def log_pipeline_event(
    logger: logging.Logger,
    *,
    level: int,
    message: str,
    request_id: str | None,
    component: str,
    operation: str,
    ticker: str | None = None,
    status_code: int | None = None,
    **details: object,
) -> None:
    logger.log(
        level,
        message,
        extra=pipeline_log_fields(
            request_id=request_id,
            component=component,
            operation=operation,
            ticker=ticker,
            status_code=status_code,
            **details,
        ),
    )


def log_request_event(
    logger: logging.Logger,
    *,
    level: int,
    message: str,
    request: Request,
    component: str,
    operation: str,
    status_code: int | None = None,
    **details: object,
) -> None:
    logger.log(
        level,
        message,
        extra=request_log_fields(
            request=request,
            component=component,
            operation=operation,
            status_code=status_code,
            **details,
        ),
    )
