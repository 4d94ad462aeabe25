"""Problem+JSON (RFC 7807) rendering for every error leaving the API."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from sessionauth.core.logger import ensure_request_id
from sessionauth.services._shared.errors import ServiceError, TokenStoreError

log = logging.getLogger(__name__)

# Stable machine codes for the statuses this API emits.
STATUS_CODES: dict[int, str] = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    415: "unsupported_media_type",
    422: "validation_error",
    500: "internal_server_error",
    503: "service_unavailable",
}

# Infrastructure failures: exception type -> (status, client-safe detail).
INFRA_FAILURES: dict[type[Exception], tuple[HTTPStatus, str]] = {
    TokenStoreError: (HTTPStatus.SERVICE_UNAVAILABLE, "Service temporarily unavailable"),
    OperationalError: (HTTPStatus.SERVICE_UNAVAILABLE, "Service temporarily unavailable"),
    IntegrityError: (HTTPStatus.CONFLICT, "Resource conflict"),
}


def problem(
    status: int,
    message: str,
    *,
    code: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a problem document for the current request.

    :param status: HTTP status code.
    :param message: Client-safe summary, rendered as ``detail``.
    :param code: Machine code; derived from ``status`` when omitted.
    :param details: Optional structured payload (validation messages,
        password rule violations).
    """
    body: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": int(status),
        "detail": message,
        "instance": request.path if request else None,
        "code": code or STATUS_CODES.get(int(status), "error"),
        "request_id": ensure_request_id(),
    }
    if details:
        body["details"] = details
    return body


def problem_response(body: dict[str, Any]) -> tuple[Response, int]:
    """Serialize ``body`` as ``application/problem+json`` with its status."""
    resp = jsonify(body)
    resp.mimetype = "application/problem+json"
    return resp, body["status"]


class APIError(Exception):
    """
    Error raised by the HTTP layer with an explicit status.

    :param message: Client-facing description.
    :param status_code: HTTP status, ``400`` by default.
    :param code: Machine code, snake_case.
    :param details: Optional structured payload.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        return problem(self.status_code, self.message, code=self.code, details=self.details)


class NotFound(APIError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status_code=HTTPStatus.NOT_FOUND, code="not_found")


class Conflict(APIError):
    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message, status_code=HTTPStatus.CONFLICT, code="conflict")


class Unauthorized(APIError):
    """401 with the one detail every token failure shares."""

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED, code="unauthorized")


class Forbidden(APIError):
    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status_code=HTTPStatus.FORBIDDEN, code="forbidden")


def init_app(app: Flask) -> None:
    """
    Register the error handlers.

    4xx responses are logged as warnings without traceback; 5xx responses
    and infrastructure failures are logged as errors with ``exc_info``.
    """

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        body = err.to_problem()
        level = log.error if err.status_code >= 500 else log.warning
        level(
            "APIError: code=%s status=%s msg=%s request_id=%s",
            err.code,
            err.status_code,
            err.message,
            body["request_id"],
        )
        return problem_response(body)

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        from sessionauth.services._shared.base import BaseService

        return handle_api_error(BaseService.translate_exceptions(err))

    def handle_infra_failure(err: Exception):
        status, message = next(
            spec for kind, spec in INFRA_FAILURES.items() if isinstance(err, kind)
        )
        body = problem(status, message)
        log.error(
            "%s: request_id=%s", type(err).__name__, body["request_id"], exc_info=True
        )
        return problem_response(body)

    for kind in INFRA_FAILURES:
        app.register_error_handler(kind, handle_infra_failure)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        if status == HTTPStatus.NOT_FOUND and request:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or HTTPStatus(status).phrase).strip()
        body = problem(status, message)
        level = log.error if status >= 500 else log.warning
        level("HTTPException: status=%s detail=%s request_id=%s", status, message, body["request_id"])
        return problem_response(body)

    @app.errorhandler(MarshmallowValidationError)
    def handle_validation_error(err: MarshmallowValidationError):
        body = problem(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "Validation failed",
            details={"errors": err.messages},
        )
        log.warning("ValidationError: request_id=%s", body["request_id"])
        return problem_response(body)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        # never leak internals
        body = problem(HTTPStatus.INTERNAL_SERVER_ERROR, "Unexpected error")
        log.error("Unhandled exception: request_id=%s", body["request_id"], exc_info=True)
        return problem_response(body)
