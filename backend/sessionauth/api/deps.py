"""Shared API dependencies: service wiring, auth gates and response helpers."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Response, current_app, g, jsonify, request

from sessionauth.core.audit import AuditLogger
from sessionauth.core.errors import Forbidden, Unauthorized
from sessionauth.core.extensions import db, get_token_store
from sessionauth.core.logger import ensure_request_id
from sessionauth.infra.jwt import FlaskJWTTokenCodec
from sessionauth.repositories.user import UserRepository
from sessionauth.security.password import PasswordHasher
from sessionauth.services._shared.base import ServiceContext
from sessionauth.services._shared.dto import TokenKind, UserRole
from sessionauth.services._shared.ports import TokenClaims
from sessionauth.services.auth.dto import AuthTokenConfig
from sessionauth.services.auth.service import AuthService

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "bearer "


def service_context() -> ServiceContext:
    """Capture request metadata used by audit records."""
    return ServiceContext(
        request_id=ensure_request_id(),
        ip=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )


def get_auth_service() -> AuthService:
    """Build an :class:`AuthService` wired to the current app's collaborators."""
    config = current_app.config
    return AuthService(
        user_store=UserRepository(db.session),
        token_store=get_token_store(),
        token_codec=FlaskJWTTokenCodec(),
        password_hasher=PasswordHasher(method=config.get("PASSWORD_HASH_METHOD", "scrypt")),
        token_cfg=AuthTokenConfig.from_config(config),
        audit=AuditLogger(),
        ctx=service_context(),
    )


def bearer_token() -> str | None:
    """Return the token of an ``Authorization: Bearer <token>`` header."""
    header = request.headers.get("Authorization", "")
    if not header.lower().startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX) :].strip()
    return token or None


def current_claims() -> TokenClaims:
    """Claims of the access token accepted by :func:`require_auth`."""
    return cast(TokenClaims, g.auth_claims)


def require_auth(func: F) -> F:
    """Ensure the request carries a valid, non-revoked access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        if token is None:
            raise Unauthorized("No token provided")
        g.auth_claims = get_auth_service().verify_token(token, TokenKind.ACCESS)
        g.auth_token = token
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_role(*roles: UserRole | str) -> Callable[[F], F]:
    """Allow only the given roles. Admins are always allowed.

    Must be stacked under :func:`require_auth`.
    """
    allowed = {UserRole(r) for r in roles}

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            claims = current_claims()
            if claims.role is not UserRole.ADMIN and claims.role not in allowed:
                AuditLogger().log_authorization_failure(
                    user_id=claims.subject_id,
                    resource=request.path,
                    required_roles=sorted(r.value for r in allowed),
                    current_role=claims.role.value,
                    ip=request.remote_addr,
                )
                raise Forbidden("Insufficient permissions")
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
