# sessionauth/services/_shared/base.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from sessionauth.core import errors as api_errors
from sessionauth.services._shared.errors import (
    AlreadyExistsError,
    InvalidCredentialsError,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
    WeakPasswordError,
)

log = logging.getLogger(__name__)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data for auditing and tracing.

    :param request_id: Correlation id for logging/tracing.
    :param ip: Client address as seen by the HTTP layer.
    :param user_agent: Client user agent string.
    """

    request_id: str | None = None
    ip: str | None = None
    user_agent: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Hold the request-scoped :class:`ServiceContext`.
    * Centralize error translation to the HTTP boundary.

    Notes
    -----
    - Services stay framework-agnostic; only this translation knows about
      :mod:`sessionauth.core.errors`.
    """

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context (client address, tracing).
        :type ctx: ServiceContext | None
        """
        self.ctx = ctx or ServiceContext()

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: ServiceError) -> api_errors.APIError:
        """
        Map service-level errors to API-level (HTTP) errors.

        Every :class:`UnauthorizedError` collapses into the same 401 body; the
        internal reason is logged here and never returned.

        :param exc: Exception raised within the service.
        :type exc: ServiceError
        :returns: Translated exception ready to be rendered.
        :rtype: APIError
        """
        if isinstance(exc, UnauthorizedError):
            log.warning("auth.unauthorized", extra={"reason": exc.reason})
            return api_errors.Unauthorized()

        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(str(exc))

        if isinstance(exc, AlreadyExistsError):
            return api_errors.Conflict(str(exc))

        if isinstance(exc, WeakPasswordError):
            return api_errors.APIError(
                message=str(exc),
                status_code=400,
                code="weak_password",
                details={"errors": exc.errors},
            )

        if isinstance(exc, InvalidCredentialsError):
            return api_errors.APIError(
                message=str(exc),
                status_code=400,
                code="invalid_credentials",
            )

        # Any other ServiceError subclass → 400 Bad Request
        return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")
