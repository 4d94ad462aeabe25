"""Security audit trail for authentication events."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

AUDIT_LOGGER_NAME = "sessionauth.audit"


@dataclass(frozen=True, slots=True)
class AuditEvent:
    """
    A single security-relevant event.

    :param action: Upper-case action code, e.g. ``AUTH_LOGIN``.
    :param success: Whether the attempt succeeded.
    :param user_id: Subject id when known.
    :param email: Email supplied by the caller (login/register only).
    :param ip: Client address as seen by the HTTP layer.
    :param user_agent: Client user agent.
    :param reason: Short failure cause, internal only.
    """

    action: str
    success: bool
    user_id: str | None = None
    email: str | None = None
    ip: str | None = None
    user_agent: str | None = None
    reason: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class AuditLogger:
    """
    Emit audit events through the standard logging pipeline.

    Successful events are logged at INFO and failures at WARNING so they
    can be routed separately by the log collector.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.log = logger or logging.getLogger(AUDIT_LOGGER_NAME)

    def log_event(self, event: AuditEvent) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "type": "SECURITY_AUDIT",
            **{k: v for k, v in asdict(event).items() if v not in (None, {})},
        }
        if event.success:
            self.log.info("security_audit %s", event.action, extra={"audit": entry})
        else:
            self.log.warning("security_audit %s failed", event.action, extra={"audit": entry})

    def log_auth(
        self,
        *,
        action: str,
        success: bool,
        user_id: int | str | None = None,
        email: str | None = None,
        ip: str | None = None,
        user_agent: str | None = None,
        reason: str | None = None,
    ) -> None:
        """Record an authentication attempt (``login``, ``register``, ``logout`` ...)."""
        self.log_event(
            AuditEvent(
                action=f"AUTH_{action.upper()}",
                success=success,
                user_id=str(user_id) if user_id is not None else None,
                email=email,
                ip=ip,
                user_agent=user_agent,
                reason=reason,
            )
        )

    def log_authorization_failure(
        self,
        *,
        user_id: int | str,
        resource: str,
        required_roles: list[str],
        current_role: str | None,
        ip: str | None = None,
    ) -> None:
        self.log_event(
            AuditEvent(
                action="AUTHORIZATION_DENIED",
                success=False,
                user_id=str(user_id),
                ip=ip,
                metadata={
                    "resource": resource,
                    "required_roles": required_roles,
                    "current_role": current_role,
                },
            )
        )
