"""Cross-origin policy for browser clients of the auth API."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

from sessionauth.core.logger import REQUEST_ID_HEADER


def allowed_origins(raw: str | None) -> list[str] | str:
    """Parse ``CORS_ORIGINS``; blank or ``*`` means any origin."""
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    return "*" if not origins or origins == ["*"] else origins


def init_app(app: Flask) -> None:
    """Apply CORS to ``/api/*``.

    Credentials (the bearer header) are only allowed with an explicit origin
    list. The request-id header is exposed to scripts.
    """
    origins = allowed_origins(app.config.get("CORS_ORIGINS"))
    CORS(
        app,
        resources={r"/api/*": {"origins": origins}},
        supports_credentials=origins != "*",
        expose_headers=[REQUEST_ID_HEADER],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
