"""Session auth service: login, registration, refresh rotation and revocation."""

from __future__ import annotations

from sessionauth.factory import create_app

__all__ = ["create_app"]
