"""Version 1 of the HTTP API."""

from __future__ import annotations

from flask import Blueprint

from sessionauth.api.v1.auth import bp as auth_bp
from sessionauth.api.v1.health import bp as health_bp

API_VERSION = "v1"

# (blueprint, prefix relative to /api/v1)
REGISTRY: list[tuple[Blueprint, str]] = [
    (health_bp, ""),
    (auth_bp, "/auth"),
]
