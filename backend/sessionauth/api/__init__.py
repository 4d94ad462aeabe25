"""HTTP API: versioned blueprint registration."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def mount(app: Flask, base_prefix: str, entries: Iterable[tuple[Blueprint, str]]) -> None:
    """Register each ``(blueprint, relative_prefix)`` under ``base_prefix``.

    An empty relative prefix mounts the blueprint at ``base_prefix`` itself.
    """
    base = "/" + base_prefix.strip("/")
    for bp, rel_prefix in entries:
        rel = rel_prefix.strip("/")
        app.register_blueprint(bp, url_prefix=f"{base}/{rel}" if rel else base)


def init_app(app: Flask) -> None:
    """Mount API v1 under ``API_BASE_PREFIX`` (``/api`` by default)."""
    from sessionauth.api.v1 import API_VERSION, REGISTRY

    api_base = app.config.get("API_BASE_PREFIX", "/api").rstrip("/")
    mount(app, f"{api_base}/{API_VERSION}", REGISTRY)


__all__ = ["init_app", "mount"]
