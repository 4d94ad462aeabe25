"""Persistence-layer access for credential records."""

from __future__ import annotations

from sessionauth.repositories.user import UserRepository

__all__ = ["UserRepository"]
