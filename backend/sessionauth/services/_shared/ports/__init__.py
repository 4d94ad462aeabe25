"""
sessionauth.services._shared.ports
==================================

Collection of *ports* (hexagonal interfaces) that define the contracts
for session management infrastructure.

These ports decouple the service layer from concrete implementations
of token signing, token storage and credential lookup.

Modules
-------
- :mod:`token_codec`:
    Defines :class:`~.TokenCodec`: abstraction for JWT signing and verification.

- :mod:`token_store`:
    Defines :class:`~.TokenStore`: key/value + set storage with TTL used for
    refresh-token sets and the blacklist.

- :mod:`user_store`:
    Defines :class:`~.UserStore` and :class:`~.CredentialRecord`: read/create
    access to credential records.

Design Notes
------------
Concrete adapters (Redis, in-memory, Flask-JWT-Extended, SQLAlchemy) live
under ``sessionauth.infra`` and ``sessionauth.repositories``.
"""

from __future__ import annotations

from .token_codec import TokenClaims, TokenCodec, TokenSubject
from .token_store import TokenStore, blacklist_key, refresh_set_key
from .user_store import CreateUserData, CredentialRecord, UserStore

__all__ = [
    "TokenCodec",
    "TokenClaims",
    "TokenSubject",
    "TokenStore",
    "blacklist_key",
    "refresh_set_key",
    "UserStore",
    "CredentialRecord",
    "CreateUserData",
]
