"""Flask CLI commands for deterministic development database seeding."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext

from sessionauth.core.extensions import db
from sessionauth.repositories.user import UserRepository
from sessionauth.security.password import PasswordHasher
from sessionauth.services._shared.dto import UserRole
from sessionauth.services._shared.ports import CreateUserData

LOGGER = logging.getLogger(__name__)

# (email, name, password, role)
DEMO_USERS: tuple[tuple[str, str, str, UserRole], ...] = (
    ("admin@example.com", "Admin", "Admin123!", UserRole.ADMIN),
    ("moderator@example.com", "Moderator", "Moderator123!", UserRole.MODERATOR),
    ("user@example.com", "Regular User", "User123!", UserRole.USER),
)


def _ensure_non_production() -> None:
    """Abort seeding when running in production."""
    config = current_app.config
    app_env = str(config.get("APP_ENV", "")).lower()
    if app_env == "production":
        raise click.UsageError("The 'flask seed' commands are restricted to non-production environments.")


def seed_users(repo: UserRepository, hasher: PasswordHasher) -> dict[str, int]:
    """Create the demo accounts that do not exist yet.

    :returns: ``{"created": n, "existing": m}``.
    """
    counters = {"created": 0, "existing": 0}
    for email, name, password, role in DEMO_USERS:
        if repo.find_by_email(email) is not None:
            counters["existing"] += 1
            continue
        repo.create(
            CreateUserData(email=email, password_hash=hasher.hash(password), name=name, role=role)
        )
        counters["created"] += 1
        LOGGER.info("seed.user_created", extra={"reason": role.value})
    return counters


@click.group("seed")
@click.option("--verbose", is_flag=True, help="Enable verbose logging for seeding.")
@click.pass_context
def seed_cli(ctx: click.Context, verbose: bool) -> None:
    """Collection of database seeding commands."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    LOGGER.setLevel(logging.DEBUG if verbose else logging.INFO)


@seed_cli.command("users")
@click.option("--create-tables", is_flag=True, help="Run create_all() before seeding.")
@with_appcontext
def users_command(create_tables: bool) -> None:
    """Create the admin, moderator and regular demo accounts (idempotent)."""
    _ensure_non_production()
    if create_tables:
        db.create_all()
    hasher = PasswordHasher(method=current_app.config.get("PASSWORD_HASH_METHOD", "scrypt"))
    counters = seed_users(UserRepository(db.session), hasher)
    click.echo(f"users  created={counters['created']:>2}  existing={counters['existing']:>2}")
