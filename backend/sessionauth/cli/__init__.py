"""``flask`` command groups."""

from __future__ import annotations

from flask import Flask

from sessionauth.cli.seed import seed_cli


def init_app(app: Flask) -> None:
    """Attach the ``seed`` group to ``app.cli``."""
    app.cli.add_command(seed_cli)
