"""Application factory for the session auth service."""

from __future__ import annotations

from flask import Flask

from sessionauth.core.config import BaseConfig, get_config, validate_config
from sessionauth.core.logger import configure_logging


def create_app(config: type[BaseConfig] | object | None = None) -> Flask:
    """
    Build the WSGI application.

    :param config: Config class or object; defaults to the class selected by
        ``APP_ENV``. Settings in ``instance/config.py`` override it.
    :raises RuntimeError: When :func:`validate_config` rejects the settings
        or the token store cannot be built.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config if config is not None else get_config())
    app.config.from_pyfile("config.py", silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))
    validate_config(app.config)

    # proxy before anything reads remote_addr; errors after the blueprints
    from sessionauth import api, cli
    from sessionauth.core import cors, errors, extensions, logger, proxy

    for module in (proxy, extensions, logger, cors, api, errors, cli):
        module.init_app(app)

    return app
