"""Application factory wiring configuration, logging and the auth runtime."""

from __future__ import annotations

from flask import Flask

from authgate.core.config import BaseConfig, get_config
from authgate.core.logger import configure_logging, init_app as init_logging
from authgate.services._shared.ports import IdentityDirectory, KeyValueStore, MessageChannel


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    store: KeyValueStore | None = None,
    channel: MessageChannel | None = None,
    directory: IdentityDirectory | None = None,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    ``store``, ``channel`` and ``directory`` replace the collaborators that
    would otherwise be built from configuration.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from authgate.core import extensions

    extensions.init_app(app, store=store, channel=channel, directory=directory)

    init_logging(app)

    from authgate import cli as app_cli

    app_cli.init_app(app)

    return app
