"""Command-line interface registration for the Flask application."""

from __future__ import annotations

from flask import Flask

from .tokens import otp_cli, store_cli, tokens_cli


def init_app(app: Flask) -> None:
    """Register application-specific CLI command groups.

    Parameters
    ----------
    app:
        Flask application instance whose CLI registry will receive the
        ``tokens``, ``otp`` and ``store`` command groups.
    """
    app.cli.add_command(tokens_cli)
    app.cli.add_command(otp_cli)
    app.cli.add_command(store_cli)
