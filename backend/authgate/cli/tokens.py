"""Flask CLI commands for operating credentials, one-time codes and the store."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from authgate.core.extensions import get_auth
from authgate.services._shared.errors import CredentialError, ServiceError
from authgate.services.tokens.dto import AccessClaims, Identity

LOGGER = logging.getLogger(__name__)


def _fail(exc: ServiceError) -> click.ClickException:
    return click.ClickException(f"{exc.kind.value}: {exc}")


# --------------------------------------------------------------------------- #
# flask tokens ...
# --------------------------------------------------------------------------- #


@click.group("tokens")
def tokens_cli() -> None:
    """Issue, inspect and revoke credentials."""


@tokens_cli.command("issue")
@click.argument("subject")
@click.option("--role", default=None, help="Role tag embedded in the credentials.")
@with_appcontext
def issue_command(subject: str, role: str | None) -> None:
    """Issue an access/refresh pair for SUBJECT."""
    try:
        pair = get_auth().issue_token_pair(Identity(subject=subject, role=role))
    except CredentialError as exc:
        raise _fail(exc) from exc
    click.echo(f"access_token={pair.access_token}")
    click.echo(f"refresh_token={pair.refresh_token}")


@tokens_cli.command("inspect")
@click.argument("token")
@with_appcontext
def inspect_command(token: str) -> None:
    """Verify TOKEN and print its claims."""
    auth = get_auth()
    try:
        claims = auth.signer.verify(token)
        revoked = isinstance(claims, AccessClaims) and auth.verifier.is_revoked(claims.jti)
    except CredentialError as exc:
        raise _fail(exc) from exc
    click.echo(f"type={claims.type}")
    click.echo(f"subject={claims.subject}")
    click.echo(f"role={claims.role or '-'}")
    click.echo(f"expires_at={claims.expires_at_dt.isoformat()}")
    if isinstance(claims, AccessClaims):
        click.echo(f"revoked={'yes' if revoked else 'no'}")


@tokens_cli.command("revoke")
@click.option("--access", "access_token", default=None, help="Access credential to blacklist.")
@click.option("--refresh", "refresh_token", default=None, help="Refresh credential to revoke.")
@with_appcontext
def revoke_command(access_token: str | None, refresh_token: str | None) -> None:
    """Log out the given credentials (best effort)."""
    if not access_token and not refresh_token:
        raise click.UsageError("Pass --access and/or --refresh.")
    result = get_auth().logout(access_token=access_token, refresh_token=refresh_token)
    click.echo(f"refresh_revoked={result.refresh_revoked}")
    click.echo(f"access_blacklisted={result.access_blacklisted}")
    for failure in result.failures:
        click.echo(f"skipped {failure}", err=True)


# --------------------------------------------------------------------------- #
# flask otp ...
# --------------------------------------------------------------------------- #


@click.group("otp")
def otp_cli() -> None:
    """One-time code commands."""


@otp_cli.command("send")
@click.argument("phone")
@with_appcontext
def send_command(phone: str) -> None:
    """Send a one-time code to PHONE."""
    try:
        get_auth().issue_otp(phone)
    except ServiceError as exc:
        raise _fail(exc) from exc
    LOGGER.info("otp sent from cli")
    click.echo("OTP sent")


# --------------------------------------------------------------------------- #
# flask store ...
# --------------------------------------------------------------------------- #


@click.group("store")
def store_cli() -> None:
    """Shared store commands."""


@store_cli.command("ping")
@with_appcontext
def ping_command() -> None:
    """Check that the shared store answers."""
    if not get_auth().ping():
        raise click.ClickException("store unreachable")
    click.echo("store ok")
