# authgate/services/tokens/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Literal

ACCESS_TOKEN_TYPE: Literal["access"] = "access"
REFRESH_TOKEN_TYPE: Literal["refresh"] = "refresh"

# ---------------------------- Identity ------------------------------------ #


@dataclass(frozen=True, slots=True)
class Identity:
    """
    Authenticated principal carried inside credentials.

    :param subject: Opaque user/staff identifier.
    :type subject: str
    :param role: Optional role tag (e.g. ``"user"``, ``"driver"``, ``"Admin"``).
    :type role: str | None
    """

    subject: str
    role: str | None = None


# ----------------------------- Claims ------------------------------------- #


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """
    Decoded claims of an access credential.

    :param subject: ``sub`` claim.
    :param role: ``role`` claim.
    :param jti: Unique id, used as the blacklist key.
    :param issued_at: ``iat`` as UNIX seconds.
    :param expires_at: ``exp`` as UNIX seconds.
    """

    subject: str
    role: str | None
    jti: str
    issued_at: int
    expires_at: int
    type: Literal["access"] = ACCESS_TOKEN_TYPE

    @property
    def identity(self) -> Identity:
        return Identity(subject=self.subject, role=self.role)

    @property
    def expires_at_dt(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at, tz=UTC)


@dataclass(frozen=True, slots=True)
class RefreshClaims:
    """
    Decoded claims of a refresh credential.

    :param subject: ``sub`` claim.
    :param role: ``role`` claim, replayed into refreshed access credentials.
    :param token_id: ``jti`` claim, key of the server-side refresh record.
    :param issued_at: ``iat`` as UNIX seconds.
    :param expires_at: ``exp`` as UNIX seconds.
    """

    subject: str
    role: str | None
    token_id: str
    issued_at: int
    expires_at: int
    type: Literal["refresh"] = REFRESH_TOKEN_TYPE

    @property
    def identity(self) -> Identity:
        return Identity(subject=self.subject, role=self.role)

    @property
    def expires_at_dt(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at, tz=UTC)


Claims = AccessClaims | RefreshClaims

# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class IssuedRefreshToken:
    """
    Refresh credential together with its server-side record id.

    :param token: Encoded refresh JWT.
    :param token_id: Key of the refresh record in the store.
    :param expires_at: Absolute expiry shared by the JWT and the record.
    """

    token: str
    token_id: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class RefreshOut:
    """
    Result of a refresh call.

    :param access_token: Newly issued access JWT.
    :param refresh_token: Replacement refresh JWT when rotation is enabled,
        otherwise ``None`` (the presented one stays valid).
    """

    access_token: str
    refresh_token: str | None = None


@dataclass(frozen=True, slots=True)
class LogoutOut:
    """
    Outcome of a logout. Logout always succeeds from the caller's view;
    these flags only describe what server state changed.

    :param refresh_revoked: A refresh record was deleted.
    :param access_blacklisted: The access credential was blacklisted.
    :param failures: Sub-steps that failed (kept for diagnostics).
    """

    refresh_revoked: bool = False
    access_blacklisted: bool = False
    failures: tuple[str, ...] = ()


# ------------------------ Config DTO -------------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime (also the record TTL).
    :type refresh_expires: timedelta
    :param rotate_refresh: Consume and replace refresh tokens on use.
    :type rotate_refresh: bool
    """

    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
    rotate_refresh: bool = False

    @property
    def access_ttl(self) -> int:
        return int(self.access_expires.total_seconds())

    @property
    def refresh_ttl(self) -> int:
        return int(self.refresh_expires.total_seconds())
