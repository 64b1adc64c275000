"""Request-level helpers protecting host route handlers with access credentials."""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, TypeVar

from flask import g, request

from authgate.core.extensions import get_auth
from authgate.services._shared.errors import ForbiddenError, MalformedTokenError
from authgate.services.tokens.dto import Identity

F = TypeVar("F", bound=Callable[..., Any])

AUTH_HEADER = "Authorization"
BEARER_PREFIX = "Bearer "


def bearer_token() -> str:
    """Return the bearer credential of the current request.

    Raises
    ------
    MalformedTokenError
        Header missing or not of the form ``Bearer <token>``.
    """

    header = request.headers.get(AUTH_HEADER, "")
    if not header.startswith(BEARER_PREFIX):
        raise MalformedTokenError("Missing bearer token")
    token = header[len(BEARER_PREFIX) :].strip()
    if not token:
        raise MalformedTokenError("Missing bearer token")
    return token


def current_identity() -> Identity | None:
    """Identity published by :func:`require_auth` for this request, if any."""

    return g.get("identity")


def require_auth(func: F) -> F:
    """Ensure the request carries a valid, non-revoked access credential.

    The verified :class:`Identity` is stored on ``g.identity``. Credential
    errors propagate unchanged; mapping them to responses is left to the
    host application's error handlers.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        g.identity = get_auth().verify_access(bearer_token())
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_role(*roles: str) -> Callable[[F], F]:
    """Ensure the verified credential carries one of ``roles``."""

    allowed = frozenset(roles)

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            identity = get_auth().verify_access(bearer_token())
            g.identity = identity
            if identity.role not in allowed:
                raise ForbiddenError()
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = ["bearer_token", "current_identity", "require_auth", "require_role"]
