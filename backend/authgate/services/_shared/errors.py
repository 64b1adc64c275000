"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask, HTTP,
Redis, PyJWT or Twilio. Adapters translate library errors into them at the
boundary; the calling layer decides how they map to a transport.

Two families are kept apart:

- :class:`CredentialRejected`: expected negative outcomes (bad token,
  wrong code, revoked credential). Safe to report to the end user.
- :class:`InfrastructureFault`: the store or the delivery channel failed.
  Access decisions taken while one of these is raised must deny.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar


class ErrorKind(str, Enum):
    """Stable machine-readable error kinds."""

    MALFORMED_TOKEN = "malformed_token"
    SIGNATURE_INVALID = "signature_invalid"
    EXPIRED = "expired"
    WRONG_TOKEN_TYPE = "wrong_token_type"
    NOT_FOUND = "not_found"
    MISMATCH = "mismatch"
    REVOKED = "revoked"
    DELIVERY_FAILURE = "delivery_failure"
    STORE_UNAVAILABLE = "store_unavailable"
    FORBIDDEN = "forbidden"
    INVALID_INPUT = "invalid_input"


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from adapters or domain logic.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.INVALID_INPUT


class CredentialError(ServiceError):
    """Base class for every credential lifecycle failure."""


class CredentialRejected(CredentialError):
    """An expected rejection: the presented material is not acceptable."""


class InfrastructureFault(CredentialError):
    """A collaborator (store, delivery channel) failed to do its job."""


# --------------------------------------------------------------------------- #
# Rejections
# --------------------------------------------------------------------------- #


class MalformedTokenError(CredentialRejected):
    """Token cannot be parsed or its claims do not have the expected shape."""

    kind = ErrorKind.MALFORMED_TOKEN

    def __init__(self, message: str = "Malformed token") -> None:
        super().__init__(message)


class SignatureInvalidError(CredentialRejected):
    """Token signature does not verify with the configured secret."""

    kind = ErrorKind.SIGNATURE_INVALID

    def __init__(self, message: str = "Token signature is invalid") -> None:
        super().__init__(message)


class TokenExpiredError(CredentialRejected):
    """Token ``exp`` claim lies in the past."""

    kind = ErrorKind.EXPIRED

    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message)


class WrongTokenTypeError(CredentialRejected):
    """
    Token is valid but of the wrong variant for the operation.

    :param expected: Token type the operation requires.
    :param actual: Token type that was presented.
    """

    kind = ErrorKind.WRONG_TOKEN_TYPE

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Wrong token type: {expected} token required, got {actual}")
        self.expected = expected
        self.actual = actual


@dataclass(slots=True, eq=False)
class NotFoundError(CredentialRejected):
    """
    Raised when a stored entry is absent (expired, consumed or revoked).

    :param entity: Entity name (e.g., "RefreshRecord", "OTP").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str
    """

    entity: str
    key: str

    kind: ClassVar[ErrorKind] = ErrorKind.NOT_FOUND

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


class MismatchError(CredentialRejected):
    """Presented value does not match the stored one (OTP code)."""

    kind = ErrorKind.MISMATCH

    def __init__(self, message: str = "Invalid OTP") -> None:
        super().__init__(message)


class RevokedError(CredentialRejected):
    """Access credential was blacklisted before its natural expiry."""

    kind = ErrorKind.REVOKED

    def __init__(self, message: str = "Token has been revoked") -> None:
        super().__init__(message)


class ForbiddenError(CredentialRejected):
    """Verified identity lacks the role an operation requires."""

    kind = ErrorKind.FORBIDDEN

    def __init__(self, message: str = "Insufficient role") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------- #
# Infrastructure faults
# --------------------------------------------------------------------------- #


class DeliveryFailureError(InfrastructureFault):
    """The out-of-band channel could not deliver a message."""

    kind = ErrorKind.DELIVERY_FAILURE

    def __init__(self, message: str = "Failed to deliver message") -> None:
        super().__init__(message)


class StoreUnavailableError(InfrastructureFault):
    """The shared key-value store did not answer."""

    kind = ErrorKind.STORE_UNAVAILABLE

    def __init__(self, message: str = "Key-value store unavailable") -> None:
        super().__init__(message)


__all__ = [
    "ErrorKind",
    "ServiceError",
    "CredentialError",
    "CredentialRejected",
    "InfrastructureFault",
    "MalformedTokenError",
    "SignatureInvalidError",
    "TokenExpiredError",
    "WrongTokenTypeError",
    "NotFoundError",
    "MismatchError",
    "RevokedError",
    "ForbiddenError",
    "DeliveryFailureError",
    "StoreUnavailableError",
]
