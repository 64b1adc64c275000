"""Service layer public API.

This package exposes the credential lifecycle building blocks so that callers
can import from :mod:`authgate.services` without knowing internal structure.

Re-exports
----------
- Base primitives (from ``authgate.services._shared.base``)
    * :class:`BaseService`

- Errors (from ``authgate.services._shared.errors``)
    * :class:`ServiceError`, :class:`CredentialError`,
      :class:`CredentialRejected`, :class:`InfrastructureFault`

- Facade (from ``authgate.services.auth``)
    * :class:`AuthService`
    * DTOs: :class:`OtpLoginIn`, :class:`VerifiedIdentity`

- Tokens (from ``authgate.services.tokens``)
    * :class:`Identity`, :class:`TokenPairOut`, :class:`RefreshOut`,
      :class:`LogoutOut`, :class:`AuthTokenConfig`, :class:`CredentialSigner`
"""

from __future__ import annotations

from ._shared.base import BaseService
from ._shared.errors import (
    CredentialError,
    CredentialRejected,
    InfrastructureFault,
    ServiceError,
)
from .auth import AuthService, OtpLoginIn, VerifiedIdentity
from .tokens import (
    AuthTokenConfig,
    CredentialSigner,
    Identity,
    LogoutOut,
    RefreshOut,
    TokenPairOut,
)

__all__ = [
    "BaseService",
    "ServiceError",
    "CredentialError",
    "CredentialRejected",
    "InfrastructureFault",
    "AuthService",
    "OtpLoginIn",
    "VerifiedIdentity",
    "AuthTokenConfig",
    "CredentialSigner",
    "Identity",
    "LogoutOut",
    "RefreshOut",
    "TokenPairOut",
]
