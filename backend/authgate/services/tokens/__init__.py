"""Credential signing, issuance, verification, refresh and revocation."""

from __future__ import annotations

from .dto import (
    AccessClaims,
    AuthTokenConfig,
    Identity,
    IssuedRefreshToken,
    LogoutOut,
    RefreshClaims,
    RefreshOut,
    TokenPairOut,
)
from .issuer import TokenIssuer
from .refresh import RefreshFlow
from .revocation import RevocationManager
from .signer import CredentialSigner
from .verifier import TokenVerifier

__all__ = [
    "AccessClaims",
    "AuthTokenConfig",
    "CredentialSigner",
    "Identity",
    "IssuedRefreshToken",
    "LogoutOut",
    "RefreshClaims",
    "RefreshFlow",
    "RefreshOut",
    "RevocationManager",
    "TokenIssuer",
    "TokenPairOut",
    "TokenVerifier",
]
