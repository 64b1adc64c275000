# authgate/services/tokens/verifier.py
from __future__ import annotations

import logging

from authgate.services._shared.base import BaseService
from authgate.services._shared.errors import RevokedError, WrongTokenTypeError
from authgate.services._shared.keys import blacklist_key
from authgate.services._shared.ports import KeyValueStore
from authgate.services.tokens.dto import ACCESS_TOKEN_TYPE, AccessClaims, Identity
from authgate.services.tokens.signer import CredentialSigner

log = logging.getLogger(__name__)


class TokenVerifier(BaseService):
    """
    Validates access credentials presented on protected calls.

    The blacklist is consulted on every call. Store failures propagate as
    :class:`StoreUnavailableError` so that callers deny access.
    """

    def __init__(self, *, store: KeyValueStore, signer: CredentialSigner) -> None:
        super().__init__(store=store)
        self.signer = signer

    def access_claims(self, token: str) -> AccessClaims:
        """
        Verify ``token`` and return its access claims.

        :raises MalformedTokenError | SignatureInvalidError | TokenExpiredError:
            From the signer, unchanged.
        :raises WrongTokenTypeError: A refresh credential was presented.
        :raises RevokedError: The credential was blacklisted.
        :raises StoreUnavailableError: Blacklist could not be consulted.
        """
        claims = self.signer.verify(token)
        if not isinstance(claims, AccessClaims):
            raise WrongTokenTypeError(ACCESS_TOKEN_TYPE, claims.type)
        if self.is_revoked(claims.jti):
            log.info("revoked access token presented", extra={"subject": claims.subject})
            raise RevokedError()
        return claims

    def verify_access(self, token: str) -> Identity:
        """Verify an access credential and return its identity."""
        return self.access_claims(token).identity

    def is_revoked(self, jti: str) -> bool:
        return self.store.get(blacklist_key(jti)) is not None
