# authgate/services/tokens/refresh.py
from __future__ import annotations

import logging

from authgate.services._shared.base import BaseService
from authgate.services._shared.errors import NotFoundError, WrongTokenTypeError
from authgate.services._shared.keys import refresh_key
from authgate.services._shared.ports import KeyValueStore
from authgate.services.tokens.dto import REFRESH_TOKEN_TYPE, RefreshClaims, RefreshOut
from authgate.services.tokens.issuer import TokenIssuer
from authgate.services.tokens.signer import CredentialSigner

log = logging.getLogger(__name__)

RECORD_ENTITY = "RefreshRecord"


class RefreshFlow(BaseService):
    """
    Exchanges a refresh credential for a new access credential.

    Steps
    -----
    1. Verify signature and expiry.
    2. Require ``type == "refresh"``.
    3. Require a live record whose value equals the credential's subject.
    4. Issue a new access credential. With rotation enabled, also issue a
       replacement refresh credential, then consume the old record with a
       compare-and-delete; losing that race revokes the replacement.
    """

    def __init__(
        self,
        *,
        store: KeyValueStore,
        signer: CredentialSigner,
        issuer: TokenIssuer,
        rotate: bool = False,
    ) -> None:
        super().__init__(store=store)
        self.signer = signer
        self.issuer = issuer
        self.rotate = rotate

    def refresh_claims(self, token: str) -> RefreshClaims:
        """Verify ``token`` as a refresh credential without touching the store."""
        claims = self.signer.verify(token)
        if not isinstance(claims, RefreshClaims):
            raise WrongTokenTypeError(REFRESH_TOKEN_TYPE, claims.type)
        return claims

    def refresh(self, token: str) -> RefreshOut:
        """
        Run the refresh flow.

        :param token: Encoded refresh credential.
        :returns: New access credential, plus a new refresh credential when
            rotation is enabled.
        :raises NotFoundError: Record absent (revoked/expired) or bound to
            another subject.
        :raises StoreUnavailableError: Store failure; nothing is issued.
        """
        claims = self.refresh_claims(token)
        key = refresh_key(claims.token_id)

        stored = self.store.get(key)
        if stored is None or stored != claims.subject:
            log.info(
                "refresh rejected",
                extra={"subject": claims.subject, "token_id": claims.token_id},
            )
            raise NotFoundError(RECORD_ENTITY, claims.token_id)

        identity = claims.identity
        access_token = self.issuer.issue_access_token(identity)
        if not self.rotate:
            return RefreshOut(access_token=access_token)

        # old record stays until the replacement is stored
        replacement = self.issuer.issue_refresh_token(identity)
        if not self.store.delete_if_equals(key, claims.subject):
            self.store.delete(refresh_key(replacement.token_id))
            log.info(
                "refresh token already rotated",
                extra={"subject": claims.subject, "token_id": claims.token_id},
            )
            raise NotFoundError(RECORD_ENTITY, claims.token_id)
        log.debug(
            "refresh token rotated",
            extra={"subject": identity.subject, "token_id": replacement.token_id},
        )
        return RefreshOut(access_token=access_token, refresh_token=replacement.token)
