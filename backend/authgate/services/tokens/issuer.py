# authgate/services/tokens/issuer.py
from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import uuid4

from authgate.services._shared.base import BaseService
from authgate.services._shared.keys import refresh_key
from authgate.services._shared.ports import KeyValueStore
from authgate.services.tokens.dto import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    AuthTokenConfig,
    Identity,
    IssuedRefreshToken,
    TokenPairOut,
)
from authgate.services.tokens.signer import CredentialSigner

log = logging.getLogger(__name__)


class TokenIssuer(BaseService):
    """
    Mints access and refresh credentials.

    Access credentials are self-contained. Every refresh credential gets a
    server-side record ``refresh_token:{token_id} -> subject`` whose TTL is
    the same number of seconds as the credential's lifetime.
    """

    def __init__(
        self,
        *,
        store: KeyValueStore,
        signer: CredentialSigner,
        token_cfg: AuthTokenConfig | None = None,
    ) -> None:
        super().__init__(store=store)
        self.signer = signer
        self.cfg = token_cfg or AuthTokenConfig()

    @staticmethod
    def new_token_id() -> str:
        """Generate a new random token identifier."""
        return uuid4().hex

    def _claims(self, identity: Identity, token_type: str, jti: str) -> dict[str, str]:
        claims = {"sub": identity.subject, "type": token_type, "jti": jti}
        if identity.role is not None:
            claims["role"] = identity.role
        return claims

    def issue_access_token(self, identity: Identity) -> str:
        """
        Sign a short-lived access credential for ``identity``.

        :param identity: Principal to embed.
        :returns: Encoded access JWT.
        """
        token = self.signer.sign(
            self._claims(identity, ACCESS_TOKEN_TYPE, self.new_token_id()),
            self.cfg.access_ttl,
        )
        log.debug("access token issued", extra={"subject": identity.subject})
        return token

    def issue_refresh_token(self, identity: Identity) -> IssuedRefreshToken:
        """
        Register a refresh record, then sign the matching refresh credential.

        The record is written *before* the JWT exists so there is no window in
        which a credential circulates without server-side state.

        :param identity: Principal to embed.
        :returns: Refresh JWT with its record id and expiry.
        :raises StoreUnavailableError: Record could not be written; nothing is issued.
        """
        token_id = self.new_token_id()
        ttl = self.cfg.refresh_ttl
        issued_at = self.now_utc()

        self.store.set(refresh_key(token_id), identity.subject, ttl=ttl)
        token = self.signer.sign(
            self._claims(identity, REFRESH_TOKEN_TYPE, token_id),
            ttl,
            issued_at=issued_at,
        )
        log.debug(
            "refresh token issued",
            extra={"subject": identity.subject, "token_id": token_id},
        )
        return IssuedRefreshToken(
            token=token,
            token_id=token_id,
            expires_at=datetime.fromtimestamp(int(issued_at.timestamp()) + ttl, tz=UTC),
        )

    def issue_pair(self, identity: Identity) -> TokenPairOut:
        """Issue a fresh access/refresh pair (sign-in)."""
        refresh = self.issue_refresh_token(identity)
        return TokenPairOut(
            access_token=self.issue_access_token(identity),
            refresh_token=refresh.token,
        )
