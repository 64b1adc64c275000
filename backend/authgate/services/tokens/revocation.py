# authgate/services/tokens/revocation.py
from __future__ import annotations

import logging

from authgate.services._shared.base import BaseService
from authgate.services._shared.errors import CredentialError, WrongTokenTypeError
from authgate.services._shared.keys import blacklist_key, refresh_key
from authgate.services._shared.ports import KeyValueStore
from authgate.services.tokens.dto import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    AccessClaims,
    LogoutOut,
    RefreshClaims,
)
from authgate.services.tokens.signer import CredentialSigner

log = logging.getLogger(__name__)

DEFAULT_REASON = "logout"


class RevocationManager(BaseService):
    """
    Invalidates credentials before their natural expiry.

    Refresh credentials are revoked by deleting their record. Access
    credentials are blacklisted by ``jti`` for exactly their remaining
    lifetime, so the blacklist never outlives the credential.
    """

    def __init__(self, *, store: KeyValueStore, signer: CredentialSigner) -> None:
        super().__init__(store=store)
        self.signer = signer

    def revoke_refresh(self, token: str) -> bool:
        """
        Delete the record behind a refresh credential (idempotent).

        :returns: True if a record was removed.
        :raises CredentialError: Credential unverifiable or store failure.
        """
        claims = self.signer.verify(token)
        if not isinstance(claims, RefreshClaims):
            raise WrongTokenTypeError(REFRESH_TOKEN_TYPE, claims.type)
        removed = self.store.delete(refresh_key(claims.token_id))
        log.debug(
            "refresh record deleted" if removed else "refresh record already gone",
            extra={"subject": claims.subject, "token_id": claims.token_id},
        )
        return removed

    def revoke_access(self, token: str, reason: str = DEFAULT_REASON) -> bool:
        """
        Blacklist a still-valid access credential until it expires.

        :returns: True if an entry was written, False when no lifetime remains.
        :raises CredentialError: Credential unverifiable or store failure.
        """
        claims = self.signer.verify(token)
        if not isinstance(claims, AccessClaims):
            raise WrongTokenTypeError(ACCESS_TOKEN_TYPE, claims.type)
        remaining = self.seconds_until(claims.expires_at_dt)
        if remaining <= 0:
            return False
        self.store.set(blacklist_key(claims.jti), reason, ttl=remaining)
        log.info(
            "access token blacklisted",
            extra={"subject": claims.subject, "reason": reason},
        )
        return True

    def logout(
        self,
        access_token: str | None = None,
        refresh_token: str | None = None,
    ) -> LogoutOut:
        """
        Best-effort logout.

        Each sub-step runs independently; a failing one is logged and listed
        in :attr:`LogoutOut.failures` but never raised to the caller.
        Malformed or already expired credentials are simply skipped.
        """
        failures: list[str] = []
        refresh_revoked = False
        access_blacklisted = False

        if refresh_token:
            try:
                refresh_revoked = self.revoke_refresh(refresh_token)
            except CredentialError as exc:
                log.warning("logout: refresh revocation skipped", exc_info=True)
                failures.append(f"refresh:{exc.kind.value}")

        if access_token:
            try:
                access_blacklisted = self.revoke_access(access_token)
            except CredentialError as exc:
                log.warning("logout: access blacklisting skipped", exc_info=True)
                failures.append(f"access:{exc.kind.value}")

        return LogoutOut(
            refresh_revoked=refresh_revoked,
            access_blacklisted=access_blacklisted,
            failures=tuple(failures),
        )
