# authgate/services/auth/service.py
from __future__ import annotations

import logging

from authgate.core.config import AuthSettings
from authgate.services._shared.base import BaseService
from authgate.services._shared.errors import NotFoundError, ServiceError
from authgate.services._shared.ports import (
    IdentityDirectory,
    IdentityRecord,
    KeyValueStore,
    MessageChannel,
)
from authgate.services.auth.dto import OtpLoginIn, VerifiedIdentity
from authgate.services.otp.service import OtpManager, normalize_phone
from authgate.services.tokens.dto import (
    AuthTokenConfig,
    Identity,
    IssuedRefreshToken,
    LogoutOut,
    RefreshOut,
    TokenPairOut,
)
from authgate.services.tokens.issuer import TokenIssuer
from authgate.services.tokens.refresh import RefreshFlow
from authgate.services.tokens.revocation import RevocationManager
from authgate.services.tokens.signer import CredentialSigner
from authgate.services.tokens.verifier import TokenVerifier

log = logging.getLogger(__name__)

IDENTITY_ENTITY = "Identity"


class AuthService(BaseService):
    """
    Credential lifecycle facade (issue / verify / refresh / logout / OTP).

    Route handlers and CLI commands talk to this class only. It wires the
    signer, issuer, verifier, refresh flow, revocation manager and OTP
    manager around one shared store; all of them are built once and
    reused for the lifetime of the process.
    """

    def __init__(
        self,
        *,
        store: KeyValueStore,
        signer: CredentialSigner,
        channel: MessageChannel,
        directory: IdentityDirectory | None = None,
        token_cfg: AuthTokenConfig | None = None,
        otp_ttl: int = 300,
        otp_max_attempts: int = 5,
        otp_message_template: str = "Your OTP is {code}",
    ) -> None:
        """
        Initialize the facade and its components.

        :param store: Shared expiring key-value store.
        :param signer: Credential signer holding the process-wide secret.
        :param channel: Out-of-band channel used for one-time codes.
        :param directory: Optional identity directory (sign-in and enrichment).
        :param token_cfg: Lifetimes and rotation switch.
        """
        super().__init__(store=store)
        self.cfg = token_cfg or AuthTokenConfig()
        self.signer = signer
        self.directory = directory
        self.issuer = TokenIssuer(store=store, signer=signer, token_cfg=self.cfg)
        self.verifier = TokenVerifier(store=store, signer=signer)
        self.refresh_flow = RefreshFlow(
            store=store,
            signer=signer,
            issuer=self.issuer,
            rotate=self.cfg.rotate_refresh,
        )
        self.revocation = RevocationManager(store=store, signer=signer)
        self.otp = OtpManager(
            store=store,
            channel=channel,
            ttl=otp_ttl,
            max_attempts=otp_max_attempts,
            message_template=otp_message_template,
        )

    @classmethod
    def from_settings(
        cls,
        settings: AuthSettings,
        *,
        store: KeyValueStore,
        channel: MessageChannel,
        directory: IdentityDirectory | None = None,
    ) -> AuthService:
        """Build the facade from typed settings."""
        return cls(
            store=store,
            signer=CredentialSigner(settings.jwt_secret, settings.jwt_algorithm),
            channel=channel,
            directory=directory,
            token_cfg=AuthTokenConfig(
                access_expires=settings.access_expires,
                refresh_expires=settings.refresh_expires,
                rotate_refresh=settings.rotate_refresh,
            ),
            otp_ttl=settings.otp_ttl,
            otp_max_attempts=settings.otp_max_attempts,
            otp_message_template=settings.otp_message_template,
        )

    # ------------------------------------------------------------------ #
    # Issuance
    # ------------------------------------------------------------------ #

    def issue_access_token(self, identity: Identity) -> str:
        return self.issuer.issue_access_token(identity)

    def issue_refresh_token(self, identity: Identity) -> IssuedRefreshToken:
        return self.issuer.issue_refresh_token(identity)

    def issue_token_pair(self, identity: Identity) -> TokenPairOut:
        """
        Issue an access/refresh pair for an already authenticated identity.

        The refresh record is registered first, so a store failure leaves no
        credential behind.
        """
        return self.issuer.issue_pair(identity)

    # ------------------------------------------------------------------ #
    # Verification / refresh / logout
    # ------------------------------------------------------------------ #

    def verify_access(self, token: str) -> Identity:
        return self.verifier.verify_access(token)

    def refresh(self, refresh_token: str) -> RefreshOut:
        return self.refresh_flow.refresh(refresh_token)

    def logout(
        self,
        access_token: str | None = None,
        refresh_token: str | None = None,
    ) -> LogoutOut:
        return self.revocation.logout(access_token=access_token, refresh_token=refresh_token)

    def whoami(self, access_token: str) -> VerifiedIdentity:
        """
        Verify an access credential and attach the directory record.

        Directory lookups only enrich the answer; a miss or a directory
        failure yields ``record=None`` and never denies access.
        """
        identity = self.verifier.verify_access(access_token)
        return VerifiedIdentity(identity=identity, record=self._lookup(identity.subject))

    # ------------------------------------------------------------------ #
    # One-time codes
    # ------------------------------------------------------------------ #

    def issue_otp(self, phone_number: str) -> str:
        return self.otp.issue(phone_number)

    def verify_otp(self, phone_number: str, code: str) -> bool:
        return self.otp.verify(phone_number, code)

    def login_with_otp(self, dto: OtpLoginIn) -> TokenPairOut:
        """
        Consume a one-time code and sign the matching identity in.

        :raises NotFoundError: Code missing, or no identity owns the phone.
        :raises MismatchError: Wrong code.
        :raises ServiceError: No directory configured, or identity inactive.
        """
        if self.directory is None:
            raise ServiceError("OTP sign-in requires an identity directory")

        self.otp.verify(dto.phone_number, dto.code)

        phone = normalize_phone(dto.phone_number)
        record = self.directory.find_by_phone(phone)
        if record is None:
            raise NotFoundError(IDENTITY_ENTITY, phone)
        if not record.active:
            raise ServiceError("Identity is inactive")

        log.info("otp sign-in", extra={"subject": record.subject})
        return self.issuer.issue_pair(Identity(subject=record.subject, role=record.role))

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _lookup(self, subject: str) -> IdentityRecord | None:
        if self.directory is None:
            return None
        try:
            return self.directory.get(subject)
        except Exception:
            log.warning("identity directory lookup failed", exc_info=True, extra={"subject": subject})
            return None

    def ping(self) -> bool:
        """Return whether the shared store answers."""
        return self.store.ping()
