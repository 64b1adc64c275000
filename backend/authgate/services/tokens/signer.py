# authgate/services/tokens/signer.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from authgate.services._shared.errors import (
    MalformedTokenError,
    SignatureInvalidError,
    TokenExpiredError,
)
from authgate.services.tokens.claims import load_claims
from authgate.services.tokens.dto import Claims

# Claims every credential must carry; absence is a malformed token.
REQUIRED_CLAIMS = ["sub", "type", "jti", "iat", "exp"]


@dataclass(frozen=True, slots=True)
class CredentialSigner:
    """
    Stateless signing/verification of bearer credentials (PyJWT, HMAC).

    Pure functions over a process-wide secret: no store access, no I/O.

    :param secret: Shared signing secret.
    :param algorithm: HMAC algorithm understood by PyJWT.
    """

    secret: str
    algorithm: str = "HS256"

    def sign(
        self,
        claims: Mapping[str, Any],
        ttl: timedelta | int,
        *,
        issued_at: datetime | None = None,
    ) -> str:
        """
        Serialize ``claims`` plus ``iat``/``exp`` and sign them.

        :param claims: Non-temporal claims (``sub``, ``type``, ``jti``, ...).
        :param ttl: Lifetime as a timedelta or whole seconds.
        :param issued_at: Issuance instant; defaults to now (UTC).
        :returns: Compact JWS string.
        """
        seconds = int(ttl.total_seconds()) if isinstance(ttl, timedelta) else int(ttl)
        iat = int((issued_at or datetime.now(UTC)).timestamp())
        payload = dict(claims)
        payload["iat"] = iat
        payload["exp"] = iat + seconds
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Claims:
        """
        Check signature and expiry, then decode into a claim variant.

        :raises MalformedTokenError: Not a JWT, or unexpected claim shape.
        :raises SignatureInvalidError: Signature does not verify.
        :raises TokenExpiredError: ``exp`` has passed.
        """
        if not isinstance(token, str) or not token.strip():
            raise MalformedTokenError("Empty token")
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except jwt.InvalidSignatureError as exc:
            raise SignatureInvalidError() from exc
        except jwt.PyJWTError as exc:
            raise MalformedTokenError(str(exc)) from exc
        return load_claims(payload)
