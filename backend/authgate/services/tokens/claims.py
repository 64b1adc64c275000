"""Marshmallow schemas turning raw JWT payloads into fixed claim variants."""

from __future__ import annotations

from typing import Any

from marshmallow import RAISE, Schema, ValidationError, fields, post_load, validate

from authgate.services._shared.errors import MalformedTokenError
from authgate.services.tokens.dto import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    AccessClaims,
    Claims,
    RefreshClaims,
)


class _BaseClaimsSchema(Schema):
    """Registered claims shared by both variants; unknown keys are rejected."""

    class Meta:
        unknown = RAISE

    sub = fields.String(required=True, validate=validate.Length(min=1, max=128))
    role = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=64))
    jti = fields.String(required=True, validate=validate.Length(min=1, max=128))
    iat = fields.Integer(required=True, strict=True)
    exp = fields.Integer(required=True, strict=True)


class AccessClaimsSchema(_BaseClaimsSchema):
    """Payload of an access credential."""

    type = fields.String(required=True, validate=validate.Equal(ACCESS_TOKEN_TYPE))

    @post_load
    def make_claims(self, data: dict[str, Any], **kwargs: Any) -> AccessClaims:
        return AccessClaims(
            subject=data["sub"],
            role=data["role"],
            jti=data["jti"],
            issued_at=data["iat"],
            expires_at=data["exp"],
        )


class RefreshClaimsSchema(_BaseClaimsSchema):
    """Payload of a refresh credential; ``jti`` doubles as the record id."""

    type = fields.String(required=True, validate=validate.Equal(REFRESH_TOKEN_TYPE))

    @post_load
    def make_claims(self, data: dict[str, Any], **kwargs: Any) -> RefreshClaims:
        return RefreshClaims(
            subject=data["sub"],
            role=data["role"],
            token_id=data["jti"],
            issued_at=data["iat"],
            expires_at=data["exp"],
        )


_SCHEMAS: dict[str, Schema] = {
    ACCESS_TOKEN_TYPE: AccessClaimsSchema(),
    REFRESH_TOKEN_TYPE: RefreshClaimsSchema(),
}


def load_claims(payload: dict[str, Any]) -> Claims:
    """
    Dispatch on the ``type`` tag and validate the payload shape.

    :param payload: Signature-verified JWT payload.
    :returns: :class:`AccessClaims` or :class:`RefreshClaims`.
    :raises MalformedTokenError: Unknown tag, missing or unexpected claims.
    """
    schema = _SCHEMAS.get(str(payload.get("type")))
    if schema is None:
        raise MalformedTokenError(f"Unknown token type: {payload.get('type')!r}")
    try:
        return schema.load(payload)
    except ValidationError as exc:
        raise MalformedTokenError(f"Unexpected claims: {exc.messages}") from exc
