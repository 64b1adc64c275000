"""Key layout of the shared store (prefixes kept compatible with existing deployments)."""

from __future__ import annotations

REFRESH_TOKEN_PREFIX = "refresh_token:"
BLACKLIST_PREFIX = "blacklisted_token:"
OTP_PREFIX = "otp:"
OTP_ATTEMPTS_PREFIX = "otp_attempts:"


def refresh_key(token_id: str) -> str:
    return f"{REFRESH_TOKEN_PREFIX}{token_id}"


def blacklist_key(jti: str) -> str:
    return f"{BLACKLIST_PREFIX}{jti}"


def otp_key(phone_number: str) -> str:
    return f"{OTP_PREFIX}{phone_number}"


def otp_attempts_key(phone_number: str) -> str:
    return f"{OTP_ATTEMPTS_PREFIX}{phone_number}"
