"""Helpers for host route handlers (bearer parsing, auth decorators)."""

from __future__ import annotations

from .deps import bearer_token, current_identity, require_auth, require_role

__all__ = ["bearer_token", "current_identity", "require_auth", "require_role"]
