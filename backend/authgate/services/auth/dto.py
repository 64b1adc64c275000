# authgate/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass

from authgate.services._shared.ports import IdentityRecord
from authgate.services.tokens.dto import Identity

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class OtpLoginIn:
    """
    Input DTO for sign-in with a one-time code.

    :param phone_number: Phone the code was sent to (normalized on use).
    :type phone_number: str
    :param code: Code typed by the user.
    :type code: str
    """

    phone_number: str
    code: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class VerifiedIdentity:
    """
    Identity proven by an access credential, optionally enriched.

    :param identity: Subject and role taken from the credential.
    :type identity: Identity
    :param record: Directory record, or ``None`` when the directory had no
        entry or could not be reached.
    :type record: IdentityRecord | None
    """

    identity: Identity
    record: IdentityRecord | None = None

    @property
    def subject(self) -> str:
        return self.identity.subject
