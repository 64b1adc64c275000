from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class IdentityRecord:
    """
    Read-model of a user or staff member owned by the host application.

    :ivar subject: Opaque identifier embedded in credentials.
    :ivar phone_number: Normalized phone number used for OTP sign-in.
    :ivar role: Role tag copied into issued credentials.
    :ivar active: Inactive identities cannot sign in.
    :ivar attributes: Free-form profile data for enrichment only.
    """

    subject: str
    phone_number: str | None = None
    role: str | None = None
    active: bool = True
    attributes: dict[str, Any] = field(default_factory=dict)


class IdentityDirectory(Protocol):
    """Lookup-only view over the host's persistent user/staff records."""

    def get(self, subject: str) -> IdentityRecord | None: ...

    def find_by_phone(self, phone_number: str) -> IdentityRecord | None: ...


class InMemoryIdentityDirectory(IdentityDirectory):
    """Dictionary-backed directory for tests and local development."""

    def __init__(self, records: Iterable[IdentityRecord] = ()) -> None:
        self._by_subject: dict[str, IdentityRecord] = {}
        for record in records:
            self.add(record)

    def add(self, record: IdentityRecord) -> None:
        self._by_subject[record.subject] = record

    def get(self, subject: str) -> IdentityRecord | None:
        return self._by_subject.get(subject)

    def find_by_phone(self, phone_number: str) -> IdentityRecord | None:
        for record in self._by_subject.values():
            if record.phone_number == phone_number:
                return record
        return None
