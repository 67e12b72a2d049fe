from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ostrich.adapters.sql_repo import (
    EMAILER_MUTABLE_FIELDS,
    EmailerRow,
    ListingDataRow,
    UserRow,
)
from ostrich.domain.errors import EmailDispatchError


class InMemoryUserRepository:
    def __init__(self) -> None:
        self._items: list[UserRow] = []

    def create(self, *, email: str, authentication_id: str, billing_id: str = "Tier 0") -> UserRow:
        row = UserRow(
            id=len(self._items) + 1,
            email=email,
            authentication_id=authentication_id,
            billing_id=billing_id,
        )
        self._items.append(row)
        return row

    def get_by_authentication_id(self, authentication_id: str) -> UserRow | None:
        for row in self._items:
            if row.authentication_id == authentication_id and row.active:
                return row
        return None

    def list_active(self) -> list[UserRow]:
        return [r for r in self._items if r.active]


class InMemoryEmailerRepository:
    def __init__(self) -> None:
        self._items: list[EmailerRow] = []

    def create(self, *, user_id: int, email: str, data: dict[str, Any]) -> EmailerRow:
        fields = {k: v for k, v in data.items() if k in EMAILER_MUTABLE_FIELDS}
        row = EmailerRow(id=len(self._items) + 1, user_id=user_id, email=email, **fields)
        self._items.append(row)
        return row

    def get(self, emailer_id: int) -> EmailerRow | None:
        return next((r for r in self._items if r.id == emailer_id), None)

    def list_active(self) -> list[EmailerRow]:
        return [r for r in self._items if r.active]

    def list_by_user(self, user_id: int) -> list[EmailerRow]:
        return [r for r in self._items if r.active and r.user_id == user_id]

    def update(self, emailer_id: int, user_id: int, changes: dict[str, Any]) -> EmailerRow | None:
        row = self.get(emailer_id)
        if row is None or not row.active or row.user_id != user_id:
            return None
        for name, value in changes.items():
            if name in EMAILER_MUTABLE_FIELDS:
                setattr(row, name, value)
        row.updated_at = datetime.utcnow()
        return row

    def soft_delete(self, emailer_id: int, user_id: int) -> EmailerRow | None:
        row = self.get(emailer_id)
        if row is None or not row.active or row.user_id != user_id:
            return None
        row.active = False
        row.deleted_at = datetime.utcnow()
        return row


class InMemoryListingHistoryRepository:
    def __init__(self) -> None:
        self._items: list[ListingDataRow] = []

    def save(self, item: dict[str, Any]) -> int | None:
        row = ListingDataRow(id=len(self._items) + 1, **item)
        self._items.append(row)
        return row.id

    def list_by_emailer(self, emailer_id: int, limit: int = 100) -> list[ListingDataRow]:
        rows = [r for r in self._items if r.emailer_id == emailer_id]
        return list(reversed(rows))[:limit]

    def all(self) -> list[ListingDataRow]:
        return list(self._items)


@dataclass
class SentEmail:
    to: str
    subject: str
    html: str


@dataclass
class RecordingEmailSender:
    """EmailSender that keeps messages in memory; addresses in `fail_for` raise."""

    sent: list[SentEmail] = field(default_factory=list)
    fail_for: set[str] = field(default_factory=set)

    def send(self, to: str, subject: str, html: str) -> None:
        if to in self.fail_for:
            raise EmailDispatchError("recording sender told to fail", recipient=to)
        self.sent.append(SentEmail(to=to, subject=subject, html=html))
