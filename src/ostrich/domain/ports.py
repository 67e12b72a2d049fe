# src/ostrich/domain/ports.py
from __future__ import annotations

from typing import Any, Protocol

from ostrich.domain.listing import ListingSearchResult, PropertyDetail, SearchParameters


# ----------------------------
# Listings provider
# ----------------------------

class ListingSource(Protocol):
    def search_listings(self, params: SearchParameters) -> ListingSearchResult:
        """Raises ListingSearchError."""
        ...

    def get_property(self, zpid: str) -> PropertyDetail:
        """Raises PropertyDetailError."""
        ...


# ----------------------------
# Email provider
# ----------------------------

class EmailSender(Protocol):
    def send(self, to: str, subject: str, html: str) -> None:
        """Raises EmailDispatchError."""
        ...


# ----------------------------
# Persistence
# ----------------------------

class UserRepository(Protocol):
    def create(self, *, email: str, authentication_id: str, billing_id: str = "Tier 0") -> Any:
        ...

    def get_by_authentication_id(self, authentication_id: str) -> Any | None:
        ...

    def list_active(self) -> list[Any]:
        ...


class EmailerRepository(Protocol):
    def create(self, *, user_id: int, email: str, data: dict[str, Any]) -> Any:
        ...

    def get(self, emailer_id: int) -> Any | None:
        ...

    def list_active(self) -> list[Any]:
        ...

    def list_by_user(self, user_id: int) -> list[Any]:
        ...

    def update(self, emailer_id: int, user_id: int, changes: dict[str, Any]) -> Any | None:
        ...

    def soft_delete(self, emailer_id: int, user_id: int) -> Any | None:
        ...


class ListingHistoryRepository(Protocol):
    def save(self, item: dict[str, Any]) -> int | None:
        ...

    def list_by_emailer(self, emailer_id: int, limit: int = 100) -> list[Any]:
        ...
