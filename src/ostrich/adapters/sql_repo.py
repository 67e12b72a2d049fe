# src/ostrich/adapters/sql_repo.py
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlmodel import Field, Session, SQLModel, create_engine, select


# ---------- Users ----------

class UserRow(SQLModel, table=True):
    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(index=True)
    billing_id: str = Field(default="Tier 0")
    authentication_id: str = Field(index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    active: bool = Field(default=True, index=True)


class SqlUserRepository:
    def __init__(self, uri: str = "sqlite:///ostrich.db"):
        self.engine = create_engine(uri, echo=False)
        SQLModel.metadata.create_all(self.engine)

    def create(self, *, email: str, authentication_id: str, billing_id: str = "Tier 0") -> UserRow:
        row = UserRow(email=email, authentication_id=authentication_id, billing_id=billing_id)
        with Session(self.engine) as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return row

    def get_by_authentication_id(self, authentication_id: str) -> UserRow | None:
        with Session(self.engine) as session:
            stmt = select(UserRow).where(
                UserRow.authentication_id == authentication_id,
                UserRow.active == True,  # noqa: E712
            )
            return session.exec(stmt).first()

    def list_active(self) -> list[UserRow]:
        with Session(self.engine) as session:
            stmt = select(UserRow).where(UserRow.active == True).order_by(UserRow.id)  # noqa: E712
            return list(session.exec(stmt))


# ---------- Emailers (saved searches) ----------

class EmailerRow(SQLModel, table=True):
    __tablename__ = "emailers"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    email: str

    search_param: str
    notes: str | None = None
    frequency: str = Field(default="daily")
    max_price: float | None = None
    min_price: float | None = None
    no_bedrooms: int | None = None
    no_bathrooms: int | None = None

    # investment assumptions: rates in percent, flat amounts in monthly $
    insurance: float
    vacancy: float
    property_management: float
    capex: float
    repairs: float
    utilities: float
    down_payment: float
    closing_cost: float
    loan_interest: float
    loan_months: float
    additional_monthly_expenses: float = Field(default=0.0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    active: bool = Field(default=True, index=True)


EMAILER_MUTABLE_FIELDS = {
    "search_param",
    "notes",
    "frequency",
    "max_price",
    "min_price",
    "no_bedrooms",
    "no_bathrooms",
    "insurance",
    "vacancy",
    "property_management",
    "capex",
    "repairs",
    "utilities",
    "down_payment",
    "closing_cost",
    "loan_interest",
    "loan_months",
    "additional_monthly_expenses",
}


class SqlEmailerRepository:
    def __init__(self, uri: str = "sqlite:///ostrich.db"):
        self.engine = create_engine(uri, echo=False)
        SQLModel.metadata.create_all(self.engine)

    def create(self, *, user_id: int, email: str, data: dict[str, Any]) -> EmailerRow:
        fields = {k: v for k, v in data.items() if k in EMAILER_MUTABLE_FIELDS}
        row = EmailerRow(user_id=user_id, email=email, **fields)
        with Session(self.engine) as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return row

    def get(self, emailer_id: int) -> EmailerRow | None:
        with Session(self.engine) as session:
            return session.get(EmailerRow, emailer_id)

    def list_active(self) -> list[EmailerRow]:
        with Session(self.engine) as session:
            stmt = select(EmailerRow).where(EmailerRow.active == True).order_by(EmailerRow.id)  # noqa: E712
            return list(session.exec(stmt))

    def list_by_user(self, user_id: int) -> list[EmailerRow]:
        with Session(self.engine) as session:
            stmt = (
                select(EmailerRow)
                .where(EmailerRow.user_id == user_id, EmailerRow.active == True)  # noqa: E712
                .order_by(EmailerRow.id)
            )
            return list(session.exec(stmt))

    def _owned(self, session: Session, emailer_id: int, user_id: int) -> EmailerRow | None:
        stmt = select(EmailerRow).where(
            EmailerRow.id == emailer_id,
            EmailerRow.user_id == user_id,
            EmailerRow.active == True,  # noqa: E712
        )
        return session.exec(stmt).first()

    def update(self, emailer_id: int, user_id: int, changes: dict[str, Any]) -> EmailerRow | None:
        with Session(self.engine) as session:
            row = self._owned(session, emailer_id, user_id)
            if row is None:
                return None
            for name, value in changes.items():
                if name in EMAILER_MUTABLE_FIELDS:
                    setattr(row, name, value)
            row.updated_at = datetime.utcnow()
            session.add(row)
            session.commit()
            session.refresh(row)
            return row

    def soft_delete(self, emailer_id: int, user_id: int) -> EmailerRow | None:
        with Session(self.engine) as session:
            row = self._owned(session, emailer_id, user_id)
            if row is None:
                return None
            now = datetime.utcnow()
            row.active = False
            row.deleted_at = now
            row.updated_at = now
            session.add(row)
            session.commit()
            session.refresh(row)
            return row


# ---------- Listing history ----------

class ListingDataRow(SQLModel, table=True):
    __tablename__ = "listing_data"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    emailer_id: int = Field(index=True)

    zpid: str | None = Field(default=None, index=True)
    street_address: str | None = None
    city: str | None = None
    state: str | None = None
    zipcode: str | None = None
    bedrooms: float | None = None
    bathrooms: float | None = None

    price: float | None = None
    taxes: float | None = None  # monthly
    rent_estimate: float | None = None
    time_on_zillow: str | None = None
    img_src: str | None = None
    url: str | None = None
    cash_on_cash: float | None = None

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    active: bool = Field(default=True)


class SqlListingHistoryRepository:
    def __init__(self, uri: str = "sqlite:///ostrich.db"):
        self.engine = create_engine(uri, echo=False)
        SQLModel.metadata.create_all(self.engine)

    def save(self, item: dict[str, Any]) -> int | None:
        row = ListingDataRow(**item)
        with Session(self.engine) as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return int(row.id)  # type: ignore[arg-type]

    def list_by_emailer(self, emailer_id: int, limit: int = 100) -> list[ListingDataRow]:
        with Session(self.engine) as session:
            stmt = (
                select(ListingDataRow)
                .where(ListingDataRow.emailer_id == emailer_id)
                .order_by(ListingDataRow.created_at.desc(), ListingDataRow.id.desc())
                .limit(limit)
            )
            return list(session.exec(stmt))
