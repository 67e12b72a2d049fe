# src/ostrich/api/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ostrich.adapters.config import config
from ostrich.domain.assumptions import ASSUMPTION_FIELDS, InvestmentAssumptions


def _default(name: str):
    return Field(default_factory=lambda: config.default_assumptions()[name])


# --------------------------------------------
# Emailers (saved searches)
# --------------------------------------------

class EmailerCreate(BaseModel):
    """
    Body for POST /emailers.

    Rates are percentages (5 == 5%); "5%" strings are accepted.
    Missing assumptions fall back to the configured defaults.
    """
    model_config = ConfigDict(extra="ignore")

    search_param: str = Field(..., min_length=1)
    notes: str | None = None
    frequency: str = "daily"
    max_price: float | None = None
    min_price: float | None = None
    no_bedrooms: int | None = None
    no_bathrooms: int | None = None

    insurance: float = _default("insurance")
    vacancy: float | str = _default("vacancy")
    property_management: float | str = _default("property_management")
    capex: float | str = _default("capex")
    repairs: float | str = _default("repairs")
    utilities: float = _default("utilities")
    down_payment: float | str = _default("down_payment")
    closing_cost: float | str = _default("closing_cost")
    loan_interest: float | str = _default("loan_interest")
    loan_months: float = _default("loan_months")
    additional_monthly_expenses: float = _default("additional_monthly_expenses")

    @model_validator(mode="after")
    def _normalize_assumptions(self) -> "EmailerCreate":
        # validates the bundle and stores the cleaned percent values back
        assumptions = InvestmentAssumptions.from_record(self)
        for f in ASSUMPTION_FIELDS:
            setattr(self, f, getattr(assumptions, f))
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price cannot exceed max_price")
        return self


class EmailerUpdate(BaseModel):
    """Body for PUT /emailers/{id}: only the fields sent are changed."""
    model_config = ConfigDict(extra="ignore")

    search_param: str | None = Field(default=None, min_length=1)
    notes: str | None = None
    frequency: str | None = None
    max_price: float | None = None
    min_price: float | None = None
    no_bedrooms: int | None = None
    no_bathrooms: int | None = None

    insurance: float | None = None
    vacancy: float | str | None = None
    property_management: float | str | None = None
    capex: float | str | None = None
    repairs: float | str | None = None
    utilities: float | None = None
    down_payment: float | str | None = None
    closing_cost: float | str | None = None
    loan_interest: float | str | None = None
    loan_months: float | None = None
    additional_monthly_expenses: float | None = None

    @field_validator("search_param", "frequency", mode="before")
    @classmethod
    def _not_null(cls, v: Any) -> Any:
        # only runs for values actually sent; omitting the field leaves it unchanged
        if v is None:
            raise ValueError("cannot be null")
        return v


class EmailerItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    email: str
    search_param: str
    notes: str | None = None
    frequency: str
    max_price: float | None = None
    min_price: float | None = None
    no_bedrooms: int | None = None
    no_bathrooms: int | None = None

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
    additional_monthly_expenses: float

    created_at: datetime
    updated_at: datetime | None = None
    active: bool


class ListingDataItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    emailer_id: int
    zpid: str | None = None
    street_address: str | None = None
    city: str | None = None
    state: str | None = None
    zipcode: str | None = None
    bedrooms: float | None = None
    bathrooms: float | None = None
    price: float | None = None
    taxes: float | None = None
    rent_estimate: float | None = None
    time_on_zillow: str | None = None
    img_src: str | None = None
    url: str | None = None
    cash_on_cash: float | None = None
    created_at: datetime


# --------------------------------------------
# Calculator
# --------------------------------------------

class CashOnCashRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    purchase_price: float = Field(..., gt=0)
    monthly_property_tax: float = Field(..., ge=0)
    monthly_gross_rent: float = Field(..., ge=0)
    assumptions: dict[str, Any] = Field(default_factory=dict)


class CashOnCashResponse(BaseModel):
    loan: float
    monthly_debt_service: float
    effective_monthly_income: float
    monthly_expenses: float
    monthly_cash_flow: float
    initial_investment: float
    cash_on_cash: float


class MessageResponse(BaseModel):
    code: int
    message: str
