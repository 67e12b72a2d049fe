# src/ostrich/domain/assumptions.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ostrich.domain.errors import InvalidAssumptionsError

ASSUMPTION_FIELDS = (
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
)

_PERCENT_FIELDS = (
    "vacancy",
    "property_management",
    "capex",
    "repairs",
    "down_payment",
    "closing_cost",
    "loan_interest",
)


@dataclass(frozen=True)
class CashOnCashRates:
    """Assumptions as the formula consumes them: rates are fractions (0.05 == 5%)."""

    insurance: float                    # flat monthly $
    vacancy_rate: float
    property_management_rate: float     # share of effective income
    capex_rate: float                   # share of effective income
    repairs_rate: float                 # share of effective income
    utilities: float                    # flat monthly $
    down_payment_rate: float
    closing_cost_rate: float
    annual_interest_rate: float
    loan_term_months: float
    additional_monthly_expenses: float  # flat monthly $


class InvestmentAssumptions(BaseModel):
    """
    Investor assumptions attached to a saved search.

    Rates are percentages (5.0 == 5%), the way users enter them and the way
    they are stored. `to_rates()` is the only place they become fractions.
    """

    insurance: float = Field(..., ge=0, description="flat monthly $")
    vacancy: float
    property_management: float
    capex: float
    repairs: float
    utilities: float = Field(..., ge=0, description="flat monthly $")
    down_payment: float
    closing_cost: float
    loan_interest: float
    loan_months: float
    additional_monthly_expenses: float = Field(default=0.0, ge=0)

    @field_validator(*_PERCENT_FIELDS, mode="before")
    @classmethod
    def _percent_like(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().replace("%", "")
        try:
            f = float(v)
        except (TypeError, ValueError) as err:
            raise ValueError("rate must be numeric or percent-like") from err
        if not (0.0 <= f <= 100.0):
            raise ValueError("rate must be a percentage between 0 and 100")
        return f

    @model_validator(mode="after")
    def _no_degenerate_loan(self) -> "InvestmentAssumptions":
        if self.down_payment + self.closing_cost <= 0:
            raise InvalidAssumptionsError(
                "down_payment and closing_cost cannot both be zero",
                field="down_payment",
                value=self.down_payment,
            )
        if self.loan_interest <= 0:
            raise InvalidAssumptionsError(
                "loan_interest must be positive", field="loan_interest", value=self.loan_interest
            )
        if self.loan_months <= 0:
            raise InvalidAssumptionsError(
                "loan_months must be positive", field="loan_months", value=self.loan_months
            )
        return self

    @classmethod
    def from_record(cls, record: Any) -> "InvestmentAssumptions":
        """
        Build from anything carrying the assumption attributes (an emailer row,
        a request body). Raises InvalidAssumptionsError instead of pydantic's
        ValidationError so batch callers only deal with one error family.
        """
        data = {name: getattr(record, name, None) for name in ASSUMPTION_FIELDS}
        if data["additional_monthly_expenses"] is None:
            data["additional_monthly_expenses"] = 0.0
        try:
            return cls(**data)
        except ValidationError as err:
            first = err.errors()[0] if err.errors() else {}
            original = (first.get("ctx") or {}).get("error")
            if isinstance(original, InvalidAssumptionsError):
                raise original from err
            loc = first.get("loc") or ("assumptions",)
            raise InvalidAssumptionsError(
                first.get("msg", str(err)),
                field=str(loc[0]) if loc else None,
                value=first.get("input"),
            ) from err

    def to_rates(self) -> CashOnCashRates:
        return CashOnCashRates(
            insurance=self.insurance,
            vacancy_rate=self.vacancy / 100.0,
            property_management_rate=self.property_management / 100.0,
            capex_rate=self.capex / 100.0,
            repairs_rate=self.repairs / 100.0,
            utilities=self.utilities,
            down_payment_rate=self.down_payment / 100.0,
            closing_cost_rate=self.closing_cost / 100.0,
            annual_interest_rate=self.loan_interest / 100.0,
            loan_term_months=self.loan_months,
            additional_monthly_expenses=self.additional_monthly_expenses,
        )
