# src/ostrich/domain/cash_on_cash.py
from __future__ import annotations

import math
from dataclasses import asdict, dataclass

from ostrich.domain.assumptions import CashOnCashRates, InvestmentAssumptions
from ostrich.domain.errors import InvalidAssumptionsError


@dataclass(frozen=True)
class CashOnCashBreakdown:
    loan: float
    monthly_debt_service: float
    effective_monthly_income: float
    monthly_expenses: float
    monthly_cash_flow: float
    initial_investment: float
    cash_on_cash: float  # percent, may be negative

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def _rates(assumptions: CashOnCashRates | InvestmentAssumptions) -> CashOnCashRates:
    if isinstance(assumptions, InvestmentAssumptions):
        return assumptions.to_rates()
    return assumptions


def _check(rates: CashOnCashRates, purchase_price: float) -> None:
    if purchase_price <= 0:
        raise InvalidAssumptionsError(
            "purchase_price must be positive", field="purchase_price", value=purchase_price
        )
    if rates.down_payment_rate + rates.closing_cost_rate <= 0:
        raise InvalidAssumptionsError(
            "initial investment would be zero (down payment + closing cost == 0)",
            field="down_payment",
            value=rates.down_payment_rate,
        )
    if rates.annual_interest_rate <= 0:
        raise InvalidAssumptionsError(
            "loan interest must be positive",
            field="loan_interest",
            value=rates.annual_interest_rate,
        )
    if rates.loan_term_months <= 0:
        raise InvalidAssumptionsError(
            "loan term must be positive", field="loan_months", value=rates.loan_term_months
        )


def _loan(rates: CashOnCashRates, purchase_price: float) -> float:
    return purchase_price * (1.0 - rates.down_payment_rate)


def _monthly_debt_service(rates: CashOnCashRates, loan: float) -> float:
    """
    Standard fixed-rate amortization payment:
    M = P * i / (1 - (1 + i)^-n)
    i = monthly interest rate, n = number of monthly payments
    """
    i = rates.annual_interest_rate / 12.0
    n = rates.loan_term_months
    return loan * i / (1.0 - (1.0 + i) ** (-n))


def _effective_monthly_income(rates: CashOnCashRates, monthly_gross_rent: float) -> float:
    return monthly_gross_rent * (1.0 - rates.vacancy_rate)


def _monthly_expenses(
    rates: CashOnCashRates,
    monthly_property_tax: float,
    effective_income: float,
) -> float:
    # percentage buckets apply to income after vacancy; insurance/utilities/additional are flat
    return (
        monthly_property_tax
        + rates.insurance
        + rates.property_management_rate * effective_income
        + rates.capex_rate * effective_income
        + rates.repairs_rate * effective_income
        + rates.utilities
        + rates.additional_monthly_expenses
    )


def cash_on_cash_breakdown(
    assumptions: CashOnCashRates | InvestmentAssumptions,
    purchase_price: float,
    monthly_property_tax: float,
    monthly_gross_rent: float,
) -> CashOnCashBreakdown:
    """
    Annualized cash-on-cash return with every intermediate figure.

    COC = (monthly cash flow * 12 / initial investment) * 100
    """
    rates = _rates(assumptions)
    _check(rates, purchase_price)

    loan = _loan(rates, purchase_price)
    debt_service = _monthly_debt_service(rates, loan)
    effective_income = _effective_monthly_income(rates, monthly_gross_rent)
    expenses = _monthly_expenses(rates, monthly_property_tax, effective_income)

    cash_flow = (
        monthly_gross_rent
        - monthly_gross_rent * rates.vacancy_rate
        - expenses
        - debt_service
    )
    initial_investment = (rates.down_payment_rate + rates.closing_cost_rate) * purchase_price
    coc = (cash_flow * 12.0 / initial_investment) * 100.0

    if not math.isfinite(coc):
        raise InvalidAssumptionsError("cash on cash is not a finite number", value=coc)

    return CashOnCashBreakdown(
        loan=loan,
        monthly_debt_service=debt_service,
        effective_monthly_income=effective_income,
        monthly_expenses=expenses,
        monthly_cash_flow=cash_flow,
        initial_investment=initial_investment,
        cash_on_cash=coc,
    )


def calculate_cash_on_cash(
    assumptions: CashOnCashRates | InvestmentAssumptions,
    purchase_price: float,
    monthly_property_tax: float,
    monthly_gross_rent: float,
) -> float:
    return cash_on_cash_breakdown(
        assumptions, purchase_price, monthly_property_tax, monthly_gross_rent
    ).cash_on_cash


def maybe_cash_on_cash(
    assumptions: CashOnCashRates | InvestmentAssumptions,
    purchase_price: float | None,
    monthly_property_tax: float | None,
    monthly_gross_rent: float | None,
) -> float | None:
    """None unless price, tax and rent are all known and the price is positive."""
    if purchase_price is None or monthly_property_tax is None or monthly_gross_rent is None:
        return None
    if purchase_price <= 0:
        return None
    return calculate_cash_on_cash(
        assumptions, purchase_price, monthly_property_tax, monthly_gross_rent
    )
