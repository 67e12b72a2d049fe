# src/ostrich/api/http.py
from __future__ import annotations

from functools import lru_cache
from types import SimpleNamespace
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Query

from ostrich.adapters.config import config
from ostrich.adapters.logging_utils import get_logger
from ostrich.adapters.sql_repo import (
    EmailerRow,
    SqlEmailerRepository,
    SqlListingHistoryRepository,
    SqlUserRepository,
)
from ostrich.adapters.zillow_client import ZillowConfigError, make_zillow_client
from ostrich.api.auth import JwtPayload, decode_bearer
from ostrich.domain.assumptions import ASSUMPTION_FIELDS, InvestmentAssumptions
from ostrich.domain.cash_on_cash import cash_on_cash_breakdown
from ostrich.domain.errors import AuthError, InvalidAssumptionsError, ListingSearchError
from ostrich.domain.formatting import format_optional
from ostrich.domain.listing import SearchParameters
from ostrich.domain.ports import (
    EmailerRepository,
    ListingHistoryRepository,
    ListingSource,
    UserRepository,
)
from .schemas import (
    CashOnCashRequest,
    CashOnCashResponse,
    EmailerCreate,
    EmailerItem,
    EmailerUpdate,
    ListingDataItem,
    MessageResponse,
)

logger = get_logger(__name__)

app = FastAPI(title="Ostrich")


# -------------------------------------------------------------------
# Dependencies (single init on first use; tests override these)
# -------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_user_repo() -> UserRepository:
    return SqlUserRepository(config.DB_URI)


@lru_cache(maxsize=1)
def get_emailer_repo() -> EmailerRepository:
    return SqlEmailerRepository(config.DB_URI)


@lru_cache(maxsize=1)
def get_history_repo() -> ListingHistoryRepository:
    return SqlListingHistoryRepository(config.DB_URI)


def get_listing_source() -> ListingSource:
    try:
        return make_zillow_client()
    except ZillowConfigError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e


def get_claims(authorization: str = Header(...)) -> JwtPayload:
    try:
        return decode_bearer(authorization)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=e.message) from e


def get_current_user(
    claims: JwtPayload = Depends(get_claims),
    users: UserRepository = Depends(get_user_repo),
) -> Any:
    user = users.get_by_authentication_id(claims.sub)
    if user is None:
        raise HTTPException(status_code=404, detail="user not found")
    return user


# -------------------------------------------------------------------
# Health
# -------------------------------------------------------------------
@app.get("/health", response_model=MessageResponse)
def health() -> MessageResponse:
    return MessageResponse(code=200, message="ok")


# -------------------------------------------------------------------
# Emailers
# -------------------------------------------------------------------
@app.get("/emailers/all", response_model=list[EmailerItem])
def list_all_emailers(emailers: EmailerRepository = Depends(get_emailer_repo)) -> list[EmailerRow]:
    logger.info("list_all_emailers")
    return emailers.list_active()


@app.get("/emailers/test-search-param", response_model=list[str])
def test_search_param(
    search_param: str = Query(..., min_length=1),
    max_price: float | None = None,
    min_price: float | None = None,
    no_bedrooms: int | None = None,
    no_bathrooms: int | None = None,
    source: ListingSource = Depends(get_listing_source),
) -> list[str]:
    """
    Dry-run a search: the addresses the listing search would return,
    without fetching details or sending anything.
    """
    params = SearchParameters(
        search_param=search_param,
        max_price=max_price,
        min_price=min_price,
        no_bedrooms=no_bedrooms,
        no_bathrooms=no_bathrooms,
    )
    try:
        result = source.search_listings(params)
    except ListingSearchError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    return [format_optional(c.address) for c in result.candidates]


@app.get("/emailers", response_model=list[EmailerItem])
def list_my_emailers(
    user: Any = Depends(get_current_user),
    emailers: EmailerRepository = Depends(get_emailer_repo),
) -> list[EmailerRow]:
    return emailers.list_by_user(user.id)


@app.post("/emailers", response_model=EmailerItem)
def create_emailer(
    payload: EmailerCreate,
    user: Any = Depends(get_current_user),
    emailers: EmailerRepository = Depends(get_emailer_repo),
) -> EmailerRow:
    logger.info("insert_emailer", extra={"context": {"user_id": user.id}})
    return emailers.create(user_id=user.id, email=user.email, data=payload.model_dump())


@app.put("/emailers/{emailer_id}", response_model=EmailerItem)
def update_emailer(
    emailer_id: int,
    payload: EmailerUpdate,
    user: Any = Depends(get_current_user),
    emailers: EmailerRepository = Depends(get_emailer_repo),
) -> EmailerRow:
    changes = payload.model_dump(exclude_unset=True)

    existing = emailers.get(emailer_id)
    if existing is None or not existing.active or existing.user_id != user.id:
        raise HTTPException(status_code=404, detail="emailer not found")

    # the merged bundle must still be a usable set of assumptions
    merged = {f: changes.get(f, getattr(existing, f)) for f in ASSUMPTION_FIELDS}
    try:
        assumptions = InvestmentAssumptions.from_record(SimpleNamespace(**merged))
    except InvalidAssumptionsError as e:
        raise HTTPException(status_code=422, detail=e.message) from e
    for f in ASSUMPTION_FIELDS:
        if f in changes:
            changes[f] = getattr(assumptions, f)

    min_price = changes.get("min_price", existing.min_price)
    max_price = changes.get("max_price", existing.max_price)
    if min_price is not None and max_price is not None and min_price > max_price:
        raise HTTPException(status_code=422, detail="min_price cannot exceed max_price")

    row = emailers.update(emailer_id, user.id, changes)
    if row is None:
        raise HTTPException(status_code=404, detail="emailer not found")
    return row


@app.delete("/emailers/{emailer_id}", response_model=MessageResponse)
def delete_emailer(
    emailer_id: int,
    user: Any = Depends(get_current_user),
    emailers: EmailerRepository = Depends(get_emailer_repo),
) -> MessageResponse:
    row = emailers.soft_delete(emailer_id, user.id)
    if row is None:
        raise HTTPException(status_code=404, detail="emailer not found")
    return MessageResponse(code=200, message=f"emailer {emailer_id} deleted")


@app.get("/emailers/{emailer_id}/listings", response_model=list[ListingDataItem])
def list_emailer_listings(
    emailer_id: int,
    limit: int = Query(100, ge=1, le=500),
    user: Any = Depends(get_current_user),
    emailers: EmailerRepository = Depends(get_emailer_repo),
    history: ListingHistoryRepository = Depends(get_history_repo),
) -> list[Any]:
    existing = emailers.get(emailer_id)
    if existing is None or existing.user_id != user.id:
        raise HTTPException(status_code=404, detail="emailer not found")
    return history.list_by_emailer(emailer_id, limit=limit)


# -------------------------------------------------------------------
# Calculator
# -------------------------------------------------------------------
@app.post("/cash-on-cash", response_model=CashOnCashResponse)
def cash_on_cash_endpoint(payload: CashOnCashRequest) -> CashOnCashResponse:
    data = config.default_assumptions() | payload.assumptions
    try:
        assumptions = InvestmentAssumptions.from_record(SimpleNamespace(**data))
        breakdown = cash_on_cash_breakdown(
            assumptions,
            payload.purchase_price,
            payload.monthly_property_tax,
            payload.monthly_gross_rent,
        )
    except InvalidAssumptionsError as e:
        raise HTTPException(status_code=422, detail=e.message) from e
    return CashOnCashResponse(**breakdown.as_dict())
