# src/ostrich/domain/listing.py
from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, Field


def _to_float(v: Any) -> float | None:
    if v is None or v == "":
        return None
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _to_int(v: Any) -> int | None:
    f = _to_float(v)
    return int(f) if f is not None else None


def _to_str(v: Any) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


class SearchParameters(BaseModel):
    """Listing search filters derived from a saved search."""

    search_param: str
    min_price: float | None = None
    max_price: float | None = None
    no_bedrooms: int | None = Field(default=None, description="minimum bedrooms")
    no_bathrooms: int | None = Field(default=None, description="minimum bathrooms")
    days_on_market: int | None = None

    @classmethod
    def from_emailer(cls, emailer: Any, days_on_market: int | None = None) -> "SearchParameters":
        return cls(
            search_param=emailer.search_param,
            min_price=getattr(emailer, "min_price", None),
            max_price=getattr(emailer, "max_price", None),
            no_bedrooms=getattr(emailer, "no_bedrooms", None),
            no_bathrooms=getattr(emailer, "no_bathrooms", None),
            days_on_market=days_on_market,
        )

    def to_query(self, home_type: str = "Houses") -> dict[str, Any]:
        params: dict[str, Any] = {
            "location": self.search_param,
            "home_type": home_type,
        }
        if self.min_price is not None:
            params["minPrice"] = int(self.min_price)
        if self.max_price is not None:
            params["maxPrice"] = int(self.max_price)
        if self.no_bedrooms is not None:
            params["bedsMin"] = self.no_bedrooms
        if self.no_bathrooms is not None:
            params["bathsMin"] = self.no_bathrooms
        if self.days_on_market is not None:
            params["daysOn"] = self.days_on_market
        return params


class ListingCandidate(BaseModel):
    """One entry of a listing search; only `zpid` drives the detail lookups."""

    zpid: str | None = None
    address: str | None = None
    price: float | None = None
    bedrooms: float | None = None
    bathrooms: float | None = None
    days_on_zillow: float | None = None
    img_src: str | None = None

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "ListingCandidate":
        return cls(
            zpid=_to_str(raw.get("zpid")),
            address=_to_str(raw.get("address")),
            price=_to_float(raw.get("price")),
            bedrooms=_to_float(raw.get("bedrooms")),
            bathrooms=_to_float(raw.get("bathrooms")),
            days_on_zillow=_to_float(raw.get("daysOnZillow")),
            img_src=_to_str(raw.get("imgSrc")),
        )


class ListingSearchResult(BaseModel):
    candidates: list[ListingCandidate] = Field(default_factory=list)
    total_result_count: int | None = None
    total_pages: int | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any], props: list[Any]) -> "ListingSearchResult":
        return cls(
            candidates=[ListingCandidate.from_api(p) for p in props if isinstance(p, dict)],
            total_result_count=_to_int(data.get("totalResultCount")),
            total_pages=_to_int(data.get("totalPages")),
        )


class PropertyDetail(BaseModel):
    """Per-property record fetched by zpid. Every field may be missing upstream."""

    zpid: str | None = None
    price: float | None = None
    property_tax_rate: float | None = Field(default=None, description="annual, percent of price")
    rent_estimate: float | None = Field(default=None, description="monthly")

    street_address: str | None = None
    city: str | None = None
    state: str | None = None
    zipcode: str | None = None

    bedrooms: float | None = None
    bathrooms: float | None = None
    time_on_market: str | None = None
    img_src: str | None = None
    url: str | None = None

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "PropertyDetail":
        address = raw.get("address")
        if not isinstance(address, dict):
            address = {}

        return cls(
            zpid=_to_str(raw.get("zpid")),
            price=_to_float(raw.get("price")),
            property_tax_rate=_to_float(raw.get("propertyTaxRate")),
            rent_estimate=_to_float(raw.get("rentZestimate")),
            street_address=_to_str(address.get("streetAddress") or raw.get("streetAddress")),
            city=_to_str(address.get("city") or raw.get("city")),
            state=_to_str(address.get("state") or raw.get("state")),
            zipcode=_to_str(address.get("zipcode") or raw.get("zipcode")),
            bedrooms=_to_float(raw.get("bedrooms")),
            bathrooms=_to_float(raw.get("bathrooms")),
            time_on_market=_to_str(raw.get("timeOnZillow")),
            img_src=_to_str(raw.get("imgSrc")),
            url=_to_str(raw.get("url")),
        )

    @property
    def monthly_property_tax(self) -> float | None:
        # annual rate (%) of price, spread over 12 months; a 0% rate is a real $0
        if self.price is None or self.property_tax_rate is None:
            return None
        return self.property_tax_rate * self.price / 1200.0
