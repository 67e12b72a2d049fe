# src/ostrich/services/digest.py
"""
Saved search -> HTML digest body.

    search -> ids -> (delay, fetch detail)* -> cash on cash -> fragment -> fold

Detail lookups run strictly one after another with a fixed delay in front of
each call; the listings API enforces a requests-per-second ceiling. A failed
lookup drops that property and the loop moves on. A failed search raises
ListingSearchError so the caller can send the fallback email instead.
"""
from __future__ import annotations

import asyncio
import html
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass
from typing import Any

from ostrich.adapters.config import config
from ostrich.adapters.logging_utils import get_logger
from ostrich.domain.assumptions import InvestmentAssumptions
from ostrich.domain.cash_on_cash import maybe_cash_on_cash
from ostrich.domain.errors import InvalidAssumptionsError, PropertyDetailError
from ostrich.domain.formatting import PLACEHOLDER, format_optional
from ostrich.domain.listing import ListingCandidate, PropertyDetail, SearchParameters
from ostrich.domain.ports import ListingHistoryRepository, ListingSource

logger = get_logger(__name__)

FRAGMENT_WRAPPER = '<div style="border-top:1px solid black;">{}</div>'
ZILLOW_WEB = "https://www.zillow.com"


def extract_property_ids(candidates: Iterable[ListingCandidate]) -> list[str]:
    """Ids in search order; blanks and repeats dropped (first one wins)."""
    seen: set[str] = set()
    out: list[str] = []
    for c in candidates:
        zpid = (c.zpid or "").strip()
        if not zpid or zpid in seen:
            continue
        seen.add(zpid)
        out.append(zpid)
    return out


@dataclass(frozen=True)
class PropertyEmailData:
    detail: PropertyDetail
    monthly_taxes: float | None
    cash_on_cash: float | None

    @classmethod
    def from_detail(
        cls, detail: PropertyDetail, assumptions: InvestmentAssumptions
    ) -> "PropertyEmailData":
        taxes = detail.monthly_property_tax
        try:
            coc = maybe_cash_on_cash(assumptions, detail.price, taxes, detail.rent_estimate)
        except InvalidAssumptionsError as exc:
            logger.warning(
                "cash_on_cash_skipped",
                extra={"context": {"zpid": detail.zpid} | exc.context()},
            )
            coc = None
        return cls(detail=detail, monthly_taxes=taxes, cash_on_cash=coc)

    def address_line(self) -> str:
        d = self.detail
        return (
            f"{format_optional(d.street_address)} {format_optional(d.city)}, "
            f"{format_optional(d.state)} {format_optional(d.zipcode)}"
        )

    def specs_line(self) -> str:
        return (
            f"Bedrooms: {format_optional(self.detail.bedrooms, 'count')} | "
            f"Bathrooms: {format_optional(self.detail.bathrooms, 'count')}"
        )

    def history_item(self, emailer: Any) -> dict[str, Any]:
        d = self.detail
        return {
            "user_id": emailer.user_id,
            "emailer_id": emailer.id,
            "zpid": d.zpid,
            "street_address": d.street_address,
            "city": d.city,
            "state": d.state,
            "zipcode": d.zipcode,
            "bedrooms": d.bedrooms,
            "bathrooms": d.bathrooms,
            "price": d.price,
            "taxes": self.monthly_taxes,
            "rent_estimate": d.rent_estimate,
            "time_on_zillow": d.time_on_market,
            "img_src": d.img_src,
            "url": d.url,
            "cash_on_cash": self.cash_on_cash,
        }


def _cash_on_cash_cell(value: float | None, plugin_url: str) -> str:
    if value is None:
        return f'<a href="{html.escape(plugin_url)}">Use Ostrich Plugin to run this calculation!</a>'
    return format_optional(value, "percent")


def render_property_fragment(data: PropertyEmailData, plugin_url: str | None = None) -> str:
    d = data.detail
    image = f'<img src="{html.escape(d.img_src)}">' if d.img_src else f"<p>Image: {PLACEHOLDER}</p>"
    link = (
        f'<a href="{ZILLOW_WEB}{html.escape(d.url)}">Check it out!</a>'
        if d.url
        else f"<p>Listing: {PLACEHOLDER}</p>"
    )
    return (
        f"<h2>{html.escape(data.address_line())}</h2>"
        f"<h4>{data.specs_line()}</h4>"
        f"<h4>Price: {format_optional(d.price, 'money')}</h4>"
        f"<h4>Taxes: {format_optional(data.monthly_taxes, 'money')}</h4>"
        f"<h4>Estimated Rent: {format_optional(d.rent_estimate, 'money')}</h4>"
        f"<h4>Days on Market: {html.escape(format_optional(d.time_on_market))}</h4>"
        f"<h4>Cash On Cash: {_cash_on_cash_cell(data.cash_on_cash, plugin_url or config.PLUGIN_URL)}</h4>"
        f"{image}"
        f"{link}"
    )


def fold_fragments(header: str, fragments: Iterable[str]) -> str:
    return header + "".join(FRAGMENT_WRAPPER.format(f) for f in fragments)


async def fetch_details(
    source: ListingSource,
    zpids: Iterable[str],
    *,
    delay_s: float,
) -> AsyncIterator[PropertyDetail]:
    """Rate-limited, failure-tolerant map from ids to detail records."""
    for zpid in zpids:
        await asyncio.sleep(delay_s)
        try:
            detail = await asyncio.to_thread(source.get_property, zpid)
        except PropertyDetailError as exc:
            logger.error("property_detail_skipped", extra={"context": exc.context()})
            continue
        if detail.zpid is None:
            detail = detail.model_copy(update={"zpid": zpid})
        yield detail


def _record_history(history: ListingHistoryRepository | None, item: dict[str, Any]) -> None:
    if history is None:
        return
    try:
        history.save(item)
    except Exception as exc:  # noqa: BLE001
        # history is a log of what went out; it never blocks the email
        logger.warning(
            "listing_history_write_failed",
            extra={"context": {"zpid": item.get("zpid"), "error": str(exc)}},
        )


async def build_listing_digest(
    source: ListingSource,
    emailer: Any,
    header: str,
    *,
    delay_s: float | None = None,
    days_on_market: int | None = None,
    history: ListingHistoryRepository | None = None,
    plugin_url: str | None = None,
) -> str:
    """
    Body for one saved search: `header` followed by one fragment per property
    whose detail lookup succeeded, in search order.

    Raises ListingSearchError when the search itself fails and
    InvalidAssumptionsError when the emailer's assumptions are unusable.
    """
    if delay_s is None:
        delay_s = config.DETAIL_DELAY_MS / 1000.0

    assumptions = InvestmentAssumptions.from_record(emailer)
    params = SearchParameters.from_emailer(emailer, days_on_market=days_on_market)

    result = await asyncio.to_thread(source.search_listings, params)
    zpids = extract_property_ids(result.candidates)
    logger.info(
        "digest_candidates",
        extra={"context": {"location": params.search_param, "found": len(result.candidates), "ids": len(zpids)}},
    )

    fragments: list[str] = []
    async for detail in fetch_details(source, zpids, delay_s=delay_s):
        data = PropertyEmailData.from_detail(detail, assumptions)
        if history is not None:
            await asyncio.to_thread(_record_history, history, data.history_item(emailer))
        fragments.append(render_property_fragment(data, plugin_url))

    return fold_fragments(header, fragments)
