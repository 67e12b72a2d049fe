# src/ostrich/services/emailer_job.py

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Literal, Sequence

from loguru import logger

from ostrich.adapters.config import config
from ostrich.domain.errors import EmailDispatchError, ListingSearchError, OstrichError
from ostrich.domain.ports import (
    EmailerRepository,
    EmailSender,
    ListingHistoryRepository,
    ListingSource,
    UserRepository,
)
from ostrich.services.digest import build_listing_digest
from ostrich.services.email import (
    digest_header,
    send_empty_listings_email,
    send_listings_email,
)

Status = Literal["sent", "fallback", "failed"]


@dataclass(frozen=True)
class EmailerOutcome:
    emailer_id: int | None
    email: str
    search_param: str
    status: Status
    detail: str = ""


def tier_limit(billing_id: str | None, tier_limits: dict[str, int] | None = None) -> int:
    limits = tier_limits if tier_limits is not None else config.TIER_LIMITS
    default = limits.get("Tier 0", 1)
    return int(limits.get(billing_id or "", default))


def emailers_for_user_with_tier(
    emailer_repo: EmailerRepository,
    user: Any,
    tier_limits: dict[str, int] | None = None,
) -> list[Any]:
    """A user's active emailers, oldest first, capped by their billing tier."""
    emailers = emailer_repo.list_by_user(user.id)
    limit = tier_limit(getattr(user, "billing_id", None), tier_limits)
    if len(emailers) > limit:
        logger.info(
            "Emailers over tier limit, extra ones skipped",
            user_id=user.id,
            tier=user.billing_id,
            limit=limit,
            total=len(emailers),
        )
    return emailers[:limit]


# ---------------------------
# 1. ONE SAVED SEARCH
# ---------------------------

async def process_emailer(
    emailer: Any,
    *,
    source: ListingSource,
    sender: EmailSender,
    history: ListingHistoryRepository | None = None,
    delay_s: float | None = None,
    days_on_market: int | None = None,
) -> EmailerOutcome:
    """
    Build and send one digest.

    - search failed        -> fallback "no listings" email, status "fallback"
    - anything else failed -> logged, nothing sent, status "failed"
    """
    to = emailer.email
    search_param = emailer.search_param
    logger.info("Running search", search_param=search_param, to=to)

    def outcome(status: Status, detail: str = "") -> EmailerOutcome:
        return EmailerOutcome(
            emailer_id=getattr(emailer, "id", None),
            email=to,
            search_param=search_param,
            status=status,
            detail=detail,
        )

    try:
        body = await build_listing_digest(
            source,
            emailer,
            digest_header(emailer),
            delay_s=delay_s,
            days_on_market=days_on_market,
            history=history,
        )
    except ListingSearchError as exc:
        logger.warning("Listing search failed, sending followup email", **exc.context())
        try:
            await asyncio.to_thread(send_empty_listings_email, sender, to, search_param)
        except EmailDispatchError as send_exc:
            logger.error("Followup email failed", **send_exc.context())
            return outcome("failed", send_exc.message)
        return outcome("fallback", exc.message)
    except OstrichError as exc:
        logger.error("Digest failed", **exc.context())
        return outcome("failed", exc.message)

    try:
        await asyncio.to_thread(send_listings_email, sender, to, body, search_param)
    except EmailDispatchError as exc:
        logger.error("Listings email failed", **exc.context())
        return outcome("failed", exc.message)

    return outcome("sent")


# ---------------------------
# 2. DAILY RUN
# ---------------------------

async def run_emailers(
    emailers: Sequence[Any],
    *,
    source: ListingSource,
    sender: EmailSender,
    history: ListingHistoryRepository | None = None,
    delay_s: float | None = None,
    days_on_market: int | None = None,
    max_concurrent: int | None = None,
) -> list[EmailerOutcome]:
    """One task per saved search; each keeps its own serialized detail loop."""
    limit = max_concurrent if max_concurrent is not None else config.MAX_CONCURRENT_SEARCHES
    gate = asyncio.Semaphore(max(1, limit))

    async def _one(emailer: Any) -> EmailerOutcome:
        async with gate:
            return await process_emailer(
                emailer,
                source=source,
                sender=sender,
                history=history,
                delay_s=delay_s,
                days_on_market=days_on_market,
            )

    results = await asyncio.gather(*(_one(e) for e in emailers), return_exceptions=True)

    outcomes: list[EmailerOutcome] = []
    for emailer, res in zip(emailers, results):
        if isinstance(res, BaseException):
            logger.opt(exception=res).error(
                "Unexpected error for emailer", emailer_id=getattr(emailer, "id", None)
            )
            outcomes.append(
                EmailerOutcome(
                    emailer_id=getattr(emailer, "id", None),
                    email=emailer.email,
                    search_param=emailer.search_param,
                    status="failed",
                    detail=repr(res),
                )
            )
        else:
            outcomes.append(res)
    return outcomes


async def run_daily_emailers(
    *,
    user_repo: UserRepository,
    emailer_repo: EmailerRepository,
    source: ListingSource,
    sender: EmailSender,
    history: ListingHistoryRepository | None = None,
    delay_s: float | None = None,
    days_on_market: int | None = None,
    max_concurrent: int | None = None,
    tier_limits: dict[str, int] | None = None,
) -> list[EmailerOutcome]:
    """
    Daily batch: every active user's emailers (capped by tier), with the
    "listed in the last N days" filter on.
    """
    if days_on_market is None:
        days_on_market = config.DAYS_ON_MARKET

    emailers: list[Any] = []
    for user in user_repo.list_active():
        emailers.extend(emailers_for_user_with_tier(emailer_repo, user, tier_limits))

    logger.info("Starting daily emailer run", emailers=len(emailers))

    outcomes = await run_emailers(
        emailers,
        source=source,
        sender=sender,
        history=history,
        delay_s=delay_s,
        days_on_market=days_on_market,
        max_concurrent=max_concurrent,
    )

    logger.info(
        "Daily emailer run completed",
        sent=sum(o.status == "sent" for o in outcomes),
        fallback=sum(o.status == "fallback" for o in outcomes),
        failed=sum(o.status == "failed" for o in outcomes),
    )
    return outcomes
