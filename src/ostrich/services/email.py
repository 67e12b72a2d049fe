# src/ostrich/services/email.py
from __future__ import annotations

import html
from typing import Any

from ostrich.adapters.logging_utils import get_logger
from ostrich.domain.formatting import format_optional
from ostrich.domain.ports import EmailSender

logger = get_logger(__name__)

EMPTY_LISTINGS_BODY = (
    "<p>Looks like not much showed on the market yesterday! "
    "Try broadening your search.</p>"
)


def listings_subject(search_param: str) -> str:
    return f"New Ostrich Listings: {search_param}"


def digest_header(emailer: Any) -> str:
    return (
        "<h1>-Your Daily Zillow Listings-</h1>"
        f"<p>Search: {html.escape(format_optional(emailer.search_param))}</p>"
        f"<p>Market: {html.escape(format_optional(getattr(emailer, 'notes', None)))}</p>"
        f"<p>Price Range: {format_optional(getattr(emailer, 'min_price', None), 'money')}"
        f"-{format_optional(getattr(emailer, 'max_price', None), 'money')}</p>"
    )


def send_listings_email(sender: EmailSender, to: str, body: str, search_param: str) -> None:
    sender.send(to, listings_subject(search_param), body)
    logger.info("listings_email_sent", extra={"context": {"to": to, "search": search_param}})


def send_empty_listings_email(sender: EmailSender, to: str, search_param: str) -> None:
    sender.send(to, listings_subject(search_param), EMPTY_LISTINGS_BODY)
    logger.info("empty_listings_email_sent", extra={"context": {"to": to, "search": search_param}})
