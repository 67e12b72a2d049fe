from __future__ import annotations

import asyncio
from typing import Optional

import typer
from dotenv import find_dotenv, load_dotenv
from loguru import logger

load_dotenv(find_dotenv())

from ostrich.adapters.config import config  # noqa: E402
from ostrich.adapters.sendgrid_client import make_sendgrid_client  # noqa: E402
from ostrich.adapters.sql_repo import (  # noqa: E402
    EmailerRow,
    SqlEmailerRepository,
    SqlListingHistoryRepository,
    SqlUserRepository,
)
from ostrich.adapters.zillow_client import make_zillow_client  # noqa: E402
from ostrich.services.emailer_job import process_emailer, run_daily_emailers  # noqa: E402

app = typer.Typer(help="Ostrich listing emailers (daily batch, one-off test sends).")


@app.command("run-daily")
def run_daily(
    db_uri: Optional[str] = typer.Option(None, help="Database URI (default: OSTRICH_DB_URI)"),
    days_on_market: Optional[int] = typer.Option(
        None, help="Only listings on the market this many days (default: OSTRICH_DAYS_ON_MARKET)"
    ),
    max_concurrent: Optional[int] = typer.Option(None, help="Saved searches run at once"),
) -> None:
    """
    Send every active user's daily digests.
    """
    uri = db_uri or config.DB_URI
    outcomes = asyncio.run(
        run_daily_emailers(
            user_repo=SqlUserRepository(uri),
            emailer_repo=SqlEmailerRepository(uri),
            source=make_zillow_client(),
            sender=make_sendgrid_client(),
            history=SqlListingHistoryRepository(uri),
            days_on_market=days_on_market,
            max_concurrent=max_concurrent,
        )
    )
    failed = [o for o in outcomes if o.status == "failed"]
    typer.echo(f"{len(outcomes)} emailers processed, {len(failed)} failed")
    if failed:
        raise typer.Exit(code=1)


@app.command("test-emailer")
def test_emailer(
    email: str = typer.Option(..., help="Recipient address"),
    search: str = typer.Option(..., "--search", help="Location search, e.g. 'Austin, TX'"),
    max_price: Optional[float] = typer.Option(None),
    min_price: Optional[float] = typer.Option(None),
    bedrooms: Optional[int] = typer.Option(None, help="Minimum bedrooms"),
    bathrooms: Optional[int] = typer.Option(None, help="Minimum bathrooms"),
) -> None:
    """
    One-off digest for an unsaved search, using the default assumptions.
    Nothing is written to listing history and no days-on-market filter is applied.
    """
    emailer = EmailerRow(
        user_id=0,
        email=email,
        search_param=search,
        max_price=max_price,
        min_price=min_price,
        no_bedrooms=bedrooms,
        no_bathrooms=bathrooms,
        **config.default_assumptions(),
    )
    outcome = asyncio.run(
        process_emailer(
            emailer,
            source=make_zillow_client(),
            sender=make_sendgrid_client(),
            history=None,
            days_on_market=None,
        )
    )
    logger.info("Test emailer finished", status=outcome.status, detail=outcome.detail)
    typer.echo(outcome.status)
    if outcome.status == "failed":
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
