import asyncio

from ostrich.adapters.memory_repo import (
    InMemoryEmailerRepository,
    InMemoryListingHistoryRepository,
    InMemoryUserRepository,
    RecordingEmailSender,
)
from ostrich.adapters.config import config
from ostrich.domain.errors import ListingSearchError
from ostrich.services.email import EMPTY_LISTINGS_BODY, listings_subject
from ostrich.services.emailer_job import (
    process_emailer,
    run_daily_emailers,
    run_emailers,
    tier_limit,
)

from conftest import FakeListingSource, detail_payload, make_emailer


def _process(emailer, source, sender, **kwargs):
    return asyncio.run(
        process_emailer(emailer, source=source, sender=sender, delay_s=0, **kwargs)
    )


def test_successful_digest_is_sent():
    sender = RecordingEmailSender()
    outcome = _process(make_emailer(), FakeListingSource(zpids=["1"]), sender)

    assert outcome.status == "sent"
    assert len(sender.sent) == 1
    msg = sender.sent[0]
    assert msg.to == "investor@example.com"
    assert msg.subject == listings_subject("Austin, TX") == "New Ostrich Listings: Austin, TX"
    assert msg.html.startswith("<h1>-Your Daily Zillow Listings-</h1>")
    assert "123 Main St" in msg.html


def test_search_failure_sends_fallback_email():
    sender = RecordingEmailSender()
    source = FakeListingSource(search_error=ListingSearchError("no props", location="Austin, TX"))
    outcome = _process(make_emailer(), source, sender)

    assert outcome.status == "fallback"
    assert [m.html for m in sender.sent] == [EMPTY_LISTINGS_BODY]


def test_bad_assumptions_fail_without_sending():
    sender = RecordingEmailSender()
    outcome = _process(make_emailer(loan_months=0), FakeListingSource(zpids=["1"]), sender)

    assert outcome.status == "failed"
    assert sender.sent == []


def test_dispatch_failure_reported_as_failed():
    sender = RecordingEmailSender(fail_for={"investor@example.com"})
    outcome = _process(make_emailer(), FakeListingSource(zpids=["1"]), sender)
    assert outcome.status == "failed"


def test_one_failing_emailer_does_not_block_others():
    sender = RecordingEmailSender(fail_for={"broken@example.com"})
    emailers = [
        make_emailer(id=1, email="a@example.com"),
        make_emailer(id=2, email="broken@example.com"),
        make_emailer(id=3, email="c@example.com"),
    ]
    outcomes = asyncio.run(
        run_emailers(
            emailers,
            source=FakeListingSource(zpids=["1"]),
            sender=sender,
            delay_s=0,
            max_concurrent=2,
        )
    )

    assert [o.status for o in outcomes] == ["sent", "failed", "sent"]
    assert sorted(m.to for m in sender.sent) == ["a@example.com", "c@example.com"]


def test_unexpected_exception_becomes_failed_outcome():
    class ExplodingSource(FakeListingSource):
        def search_listings(self, params):
            raise RuntimeError("unexpected")

    outcomes = asyncio.run(
        run_emailers(
            [make_emailer()],
            source=ExplodingSource(),
            sender=RecordingEmailSender(),
            delay_s=0,
        )
    )
    assert outcomes[0].status == "failed"
    assert "unexpected" in outcomes[0].detail


def test_tier_limit_lookup():
    limits = {"Tier 0": 1, "Tier 1": 3, "Tier 2": 10}
    assert tier_limit("Tier 1", limits) == 3
    assert tier_limit("Tier 2", limits) == 10
    assert tier_limit(None, limits) == 1
    assert tier_limit("Gold", limits) == 1


def test_daily_run_caps_emailers_by_tier_and_filters_new_listings():
    users = InMemoryUserRepository()
    emailer_repo = InMemoryEmailerRepository()
    history = InMemoryListingHistoryRepository()

    free = users.create(email="free@example.com", authentication_id="a", billing_id="Tier 0")
    paid = users.create(email="paid@example.com", authentication_id="b", billing_id="Tier 1")
    data = {"search_param": "Austin, TX", **config.default_assumptions()}
    for _ in range(2):
        emailer_repo.create(user_id=free.id, email=free.email, data=data)
    for _ in range(4):
        emailer_repo.create(user_id=paid.id, email=paid.email, data=data)

    source = FakeListingSource(zpids=["1"])
    sender = RecordingEmailSender()
    outcomes = asyncio.run(
        run_daily_emailers(
            user_repo=users,
            emailer_repo=emailer_repo,
            source=source,
            sender=sender,
            history=history,
            delay_s=0,
            days_on_market=1,
            tier_limits={"Tier 0": 1, "Tier 1": 3},
        )
    )

    assert len(outcomes) == 4
    assert sum(m.to == "free@example.com" for m in sender.sent) == 1
    assert sum(m.to == "paid@example.com" for m in sender.sent) == 3
    assert all(p.days_on_market == 1 for p in source.searches)
    assert len(history.all()) == 4


def test_unparsable_rent_on_one_property_still_sends_digest():
    sender = RecordingEmailSender()
    source = FakeListingSource(
        zpids=["1", "2"], details={"2": detail_payload("2", rentZestimate="NaN")}
    )
    outcome = _process(make_emailer(), source, sender)

    assert outcome.status == "sent"
    assert len(sender.sent) == 1
    assert sender.sent[0].html.count("/homedetails/") == 2
