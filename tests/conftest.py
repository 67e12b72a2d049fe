# tests/conftest.py
import base64
import json
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from ostrich.adapters.config import config
from ostrich.adapters.memory_repo import (
    InMemoryEmailerRepository,
    InMemoryListingHistoryRepository,
    InMemoryUserRepository,
)
from ostrich.api import http
from ostrich.api.http import app  # ensures imports resolve; run tests from repo root
from ostrich.domain.errors import PropertyDetailError
from ostrich.domain.listing import ListingCandidate, ListingSearchResult, PropertyDetail


def make_token(sub: str = "auth-123", email: str = "investor@example.com") -> str:
    def seg(obj) -> str:
        raw = base64.urlsafe_b64encode(json.dumps(obj).encode()).decode()
        return raw.rstrip("=")

    return f"{seg({'alg': 'RS256'})}.{seg({'sub': sub, 'email': email})}.signature"


def make_emailer(**overrides):
    # Only fields the digest and job read need to exist
    base = dict(
        id=1,
        user_id=1,
        email="investor@example.com",
        search_param="Austin, TX",
        notes=None,
        max_price=400_000.0,
        min_price=100_000.0,
        no_bedrooms=None,
        no_bathrooms=None,
        **config.default_assumptions(),
    )
    base.update(overrides)
    return SimpleNamespace(**base)


def detail_payload(zpid: str, **overrides) -> dict:
    raw = {
        "zpid": zpid,
        "price": 290000,
        "propertyTaxRate": 0.65,
        "rentZestimate": 2400,
        "address": {
            "streetAddress": "123 Main St",
            "city": "Austin",
            "state": "TX",
            "zipcode": "78701",
        },
        "bedrooms": 3,
        "bathrooms": 2,
        "timeOnZillow": "1 day",
        "imgSrc": "https://photos.example.com/1.jpg",
        "url": f"/homedetails/{zpid}_zpid/",
    }
    raw.update(overrides)
    return raw


class FakeListingSource:
    """ListingSource double: canned search ids, canned details, optional failures."""

    def __init__(self, zpids=(), details=None, fail_ids=(), search_error=None):
        self.zpids = list(zpids)
        self.details = details or {}
        self.fail_ids = set(fail_ids)
        self.search_error = search_error
        self.searches = []
        self.fetched = []

    def search_listings(self, params):
        self.searches.append(params)
        if self.search_error is not None:
            raise self.search_error
        return ListingSearchResult(
            candidates=[ListingCandidate(zpid=z, address=f"{z} Main St") for z in self.zpids],
            total_result_count=len(self.zpids),
        )

    def get_property(self, zpid):
        self.fetched.append(zpid)
        if zpid in self.fail_ids:
            raise PropertyDetailError("boom", zpid=zpid, status_code=500)
        raw = self.details.get(zpid) or detail_payload(zpid)
        return PropertyDetail.from_api(raw)


@pytest.fixture
def fake_source():
    return FakeListingSource(zpids=["1", "2"])


@pytest.fixture
def repos():
    return SimpleNamespace(
        users=InMemoryUserRepository(),
        emailers=InMemoryEmailerRepository(),
        history=InMemoryListingHistoryRepository(),
    )


@pytest.fixture
def client(repos, fake_source):
    app.dependency_overrides[http.get_user_repo] = lambda: repos.users
    app.dependency_overrides[http.get_emailer_repo] = lambda: repos.emailers
    app.dependency_overrides[http.get_history_repo] = lambda: repos.history
    app.dependency_overrides[http.get_listing_source] = lambda: fake_source
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user(repos):
    return repos.users.create(email="investor@example.com", authentication_id="auth-123")


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {make_token(user.authentication_id, user.email)}"}
