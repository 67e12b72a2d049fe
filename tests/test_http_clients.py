import threading

import pytest
import requests

from ostrich.adapters.sendgrid_client import SendGridClient
from ostrich.adapters.zillow_client import ZillowClient
from ostrich.domain.errors import EmailDispatchError, ListingSearchError, PropertyDetailError
from ostrich.domain.listing import SearchParameters

from conftest import detail_payload


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text="", url="https://fake"):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.url = url

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def _reply(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def get(self, url, **kwargs):
        return self._reply("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._reply("POST", url, **kwargs)


def _zillow(session) -> ZillowClient:
    return ZillowClient(api_host="zillow.example.com", api_key="k", session=session)


def test_search_sends_rapidapi_headers_and_filters():
    session = FakeSession(FakeResponse(payload={"props": [{"zpid": 1}, {"zpid": 2}], "totalResultCount": 2}))
    result = _zillow(session).search_listings(
        SearchParameters(search_param="Austin, TX", max_price=300000, days_on_market=1)
    )

    assert [c.zpid for c in result.candidates] == ["1", "2"]
    assert result.total_result_count == 2
    _, url, kwargs = session.calls[0]
    assert url == "https://zillow.example.com/propertyExtendedSearch"
    assert kwargs["headers"] == {"X-RapidAPI-Host": "zillow.example.com", "X-RapidAPI-Key": "k"}
    assert kwargs["params"]["location"] == "Austin, TX"
    assert kwargs["params"]["home_type"] == "Houses"
    assert kwargs["params"]["maxPrice"] == 300000
    assert kwargs["params"]["daysOn"] == 1


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(FakeResponse(status_code=429, text="slow down")),
        FakeSession(FakeResponse(payload=None)),
        FakeSession(FakeResponse(payload={"message": "no results"})),
        FakeSession(error=requests.ConnectionError("offline")),
    ],
)
def test_search_failures_raise_listing_search_error(session):
    with pytest.raises(ListingSearchError):
        _zillow(session).search_listings(SearchParameters(search_param="Nowhere"))


def test_property_lookup_parses_detail():
    session = FakeSession(FakeResponse(payload=detail_payload("42")))
    detail = _zillow(session).get_property("42")
    assert detail.zpid == "42"
    assert session.calls[0][2]["params"] == {"zpid": "42"}


def test_property_lookup_http_error():
    session = FakeSession(FakeResponse(status_code=404, text="gone"))
    with pytest.raises(PropertyDetailError) as exc:
        _zillow(session).get_property("42")
    assert exc.value.zpid == "42"
    assert exc.value.status_code == 404


def test_sendgrid_posts_html_mail():
    session = FakeSession(FakeResponse(status_code=202))
    client = SendGridClient(api_key="sg", from_email="from@example.com", session=session)
    client.send("to@example.com", "New Ostrich Listings: Austin", "<h1>hi</h1>")

    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert url == "https://api.sendgrid.com/v3/mail/send"
    assert kwargs["headers"]["Authorization"] == "Bearer sg"
    body = kwargs["json"]
    assert body["personalizations"][0]["to"][0]["email"] == "to@example.com"
    assert body["content"] == [{"type": "text/html", "value": "<h1>hi</h1>"}]


def test_sendgrid_rejection_raises():
    session = FakeSession(FakeResponse(status_code=401, text="bad key"))
    client = SendGridClient(api_key="sg", from_email="from@example.com", session=session)
    with pytest.raises(EmailDispatchError) as exc:
        client.send("to@example.com", "s", "b")
    assert exc.value.recipient == "to@example.com"


def test_odd_result_count_does_not_break_search():
    session = FakeSession(FakeResponse(payload={"props": [{"zpid": 1}], "totalResultCount": "about 40"}))
    result = _zillow(session).search_listings(SearchParameters(search_param="Austin, TX"))
    assert result.total_result_count is None
    assert [c.zpid for c in result.candidates] == ["1"]


def test_each_worker_thread_gets_its_own_session():
    client = ZillowClient(api_host="zillow.example.com", api_key="k")
    seen = {}

    def grab(name):
        seen[name] = client._http()
        assert client._http() is seen[name]

    workers = [threading.Thread(target=grab, args=(n,)) for n in ("a", "b")]
    for w in workers:
        w.start()
    for w in workers:
        w.join()

    assert isinstance(seen["a"], requests.Session)
    assert seen["a"] is not seen["b"]


def test_injected_session_is_used_as_is():
    session = FakeSession(FakeResponse(status_code=202))
    client = SendGridClient(api_key="sg", from_email="from@example.com", session=session)
    assert client._http() is session
