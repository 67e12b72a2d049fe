# src/ostrich/adapters/zillow_client.py
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

import requests

from ostrich.adapters.config import config
from ostrich.adapters.logging_utils import get_logger
from ostrich.domain.errors import ListingSearchError, OstrichError, PropertyDetailError
from ostrich.domain.listing import (
    ListingSearchResult,
    PropertyDetail,
    SearchParameters,
)

logger = get_logger(__name__)


class ZillowConfigError(OstrichError):
    pass


@dataclass
class ZillowClient:
    """
    RapidAPI Zillow client.

    Endpoints:
      - /propertyExtendedSearch  location + filters -> {"props": [...]}
      - /property                zpid -> detail record

    No retries: a failed search falls back to the "no listings" email and a
    failed detail lookup drops one property, so callers decide what a failure means.
    """

    api_host: str
    api_key: str
    timeout_s: float = 20.0
    home_type: str = "Houses"
    # one Session per worker thread unless a session is injected
    session: requests.Session | None = None
    _local: threading.local = field(default_factory=threading.local, init=False, repr=False)

    def _http(self) -> requests.Session:
        if self.session is not None:
            return self.session
        s = getattr(self._local, "session", None)
        if s is None:
            s = self._local.session = requests.Session()
        return s

    @property
    def base_url(self) -> str:
        return f"https://{self.api_host}"

    def _headers(self) -> dict[str, str]:
        return {
            "X-RapidAPI-Host": self.api_host,
            "X-RapidAPI-Key": self.api_key,
        }

    def _get(self, path: str, params: dict[str, Any]) -> requests.Response:
        return self._http().get(
            self.base_url + path,
            headers=self._headers(),
            params=params,
            timeout=self.timeout_s,
        )

    # --------- ListingSource API ---------

    def search_listings(self, params: SearchParameters) -> ListingSearchResult:
        query = params.to_query(home_type=self.home_type)
        logger.info(
            "zillow_search_issued",
            extra={"context": {"location": params.search_param, "query": query}},
        )

        try:
            resp = self._get("/propertyExtendedSearch", query)
        except requests.RequestException as exc:
            raise ListingSearchError(
                f"listing search request failed: {exc}",
                location=params.search_param,
            ) from exc

        if resp.status_code >= 400:
            raise ListingSearchError(
                f"listing search HTTP {resp.status_code}: {resp.text[:300]}",
                location=params.search_param,
                url=resp.url,
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise ListingSearchError(
                "search parameters did not result in a valid response",
                location=params.search_param,
                url=resp.url,
                status_code=resp.status_code,
            ) from exc

        props = data.get("props") if isinstance(data, dict) else None
        if not isinstance(props, list):
            raise ListingSearchError(
                "search parameters did not result in a valid response",
                location=params.search_param,
                url=resp.url,
                status_code=resp.status_code,
            )

        result = ListingSearchResult.from_api(data, props)
        logger.info(
            "zillow_search_complete",
            extra={"context": {"location": params.search_param, "count": len(result.candidates)}},
        )
        return result

    def get_property(self, zpid: str) -> PropertyDetail:
        logger.info("zillow_property_fetch", extra={"context": {"zpid": zpid}})

        try:
            resp = self._get("/property", {"zpid": zpid})
        except requests.RequestException as exc:
            raise PropertyDetailError(f"property request failed: {exc}", zpid=zpid) from exc

        if resp.status_code >= 400:
            raise PropertyDetailError(
                f"property HTTP {resp.status_code}: {resp.text[:300]}",
                zpid=zpid,
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise PropertyDetailError(
                "property did not result in a valid response", zpid=zpid
            ) from exc

        if not isinstance(data, dict):
            raise PropertyDetailError("property did not result in a valid response", zpid=zpid)

        return PropertyDetail.from_api(data)


def make_zillow_client(session: requests.Session | None = None) -> ZillowClient:
    if not config.ZILLOW_API_KEY:
        raise ZillowConfigError(
            "Missing OSTRICH_ZILLOW_API_KEY. Set it in your environment before calling Zillow."
        )
    return ZillowClient(
        api_host=config.ZILLOW_API_HOST,
        api_key=config.ZILLOW_API_KEY,
        timeout_s=config.ZILLOW_TIMEOUT_S,
        home_type=config.ZILLOW_HOME_TYPE,
        session=session,
    )
