"""Discogs client: catalog search and marketplace statistics.

The client waits ``request_delay`` milliseconds before every call to stay
under the Discogs rate limit. The delay is per call, not shared between
clients, so N concurrent pipelines can make up to N calls per delay period.
"""

import asyncio
import logging
from typing import Any

import httpx

from vinylzz.errors import SearchFailure, StatsFailure
from vinylzz.models import Candidate, MarketStats, RecordMeta, SearchResult


logger = logging.getLogger(__name__)

DISCOGS_BASE_URL = "https://api.discogs.com"
DEFAULT_USER_AGENT = "vinylzz/1.0 +https://example.com"

# Search parameter name for each metadata field. Label is not a search input.
SEARCH_FIELDS = {
    "artist": "artist",
    "title": "release_title",
    "catno": "catno",
    "barcode": "barcode",
}


class DiscogsClient:
    SOURCE = "discogs"

    def __init__(
        self,
        token: str | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        base_url: str = DISCOGS_BASE_URL,
        request_delay: int = 150,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.token = token
        self.user_agent = user_agent
        self.base_url = base_url.rstrip("/")
        self.request_delay = request_delay
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def headers(self) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        if self.token:
            headers["Authorization"] = f"Discogs token={self.token}"
        return headers

    @staticmethod
    def search_params(meta: RecordMeta) -> dict[str, str]:
        params = {}
        for field_name, param in SEARCH_FIELDS.items():
            value = getattr(meta, field_name)
            if value:
                params[param] = value
        return params

    async def _pause(self) -> None:
        if self.request_delay > 0:
            await asyncio.sleep(self.request_delay / 1000)

    async def search(self, meta: RecordMeta) -> SearchResult:
        """Fuzzy search the Discogs database.

        Only non-empty artist, title, catalog number and barcode are sent.
        When none of them is present no request is made and the result is
        empty.

        Raises:
            SearchFailure: Discogs answered with a non-2xx status or a body
                that is not usable, or could not be reached.
        """
        params = self.search_params(meta)
        if not params:
            logger.debug("Nothing to search for, skipping Discogs search")
            return SearchResult()

        await self._pause()
        try:
            resp = await self.http_client.get(
                f"{self.base_url}/database/search",
                params=params,
                headers=self.headers,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise SearchFailure(f"Discogs search failed: {exc}") from exc

        if resp.is_error:
            raise SearchFailure(
                f"Discogs search {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            )

        try:
            data: dict[str, Any] = resp.json()
            candidates = [Candidate.from_dict(item) for item in data.get("results") or []]
            total = (data.get("pagination") or {}).get("items") or 0
        except (ValueError, AttributeError) as exc:
            raise SearchFailure(
                f"Discogs search reply is not usable: {exc}",
                status_code=resp.status_code,
                body=resp.text,
            ) from exc
        logger.debug(f"Discogs search {params} returned {len(candidates)} of {total}")
        return SearchResult(candidates=candidates, total=total)

    async def release_stats(self, release_id: int | None) -> MarketStats | None:
        """Fetch marketplace statistics for a release.

        Returns None when there is no release id to look up.

        Raises:
            StatsFailure: Discogs answered with a non-2xx status or a body
                that is not usable, or could not be reached.
        """
        if not release_id:
            return None

        await self._pause()
        try:
            resp = await self.http_client.get(
                f"{self.base_url}/marketplace/stats/{release_id}",
                headers=self.headers,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise StatsFailure(f"Discogs stats for {release_id} failed: {exc}") from exc

        if resp.is_error:
            raise StatsFailure(f"Discogs stats for {release_id}: {resp.status_code}")

        try:
            data: dict[str, Any] = resp.json()
            lowest = data.get("lowest_price") or {}
            return MarketStats(
                lowest_price=lowest.get("value"),
                num_for_sale=data.get("num_for_sale"),
            )
        except (ValueError, AttributeError) as exc:
            raise StatsFailure(
                f"Discogs stats for {release_id} are not usable: {exc}"
            ) from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> "DiscogsClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
