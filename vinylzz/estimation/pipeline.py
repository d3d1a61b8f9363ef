import logging
from dataclasses import replace
from typing import Protocol

from vinylzz.models import (
    CandidateMatch,
    EstimationResult,
    MarketStats,
    RecordMeta,
    SearchResult,
)
from vinylzz.estimation.normalizer import PassthroughNormalizer
from vinylzz.estimation.pricing import estimate_price, select_candidate


logger = logging.getLogger(__name__)


class PricingSource(Protocol):
    SOURCE: str

    async def search(self, meta: RecordMeta) -> SearchResult: ...

    async def release_stats(self, release_id: int | None) -> MarketStats | None: ...


class Normalizer(Protocol):
    async def normalize(self, meta: RecordMeta) -> RecordMeta: ...


class EstimationPipeline:
    """Turns record metadata into a price estimate.

    The steps run strictly in order: normalize, search, pick a candidate,
    fetch marketplace stats, derive the price. Only a failed search fails
    the estimate. A failed normalizer falls back to the original metadata
    and failed stats fall back to null prices.

    Examples:

        >>> async with DiscogsClient(token) as client:
        ...     pipeline = EstimationPipeline(client)
        ...     result = await pipeline.estimate(RecordMeta(artist="Can", title="Tago Mago"))
    """

    def __init__(
        self,
        client: PricingSource,
        normalizer: Normalizer | None = None,
    ) -> None:
        self.client = client
        self.normalizer = normalizer or PassthroughNormalizer()

    async def estimate(self, meta: RecordMeta) -> EstimationResult:
        clean = await self.normalize(meta)

        # A failed search propagates: without it the estimate is meaningless
        search = await self.client.search(clean)

        match = select_candidate(search.candidates)
        if match is None:
            logger.info(f"No candidates for {clean.to_dict()}")
            return EstimationResult(
                source=self.client.SOURCE,
                extras={
                    "note": "no results",
                    "query": clean.to_dict(),
                    "search_count": search.total,
                },
            )

        stats = await self.fetch_stats(match)
        lowest_price = stats.lowest_price if stats else None
        num_for_sale = stats.num_for_sale if stats else None

        candidate = match.candidate
        return EstimationResult(
            source=self.client.SOURCE,
            lowest_price=lowest_price,
            median_price=None,
            estimated_price=estimate_price(lowest_price, num_for_sale),
            extras={
                "release_id": candidate.id,
                "match": match.rule.value,
                "title": candidate.title,
                "country": candidate.country,
                "year": candidate.year,
                "label": candidate.label,
                "catno": candidate.catno,
                "community_have": candidate.community_have,
                "community_want": candidate.community_want,
                "num_for_sale": num_for_sale,
            },
        )

    async def normalize(self, meta: RecordMeta) -> RecordMeta:
        try:
            clean = await self.normalizer.normalize(meta)
        except Exception as exc:
            logger.warning(
                f"Normalizer failed, using original metadata: {exc!r}", exc_info=exc
            )
            return meta
        # Label, catalog number and barcode are identifiers, never rewritten
        return replace(meta, artist=clean.artist, title=clean.title)

    async def fetch_stats(self, match: CandidateMatch) -> MarketStats | None:
        try:
            return await self.client.release_stats(match.candidate.id)
        except Exception as exc:
            logger.warning(f"Continuing without marketplace stats: {exc!r}")
            return None
