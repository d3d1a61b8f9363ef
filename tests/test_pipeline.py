import pytest

from vinylzz import EstimationPipeline
from vinylzz.errors import NormalizerFailure, SearchFailure, StatsFailure
from vinylzz.models import Candidate, MarketStats, RecordMeta, SearchResult
from .fixtures import FakePricingSource


class RewritingNormalizer:
    def __init__(self, **changes):
        self.changes = changes
        self.calls = 0

    async def normalize(self, meta: RecordMeta) -> RecordMeta:
        self.calls += 1
        return RecordMeta(**{**meta.to_dict(), **self.changes})


class BrokenNormalizer:
    async def normalize(self, meta: RecordMeta) -> RecordMeta:
        raise NormalizerFailure("model returned garbage")


def release(id, **kwargs) -> Candidate:
    return Candidate(id=id, type="release", **kwargs)


@pytest.mark.asyncio
async def test_estimate_with_deep_market():
    client = FakePricingSource(
        search_result=SearchResult([release(42, title="Artist A - Title B")], total=1),
        stats=MarketStats(lowest_price=10.00, num_for_sale=8),
    )
    pipeline = EstimationPipeline(client)

    result = await pipeline.estimate(RecordMeta(artist="Artist A", title="Title B"))

    assert result.source == "discogs"
    assert result.lowest_price == 10.00
    assert result.median_price is None
    assert result.estimated_price == 13.00
    assert result.extras["release_id"] == 42
    assert result.extras["match"] == "release"
    assert result.extras["num_for_sale"] == 8
    assert client.stats_lookups == [42]


@pytest.mark.asyncio
async def test_estimate_without_results():
    client = FakePricingSource(search_result=SearchResult([], total=0))
    pipeline = EstimationPipeline(client)

    result = await pipeline.estimate(RecordMeta(artist="Unknown"))

    assert result.lowest_price is None
    assert result.median_price is None
    assert result.estimated_price is None
    assert result.extras["note"] == "no results"
    assert result.extras["search_count"] == 0
    assert result.extras["query"]["artist"] == "Unknown"
    assert client.stats_lookups == []


@pytest.mark.asyncio
async def test_release_is_preferred_over_earlier_candidates():
    client = FakePricingSource(
        search_result=SearchResult(
            [
                Candidate(id=1, type="master"),
                Candidate(id=2, type="artist"),
                release(3),
                release(4),
            ],
            total=4,
        ),
        stats=MarketStats(lowest_price=5.0, num_for_sale=1),
    )

    result = await EstimationPipeline(client).estimate(RecordMeta(title="x"))

    assert result.extras["release_id"] == 3
    assert result.extras["match"] == "release"
    assert client.stats_lookups == [3]


@pytest.mark.asyncio
async def test_first_candidate_when_no_release():
    client = FakePricingSource(
        search_result=SearchResult(
            [Candidate(id=7, type="master"), Candidate(id=8, type="label")],
            total=2,
        ),
        stats=MarketStats(lowest_price=5.0, num_for_sale=1),
    )

    result = await EstimationPipeline(client).estimate(RecordMeta(title="x"))

    assert result.extras["release_id"] == 7
    assert result.extras["match"] == "first"
    assert result.estimated_price == 5.0


@pytest.mark.asyncio
async def test_stats_failure_degrades_to_null_prices():
    client = FakePricingSource(
        search_result=SearchResult([release(42)], total=1),
        stats_error=StatsFailure("502"),
    )

    result = await EstimationPipeline(client).estimate(RecordMeta(artist="A"))

    assert result.lowest_price is None
    assert result.estimated_price is None
    assert result.extras["release_id"] == 42
    assert result.extras["num_for_sale"] is None


@pytest.mark.asyncio
async def test_candidate_without_id_skips_stats():
    client = FakePricingSource(
        search_result=SearchResult([release(None)], total=1),
        stats=MarketStats(lowest_price=99.0, num_for_sale=99),
    )

    result = await EstimationPipeline(client).estimate(RecordMeta(artist="A"))

    assert client.stats_lookups == []
    assert result.lowest_price is None
    assert result.estimated_price is None


@pytest.mark.asyncio
async def test_missing_lowest_price_means_no_estimate():
    client = FakePricingSource(
        search_result=SearchResult([release(42)], total=1),
        stats=MarketStats(lowest_price=None, num_for_sale=12),
    )

    result = await EstimationPipeline(client).estimate(RecordMeta(artist="A"))

    assert result.lowest_price is None
    assert result.estimated_price is None
    assert result.extras["num_for_sale"] == 12


@pytest.mark.asyncio
async def test_search_failure_propagates():
    client = FakePricingSource(search_error=SearchFailure("Discogs search 503", 503))

    with pytest.raises(SearchFailure) as exc_info:
        await EstimationPipeline(client).estimate(RecordMeta(artist="A"))
    assert exc_info.value.status_code == 503
    assert client.stats_lookups == []


@pytest.mark.asyncio
async def test_normalized_fields_are_searched():
    client = FakePricingSource()
    normalizer = RewritingNormalizer(artist="Can", title="Tago Mago")
    meta = RecordMeta(artist="CAN (2)", title="tago mago [reissue]", catno="SPOON 6/7")

    await EstimationPipeline(client, normalizer).estimate(meta)

    assert normalizer.calls == 1
    assert client.searches == [
        RecordMeta(artist="Can", title="Tago Mago", catno="SPOON 6/7")
    ]


@pytest.mark.asyncio
async def test_normalizer_cannot_change_identifiers():
    client = FakePricingSource()
    normalizer = RewritingNormalizer(
        artist="Can", label="Bootleg", catno="XXX", barcode="000"
    )
    meta = RecordMeta(
        artist="CAN", title="Ege Bamyasi", label="United Artists",
        catno="UAS 29414", barcode="5016025611234",
    )

    await EstimationPipeline(client, normalizer).estimate(meta)

    searched = client.searches[0]
    assert searched.artist == "Can"
    assert searched.label == "United Artists"
    assert searched.catno == "UAS 29414"
    assert searched.barcode == "5016025611234"


@pytest.mark.asyncio
async def test_normalizer_failure_searches_original():
    client = FakePricingSource()
    meta = RecordMeta(artist="Artist A", title="Title B")

    result = await EstimationPipeline(client, BrokenNormalizer()).estimate(meta)

    assert client.searches == [meta]
    assert result.extras["note"] == "no results"


@pytest.mark.asyncio
async def test_default_normalizer_passes_through():
    client = FakePricingSource()
    meta = RecordMeta(artist="  artist a ", title="TITLE b")

    await EstimationPipeline(client).estimate(meta)

    assert client.searches == [meta]


class CrashingNormalizer:
    async def normalize(self, meta: RecordMeta) -> RecordMeta:
        raise RuntimeError("boom")


@pytest.mark.asyncio
async def test_unexpected_normalizer_error_searches_original():
    client = FakePricingSource(
        search_result=SearchResult([release(42)], total=1),
        stats=MarketStats(lowest_price=10.0, num_for_sale=8),
    )
    meta = RecordMeta(artist="Artist A", title="Title B")

    result = await EstimationPipeline(client, CrashingNormalizer()).estimate(meta)

    assert client.searches == [meta]
    assert result.estimated_price == 13.0


@pytest.mark.asyncio
async def test_unexpected_stats_error_degrades_to_null_prices():
    client = FakePricingSource(
        search_result=SearchResult([release(42)], total=1),
        stats_error=KeyError("lowest_price"),
    )

    result = await EstimationPipeline(client).estimate(RecordMeta(artist="A"))

    assert result.lowest_price is None
    assert result.estimated_price is None
    assert result.extras["release_id"] == 42
