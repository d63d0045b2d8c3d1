"""
Property-based tests for the strategy runner.

These tests drive the runner with an in-memory marketplace so every
fallback path (success, exhaustion, combination, no results and failed
calls) can be checked without network access.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given, settings, strategies as st

from soldcomps.error_handling import (
    ConfigurationError,
    MalformedResponseError,
    MarketplaceRequestError,
    SearchValidationError,
)
from soldcomps.models import (
    COMBINED_SEARCH,
    NO_RESULTS,
    Listing,
    SearchOutcome,
    SearchRequest,
    StrategyQuery,
)
from soldcomps.services.search import (
    STRATEGY_ORDER,
    SearchProgress,
    SearchStrategy,
    StrategyRunner,
    get_descriptor,
)


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
TITLE = "Sony A7III mirrorless camera body"


def make_listings(strategy, count, title=TITLE):
    return [
        Listing(
            title=title,
            price=1000.0 + i,
            currency="USD",
            condition="Used",
            end_date=NOW - timedelta(days=i),
            url=f"https://www.ebay.com/itm/{strategy}-{i}",
        )
        for i in range(count)
    ]


class FakeMarketplace:
    """Returns canned listings per strategy and records every call"""

    def __init__(self, responses=None, delay=None):
        self.responses = responses or {}
        self.delay = delay or {}
        self.calls = []

    async def search_completed_items(self, query, limit, descriptor, timeout=None, now=None):
        self.calls.append((descriptor.name, query, limit))
        if descriptor.name in self.delay:
            await asyncio.sleep(self.delay[descriptor.name])
        response = self.responses.get(descriptor.name, [])
        if isinstance(response, Exception):
            raise response
        return list(response)


def sony_request(**overrides):
    hints = dict(keywords=["camera", "mirrorless", "body"], brand_name="Sony", model_number="A7III")
    hints.update(overrides)
    return SearchRequest(**hints)


def make_runner(marketplace, **kwargs):
    return StrategyRunner(marketplace, clock=lambda: NOW, **kwargs)


def test_empty_keywords_rejected_before_any_call():
    """
    **Feature: sold-comps, Property 11: No search without keywords**
    """
    with pytest.raises(SearchValidationError, match="No search keywords provided"):
        SearchRequest(keywords=["", "   "], brand_name="Sony")


@pytest.mark.asyncio
async def test_first_strategy_meeting_threshold_wins():
    marketplace = FakeMarketplace({"exact_brand_model": make_listings("exact", 2)})

    result = await make_runner(marketplace).run(sony_request())

    assert result.strategy == "exact_brand_model"
    assert result.outcome == SearchOutcome.SUCCEEDED
    assert result.keywords == ["Sony", "A7III", "camera"]
    assert len(result.listings) == 2
    assert [name for name, _, _ in marketplace.calls] == ["exact_brand_model"]


@pytest.mark.asyncio
async def test_below_threshold_proceeds_to_next_strategy():
    marketplace = FakeMarketplace({
        "brand_with_keywords": make_listings("brand", 2),
        "model_with_keywords": make_listings("model", 3),
    })

    result = await make_runner(marketplace).run(sony_request())

    assert result.strategy == "model_with_keywords"
    assert result.attempted == ["exact_brand_model", "brand_with_keywords", "model_with_keywords"]
    assert {l.url for l in result.listings} == {l.url for l in make_listings("model", 3)}


@pytest.mark.asyncio
async def test_failed_strategy_counts_as_empty_and_search_continues():
    marketplace = FakeMarketplace({
        "exact_brand_model": MarketplaceRequestError("eBay API error: 500", status=500),
        "brand_with_keywords": MalformedResponseError("Response is missing findCompletedItemsResponse"),
        "model_with_keywords": make_listings("model", 3),
    })

    result = await make_runner(marketplace).run(sony_request())

    assert result.strategy == "model_with_keywords"
    assert result.failed == ["exact_brand_model", "brand_with_keywords"]


@pytest.mark.asyncio
async def test_timeout_counts_as_strategy_failure():
    marketplace = FakeMarketplace(
        {"exact_brand_model": make_listings("exact", 5), "brand_with_keywords": make_listings("brand", 3)},
        delay={"exact_brand_model": 5},
    )

    result = await make_runner(marketplace, timeout=0.05).run(sony_request())

    assert result.failed == ["exact_brand_model"]
    assert result.strategy == "brand_with_keywords"


@pytest.mark.asyncio
async def test_brand_anchored_strategies_drop_weak_listings():
    weak = make_listings("exact", 4, title="Lens cap")
    marketplace = FakeMarketplace({
        "exact_brand_model": weak,
        "keywords_only": make_listings("kw", 5),
    })

    result = await make_runner(marketplace).run(sony_request())

    assert result.strategy == "keywords_only"


@pytest.mark.asyncio
async def test_partial_results_are_combined():
    marketplace = FakeMarketplace({
        "keywords_only": make_listings("kw", 1),
        "partial_match": make_listings("partial", 1),
        "fuzzy_search": make_listings("kw", 1),
    })
    request = SearchRequest(keywords=["camera", "mirrorless", "body"])

    result = await make_runner(marketplace).run(request)

    assert result.strategy == COMBINED_SEARCH
    assert result.outcome == SearchOutcome.COMBINED
    assert [l.url for l in result.listings] == [
        "https://www.ebay.com/itm/kw-0",
        "https://www.ebay.com/itm/partial-0",
    ]
    assert result.keywords == ["camera", "mirrorless", "body"]


@pytest.mark.asyncio
async def test_best_partial_result_when_combination_does_not_grow():
    marketplace = FakeMarketplace({"keywords_only": make_listings("kw", 4)})

    result = await make_runner(marketplace).run(SearchRequest(keywords=["camera", "mirrorless"]))

    assert result.strategy == "keywords_only"
    assert result.outcome == SearchOutcome.EXHAUSTED
    assert len(result.listings) == 4
    assert len(result.attempted) == len(STRATEGY_ORDER)


@pytest.mark.asyncio
async def test_no_results_reports_last_attempted_keywords():
    marketplace = FakeMarketplace()

    result = await make_runner(marketplace).run(sony_request())

    assert result.strategy == NO_RESULTS
    assert result.outcome == SearchOutcome.NO_RESULTS
    assert result.listings == []
    # fuzzy_search is last: brand, no synonyms for sony, first keyword
    assert result.keywords == ["Sony", "camera"]
    assert len(marketplace.calls) == len(STRATEGY_ORDER)


@pytest.mark.asyncio
async def test_page_size_is_capped_per_call():
    marketplace = FakeMarketplace()

    await make_runner(marketplace).run(sony_request(limit=250))

    assert {limit for _, _, limit in marketplace.calls} == {100}


@pytest.mark.asyncio
async def test_threshold_overrides():
    marketplace = FakeMarketplace({"keywords_only": make_listings("kw", 1)})
    runner = make_runner(marketplace, thresholds={"keywords_only": 1})

    result = await runner.run(SearchRequest(keywords=["camera"]))

    assert result.strategy == "keywords_only"
    assert result.outcome == SearchOutcome.SUCCEEDED


def test_unknown_threshold_override_rejected():
    with pytest.raises(ConfigurationError):
        make_runner(FakeMarketplace(), thresholds={"not_a_strategy": 2})


@pytest.mark.parametrize("value", [0, -2, 1.5, "3", True])
def test_non_positive_threshold_override_rejected(value):
    with pytest.raises(ConfigurationError, match="must be a positive integer"):
        make_runner(FakeMarketplace(), thresholds={"keywords_only": value})


def test_progress_record_returns_new_value():
    progress = SearchProgress()
    query = StrategyQuery(query="camera", tokens=("camera",))
    listings = tuple(make_listings("kw", 2))

    updated = progress.record(SearchStrategy.KEYWORDS_ONLY, query, listings)
    failed = updated.record(SearchStrategy.CATEGORY_SEARCH, query, (), failed=True)

    assert progress.results == {} and progress.attempted == ()
    assert updated.best_strategy == SearchStrategy.KEYWORDS_ONLY
    assert updated.best_listings == listings
    assert SearchStrategy.CATEGORY_SEARCH not in failed.results
    assert failed.failed == (SearchStrategy.CATEGORY_SEARCH,)
    assert failed.last_tokens == ("camera",)


counts = st.fixed_dictionaries({
    strategy.value: st.integers(min_value=0, max_value=10) for strategy in STRATEGY_ORDER
})


@given(result_counts=counts)
@settings(max_examples=100, deadline=None)
def test_runner_outcome_matches_thresholds(result_counts):
    """
    **Feature: sold-comps, Property 12: Priority-ordered short circuit**

    For any per-strategy result counts, the runner returns the first strategy
    whose count reaches its threshold and never calls a later strategy.
    Otherwise it returns at most 20 listings with unique URLs.
    """
    marketplace = FakeMarketplace({
        name: make_listings(name, count) for name, count in result_counts.items()
    })

    result = asyncio.run(make_runner(marketplace).run(sony_request()))

    winners = [
        s for s in STRATEGY_ORDER if result_counts[s.value] >= get_descriptor(s).threshold
    ]
    if winners:
        first = winners[0]
        assert result.strategy == first.value
        assert result.outcome == SearchOutcome.SUCCEEDED
        assert result.attempted == [s.value for s in STRATEGY_ORDER[:STRATEGY_ORDER.index(first) + 1]]
    else:
        assert result.outcome in (SearchOutcome.EXHAUSTED, SearchOutcome.COMBINED, SearchOutcome.NO_RESULTS)
        assert len(result.attempted) == len(STRATEGY_ORDER)
        assert len(result.listings) <= 20
        assert len({l.url for l in result.listings}) == len(result.listings)
        assert (result.strategy == NO_RESULTS) == (sum(result_counts.values()) == 0)


@given(result_counts=counts)
@settings(max_examples=50, deadline=None)
def test_runner_is_idempotent(result_counts):
    """
    **Feature: sold-comps, Property 13: Idempotent search**

    Running the same request twice against an unchanged marketplace yields
    an identical result.
    """
    marketplace = FakeMarketplace({
        name: make_listings(name, count) for name, count in result_counts.items()
    })
    runner = make_runner(marketplace)

    first = asyncio.run(runner.run(sony_request()))
    second = asyncio.run(runner.run(sony_request()))

    assert first == second
    assert [l.url for l in first.listings] == [l.url for l in second.listings]
