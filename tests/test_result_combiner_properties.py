"""
Property-based tests for combining partial strategy results.
"""

from hypothesis import given, settings, strategies as st

from soldcomps.models import Listing
from soldcomps.services.search import STRATEGY_ORDER, ResultCombiner
from soldcomps.services.search.result_combiner import MAX_COMBINED_RESULTS


def make_listing(item_id, title="Sony A7III"):
    return Listing(
        title=title,
        price=500.0,
        currency="USD",
        condition="Used",
        end_date=None,
        url=f"https://www.ebay.com/itm/{item_id}",
    )


# Small id space so strategies overlap often
item_ids = st.integers(min_value=1, max_value=40)
per_strategy = st.lists(item_ids, max_size=15, unique=True).map(
    lambda ids: [make_listing(i) for i in ids]
)
results_maps = st.dictionaries(st.sampled_from(STRATEGY_ORDER), per_strategy)


@given(results=results_maps)
@settings(max_examples=100)
def test_combined_results_are_unique_and_capped(results):
    """
    **Feature: sold-comps, Property 14: Combination bounds**

    For any per-strategy results, the combination has unique URLs, holds at
    most 20 listings, and only contains listings some strategy returned.
    """
    combined = ResultCombiner().combine(results)
    urls = [l.url for l in combined]
    available = {l.url for listings in results.values() for l in listings}

    assert len(urls) == len(set(urls))
    assert len(combined) <= MAX_COMBINED_RESULTS
    assert set(urls) <= available
    assert len(combined) == min(len(available), MAX_COMBINED_RESULTS)


@given(results=results_maps)
@settings(max_examples=100)
def test_combination_follows_strategy_priority(results):
    """
    **Feature: sold-comps, Property 15: Priority order**

    The combination equals the strategies' listings concatenated in priority
    order with later duplicates removed.
    """
    expected = []
    seen = set()
    for strategy in STRATEGY_ORDER:
        for listing in results.get(strategy, []):
            if listing.url not in seen:
                seen.add(listing.url)
                expected.append(listing.url)

    combined = ResultCombiner().combine(results)

    assert [l.url for l in combined] == expected[:MAX_COMBINED_RESULTS]


def test_precise_strategy_instance_is_kept():
    precise = make_listing(7, title="Sony A7III body")
    broad = make_listing(7, title="camera")
    results = {STRATEGY_ORDER[-1]: [broad], STRATEGY_ORDER[0]: [precise]}

    combined = ResultCombiner().combine(results)

    assert len(combined) == 1
    assert combined[0].title == "Sony A7III body"


def test_custom_cap():
    results = {STRATEGY_ORDER[0]: [make_listing(i) for i in range(10)]}
    assert len(ResultCombiner(max_results=3).combine(results)) == 3
    assert ResultCombiner().combine({}) == []
