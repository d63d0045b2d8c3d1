"""
Result combiner - merges partial per-strategy results when no strategy alone
reached its quality threshold.
"""

from typing import List, Mapping, Sequence, Set

from soldcomps.models import Listing
from .strategies import STRATEGY_ORDER, SearchStrategy


MAX_COMBINED_RESULTS = 20


class ResultCombiner:
    """Merge per-strategy listings in priority order"""

    def __init__(self, max_results: int = MAX_COMBINED_RESULTS):
        self.max_results = max_results

    def combine(self, results_by_strategy: Mapping[SearchStrategy, Sequence[Listing]]) -> List[Listing]:
        """
        Combine listings from every strategy that ran.

        Strategies are visited in priority order, so when a URL was found by
        several strategies the most precise strategy's instance is kept.

        Args:
            results_by_strategy: Ranked listings per strategy; strategies
                that failed or were not run may be absent

        Returns:
            At most max_results listings, unique by URL
        """
        seen_urls: Set[str] = set()
        combined: List[Listing] = []

        for strategy in STRATEGY_ORDER:
            for listing in results_by_strategy.get(strategy, ()):
                if len(combined) >= self.max_results:
                    return combined
                if listing.url not in seen_urls:
                    seen_urls.add(listing.url)
                    combined.append(listing)

        return combined
