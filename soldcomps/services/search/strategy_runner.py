"""
Strategy runner - tries search strategies from most precise to broadest and
stops at the first one whose results reach its quality threshold.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional, Protocol, Tuple

from soldcomps.error_handling import ErrorHandler, MarketplaceTimeoutError, StrategyFailure
from soldcomps.filtering import RelevanceScorer
from soldcomps.models import (
    COMBINED_SEARCH,
    NO_RESULTS,
    Listing,
    SearchOutcome,
    SearchRequest,
    SearchResult,
    StrategyQuery,
)
from .query_builder import QueryBuilder
from .result_combiner import ResultCombiner
from .strategies import (
    STRATEGY_ORDER,
    SearchStrategy,
    StrategyDescriptor,
    get_descriptor,
    resolve_thresholds,
)


logger = logging.getLogger(__name__)

# Below this many listings an exhausted search tries the combined result
COMBINE_BELOW = 3


class CompletedItemsSearcher(Protocol):
    """Anything that can run one sold-listings search."""

    async def search_completed_items(
        self,
        query: str,
        limit: int,
        descriptor: StrategyDescriptor,
        timeout: Optional[float] = None,
        now: Optional[datetime] = None
    ) -> List[Listing]:
        ...


@dataclass(frozen=True)
class SearchProgress:
    """Loop state carried from one strategy to the next.

    Each call to record() returns a new value; nothing is shared between
    searches.
    """
    results: Mapping[SearchStrategy, Tuple[Listing, ...]] = field(default_factory=dict)
    tokens: Mapping[SearchStrategy, Tuple[str, ...]] = field(default_factory=dict)
    attempted: Tuple[SearchStrategy, ...] = ()
    failed: Tuple[SearchStrategy, ...] = ()
    best_strategy: Optional[SearchStrategy] = None

    @property
    def best_listings(self) -> Tuple[Listing, ...]:
        if self.best_strategy is None:
            return ()
        return self.results[self.best_strategy]

    @property
    def last_tokens(self) -> Tuple[str, ...]:
        return self.tokens[self.attempted[-1]] if self.attempted else ()

    def record(
        self,
        strategy: SearchStrategy,
        query: StrategyQuery,
        listings: Tuple[Listing, ...],
        failed: bool = False
    ) -> 'SearchProgress':
        results = dict(self.results)
        if not failed:
            results[strategy] = listings

        best = self.best_strategy
        if len(listings) > len(self.best_listings):
            best = strategy

        return replace(
            self,
            results=results,
            tokens={**self.tokens, strategy: query.tokens},
            attempted=self.attempted + (strategy,),
            failed=self.failed + ((strategy,) if failed else ()),
            best_strategy=best,
        )


class StrategyRunner:
    """
    Orchestrate query building, marketplace search and ranking per strategy.

    Strategies run strictly one after another. A failed marketplace call
    counts as zero results and the loop moves on.
    """

    def __init__(
        self,
        client: CompletedItemsSearcher,
        query_builder: Optional[QueryBuilder] = None,
        combiner: Optional[ResultCombiner] = None,
        thresholds: Optional[Mapping[str, int]] = None,
        timeout: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.client = client
        self.query_builder = query_builder or QueryBuilder()
        self.combiner = combiner or ResultCombiner()
        self.thresholds: Dict[SearchStrategy, int] = resolve_thresholds(thresholds)
        self.timeout = timeout
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def run(self, request: SearchRequest) -> SearchResult:
        """
        Run strategies in priority order until one reaches its threshold.

        Args:
            request: Validated caller hints

        Returns:
            SearchResult with the winning strategy, the best partial result,
            the combined result or no results
        """
        now = self.clock()
        scorer = RelevanceScorer(now=now)
        error_handler = ErrorHandler()
        progress = SearchProgress()

        for strategy in STRATEGY_ORDER:
            descriptor = get_descriptor(strategy)
            query = self.query_builder.build(request, strategy)

            try:
                raw = await self._search(query, request, descriptor, now)
            except StrategyFailure as e:
                error_handler.record_strategy_failure(strategy.value, e, query=query.query)
                progress = progress.record(strategy, query, (), failed=True)
                continue

            listings = tuple(scorer.rank(raw, query.tokens, strict=descriptor.brand_anchored))
            progress = progress.record(strategy, query, listings)

            threshold = self.thresholds[strategy]
            logger.info(
                f"Strategy {strategy.value}: {len(listings)} results "
                f"(threshold {threshold}) for query: '{query.query}'"
            )

            if len(listings) >= threshold:
                return self._result(progress, strategy, SearchOutcome.SUCCEEDED)

        return self._finish(progress)

    async def _search(
        self,
        query: StrategyQuery,
        request: SearchRequest,
        descriptor: StrategyDescriptor,
        now: datetime
    ) -> List[Listing]:
        call = self.client.search_completed_items(
            query.query,
            request.page_size,
            descriptor,
            timeout=self.timeout,
            now=now,
        )
        if self.timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError:
            raise MarketplaceTimeoutError(f"No response within {self.timeout:.1f}s", query=query.query)

    def _finish(self, progress: SearchProgress) -> SearchResult:
        best = progress.best_listings

        if len(best) < COMBINE_BELOW:
            combined = self.combiner.combine(progress.results)
            if len(combined) > len(best):
                logger.info(f"No strategy reached its threshold, combined {len(combined)} results")
                return SearchResult(
                    listings=combined,
                    strategy=COMBINED_SEARCH,
                    keywords=self._combined_tokens(progress),
                    outcome=SearchOutcome.COMBINED,
                    attempted=[s.value for s in progress.attempted],
                    failed=[s.value for s in progress.failed],
                )

        if not best:
            logger.warning("No strategy found any sold listings")
            return SearchResult(
                listings=[],
                strategy=NO_RESULTS,
                keywords=list(progress.last_tokens),
                outcome=SearchOutcome.NO_RESULTS,
                attempted=[s.value for s in progress.attempted],
                failed=[s.value for s in progress.failed],
            )

        return self._result(progress, progress.best_strategy, SearchOutcome.EXHAUSTED)

    def _result(
        self,
        progress: SearchProgress,
        strategy: SearchStrategy,
        outcome: SearchOutcome
    ) -> SearchResult:
        return SearchResult(
            listings=list(progress.results[strategy]),
            strategy=strategy.value,
            keywords=list(progress.tokens[strategy]),
            outcome=outcome,
            attempted=[s.value for s in progress.attempted],
            failed=[s.value for s in progress.failed],
        )

    def _combined_tokens(self, progress: SearchProgress) -> List[str]:
        seen = set()
        tokens: List[str] = []
        for strategy in STRATEGY_ORDER:
            if not progress.results.get(strategy):
                continue
            for token in progress.tokens[strategy]:
                if token.lower() not in seen:
                    seen.add(token.lower())
                    tokens.append(token)
        return tokens
