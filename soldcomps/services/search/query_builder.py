"""
Query builder - turns product hints into a marketplace query per strategy.
"""

from typing import List

from soldcomps.models import SearchRequest, StrategyQuery
from .strategies import STRATEGY_ORDER, SearchStrategy, get_descriptor


class QueryBuilder:
    """
    Builds the query string and token list for a strategy.

    Pure and deterministic: the same request and strategy always produce the
    same query. No network access and no state.
    """

    def build(self, request: SearchRequest, strategy: SearchStrategy) -> StrategyQuery:
        """
        Build the query for one strategy.

        Args:
            request: Caller hints
            strategy: Strategy whose rule should be applied

        Returns:
            StrategyQuery with the space-joined query and the tokens used
        """
        tokens = tuple(get_descriptor(strategy).rule(request))
        return StrategyQuery(query=" ".join(tokens), tokens=tokens)

    def build_all(self, request: SearchRequest) -> List[StrategyQuery]:
        """Queries for every strategy, in priority order."""
        return [self.build(request, strategy) for strategy in STRATEGY_ORDER]


def build_query(request: SearchRequest, strategy: SearchStrategy) -> StrategyQuery:
    """
    Convenience function to build a single strategy query.

    Args:
        request: Caller hints
        strategy: Strategy to build for

    Returns:
        StrategyQuery for the strategy
    """
    return QueryBuilder().build(request, strategy)
