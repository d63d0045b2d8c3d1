"""Multi-strategy search: query building, strategy orchestration and result combination"""

from .strategies import (
    STRATEGY_ORDER,
    STRATEGY_TABLE,
    SearchStrategy,
    StrategyDescriptor,
    get_descriptor,
    resolve_thresholds,
)
from .query_builder import QueryBuilder, build_query
from .result_combiner import ResultCombiner
from .strategy_runner import CompletedItemsSearcher, SearchProgress, StrategyRunner

__all__ = [
    "STRATEGY_ORDER",
    "STRATEGY_TABLE",
    "SearchStrategy",
    "StrategyDescriptor",
    "get_descriptor",
    "resolve_thresholds",
    "QueryBuilder",
    "build_query",
    "ResultCombiner",
    "CompletedItemsSearcher",
    "SearchProgress",
    "StrategyRunner",
]
