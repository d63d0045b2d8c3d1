"""
Search strategy table.

Each strategy is an Enum member mapped to a single descriptor holding its
query rule, quality threshold, sale window and optional price ceiling.
Strategies are tried in the order they are declared.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional

from soldcomps.error_handling.errors import ConfigurationError
from soldcomps.models import SearchRequest


class SearchStrategy(str, Enum):
    """Search formulations, from most precise to broadest."""
    EXACT_BRAND_MODEL = "exact_brand_model"
    BRAND_WITH_KEYWORDS = "brand_with_keywords"
    MODEL_WITH_KEYWORDS = "model_with_keywords"
    KEYWORDS_ONLY = "keywords_only"
    CATEGORY_SEARCH = "category_search"
    PARTIAL_MATCH = "partial_match"
    FUZZY_SEARCH = "fuzzy_search"


CATEGORY_TERMS = frozenset({
    'phone', 'laptop', 'tablet', 'gaming', 'console', 'camera', 'headphones',
})

BRAND_SYNONYMS = {
    'apple': ('iphone', 'ipad'),
    'samsung': ('galaxy',),
}

DEFAULT_WINDOW_DAYS = 90
WIDE_WINDOW_DAYS = 180
BRAND_PRICE_CEILING = 10000.00

QueryRule = Callable[[SearchRequest], List[str]]


def _present(*values: Optional[str]) -> List[str]:
    return [value for value in values if value]


def exact_brand_model(request: SearchRequest) -> List[str]:
    return _present(request.brand_name, request.model_number, request.keywords[0])


def brand_with_keywords(request: SearchRequest) -> List[str]:
    # Model left out so variants of the same line still match
    return _present(request.brand_name) + request.keywords[:2]


def model_with_keywords(request: SearchRequest) -> List[str]:
    return _present(request.model_number) + request.keywords[:2]


def keywords_only(request: SearchRequest) -> List[str]:
    return request.keywords[:3]


def category_search(request: SearchRequest) -> List[str]:
    category_terms = [kw for kw in request.keywords if kw.lower() in CATEGORY_TERMS]
    if not category_terms:
        return request.keywords[:2]
    return _present(request.brand_name) + category_terms


def partial_match(request: SearchRequest) -> List[str]:
    return request.keywords[:1]


def fuzzy_search(request: SearchRequest) -> List[str]:
    terms: List[str] = []
    if request.brand_name:
        terms.append(request.brand_name)
        terms.extend(BRAND_SYNONYMS.get(request.brand_name.lower(), ()))
    return terms + request.keywords[:1]


@dataclass(frozen=True)
class StrategyDescriptor:
    """Everything the runner and client need to know about one strategy.

    Attributes:
        strategy: The strategy this row describes
        rule: Builds the query tokens from the request hints
        threshold: Minimum listing count accepted without falling back
        window_days: How far back sold listings are searched
        max_price: Price ceiling filter, None for no ceiling
        brand_anchored: Whether low-relevance listings are dropped outright
    """
    strategy: SearchStrategy
    rule: QueryRule
    threshold: int
    window_days: int = DEFAULT_WINDOW_DAYS
    max_price: Optional[float] = None
    brand_anchored: bool = False

    @property
    def name(self) -> str:
        return self.strategy.value


# Thresholds are empirical: precise strategies accept fewer listings.
STRATEGY_TABLE: Dict[SearchStrategy, StrategyDescriptor] = {
    SearchStrategy.EXACT_BRAND_MODEL: StrategyDescriptor(
        SearchStrategy.EXACT_BRAND_MODEL, exact_brand_model, threshold=2,
        max_price=BRAND_PRICE_CEILING, brand_anchored=True,
    ),
    SearchStrategy.BRAND_WITH_KEYWORDS: StrategyDescriptor(
        SearchStrategy.BRAND_WITH_KEYWORDS, brand_with_keywords, threshold=3,
        max_price=BRAND_PRICE_CEILING, brand_anchored=True,
    ),
    SearchStrategy.MODEL_WITH_KEYWORDS: StrategyDescriptor(
        SearchStrategy.MODEL_WITH_KEYWORDS, model_with_keywords, threshold=3,
    ),
    SearchStrategy.KEYWORDS_ONLY: StrategyDescriptor(
        SearchStrategy.KEYWORDS_ONLY, keywords_only, threshold=5,
    ),
    SearchStrategy.CATEGORY_SEARCH: StrategyDescriptor(
        SearchStrategy.CATEGORY_SEARCH, category_search, threshold=4,
    ),
    SearchStrategy.PARTIAL_MATCH: StrategyDescriptor(
        SearchStrategy.PARTIAL_MATCH, partial_match, threshold=8,
        window_days=WIDE_WINDOW_DAYS,
    ),
    SearchStrategy.FUZZY_SEARCH: StrategyDescriptor(
        SearchStrategy.FUZZY_SEARCH, fuzzy_search, threshold=6,
        window_days=WIDE_WINDOW_DAYS,
    ),
}

_missing = set(SearchStrategy) - set(STRATEGY_TABLE)
if _missing:
    raise RuntimeError(f"Strategies without a descriptor: {sorted(s.value for s in _missing)}")

STRATEGY_ORDER: List[SearchStrategy] = list(SearchStrategy)


def get_descriptor(strategy: SearchStrategy) -> StrategyDescriptor:
    return STRATEGY_TABLE[strategy]


def resolve_thresholds(overrides: Optional[Mapping[str, int]] = None) -> Dict[SearchStrategy, int]:
    """Quality threshold per strategy, with optional overrides by name.

    Args:
        overrides: Strategy name to threshold, e.g. from STRATEGY_THRESHOLDS

    Returns:
        Threshold for every strategy

    Raises:
        ConfigurationError: If an override names an unknown strategy or is
            not a positive integer
    """
    thresholds = {strategy: STRATEGY_TABLE[strategy].threshold for strategy in STRATEGY_ORDER}
    for name, value in (overrides or {}).items():
        try:
            strategy = SearchStrategy(name)
        except ValueError:
            raise ConfigurationError(f"Unknown strategy in threshold overrides: '{name}'")
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigurationError(f"Threshold for '{name}' must be a positive integer, got {value!r}")
        thresholds[strategy] = value
    return thresholds
