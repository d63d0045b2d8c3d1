"""
Data models for the sold-listing comparables search.

This module defines the core data structures shared by the query builder,
the marketplace client, the relevance scorer and the strategy runner.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from soldcomps.error_handling.errors import SearchValidationError


DEFAULT_LIMIT = 20
MAX_LIMIT_PER_CALL = 100


class ListingType(str, Enum):
    """How the item was sold."""
    AUCTION = "auction"
    FIXED = "fixed"


class SearchOutcome(str, Enum):
    """Terminal state of one strategy run."""
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    COMBINED = "combined"
    NO_RESULTS = "no_results"


COMBINED_SEARCH = "combined_search"
NO_RESULTS = "no_results"
SEARCH_ERROR = "error"


@dataclass(frozen=True)
class Listing:
    """Represents a completed (sold) marketplace listing.

    Identity is the listing URL: two listings with the same URL compare
    equal and hash the same regardless of the other fields.

    Attributes:
        title: Listing title as shown on the marketplace
        price: Final sale price, always strictly positive
        currency: ISO currency code of the price
        condition: Condition display name ("Unknown" when absent)
        end_date: When the sale ended, None if the marketplace omitted it
        url: Item page URL, unique per listing
        image_url: Gallery image URL (optional)
        shipping_cost: Shipping service cost (optional)
        listing_type: Auction or fixed price
    """
    title: str = field(compare=False)
    price: float = field(compare=False)
    currency: str = field(compare=False)
    condition: str = field(compare=False)
    end_date: Optional[datetime] = field(compare=False)
    url: str
    image_url: Optional[str] = field(default=None, compare=False)
    shipping_cost: Optional[float] = field(default=None, compare=False)
    listing_type: ListingType = field(default=ListingType.AUCTION, compare=False)

    def to_dict(self) -> dict:
        """Convert listing to a JSON friendly dictionary.

        Returns:
            Dictionary with the end date as an ISO string and the listing
            type as its plain value
        """
        data = asdict(self)
        data['end_date'] = self.end_date.isoformat() if self.end_date else None
        data['listing_type'] = self.listing_type.value
        return data


@dataclass(frozen=True)
class ScoredListing:
    """A listing paired with the relevance score computed for one search."""
    listing: Listing
    score: float


@dataclass
class SearchRequest:
    """Product hints supplied by the caller.

    Attributes:
        keywords: Ordered search keywords, most relevant first (non-empty)
        brand_name: Brand hint (optional)
        model_number: Model number hint (optional)
        limit: Requested number of results per marketplace call
    """
    keywords: List[str]
    brand_name: Optional[str] = None
    model_number: Optional[str] = None
    limit: int = DEFAULT_LIMIT

    def __post_init__(self):
        """Normalize hints and reject requests that cannot be searched."""
        self.keywords = [kw.strip() for kw in (self.keywords or []) if kw and kw.strip()]
        if not self.keywords:
            raise SearchValidationError("No search keywords provided")

        self.brand_name = (self.brand_name or "").strip() or None
        self.model_number = (self.model_number or "").strip() or None

        if self.limit is None:
            self.limit = DEFAULT_LIMIT
        if self.limit < 1:
            raise SearchValidationError(f"limit must be positive, got {self.limit}")

    @property
    def page_size(self) -> int:
        """Entries requested per network call, capped by the marketplace."""
        return min(self.limit, MAX_LIMIT_PER_CALL)


@dataclass(frozen=True)
class StrategyQuery:
    """Query string and the tokens it was built from."""
    query: str
    tokens: Tuple[str, ...]


@dataclass
class SearchResult:
    """Listings chosen by the strategy runner.

    Attributes:
        listings: Ranked listings, unique by URL
        strategy: Name of the winning strategy, or a combination marker
        keywords: Tokens used by the winning strategy
        outcome: Terminal state of the run
        attempted: Strategy names in the order they were tried
        failed: Strategy names whose marketplace call failed
    """
    listings: List[Listing]
    strategy: str
    keywords: List[str]
    outcome: SearchOutcome
    attempted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PriceSummary:
    """Summary statistics over a final listing set."""
    average_price: float = 0.0
    min_price: float = 0.0
    max_price: float = 0.0
    total_found: int = 0


@dataclass
class SearchResponse:
    """Search result together with its price statistics."""
    result: SearchResult
    summary: PriceSummary

    @property
    def listings(self) -> List[Listing]:
        return self.result.listings

    @property
    def search_strategy(self) -> str:
        return self.result.strategy
