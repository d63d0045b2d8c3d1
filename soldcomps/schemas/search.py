"""Search request/response models (camelCase on the wire)"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional

from soldcomps.models import Listing, SearchResponse, SEARCH_ERROR


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EbaySearchRequest(CamelModel):
    """Product hints for a sold-listings search"""
    keywords: List[str] = Field(default_factory=list)
    brand_name: Optional[str] = None
    model_number: Optional[str] = None
    category_id: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1)


class ListingOut(CamelModel):
    """A sold listing as returned by the API"""
    title: str
    price: float
    currency: str
    condition: str
    end_date: Optional[str] = None
    sold_date: Optional[str] = None
    url: str
    image_url: Optional[str] = None
    shipping_cost: Optional[float] = None
    listing_type: str

    @classmethod
    def from_listing(cls, listing: Listing) -> "ListingOut":
        data = listing.to_dict()
        return cls(**data, sold_date=data["end_date"])


class EbaySearchResponse(CamelModel):
    """Ranked sold listings with price statistics"""
    success: bool
    listings: List[ListingOut] = Field(default_factory=list)
    average_price: float = 0
    min_price: float = 0
    max_price: float = 0
    total_found: int = 0
    search_strategy: str
    search_keywords: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def from_search(cls, response: SearchResponse) -> "EbaySearchResponse":
        summary = response.summary
        return cls(
            success=True,
            listings=[ListingOut.from_listing(listing) for listing in response.listings],
            average_price=summary.average_price,
            min_price=summary.min_price,
            max_price=summary.max_price,
            total_found=summary.total_found,
            search_strategy=response.search_strategy,
            search_keywords=response.result.keywords,
            error=None if response.listings else "No matching listings found",
        )

    @classmethod
    def failure(cls, message: str, strategy: str = SEARCH_ERROR) -> "EbaySearchResponse":
        return cls(success=False, search_strategy=strategy, error=message)
