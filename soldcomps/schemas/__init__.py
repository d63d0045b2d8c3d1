"""API data models for the comparables search"""

from .search import EbaySearchRequest, EbaySearchResponse, ListingOut

__all__ = [
    "EbaySearchRequest",
    "EbaySearchResponse",
    "ListingOut",
]
