"""eBay Finding API integration"""

from .ebay_client import EbayFindingClient, parse_end_time

__all__ = ["EbayFindingClient", "parse_end_time"]
