"""Price statistics over sold listings"""

from .price_aggregator import PriceAggregator, summarize_prices

__all__ = ["PriceAggregator", "summarize_prices"]
