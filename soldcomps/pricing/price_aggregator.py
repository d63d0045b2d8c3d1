"""
Price aggregator - reduces a final listing set to summary statistics.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from soldcomps.models import Listing, PriceSummary


CENT = Decimal("0.01")


def round_to_cent(value: float) -> float:
    """Round half up to the nearest cent."""
    return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))


class PriceAggregator:
    """Compute average, minimum and maximum sold price"""

    def summarize(self, listings: Iterable[Listing]) -> PriceSummary:
        """
        Summarize the prices of a listing set.

        Only positive prices count towards the statistics. An empty set, or
        one without positive prices, yields zeros.

        Args:
            listings: Final listing set

        Returns:
            PriceSummary; total_found counts every listing in the set
        """
        listings = list(listings)
        prices = [listing.price for listing in listings if listing.price > 0]

        if not prices:
            return PriceSummary(total_found=len(listings))

        return PriceSummary(
            average_price=round_to_cent(sum(prices) / len(prices)),
            min_price=min(prices),
            max_price=max(prices),
            total_found=len(listings),
        )


def summarize_prices(listings: Iterable[Listing]) -> PriceSummary:
    """Convenience wrapper around PriceAggregator.summarize."""
    return PriceAggregator().summarize(listings)
