"""
Search service - wires the marketplace client, the strategy runner and the
price aggregator into one call.
"""

import logging
from typing import List, Optional

from soldcomps.config import SearchSettings, get_search_settings
from soldcomps.models import SearchRequest, SearchResponse
from soldcomps.pricing import PriceAggregator
from soldcomps.services.ebay import EbayFindingClient
from soldcomps.services.search import CompletedItemsSearcher, StrategyRunner


logger = logging.getLogger(__name__)


class SearchService:
    """
    Find comparable sold listings and their price statistics.

    The service owns its marketplace client; close it with close() or use
    the service as an async context manager.
    """

    def __init__(
        self,
        client: CompletedItemsSearcher,
        settings: Optional[SearchSettings] = None,
        timeout: Optional[float] = None
    ):
        self.settings = settings or get_search_settings()
        self.client = client
        self.runner = StrategyRunner(
            client,
            thresholds=self.settings.search.threshold_overrides,
            timeout=timeout,
        )
        self.aggregator = PriceAggregator()

    @classmethod
    def from_settings(
        cls,
        settings: Optional[SearchSettings] = None,
        timeout: Optional[float] = None
    ) -> 'SearchService':
        """
        Build a service backed by the eBay Finding API.

        Raises:
            ConfigurationError: If EBAY_APP_ID is not configured
        """
        settings = settings or get_search_settings()
        client = EbayFindingClient(
            config=settings.marketplace,
            max_page_size=settings.search.max_limit,
        )
        return cls(client, settings=settings, timeout=timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()

    async def search(self, request: SearchRequest) -> SearchResponse:
        """
        Run the strategy search and aggregate prices.

        Args:
            request: Validated caller hints

        Returns:
            SearchResponse with ranked listings and price statistics
        """
        result = await self.runner.run(request)
        summary = self.aggregator.summarize(result.listings)

        logger.info(
            f"Search finished with strategy {result.strategy}: "
            f"{summary.total_found} listings, avg ${summary.average_price:.2f}"
        )
        return SearchResponse(result=result, summary=summary)


async def run_search(
    keywords: List[str],
    brand_name: Optional[str] = None,
    model_number: Optional[str] = None,
    limit: Optional[int] = None,
    timeout: Optional[float] = None,
    settings: Optional[SearchSettings] = None
) -> SearchResponse:
    """
    Convenience function for a one-off search against eBay.

    Raises:
        SearchValidationError: If no keywords were given
        ConfigurationError: If EBAY_APP_ID is not configured
    """
    settings = settings or get_search_settings()
    request = SearchRequest(
        keywords=keywords,
        brand_name=brand_name,
        model_number=model_number,
        limit=limit if limit is not None else settings.search.default_limit,
    )
    async with SearchService.from_settings(settings, timeout=timeout) as service:
        return await service.search(request)
