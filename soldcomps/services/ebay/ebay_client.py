"""
eBay Finding API client - searches completed (sold) listings and parses the
response into normalized Listing objects.
"""

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiohttp

from soldcomps.config.search_config import MarketplaceConfig, get_search_settings
from soldcomps.error_handling.errors import (
    MalformedResponseError,
    MarketplaceRequestError,
    MarketplaceTimeoutError,
)
from soldcomps.models import Listing, ListingType, MAX_LIMIT_PER_CALL
from soldcomps.services.search.strategies import StrategyDescriptor
from soldcomps.url_builder import CompletedItemsRequestBuilder


logger = logging.getLogger(__name__)

FIXED_PRICE_TYPES = {'fixedprice', 'storeinventory', 'fixed'}


def _first(container: Any, key: str, default: Any = None) -> Any:
    """Unwrap a Finding API field.

    The JSON flavour of the Finding API wraps every value in a one-element
    list; this returns the first element, or the default when absent.
    """
    if not isinstance(container, dict):
        return default
    value = container.get(key)
    if isinstance(value, list):
        return value[0] if value else default
    return default if value is None else value


def parse_end_time(raw: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 end time such as 2024-03-01T18:22:05.000Z."""
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_amount(amount: Any) -> Optional[float]:
    value = _first(amount, '__value__') if isinstance(amount, dict) else amount
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class EbayFindingClient:
    """
    Finding API client for sold listings.

    One call to search_completed_items issues exactly one HTTP request. There
    is no retry here; every failure is raised as a StrategyFailure subclass
    so the strategy runner can move on.
    """

    def __init__(
        self,
        config: Optional[MarketplaceConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        max_page_size: int = MAX_LIMIT_PER_CALL
    ):
        config = config or get_search_settings().marketplace

        self.app_id = config.require_app_id()
        self.currency = config.currency
        self.timeout_seconds = config.request_timeout_seconds
        self.max_page_size = min(max_page_size, MAX_LIMIT_PER_CALL)
        self.request_builder = CompletedItemsRequestBuilder(
            app_id=self.app_id,
            base_url=config.finding_url,
            global_id=config.global_id,
        )

        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _ensure_session(self):
        """Ensure we have an open session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

    async def search_completed_items(
        self,
        query: str,
        limit: int,
        descriptor: StrategyDescriptor,
        timeout: Optional[float] = None,
        now: Optional[datetime] = None
    ) -> List[Listing]:
        """
        Search sold listings for one strategy.

        Args:
            query: Search keywords
            limit: Requested results, capped at the per-call maximum
            descriptor: Strategy whose sale window and price ceiling apply
            timeout: Deadline for this call in seconds (defaults to config)
            now: Reference time for the sale window

        Returns:
            Listings in marketplace order, unique by URL, all priced above 0

        Raises:
            MarketplaceTimeoutError: The deadline elapsed
            MarketplaceRequestError: Network error or non-200 status
            MalformedResponseError: The response envelope could not be read
        """
        params = self.request_builder.build_params(
            query=query,
            entries_per_page=min(limit, self.max_page_size),
            window_days=descriptor.window_days,
            max_price=descriptor.max_price,
            now=now,
        )

        data = await self._fetch_json(params, timeout or self.timeout_seconds)
        listings = self.parse_response(data)

        logger.info(f"[EBAY SEARCH] Strategy {descriptor.name}: {len(listings)} sold items for '{query}'")
        return listings

    async def _fetch_json(self, params: Dict[str, str], timeout: float) -> Any:
        await self._ensure_session()
        query = params.get('keywords')

        try:
            async with self._session.get(
                self.request_builder.build_search_url(params),
                timeout=aiohttp.ClientTimeout(total=timeout)
            ) as response:
                if response.status != 200:
                    error_text = await response.text(errors="replace")
                    raise MarketplaceRequestError(
                        f"eBay API error: {response.status} - {error_text[:200]}",
                        query=query,
                        status=response.status,
                    )
                try:
                    # The Finding API labels JSON responses as text/plain
                    return await response.json(content_type=None)
                except ValueError as e:
                    # Covers invalid JSON and bodies that do not decode as text
                    raise MalformedResponseError(f"Response is not valid JSON: {e}", query=query)
        except asyncio.TimeoutError:
            raise MarketplaceTimeoutError(f"No response within {timeout:.1f}s", query=query)
        except aiohttp.ClientError as e:
            raise MarketplaceRequestError(f"Request failed: {e}", query=query)

    def parse_response(self, data: Any) -> List[Listing]:
        """
        Flatten the findCompletedItems envelope into listings.

        Items without a URL or with a missing, unparseable or non-positive
        price are dropped. Later duplicates of a URL are dropped.

        Raises:
            MalformedResponseError: If the envelope is missing or reports
                a failure
        """
        listings: List[Listing] = []
        seen_urls = set()

        for item_data in self._extract_items(data):
            try:
                listing = self._parse_item(item_data)
            except (AttributeError, KeyError, TypeError) as e:
                logger.warning(f"Failed to parse eBay item: {e}")
                continue

            if listing is None or listing.url in seen_urls:
                continue
            seen_urls.add(listing.url)
            listings.append(listing)

        return listings

    def _extract_items(self, data: Any) -> List[Dict[str, Any]]:
        if not isinstance(data, dict):
            raise MalformedResponseError("Response body is not a JSON object")

        envelope = _first(data, 'findCompletedItemsResponse')
        if not isinstance(envelope, dict):
            if 'errorMessage' in data:
                raise MalformedResponseError(f"Marketplace error: {self._error_text(data)}")
            raise MalformedResponseError("Response is missing findCompletedItemsResponse")

        if _first(envelope, 'ack') == 'Failure':
            raise MalformedResponseError(f"Marketplace rejected the search: {self._error_text(envelope)}")

        search_result = _first(envelope, 'searchResult', {})
        items = search_result.get('item') if isinstance(search_result, dict) else None
        return items if isinstance(items, list) else []

    def _error_text(self, container: Dict[str, Any]) -> str:
        error = _first(_first(container, 'errorMessage'), 'error')
        return _first(error, 'message', 'unknown error')

    def _parse_item(self, data: Dict[str, Any]) -> Optional[Listing]:
        """Parse one Finding API item, returning None for unusable items"""
        url = _first(data, 'viewItemURL')
        if not url:
            return None

        price_info = _first(_first(data, 'sellingStatus', {}), 'convertedCurrentPrice')
        price = _parse_amount(price_info)
        if price is None or price <= 0:
            return None

        listing_info = _first(data, 'listingInfo', {})
        shipping_info = _first(_first(data, 'shippingInfo', {}), 'shippingServiceCost')
        raw_type = (_first(listing_info, 'listingType') or '').lower()

        return Listing(
            title=_first(data, 'title', ''),
            price=price,
            currency=_first(price_info, '@currencyId') or self.currency,
            condition=_first(_first(data, 'condition', {}), 'conditionDisplayName') or 'Unknown',
            end_date=parse_end_time(_first(listing_info, 'endTime')),
            url=url,
            image_url=_first(data, 'galleryURL'),
            shipping_cost=_parse_amount(shipping_info) if shipping_info is not None else None,
            listing_type=ListingType.FIXED if raw_type in FIXED_PRICE_TYPES else ListingType.AUCTION,
        )
