"""
Request construction for the completed-listings search.

This module builds the URL-encoded Finding API parameters for one
findCompletedItems call, including the item filter chain.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlencode, quote_plus

from soldcomps.config.search_config import FINDING_API_URL


MIN_SOLD_PRICE = "1.00"


def format_end_time(moment: datetime) -> str:
    """Format a datetime the way the Finding API expects (UTC, millis, Z)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime('%Y-%m-%dT%H:%M:%S.') + f"{moment.microsecond // 1000:03d}Z"


class CompletedItemsRequestBuilder:
    """Constructs findCompletedItems request parameters and URLs.

    Every request asks for sold items only, a minimum price of 1.00 and the
    soonest end time first. The sale window and the optional price ceiling
    vary per strategy.
    """

    def __init__(
        self,
        app_id: str,
        base_url: str = FINDING_API_URL,
        global_id: str = "EBAY-US"
    ):
        self.app_id = app_id
        self.base_url = base_url
        self.global_id = global_id

    def build_params(
        self,
        query: str,
        entries_per_page: int,
        window_days: int,
        max_price: Optional[float] = None,
        now: Optional[datetime] = None
    ) -> Dict[str, str]:
        """Build the query parameters for one search.

        Args:
            query: Free-text keywords
            entries_per_page: Items per page, already capped by the caller
            window_days: Only listings that ended within this many days
            max_price: Price ceiling (optional)
            now: Reference time for the sale window (defaults to UTC now)

        Returns:
            Ordered dictionary of parameter names to string values
        """
        now = now or datetime.now(timezone.utc)

        params = {
            'OPERATION-NAME': 'findCompletedItems',
            'SERVICE-VERSION': '1.0.0',
            'SECURITY-APPNAME': self.app_id,
            'GLOBAL-ID': self.global_id,
            'RESPONSE-DATA-FORMAT': 'JSON',
            'REST-PAYLOAD': '',
            'keywords': query,
            'paginationInput.entriesPerPage': str(entries_per_page),
            'sortOrder': 'EndTimeSoonest',
        }

        filters: List[Tuple[str, str]] = [
            ('SoldItemsOnly', 'true'),
            ('EndTimeFrom', format_end_time(now - timedelta(days=window_days))),
            ('MinPrice', MIN_SOLD_PRICE),
        ]
        if max_price is not None:
            filters.append(('MaxPrice', f"{max_price:.2f}"))

        for index, (name, value) in enumerate(filters):
            params[f'itemFilter({index}).name'] = name
            params[f'itemFilter({index}).value'] = value

        return params

    def build_search_url(self, params: Dict[str, str]) -> str:
        """Encode parameters onto the endpoint URL.

        Examples:
            >>> builder = CompletedItemsRequestBuilder("APP-ID")
            >>> builder.build_search_url({'keywords': 'sony a7'})
            'https://svcs.ebay.com/services/search/FindingService/v1?keywords=sony+a7'
        """
        # quote_via=quote_plus converts spaces to + instead of %20
        encoded_params = urlencode(params, quote_via=quote_plus)
        return f"{self.base_url}?{encoded_params}"
