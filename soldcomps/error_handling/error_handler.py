"""
Error handler for failed marketplace searches.

Records strategy failures with diagnostic context so the strategy runner can
log them and move on to the next strategy.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .errors import (
    MalformedResponseError,
    MarketplaceRequestError,
    MarketplaceTimeoutError,
)


# Configure logging
logger = logging.getLogger(__name__)


class ErrorHandler:
    """
    Collects and logs strategy failures for one search.

    A failure never stops the search; the handler only keeps a record of
    what went wrong so callers can report it.

    Attributes:
        failures: Diagnostic records in the order they were captured
    """

    def __init__(self):
        self.failures: List[Dict[str, object]] = []

    def record_strategy_failure(
        self,
        strategy: str,
        error: Exception,
        query: Optional[str] = None
    ) -> Dict[str, object]:
        """
        Log a failed strategy and return its diagnostic record.

        Args:
            strategy: Name of the strategy whose search failed
            error: The exception raised by the marketplace client
            query: Query string that was searched (optional)

        Returns:
            Dictionary with the error analysis and recovery suggestions
        """
        record = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'strategy': strategy,
            'query': query,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'recovery_suggestions': self._suggestions_for(error),
        }
        self.failures.append(record)

        logger.error(
            f"Strategy failed: {strategy} | "
            f"Query: '{query or ''}' | "
            f"Error: {type(error).__name__}: {str(error)}"
        )
        logger.debug(f"Full error context: {record}")

        return record

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    def _suggestions_for(self, error: Exception) -> List[str]:
        if isinstance(error, MarketplaceTimeoutError):
            return [
                'Increase EBAY_REQUEST_TIMEOUT_SECONDS',
                'Check connectivity to the marketplace endpoint',
            ]
        if isinstance(error, MarketplaceRequestError):
            status = getattr(error, 'status', None)
            if status in (401, 403):
                return ['Verify EBAY_APP_ID is a valid production credential']
            if status == 429 or (status is not None and status >= 500):
                return ['Marketplace is throttling or unavailable, retry later']
            return ['Check network access to the marketplace endpoint']
        if isinstance(error, MalformedResponseError):
            return [
                'Inspect the raw marketplace response',
                'Verify the Finding API operation and version parameters',
            ]
        return ['Check the application logs for the full traceback']
