"""
Exception types for the comparables search.

Validation and configuration errors are fatal to a search. Strategy
failures are recovered by the strategy runner and count as zero results.
"""

from typing import Optional


class SoldCompsError(Exception):
    """Base class for all search errors."""


class SearchValidationError(SoldCompsError):
    """The request cannot be searched (e.g. no keywords)."""


class ConfigurationError(SoldCompsError):
    """Required configuration such as the marketplace credential is missing."""


class StrategyFailure(SoldCompsError):
    """A single marketplace search failed.

    Attributes:
        query: Query string that was being searched, if known
    """

    def __init__(self, message: str, query: Optional[str] = None):
        super().__init__(message)
        self.query = query


class MarketplaceRequestError(StrategyFailure):
    """Network error or non-success HTTP status from the marketplace."""

    def __init__(self, message: str, query: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message, query=query)
        self.status = status


class MarketplaceTimeoutError(StrategyFailure):
    """The per-call deadline elapsed before the marketplace answered."""


class MalformedResponseError(StrategyFailure):
    """The marketplace answered with an envelope we cannot read."""
