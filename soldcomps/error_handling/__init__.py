"""
Error handling module for the comparables search.

Provides the exception hierarchy and diagnostic logging for failed
marketplace calls.
"""

from .errors import (
    SoldCompsError,
    SearchValidationError,
    ConfigurationError,
    StrategyFailure,
    MarketplaceRequestError,
    MarketplaceTimeoutError,
    MalformedResponseError,
)
from .error_handler import ErrorHandler

__all__ = [
    'SoldCompsError',
    'SearchValidationError',
    'ConfigurationError',
    'StrategyFailure',
    'MarketplaceRequestError',
    'MarketplaceTimeoutError',
    'MalformedResponseError',
    'ErrorHandler',
]
