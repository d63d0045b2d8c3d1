"""Configuration module for the comparables search."""

from .search_config import (
    SEARCH_CONFIG,
    FINDING_API_URL,
    SearchSettings,
    MarketplaceConfig,
    SearchConfig,
    get_search_settings,
    parse_threshold_overrides,
)

__all__ = [
    'SEARCH_CONFIG',
    'FINDING_API_URL',
    'SearchSettings',
    'MarketplaceConfig',
    'SearchConfig',
    'get_search_settings',
    'parse_threshold_overrides',
]
