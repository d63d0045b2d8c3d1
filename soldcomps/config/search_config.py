"""Search configuration settings for the comparables search."""

from dataclasses import dataclass, field
from typing import Dict, Optional
import os

from soldcomps.error_handling.errors import ConfigurationError


FINDING_API_URL = "https://svcs.ebay.com/services/search/FindingService/v1"


@dataclass
class MarketplaceConfig:
    """Marketplace endpoint and credential configuration."""
    app_id: Optional[str] = None
    finding_url: str = FINDING_API_URL
    global_id: str = "EBAY-US"
    currency: str = "USD"
    request_timeout_seconds: float = 15.0

    def require_app_id(self) -> str:
        """Return the app credential or fail if it is not configured."""
        if not self.app_id:
            raise ConfigurationError(
                "Missing required environment variable: EBAY_APP_ID"
            )
        return self.app_id


@dataclass
class SearchConfig:
    """Strategy runner configuration."""
    default_limit: int = 20
    max_limit: int = 100
    threshold_overrides: Dict[str, int] = field(default_factory=dict)


@dataclass
class SearchSettings:
    """Main search configuration settings."""
    log_level: str = "INFO"
    marketplace: MarketplaceConfig = None
    search: SearchConfig = None

    def __post_init__(self):
        """Initialize nested configs if not provided."""
        if self.marketplace is None:
            self.marketplace = MarketplaceConfig()
        if self.search is None:
            self.search = SearchConfig()


def parse_threshold_overrides(raw: Optional[str]) -> Dict[str, int]:
    """Parse ``name=value`` pairs separated by commas.

    Args:
        raw: Value of STRATEGY_THRESHOLDS, e.g. "keywords_only=4,partial_match=6"

    Returns:
        Mapping of strategy name to threshold

    Raises:
        ConfigurationError: If a pair is malformed or a value is not a
            positive integer
    """
    overrides: Dict[str, int] = {}
    if not raw:
        return overrides

    for pair in raw.split(','):
        pair = pair.strip()
        if not pair:
            continue
        name, sep, value = pair.partition('=')
        if not sep:
            raise ConfigurationError(f"Invalid STRATEGY_THRESHOLDS entry: '{pair}'")
        try:
            threshold = int(value.strip())
        except ValueError:
            raise ConfigurationError(f"Threshold for '{name.strip()}' must be an integer")
        if threshold < 1:
            raise ConfigurationError(f"Threshold for '{name.strip()}' must be positive")
        overrides[name.strip()] = threshold

    return overrides


def _load_search_config() -> dict:
    return {
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "marketplace": {
            "app_id": os.getenv("EBAY_APP_ID") or None,
            "finding_url": os.getenv("EBAY_FINDING_URL", FINDING_API_URL),
            "global_id": os.getenv("EBAY_GLOBAL_ID", "EBAY-US"),
            "currency": os.getenv("CURRENCY", "USD"),
            "request_timeout_seconds": float(os.getenv("EBAY_REQUEST_TIMEOUT_SECONDS", "15")),
        },
        "search": {
            "default_limit": int(os.getenv("DEFAULT_RESULT_LIMIT", "20")),
            "max_limit": int(os.getenv("MAX_RESULT_LIMIT", "100")),
            "threshold_overrides": os.getenv("STRATEGY_THRESHOLDS", ""),
        },
    }


# Default search configuration
SEARCH_CONFIG = _load_search_config()


def get_search_settings(reload: bool = False) -> SearchSettings:
    """Get search settings from configuration.

    Args:
        reload: Re-read the environment instead of using the values captured
            at import time

    Returns:
        SearchSettings built from the environment
    """
    config = _load_search_config() if reload else SEARCH_CONFIG
    search = dict(config["search"])
    search["threshold_overrides"] = parse_threshold_overrides(search["threshold_overrides"])

    return SearchSettings(
        log_level=config["log_level"],
        marketplace=MarketplaceConfig(**config["marketplace"]),
        search=SearchConfig(**search),
    )
