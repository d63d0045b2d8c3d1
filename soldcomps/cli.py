"""
Command-line interface for the comparables search.

Searches sold marketplace listings for a product described by keywords and
optional brand/model hints, and prints the ranked listings with price
statistics.
"""

import asyncio
import argparse
import json
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from soldcomps.config import get_search_settings
from soldcomps.error_handling import ConfigurationError, SearchValidationError
from soldcomps.models import Listing, SearchResponse
from soldcomps.services.search_service import run_search


logger = logging.getLogger(__name__)


def format_listing(position: int, listing: Listing) -> str:
    """
    Format one sold listing for console output.

    Args:
        position: 1-based rank of the listing
        listing: Listing to format

    Returns:
        Multi-line string representation of the listing
    """
    lines = [f"{position:>2}. {listing.title or '[No title]'}"]

    price = f"   Price: {listing.price:.2f} {listing.currency}"
    if listing.shipping_cost is not None:
        price += f" (+{listing.shipping_cost:.2f} shipping)"
    lines.append(price)

    lines.append(f"   Condition: {listing.condition} | {listing.listing_type.value}")
    if listing.end_date:
        lines.append(f"   Sold: {listing.end_date.date().isoformat()}")
    lines.append(f"   URL: {listing.url}")
    lines.append("")

    return "\n".join(lines)


def format_results(response: SearchResponse) -> str:
    """
    Format a search response for console output.

    Args:
        response: Result of the search

    Returns:
        Formatted string with the statistics followed by the listings
    """
    summary = response.summary
    output = [
        f"\n{'='*60}",
        f"Strategy: {response.search_strategy} "
        f"(keywords: {' '.join(response.result.keywords)})",
        f"Found {summary.total_found} sold listing(s)",
    ]

    if not response.listings:
        output.append("No matching listings found.")
        output.append(f"{'='*60}\n")
        return "\n".join(output)

    output.append(
        f"Average: {summary.average_price:.2f} | "
        f"Min: {summary.min_price:.2f} | Max: {summary.max_price:.2f}"
    )
    output.append(f"{'='*60}\n")
    for position, listing in enumerate(response.listings, start=1):
        output.append(format_listing(position, listing))

    return "\n".join(output)


def response_to_dict(response: SearchResponse) -> dict:
    summary = response.summary
    return {
        "searchStrategy": response.search_strategy,
        "searchKeywords": response.result.keywords,
        "averagePrice": summary.average_price,
        "minPrice": summary.min_price,
        "maxPrice": summary.max_price,
        "totalFound": summary.total_found,
        "listings": [listing.to_dict() for listing in response.listings],
    }


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="soldcomps",
        description="Find comparable sold listings and their price statistics",
        epilog='Example: soldcomps iphone 14 pro --brand Apple --model A2650'
    )

    parser.add_argument(
        "keywords",
        nargs="+",
        help="Search keywords, most relevant first"
    )

    parser.add_argument(
        "--brand",
        type=str,
        default=None,
        help="Brand name hint (e.g., 'Apple')"
    )

    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Model number hint (e.g., 'A2650')"
    )

    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Results requested per marketplace call (max 100)"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Deadline in seconds for each marketplace call"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON"
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging output"
    )

    return parser


async def run_comps_search(
    keywords: List[str],
    brand: Optional[str] = None,
    model: Optional[str] = None,
    limit: Optional[int] = None,
    timeout: Optional[float] = None,
    as_json: bool = False
) -> int:
    """
    Run one search and print the result.

    Returns:
        Exit code (0 for success, 1 for validation or configuration errors)
    """
    try:
        response = await run_search(
            keywords,
            brand_name=brand,
            model_number=model,
            limit=limit,
            timeout=timeout,
            settings=get_search_settings(reload=True),
        )
    except (SearchValidationError, ConfigurationError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps(response_to_dict(response), indent=2))
    else:
        print(format_results(response))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI application.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    load_dotenv()
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        return asyncio.run(
            run_comps_search(
                keywords=args.keywords,
                brand=args.brand,
                model=args.model,
                limit=args.limit,
                timeout=args.timeout,
                as_json=args.json,
            )
        )
    except Exception as e:
        logger.exception(f"Unexpected error in main: {str(e)}")
        print(f"❌ Unexpected error: {str(e)}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
