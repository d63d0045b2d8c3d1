"""
Search routes for sold-listing comparables.
"""

import logging
import time
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from soldcomps.config import get_search_settings
from soldcomps.models import SearchRequest
from soldcomps.schemas import EbaySearchRequest, EbaySearchResponse
from soldcomps.services.search_service import SearchService

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_search_request(body: EbaySearchRequest) -> SearchRequest:
    """
    Turn the request body into validated search hints.

    Declared ahead of the service dependency so invalid hints are rejected
    before any credential is needed.

    Raises:
        SearchValidationError: If no usable keywords were given
    """
    default_limit = get_search_settings().search.default_limit
    return SearchRequest(
        keywords=body.keywords,
        brand_name=body.brand_name,
        model_number=body.model_number,
        limit=body.limit if body.limit is not None else default_limit,
    )


def get_search_service(request: Request) -> SearchService:
    """
    Return the application's search service, creating it on first use.

    Raises:
        ConfigurationError: If the marketplace credential is missing
    """
    service = getattr(request.app.state, "search_service", None)
    if service is None:
        service = SearchService.from_settings()
        request.app.state.search_service = service
    return service


def failure_response(status_code: int, message: str) -> JSONResponse:
    body = EbaySearchResponse.failure(message)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


@router.post("/ebay-search", response_model=EbaySearchResponse)
async def search_sold_listings(
    search_request: SearchRequest = Depends(parse_search_request),
    service: SearchService = Depends(get_search_service)
):
    """
    Find comparable sold listings for the given product hints.

    1. Validates the keywords (no marketplace call without them)
    2. Tries strategies from most precise to broadest
    3. Combines partial results if no strategy was good enough
    4. Returns ranked listings with average/min/max price
    """
    start_time = time.time()

    try:
        response = await service.search(search_request)
    except Exception as e:
        logger.exception(f"Sold listings search failed: {e}")
        return failure_response(500, str(e) or "Unknown error occurred")

    logger.info(
        f"Search for {search_request.keywords} used {response.search_strategy} "
        f"in {(time.time() - start_time) * 1000:.0f}ms"
    )
    return EbaySearchResponse.from_search(response)
