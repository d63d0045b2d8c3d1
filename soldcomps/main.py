"""
FastAPI main application for the comparables search.
"""

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from soldcomps import __version__
from soldcomps.config import get_search_settings
from soldcomps.error_handling import ConfigurationError, SearchValidationError
from soldcomps.routers import search
from soldcomps.routers.search import failure_response

settings = get_search_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Starting comparables search API...")
    if not settings.marketplace.app_id:
        logger.warning("EBAY_APP_ID is not set. /api/ebay-search will return 500 until configured.")

    yield

    logger.info("Shutting down comparables search API...")
    service = getattr(app.state, "search_service", None)
    if service is not None:
        await service.close()


app = FastAPI(
    title="Sold Comps API",
    description="Comparable sold marketplace listings and price statistics",
    version=__version__,
    lifespan=lifespan
)

# CORS middleware - allow all origins for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SearchValidationError)
async def validation_error_handler(request: Request, exc: SearchValidationError):
    logger.warning(f"Rejected search request: {exc}")
    return failure_response(400, str(exc))


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Configuration error: {exc}")
    return failure_response(500, str(exc))


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": __version__,
        "ebay_configured": bool(settings.marketplace.app_id),
    }


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Sold Comps API",
        "docs": "/docs",
        "health": "/health",
        "search": "/api/ebay-search",
    }


app.include_router(search.router, prefix="/api", tags=["search"])
