"""
ArtisanHub configuration module.

Central configuration for the marketplace backend.
Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).parent.parent.parent


# ---------------------------------------------------------------------------
# Document Store
# ---------------------------------------------------------------------------

STORE_BACKEND = os.getenv("ARTISANHUB_STORE", "mongo").lower()  # "mongo" or "memory"
MONGO_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGODB_DB", "artisanhub")
MONGO_TIMEOUT_MS = int(os.getenv("MONGODB_TIMEOUT_MS", "5000"))

STORE_MONGO = "mongo"
STORE_MEMORY = "memory"


# ---------------------------------------------------------------------------
# External API Keys
# ---------------------------------------------------------------------------

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")


# ---------------------------------------------------------------------------
# LLM Settings
# ---------------------------------------------------------------------------

PROVIDER_GEMINI = "gemini"
PROVIDER_ANTHROPIC = "anthropic"
PROVIDER_OPENAI = "openai"

LLM_PROVIDER = os.getenv("LLM_PROVIDER", PROVIDER_GEMINI).lower().strip()

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

LLM_TEMPERATURE = 0.4  # Suggestions benefit from a little variety
LLM_MAX_TOKENS = 400
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "20.0"))  # Seconds before API timeout
LLM_MAX_RETRIES = 1


# ---------------------------------------------------------------------------
# Feed Ranking
# ---------------------------------------------------------------------------

FOLLOWED_OWNER_BOOST = 10.0
PREFERRED_CATEGORY_BOOST = 5.0
LIKE_WEIGHT = 0.1
VIEW_WEIGHT = 0.01
RECENCY_BOOST = 2.0
RECENCY_WINDOW_DAYS = 7

DEFAULT_FEED_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


# ---------------------------------------------------------------------------
# Recommendations & Listings
# ---------------------------------------------------------------------------

SIMILAR_PRODUCTS_LIMIT = 4
SIMILAR_SUGGESTION_LIMIT = 5  # IDs accepted from a single AI reply
POPULAR_POOL_SIZE = 50
RECOMMENDED_PRODUCTS_LIMIT = 8
AI_SUGGESTION_PRODUCTS = 20  # Products shown to the model per prompt
TRENDING_WINDOW_DAYS = 30
TRENDING_LIMIT = 12
TOP_ARTISANS_LIMIT = 10
DEFAULT_LISTING_PAGE_SIZE = 12
FEATURED_PRODUCTS_LIMIT = 6
DEFAULT_POSTS_PAGE_SIZE = 10
POST_PREVIEW_COMMENTS = 3  # Newest comments embedded per post in listings

TIMEFRAME_DAYS = {
    "week": 7,
    "month": 30,
    "year": 365,
}


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGIN", "http://localhost:5173").split(",")
    if o.strip()
]
REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30.0"))
USER_ID_HEADER = "X-User-Id"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

from artisanhub.config.logging import (  # noqa: E402
    get_logger,
    configure_logging,
    log_banner,
    log_kv,
    LOG_LEVEL,
    LOG_FORMAT,
)


# ---------------------------------------------------------------------------
# All exports
# ---------------------------------------------------------------------------

__all__ = [
    # Paths
    "PROJECT_ROOT",
    # Store
    "STORE_BACKEND",
    "STORE_MONGO",
    "STORE_MEMORY",
    "MONGO_URI",
    "MONGO_DB_NAME",
    "MONGO_TIMEOUT_MS",
    # API keys
    "GEMINI_API_KEY",
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    # LLM
    "PROVIDER_GEMINI",
    "PROVIDER_ANTHROPIC",
    "PROVIDER_OPENAI",
    "LLM_PROVIDER",
    "GEMINI_MODEL",
    "ANTHROPIC_MODEL",
    "OPENAI_MODEL",
    "LLM_TEMPERATURE",
    "LLM_MAX_TOKENS",
    "LLM_TIMEOUT",
    "LLM_MAX_RETRIES",
    # Feed
    "FOLLOWED_OWNER_BOOST",
    "PREFERRED_CATEGORY_BOOST",
    "LIKE_WEIGHT",
    "VIEW_WEIGHT",
    "RECENCY_BOOST",
    "RECENCY_WINDOW_DAYS",
    "DEFAULT_FEED_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Recommendations
    "SIMILAR_PRODUCTS_LIMIT",
    "SIMILAR_SUGGESTION_LIMIT",
    "POPULAR_POOL_SIZE",
    "RECOMMENDED_PRODUCTS_LIMIT",
    "AI_SUGGESTION_PRODUCTS",
    "TRENDING_WINDOW_DAYS",
    "TRENDING_LIMIT",
    "TOP_ARTISANS_LIMIT",
    "DEFAULT_LISTING_PAGE_SIZE",
    "FEATURED_PRODUCTS_LIMIT",
    "DEFAULT_POSTS_PAGE_SIZE",
    "POST_PREVIEW_COMMENTS",
    "TIMEFRAME_DAYS",
    # API
    "CORS_ORIGINS",
    "REQUEST_TIMEOUT_SECONDS",
    "USER_ID_HEADER",
    # Logging
    "get_logger",
    "configure_logging",
    "log_banner",
    "log_kv",
    "LOG_LEVEL",
    "LOG_FORMAT",
]
