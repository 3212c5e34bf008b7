"""
ArtisanHub: artisan marketplace backend

REST API connecting artisans and customers, with a personalized product
feed, market insights and optional AI-generated suggestions.

Architecture:
    artisanhub.core       - Pure domain logic (models, feed ranking, insights)
    artisanhub.adapters   - External service wrappers (LLM, document store)
    artisanhub.services   - Orchestration layer (feed, insights, marketplace)
    artisanhub.api        - FastAPI application
    artisanhub.config     - Configuration settings
"""

__version__ = "0.1.0"

# Expose key public API for convenience imports
from artisanhub.core import (
    # Models
    Category,
    FeedPage,
    MarketInsights,
    Product,
    ScoredProduct,
    User,
    # Functions
    build_feed,
    build_market_insights,
    rank_products,
    score_product,
    select_similar,
)

from artisanhub.services import (
    Advisor,
    FeedService,
    InsightsService,
    MarketplaceService,
    RecommendationService,
    SimilarProductsService,
)

__all__ = [
    # Version
    "__version__",
    # Models
    "Category",
    "FeedPage",
    "MarketInsights",
    "Product",
    "ScoredProduct",
    "User",
    # Core functions
    "build_feed",
    "build_market_insights",
    "rank_products",
    "score_product",
    "select_similar",
    # Services
    "Advisor",
    "FeedService",
    "InsightsService",
    "MarketplaceService",
    "RecommendationService",
    "SimilarProductsService",
]
