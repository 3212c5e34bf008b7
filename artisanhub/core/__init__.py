"""
ArtisanHub core domain layer.

Pure domain logic with no external service dependencies.
Contains models, feed ranking, market insights, similarity and prompts.
"""

# Models (all dataclasses)
from artisanhub.core.models import (
    ArtisanStats,
    Category,
    CategoryStats,
    Comment,
    ContentType,
    FeedPage,
    FeedPreferences,
    InsightFilters,
    ListingPage,
    MarketInsights,
    MarketOverview,
    Order,
    OrderStatus,
    OwnerSummary,
    Product,
    Post,
    PostPage,
    Recommendations,
    ScoredProduct,
    User,
    UserType,
    utcnow,
)

# Feed ranking
from artisanhub.core.feed import (
    build_feed,
    paginate,
    preferred_categories,
    rank_products,
    score_product,
)

# Market insights
from artisanhub.core.insights import (
    apply_filters,
    build_market_insights,
    category_stats,
    format_market_summary,
    market_overview,
    parse_price_range,
    suggested_price_band,
    timeframe_start,
)

# Rankings
from artisanhub.core.rankings import (
    popular_pool,
    top_artisans,
    trending,
)

# Similarity
from artisanhub.core.similarity import (
    parse_id_list,
    sanitize_ids,
    select_similar,
)

# Prompts
from artisanhub.core.prompts import (
    RECOMMENDER_SYSTEM_PROMPT,
    build_artwork_suggestions_prompt,
    build_similar_products_prompt,
    format_catalog,
)

__all__ = [
    # Models
    "ArtisanStats",
    "Category",
    "CategoryStats",
    "Comment",
    "ContentType",
    "FeedPage",
    "FeedPreferences",
    "InsightFilters",
    "ListingPage",
    "MarketInsights",
    "MarketOverview",
    "Order",
    "OrderStatus",
    "OwnerSummary",
    "Product",
    "Post",
    "PostPage",
    "Recommendations",
    "ScoredProduct",
    "User",
    "UserType",
    "utcnow",
    # Feed
    "build_feed",
    "paginate",
    "preferred_categories",
    "rank_products",
    "score_product",
    # Insights
    "apply_filters",
    "build_market_insights",
    "category_stats",
    "format_market_summary",
    "market_overview",
    "parse_price_range",
    "suggested_price_band",
    "timeframe_start",
    # Rankings
    "popular_pool",
    "top_artisans",
    "trending",
    # Similarity
    "parse_id_list",
    "sanitize_ids",
    "select_similar",
    # Prompts
    "RECOMMENDER_SYSTEM_PROMPT",
    "build_artwork_suggestions_prompt",
    "build_similar_products_prompt",
    "format_catalog",
]
