"""
Market insight and ranking service.

Non-personalized views of the marketplace: aggregate market insights,
trending products and top artisans.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from artisanhub.adapters.repository import MarketplaceRepository, ProductQuery
from artisanhub.config import TIMEFRAME_DAYS, TRENDING_WINDOW_DAYS, get_logger
from artisanhub.core import (
    ArtisanStats,
    Category,
    InsightFilters,
    MarketInsights,
    Product,
    build_market_insights,
    parse_price_range,
    top_artisans,
    trending,
    utcnow,
)
from artisanhub.exceptions import ValidationError

logger = get_logger(__name__)


def parse_category(value: str | None) -> Category | None:
    """Map a category query value to Category; None, empty and "all" mean any."""
    if not value or value == "all":
        return None
    try:
        return Category(value)
    except ValueError as e:
        raise ValidationError(f"Unknown category: {value}") from e


def parse_insight_filters(
    category: str | None = None,
    price_range: str | None = None,
    timeframe: str | None = None,
) -> InsightFilters:
    """
    Parse raw query values into InsightFilters.

    Unrecognized timeframes apply no time filter.

    Raises:
        ValidationError: On unknown category or malformed price range.
    """
    try:
        min_price, max_price = parse_price_range(price_range)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    return InsightFilters(
        category=parse_category(category),
        min_price=min_price,
        max_price=max_price,
        timeframe=timeframe if timeframe in TIMEFRAME_DAYS else None,
    )


class InsightsService:
    """Aggregate views over the whole catalog."""

    def __init__(self, repository: MarketplaceRepository):
        self.repository = repository

    def market_insights(
        self,
        category: str | None = None,
        price_range: str | None = None,
        timeframe: str | None = None,
        now: datetime | None = None,
    ) -> MarketInsights:
        filters = parse_insight_filters(category, price_range, timeframe)
        products = self.repository.find_products(ProductQuery(category=filters.category))
        insights = build_market_insights(products, filters, now or utcnow())
        logger.info(
            "Market insights: %d products across %d categories",
            insights.overview.total_products,
            len(insights.category_stats),
        )
        return insights

    def trending(self, now: datetime | None = None) -> list[Product]:
        """Most engaged products listed in the last TRENDING_WINDOW_DAYS days."""
        now = now or utcnow()
        recent = self.repository.find_products(
            ProductQuery(created_after=now - timedelta(days=TRENDING_WINDOW_DAYS))
        )
        return trending(recent, now)

    def top_artisans(self) -> list[ArtisanStats]:
        """Artisans ranked by the likes and views their products have gathered."""
        artisans = self.repository.list_artisans()
        products = self.repository.find_products(ProductQuery(available_only=False))
        return top_artisans(artisans, products)
