"""
Market insight aggregation.

Groups products by category and summarizes price and engagement so artisans
can see where the market sits. Also derives a simple suggested price band
of +/-20% around the average price.
"""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime, timedelta

import numpy as np

from artisanhub.config import TIMEFRAME_DAYS
from artisanhub.core.models import (
    Category,
    CategoryStats,
    InsightFilters,
    MarketInsights,
    MarketOverview,
    Product,
)

PRICE_BAND_LOW = 0.8
PRICE_BAND_HIGH = 1.2


def parse_price_range(value: str | None) -> tuple[float | None, float | None]:
    """
    Parse a ``"min-max"`` price range query value.

    ``None``, empty and ``"all"`` mean no price filter.

    Raises:
        ValueError: If the value is not two non-negative numbers with min <= max.
    """
    if not value or value == "all":
        return None, None

    parts = value.split("-")
    if len(parts) != 2:
        raise ValueError(f"price range must look like 'min-max', got {value!r}")
    try:
        low, high = float(parts[0]), float(parts[1])
    except ValueError as e:
        raise ValueError(f"price range bounds must be numbers, got {value!r}") from e
    if low < 0 or high < low:
        raise ValueError(f"invalid price range {value!r}")
    return low, high


def timeframe_start(timeframe: str | None, now: datetime) -> datetime | None:
    """Earliest creation time for a ``week|month|year`` timeframe, else None."""
    if not timeframe:
        return None
    days = TIMEFRAME_DAYS.get(timeframe)
    if days is None:
        return None
    return now - timedelta(days=days)


def apply_filters(
    products: Sequence[Product],
    filters: InsightFilters,
    now: datetime,
) -> list[Product]:
    """Keep available products matching category, price and timeframe filters."""
    since = timeframe_start(filters.timeframe, now)
    matched = []
    for p in products:
        if not p.is_available:
            continue
        if filters.category is not None and p.category != filters.category:
            continue
        if filters.min_price is not None and p.price < filters.min_price:
            continue
        if filters.max_price is not None and p.price > filters.max_price:
            continue
        if since is not None and p.created_at < since:
            continue
        matched.append(p)
    return matched


def category_stats(products: Sequence[Product]) -> list[CategoryStats]:
    """
    Aggregate count, price and likes per category.

    Returns:
        Stats ordered by product count descending, then category name.
    """
    groups: dict[Category, list[Product]] = defaultdict(list)
    for p in products:
        groups[p.category].append(p)

    stats = []
    for category, group in groups.items():
        likes = [p.like_count for p in group]
        stats.append(
            CategoryStats(
                category=category,
                count=len(group),
                average_price=float(np.mean([p.price for p in group])),
                total_likes=int(sum(likes)),
                average_likes=float(np.mean(likes)),
            )
        )

    return sorted(stats, key=lambda s: (-s.count, s.category.value))


def market_overview(products: Sequence[Product]) -> MarketOverview:
    """Aggregate totals across all products. Empty input yields zeros."""
    if not products:
        return MarketOverview(
            total_products=0,
            average_price=0.0,
            total_likes=0,
            total_views=0,
            categories=[],
            min_price=None,
            max_price=None,
        )

    prices = np.array([p.price for p in products], dtype=float)
    categories = sorted({p.category for p in products}, key=lambda c: c.value)
    return MarketOverview(
        total_products=len(products),
        average_price=float(prices.mean()),
        total_likes=sum(p.like_count for p in products),
        total_views=sum(p.views for p in products),
        categories=categories,
        min_price=float(prices.min()),
        max_price=float(prices.max()),
    )


def suggested_price_band(average_price: float) -> tuple[float, float]:
    """Naive price band around the market average."""
    return average_price * PRICE_BAND_LOW, average_price * PRICE_BAND_HIGH


def format_market_summary(
    overview: MarketOverview,
    stats: Sequence[CategoryStats],
) -> str:
    """Render the plain-text market analysis shown next to the figures."""
    most_popular = stats[0].category.value if stats else "N/A"
    trending = ", ".join(s.category.value for s in stats[:3])
    low, high = suggested_price_band(overview.average_price)
    engagement = overview.total_likes + overview.total_views

    return "\n".join(
        [
            "Market Analysis Summary:",
            f"- Total Products: {overview.total_products}",
            f"- Average Price: ${overview.average_price:.2f}",
            f"- Most Popular Category: {most_popular}",
            f"- Total Engagement: {engagement} interactions",
            "",
            f"Trending Categories: {trending}",
            "",
            "Price Recommendations: Based on current market trends, products in the "
            f"${math.floor(low)}-${math.floor(high)} range show optimal engagement.",
        ]
    )


def build_market_insights(
    products: Sequence[Product],
    filters: InsightFilters,
    now: datetime,
) -> MarketInsights:
    """
    Filter products and compute the full market insight report.

    Args:
        products: Product catalog to analyze.
        filters: Category, price and timeframe filters.
        now: Reference time for timeframe filtering.

    Returns:
        MarketInsights with overview, per-category stats, price band and summary.
    """
    matched = apply_filters(products, filters, now)
    overview = market_overview(matched)
    stats = category_stats(matched)
    return MarketInsights(
        overview=overview,
        category_stats=stats,
        suggested_price_band=suggested_price_band(overview.average_price),
        analysis=format_market_summary(overview, stats),
        filters=filters,
    )
