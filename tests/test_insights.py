"""Tests for artisanhub.core.insights — market insight aggregation."""

from datetime import datetime, timedelta, timezone

import pytest

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
from artisanhub.core.models import Category, InsightFilters, Product

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _product(
    product_id: str,
    category: Category = Category.POTTERY,
    price: float = 100.0,
    likes: int = 0,
    views: int = 0,
    age_days: int = 1,
    available: bool = True,
) -> Product:
    return Product(
        product_id=product_id,
        artist_id="A",
        artist_name="Artist",
        title=product_id,
        description="",
        category=category,
        price=price,
        likes=[f"u{i}" for i in range(likes)],
        views=views,
        is_available=available,
        created_at=NOW - timedelta(days=age_days),
    )


class TestParsePriceRange:
    @pytest.mark.parametrize("value", [None, "", "all"])
    def test_no_filter(self, value):
        assert parse_price_range(value) == (None, None)

    def test_bounds(self):
        assert parse_price_range("50-200") == (50.0, 200.0)

    def test_decimal_bounds(self):
        assert parse_price_range("9.5-10.25") == (9.5, 10.25)

    @pytest.mark.parametrize("value", ["100", "a-b", "10-20-30", "200-50"])
    def test_malformed_rejected(self, value):
        with pytest.raises(ValueError):
            parse_price_range(value)


class TestTimeframe:
    @pytest.mark.parametrize("timeframe,days", [("week", 7), ("month", 30), ("year", 365)])
    def test_known_timeframes(self, timeframe, days):
        assert timeframe_start(timeframe, NOW) == NOW - timedelta(days=days)

    @pytest.mark.parametrize("timeframe", [None, "", "decade"])
    def test_unknown_means_unbounded(self, timeframe):
        assert timeframe_start(timeframe, NOW) is None


class TestApplyFilters:
    def test_drops_unavailable(self):
        products = [_product("a"), _product("b", available=False)]
        assert [p.product_id for p in apply_filters(products, InsightFilters(), NOW)] == ["a"]

    def test_category_price_and_timeframe(self):
        products = [
            _product("keep", Category.JEWELRY, price=80, age_days=3),
            _product("wrong-cat", Category.POTTERY, price=80, age_days=3),
            _product("too-cheap", Category.JEWELRY, price=10, age_days=3),
            _product("too-old", Category.JEWELRY, price=80, age_days=10),
        ]
        filters = InsightFilters(category=Category.JEWELRY, min_price=50, max_price=100, timeframe="week")
        assert [p.product_id for p in apply_filters(products, filters, NOW)] == ["keep"]

    def test_price_bounds_inclusive(self):
        products = [_product("low", price=50), _product("high", price=100)]
        filters = InsightFilters(min_price=50, max_price=100)
        assert len(apply_filters(products, filters, NOW)) == 2


class TestCategoryStats:
    def test_aggregates_per_category(self):
        products = [
            _product("p1", Category.POTTERY, price=100, likes=4),
            _product("p2", Category.POTTERY, price=200, likes=2),
            _product("j1", Category.JEWELRY, price=50, likes=1),
        ]
        stats = category_stats(products)
        assert [s.category for s in stats] == [Category.POTTERY, Category.JEWELRY]
        pottery = stats[0]
        assert pottery.count == 2
        assert pottery.average_price == pytest.approx(150.0)
        assert pottery.total_likes == 6
        assert pottery.average_likes == pytest.approx(3.0)

    def test_ties_ordered_by_category_name(self):
        products = [_product("w", Category.WOODWORK), _product("c", Category.CERAMICS)]
        assert [s.category for s in category_stats(products)] == [Category.CERAMICS, Category.WOODWORK]

    def test_empty(self):
        assert category_stats([]) == []


class TestMarketOverview:
    def test_totals(self):
        products = [
            _product("a", Category.POTTERY, price=10, likes=1, views=5),
            _product("b", Category.TEXTILES, price=30, likes=2, views=7),
        ]
        overview = market_overview(products)
        assert overview.total_products == 2
        assert overview.average_price == pytest.approx(20.0)
        assert overview.total_likes == 3
        assert overview.total_views == 12
        assert overview.min_price == 10
        assert overview.max_price == 30
        assert set(overview.categories) == {Category.POTTERY, Category.TEXTILES}

    def test_empty_yields_zeros(self):
        overview = market_overview([])
        assert overview.total_products == 0
        assert overview.average_price == 0.0
        assert overview.min_price is None
        assert overview.max_price is None


class TestPriceBand:
    def test_twenty_percent_band(self):
        low, high = suggested_price_band(100.0)
        assert low == pytest.approx(80.0)
        assert high == pytest.approx(120.0)


class TestMarketSummary:
    def test_summary_lines(self):
        products = [
            _product("a", Category.POTTERY, price=99, likes=2, views=10),
            _product("b", Category.POTTERY, price=101, likes=1, views=5),
            _product("c", Category.JEWELRY, price=100),
        ]
        text = format_market_summary(market_overview(products), category_stats(products))
        assert text.startswith("Market Analysis Summary:")
        assert "- Total Products: 3" in text
        assert "- Average Price: $100.00" in text
        assert "- Most Popular Category: Pottery" in text
        assert "- Total Engagement: 18 interactions" in text
        assert "Trending Categories: Pottery, Jewelry" in text
        assert "$80-$120 range" in text

    def test_empty_market(self):
        text = format_market_summary(market_overview([]), [])
        assert "- Most Popular Category: N/A" in text
        assert "$0-$0 range" in text


class TestBuildMarketInsights:
    def test_filters_then_aggregates(self):
        products = [
            _product("a", Category.POTTERY, price=100, age_days=2),
            _product("b", Category.POTTERY, price=300, age_days=60),
        ]
        insights = build_market_insights(products, InsightFilters(timeframe="month"), NOW)
        assert insights.overview.total_products == 1
        assert insights.suggested_price_band == (pytest.approx(80.0), pytest.approx(120.0))

    def test_to_dict_echoes_filters(self):
        filters = InsightFilters(category=Category.POTTERY, min_price=10, max_price=500, timeframe="year")
        body = build_market_insights([_product("a")], filters, NOW).to_dict()
        assert body["filters"] == {
            "category": "Pottery",
            "min_price": 10,
            "max_price": 500,
            "timeframe": "year",
        }
        assert body["market_insights"]["total_products"] == 1
        assert body["category_stats"][0]["category"] == "Pottery"
        assert body["ai_analysis"].startswith("Market Analysis Summary:")
