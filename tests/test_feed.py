"""Tests for artisanhub.core.feed — personalized feed scoring and ranking."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from artisanhub.core.feed import (
    build_feed,
    paginate,
    preferred_categories,
    rank_products,
    score_product,
)
from artisanhub.core.models import Category, Product, User, UserType

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _product(
    product_id: str,
    artist_id: str = "A",
    category: Category = Category.POTTERY,
    likes: int = 0,
    views: int = 0,
    age_days: float = 30,
) -> Product:
    """Helper to build a Product with ``likes`` anonymous likers."""
    return Product(
        product_id=product_id,
        artist_id=artist_id,
        artist_name=f"Artist {artist_id}",
        title=f"Item {product_id}",
        description="",
        category=category,
        price=50.0,
        likes=[f"u{i}" for i in range(likes)],
        views=views,
        created_at=NOW - timedelta(days=age_days),
    )


def _user(user_id: str = "me", following=(), favorites=()) -> User:
    return User(
        user_id=user_id,
        name="Viewer",
        email="viewer@example.com",
        following=list(following),
        favorites=list(favorites),
    )


def _artisan(user_id: str) -> User:
    return User(
        user_id=user_id,
        name=f"Artist {user_id}",
        email=f"{user_id}@example.com",
        user_type=UserType.ARTISAN,
        avatar=f"/avatars/{user_id}.png",
        is_verified=True,
    )


class TestScoreProduct:
    def test_followed_preferred_recent_item(self):
        x = _product("X", artist_id="A", category=Category.POTTERY, likes=10, views=200, age_days=1)
        score = score_product(x, {"A"}, {Category.POTTERY}, NOW)
        assert score == pytest.approx(20.0)

    def test_unrelated_old_item(self):
        y = _product("Y", artist_id="B", category=Category.JEWELRY, likes=50, views=50, age_days=40)
        score = score_product(y, {"A"}, {Category.POTTERY}, NOW)
        assert score == pytest.approx(5.5)

    def test_zero_signals_scores_zero(self):
        assert score_product(_product("P"), set(), set(), NOW) == 0.0

    def test_followed_owner_adds_ten(self):
        p = _product("P", artist_id="A", likes=3, views=7)
        assert score_product(p, {"A"}, set(), NOW) - score_product(p, set(), set(), NOW) == pytest.approx(10.0)

    def test_preferred_category_adds_five(self):
        p = _product("P", category=Category.TEXTILES)
        assert score_product(p, set(), {Category.TEXTILES}, NOW) == pytest.approx(5.0)

    def test_recency_boundary_is_inclusive(self):
        exactly_seven = _product("P", age_days=7)
        just_older = replace(exactly_seven, created_at=NOW - timedelta(days=7, seconds=1))
        assert score_product(exactly_seven, set(), set(), NOW) == pytest.approx(2.0)
        assert score_product(just_older, set(), set(), NOW) == 0.0

    @pytest.mark.parametrize("likes,views", [(0, 0), (1, 0), (5, 10), (20, 300)])
    def test_monotonic_in_likes_and_views(self, likes, views):
        base = score_product(_product("P", likes=likes, views=views), set(), set(), NOW)
        more_likes = score_product(_product("P", likes=likes + 1, views=views), set(), set(), NOW)
        more_views = score_product(_product("P", likes=likes, views=views + 1), set(), set(), NOW)
        assert more_likes >= base
        assert more_views >= base


class TestPreferredCategories:
    def test_distinct_in_first_seen_order(self):
        favorites = [
            _product("1", category=Category.JEWELRY),
            _product("2", category=Category.POTTERY),
            _product("3", category=Category.JEWELRY),
        ]
        assert preferred_categories(favorites) == [Category.JEWELRY, Category.POTTERY]

    def test_no_favorites(self):
        assert preferred_categories([]) == []


class TestRankProducts:
    def test_worked_example_order(self):
        x = _product("X", artist_id="A", category=Category.POTTERY, likes=10, views=200, age_days=1)
        y = _product("Y", artist_id="B", category=Category.JEWELRY, likes=50, views=50, age_days=40)
        ranked = rank_products([y, x], {"A"}, [Category.POTTERY], NOW)
        assert [s.product.product_id for s in ranked] == ["X", "Y"]
        assert ranked[0].score == pytest.approx(20.0)
        assert ranked[1].score == pytest.approx(5.5)

    def test_ties_broken_by_newest_first(self):
        older = _product("old", age_days=20)
        newer = _product("new", age_days=10)
        ranked = rank_products([older, newer], set(), [], NOW)
        assert [s.product.product_id for s in ranked] == ["new", "old"]

    def test_stable_for_identical_score_and_timestamp(self):
        items = [_product(str(i), age_days=15) for i in range(5)]
        ranked = rank_products(items, set(), [], NOW)
        assert [s.product.product_id for s in ranked] == ["0", "1", "2", "3", "4"]

    def test_followed_item_outranks_identical_unfollowed(self):
        followed = _product("f", artist_id="A", likes=2, views=3)
        other = _product("o", artist_id="B", likes=2, views=3)
        ranked = rank_products([other, followed], {"A"}, [], NOW)
        assert ranked[0].product.product_id == "f"
        assert ranked[0].score - ranked[1].score == pytest.approx(10.0)

    def test_inputs_not_mutated(self):
        items = [_product("a", likes=1), _product("b", likes=9)]
        snapshot = [(p.product_id, list(p.likes), p.views) for p in items]
        rank_products(items, {"A"}, [Category.POTTERY], NOW)
        assert [(p.product_id, list(p.likes), p.views) for p in items] == snapshot
        assert [p.product_id for p in items] == ["a", "b"]


class TestPaginate:
    def test_second_page(self):
        assert paginate(list(range(5)), page=2, page_size=2) == [2, 3]

    def test_last_partial_page(self):
        assert paginate(list(range(5)), page=3, page_size=2) == [4]

    def test_past_end_is_empty(self):
        assert paginate(list(range(5)), page=4, page_size=2) == []

    @pytest.mark.parametrize("page,size", [(0, 10), (-1, 10), (1, 0), (1, -5)])
    def test_rejects_invalid_arguments(self, page, size):
        with pytest.raises(ValueError):
            paginate([1, 2, 3], page, size)


class TestBuildFeed:
    def test_empty_pool_returns_empty_page(self):
        feed = build_feed(_user(), [], [], {}, page=1, page_size=10, now=NOW)
        assert feed.items == []
        assert feed.page == 1
        assert feed.limit == 10

    def test_page_two_of_equal_items_sorted_by_recency(self):
        items = [_product(str(i), age_days=30 + i) for i in range(5)]
        feed = build_feed(_user(), list(reversed(items)), [], {}, page=2, page_size=2, now=NOW)
        # Sorted newest first: 0,1,2,3,4 -> page 2 is indices 2 and 3
        assert [s.product.product_id for s in feed.items] == ["2", "3"]

    @pytest.mark.parametrize("n,page,size", [(0, 1, 3), (5, 1, 3), (5, 2, 3), (5, 3, 3), (7, 2, 10)])
    def test_output_length(self, n, page, size):
        items = [_product(str(i)) for i in range(n)]
        feed = build_feed(_user(), items, [], {}, page=page, page_size=size, now=NOW)
        skip = (page - 1) * size
        assert len(feed.items) == min(size, max(0, n - skip))

    def test_joins_owner_summary(self):
        feed = build_feed(
            _user(following=["A"]),
            [_product("X", artist_id="A")],
            [],
            {"A": _artisan("A")},
            now=NOW,
        )
        owner = feed.items[0].owner
        assert owner is not None
        assert owner.name == "Artist A"
        assert owner.avatar == "/avatars/A.png"
        assert owner.is_verified is True

    def test_missing_owner_leaves_summary_empty(self):
        feed = build_feed(_user(), [_product("X", artist_id="ghost")], [], {}, now=NOW)
        assert feed.items[0].owner is None

    def test_echoes_preferences(self):
        favorites = [_product("f1", category=Category.CERAMICS), _product("f2", category=Category.WOODWORK)]
        feed = build_feed(_user(following=["A", "B"]), [], favorites, {}, now=NOW)
        assert feed.preferences.following_count == 2
        assert feed.preferences.favorite_categories == [Category.CERAMICS, Category.WOODWORK]

    def test_favorite_categories_boost_candidates(self):
        favorites = [_product("fav", category=Category.TEXTILES)]
        textile = _product("t", category=Category.TEXTILES)
        pottery = _product("p", category=Category.POTTERY)
        feed = build_feed(_user(), [pottery, textile], favorites, {}, now=NOW)
        assert [s.product.product_id for s in feed.items] == ["t", "p"]

    def test_idempotent_with_frozen_clock(self):
        items = [_product(str(i), likes=i % 3, views=i * 7, age_days=i) for i in range(12)]
        args = (_user(following=["A"]), items, items[:2], {"A": _artisan("A")})
        first = build_feed(*args, page=1, page_size=5, now=NOW)
        second = build_feed(*args, page=1, page_size=5, now=NOW)
        assert first == second

    def test_requires_actor(self):
        with pytest.raises(ValueError):
            build_feed(None, [], [], {}, now=NOW)

    def test_to_dict_shape(self):
        feed = build_feed(_user(following=["A"]), [_product("X")], [], {"A": _artisan("A")}, now=NOW)
        body = feed.to_dict()
        assert body["meta"] == {
            "page": 1,
            "limit": 10,
            "user_preferences": {"following_count": 1, "favorite_categories": []},
        }
        assert body["data"][0]["id"] == "X"
        assert body["data"][0]["artist"]["name"] == "Artist A"
