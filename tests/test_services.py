"""Tests for artisanhub.services — orchestration over the in-memory store."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from artisanhub.adapters.repository import InMemoryRepository
from artisanhub.core.models import Category, ContentType, OrderStatus, Product, User, UserType
from artisanhub.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from artisanhub.services import (
    Advisor,
    FeedService,
    InsightsService,
    MarketplaceService,
    PostService,
    RecommendationService,
    SimilarProductsService,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _product(
    product_id: str,
    artist_id: str,
    category: Category,
    likes: int = 0,
    views: int = 0,
    age_days: int = 20,
    price: float = 40.0,
    available: bool = True,
) -> Product:
    return Product(
        product_id=product_id,
        artist_id=artist_id,
        artist_name=f"Artist {artist_id}",
        title=f"{category.value} {product_id}",
        description="handmade",
        category=category,
        price=price,
        likes=[f"fan{i}" for i in range(likes)],
        views=views,
        is_available=available,
        created_at=NOW - timedelta(days=age_days),
    )


@pytest.fixture
def repo():
    r = InMemoryRepository()
    r.add_user(User("me", "Maya", "maya@example.com", following=["A"], favorites=["b1"]))
    r.add_user(User("A", "Asha", "asha@example.com", user_type=UserType.ARTISAN, is_verified=True))
    r.add_user(User("B", "Kofi", "kofi@example.com", user_type=UserType.ARTISAN))
    r.add_user(User("C", "Ingrid", "ingrid@example.com", user_type=UserType.ARTISAN))
    r.add_product(_product("a1", "A", Category.POTTERY, likes=1, age_days=2))
    r.add_product(_product("a2", "A", Category.POTTERY, likes=0, age_days=40))
    r.add_product(_product("b1", "B", Category.JEWELRY, likes=30, views=100, age_days=10, price=120))
    r.add_product(_product("b2", "B", Category.JEWELRY, likes=2, age_days=15, price=80))
    r.add_product(_product("c1", "C", Category.TEXTILES, likes=50, views=600, age_days=60))
    r.add_product(_product("own", "me", Category.POTTERY, likes=99))
    return r


def _advisor(reply: str | None = None, error: Exception | None = None) -> Advisor:
    client = MagicMock(model="test")
    if error is not None:
        client.generate.side_effect = error
    else:
        client.generate.return_value = (reply or "", 10)
    return Advisor(client)


class TestFeedService:
    def test_ranks_followed_and_preferred_first(self, repo):
        feed = FeedService(repo).personalized_feed("me", page=1, limit=10, now=NOW)
        ids = [s.product.product_id for s in feed.items]
        # a1: 12.1, c1: 11, a2: 10, b1: 9, b2: 5.2
        assert ids == ["a1", "c1", "a2", "b1", "b2"]

    def test_excludes_own_products(self, repo):
        feed = FeedService(repo).personalized_feed("me", now=NOW)
        assert "own" not in {s.product.product_id for s in feed.items}

    def test_owner_summary_joined(self, repo):
        feed = FeedService(repo).personalized_feed("me", now=NOW)
        top = feed.items[0]
        assert top.owner.name == "Asha"
        assert top.owner.is_verified is True

    def test_preferences_echoed(self, repo):
        feed = FeedService(repo).personalized_feed("me", now=NOW)
        assert feed.preferences.following_count == 1
        assert feed.preferences.favorite_categories == [Category.JEWELRY]

    def test_pagination(self, repo):
        feed = FeedService(repo).personalized_feed("me", page=2, limit=2, now=NOW)
        assert [s.product.product_id for s in feed.items] == ["a2", "b1"]

    def test_unknown_user(self, repo):
        with pytest.raises(UnauthorizedError):
            FeedService(repo).personalized_feed("ghost", now=NOW)

    @pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (1, 1000)])
    def test_invalid_paging(self, repo, page, limit):
        with pytest.raises(ValidationError):
            FeedService(repo).personalized_feed("me", page=page, limit=limit, now=NOW)

    def test_empty_pool(self):
        r = InMemoryRepository()
        r.add_user(User("solo", "Solo", "solo@example.com"))
        feed = FeedService(r).personalized_feed("solo", now=NOW)
        assert feed.items == []


class TestInsightsService:
    def test_market_insights_with_filters(self, repo):
        insights = InsightsService(repo).market_insights(
            category="Jewelry", price_range="100-200", timeframe="month", now=NOW
        )
        assert insights.overview.total_products == 1
        assert insights.category_stats[0].category == Category.JEWELRY
        assert insights.filters.min_price == 100

    def test_all_means_no_filter(self, repo):
        insights = InsightsService(repo).market_insights(category="all", price_range="all", now=NOW)
        assert insights.overview.total_products == 6

    def test_unknown_timeframe_ignored(self, repo):
        insights = InsightsService(repo).market_insights(timeframe="decade", now=NOW)
        assert insights.filters.timeframe is None
        assert insights.overview.total_products == 6

    def test_bad_price_range(self, repo):
        with pytest.raises(ValidationError):
            InsightsService(repo).market_insights(price_range="cheap", now=NOW)

    def test_bad_category(self, repo):
        with pytest.raises(ValidationError):
            InsightsService(repo).market_insights(category="Glasswork", now=NOW)

    def test_trending_window(self, repo):
        ids = [p.product_id for p in InsightsService(repo).trending(now=NOW)]
        assert ids == ["own", "b1", "b2", "a1"]

    def test_top_artisans(self, repo):
        stats = InsightsService(repo).top_artisans()
        assert [s.artisan.user_id for s in stats] == ["C", "B", "A"]


class TestSimilarProductsService:
    def test_uses_validated_ai_suggestions(self, repo):
        service = SimilarProductsService(repo, _advisor("b2, ghost, c1"))
        ids = [p.product_id for p in service.similar("b1")]
        # Suggestions come back in pool order; no other Jewelry product is left to pad with
        assert ids[:2] == ["c1", "b2"]
        assert len(ids) == 2

    def test_falls_back_when_ai_fails(self, repo):
        service = SimilarProductsService(repo, _advisor(error=TimeoutError("slow")))
        assert [p.product_id for p in service.similar("a1")] == ["a2", "own"]

    def test_falls_back_when_ai_disabled(self, repo):
        service = SimilarProductsService(repo, Advisor(None))
        assert [p.product_id for p in service.similar("b2")] == ["b1"]

    def test_unknown_product(self, repo):
        with pytest.raises(NotFoundError):
            SimilarProductsService(repo, Advisor(None)).similar("ghost")


class TestRecommendationService:
    def test_popular_products_and_ai_text(self, repo):
        advisor = _advisor("Try the Textiles collection.")
        result = RecommendationService(repo, advisor).recommend("me", price_range="50-150")
        assert [p.product_id for p in result.products] == ["c1", "b1", "b2", "a1", "a2"]
        assert result.ai_suggestions == "Try the Textiles collection."
        assert result.categories == [Category.JEWELRY]
        assert result.liked_product_ids == ["b1"]
        assert result.price_range == "50-150"

    def test_ai_failure_still_returns_products(self, repo):
        result = RecommendationService(repo, _advisor(error=ConnectionError("down"))).recommend("me")
        assert result.ai_suggestions is None
        assert len(result.products) == 5
        assert result.price_range == "all"

    def test_unknown_user(self, repo):
        with pytest.raises(UnauthorizedError):
            RecommendationService(repo, Advisor(None)).recommend("ghost")


class TestMarketplaceCatalog:
    def test_listing_defaults_newest_first(self, repo):
        page = MarketplaceService(repo).list_products()
        assert [p.product_id for p in page.products] == ["a1", "b1", "b2", "own", "a2", "c1"]
        assert page.total == 6

    def test_listing_pagination_links(self, repo):
        page = MarketplaceService(repo).list_products(page=2, limit=2)
        body = page.to_dict()
        assert body["pagination"] == {
            "next": {"page": 3, "limit": 2},
            "prev": {"page": 1, "limit": 2},
        }
        assert body["count"] == 2

    def test_listing_sort_ascending_by_default(self, repo):
        page = MarketplaceService(repo).list_products(sort_by="price", category="Jewelry")
        assert [p.product_id for p in page.products] == ["b2", "b1"]

    def test_listing_sort_desc(self, repo):
        page = MarketplaceService(repo).list_products(sort_by="price", sort_order="desc", category="Jewelry")
        assert [p.product_id for p in page.products] == ["b1", "b2"]

    def test_listing_rejects_unknown_sort(self, repo):
        with pytest.raises(ValidationError):
            MarketplaceService(repo).list_products(sort_by="likes")

    def test_listing_rejects_inverted_price_bounds(self, repo):
        with pytest.raises(ValidationError):
            MarketplaceService(repo).list_products(min_price=100, max_price=10)

    def test_detail_counts_view_and_lists_related(self, repo):
        product, related = MarketplaceService(repo).product_detail("b1")
        assert product.views == 101
        assert [p.product_id for p in related] == ["b2"]

    def test_detail_unknown_product(self, repo):
        with pytest.raises(NotFoundError):
            MarketplaceService(repo).product_detail("ghost")


class TestMarketplaceEngagement:
    def test_like_toggle(self, repo):
        service = MarketplaceService(repo)
        assert service.toggle_like("a2", "me") == (True, 1)
        assert service.toggle_like("a2", "me") == (False, 0)

    def test_like_unknown_product(self, repo):
        with pytest.raises(NotFoundError):
            MarketplaceService(repo).toggle_like("ghost", "me")

    def test_favorite_toggle(self, repo):
        service = MarketplaceService(repo)
        assert service.toggle_favorite("me", "c1") is True
        assert service.toggle_favorite("me", "c1") is False

    def test_favorite_unknown_product(self, repo):
        with pytest.raises(NotFoundError):
            MarketplaceService(repo).toggle_favorite("me", "ghost")

    def test_follow(self, repo):
        MarketplaceService(repo).follow("me", "B")
        assert "B" in repo.get_user("me").following
        assert "me" in repo.get_user("B").followers

    def test_follow_unknown_user(self, repo):
        with pytest.raises(NotFoundError):
            MarketplaceService(repo).follow("me", "ghost")

    def test_follow_self(self, repo):
        with pytest.raises(ConflictError, match="cannot follow yourself"):
            MarketplaceService(repo).follow("me", "me")

    def test_follow_twice(self, repo):
        with pytest.raises(ConflictError, match="already following"):
            MarketplaceService(repo).follow("me", "A")

    def test_unfollow(self, repo):
        MarketplaceService(repo).unfollow("me", "A")
        assert repo.get_user("me").following == []

    def test_unfollow_when_not_following(self, repo):
        with pytest.raises(ConflictError, match="not following"):
            MarketplaceService(repo).unfollow("me", "B")


class TestMarketplaceOrders:
    def test_create_order_copies_price(self, repo):
        order = MarketplaceService(repo).create_order("me", "b1")
        assert order.price == 120
        assert order.artist_id == "B"
        assert order.status == OrderStatus.PENDING
        assert order.payment_method == "Digital Payment"
        assert order.shipping_address == "Digital Delivery"

    def test_create_order_unknown_product(self, repo):
        with pytest.raises(NotFoundError):
            MarketplaceService(repo).create_order("me", "ghost")

    def test_orders_listed_for_buyer_and_artisan(self, repo):
        service = MarketplaceService(repo)
        first = service.create_order("me", "b1")
        second = service.create_order("me", "a1", payment_method="Card")
        assert {o.order_id for o in service.buyer_orders("me")} == {first.order_id, second.order_id}
        assert [o.order_id for o in service.artisan_orders("B")] == [first.order_id]
        assert service.buyer_orders("me")[0].order_date >= service.buyer_orders("me")[1].order_date

    def test_unknown_buyer(self, repo):
        with pytest.raises(UnauthorizedError):
            MarketplaceService(repo).create_order("ghost", "b1")


class TestMarketplaceProductManagement:
    def test_create_product_uses_artisan_name(self, repo):
        product = MarketplaceService(repo).create_product(
            "A", "  Salt Bowl ", "Ash glaze", Category.CERAMICS, 25.0, tags=["bowl"]
        )
        assert product.artist_name == "Asha"
        assert product.title == "Salt Bowl"
        assert repo.get_product(product.product_id).tags == ["bowl"]

    def test_customer_cannot_create(self, repo):
        with pytest.raises(ForbiddenError, match="User role customer"):
            MarketplaceService(repo).create_product("me", "Cup", "", Category.POTTERY, 5.0)

    def test_negative_price_rejected(self, repo):
        with pytest.raises(ValidationError):
            MarketplaceService(repo).create_product("A", "Cup", "", Category.POTTERY, -1.0)

    def test_update_checks_existence_before_ownership(self, repo):
        service = MarketplaceService(repo)
        with pytest.raises(NotFoundError):
            service.update_product("ghost", "A", {"price": 1.0})
        with pytest.raises(ForbiddenError, match="update this product"):
            service.update_product("b1", "A", {"price": 1.0})

    def test_update_rejects_unknown_fields(self, repo):
        with pytest.raises(ValidationError, match="views"):
            MarketplaceService(repo).update_product("a1", "A", {"views": 1000})

    def test_empty_update_is_noop(self, repo):
        product = MarketplaceService(repo).update_product("a1", "A", {})
        assert product.price == 40.0

    def test_delete_own_product(self, repo):
        MarketplaceService(repo).delete_product("a1", "A")
        assert repo.get_product("a1") is None

    def test_featured_newest_first_capped(self, repo):
        for i in range(8):
            repo.add_product(_product(f"f{i}", "C", Category.TEXTILES, age_days=i))
            repo.update_product(f"f{i}", {"is_featured": True})
        featured = MarketplaceService(repo).featured_products()
        assert [p.product_id for p in featured] == [f"f{i}" for i in range(6)]

    def test_artist_products_count_orders(self, repo):
        service = MarketplaceService(repo)
        repo.update_product("a2", {"is_available": False})
        service.create_order("me", "a1")
        rows = service.artist_products("A")
        assert [(p.product_id, n) for p, n in rows] == [("a1", 1), ("a2", 0)]


class TestPostService:
    def test_create_post(self, repo):
        post = PostService(repo).create_post(
            "A", "Studio tour", "Come by", ContentType.VIDEO, product_id="a1"
        )
        assert post.author_name == "Asha"
        assert repo.get_post(post.post_id).content_type == ContentType.VIDEO

    def test_create_post_unknown_product(self, repo):
        with pytest.raises(NotFoundError, match="Product not found"):
            PostService(repo).create_post("A", "t", "c", product_id="ghost")

    def test_list_posts_unknown_content_type(self, repo):
        with pytest.raises(ValidationError, match="Unknown content type"):
            PostService(repo).list_posts(content_type="podcast")

    def test_list_posts_embeds_three_comments(self, repo):
        service = PostService(repo)
        post = service.create_post("A", "t", "c")
        for i in range(5):
            service.add_comment(post.post_id, "me", f"c{i}")
        page = service.list_posts()
        assert page.total == 1
        assert len(page.recent_comments[post.post_id]) == 3

    def test_update_post_rules(self, repo):
        service = PostService(repo)
        post = service.create_post("A", "t", "c")
        with pytest.raises(NotFoundError, match="Post not found"):
            service.update_post("ghost", "A", {"title": "x"})
        with pytest.raises(ForbiddenError, match="update this post"):
            service.update_post(post.post_id, "me", {"title": "x"})
        assert service.update_post(post.post_id, "A", {"title": "x"}).title == "x"

    def test_delete_post_removes_comments(self, repo):
        service = PostService(repo)
        post = service.create_post("A", "t", "c")
        comment = service.add_comment(post.post_id, "me", "nice")
        with pytest.raises(ForbiddenError, match="delete this post"):
            service.delete_post(post.post_id, "me")
        service.delete_post(post.post_id, "A")
        assert repo.get_comment(comment.comment_id) is None

    def test_toggle_post_like(self, repo):
        service = PostService(repo)
        post = service.create_post("A", "t", "c")
        assert service.toggle_post_like(post.post_id, "me") == (True, 1)
        assert service.toggle_post_like(post.post_id, "me") == (False, 0)

    def test_reply_must_share_post(self, repo):
        service = PostService(repo)
        first = service.create_post("A", "t", "c")
        second = service.create_post("A", "t2", "c2")
        comment = service.add_comment(first.post_id, "me", "hi")
        with pytest.raises(ValidationError):
            service.add_comment(second.post_id, "me", "hi", parent_id=comment.comment_id)

    def test_reply_to_unknown_comment(self, repo):
        service = PostService(repo)
        post = service.create_post("A", "t", "c")
        with pytest.raises(NotFoundError, match="Comment not found"):
            service.add_comment(post.post_id, "me", "hi", parent_id="ghost")

    def test_comment_author_rules(self, repo):
        service = PostService(repo)
        post = service.create_post("A", "t", "c")
        comment = service.add_comment(post.post_id, "me", "hi")
        with pytest.raises(ForbiddenError, match="update this comment"):
            service.edit_comment(comment.comment_id, "A", "edited")
        with pytest.raises(ForbiddenError, match="delete this comment"):
            service.delete_comment(comment.comment_id, "A")
        assert service.edit_comment(comment.comment_id, "me", "edited").is_edited is True
        assert service.toggle_comment_like(comment.comment_id, "A") == (True, 1)
