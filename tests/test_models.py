"""Tests for artisanhub.core.models — dataclass construction and serialization."""

from datetime import datetime, timezone

from artisanhub.core.models import (
    Category,
    Comment,
    ContentType,
    ListingPage,
    Order,
    OrderStatus,
    OwnerSummary,
    Post,
    PostPage,
    Product,
    Recommendations,
    ScoredProduct,
    User,
    UserType,
)

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _product(product_id: str = "P1", likes: list[str] | None = None) -> Product:
    return Product(
        product_id=product_id,
        artist_id="A1",
        artist_name="Asha",
        title="Stoneware Mug",
        description="Wheel-thrown",
        category=Category.POTTERY,
        price=28.5,
        likes=likes or [],
        created_at=NOW,
    )


class TestUser:
    def test_defaults(self):
        user = User(user_id="U1", name="Maya", email="maya@example.com")
        assert user.user_type == UserType.CUSTOMER
        assert user.is_artisan is False
        assert user.following == []
        assert user.favorites == []
        assert user.created_at.tzinfo is not None

    def test_artisan(self):
        user = User("A1", "Asha", "asha@example.com", user_type=UserType.ARTISAN)
        assert user.is_artisan is True

    def test_lists_not_shared_between_instances(self):
        a = User("U1", "A", "a@example.com")
        b = User("U2", "B", "b@example.com")
        a.following.append("X")
        assert b.following == []


class TestProduct:
    def test_like_count(self):
        assert _product(likes=["u1", "u2"]).like_count == 2

    def test_to_dict(self):
        body = _product(likes=["u1"]).to_dict()
        assert body["id"] == "P1"
        assert body["category"] == "Pottery"
        assert body["likes_count"] == 1
        assert body["created_at"] == NOW.isoformat()


class TestScoredProduct:
    def test_owner_embedded(self):
        owner = OwnerSummary.from_user(
            User("A1", "Asha", "asha@example.com", user_type=UserType.ARTISAN, is_verified=True)
        )
        body = ScoredProduct(product=_product(), score=12.34567, owner=owner).to_dict()
        assert body["score"] == 12.3457
        assert body["artist"] == {
            "id": "A1",
            "name": "Asha",
            "avatar": None,
            "is_verified": True,
            "user_type": "artisan",
        }

    def test_missing_owner_omitted(self):
        body = ScoredProduct(product=_product(), score=1.0).to_dict()
        assert "artist" not in body


class TestListingPage:
    def test_first_page_has_only_next(self):
        page = ListingPage(products=[_product()], total=3, page=1, limit=1)
        assert page.has_next is True
        assert page.has_prev is False
        assert page.to_dict()["pagination"] == {"next": {"page": 2, "limit": 1}}

    def test_last_page_has_only_prev(self):
        page = ListingPage(products=[_product()], total=3, page=3, limit=1)
        assert page.to_dict()["pagination"] == {"prev": {"page": 2, "limit": 1}}

    def test_single_page(self):
        body = ListingPage(products=[_product()], total=1, page=1, limit=12).to_dict()
        assert body["pagination"] == {}
        assert body["count"] == 1
        assert body["total"] == 1
        assert body["data"][0]["id"] == "P1"


class TestRecommendations:
    def test_to_dict(self):
        rec = Recommendations(
            products=[_product()],
            ai_suggestions=None,
            categories=[Category.JEWELRY, Category.TEXTILES],
            liked_product_ids=["P9"],
            price_range="all",
        )
        body = rec.to_dict()
        assert body["ai_suggestions"] is None
        assert body["user_preferences"] == {
            "categories": ["Jewelry", "Textiles"],
            "liked_products": ["P9"],
            "price_range": "all",
        }
        assert [p["id"] for p in body["products"]] == ["P1"]


class TestOrder:
    def test_defaults_and_to_dict(self):
        order = Order("O1", "P1", "U1", "A1", 28.5, order_date=NOW)
        assert order.status == OrderStatus.PENDING
        body = order.to_dict()
        assert body["status"] == "pending"
        assert body["payment_method"] == "Digital Payment"
        assert body["shipping_address"] == "Digital Delivery"
        assert body["order_date"] == NOW.isoformat()


class TestPost:
    def test_defaults_and_to_dict(self):
        post = Post("S1", "U1", "Maya", "Kiln day", "Opened it", likes=["A1"], created_at=NOW)
        assert post.content_type == ContentType.POST
        assert post.is_published is True
        body = post.to_dict()
        assert body["content_type"] == "post"
        assert body["likes_count"] == 1
        assert body["comments_count"] == 0
        assert body["updated_at"] is None


class TestComment:
    def test_reply_to_dict(self):
        comment = Comment("C2", "S1", "U1", "Maya", "Thanks", parent_id="C1", created_at=NOW)
        body = comment.to_dict()
        assert body["parent_id"] == "C1"
        assert body["is_edited"] is False
        assert body["edited_at"] is None
        assert body["created_at"] == NOW.isoformat()


class TestPostPage:
    def test_comments_embedded_per_post(self):
        first = Post("S1", "U1", "Maya", "a", "b", created_at=NOW)
        second = Post("S2", "U1", "Maya", "c", "d", created_at=NOW)
        comment = Comment("C1", "S1", "A1", "Asha", "Nice", created_at=NOW)
        body = PostPage(posts=[first, second], total=5, recent_comments={"S1": [comment]}).to_dict()
        assert body["count"] == 2
        assert body["total"] == 5
        assert [c["id"] for c in body["data"][0]["comments"]] == ["C1"]
        assert body["data"][1]["comments"] == []
