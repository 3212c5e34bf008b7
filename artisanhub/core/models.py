"""
Core domain models for the ArtisanHub marketplace.

All dataclasses are consolidated here for:
- Single source of truth for type definitions
- Easy imports across modules
- Clear domain model documentation

Models are organized by domain area. Timestamps are timezone-aware UTC.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# ============================================================================
# ENUMS
# ============================================================================


class Category(str, Enum):
    """Craft categories a product can be listed under."""

    POTTERY = "Pottery"
    TEXTILES = "Textiles"
    WOODWORK = "Woodwork"
    JEWELRY = "Jewelry"
    PAINTINGS = "Paintings"
    SCULPTURES = "Sculptures"
    METALWORK = "Metalwork"
    CERAMICS = "Ceramics"


class UserType(str, Enum):
    CUSTOMER = "customer"
    ARTISAN = "artisan"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class ContentType(str, Enum):
    """Kinds of community post."""

    POST = "post"
    BLOG = "blog"
    VIDEO = "video"


# ============================================================================
# ACCOUNTS
# ============================================================================


@dataclass
class User:
    """
    A marketplace account: either a customer or an artisan.

    ``following`` holds the ids of followed artisans and ``favorites`` the ids
    of favorited products; together they are the preference signals the
    personalized feed reads.
    """

    user_id: str
    name: str
    email: str
    user_type: UserType = UserType.CUSTOMER
    avatar: str | None = None
    bio: str | None = None
    location: str | None = None
    is_verified: bool = False
    followers: list[str] = field(default_factory=list)
    following: list[str] = field(default_factory=list)
    favorites: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_artisan(self) -> bool:
        return self.user_type == UserType.ARTISAN


@dataclass(frozen=True)
class OwnerSummary:
    """Minimal owner display fields joined into product listings."""

    user_id: str
    name: str
    avatar: str | None = None
    is_verified: bool = False
    user_type: UserType = UserType.ARTISAN

    @classmethod
    def from_user(cls, user: User) -> OwnerSummary:
        return cls(
            user_id=user.user_id,
            name=user.name,
            avatar=user.avatar,
            is_verified=user.is_verified,
            user_type=user.user_type,
        )


# ============================================================================
# CATALOG
# ============================================================================


@dataclass
class Product:
    """
    A product listed by an artisan.

    ``likes`` stores the ids of users who liked the product; the popularity
    counter used for ranking is its length.
    """

    product_id: str
    artist_id: str
    artist_name: str
    title: str
    description: str
    category: Category
    price: float
    likes: list[str] = field(default_factory=list)
    views: int = 0
    is_available: bool = True
    is_featured: bool = False
    tags: list[str] = field(default_factory=list)
    techniques: list[str] = field(default_factory=list)
    materials: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def like_count(self) -> int:
        return len(self.likes)

    def to_dict(self) -> dict:
        """Serializable view used by API responses."""
        return {
            "id": self.product_id,
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "price": self.price,
            "artist_id": self.artist_id,
            "artist_name": self.artist_name,
            "likes_count": self.like_count,
            "views": self.views,
            "is_available": self.is_available,
            "is_featured": self.is_featured,
            "tags": list(self.tags),
            "techniques": list(self.techniques),
            "materials": list(self.materials),
            "created_at": self.created_at.isoformat(),
        }


# ============================================================================
# FEED MODELS
# ============================================================================


@dataclass(frozen=True)
class ScoredProduct:
    """A product paired with its per-request feed score. Never persisted."""

    product: Product
    score: float
    owner: OwnerSummary | None = None

    def to_dict(self) -> dict:
        data = self.product.to_dict()
        data["score"] = round(self.score, 4)
        if self.owner is not None:
            data["artist"] = {
                "id": self.owner.user_id,
                "name": self.owner.name,
                "avatar": self.owner.avatar,
                "is_verified": self.owner.is_verified,
                "user_type": self.owner.user_type.value,
            }
        return data


@dataclass(frozen=True)
class FeedPreferences:
    """Preference signals echoed back alongside a feed page."""

    following_count: int
    favorite_categories: list[Category]


@dataclass(frozen=True)
class FeedPage:
    """One page of the personalized feed plus request metadata."""

    items: list[ScoredProduct]
    page: int
    limit: int
    preferences: FeedPreferences

    def to_dict(self) -> dict:
        return {
            "data": [item.to_dict() for item in self.items],
            "meta": {
                "page": self.page,
                "limit": self.limit,
                "user_preferences": {
                    "following_count": self.preferences.following_count,
                    "favorite_categories": [
                        c.value for c in self.preferences.favorite_categories
                    ],
                },
            },
        }


@dataclass(frozen=True)
class Recommendations:
    """General (non-feed) recommendations with optional AI suggestion text."""

    products: list[Product]
    ai_suggestions: str | None
    categories: list[Category]
    liked_product_ids: list[str]
    price_range: str

    def to_dict(self) -> dict:
        return {
            "products": [p.to_dict() for p in self.products],
            "ai_suggestions": self.ai_suggestions,
            "user_preferences": {
                "categories": [c.value for c in self.categories],
                "liked_products": list(self.liked_product_ids),
                "price_range": self.price_range,
            },
        }


@dataclass(frozen=True)
class ListingPage:
    """One page of the product catalog listing."""

    products: list[Product]
    total: int
    page: int
    limit: int

    @property
    def has_next(self) -> bool:
        return (self.page - 1) * self.limit + self.limit < self.total

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def to_dict(self) -> dict:
        pagination: dict[str, dict] = {}
        if self.has_next:
            pagination["next"] = {"page": self.page + 1, "limit": self.limit}
        if self.has_prev:
            pagination["prev"] = {"page": self.page - 1, "limit": self.limit}
        return {
            "count": len(self.products),
            "total": self.total,
            "pagination": pagination,
            "data": [p.to_dict() for p in self.products],
        }


# ============================================================================
# INSIGHT MODELS
# ============================================================================


@dataclass(frozen=True)
class CategoryStats:
    """Aggregate figures for one category."""

    category: Category
    count: int
    average_price: float
    total_likes: int
    average_likes: float


@dataclass(frozen=True)
class MarketOverview:
    """Aggregate figures across every matched product."""

    total_products: int
    average_price: float
    total_likes: int
    total_views: int
    categories: list[Category]
    min_price: float | None
    max_price: float | None


@dataclass(frozen=True)
class InsightFilters:
    """Filters applied before aggregating market insights."""

    category: Category | None = None
    min_price: float | None = None
    max_price: float | None = None
    timeframe: str | None = None


@dataclass(frozen=True)
class MarketInsights:
    overview: MarketOverview
    category_stats: list[CategoryStats]
    suggested_price_band: tuple[float, float]
    analysis: str
    filters: InsightFilters

    def to_dict(self) -> dict:
        o = self.overview
        return {
            "market_insights": {
                "total_products": o.total_products,
                "average_price": round(o.average_price, 2),
                "total_likes": o.total_likes,
                "total_views": o.total_views,
                "categories": [c.value for c in o.categories],
                "min_price": o.min_price,
                "max_price": o.max_price,
            },
            "category_stats": [
                {
                    "category": s.category.value,
                    "count": s.count,
                    "average_price": round(s.average_price, 2),
                    "total_likes": s.total_likes,
                    "average_likes": round(s.average_likes, 2),
                }
                for s in self.category_stats
            ],
            "suggested_price_band": [
                round(self.suggested_price_band[0], 2),
                round(self.suggested_price_band[1], 2),
            ],
            "ai_analysis": self.analysis,
            "filters": {
                "category": self.filters.category.value if self.filters.category else None,
                "min_price": self.filters.min_price,
                "max_price": self.filters.max_price,
                "timeframe": self.filters.timeframe,
            },
        }


@dataclass(frozen=True)
class ArtisanStats:
    """Engagement totals for one artisan across all their products."""

    artisan: User
    total_likes: int
    total_views: int
    total_products: int

    @property
    def followers_count(self) -> int:
        return len(self.artisan.followers)

    def to_dict(self) -> dict:
        a = self.artisan
        return {
            "id": a.user_id,
            "name": a.name,
            "avatar": a.avatar,
            "bio": a.bio,
            "location": a.location,
            "is_verified": a.is_verified,
            "total_likes": self.total_likes,
            "total_views": self.total_views,
            "total_products": self.total_products,
            "followers_count": self.followers_count,
        }


# ============================================================================
# COMMUNITY
# ============================================================================


@dataclass
class Post:
    """
    A community post by any user, optionally showcasing one product.

    ``comment_ids`` lists top-level comments only; replies hang off their
    parent comment.
    """

    post_id: str
    author_id: str
    author_name: str
    title: str
    content: str
    content_type: ContentType = ContentType.POST
    product_id: str | None = None
    likes: list[str] = field(default_factory=list)
    comment_ids: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    is_published: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    @property
    def like_count(self) -> int:
        return len(self.likes)

    def to_dict(self) -> dict:
        return {
            "id": self.post_id,
            "title": self.title,
            "content": self.content,
            "content_type": self.content_type.value,
            "author_id": self.author_id,
            "author_name": self.author_name,
            "product_id": self.product_id,
            "tags": list(self.tags),
            "likes_count": self.like_count,
            "comments_count": len(self.comment_ids),
            "is_published": self.is_published,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class Comment:
    """A comment on a post, or a reply when ``parent_id`` is set."""

    comment_id: str
    post_id: str
    author_id: str
    author_name: str
    content: str
    parent_id: str | None = None
    reply_ids: list[str] = field(default_factory=list)
    likes: list[str] = field(default_factory=list)
    is_edited: bool = False
    edited_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def like_count(self) -> int:
        return len(self.likes)

    def to_dict(self) -> dict:
        return {
            "id": self.comment_id,
            "post_id": self.post_id,
            "author_id": self.author_id,
            "author_name": self.author_name,
            "content": self.content,
            "parent_id": self.parent_id,
            "replies_count": len(self.reply_ids),
            "likes_count": self.like_count,
            "is_edited": self.is_edited,
            "edited_at": self.edited_at.isoformat() if self.edited_at else None,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class PostPage:
    """One page of published posts, each with its latest comments."""

    posts: list[Post]
    total: int
    recent_comments: dict[str, list[Comment]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = []
        for post in self.posts:
            item = post.to_dict()
            item["comments"] = [
                c.to_dict() for c in self.recent_comments.get(post.post_id, [])
            ]
            data.append(item)
        return {"count": len(self.posts), "total": self.total, "data": data}


# ============================================================================
# ORDERS
# ============================================================================


@dataclass
class Order:
    """A purchase of one product by a buyer."""

    order_id: str
    product_id: str
    buyer_id: str
    artist_id: str
    price: float
    payment_method: str = "Digital Payment"
    shipping_address: str = "Digital Delivery"
    status: OrderStatus = OrderStatus.PENDING
    order_date: datetime = field(default_factory=utcnow)
    notes: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.order_id,
            "product_id": self.product_id,
            "buyer_id": self.buyer_id,
            "artist_id": self.artist_id,
            "price": self.price,
            "payment_method": self.payment_method,
            "shipping_address": self.shipping_address,
            "status": self.status.value,
            "order_date": self.order_date.isoformat(),
            "notes": self.notes,
        }
