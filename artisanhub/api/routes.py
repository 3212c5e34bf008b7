"""
API route definitions.

Endpoints:
    GET    /health                              Deployment health check
    GET    /metrics                             Prometheus metrics
    GET    /api/recommendations                 Popular products + AI suggestions *
    GET    /api/recommendations/feed            Personalized feed *
    GET    /api/recommendations/similar/{id}    Similar products
    GET    /api/recommendations/trending        Trending products
    GET    /api/recommendations/top-artists     Top artisans
    GET    /api/recommendations/insights        Market insights
    GET    /api/products                        Catalog listing
    POST   /api/products                        List a product (artisans) *
    GET    /api/products/featured               Featured products
    GET    /api/products/artist/my-products     Requester's products (artisans) *
    GET    /api/products/{id}                   Product detail
    PUT    /api/products/{id}                   Update own product *
    DELETE /api/products/{id}                   Delete own product *
    POST   /api/products/{id}/like              Toggle like *
    POST   /api/products/{id}/favorite          Toggle favorite *
    POST   /api/users/{id}/follow               Follow a user *
    DELETE /api/users/{id}/follow               Unfollow a user *
    POST   /api/orders                          Place an order *
    GET    /api/orders/user                     Requester's purchases *
    GET    /api/orders/artisan                  Requester's sales *
    GET    /api/posts                           Community posts
    POST   /api/posts                           Publish a post *
    GET    /api/posts/{id}                      Post with comments
    PUT    /api/posts/{id}                      Update own post *
    DELETE /api/posts/{id}                      Delete own post *
    POST   /api/posts/{id}/like                 Toggle post like *
    POST   /api/posts/{id}/comments             Comment or reply *
    PUT    /api/comments/{id}                   Edit own comment *
    DELETE /api/comments/{id}                   Delete own comment *
    POST   /api/comments/{id}/like              Toggle comment like *

Endpoints marked * identify the requester by the X-User-Id header; the rest
are public. Every /api endpoint answers with ``{"success": true, "data": ...}``.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Header, Query, Request, Response
from pydantic import BaseModel, Field

from artisanhub.api.metrics import metrics_response, record_error
from artisanhub.config import (
    DEFAULT_FEED_PAGE_SIZE,
    DEFAULT_LISTING_PAGE_SIZE,
    DEFAULT_POSTS_PAGE_SIZE,
    REQUEST_TIMEOUT_SECONDS,
    USER_ID_HEADER,
    get_logger,
)
from artisanhub.core import Category, ContentType
from artisanhub.exceptions import UnauthorizedError
from artisanhub.services import (
    Advisor,
    FeedService,
    InsightsService,
    MarketplaceService,
    PostService,
    RecommendationService,
    SimilarProductsService,
)

logger = get_logger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class OrderRequest(BaseModel):
    """Request body for POST /api/orders."""

    product_id: str = Field(..., min_length=1, alias="productId")
    payment_method: str | None = Field(None, alias="paymentMethod")
    shipping_address: str | None = Field(None, alias="shippingAddress")
    notes: str | None = Field(None, max_length=1000)

    model_config = {"populate_by_name": True}


class ProductCreateRequest(BaseModel):
    """Request body for POST /api/products."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    category: Category
    price: float = Field(..., ge=0)
    tags: list[str] = Field(default_factory=list)
    techniques: list[str] = Field(default_factory=list)
    materials: list[str] = Field(default_factory=list)
    is_available: bool = Field(True, alias="isAvailable")
    is_featured: bool = Field(False, alias="isFeatured")

    model_config = {"populate_by_name": True}


class ProductUpdateRequest(BaseModel):
    """Request body for PUT /api/products/{id}; only fields sent are changed."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    category: Category | None = None
    price: float | None = Field(None, ge=0)
    tags: list[str] | None = None
    techniques: list[str] | None = None
    materials: list[str] | None = None
    is_available: bool | None = Field(None, alias="isAvailable")
    is_featured: bool | None = Field(None, alias="isFeatured")

    model_config = {"populate_by_name": True}


class PostCreateRequest(BaseModel):
    """Request body for POST /api/posts."""

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)
    content_type: ContentType = Field(ContentType.POST, alias="contentType")
    product_id: str | None = Field(None, alias="product")
    tags: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class PostUpdateRequest(BaseModel):
    """Request body for PUT /api/posts/{id}."""

    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = Field(None, min_length=1, max_length=5000)
    content_type: ContentType | None = Field(None, alias="contentType")
    tags: list[str] | None = None

    model_config = {"populate_by_name": True}


class CommentRequest(BaseModel):
    """Request body for POST /api/posts/{id}/comments."""

    content: str = Field(..., min_length=1, max_length=1000)
    parent_id: str | None = Field(None, alias="parentComment")

    model_config = {"populate_by_name": True}


class CommentEditRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)


class HealthResponse(BaseModel):
    """Health check response with component status."""

    status: str
    store_connected: bool
    ai_enabled: bool


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def requester_id(
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
) -> str:
    """Resolve the requesting user's id from the identity header."""
    if not x_user_id or not x_user_id.strip():
        raise UnauthorizedError("Not authorized, missing user id")
    return x_user_id.strip()


def _ok(data, **extra) -> dict:
    return {"success": True, "data": data, **extra}


def _marketplace(request: Request) -> MarketplaceService:
    return MarketplaceService(request.app.state.repository)


def _posts(request: Request) -> PostService:
    return PostService(request.app.state.repository)


def _changes(body: BaseModel) -> dict:
    """Fields the client actually sent, minus explicit nulls."""
    return {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}


async def _with_ai_timeout(name: str, run, fallback):
    """Run an AI-assisted call in a worker thread; degrade to ``fallback`` on timeout."""
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(run), timeout=REQUEST_TIMEOUT_SECONDS
        )
    except asyncio.TimeoutError:
        logger.warning(
            "%s timed out after %.0fs, answering without AI", name, REQUEST_TIMEOUT_SECONDS
        )
        record_error("timeout")
        return await asyncio.to_thread(fallback)


# ---------------------------------------------------------------------------
# Operational endpoints
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    """Deployment readiness check.

    The store is required for every endpoint; AI only enriches answers, so
    a missing LLM client leaves the service degraded rather than down.
    """
    app = request.app
    try:
        store_ok = await asyncio.to_thread(app.state.repository.ping)
    except Exception:
        logger.exception("Health check: store unreachable")
        store_ok = False
    ai_ok = bool(app.state.advisor and app.state.advisor.enabled)

    if store_ok and ai_ok:
        status = "healthy"
    elif store_ok:
        status = "degraded"
    else:
        status = "unhealthy"

    return {"status": status, "store_connected": store_ok, "ai_enabled": ai_ok}


@router.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    body, content_type = metrics_response()
    return Response(content=body, media_type=content_type)


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


@router.get("/api/recommendations/feed")
def personalized_feed(
    request: Request,
    page: int = 1,
    limit: int = DEFAULT_FEED_PAGE_SIZE,
    user_id: str = Depends(requester_id),
):
    """Products ranked for the requester by follows, favorites, engagement and recency."""
    feed = FeedService(request.app.state.repository).personalized_feed(
        user_id, page=page, limit=limit
    )
    body = feed.to_dict()
    return {"success": True, **body}


@router.get("/api/recommendations")
async def recommendations(
    request: Request,
    price_range: str | None = Query(None, alias="priceRange"),
    user_id: str = Depends(requester_id),
):
    """Popular products plus optional AI artwork suggestions."""
    repository = request.app.state.repository
    service = RecommendationService(repository, request.app.state.advisor)
    offline = RecommendationService(repository, Advisor(None))

    result = await _with_ai_timeout(
        "Recommendations",
        lambda: service.recommend(user_id, price_range),
        lambda: offline.recommend(user_id, price_range),
    )
    return _ok(result.to_dict())


@router.get("/api/recommendations/similar/{product_id}")
async def similar_products(request: Request, product_id: str):
    """Up to four products similar to ``product_id``."""
    repository = request.app.state.repository
    service = SimilarProductsService(repository, request.app.state.advisor)
    offline = SimilarProductsService(repository, Advisor(None))

    products = await _with_ai_timeout(
        "Similar products",
        lambda: service.similar(product_id),
        lambda: offline.similar(product_id),
    )
    return _ok([p.to_dict() for p in products])


@router.get("/api/recommendations/trending")
def trending_products(request: Request):
    products = InsightsService(request.app.state.repository).trending()
    return _ok([p.to_dict() for p in products])


@router.get("/api/recommendations/top-artists")
def top_artists(request: Request):
    stats = InsightsService(request.app.state.repository).top_artisans()
    return _ok([s.to_dict() for s in stats])


@router.get("/api/recommendations/insights")
def market_insights(
    request: Request,
    category: str | None = None,
    price_range: str | None = Query(None, alias="priceRange"),
    timeframe: str | None = None,
):
    """Aggregate price and engagement figures with a plain-text summary."""
    insights = InsightsService(request.app.state.repository).market_insights(
        category=category,
        price_range=price_range,
        timeframe=timeframe,
    )
    return _ok(insights.to_dict())


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


@router.get("/api/products")
def list_products(
    request: Request,
    page: int = 1,
    limit: int = DEFAULT_LISTING_PAGE_SIZE,
    category: str | None = None,
    search: str | None = None,
    min_price: float | None = Query(None, alias="minPrice", ge=0),
    max_price: float | None = Query(None, alias="maxPrice", ge=0),
    artist: str | None = None,
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_order: str | None = Query(None, alias="sortOrder"),
):
    listing = _marketplace(request).list_products(
        page=page,
        limit=limit,
        category=category,
        search=search,
        min_price=min_price,
        max_price=max_price,
        artist=artist,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return {"success": True, **listing.to_dict()}


@router.post("/api/products", status_code=201)
def create_product(
    request: Request,
    body: ProductCreateRequest,
    user_id: str = Depends(requester_id),
):
    """List a new product; artisans only."""
    product = _marketplace(request).create_product(
        artist_id=user_id,
        title=body.title,
        description=body.description,
        category=body.category,
        price=body.price,
        tags=body.tags,
        techniques=body.techniques,
        materials=body.materials,
        is_available=body.is_available,
        is_featured=body.is_featured,
    )
    return _ok(product.to_dict())


@router.get("/api/products/featured")
def featured_products(request: Request):
    products = _marketplace(request).featured_products()
    return _ok([p.to_dict() for p in products])


@router.get("/api/products/artist/my-products")
def my_products(request: Request, user_id: str = Depends(requester_id)):
    """The requesting artisan's products, available or not, with order counts."""
    rows = _marketplace(request).artist_products(user_id)
    data = [{**product.to_dict(), "order_count": count} for product, count in rows]
    return _ok(data, count=len(data))


@router.get("/api/products/{product_id}")
def product_detail(request: Request, product_id: str):
    """Product detail; counts as a view."""
    product, related = _marketplace(request).product_detail(product_id)
    return _ok(
        {
            "product": product.to_dict(),
            "similar_products": [p.to_dict() for p in related],
        }
    )


@router.put("/api/products/{product_id}")
def update_product(
    request: Request,
    product_id: str,
    body: ProductUpdateRequest,
    user_id: str = Depends(requester_id),
):
    product = _marketplace(request).update_product(product_id, user_id, _changes(body))
    return _ok(product.to_dict())


@router.delete("/api/products/{product_id}")
def delete_product(
    request: Request,
    product_id: str,
    user_id: str = Depends(requester_id),
):
    _marketplace(request).delete_product(product_id, user_id)
    return {"success": True, "message": "Product deleted successfully"}


@router.post("/api/products/{product_id}/like")
def like_product(
    request: Request,
    product_id: str,
    user_id: str = Depends(requester_id),
):
    liked, count = _marketplace(request).toggle_like(product_id, user_id)
    return _ok({"liked": liked, "likes_count": count})


@router.post("/api/products/{product_id}/favorite")
def favorite_product(
    request: Request,
    product_id: str,
    user_id: str = Depends(requester_id),
):
    favorited = _marketplace(request).toggle_favorite(user_id, product_id)
    message = "Added to favorites" if favorited else "Removed from favorites"
    return _ok({"favorited": favorited, "message": message})


# ---------------------------------------------------------------------------
# Follows
# ---------------------------------------------------------------------------


@router.post("/api/users/{target_id}/follow")
def follow_user(
    request: Request,
    target_id: str,
    user_id: str = Depends(requester_id),
):
    _marketplace(request).follow(user_id, target_id)
    return {"success": True, "message": "User followed successfully"}


@router.delete("/api/users/{target_id}/follow")
def unfollow_user(
    request: Request,
    target_id: str,
    user_id: str = Depends(requester_id),
):
    _marketplace(request).unfollow(user_id, target_id)
    return {"success": True, "message": "User unfollowed successfully"}


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@router.post("/api/orders", status_code=201)
def create_order(
    request: Request,
    body: OrderRequest,
    user_id: str = Depends(requester_id),
):
    order = _marketplace(request).create_order(
        buyer_id=user_id,
        product_id=body.product_id,
        payment_method=body.payment_method,
        shipping_address=body.shipping_address,
        notes=body.notes,
    )
    return _ok(
        order.to_dict(),
        message="Order placed successfully! Artisan has been notified.",
    )


@router.get("/api/orders/user")
def buyer_orders(request: Request, user_id: str = Depends(requester_id)):
    orders = _marketplace(request).buyer_orders(user_id)
    return _ok([o.to_dict() for o in orders])


@router.get("/api/orders/artisan")
def artisan_orders(request: Request, user_id: str = Depends(requester_id)):
    orders = _marketplace(request).artisan_orders(user_id)
    return _ok([o.to_dict() for o in orders])


# ---------------------------------------------------------------------------
# Community
# ---------------------------------------------------------------------------


@router.get("/api/posts")
def list_posts(
    request: Request,
    page: int = 1,
    limit: int = DEFAULT_POSTS_PAGE_SIZE,
    content_type: str | None = Query(None, alias="contentType"),
    author: str | None = None,
    search: str | None = None,
):
    """Published posts, newest first, each with its latest comments."""
    listing = _posts(request).list_posts(
        page=page,
        limit=limit,
        content_type=content_type,
        author=author,
        search=search,
    )
    return {"success": True, **listing.to_dict()}


@router.post("/api/posts", status_code=201)
def create_post(
    request: Request,
    body: PostCreateRequest,
    user_id: str = Depends(requester_id),
):
    post = _posts(request).create_post(
        author_id=user_id,
        title=body.title,
        content=body.content,
        content_type=body.content_type,
        product_id=body.product_id,
        tags=body.tags,
    )
    return _ok(post.to_dict())


@router.get("/api/posts/{post_id}")
def get_post(request: Request, post_id: str):
    post, comments = _posts(request).get_post(post_id)
    return _ok({**post.to_dict(), "comments": [c.to_dict() for c in comments]})


@router.put("/api/posts/{post_id}")
def update_post(
    request: Request,
    post_id: str,
    body: PostUpdateRequest,
    user_id: str = Depends(requester_id),
):
    post = _posts(request).update_post(post_id, user_id, _changes(body))
    return _ok(post.to_dict())


@router.delete("/api/posts/{post_id}")
def delete_post(
    request: Request,
    post_id: str,
    user_id: str = Depends(requester_id),
):
    _posts(request).delete_post(post_id, user_id)
    return {"success": True, "message": "Post deleted successfully"}


@router.post("/api/posts/{post_id}/like")
def like_post(
    request: Request,
    post_id: str,
    user_id: str = Depends(requester_id),
):
    liked, count = _posts(request).toggle_post_like(post_id, user_id)
    return _ok({"liked": liked, "likes_count": count})


@router.post("/api/posts/{post_id}/comments", status_code=201)
def add_comment(
    request: Request,
    post_id: str,
    body: CommentRequest,
    user_id: str = Depends(requester_id),
):
    """Comment on a post, or reply when ``parentComment`` is given."""
    comment = _posts(request).add_comment(
        post_id, user_id, body.content, parent_id=body.parent_id
    )
    return _ok(comment.to_dict())


@router.put("/api/comments/{comment_id}")
def edit_comment(
    request: Request,
    comment_id: str,
    body: CommentEditRequest,
    user_id: str = Depends(requester_id),
):
    comment = _posts(request).edit_comment(comment_id, user_id, body.content)
    return _ok(comment.to_dict())


@router.delete("/api/comments/{comment_id}")
def delete_comment(
    request: Request,
    comment_id: str,
    user_id: str = Depends(requester_id),
):
    _posts(request).delete_comment(comment_id, user_id)
    return {"success": True, "message": "Comment deleted successfully"}


@router.post("/api/comments/{comment_id}/like")
def like_comment(
    request: Request,
    comment_id: str,
    user_id: str = Depends(requester_id),
):
    liked, count = _posts(request).toggle_comment_like(comment_id, user_id)
    return _ok({"liked": liked, "likes_count": count})
