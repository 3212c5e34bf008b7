"""
Personalized feed scoring and ranking.

Each candidate product gets an additive relevance score built from the
requesting user's preference signals and the product's popularity:

    score = 10 * [owner is followed]
          +  5 * [category is a favorite category]
          + 0.1  * like_count
          + 0.01 * view_count
          +  2 * [created within the last 7 days]

Products are ordered by score descending, newest first on ties, then sliced
into pages. Everything here is a pure function of its arguments; "now" is an
explicit parameter so a frozen clock yields identical output.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timedelta

from artisanhub.config import (
    FOLLOWED_OWNER_BOOST,
    LIKE_WEIGHT,
    PREFERRED_CATEGORY_BOOST,
    RECENCY_BOOST,
    RECENCY_WINDOW_DAYS,
    VIEW_WEIGHT,
)
from artisanhub.core.models import (
    Category,
    FeedPage,
    FeedPreferences,
    OwnerSummary,
    Product,
    ScoredProduct,
    User,
    utcnow,
)


def score_product(
    product: Product,
    followed: frozenset[str] | set[str],
    preferred_categories: frozenset[Category] | set[Category],
    now: datetime,
) -> float:
    """
    Compute the feed relevance score of a single product.

    Args:
        product: Candidate product.
        followed: Ids of artisans the requester follows.
        preferred_categories: Categories of the requester's favorites.
        now: Wall-clock time of the request.

    Returns:
        Additive relevance score (higher is more relevant).
    """
    score = 0.0
    if product.artist_id in followed:
        score += FOLLOWED_OWNER_BOOST
    if product.category in preferred_categories:
        score += PREFERRED_CATEGORY_BOOST
    score += product.like_count * LIKE_WEIGHT
    score += product.views * VIEW_WEIGHT
    if product.created_at >= now - timedelta(days=RECENCY_WINDOW_DAYS):
        score += RECENCY_BOOST
    return score


def preferred_categories(favorite_products: Iterable[Product]) -> list[Category]:
    """
    Derive the requester's preferred categories from their favorites.

    Returns:
        Distinct categories in first-seen order.
    """
    seen: dict[Category, None] = {}
    for product in favorite_products:
        seen.setdefault(product.category, None)
    return list(seen)


def rank_products(
    candidates: Sequence[Product],
    followed: Iterable[str],
    preferred: Iterable[Category],
    now: datetime,
) -> list[ScoredProduct]:
    """
    Score and order candidates.

    Sort key is (score desc, created_at desc). Python's sort is stable, so
    products with identical score and timestamp keep their input order.

    Returns:
        New ScoredProduct list; the input products are not modified.
    """
    followed_set = frozenset(followed)
    preferred_set = frozenset(preferred)

    scored = [
        ScoredProduct(product=p, score=score_product(p, followed_set, preferred_set, now))
        for p in candidates
    ]
    return sorted(
        scored,
        key=lambda s: (-s.score, -s.product.created_at.timestamp()),
    )


def paginate(items: Sequence, page: int, page_size: int) -> list:
    """Return the 1-indexed ``page`` of ``items`` with ``page_size`` entries."""
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    skip = (page - 1) * page_size
    return list(items[skip : skip + page_size])


def build_feed(
    actor: User,
    candidates: Sequence[Product],
    favorite_products: Iterable[Product],
    owners: Mapping[str, User],
    page: int = 1,
    page_size: int = 10,
    now: datetime | None = None,
) -> FeedPage:
    """
    Build one page of the personalized feed for ``actor``.

    The candidate pool is expected to be pre-filtered by the caller
    (available products not owned by the actor).

    Args:
        actor: Requesting user.
        candidates: Pre-filtered candidate products.
        favorite_products: The actor's favorited products.
        owners: Artisan records keyed by id, used for the owner join.
        page: 1-indexed page number.
        page_size: Items per page.
        now: Request time; defaults to the current UTC time.

    Returns:
        FeedPage with ranked items and echoed preference metadata.

    Raises:
        ValueError: If actor is missing or pagination arguments are invalid.
    """
    if actor is None:
        raise ValueError("actor is required")
    if now is None:
        now = utcnow()

    categories = preferred_categories(favorite_products)
    ranked = rank_products(candidates, actor.following, categories, now)
    window = paginate(ranked, page, page_size)

    items = []
    for scored in window:
        owner = owners.get(scored.product.artist_id)
        items.append(
            ScoredProduct(
                product=scored.product,
                score=scored.score,
                owner=OwnerSummary.from_user(owner) if owner else None,
            )
        )

    return FeedPage(
        items=items,
        page=page,
        limit=page_size,
        preferences=FeedPreferences(
            following_count=len(actor.following),
            favorite_categories=categories,
        ),
    )
