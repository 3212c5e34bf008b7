"""
Non-personalized rankings: trending products, top artisans, popular pool.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime, timedelta

from artisanhub.config import POPULAR_POOL_SIZE, TOP_ARTISANS_LIMIT, TRENDING_LIMIT, TRENDING_WINDOW_DAYS
from artisanhub.core.models import ArtisanStats, Product, User


def _popularity_key(p: Product) -> tuple[int, int]:
    return (-p.like_count, -p.views)


def popular_pool(products: Sequence[Product], limit: int = POPULAR_POOL_SIZE) -> list[Product]:
    """Most-liked products first, views as the tie-breaker."""
    return sorted(products, key=_popularity_key)[:limit]


def trending(
    products: Sequence[Product],
    now: datetime,
    window_days: int = TRENDING_WINDOW_DAYS,
    limit: int = TRENDING_LIMIT,
) -> list[Product]:
    """
    Available products created inside the window, most engaged first.

    Sort order is likes desc, views desc, then newest first.
    """
    since = now - timedelta(days=window_days)
    recent = [p for p in products if p.is_available and p.created_at >= since]
    ranked = sorted(
        recent,
        key=lambda p: (-p.like_count, -p.views, -p.created_at.timestamp()),
    )
    return ranked[:limit]


def top_artisans(
    artisans: Sequence[User],
    products: Sequence[Product],
    limit: int = TOP_ARTISANS_LIMIT,
) -> list[ArtisanStats]:
    """
    Rank artisans by the engagement their products receive.

    Artisans without products are skipped. Ordering is total likes desc,
    total views desc, followers desc.
    """
    by_artist: dict[str, list[Product]] = defaultdict(list)
    for p in products:
        by_artist[p.artist_id].append(p)

    stats = []
    for artisan in artisans:
        if not artisan.is_artisan:
            continue
        owned = by_artist.get(artisan.user_id, [])
        if not owned:
            continue
        stats.append(
            ArtisanStats(
                artisan=artisan,
                total_likes=sum(p.like_count for p in owned),
                total_views=sum(p.views for p in owned),
                total_products=len(owned),
            )
        )

    stats.sort(key=lambda s: (-s.total_likes, -s.total_views, -s.followers_count))
    return stats[:limit]
