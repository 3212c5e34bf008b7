"""
Personalized feed service.

Loads the requesting user's preference signals and the candidate pool from
the repository, then delegates scoring and pagination to core.feed.
"""

from __future__ import annotations

from datetime import datetime

from artisanhub.adapters.repository import MarketplaceRepository, ProductQuery
from artisanhub.config import DEFAULT_FEED_PAGE_SIZE, MAX_PAGE_SIZE, get_logger
from artisanhub.core import FeedPage, build_feed, utcnow
from artisanhub.exceptions import UnauthorizedError, ValidationError

logger = get_logger(__name__)


def validate_paging(page: int, limit: int) -> None:
    """Reject page numbers below 1 and page sizes outside 1..MAX_PAGE_SIZE."""
    if page < 1:
        raise ValidationError("page must be >= 1")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")


class FeedService:
    """Build personalized feed pages."""

    def __init__(self, repository: MarketplaceRepository):
        self.repository = repository

    def personalized_feed(
        self,
        user_id: str,
        page: int = 1,
        limit: int = DEFAULT_FEED_PAGE_SIZE,
        now: datetime | None = None,
    ) -> FeedPage:
        """
        Rank available products not owned by ``user_id`` for that user.

        Args:
            user_id: Requesting user.
            page: 1-based page number.
            limit: Page size.
            now: Reference time for the recency boost. Defaults to current UTC.

        Returns:
            FeedPage with scored products and echoed preferences.

        Raises:
            ValidationError: If page or limit are out of range.
            UnauthorizedError: If the user does not exist.
        """
        validate_paging(page, limit)

        actor = self.repository.get_user(user_id)
        if actor is None:
            raise UnauthorizedError(f"Unknown user: {user_id}")

        favorites = self.repository.get_products(actor.favorites)
        candidates = self.repository.find_products(ProductQuery(exclude_owner=actor.user_id))
        owners = self.repository.get_users(sorted({p.artist_id for p in candidates}))

        try:
            feed = build_feed(
                actor,
                candidates,
                favorites,
                owners,
                page=page,
                page_size=limit,
                now=now or utcnow(),
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e

        logger.info(
            "Feed for %s: page=%d, %d/%d candidates returned",
            user_id,
            page,
            len(feed.items),
            len(candidates),
        )
        return feed
