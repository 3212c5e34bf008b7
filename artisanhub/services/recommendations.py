"""
General recommendation service.

Returns the most popular products the user does not own, plus optional
AI-written artwork suggestions based on the user's favorites.
"""

from __future__ import annotations

from artisanhub.adapters.repository import MarketplaceRepository, ProductQuery
from artisanhub.config import RECOMMENDED_PRODUCTS_LIMIT, get_logger
from artisanhub.core import (
    Recommendations,
    build_artwork_suggestions_prompt,
    popular_pool,
    preferred_categories,
)
from artisanhub.exceptions import UnauthorizedError
from artisanhub.services.advisor import Advisor

logger = get_logger(__name__)


class RecommendationService:
    def __init__(self, repository: MarketplaceRepository, advisor: Advisor):
        self.repository = repository
        self.advisor = advisor

    def recommend(self, user_id: str, price_range: str | None = None) -> Recommendations:
        """
        Popular products for ``user_id`` with advisory suggestion text.

        Args:
            user_id: Requesting user.
            price_range: Free-form price preference echoed to the model
                (defaults to "all").

        Raises:
            UnauthorizedError: If the user does not exist.
        """
        user = self.repository.get_user(user_id)
        if user is None:
            raise UnauthorizedError(f"Unknown user: {user_id}")

        favorites = self.repository.get_products(user.favorites)
        categories = preferred_categories(favorites)
        liked_ids = [p.product_id for p in favorites]
        price_range = price_range or "all"

        pool = popular_pool(self.repository.find_products(ProductQuery(exclude_owner=user_id)))

        suggestions = None
        if pool:
            system, prompt = build_artwork_suggestions_prompt(
                [c.value for c in categories], liked_ids, price_range, pool
            )
            suggestions = self.advisor.ask(system, prompt)

        logger.info(
            "Recommendations for %s: pool=%d, ai=%s",
            user_id,
            len(pool),
            "yes" if suggestions else "no",
        )
        return Recommendations(
            products=pool[:RECOMMENDED_PRODUCTS_LIMIT],
            ai_suggestions=suggestions,
            categories=categories,
            liked_product_ids=liked_ids,
            price_range=price_range,
        )
