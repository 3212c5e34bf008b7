"""
Similar-products service.

Asks the advisor for similar product ids and falls back to same-category
products when the suggestion is missing, invalid or too short.
"""

from __future__ import annotations

from artisanhub.adapters.repository import MarketplaceRepository, ProductQuery
from artisanhub.config import SIMILAR_SUGGESTION_LIMIT, get_logger
from artisanhub.core import (
    Product,
    build_similar_products_prompt,
    parse_id_list,
    select_similar,
)
from artisanhub.exceptions import NotFoundError
from artisanhub.services.advisor import Advisor

logger = get_logger(__name__)


class SimilarProductsService:
    def __init__(self, repository: MarketplaceRepository, advisor: Advisor):
        self.repository = repository
        self.advisor = advisor

    def similar(self, product_id: str) -> list[Product]:
        """
        Up to four products similar to ``product_id``.

        Raises:
            NotFoundError: If the product does not exist.
        """
        target = self.repository.get_product(product_id)
        if target is None:
            raise NotFoundError("Product", product_id)

        pool = [
            p
            for p in self.repository.find_products(ProductQuery(sort_by="created_at", descending=False))
            if p.product_id != target.product_id
        ]

        suggested: list[str] = []
        if pool:
            system, user = build_similar_products_prompt(
                target, pool, count=SIMILAR_SUGGESTION_LIMIT
            )
            suggested = parse_id_list(self.advisor.ask(system, user))

        selected = select_similar(target, pool, suggested)
        logger.info(
            "Similar to %s: %d suggested, %d returned",
            product_id,
            len(suggested),
            len(selected),
        )
        return selected
