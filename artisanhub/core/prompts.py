"""
LLM prompt templates for recommendation suggestions.

Both prompts ask for product ids so replies can be checked against the
catalog before anything is shown to a user.
"""

from __future__ import annotations

from collections.abc import Sequence

from artisanhub.config import AI_SUGGESTION_PRODUCTS
from artisanhub.core.models import Product


RECOMMENDER_SYSTEM_PROMPT = """You help shoppers discover handmade, traditional artwork.

RULES:
1. Only recommend products from the list you are given
2. Refer to products by their exact ID
3. NEVER invent product IDs
4. Keep answers short"""


SIMILAR_PRODUCTS_TEMPLATE = """Based on this artwork:
Title: {title}
Category: {category}
Description: {description}

From these available products:
{catalog}

Recommend the top {count} most similar products based on:
- Same or related category
- Similar style or technique
- Comparable price range
- Similar cultural background

Return only the product IDs as a comma-separated list."""


ARTWORK_SUGGESTIONS_TEMPLATE = """User Preferences:
- Favorite Categories: {categories}
- Price Range: {price_range}
- Liked Products: {liked}

Available Products:
{catalog}

Suggest the best {count} artworks for this user based on:
- User's category preferences
- Price range compatibility
- Popularity (likes count)
- Variety in recommendations
- Quality and uniqueness

Return product IDs as a comma-separated list with a brief reason for each."""


def format_catalog(products: Sequence[Product], with_likes: bool = False) -> str:
    """One line per product, as shown to the model."""
    if not products:
        return "(No products available)"

    lines = []
    for p in products:
        line = f"ID: {p.product_id}, Title: {p.title}, Category: {p.category.value}, Price: ${p.price:g}"
        if with_likes:
            line += f", Likes: {p.like_count}"
        lines.append(line)
    return "\n".join(lines)


def build_similar_products_prompt(
    product: Product,
    pool: Sequence[Product],
    count: int = 5,
) -> tuple[str, str]:
    """
    Build the prompt asking for products similar to ``product``.

    Returns:
        Tuple of (system_prompt, user_prompt).
    """
    user_prompt = SIMILAR_PRODUCTS_TEMPLATE.format(
        title=product.title,
        category=product.category.value,
        description=product.description,
        catalog=format_catalog(pool),
        count=count,
    )
    return RECOMMENDER_SYSTEM_PROMPT, user_prompt


def build_artwork_suggestions_prompt(
    categories: Sequence[str],
    liked_product_ids: Sequence[str],
    price_range: str,
    products: Sequence[Product],
    count: int = 6,
) -> tuple[str, str]:
    """
    Build the prompt for general artwork suggestions.

    Only the first AI_SUGGESTION_PRODUCTS products are listed to keep the
    prompt small.

    Returns:
        Tuple of (system_prompt, user_prompt).
    """
    user_prompt = ARTWORK_SUGGESTIONS_TEMPLATE.format(
        categories=", ".join(categories) or "Not specified",
        price_range=price_range or "Not specified",
        liked=", ".join(liked_product_ids) or "None",
        catalog=format_catalog(products[:AI_SUGGESTION_PRODUCTS], with_likes=True),
        count=count,
    )
    return RECOMMENDER_SYSTEM_PROMPT, user_prompt
