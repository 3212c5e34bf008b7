"""
Similar-product selection.

The similarity source (an LLM asked for comma-separated product ids) is
untrusted: replies can contain unknown ids, duplicates or prose. Ids are
validated against the candidate pool before use, and when fewer than the
requested number survive, the result is padded with same-category products.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from artisanhub.config import SIMILAR_PRODUCTS_LIMIT, SIMILAR_SUGGESTION_LIMIT
from artisanhub.core.models import Product


def parse_id_list(text: str | None, limit: int = SIMILAR_SUGGESTION_LIMIT) -> list[str]:
    """
    Split a comma-separated reply into ids.

    Entries are stripped of whitespace and quotes; empty entries are dropped.
    Only the first ``limit`` entries are kept.
    """
    if not text:
        return []
    ids = [part.strip().strip("\"'`") for part in text.split(",")]
    return [i for i in ids if i][:limit]


def sanitize_ids(ids: Iterable[str], pool: Sequence[Product]) -> list[str]:
    """Keep ids that exist in ``pool``, first occurrence only."""
    known = {p.product_id for p in pool}
    seen: set[str] = set()
    valid = []
    for product_id in ids:
        if product_id in known and product_id not in seen:
            seen.add(product_id)
            valid.append(product_id)
    return valid


def select_similar(
    target: Product,
    pool: Sequence[Product],
    suggested_ids: Iterable[str],
    limit: int = SIMILAR_PRODUCTS_LIMIT,
) -> list[Product]:
    """
    Pick up to ``limit`` products similar to ``target``.

    Suggested products come first, in pool order. Remaining slots are
    filled with available same-category products in creation order,
    skipping the target and anything already selected.

    Args:
        target: Product the user is looking at.
        pool: Candidate products (target excluded by the caller or here).
        suggested_ids: Ids proposed by the similarity source.
        limit: Maximum number of products to return.

    Returns:
        Selected products, at most ``limit``.
    """
    candidates = [p for p in pool if p.product_id != target.product_id]
    wanted = set(sanitize_ids(suggested_ids, candidates))

    selected = [p for p in candidates if p.product_id in wanted][:limit]
    if len(selected) >= limit:
        return selected

    chosen = {p.product_id for p in selected}
    fallback = sorted(
        (
            p
            for p in candidates
            if p.category == target.category
            and p.is_available
            and p.product_id not in chosen
        ),
        key=lambda p: p.created_at,
    )
    selected.extend(fallback[: limit - len(selected)])
    return selected
