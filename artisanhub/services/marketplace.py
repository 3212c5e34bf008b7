"""
Marketplace service.

Catalog browsing, artisan product management, engagement toggles (likes,
favorites, follows) and orders.
"""

from __future__ import annotations

from typing import Any

from artisanhub.adapters.repository import (
    PRODUCT_FIELDS,
    SORT_FIELDS,
    MarketplaceRepository,
    ProductQuery,
    new_id,
)
from artisanhub.config import (
    DEFAULT_LISTING_PAGE_SIZE,
    FEATURED_PRODUCTS_LIMIT,
    SIMILAR_PRODUCTS_LIMIT,
    get_logger,
)
from artisanhub.core import Category, ListingPage, Order, OrderStatus, Product, User
from artisanhub.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from artisanhub.services.feed import validate_paging
from artisanhub.services.insights import parse_category

logger = get_logger(__name__)


def _check_product_values(title: str | None = None, price: float | None = None) -> None:
    if title is not None and not title.strip():
        raise ValidationError("Product title is required")
    if price is not None and price < 0:
        raise ValidationError("Price must not be negative")


class MarketplaceService:
    """Catalog, product, engagement and order operations for a requester."""

    def __init__(self, repository: MarketplaceRepository):
        self.repository = repository

    def _requester(self, user_id: str) -> User:
        user = self.repository.get_user(user_id)
        if user is None:
            raise UnauthorizedError(f"Unknown user: {user_id}")
        return user

    def _product(self, product_id: str) -> Product:
        product = self.repository.get_product(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------

    def list_products(
        self,
        page: int = 1,
        limit: int = DEFAULT_LISTING_PAGE_SIZE,
        category: str | None = None,
        search: str | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
        artist: str | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> ListingPage:
        """
        One page of available products.

        Without ``sort_by`` the newest products come first. With it, the
        order is ascending unless ``sort_order`` is ``"desc"``.

        Raises:
            ValidationError: On bad paging, unknown category or sort field.
        """
        validate_paging(page, limit)
        if sort_by is not None and sort_by not in SORT_FIELDS:
            raise ValidationError(
                f"sort_by must be one of: {', '.join(sorted(SORT_FIELDS))}"
            )
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError("min_price must not exceed max_price")

        query = ProductQuery(
            owner=artist,
            category=parse_category(category),
            min_price=min_price,
            max_price=max_price,
            search=search or None,
            sort_by=sort_by or "created_at",
            descending=sort_by is None or sort_order == "desc",
            skip=(page - 1) * limit,
            limit=limit,
        )
        products = self.repository.find_products(query)
        total = self.repository.count_products(query)
        return ListingPage(products=products, total=total, page=page, limit=limit)

    def product_detail(self, product_id: str) -> tuple[Product, list[Product]]:
        """
        Fetch a product, count the view, and list same-category products.

        Returns:
            (product with the incremented view count, up to four related products).
        """
        self._product(product_id)
        self.repository.increment_views(product_id)
        product = self._product(product_id)

        related = [
            p
            for p in self.repository.find_products(
                ProductQuery(
                    category=product.category,
                    limit=SIMILAR_PRODUCTS_LIMIT + 1,
                )
            )
            if p.product_id != product.product_id
        ]
        return product, related[:SIMILAR_PRODUCTS_LIMIT]

    # -------------------------------------------------------------------------
    # Product management
    # -------------------------------------------------------------------------

    def _artisan(self, user_id: str) -> User:
        user = self._requester(user_id)
        if not user.is_artisan:
            raise ForbiddenError(
                f"User role {user.user_type.value} is not authorized to access this route"
            )
        return user

    def _owned_product(self, product_id: str, user_id: str, action: str) -> Product:
        product = self._product(product_id)
        if product.artist_id != user_id:
            raise ForbiddenError(f"Not authorized to {action} this product")
        return product

    def create_product(
        self,
        artist_id: str,
        title: str,
        description: str,
        category: Category,
        price: float,
        tags: list[str] | None = None,
        techniques: list[str] | None = None,
        materials: list[str] | None = None,
        is_available: bool = True,
        is_featured: bool = False,
    ) -> Product:
        """
        List a new product under the requesting artisan.

        Raises:
            ForbiddenError: If the requester is not an artisan.
            ValidationError: On an empty title or negative price.
        """
        artisan = self._artisan(artist_id)
        _check_product_values(title=title, price=price)

        product = Product(
            product_id=new_id(),
            artist_id=artisan.user_id,
            artist_name=artisan.name,
            title=title.strip(),
            description=description,
            category=category,
            price=price,
            is_available=is_available,
            is_featured=is_featured,
            tags=list(tags or []),
            techniques=list(techniques or []),
            materials=list(materials or []),
        )
        self.repository.add_product(product)
        logger.info("%s listed product %s", artist_id, product.product_id)
        return product

    def update_product(self, product_id: str, user_id: str, changes: dict[str, Any]) -> Product:
        """
        Apply owner changes to a product. An empty change set is a no-op.

        Raises:
            NotFoundError: If the product does not exist.
            ForbiddenError: If the requester is not an artisan or does not own it.
            ValidationError: On unknown fields, an empty title or negative price.
        """
        self._artisan(user_id)
        product = self._owned_product(product_id, user_id, "update")
        unknown = set(changes) - set(PRODUCT_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        _check_product_values(**{k: v for k, v in changes.items() if k in ("title", "price")})
        if not changes:
            return product

        updated = self.repository.update_product(product_id, changes)
        if updated is None:
            raise NotFoundError("Product", product_id)
        return updated

    def delete_product(self, product_id: str, user_id: str) -> None:
        """
        Remove a product owned by the requester.

        Raises:
            NotFoundError: If the product does not exist.
            ForbiddenError: If the requester is not an artisan or does not own it.
        """
        self._artisan(user_id)
        self._owned_product(product_id, user_id, "delete")
        self.repository.delete_product(product_id)
        logger.info("%s deleted product %s", user_id, product_id)

    def featured_products(self) -> list[Product]:
        """Available featured products, newest first."""
        return self.repository.find_products(
            ProductQuery(featured_only=True, limit=FEATURED_PRODUCTS_LIMIT)
        )

    def artist_products(self, artist_id: str) -> list[tuple[Product, int]]:
        """
        Every product the requesting artisan listed, with its order count.

        Returns:
            (product, number of orders) pairs, newest product first.
        """
        self._artisan(artist_id)
        products = self.repository.find_products(
            ProductQuery(owner=artist_id, available_only=False)
        )
        counts = self.repository.order_counts([p.product_id for p in products])
        return [(p, counts.get(p.product_id, 0)) for p in products]

    # -------------------------------------------------------------------------
    # Engagement
    # -------------------------------------------------------------------------

    def toggle_like(self, product_id: str, user_id: str) -> tuple[bool, int]:
        """
        Like or unlike a product.

        Returns:
            (liked after the toggle, new like count).
        """
        self._requester(user_id)
        updated = self.repository.toggle_like(product_id, user_id)
        if updated is None:
            raise NotFoundError("Product", product_id)
        return user_id in updated.likes, updated.like_count

    def toggle_favorite(self, user_id: str, product_id: str) -> bool:
        """Add or remove a product from favorites. Returns True when now favorited."""
        self._requester(user_id)
        self._product(product_id)
        return self.repository.toggle_favorite(user_id, product_id)

    def follow(self, follower_id: str, target_id: str) -> None:
        """
        Follow another user.

        Raises:
            NotFoundError: If the target user does not exist.
            ConflictError: On self-follow or when already following.
        """
        follower = self._requester(follower_id)
        if self.repository.get_user(target_id) is None:
            raise NotFoundError("User", target_id)
        if target_id == follower.user_id:
            raise ConflictError("You cannot follow yourself")
        if target_id in follower.following:
            raise ConflictError("You are already following this user")

        self.repository.follow(follower_id, target_id)
        logger.info("%s followed %s", follower_id, target_id)

    def unfollow(self, follower_id: str, target_id: str) -> None:
        """
        Stop following a user.

        Raises:
            NotFoundError: If the target user does not exist.
            ConflictError: When not following the target.
        """
        follower = self._requester(follower_id)
        if self.repository.get_user(target_id) is None:
            raise NotFoundError("User", target_id)
        if target_id not in follower.following:
            raise ConflictError("You are not following this user")

        self.repository.unfollow(follower_id, target_id)
        logger.info("%s unfollowed %s", follower_id, target_id)

    # -------------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------------

    def create_order(
        self,
        buyer_id: str,
        product_id: str,
        payment_method: str | None = None,
        shipping_address: str | None = None,
        notes: str | None = None,
    ) -> Order:
        """
        Place an order for a product at its current price.

        Raises:
            NotFoundError: If the product does not exist.
        """
        self._requester(buyer_id)
        product = self._product(product_id)

        order = Order(
            order_id=new_id(),
            product_id=product.product_id,
            buyer_id=buyer_id,
            artist_id=product.artist_id,
            price=product.price,
            payment_method=payment_method or "Digital Payment",
            shipping_address=shipping_address or "Digital Delivery",
            status=OrderStatus.PENDING,
            notes=notes,
        )
        self.repository.add_order(order)

        # Artisan notification channel is the log until email/push exists.
        logger.info(
            "Order notification: %s has a new order for %r",
            product.artist_name or product.artist_id,
            product.title,
            extra={"order_id": order.order_id, "artist_id": product.artist_id},
        )
        return order

    def buyer_orders(self, buyer_id: str) -> list[Order]:
        """Orders placed by ``buyer_id``, newest first."""
        self._requester(buyer_id)
        return self.repository.orders_for_buyer(buyer_id)

    def artisan_orders(self, artist_id: str) -> list[Order]:
        """Orders for products sold by ``artist_id``, newest first."""
        self._requester(artist_id)
        return self.repository.orders_for_artist(artist_id)
