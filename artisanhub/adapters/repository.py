"""
Marketplace document store adapter.

Wraps the document database holding users, products, orders, posts and
comments behind a small repository interface. Two implementations are
provided:

- MongoRepository: MongoDB via pymongo (production)
- InMemoryRepository: process-local dicts (development and tests)

Documents keep the camelCase field names of the existing ``users``,
``products``, ``orders``, ``posts`` and ``comments`` collections; conversion
to domain dataclasses happens here so nothing above this layer sees raw
documents or ObjectIds.
"""

from __future__ import annotations

import copy
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

import pymongo
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from artisanhub.config import (
    MONGO_DB_NAME,
    MONGO_TIMEOUT_MS,
    MONGO_URI,
    STORE_BACKEND,
    STORE_MEMORY,
    STORE_MONGO,
    get_logger,
)
from artisanhub.core.models import (
    Category,
    Comment,
    ContentType,
    Order,
    OrderStatus,
    Post,
    Product,
    User,
    UserType,
    utcnow,
)
from artisanhub.utils import thread_safe_singleton

if TYPE_CHECKING:
    from pymongo.database import Database

logger = get_logger(__name__)

# Fields a product listing may be sorted by, mapped to document fields.
SORT_FIELDS = {
    "created_at": "createdAt",
    "price": "price",
    "views": "views",
    "title": "title",
}


# Product attributes an owner may change, mapped to document fields.
PRODUCT_FIELDS = {
    "title": "title",
    "description": "description",
    "category": "category",
    "price": "price",
    "tags": "tags",
    "techniques": "techniques",
    "materials": "materials",
    "is_available": "isAvailable",
    "is_featured": "isFeatured",
}

# Post attributes an author may change, mapped to document fields.
POST_FIELDS = {
    "title": "title",
    "content": "content",
    "content_type": "contentType",
    "tags": "tags",
}


def new_id() -> str:
    """Generate a fresh record id (ObjectId hex, valid for every backend)."""
    return str(ObjectId())


def _check_fields(changes: dict[str, Any], allowed: dict[str, str]) -> None:
    unknown = set(changes) - set(allowed)
    if unknown:
        raise ValueError(f"cannot update fields: {', '.join(sorted(unknown))}")


@dataclass(frozen=True)
class ProductQuery:
    """
    Product lookup filters shared by every repository implementation.

    ``limit=None`` means no limit. ``sort_by`` must be a key of SORT_FIELDS.
    """

    available_only: bool = True
    featured_only: bool = False
    exclude_owner: str | None = None
    owner: str | None = None
    category: Category | None = None
    min_price: float | None = None
    max_price: float | None = None
    created_after: datetime | None = None
    search: str | None = None
    sort_by: str = "created_at"
    descending: bool = True
    skip: int = 0
    limit: int | None = None


@dataclass(frozen=True)
class PostQuery:
    """Published-post lookup filters. Results are always newest first."""

    content_type: ContentType | None = None
    author: str | None = None
    search: str | None = None
    skip: int = 0
    limit: int | None = None


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class MarketplaceRepository(Protocol):
    """Storage operations the services depend on."""

    def ping(self) -> bool: ...

    # Users
    def get_user(self, user_id: str) -> User | None: ...
    def get_users(self, user_ids: list[str]) -> dict[str, User]: ...
    def list_artisans(self) -> list[User]: ...
    def add_user(self, user: User) -> User: ...
    def follow(self, follower_id: str, target_id: str) -> None: ...
    def unfollow(self, follower_id: str, target_id: str) -> None: ...
    def toggle_favorite(self, user_id: str, product_id: str) -> bool: ...

    # Products
    def get_product(self, product_id: str) -> Product | None: ...
    def get_products(self, product_ids: list[str]) -> list[Product]: ...
    def add_product(self, product: Product) -> Product: ...
    def update_product(self, product_id: str, changes: dict[str, Any]) -> Product | None: ...
    def delete_product(self, product_id: str) -> None: ...
    def find_products(self, query: ProductQuery) -> list[Product]: ...
    def count_products(self, query: ProductQuery) -> int: ...
    def increment_views(self, product_id: str) -> None: ...
    def toggle_like(self, product_id: str, user_id: str) -> Product | None: ...

    # Orders
    def add_order(self, order: Order) -> Order: ...
    def orders_for_buyer(self, buyer_id: str) -> list[Order]: ...
    def orders_for_artist(self, artist_id: str) -> list[Order]: ...
    def order_counts(self, product_ids: list[str]) -> dict[str, int]: ...

    # Posts
    def add_post(self, post: Post) -> Post: ...
    def get_post(self, post_id: str) -> Post | None: ...
    def find_posts(self, query: PostQuery) -> list[Post]: ...
    def count_posts(self, query: PostQuery) -> int: ...
    def update_post(self, post_id: str, changes: dict[str, Any]) -> Post | None: ...
    def delete_post(self, post_id: str) -> None: ...
    def toggle_post_like(self, post_id: str, user_id: str) -> Post | None: ...

    # Comments
    def add_comment(self, comment: Comment) -> Comment: ...
    def get_comment(self, comment_id: str) -> Comment | None: ...
    def comments_for_post(self, post_id: str, limit: int | None = None) -> list[Comment]: ...
    def edit_comment(self, comment_id: str, content: str) -> Comment | None: ...
    def delete_comment(self, comment_id: str) -> None: ...
    def toggle_comment_like(self, comment_id: str, user_id: str) -> Comment | None: ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


def _matches(product: Product, query: ProductQuery) -> bool:
    if query.available_only and not product.is_available:
        return False
    if query.featured_only and not product.is_featured:
        return False
    if query.exclude_owner is not None and product.artist_id == query.exclude_owner:
        return False
    if query.owner is not None and product.artist_id != query.owner:
        return False
    if query.category is not None and product.category != query.category:
        return False
    if query.min_price is not None and product.price < query.min_price:
        return False
    if query.max_price is not None and product.price > query.max_price:
        return False
    if query.created_after is not None and product.created_at < query.created_after:
        return False
    if query.search:
        needle = query.search.lower()
        haystack = " ".join(
            [product.title, product.description, product.category.value, *product.tags]
        ).lower()
        if needle not in haystack:
            return False
    return True


def _post_matches(post: Post, query: PostQuery) -> bool:
    if not post.is_published:
        return False
    if query.content_type is not None and post.content_type != query.content_type:
        return False
    if query.author is not None and post.author_id != query.author:
        return False
    if query.search:
        needle = query.search.lower()
        if needle not in f"{post.title} {post.content}".lower():
            return False
    return True


def _toggle(ids: list[str], user_id: str) -> None:
    if user_id in ids:
        ids.remove(user_id)
    else:
        ids.append(user_id)


class InMemoryRepository:
    """
    Dict-backed repository.

    Returned objects are copies, so callers can never mutate stored state
    by accident.
    """

    def __init__(self):
        self._users: dict[str, User] = {}
        self._products: dict[str, Product] = {}
        self._orders: dict[str, Order] = {}
        self._posts: dict[str, Post] = {}
        self._comments: dict[str, Comment] = {}

    def ping(self) -> bool:
        return True

    # -- users --------------------------------------------------------------

    def get_user(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        return copy.deepcopy(user) if user else None

    def get_users(self, user_ids: list[str]) -> dict[str, User]:
        return {
            uid: copy.deepcopy(self._users[uid]) for uid in user_ids if uid in self._users
        }

    def list_artisans(self) -> list[User]:
        return [copy.deepcopy(u) for u in self._users.values() if u.is_artisan]

    def add_user(self, user: User) -> User:
        self._users[user.user_id] = copy.deepcopy(user)
        return user

    def follow(self, follower_id: str, target_id: str) -> None:
        follower = self._users[follower_id]
        target = self._users[target_id]
        if target_id not in follower.following:
            follower.following.append(target_id)
        if follower_id not in target.followers:
            target.followers.append(follower_id)

    def unfollow(self, follower_id: str, target_id: str) -> None:
        follower = self._users[follower_id]
        target = self._users[target_id]
        follower.following = [u for u in follower.following if u != target_id]
        target.followers = [u for u in target.followers if u != follower_id]

    def toggle_favorite(self, user_id: str, product_id: str) -> bool:
        user = self._users[user_id]
        if product_id in user.favorites:
            user.favorites.remove(product_id)
            return False
        user.favorites.append(product_id)
        return True

    # -- products -----------------------------------------------------------

    def get_product(self, product_id: str) -> Product | None:
        product = self._products.get(product_id)
        return copy.deepcopy(product) if product else None

    def get_products(self, product_ids: list[str]) -> list[Product]:
        return [
            copy.deepcopy(self._products[pid]) for pid in product_ids if pid in self._products
        ]

    def add_product(self, product: Product) -> Product:
        self._products[product.product_id] = copy.deepcopy(product)
        return product

    def update_product(self, product_id: str, changes: dict[str, Any]) -> Product | None:
        _check_fields(changes, PRODUCT_FIELDS)
        product = self._products.get(product_id)
        if product is None:
            return None
        for name, value in changes.items():
            setattr(product, name, copy.deepcopy(value))
        return copy.deepcopy(product)

    def delete_product(self, product_id: str) -> None:
        self._products.pop(product_id, None)

    def _select(self, query: ProductQuery) -> list[Product]:
        if query.sort_by not in SORT_FIELDS:
            raise ValueError(f"cannot sort products by {query.sort_by!r}")
        matched = [p for p in self._products.values() if _matches(p, query)]
        return sorted(
            matched, key=lambda p: getattr(p, query.sort_by), reverse=query.descending
        )

    def find_products(self, query: ProductQuery) -> list[Product]:
        ranked = self._select(query)
        end = None if query.limit is None else query.skip + query.limit
        return [copy.deepcopy(p) for p in ranked[query.skip : end]]

    def count_products(self, query: ProductQuery) -> int:
        return sum(1 for p in self._products.values() if _matches(p, query))

    def increment_views(self, product_id: str) -> None:
        product = self._products.get(product_id)
        if product is not None:
            product.views += 1

    def toggle_like(self, product_id: str, user_id: str) -> Product | None:
        product = self._products.get(product_id)
        if product is None:
            return None
        _toggle(product.likes, user_id)
        return copy.deepcopy(product)

    # -- orders -------------------------------------------------------------

    def add_order(self, order: Order) -> Order:
        self._orders[order.order_id] = copy.deepcopy(order)
        return order

    def _orders_where(self, attr: str, value: str) -> list[Order]:
        matched = [o for o in self._orders.values() if getattr(o, attr) == value]
        matched.sort(key=lambda o: o.order_date, reverse=True)
        return [copy.deepcopy(o) for o in matched]

    def orders_for_buyer(self, buyer_id: str) -> list[Order]:
        return self._orders_where("buyer_id", buyer_id)

    def orders_for_artist(self, artist_id: str) -> list[Order]:
        return self._orders_where("artist_id", artist_id)

    def order_counts(self, product_ids: list[str]) -> dict[str, int]:
        wanted = set(product_ids)
        counts = Counter(o.product_id for o in self._orders.values() if o.product_id in wanted)
        return {pid: counts.get(pid, 0) for pid in product_ids}

    # -- posts --------------------------------------------------------------

    def add_post(self, post: Post) -> Post:
        self._posts[post.post_id] = copy.deepcopy(post)
        return post

    def get_post(self, post_id: str) -> Post | None:
        post = self._posts.get(post_id)
        return copy.deepcopy(post) if post else None

    def _select_posts(self, query: PostQuery) -> list[Post]:
        matched = [p for p in self._posts.values() if _post_matches(p, query)]
        return sorted(matched, key=lambda p: p.created_at, reverse=True)

    def find_posts(self, query: PostQuery) -> list[Post]:
        ranked = self._select_posts(query)
        end = None if query.limit is None else query.skip + query.limit
        return [copy.deepcopy(p) for p in ranked[query.skip : end]]

    def count_posts(self, query: PostQuery) -> int:
        return sum(1 for p in self._posts.values() if _post_matches(p, query))

    def update_post(self, post_id: str, changes: dict[str, Any]) -> Post | None:
        _check_fields(changes, POST_FIELDS)
        post = self._posts.get(post_id)
        if post is None:
            return None
        for name, value in changes.items():
            setattr(post, name, copy.deepcopy(value))
        post.updated_at = utcnow()
        return copy.deepcopy(post)

    def delete_post(self, post_id: str) -> None:
        self._posts.pop(post_id, None)
        self._comments = {
            cid: c for cid, c in self._comments.items() if c.post_id != post_id
        }

    def toggle_post_like(self, post_id: str, user_id: str) -> Post | None:
        post = self._posts.get(post_id)
        if post is None:
            return None
        _toggle(post.likes, user_id)
        return copy.deepcopy(post)

    # -- comments -----------------------------------------------------------

    def add_comment(self, comment: Comment) -> Comment:
        self._comments[comment.comment_id] = copy.deepcopy(comment)
        if comment.parent_id is not None:
            parent = self._comments.get(comment.parent_id)
            if parent is not None:
                parent.reply_ids.append(comment.comment_id)
        else:
            post = self._posts.get(comment.post_id)
            if post is not None:
                post.comment_ids.append(comment.comment_id)
        return comment

    def get_comment(self, comment_id: str) -> Comment | None:
        comment = self._comments.get(comment_id)
        return copy.deepcopy(comment) if comment else None

    def comments_for_post(self, post_id: str, limit: int | None = None) -> list[Comment]:
        post = self._posts.get(post_id)
        if post is None:
            return []
        top_level = [self._comments[cid] for cid in post.comment_ids if cid in self._comments]
        top_level.sort(key=lambda c: c.created_at, reverse=True)
        return [copy.deepcopy(c) for c in top_level[:limit]]

    def edit_comment(self, comment_id: str, content: str) -> Comment | None:
        comment = self._comments.get(comment_id)
        if comment is None:
            return None
        comment.content = content
        comment.is_edited = True
        comment.edited_at = utcnow()
        return copy.deepcopy(comment)

    def delete_comment(self, comment_id: str) -> None:
        comment = self._comments.pop(comment_id, None)
        if comment is None:
            return
        for reply_id in comment.reply_ids:
            self._comments.pop(reply_id, None)
        if comment.parent_id is not None and comment.parent_id in self._comments:
            self._comments[comment.parent_id].reply_ids.remove(comment_id)
        post = self._posts.get(comment.post_id)
        if post is not None and comment_id in post.comment_ids:
            post.comment_ids.remove(comment_id)

    def toggle_comment_like(self, comment_id: str, user_id: str) -> Comment | None:
        comment = self._comments.get(comment_id)
        if comment is None:
            return None
        _toggle(comment.likes, user_id)
        return copy.deepcopy(comment)


# ---------------------------------------------------------------------------
# MongoDB implementation
# ---------------------------------------------------------------------------


def _oid(value: str | None) -> ObjectId | None:
    """Convert an id string to ObjectId; malformed ids map to None."""
    if value is None or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def _oids(values: list[str]) -> list[ObjectId]:
    return [oid for oid in (_oid(v) for v in values) if oid is not None]


def build_product_filter(query: ProductQuery) -> dict[str, Any]:
    """
    Translate a ProductQuery into a MongoDB filter document.

    Owner ids that are not valid ObjectIds can never match, so they are
    kept as plain strings rather than dropped.
    """
    flt: dict[str, Any] = {}
    if query.available_only:
        flt["isAvailable"] = True
    if query.featured_only:
        flt["isFeatured"] = True
    if query.owner is not None:
        flt["artist"] = _oid(query.owner) or query.owner
    elif query.exclude_owner is not None:
        flt["artist"] = {"$ne": _oid(query.exclude_owner) or query.exclude_owner}
    if query.category is not None:
        flt["category"] = query.category.value
    if query.min_price is not None or query.max_price is not None:
        price: dict[str, float] = {}
        if query.min_price is not None:
            price["$gte"] = query.min_price
        if query.max_price is not None:
            price["$lte"] = query.max_price
        flt["price"] = price
    if query.created_after is not None:
        flt["createdAt"] = {"$gte": query.created_after}
    if query.search:
        flt["$text"] = {"$search": query.search}
    return flt


def build_post_filter(query: PostQuery) -> dict[str, Any]:
    """Translate a PostQuery into a MongoDB filter document."""
    flt: dict[str, Any] = {"isPublished": True}
    if query.content_type is not None:
        flt["contentType"] = query.content_type.value
    if query.author is not None:
        flt["author"] = _oid(query.author) or query.author
    if query.search:
        flt["$text"] = {"$search": query.search}
    return flt


def _to_doc_changes(changes: dict[str, Any], fields: dict[str, str]) -> dict[str, Any]:
    """Map attribute changes onto document fields, unwrapping enums."""
    return {
        fields[name]: value.value if isinstance(value, Enum) else value
        for name, value in changes.items()
    }


def _user_from_doc(doc: dict) -> User:
    return User(
        user_id=str(doc["_id"]),
        name=doc.get("name", ""),
        email=doc.get("email", ""),
        user_type=UserType(doc.get("userType", UserType.CUSTOMER.value)),
        avatar=doc.get("avatar"),
        bio=doc.get("bio"),
        location=doc.get("location"),
        is_verified=bool(doc.get("isVerified", False)),
        followers=[str(u) for u in doc.get("followers", [])],
        following=[str(u) for u in doc.get("following", [])],
        favorites=[str(p) for p in doc.get("favorites", [])],
        created_at=doc.get("createdAt") or utcnow(),
    )


def _user_to_doc(user: User) -> dict:
    return {
        "_id": ObjectId(user.user_id),
        "name": user.name,
        "email": user.email,
        "userType": user.user_type.value,
        "avatar": user.avatar,
        "bio": user.bio,
        "location": user.location,
        "isVerified": user.is_verified,
        "followers": _oids(user.followers),
        "following": _oids(user.following),
        "favorites": _oids(user.favorites),
        "createdAt": user.created_at,
    }


def _product_from_doc(doc: dict) -> Product:
    return Product(
        product_id=str(doc["_id"]),
        artist_id=str(doc["artist"]),
        artist_name=doc.get("artistName", ""),
        title=doc.get("title", ""),
        description=doc.get("description", ""),
        category=Category(doc["category"]),
        price=float(doc.get("price", 0)),
        likes=[str(like["user"]) for like in doc.get("likes", [])],
        views=int(doc.get("views", 0)),
        is_available=bool(doc.get("isAvailable", True)),
        is_featured=bool(doc.get("isFeatured", False)),
        tags=list(doc.get("tags", [])),
        techniques=list(doc.get("techniques", [])),
        materials=list(doc.get("materials", [])),
        created_at=doc.get("createdAt") or utcnow(),
    )


def _product_to_doc(product: Product) -> dict:
    return {
        "_id": ObjectId(product.product_id),
        "artist": _oid(product.artist_id) or product.artist_id,
        "artistName": product.artist_name,
        "title": product.title,
        "description": product.description,
        "category": product.category.value,
        "price": product.price,
        "likes": [{"user": _oid(u) or u, "createdAt": utcnow()} for u in product.likes],
        "views": product.views,
        "isAvailable": product.is_available,
        "isFeatured": product.is_featured,
        "tags": list(product.tags),
        "techniques": list(product.techniques),
        "materials": list(product.materials),
        "createdAt": product.created_at,
    }


def _order_from_doc(doc: dict) -> Order:
    return Order(
        order_id=str(doc["_id"]),
        product_id=str(doc["product"]),
        buyer_id=str(doc["buyer"]),
        artist_id=str(doc["artist"]),
        price=float(doc.get("price", 0)),
        payment_method=doc.get("paymentMethod", "Digital Payment"),
        shipping_address=doc.get("shippingAddress", "Digital Delivery"),
        status=OrderStatus(doc.get("status", OrderStatus.PENDING.value)),
        order_date=doc.get("orderDate") or utcnow(),
        notes=doc.get("notes"),
    )


def _order_to_doc(order: Order) -> dict:
    return {
        "_id": ObjectId(order.order_id),
        "product": _oid(order.product_id),
        "buyer": _oid(order.buyer_id),
        "artist": _oid(order.artist_id),
        "price": order.price,
        "paymentMethod": order.payment_method,
        "shippingAddress": order.shipping_address,
        "status": order.status.value,
        "orderDate": order.order_date,
        "notes": order.notes,
    }


def _post_from_doc(doc: dict) -> Post:
    product = doc.get("product")
    return Post(
        post_id=str(doc["_id"]),
        author_id=str(doc["author"]),
        author_name=doc.get("authorName", ""),
        title=doc.get("title", ""),
        content=doc.get("content", ""),
        content_type=ContentType(doc.get("contentType", ContentType.POST.value)),
        product_id=str(product) if product else None,
        likes=[str(like["user"]) for like in doc.get("likes", [])],
        comment_ids=[str(c) for c in doc.get("comments", [])],
        tags=list(doc.get("tags", [])),
        is_published=bool(doc.get("isPublished", True)),
        created_at=doc.get("createdAt") or utcnow(),
        updated_at=doc.get("updatedAt"),
    )


def _post_to_doc(post: Post) -> dict:
    return {
        "_id": ObjectId(post.post_id),
        "author": _oid(post.author_id) or post.author_id,
        "authorName": post.author_name,
        "title": post.title,
        "content": post.content,
        "contentType": post.content_type.value,
        "product": _oid(post.product_id),
        "likes": [{"user": _oid(u) or u, "createdAt": utcnow()} for u in post.likes],
        "comments": _oids(post.comment_ids),
        "tags": list(post.tags),
        "isPublished": post.is_published,
        "createdAt": post.created_at,
        "updatedAt": post.updated_at,
    }


def _comment_from_doc(doc: dict) -> Comment:
    parent = doc.get("parentComment")
    return Comment(
        comment_id=str(doc["_id"]),
        post_id=str(doc["post"]),
        author_id=str(doc["author"]),
        author_name=doc.get("authorName", ""),
        content=doc.get("content", ""),
        parent_id=str(parent) if parent else None,
        reply_ids=[str(r) for r in doc.get("replies", [])],
        likes=[str(like["user"]) for like in doc.get("likes", [])],
        is_edited=bool(doc.get("isEdited", False)),
        edited_at=doc.get("editedAt"),
        created_at=doc.get("createdAt") or utcnow(),
    )


def _comment_to_doc(comment: Comment) -> dict:
    return {
        "_id": ObjectId(comment.comment_id),
        "post": _oid(comment.post_id),
        "author": _oid(comment.author_id) or comment.author_id,
        "authorName": comment.author_name,
        "content": comment.content,
        "parentComment": _oid(comment.parent_id),
        "replies": _oids(comment.reply_ids),
        "likes": [{"user": _oid(u) or u, "createdAt": utcnow()} for u in comment.likes],
        "isEdited": comment.is_edited,
        "editedAt": comment.edited_at,
        "createdAt": comment.created_at,
    }


def _toggle_like_doc(collection, oid: ObjectId, user_id: str) -> None:
    """Pull the user's like if present, otherwise push a new one."""
    user = _oid(user_id) or user_id
    removed = collection.update_one(
        {"_id": oid, "likes.user": user},
        {"$pull": {"likes": {"user": user}}},
    )
    if not removed.modified_count:
        collection.update_one(
            {"_id": oid},
            {"$push": {"likes": {"user": user, "createdAt": utcnow()}}},
        )


class MongoRepository:
    """
    MongoDB-backed repository over the ``users``, ``products``, ``orders``,
    ``posts`` and ``comments`` collections.
    """

    def __init__(self, db: Database):
        self.db = db
        self.users = db["users"]
        self.products = db["products"]
        self.orders = db["orders"]
        self.posts = db["posts"]
        self.comments = db["comments"]

    def ensure_indexes(self) -> None:
        """Create the text and lookup indexes product queries rely on."""
        self.products.create_index(
            [
                ("title", pymongo.TEXT),
                ("description", pymongo.TEXT),
                ("category", pymongo.TEXT),
            ]
        )
        self.products.create_index([("category", pymongo.ASCENDING), ("price", pymongo.ASCENDING)])
        self.products.create_index([("artist", pymongo.ASCENDING), ("createdAt", pymongo.DESCENDING)])
        self.orders.create_index([("buyer", pymongo.ASCENDING), ("orderDate", pymongo.DESCENDING)])
        self.orders.create_index([("artist", pymongo.ASCENDING), ("orderDate", pymongo.DESCENDING)])
        self.posts.create_index([("title", pymongo.TEXT), ("content", pymongo.TEXT)])
        self.posts.create_index([("author", pymongo.ASCENDING), ("createdAt", pymongo.DESCENDING)])
        self.posts.create_index([("contentType", pymongo.ASCENDING), ("isPublished", pymongo.ASCENDING)])
        self.comments.create_index([("post", pymongo.ASCENDING), ("createdAt", pymongo.DESCENDING)])
        logger.info("Indexes ensured on database %s", self.db.name)

    def ping(self) -> bool:
        """True if the server answers a ping."""
        try:
            self.db.client.admin.command("ping")
        except PyMongoError as e:
            logger.warning("MongoDB ping failed: %s", e)
            return False
        return True

    # -- users --------------------------------------------------------------

    def get_user(self, user_id: str) -> User | None:
        oid = _oid(user_id)
        if oid is None:
            return None
        doc = self.users.find_one({"_id": oid})
        return _user_from_doc(doc) if doc else None

    def get_users(self, user_ids: list[str]) -> dict[str, User]:
        docs = self.users.find({"_id": {"$in": _oids(user_ids)}})
        return {str(doc["_id"]): _user_from_doc(doc) for doc in docs}

    def list_artisans(self) -> list[User]:
        return [_user_from_doc(doc) for doc in self.users.find({"userType": UserType.ARTISAN.value})]

    def add_user(self, user: User) -> User:
        self.users.insert_one(_user_to_doc(user))
        return user

    def follow(self, follower_id: str, target_id: str) -> None:
        follower, target = ObjectId(follower_id), ObjectId(target_id)
        self.users.update_one({"_id": follower}, {"$addToSet": {"following": target}})
        self.users.update_one({"_id": target}, {"$addToSet": {"followers": follower}})

    def unfollow(self, follower_id: str, target_id: str) -> None:
        follower, target = ObjectId(follower_id), ObjectId(target_id)
        self.users.update_one({"_id": follower}, {"$pull": {"following": target}})
        self.users.update_one({"_id": target}, {"$pull": {"followers": follower}})

    def toggle_favorite(self, user_id: str, product_id: str) -> bool:
        user, product = ObjectId(user_id), ObjectId(product_id)
        removed = self.users.update_one(
            {"_id": user, "favorites": product},
            {"$pull": {"favorites": product}},
        )
        if removed.modified_count:
            return False
        self.users.update_one({"_id": user}, {"$addToSet": {"favorites": product}})
        return True

    # -- products -----------------------------------------------------------

    def get_product(self, product_id: str) -> Product | None:
        oid = _oid(product_id)
        if oid is None:
            return None
        doc = self.products.find_one({"_id": oid})
        return _product_from_doc(doc) if doc else None

    def get_products(self, product_ids: list[str]) -> list[Product]:
        docs = self.products.find({"_id": {"$in": _oids(product_ids)}})
        return [_product_from_doc(doc) for doc in docs]

    def add_product(self, product: Product) -> Product:
        self.products.insert_one(_product_to_doc(product))
        return product

    def update_product(self, product_id: str, changes: dict[str, Any]) -> Product | None:
        _check_fields(changes, PRODUCT_FIELDS)
        oid = _oid(product_id)
        if oid is None:
            return None
        update = {**_to_doc_changes(changes, PRODUCT_FIELDS), "updatedAt": utcnow()}
        doc = self.products.find_one_and_update(
            {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
        return _product_from_doc(doc) if doc else None

    def delete_product(self, product_id: str) -> None:
        oid = _oid(product_id)
        if oid is not None:
            self.products.delete_one({"_id": oid})

    def find_products(self, query: ProductQuery) -> list[Product]:
        direction = -1 if query.descending else 1
        cursor = (
            self.products.find(build_product_filter(query))
            .sort(SORT_FIELDS[query.sort_by], direction)
            .skip(query.skip)
        )
        if query.limit is not None:
            cursor = cursor.limit(query.limit)
        return [_product_from_doc(doc) for doc in cursor]

    def count_products(self, query: ProductQuery) -> int:
        return self.products.count_documents(build_product_filter(query))

    def increment_views(self, product_id: str) -> None:
        oid = _oid(product_id)
        if oid is not None:
            self.products.update_one({"_id": oid}, {"$inc": {"views": 1}})

    def toggle_like(self, product_id: str, user_id: str) -> Product | None:
        oid = _oid(product_id)
        if oid is None:
            return None
        _toggle_like_doc(self.products, oid, user_id)
        return self.get_product(product_id)

    # -- orders -------------------------------------------------------------

    def add_order(self, order: Order) -> Order:
        self.orders.insert_one(_order_to_doc(order))
        return order

    def orders_for_buyer(self, buyer_id: str) -> list[Order]:
        docs = self.orders.find({"buyer": _oid(buyer_id)}).sort("orderDate", -1)
        return [_order_from_doc(doc) for doc in docs]

    def orders_for_artist(self, artist_id: str) -> list[Order]:
        docs = self.orders.find({"artist": _oid(artist_id)}).sort("orderDate", -1)
        return [_order_from_doc(doc) for doc in docs]

    def order_counts(self, product_ids: list[str]) -> dict[str, int]:
        pipeline = [
            {"$match": {"product": {"$in": _oids(product_ids)}}},
            {"$group": {"_id": "$product", "count": {"$sum": 1}}},
        ]
        found = {str(row["_id"]): row["count"] for row in self.orders.aggregate(pipeline)}
        return {pid: found.get(pid, 0) for pid in product_ids}

    # -- posts --------------------------------------------------------------

    def add_post(self, post: Post) -> Post:
        self.posts.insert_one(_post_to_doc(post))
        return post

    def get_post(self, post_id: str) -> Post | None:
        oid = _oid(post_id)
        if oid is None:
            return None
        doc = self.posts.find_one({"_id": oid})
        return _post_from_doc(doc) if doc else None

    def find_posts(self, query: PostQuery) -> list[Post]:
        cursor = self.posts.find(build_post_filter(query)).sort("createdAt", -1).skip(query.skip)
        if query.limit is not None:
            cursor = cursor.limit(query.limit)
        return [_post_from_doc(doc) for doc in cursor]

    def count_posts(self, query: PostQuery) -> int:
        return self.posts.count_documents(build_post_filter(query))

    def update_post(self, post_id: str, changes: dict[str, Any]) -> Post | None:
        _check_fields(changes, POST_FIELDS)
        oid = _oid(post_id)
        if oid is None:
            return None
        update = {**_to_doc_changes(changes, POST_FIELDS), "updatedAt": utcnow()}
        doc = self.posts.find_one_and_update(
            {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
        return _post_from_doc(doc) if doc else None

    def delete_post(self, post_id: str) -> None:
        oid = _oid(post_id)
        if oid is None:
            return
        self.comments.delete_many({"post": oid})
        self.posts.delete_one({"_id": oid})

    def toggle_post_like(self, post_id: str, user_id: str) -> Post | None:
        oid = _oid(post_id)
        if oid is None:
            return None
        _toggle_like_doc(self.posts, oid, user_id)
        return self.get_post(post_id)

    # -- comments -----------------------------------------------------------

    def add_comment(self, comment: Comment) -> Comment:
        self.comments.insert_one(_comment_to_doc(comment))
        oid = ObjectId(comment.comment_id)
        if comment.parent_id is not None:
            self.comments.update_one({"_id": _oid(comment.parent_id)}, {"$push": {"replies": oid}})
        else:
            self.posts.update_one({"_id": _oid(comment.post_id)}, {"$push": {"comments": oid}})
        return comment

    def get_comment(self, comment_id: str) -> Comment | None:
        oid = _oid(comment_id)
        if oid is None:
            return None
        doc = self.comments.find_one({"_id": oid})
        return _comment_from_doc(doc) if doc else None

    def comments_for_post(self, post_id: str, limit: int | None = None) -> list[Comment]:
        cursor = self.comments.find({"post": _oid(post_id), "parentComment": None}).sort(
            "createdAt", -1
        )
        if limit is not None:
            cursor = cursor.limit(limit)
        return [_comment_from_doc(doc) for doc in cursor]

    def edit_comment(self, comment_id: str, content: str) -> Comment | None:
        oid = _oid(comment_id)
        if oid is None:
            return None
        doc = self.comments.find_one_and_update(
            {"_id": oid},
            {"$set": {"content": content, "isEdited": True, "editedAt": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return _comment_from_doc(doc) if doc else None

    def delete_comment(self, comment_id: str) -> None:
        oid = _oid(comment_id)
        if oid is None:
            return
        doc = self.comments.find_one_and_delete({"_id": oid})
        if doc is None:
            return
        self.comments.delete_many({"_id": {"$in": doc.get("replies", [])}})
        if doc.get("parentComment"):
            self.comments.update_one({"_id": doc["parentComment"]}, {"$pull": {"replies": oid}})
        self.posts.update_one({"_id": doc["post"]}, {"$pull": {"comments": oid}})

    def toggle_comment_like(self, comment_id: str, user_id: str) -> Comment | None:
        oid = _oid(comment_id)
        if oid is None:
            return None
        _toggle_like_doc(self.comments, oid, user_id)
        return self.get_comment(comment_id)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@thread_safe_singleton
def get_mongo_client() -> pymongo.MongoClient:
    """Process-wide MongoDB client; it owns the connection pool.

    The client connects lazily; use ``MongoRepository.ping`` to check
    reachability.
    """
    client = pymongo.MongoClient(
        MONGO_URI, tz_aware=True, serverSelectionTimeoutMS=MONGO_TIMEOUT_MS
    )
    logger.info("MongoDB client created for %s", MONGO_URI.rsplit("@", 1)[-1])
    return client


def connect_mongo(db_name: str = MONGO_DB_NAME) -> MongoRepository:
    """Return a repository bound to ``db_name`` on the shared client."""
    return MongoRepository(get_mongo_client()[db_name])


def get_repository(backend: str | None = None) -> MarketplaceRepository:
    """
    Build the repository for the configured store backend.

    Args:
        backend: "mongo" or "memory". Defaults to STORE_BACKEND.

    Raises:
        ValueError: If backend is not recognized.
    """
    backend = (backend or STORE_BACKEND).lower().strip()
    if backend == STORE_MEMORY:
        logger.info("Using in-memory store")
        return InMemoryRepository()
    if backend == STORE_MONGO:
        return connect_mongo()
    raise ValueError(f"Unknown store backend: {backend}. Use 'mongo' or 'memory'.")


__all__ = [
    "InMemoryRepository",
    "MarketplaceRepository",
    "MongoRepository",
    "POST_FIELDS",
    "PRODUCT_FIELDS",
    "PostQuery",
    "ProductQuery",
    "SORT_FIELDS",
    "build_post_filter",
    "build_product_filter",
    "connect_mongo",
    "get_repository",
    "new_id",
]
