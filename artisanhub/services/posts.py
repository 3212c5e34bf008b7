"""
Community posts service.

Posts (optionally showcasing a product), threaded comments and likes.
Authors alone may change or remove what they wrote.
"""

from __future__ import annotations

from typing import Any

from artisanhub.adapters.repository import (
    POST_FIELDS,
    MarketplaceRepository,
    PostQuery,
    new_id,
)
from artisanhub.config import DEFAULT_POSTS_PAGE_SIZE, POST_PREVIEW_COMMENTS, get_logger
from artisanhub.core import Comment, ContentType, Post, PostPage, User
from artisanhub.exceptions import (
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from artisanhub.services.feed import validate_paging

logger = get_logger(__name__)


def parse_content_type(value: str | None) -> ContentType | None:
    """Map a content type query value to ContentType; None and empty mean any."""
    if not value:
        return None
    try:
        return ContentType(value)
    except ValueError as e:
        raise ValidationError(f"Unknown content type: {value}") from e


def _require_text(value: str | None, what: str) -> None:
    if value is not None and not value.strip():
        raise ValidationError(f"{what} is required")


class PostService:
    """Post, comment and like operations on behalf of a requester."""

    def __init__(self, repository: MarketplaceRepository):
        self.repository = repository

    def _requester(self, user_id: str) -> User:
        user = self.repository.get_user(user_id)
        if user is None:
            raise UnauthorizedError(f"Unknown user: {user_id}")
        return user

    def _post(self, post_id: str) -> Post:
        post = self.repository.get_post(post_id)
        if post is None:
            raise NotFoundError("Post", post_id)
        return post

    def _comment(self, comment_id: str) -> Comment:
        comment = self.repository.get_comment(comment_id)
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        return comment

    # -------------------------------------------------------------------------
    # Posts
    # -------------------------------------------------------------------------

    def create_post(
        self,
        author_id: str,
        title: str,
        content: str,
        content_type: ContentType = ContentType.POST,
        product_id: str | None = None,
        tags: list[str] | None = None,
    ) -> Post:
        """
        Publish a post.

        Raises:
            NotFoundError: If ``product_id`` names an unknown product.
            ValidationError: On an empty title or content.
        """
        author = self._requester(author_id)
        _require_text(title, "Post title")
        _require_text(content, "Post content")
        if product_id is not None and self.repository.get_product(product_id) is None:
            raise NotFoundError("Product", product_id)

        post = Post(
            post_id=new_id(),
            author_id=author.user_id,
            author_name=author.name,
            title=title.strip(),
            content=content,
            content_type=content_type,
            product_id=product_id,
            tags=list(tags or []),
        )
        self.repository.add_post(post)
        logger.info("%s published post %s", author_id, post.post_id)
        return post

    def list_posts(
        self,
        page: int = 1,
        limit: int = DEFAULT_POSTS_PAGE_SIZE,
        content_type: str | None = None,
        author: str | None = None,
        search: str | None = None,
    ) -> PostPage:
        """
        One page of published posts, newest first.

        Each post carries its newest few top-level comments.

        Raises:
            ValidationError: On bad paging or an unknown content type.
        """
        validate_paging(page, limit)
        query = PostQuery(
            content_type=parse_content_type(content_type),
            author=author or None,
            search=search or None,
            skip=(page - 1) * limit,
            limit=limit,
        )
        posts = self.repository.find_posts(query)
        recent = {
            p.post_id: self.repository.comments_for_post(p.post_id, limit=POST_PREVIEW_COMMENTS)
            for p in posts
        }
        total = self.repository.count_posts(query)
        return PostPage(posts=posts, total=total, recent_comments=recent)

    def get_post(self, post_id: str) -> tuple[Post, list[Comment]]:
        """A post with all its top-level comments, newest first."""
        post = self._post(post_id)
        return post, self.repository.comments_for_post(post_id)

    def update_post(self, post_id: str, user_id: str, changes: dict[str, Any]) -> Post:
        """
        Apply author changes to a post.

        Raises:
            NotFoundError: If the post does not exist.
            ForbiddenError: If the requester is not the author.
            ValidationError: On unknown fields or an empty title or content.
        """
        self._requester(user_id)
        post = self._post(post_id)
        if post.author_id != user_id:
            raise ForbiddenError("Not authorized to update this post")
        unknown = set(changes) - set(POST_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        _require_text(changes.get("title"), "Post title")
        _require_text(changes.get("content"), "Post content")
        if not changes:
            return post

        updated = self.repository.update_post(post_id, changes)
        if updated is None:
            raise NotFoundError("Post", post_id)
        return updated

    def delete_post(self, post_id: str, user_id: str) -> None:
        """Delete a post and every comment on it. Only the author may."""
        self._requester(user_id)
        post = self._post(post_id)
        if post.author_id != user_id:
            raise ForbiddenError("Not authorized to delete this post")
        self.repository.delete_post(post_id)
        logger.info("%s deleted post %s", user_id, post_id)

    def toggle_post_like(self, post_id: str, user_id: str) -> tuple[bool, int]:
        """
        Like or unlike a post.

        Returns:
            (liked after the toggle, new like count).
        """
        self._requester(user_id)
        updated = self.repository.toggle_post_like(post_id, user_id)
        if updated is None:
            raise NotFoundError("Post", post_id)
        return user_id in updated.likes, updated.like_count

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    def add_comment(
        self,
        post_id: str,
        user_id: str,
        content: str,
        parent_id: str | None = None,
    ) -> Comment:
        """
        Comment on a post, or reply to one of its comments.

        Raises:
            NotFoundError: If the post, or the parent comment, does not exist.
            ValidationError: On empty content or a parent from another post.
        """
        author = self._requester(user_id)
        self._post(post_id)
        _require_text(content, "Comment content")
        if parent_id is not None:
            parent = self._comment(parent_id)
            if parent.post_id != post_id:
                raise ValidationError("Parent comment belongs to another post")

        comment = Comment(
            comment_id=new_id(),
            post_id=post_id,
            author_id=author.user_id,
            author_name=author.name,
            content=content,
            parent_id=parent_id,
        )
        self.repository.add_comment(comment)
        return comment

    def edit_comment(self, comment_id: str, user_id: str, content: str) -> Comment:
        """
        Replace a comment's text and mark it edited.

        Raises:
            NotFoundError: If the comment does not exist.
            ForbiddenError: If the requester is not the author.
        """
        self._requester(user_id)
        comment = self._comment(comment_id)
        if comment.author_id != user_id:
            raise ForbiddenError("Not authorized to update this comment")
        _require_text(content, "Comment content")

        updated = self.repository.edit_comment(comment_id, content)
        if updated is None:
            raise NotFoundError("Comment", comment_id)
        return updated

    def delete_comment(self, comment_id: str, user_id: str) -> None:
        """Delete a comment and its replies. Only the author may."""
        self._requester(user_id)
        comment = self._comment(comment_id)
        if comment.author_id != user_id:
            raise ForbiddenError("Not authorized to delete this comment")
        self.repository.delete_comment(comment_id)

    def toggle_comment_like(self, comment_id: str, user_id: str) -> tuple[bool, int]:
        """Like or unlike a comment; returns (liked, like count)."""
        self._requester(user_id)
        updated = self.repository.toggle_comment_like(comment_id, user_id)
        if updated is None:
            raise NotFoundError("Comment", comment_id)
        return user_id in updated.likes, updated.like_count
