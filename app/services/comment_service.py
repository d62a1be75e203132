"""
Comment service - comments on posts.

A comment can only be read or written by an actor who may read its post
(same ``can_read`` rule as the post detail).  Editing and deleting is
limited to the comment's author or an OWNER.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.exceptions import NotFoundError, PermissionDeniedError
from app.models import Comment, Post
from app.permissions import can_read, is_owner_or_author
from app.schemas import CommentCreate, CommentUpdate
from app.security import CurrentUser

logger = logging.getLogger(__name__)


def comment_to_dict(comment: Comment) -> dict:
    author = comment.author
    return {
        "id": comment.id,
        "content": comment.content,
        "post_id": comment.post_id,
        "author": {"id": author.id, "nickname": author.nickname} if author else None,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
        "updated_at": comment.updated_at.isoformat() if comment.updated_at else None,
    }


async def _get_readable_post(db: AsyncSession, post_id: int, current_user: CurrentUser | None) -> Post:
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    if not can_read(post.read_permission, current_user.role if current_user else None):
        raise PermissionDeniedError("You do not have permission to view this post.")
    return post


async def _get_comment(db: AsyncSession, comment_id: int) -> Comment:
    q = (
        select(Comment)
        .where(Comment.id == comment_id)
        .options(joinedload(Comment.author))
        .execution_options(populate_existing=True)
    )
    comment = (await db.execute(q)).unique().scalar_one_or_none()
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment


async def get_comments(
    db: AsyncSession, post_id: int, current_user: CurrentUser | None = None
) -> list[dict]:
    await _get_readable_post(db, post_id, current_user)
    q = (
        select(Comment)
        .where(Comment.post_id == post_id)
        .options(joinedload(Comment.author))
        .order_by(Comment.id)
    )
    result = await db.execute(q)
    return [comment_to_dict(c) for c in result.unique().scalars().all()]


async def add_comment(
    db: AsyncSession,
    post_id: int,
    data: CommentCreate,
    current_user: CurrentUser,
) -> dict:
    """Append a comment written by *current_user* to a post they can read."""
    await _get_readable_post(db, post_id, current_user)

    comment = Comment(content=data.content, post_id=post_id, author_id=current_user.user_id)
    db.add(comment)
    await db.flush()
    logger.info("comment_created comment_id=%s post_id=%s user_id=%s", comment.id, post_id, current_user.user_id)

    return comment_to_dict(await _get_comment(db, comment.id))


async def update_comment(
    db: AsyncSession, comment_id: int, data: CommentUpdate, current_user: CurrentUser
) -> dict:
    comment = await _get_comment(db, comment_id)
    if not is_owner_or_author(current_user.user_id, current_user.role, comment.author_id):
        raise PermissionDeniedError("Only the owner can modify or delete this.")

    comment.content = data.content
    await db.flush()
    return comment_to_dict(comment)


async def delete_comment(db: AsyncSession, comment_id: int, current_user: CurrentUser) -> None:
    comment = await _get_comment(db, comment_id)
    if not is_owner_or_author(current_user.user_id, current_user.role, comment.author_id):
        raise PermissionDeniedError("Only the owner can modify or delete this.")

    await db.delete(comment)
    await db.flush()
    logger.info("comment_deleted comment_id=%s user_id=%s", comment_id, current_user.user_id)
