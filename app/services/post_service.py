"""
Post service - business logic for the Post aggregate.

Design notes
------------
- Every read is filtered through the role hierarchy in
  ``app.permissions``: list queries accept only the markers returned by
  ``list_filter_roles``, detail reads use ``can_read``, and mutations use
  ``is_owner_or_author`` followed by ``can_write_or_delete``.  Assigning a
  marker is additionally capped by ``check_marker_ceiling``.
- Eager loading via ``joinedload`` (many-to-one: author, category, group)
  and ``selectinload`` (tags, comments) is used throughout because every
  relationship is declared ``lazy="noload"``.
- Likes and views are incremented with a single ``UPDATE ... SET col =
  col + 1`` so concurrent requests never lose an increment.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import logging
import math

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from app.config import settings
from app.exceptions import (
    AuthenticationRequiredError,
    InvalidInputError,
    MarkerCeilingError,
    NotFoundError,
    PermissionDeniedError,
)
from app.models import Category, Comment, Group, Post, PostType, Tag, User
from app.permissions import (
    Role,
    can_read,
    can_write_or_delete,
    check_marker_ceiling,
    is_owner_or_author,
    list_filter_roles,
)
from app.schemas import PaginatedResponse, PostCreate, PostUpdate
from app.security import CurrentUser
from app.services.comment_service import comment_to_dict

logger = logging.getLogger(__name__)

_LIST_OPTIONS = (
    joinedload(Post.author),
    joinedload(Post.category).joinedload(Category.group),
    selectinload(Post.tags),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _actor_role(current_user: CurrentUser | None) -> Role | None:
    return current_user.role if current_user else None


def _log_post_event(event: str, post_id: int | None, current_user: CurrentUser | None, title: str | None = None) -> None:
    logger.info(
        "post_event=%s post_id=%s user_id=%s%s",
        event,
        post_id,
        current_user.user_id if current_user else None,
        f" title={title!r}" if title else "",
    )


def permission_clause(current_user: CurrentUser | None):
    """SQL condition accepting exactly the markers the actor may list."""
    roles = [r for r in list_filter_roles(_actor_role(current_user)) if r is not None]
    clause = Post.read_permission.is_(None)
    if roles:
        clause = or_(clause, Post.read_permission.in_(roles))
    return clause


def _post_type_for(category: Category) -> PostType:
    if category.group is not None and category.group.label == settings.LIFE_GROUP_LABEL:
        return PostType.LIFE
    return PostType.DEV


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _post_to_dict(post: Post) -> dict:
    """Serialise a Post ORM instance to a plain dict (list view)."""
    category = post.category
    group = category.group if category else None
    author = post.author
    return {
        "id": post.id,
        "title": post.title,
        "preview_text": post.preview_text,
        "thumbnail_url": post.thumbnail_url,
        "type": post.type,
        "created_at": post.created_at.isoformat() if post.created_at else None,
        "category_label": category.label if category else None,
        "group_label": group.label if group else None,
        "tags": [{"id": t.id, "title": t.title} for t in post.tags],
        "author": (author.nickname or author.username) if author else "unknown",
        "author_role": author.role if author else None,
        "read_permission": post.read_permission,
    }


def _post_detail_to_dict(post: Post) -> dict:
    """Serialise a Post ORM instance to a plain dict (detail view)."""
    data = _post_to_dict(post)
    data.update({
        "content": post.content,
        "likes": post.likes,
        "view": post.view,
        "author_id": post.author_id,
        "category_id": post.category_id,
        "updated_at": post.updated_at.isoformat() if post.updated_at else None,
        "comments": [comment_to_dict(c) for c in post.comments],
    })
    return data


# ---------------------------------------------------------------------------
# Loading helpers
# ---------------------------------------------------------------------------

async def _load_post(db: AsyncSession, post_id: int, with_comments: bool = False) -> Post | None:
    options = list(_LIST_OPTIONS)
    if with_comments:
        options.append(selectinload(Post.comments).joinedload(Comment.author))
    q = (
        select(Post)
        .where(Post.id == post_id)
        .options(*options)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    return result.unique().scalar_one_or_none()


async def _get_category(db: AsyncSession, category_id: int | None) -> Category:
    category = None
    if category_id is not None:
        q = select(Category).where(Category.id == category_id).options(joinedload(Category.group))
        category = (await db.execute(q)).unique().scalar_one_or_none()
    if category is None:
        raise NotFoundError(f"Category with ID {category_id} does not exist")
    return category


async def _resolve_tags(db: AsyncSession, tag_ids: list[int]) -> list[Tag]:
    """Return the Tag rows for *tag_ids*; every id must exist."""
    if not tag_ids:
        return []
    wanted = set(tag_ids)
    result = await db.execute(select(Tag).where(Tag.id.in_(wanted)))
    tags = list(result.scalars().all())
    if len(tags) != len(wanted):
        raise NotFoundError("Some tags were not found")
    return tags


async def _resolve_subject(
    db: AsyncSession,
    group_id: int | None,
    category_id: int | None,
    tag_ids: list[int] | None,
    post_type: str | None,
) -> str:
    """Human label for what the list was narrowed by."""
    subject = ""
    if group_id:
        group = await db.get(Group, group_id)
        subject = group.label if group else ""
    elif category_id:
        category = await db.get(Category, category_id)
        subject = category.label if category else ""
    elif tag_ids:
        result = await db.execute(select(Tag.title).where(Tag.id.in_(tag_ids)).order_by(Tag.id))
        subject = ", ".join(result.scalars().all())

    if post_type:
        subject = post_type
    return subject


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_posts(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 12,
    *,
    group_id: int | None = None,
    category_id: int | None = None,
    tag_ids: list[int] | None = None,
    post_type: str | None = None,
    current_user: CurrentUser | None = None,
) -> PaginatedResponse:
    """
    Return the newest posts the actor may see, one page at a time.

    At most one narrowing filter applies, chosen in the order group,
    category, tags, type.
    """
    q = select(Post).where(permission_clause(current_user))
    if group_id:
        q = q.where(Post.category.has(Category.group_id == group_id))
    elif category_id:
        q = q.where(Post.category_id == category_id)
    elif tag_ids:
        q = q.where(Post.tags.any(Tag.id.in_(tag_ids)))
    elif post_type in (PostType.DEV.value, PostType.LIFE.value):
        q = q.where(Post.type == PostType(post_type))

    total: int = (await db.execute(select(func.count()).select_from(q.subquery()))).scalar_one()

    posts_q = (
        q.options(*_LIST_OPTIONS)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(posts_q)
    posts = result.unique().scalars().all()

    return PaginatedResponse(
        items=[_post_to_dict(p) for p in posts],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total > 0 else 0,
        subject=await _resolve_subject(db, group_id, category_id, tag_ids, post_type),
    )


async def get_post(db: AsyncSession, post_id: int, current_user: CurrentUser | None = None) -> dict:
    """
    Return the full detail dict for *post_id*, including content and
    comments.

    Raises NotFoundError when the post does not exist and
    PermissionDeniedError when its marker is above the actor's role.
    """
    post = await _load_post(db, post_id, with_comments=True)
    if post is None:
        raise NotFoundError("Post not found")

    if not can_read(post.read_permission, _actor_role(current_user)):
        _log_post_event("post_access_denied", post_id, current_user)
        raise PermissionDeniedError("You do not have permission to view this post.")

    _log_post_event("post_read", post_id, current_user, post.title)
    return _post_detail_to_dict(post)


async def create_post(db: AsyncSession, data: PostCreate, current_user: CurrentUser | None) -> dict:
    if current_user is None:
        raise AuthenticationRequiredError()

    author = await db.get(User, current_user.user_id)
    if author is None:
        raise NotFoundError(f"User with ID {current_user.user_id} not found")

    try:
        check_marker_ceiling(current_user.role, data.read_permission)
    except MarkerCeilingError:
        _log_post_event("post_creation_permission_denied", None, current_user)
        raise

    category = await _get_category(db, data.category_id)
    tags = await _resolve_tags(db, data.tag_ids)

    post = Post(
        title=data.title,
        content=data.content,
        preview_text=data.preview_text,
        thumbnail_url=data.thumbnail_url,
        read_permission=data.read_permission,
        type=_post_type_for(category),
        author=author,
        category=category,
        tags=tags,
        comments=[],
    )
    db.add(post)
    await db.flush()

    _log_post_event("post_created", post.id, current_user, post.title)
    return _post_detail_to_dict(post)


async def update_post(
    db: AsyncSession, post_id: int, data: PostUpdate, current_user: CurrentUser
) -> dict:
    """
    Replace the editable fields of a post.

    Title, content, preview text and category are required on every
    update and the tag list is replaced (an omitted list clears the tags).
    The read permission only changes when the request sends it.
    """
    post = await _load_post(db, post_id, with_comments=True)
    if post is None:
        _log_post_event("post_not_found_for_update", post_id, current_user)
        raise NotFoundError("Post not found")

    if not is_owner_or_author(current_user.user_id, current_user.role, post.author_id):
        raise PermissionDeniedError("Only the owner can modify or delete this.")

    if not can_write_or_delete(post.read_permission, current_user.role):
        _log_post_event("post_update_permission_denied", post_id, current_user)
        raise PermissionDeniedError("You do not have permission to update this post.")

    if not data.title:
        raise InvalidInputError("Invalid Title")
    if not data.content:
        raise InvalidInputError("Invalid Content")
    if data.preview_text is None:
        raise InvalidInputError("Invalid PreviewText")

    category = await _get_category(db, data.category_id)
    tags = await _resolve_tags(db, data.tag_ids or [])

    if "read_permission" in data.model_fields_set:
        check_marker_ceiling(current_user.role, data.read_permission)
        post.read_permission = data.read_permission

    post.title = data.title
    post.content = data.content
    post.preview_text = data.preview_text
    if data.thumbnail_url is not None:
        post.thumbnail_url = data.thumbnail_url
    post.category = category
    post.type = _post_type_for(category)
    post.tags = tags

    await db.flush()
    _log_post_event("post_updated", post_id, current_user)
    return _post_detail_to_dict(post)


async def delete_post(db: AsyncSession, post_id: int, current_user: CurrentUser) -> None:
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFoundError(f"Post with ID {post_id} does not exist")

    if not is_owner_or_author(current_user.user_id, current_user.role, post.author_id):
        raise PermissionDeniedError("Only the owner can modify or delete this.")
    if not can_write_or_delete(post.read_permission, current_user.role):
        raise PermissionDeniedError("You do not have permission to delete this post.")

    await db.delete(post)
    await db.flush()
    _log_post_event("post_deleted", post_id, current_user)


async def get_related_posts(db: AsyncSession, post_id: int) -> list[dict]:
    """
    Return up to ``RELATED_POSTS_LIMIT`` public posts similar to *post_id*.

    Score: 10 per shared tag, 5 for the same category, 1 for the same
    category group.
    """
    target = await _load_post(db, post_id)
    if target is None:
        raise NotFoundError("Post not found")

    tag_ids = {t.id for t in target.tags}
    category_id = target.category_id
    group_id = target.category.group_id if target.category else None

    related_conditions = []
    if tag_ids:
        related_conditions.append(Post.tags.any(Tag.id.in_(tag_ids)))
    if category_id is not None:
        related_conditions.append(Post.category_id == category_id)
    if group_id is not None:
        related_conditions.append(Post.category.has(Category.group_id == group_id))
    if not related_conditions:
        return []

    q = (
        select(Post)
        .where(Post.id != post_id, Post.read_permission.is_(None), or_(*related_conditions))
        .options(*_LIST_OPTIONS)
    )
    candidates = (await db.execute(q)).unique().scalars().all()

    def score(post: Post) -> int:
        value = 10 * len(tag_ids & {t.id for t in post.tags})
        if category_id is not None and post.category_id == category_id:
            value += 5
        if group_id is not None and post.category is not None and post.category.group_id == group_id:
            value += 1
        return value

    ranked = sorted(candidates, key=lambda p: (score(p), p.id), reverse=True)
    return [
        {**_post_to_dict(p), "score": score(p)}
        for p in ranked[: settings.RELATED_POSTS_LIMIT]
    ]


async def get_adjacent_posts(
    db: AsyncSession, post_id: int, current_user: CurrentUser | None = None
) -> dict:
    """Previous and next post (by id) that the actor is allowed to list."""
    if await db.get(Post, post_id) is None:
        raise NotFoundError("Post not found")

    clause = permission_clause(current_user)
    prev_q = (
        select(Post).where(Post.id < post_id, clause)
        .options(*_LIST_OPTIONS).order_by(Post.id.desc()).limit(1)
    )
    next_q = (
        select(Post).where(Post.id > post_id, clause)
        .options(*_LIST_OPTIONS).order_by(Post.id.asc()).limit(1)
    )
    previous = (await db.execute(prev_q)).unique().scalar_one_or_none()
    following = (await db.execute(next_q)).unique().scalar_one_or_none()

    return {
        "previous": _post_to_dict(previous) if previous else None,
        "next": _post_to_dict(following) if following else None,
    }


async def _increment_counter(db: AsyncSession, post_id: int, column) -> int:
    result = await db.execute(
        update(Post).where(Post.id == post_id).values({column: column + 1})
    )
    if result.rowcount == 0:
        raise NotFoundError(f"Post with ID {post_id} does not exist")
    return (await db.execute(select(column).where(Post.id == post_id))).scalar_one()


async def add_like(db: AsyncSession, post_id: int) -> dict:
    return {"id": post_id, "likes": await _increment_counter(db, post_id, Post.likes)}


async def add_view(db: AsyncSession, post_id: int) -> dict:
    return {"id": post_id, "view": await _increment_counter(db, post_id, Post.view)}


async def delete_posts_by_user_role(db: AsyncSession) -> int:
    """Delete every post written by a USER-role account; returns the row count."""
    user_ids = select(User.id).where(User.role == Role.USER)
    result = await db.execute(
        delete(Post)
        .where(Post.author_id.in_(user_ids))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0
