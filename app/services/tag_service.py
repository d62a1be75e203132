"""Tag service - the flat tag vocabulary posts are labelled with."""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError
from app.models import Tag
from app.schemas import TagCreate

logger = logging.getLogger(__name__)


def _tag_to_dict(tag: Tag) -> dict:
    return {"id": tag.id, "title": tag.title}


async def get_tags(db: AsyncSession) -> list[dict]:
    result = await db.execute(select(Tag).order_by(Tag.title))
    return [_tag_to_dict(t) for t in result.scalars().all()]


async def get_tag(db: AsyncSession, tag_id: int) -> dict:
    tag = await db.get(Tag, tag_id)
    if tag is None:
        raise NotFoundError(f"Tag with ID {tag_id} not found")
    return _tag_to_dict(tag)


async def create_tag(db: AsyncSession, data: TagCreate) -> dict:
    existing = await db.execute(select(Tag).where(Tag.title == data.title))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"Tag {data.title!r} already exists")

    tag = Tag(title=data.title)
    db.add(tag)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"Tag {data.title!r} already exists")
    logger.info("tag_created tag_id=%s title=%r", tag.id, tag.title)
    return _tag_to_dict(tag)


async def delete_tag(db: AsyncSession, tag_id: int) -> None:
    tag = await db.get(Tag, tag_id)
    if tag is None:
        raise NotFoundError(f"Tag with ID {tag_id} not found")
    await db.delete(tag)
    await db.flush()
    logger.info("tag_deleted tag_id=%s", tag_id)
