"""
Category service - categories and the groups they belong to.

A post's type is derived from its category's group (see
``post_service._post_type_for``), so categories are only editable by
ADMIN and above; the router enforces that with ``require_role``.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.exceptions import ConflictError, NotFoundError
from app.models import Category, Group
from app.schemas import CategoryCreate, CategoryUpdate, GroupCreate

logger = logging.getLogger(__name__)


def _category_to_dict(category: Category) -> dict:
    return {
        "id": category.id,
        "label": category.label,
        "group_id": category.group_id,
        "group_label": category.group.label if category.group else None,
    }


def _group_to_dict(group: Group) -> dict:
    return {"id": group.id, "label": group.label}


async def _flush_unique(db: AsyncSession, what: str) -> None:
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"A {what} with this label already exists")


async def _get_group(db: AsyncSession, group_id: int) -> Group:
    group = await db.get(Group, group_id)
    if group is None:
        raise NotFoundError(f"Group with ID {group_id} not found")
    return group


async def _get_category(db: AsyncSession, category_id: int) -> Category:
    q = (
        select(Category)
        .where(Category.id == category_id)
        .options(joinedload(Category.group))
        .execution_options(populate_existing=True)
    )
    category = (await db.execute(q)).unique().scalar_one_or_none()
    if category is None:
        raise NotFoundError(f"Category with ID {category_id} not found")
    return category


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------

async def get_groups(db: AsyncSession) -> list[dict]:
    result = await db.execute(select(Group).order_by(Group.id))
    return [_group_to_dict(g) for g in result.scalars().all()]


async def create_group(db: AsyncSession, data: GroupCreate) -> dict:
    group = Group(label=data.label)
    db.add(group)
    await _flush_unique(db, "group")
    logger.info("group_created group_id=%s label=%r", group.id, group.label)
    return _group_to_dict(group)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

async def get_categories(db: AsyncSession) -> list[dict]:
    q = select(Category).options(joinedload(Category.group)).order_by(Category.id)
    result = await db.execute(q)
    return [_category_to_dict(c) for c in result.unique().scalars().all()]


async def get_category(db: AsyncSession, category_id: int) -> dict:
    return _category_to_dict(await _get_category(db, category_id))


async def create_category(db: AsyncSession, data: CategoryCreate) -> dict:
    group = await _get_group(db, data.group_id) if data.group_id is not None else None
    category = Category(label=data.label, group=group)
    db.add(category)
    await _flush_unique(db, "category")
    logger.info("category_created category_id=%s label=%r", category.id, category.label)
    return _category_to_dict(category)


async def update_category(db: AsyncSession, category_id: int, data: CategoryUpdate) -> dict:
    """Partially update a category; only fields sent in the request change."""
    category = await _get_category(db, category_id)
    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("label") is not None:
        category.label = update_data["label"]
    if "group_id" in update_data:
        group_id = update_data["group_id"]
        category.group = await _get_group(db, group_id) if group_id is not None else None

    await _flush_unique(db, "category")
    return _category_to_dict(category)


async def delete_category(db: AsyncSession, category_id: int) -> None:
    """Delete a category; its posts keep existing without one."""
    category = await _get_category(db, category_id)
    await db.delete(category)
    await db.flush()
    logger.info("category_deleted category_id=%s", category_id)
