from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.dependencies import PaginationParams, PostFilterParams
from app.schemas import (
    AdjacentPosts,
    LikesResponse,
    PaginatedResponse,
    PostCreate,
    PostDetail,
    PostUpdate,
    RelatedPost,
    ViewResponse,
)
from app.security import CurrentUser, get_current_user, get_optional_user
from app.services import post_service

router = APIRouter(prefix="/api/v1/posts", tags=["posts"])

@router.get("", response_model=PaginatedResponse)
async def list_posts(
    pagination: PaginationParams = Depends(),
    filters: PostFilterParams = Depends(),
    user: CurrentUser | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.get_posts(
        db,
        pagination.page,
        pagination.page_size,
        group_id=filters.group_id,
        category_id=filters.category_id,
        tag_ids=filters.tag_ids,
        post_type=filters.type,
        current_user=user,
    )

@router.post("", status_code=201, response_model=PostDetail)
async def create_post(
    data: PostCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.create_post(db, data, user)

@router.get("/{post_id}", response_model=PostDetail)
async def get_post(
    post_id: int,
    user: CurrentUser | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.get_post(db, post_id, user)

@router.get("/{post_id}/related", response_model=list[RelatedPost])
async def get_related_posts(post_id: int, db: AsyncSession = Depends(get_db)):
    return await post_service.get_related_posts(db, post_id)

@router.get("/{post_id}/adjacent", response_model=AdjacentPosts)
async def get_adjacent_posts(
    post_id: int,
    user: CurrentUser | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.get_adjacent_posts(db, post_id, user)

@router.patch("/{post_id}", response_model=PostDetail)
async def update_post(
    post_id: int,
    data: PostUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.update_post(db, post_id, data, user)

@router.delete("/{post_id}", status_code=204)
async def delete_post(
    post_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await post_service.delete_post(db, post_id, user)

@router.post("/{post_id}/likes", response_model=LikesResponse)
async def add_like(post_id: int, db: AsyncSession = Depends(get_db)):
    return await post_service.add_like(db, post_id)

@router.post("/{post_id}/view", response_model=ViewResponse)
async def add_view(post_id: int, db: AsyncSession = Depends(get_db)):
    return await post_service.add_view(db, post_id)
