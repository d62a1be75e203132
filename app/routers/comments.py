from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.schemas import CommentCreate, CommentResponse, CommentUpdate
from app.security import CurrentUser, get_current_user, get_optional_user
from app.services import comment_service

router = APIRouter(prefix="/api/v1", tags=["comments"])

@router.get("/posts/{post_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    post_id: int,
    user: CurrentUser | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.get_comments(db, post_id, user)

@router.post("/posts/{post_id}/comments", status_code=201, response_model=CommentResponse)
async def add_comment(
    post_id: int,
    data: CommentCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.add_comment(db, post_id, data, user)

@router.patch("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int,
    data: CommentUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.update_comment(db, comment_id, data, user)

@router.delete("/comments/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.delete_comment(db, comment_id, user)
