from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.permissions import Role
from app.schemas import TagCreate, TagResponse
from app.security import get_current_user, require_role
from app.services import tag_service

router = APIRouter(prefix="/api/v1/tags", tags=["tags"])

@router.get("", response_model=list[TagResponse])
async def list_tags(db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tags(db)

@router.get("/{tag_id}", response_model=TagResponse)
async def get_tag(tag_id: int, db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tag(db, tag_id)

@router.post("", status_code=201, response_model=TagResponse,
             dependencies=[Depends(get_current_user)])
async def create_tag(data: TagCreate, db: AsyncSession = Depends(get_db)):
    return await tag_service.create_tag(db, data)

@router.delete("/{tag_id}", status_code=204, dependencies=[Depends(require_role(Role.ADMIN))])
async def delete_tag(tag_id: int, db: AsyncSession = Depends(get_db)):
    await tag_service.delete_tag(db, tag_id)
