from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.permissions import Role
from app.schemas import CategoryCreate, CategoryResponse, CategoryUpdate, GroupCreate, GroupResponse
from app.security import require_role
from app.services import category_service

router = APIRouter(prefix="/api/v1", tags=["categories"])

@router.get("/groups", response_model=list[GroupResponse])
async def list_groups(db: AsyncSession = Depends(get_db)):
    return await category_service.get_groups(db)

@router.post("/groups", status_code=201, response_model=GroupResponse,
             dependencies=[Depends(require_role(Role.ADMIN))])
async def create_group(data: GroupCreate, db: AsyncSession = Depends(get_db)):
    return await category_service.create_group(db, data)

@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    return await category_service.get_categories(db)

@router.get("/categories/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: int, db: AsyncSession = Depends(get_db)):
    return await category_service.get_category(db, category_id)

@router.post("/categories", status_code=201, response_model=CategoryResponse,
             dependencies=[Depends(require_role(Role.ADMIN))])
async def create_category(data: CategoryCreate, db: AsyncSession = Depends(get_db)):
    return await category_service.create_category(db, data)

@router.patch("/categories/{category_id}", response_model=CategoryResponse,
              dependencies=[Depends(require_role(Role.ADMIN))])
async def update_category(category_id: int, data: CategoryUpdate, db: AsyncSession = Depends(get_db)):
    return await category_service.update_category(db, category_id, data)

@router.delete("/categories/{category_id}", status_code=204,
               dependencies=[Depends(require_role(Role.ADMIN))])
async def delete_category(category_id: int, db: AsyncSession = Depends(get_db)):
    await category_service.delete_category(db, category_id)
