from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.permissions import Role
from app.schemas import UserCreate, UserResponse, UserRoleUpdate
from app.security import require_role
from app.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])

@router.get("", response_model=list[UserResponse])
async def list_users(db: AsyncSession = Depends(get_db)):
    return await user_service.get_users(db)

@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return await user_service.get_user(db, user_id)

@router.post("", status_code=201, response_model=UserResponse)
async def create_user(data: UserCreate, db: AsyncSession = Depends(get_db)):
    return await user_service.create_user(db, data)

@router.put("/{user_id}/role", response_model=UserResponse,
            dependencies=[Depends(require_role(Role.OWNER))])
async def update_user_role(user_id: int, data: UserRoleUpdate, db: AsyncSession = Depends(get_db)):
    return await user_service.update_user_role(db, user_id, data.role)
