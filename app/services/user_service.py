"""
User service - account records and their roles.

Registration always creates a USER; promotion to ADMIN or OWNER is an
explicit, OWNER-only operation.  Credentials live with the identity
provider that issues bearer tokens, not here.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError
from app.models import User
from app.permissions import Role
from app.schemas import UserCreate

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _user_to_dict(user: User) -> dict:
    """Serialise a User ORM instance to a plain dict."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "nickname": user.nickname,
        "role": user.role,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_users(db: AsyncSession) -> list[dict]:
    """Return all users, oldest first."""
    result = await db.execute(select(User).order_by(User.id))
    return [_user_to_dict(u) for u in result.scalars().all()]


async def get_user(db: AsyncSession, user_id: int) -> dict:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return _user_to_dict(user)


async def create_user(db: AsyncSession, data: UserCreate) -> dict:
    """
    Register a new USER account.

    Email and username uniqueness is enforced at the database level
    (unique constraints in the schema) and reported as a conflict.
    """
    user = User(
        username=data.username,
        email=data.email,
        nickname=data.nickname,
        role=Role.USER,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("A user with this username or email already exists")
    logger.info("user_created user_id=%s username=%r", user.id, user.username)
    return _user_to_dict(user)


async def update_user_role(db: AsyncSession, user_id: int, role: Role) -> dict:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    previous = user.role
    user.role = role
    await db.flush()
    logger.info("user_role_changed user_id=%s from=%s to=%s", user_id, previous.value, role.value)
    return _user_to_dict(user)
