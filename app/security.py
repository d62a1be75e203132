"""
Actor context: who is making the request.

Tokens are HS256 JWTs carrying the user id in ``sub`` and the role in
``role``.  Issuing tokens (login) belongs to the identity provider; this
module only decodes them and exposes FastAPI dependencies:

- ``get_optional_user`` - ``CurrentUser`` or ``None`` (anonymous).
- ``get_current_user`` - requires an actor, 401 otherwise.
- ``require_role(minimum)`` - requires an actor ranked at least *minimum*.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import settings
from app.exceptions import AuthenticationRequiredError, PermissionDeniedError
from app.permissions import Role, has_minimum_role

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    user_id: int
    role: Role


def create_access_token(user_id: int, role: Role, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {"sub": str(user_id), "role": Role(role).value, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> CurrentUser | None:
    """Return the actor encoded in *token*, or None when it is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        return CurrentUser(user_id=int(payload["sub"]), role=Role(payload["role"]))
    except jwt.ExpiredSignatureError:
        logger.debug("Rejected expired access token")
        return None
    except (jwt.InvalidTokenError, KeyError, ValueError) as exc:
        logger.debug("Rejected access token: %s", exc)
        return None


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> CurrentUser | None:
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials)


async def get_current_user(
    user: CurrentUser | None = Depends(get_optional_user),
) -> CurrentUser:
    if user is None:
        raise AuthenticationRequiredError()
    return user


def require_role(minimum: Role):
    """Dependency factory gating an endpoint on the actor's rank."""

    async def role_checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not has_minimum_role(user.role, minimum):
            raise PermissionDeniedError("Cannot access without Authorization.")
        return user

    return role_checker
