from datetime import timedelta

import jwt

from app.config import settings
from app.permissions import Role
from app.security import CurrentUser, create_access_token, decode_access_token


def test_token_round_trip():
    token = create_access_token(7, Role.ADMIN)
    assert decode_access_token(token) == CurrentUser(user_id=7, role=Role.ADMIN)


def test_expired_token_is_rejected():
    token = create_access_token(7, Role.ADMIN, expires_delta=timedelta(seconds=-5))
    assert decode_access_token(token) is None


def test_token_signed_with_other_key_is_rejected():
    token = jwt.encode({"sub": "1", "role": "owner"}, "another-key", algorithm=settings.JWT_ALGORITHM)
    assert decode_access_token(token) is None


def test_token_with_unknown_role_is_rejected():
    token = jwt.encode({"sub": "1", "role": "root"}, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    assert decode_access_token(token) is None


def test_token_without_subject_is_rejected():
    token = jwt.encode({"role": "user"}, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    assert decode_access_token(token) is None


def test_garbage_token_is_rejected():
    assert decode_access_token("not-a-jwt") is None
