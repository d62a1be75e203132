"""
Role hierarchy and the pure permission checks applied to posts.

A post carries an optional *marker* (``Post.read_permission``): ``None``
means public, a ``Role`` means "at least this role is required".  Every
function here is side-effect free so the whole policy can be tested
exhaustively without a database.
"""
from __future__ import annotations

import enum
from typing import Optional

from app.exceptions import MarkerCeilingError


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"
    OWNER = "owner"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    # str's lexical ordering would put "admin" < "owner" < "user".
    def __lt__(self, other):
        if isinstance(other, Role):
            return self.rank < other.rank
        return NotImplemented

    def __le__(self, other):
        if isinstance(other, Role):
            return self.rank <= other.rank
        return NotImplemented

    def __gt__(self, other):
        if isinstance(other, Role):
            return self.rank > other.rank
        return NotImplemented

    def __ge__(self, other):
        if isinstance(other, Role):
            return self.rank >= other.rank
        return NotImplemented


_RANKS = {Role.USER: 1, Role.ADMIN: 2, Role.OWNER: 3}


def can_read(marker: Optional[Role], actor_role: Optional[Role]) -> bool:
    """Public posts are readable by anyone; restricted ones need rank >= marker."""
    if marker is None:
        return True
    if actor_role is None:
        return False
    return actor_role >= marker


def can_write_or_delete(marker: Optional[Role], actor_role: Optional[Role]) -> bool:
    """
    Whether *actor_role* may modify or delete a post carrying *marker*.

    Any authenticated actor passes on a public post.  Whether the actor
    actually authored the post is checked separately (see
    ``is_owner_or_author``).
    """
    if actor_role is None:
        return False
    if actor_role is Role.OWNER:
        return True
    if marker is None:
        return True
    return actor_role >= marker


def list_filter_roles(actor_role: Optional[Role]) -> set[Optional[Role]]:
    """Marker values a list query must accept for *actor_role* (``None`` = public)."""
    allowed: set[Optional[Role]] = {None}
    if actor_role is None:
        return allowed
    allowed.update(role for role in Role if role <= actor_role)
    return allowed


def can_assign_marker(actor_role: Role, marker: Optional[Role]) -> bool:
    """Write ceiling: an actor may not assign a marker above their own role."""
    if marker is None:
        return True
    return marker <= actor_role


def check_marker_ceiling(actor_role: Role, marker: Optional[Role]) -> None:
    if can_assign_marker(actor_role, marker):
        return
    if actor_role is Role.USER:
        raise MarkerCeilingError("Users can only create public or user-level posts.")
    raise MarkerCeilingError("Admins cannot create owner-only posts.")


def has_minimum_role(actor_role: Optional[Role], minimum: Role) -> bool:
    return actor_role is not None and actor_role >= minimum


def is_owner_or_author(actor_id: int, actor_role: Role, author_id: Optional[int]) -> bool:
    """Ownership layer: the resource's author, or any OWNER."""
    if actor_role is Role.OWNER:
        return True
    return author_id is not None and author_id == actor_id
