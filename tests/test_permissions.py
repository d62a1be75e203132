"""
Table-driven tests for the role hierarchy and post permission checks.

All functions under test are pure, so every (marker, actor) combination is
enumerated rather than sampled.
"""
import itertools

import pytest

from app.exceptions import MarkerCeilingError, PermissionDeniedError
from app.permissions import (
    Role,
    can_assign_marker,
    can_read,
    can_write_or_delete,
    check_marker_ceiling,
    has_minimum_role,
    is_owner_or_author,
    list_filter_roles,
)

MARKERS = [None, Role.USER, Role.ADMIN, Role.OWNER]
ACTORS = [None, Role.USER, Role.ADMIN, Role.OWNER]
ROLES = list(Role)


# ---------------------------------------------------------------------------
# Role ordering
# ---------------------------------------------------------------------------

def test_role_ranks():
    assert [r.rank for r in ROLES] == [1, 2, 3]


def test_role_order_follows_rank_not_alphabet():
    assert Role.USER < Role.ADMIN < Role.OWNER
    assert sorted([Role.OWNER, Role.USER, Role.ADMIN]) == [Role.USER, Role.ADMIN, Role.OWNER]
    assert max(ROLES) is Role.OWNER


def test_role_compares_equal_to_its_value():
    assert Role("admin") is Role.ADMIN
    assert Role.ADMIN == "admin"


# ---------------------------------------------------------------------------
# can_read
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("marker, actor, expected", [
    (None, None, True),
    (None, Role.USER, True),
    (None, Role.ADMIN, True),
    (None, Role.OWNER, True),
    (Role.USER, None, False),
    (Role.USER, Role.USER, True),
    (Role.USER, Role.ADMIN, True),
    (Role.USER, Role.OWNER, True),
    (Role.ADMIN, None, False),
    (Role.ADMIN, Role.USER, False),
    (Role.ADMIN, Role.ADMIN, True),
    (Role.ADMIN, Role.OWNER, True),
    (Role.OWNER, None, False),
    (Role.OWNER, Role.USER, False),
    (Role.OWNER, Role.ADMIN, False),
    (Role.OWNER, Role.OWNER, True),
])
def test_can_read_table(marker, actor, expected):
    assert can_read(marker, actor) is expected


@pytest.mark.parametrize("marker", MARKERS)
def test_can_read_is_monotonic_in_rank(marker):
    for lower, higher in itertools.combinations(ROLES, 2):
        if can_read(marker, lower):
            assert can_read(marker, higher)


# ---------------------------------------------------------------------------
# can_write_or_delete
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("marker, actor, expected", [
    (None, Role.USER, True),
    (None, Role.ADMIN, True),
    (None, Role.OWNER, True),
    (Role.USER, Role.USER, True),
    (Role.USER, Role.ADMIN, True),
    (Role.ADMIN, Role.USER, False),
    (Role.ADMIN, Role.ADMIN, True),
    (Role.OWNER, Role.USER, False),
    (Role.OWNER, Role.ADMIN, False),
    (Role.OWNER, Role.OWNER, True),
])
def test_can_write_or_delete_table(marker, actor, expected):
    assert can_write_or_delete(marker, actor) is expected


@pytest.mark.parametrize("actor", ROLES)
def test_any_authenticated_actor_may_write_public(actor):
    assert can_write_or_delete(None, actor) is True


@pytest.mark.parametrize("marker", MARKERS)
def test_anonymous_may_never_write(marker):
    assert can_write_or_delete(marker, None) is False


@pytest.mark.parametrize("marker", MARKERS)
def test_owner_may_always_write(marker):
    assert can_write_or_delete(marker, Role.OWNER) is True


# ---------------------------------------------------------------------------
# list_filter_roles
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("actor, expected", [
    (None, {None}),
    (Role.USER, {None, Role.USER}),
    (Role.ADMIN, {None, Role.USER, Role.ADMIN}),
    (Role.OWNER, {None, Role.USER, Role.ADMIN, Role.OWNER}),
])
def test_list_filter_roles_table(actor, expected):
    assert list_filter_roles(actor) == expected


@pytest.mark.parametrize("actor", ACTORS)
def test_list_filter_roles_includes_public_and_excludes_higher_ranks(actor):
    allowed = list_filter_roles(actor)
    assert None in allowed
    for role in ROLES:
        if actor is None or role.rank > actor.rank:
            assert role not in allowed


@pytest.mark.parametrize("actor", ACTORS)
def test_list_filter_roles_agrees_with_can_read(actor):
    allowed = list_filter_roles(actor)
    for marker in MARKERS:
        assert (marker in allowed) is can_read(marker, actor)


def test_list_filter_roles_is_monotonic():
    for lower, higher in itertools.combinations(ROLES, 2):
        assert list_filter_roles(lower) <= list_filter_roles(higher)


# ---------------------------------------------------------------------------
# Write ceiling
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("actor, marker, expected", [
    (Role.USER, None, True),
    (Role.USER, Role.USER, True),
    (Role.USER, Role.ADMIN, False),
    (Role.USER, Role.OWNER, False),
    (Role.ADMIN, None, True),
    (Role.ADMIN, Role.USER, True),
    (Role.ADMIN, Role.ADMIN, True),
    (Role.ADMIN, Role.OWNER, False),
    (Role.OWNER, None, True),
    (Role.OWNER, Role.USER, True),
    (Role.OWNER, Role.ADMIN, True),
    (Role.OWNER, Role.OWNER, True),
])
def test_can_assign_marker_table(actor, marker, expected):
    assert can_assign_marker(actor, marker) is expected


def test_check_marker_ceiling_user_message():
    with pytest.raises(MarkerCeilingError, match="Users can only create public or user-level posts."):
        check_marker_ceiling(Role.USER, Role.ADMIN)


def test_check_marker_ceiling_admin_message():
    with pytest.raises(MarkerCeilingError, match="Admins cannot create owner-only posts."):
        check_marker_ceiling(Role.ADMIN, Role.OWNER)


def test_marker_ceiling_error_is_a_permission_error():
    with pytest.raises(PermissionDeniedError) as exc_info:
        check_marker_ceiling(Role.USER, Role.OWNER)
    assert exc_info.value.status_code == 403


@pytest.mark.parametrize("marker", MARKERS)
def test_owner_passes_every_ceiling(marker):
    check_marker_ceiling(Role.OWNER, marker)


# ---------------------------------------------------------------------------
# Endpoint gate / ownership
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("actor, minimum, expected", [
    (None, Role.USER, False),
    (Role.USER, Role.USER, True),
    (Role.USER, Role.ADMIN, False),
    (Role.ADMIN, Role.ADMIN, True),
    (Role.OWNER, Role.ADMIN, True),
    (Role.ADMIN, Role.OWNER, False),
])
def test_has_minimum_role(actor, minimum, expected):
    assert has_minimum_role(actor, minimum) is expected


@pytest.mark.parametrize("actor_id, role, author_id, expected", [
    (1, Role.USER, 1, True),
    (1, Role.USER, 2, False),
    (1, Role.ADMIN, 2, False),
    (1, Role.OWNER, 2, True),
    (1, Role.ADMIN, None, False),
])
def test_is_owner_or_author(actor_id, role, author_id, expected):
    assert is_owner_or_author(actor_id, role, author_id) is expected
