# mypy: ignore-errors
# tests/services/test_permissions.py
"""Tests for capability resolution and delegated permissions."""

import pytest

from community_guard.core.errors import ConflictError, PermissionDeniedError
from community_guard.models import Capability, ModerationAction
from community_guard.models.moderation import ADMIN_CAPABILITIES, DEFAULT_MODERATOR_CAPABILITIES


@pytest.mark.parametrize("capability", list(Capability))
def test_moderator_without_row_holds_defaults(db_session, permissions, community, moderator, capability) -> None:
    """A moderator with no explicit row gets every default capability."""
    assert permissions.authorize(db_session, community.id, moderator.id, capability) is True


@pytest.mark.parametrize("capability", list(Capability))
def test_admin_ignores_restrictions(db_session, permissions, community, admin, capability) -> None:
    """Admins are allowed everything, even with an all-false permission row."""
    permissions.set_permissions(
        db_session,
        community.id,
        admin.id,
        admin.id,
        manage_settings=False,
        manage_members=False,
        manage_posts=False,
        manage_comments=False,
    )

    assert permissions.authorize(db_session, community.id, admin.id, capability) is True


def test_explicit_row_decides_for_moderators(db_session, permissions, community, moderator, admin) -> None:
    """Once a row exists, its flags replace the defaults."""
    permissions.set_permissions(db_session, community.id, moderator.id, admin.id, manage_posts=False)

    assert permissions.authorize(db_session, community.id, moderator.id, Capability.MANAGE_POSTS) is False
    assert permissions.authorize(db_session, community.id, moderator.id, Capability.MANAGE_MEMBERS) is True


def test_members_and_strangers_are_refused(db_session, permissions, community, member, test_user) -> None:
    """Plain members and non-members hold no capability."""
    for user in (member, test_user):
        for capability in Capability:
            assert permissions.authorize(db_session, community.id, user.id, capability) is False


def test_moderation_is_scoped_per_community(
    db_session, permissions, community, other_community, moderator
) -> None:
    """Moderating one community grants nothing in another."""
    assert permissions.authorize(
        db_session, other_community.id, moderator.id, Capability.MANAGE_POSTS
    ) is False


def test_require_raises_permission_denied(db_session, permissions, community, member) -> None:
    """require() turns a refusal into PermissionDeniedError."""
    with pytest.raises(PermissionDeniedError):
        permissions.require(db_session, community.id, member.id, Capability.MANAGE_SETTINGS)


def test_set_permissions_requires_moderator(db_session, permissions, community, admin, member) -> None:
    """Permissions can only be set for moderators and admins."""
    with pytest.raises(ConflictError):
        permissions.set_permissions(db_session, community.id, member.id, admin.id, manage_posts=True)


def test_set_permissions_keeps_omitted_flags(
    db_session, permissions, audit, community, moderator, admin
) -> None:
    """Partial updates leave the other flags alone and are logged."""
    permissions.set_permissions(db_session, community.id, moderator.id, admin.id, manage_posts=False)
    row = permissions.set_permissions(
        db_session, community.id, moderator.id, admin.id, manage_comments=False
    )

    assert row.manage_posts is False
    assert row.manage_comments is False
    assert row.manage_settings is True
    assert row.manage_members is True

    actions = [entry.action_type for entry in audit.list(db_session, community.id)]
    assert actions == [ModerationAction.UPDATE_PERMISSIONS] * 2


def test_get_permissions(db_session, permissions, community, admin, moderator, member) -> None:
    """Effective capabilities are reported per role."""
    assert permissions.get_permissions(db_session, community.id, admin.id) == ADMIN_CAPABILITIES
    assert permissions.get_permissions(db_session, community.id, moderator.id) == (
        DEFAULT_MODERATOR_CAPABILITIES
    )
    assert permissions.get_permissions(db_session, community.id, member.id) is None


def test_is_moderator(db_session, permissions, community, admin, moderator, member) -> None:
    assert permissions.is_moderator(db_session, community.id, admin.id)
    assert permissions.is_moderator(db_session, community.id, moderator.id)
    assert not permissions.is_moderator(db_session, community.id, member.id)


def test_non_admin_cannot_edit_own_or_admin_row(db_session, permissions, audit, community, admin, moderator) -> None:
    """Self-edits and edits to an admin's row need an admin, and nothing is logged."""
    with pytest.raises(PermissionDeniedError):
        permissions.set_permissions(db_session, community.id, moderator.id, moderator.id, manage_posts=True)
    with pytest.raises(PermissionDeniedError):
        permissions.set_permissions(db_session, community.id, admin.id, moderator.id, manage_posts=False)
    assert audit.count(db_session, community.id) == 0
