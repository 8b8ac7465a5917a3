# mypy: ignore-errors
# tests/services/test_bans.py
"""Tests for banning and unbanning."""

from datetime import timedelta

import pytest

from community_guard.core.errors import NotFoundError
from community_guard.db.types import utcnow
from community_guard.models import BannedUser, CommunityRole, ModerationAction, TargetType
from community_guard.models.moderation import MAX_BAN_DURATION_DAYS


def test_ban_revokes_membership(db_session, bans, membership, audit, community, admin, member) -> None:
    """A banned member loses the membership in the same operation."""
    ban = bans.ban(db_session, community.id, member.id, admin.id, reason="abuse")

    assert ban.ban_expires_at is None
    assert bans.is_banned(db_session, community.id, member.id) is True
    assert membership.get_role(db_session, community.id, member.id) is None

    entry = audit.list(db_session, community.id)[0]
    assert entry.action_type == ModerationAction.BAN
    assert entry.target_type == TargetType.USER
    assert entry.target_id == member.id
    assert entry.reason == "abuse"
    assert entry.metadata_ == {"expires_at": None, "duration_days": None}


def test_temporary_ban_sets_expiry(db_session, bans, community, admin, member) -> None:
    before = utcnow()
    ban = bans.ban(db_session, community.id, member.id, admin.id, duration_days=7)

    assert before + timedelta(days=7) <= ban.ban_expires_at <= utcnow() + timedelta(days=7)
    assert bans.is_banned(db_session, community.id, member.id) is True


def test_expired_ban_is_not_active(db_session, bans, community, admin, member) -> None:
    """A ban whose expiry has passed no longer counts, but is kept as history."""
    ban = bans.ban(db_session, community.id, member.id, admin.id, duration_days=1)
    ban.ban_expires_at = utcnow() - timedelta(hours=1)
    db_session.commit()

    assert bans.is_banned(db_session, community.id, member.id) is False
    assert bans.get_ban(db_session, community.id, member.id) is not None
    assert bans.list_bans(db_session, community.id, active_only=True) == []
    assert len(bans.list_bans(db_session, community.id)) == 1


def test_reban_refreshes_existing_row(db_session, bans, community, admin, moderator, member) -> None:
    """Banning again updates the record instead of failing."""
    bans.ban(db_session, community.id, member.id, moderator.id, reason="first", duration_days=1)
    ban = bans.ban(db_session, community.id, member.id, admin.id, reason="second")

    assert ban.reason == "second"
    assert ban.banned_by == admin.id
    assert ban.ban_expires_at is None
    assert len(bans.list_bans(db_session, community.id)) == 1


def test_ban_is_scoped_per_community(
    db_session, bans, membership, make_member, community, other_community, admin, member
) -> None:
    make_member(other_community, member, CommunityRole.MEMBER)

    bans.ban(db_session, community.id, member.id, admin.id)

    assert bans.is_banned(db_session, other_community.id, member.id) is False
    assert membership.get_role(db_session, other_community.id, member.id) is CommunityRole.MEMBER


def test_ban_in_missing_community(db_session, bans, admin, member) -> None:
    with pytest.raises(NotFoundError):
        bans.ban(db_session, "missing", member.id, admin.id)


def test_unban_does_not_restore_membership(db_session, bans, membership, audit, community, admin, member) -> None:
    """Lifting a ban leaves the user outside the community."""
    bans.ban(db_session, community.id, member.id, admin.id, reason="abuse")

    bans.unban(db_session, community.id, member.id, admin.id, reason="appeal")

    assert bans.is_banned(db_session, community.id, member.id) is False
    assert db_session.get(BannedUser, (community.id, member.id)) is None
    assert membership.get_role(db_session, community.id, member.id) is None

    entry = audit.list(db_session, community.id)[0]
    assert entry.action_type == ModerationAction.UNBAN
    assert entry.reason == "appeal"
    assert entry.metadata_["previous_ban"]["reason"] == "abuse"


def test_unban_without_ban(db_session, bans, community, admin, member) -> None:
    with pytest.raises(NotFoundError):
        bans.unban(db_session, community.id, member.id, admin.id)


def test_ban_then_unban_logged_in_order(db_session, bans, audit, community, admin, member) -> None:
    """The log lists UNBAN before BAN, newest first."""
    bans.ban(db_session, community.id, member.id, admin.id, reason="spam", duration_days=7)
    assert bans.is_banned(db_session, community.id, member.id) is True
    bans.unban(db_session, community.id, member.id, admin.id)

    assert bans.is_banned(db_session, community.id, member.id) is False
    actions = [entry.action_type for entry in audit.list(db_session, community.id)]
    assert actions == [ModerationAction.UNBAN, ModerationAction.BAN]


@pytest.mark.parametrize("duration_days", [0, -3, MAX_BAN_DURATION_DAYS + 1, 5_000_000])
def test_ban_rejects_out_of_range_duration(
    db_session, bans, membership, audit, community, admin, member, duration_days
) -> None:
    with pytest.raises(ValueError):
        bans.ban(db_session, community.id, member.id, admin.id, duration_days=duration_days)
    assert membership.get_role(db_session, community.id, member.id) is CommunityRole.MEMBER
    assert audit.count(db_session, community.id) == 0


def test_ban_accepts_longest_duration(db_session, bans, community, admin, member) -> None:
    ban = bans.ban(db_session, community.id, member.id, admin.id, duration_days=MAX_BAN_DURATION_DAYS)
    assert ban.ban_expires_at is not None
