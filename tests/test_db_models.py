"""Unit tests for the ORM mappings in community_guard.models.

These check table names, composite primary keys, the JSON column naming on
the moderation log and the partial unique index on join requests.
"""

from community_guard import models


def test_table_names():
    """Model classes expose expected __tablename__ values."""
    assert models.User.__tablename__ == "user_account"
    assert models.CommunityMember.__tablename__ == "community_member"
    assert models.JoinRequest.__tablename__ == "community_join_request"
    assert models.BannedUser.__tablename__ == "banned_user"
    assert models.PostModeration.__tablename__ == "post_moderation"
    assert models.ModerationLogEntry.__tablename__ == "moderation_log"


def test_composite_primary_keys():
    """Membership, bans and permissions are keyed by (community_id, user_id)."""
    for model in (models.CommunityMember, models.BannedUser, models.ModeratorPermission):
        assert {c.name for c in model.__table__.primary_key} == {"community_id", "user_id"}


def test_metadata_column_and_attribute():
    """The JSON column is named 'metadata' but mapped as ``metadata_``."""
    assert "metadata" in models.ModerationLogEntry.__table__.c
    assert hasattr(models.ModerationLogEntry, "metadata_")


def test_pending_join_request_index_is_partial_and_unique():
    indexes = {index.name: index for index in models.JoinRequest.__table__.indexes}
    index = indexes["uq_join_request_pending"]
    assert index.unique
    assert [c.name for c in index.columns] == ["community_id", "user_id"]
    assert "status = 'pending'" in str(index.dialect_options["sqlite"]["where"])


def test_capability_set_lookup():
    caps = models.CapabilitySet(
        manage_settings=False,
        manage_members=True,
        manage_posts=False,
        manage_comments=True,
    )
    assert caps.allows(models.Capability.MANAGE_MEMBERS) is True
    assert caps.allows("manage_posts") is False
