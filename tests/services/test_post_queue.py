# mypy: ignore-errors
# tests/services/test_post_queue.py
"""Tests for the post pre-approval queue."""

import pytest

from community_guard.core.errors import NotFoundError
from community_guard.models import ModerationAction, Post, PostModerationStatus, TargetType


def test_enqueue_is_idempotent(db_session, post_queue, test_post) -> None:
    """Enqueueing twice returns the same pending entry."""
    first = post_queue.enqueue(db_session, test_post.id)
    second = post_queue.enqueue(db_session, test_post.id)

    assert first is second
    assert first.status == PostModerationStatus.PENDING
    assert first.community_id == test_post.community_id
    assert first.moderator_id is None


def test_enqueue_missing_post(db_session, post_queue) -> None:
    with pytest.raises(NotFoundError):
        post_queue.enqueue(db_session, "missing")


def test_enqueue_if_required_follows_settings(
    db_session, post_queue, settings_service, community, admin, test_post
) -> None:
    """Posts are only queued when the community requires approval."""
    assert post_queue.enqueue_if_required(db_session, test_post) is None
    assert post_queue.get_status(db_session, test_post.id) is None

    settings_service.update_settings(db_session, community.id, admin.id, require_post_approval=True)
    entry = post_queue.enqueue_if_required(db_session, test_post)

    assert entry is not None
    assert entry.status == PostModerationStatus.PENDING


def test_approve_records_decision(db_session, post_queue, audit, community, moderator, test_post) -> None:
    """Approving sets status, moderator and timestamp, and logs APPROVE."""
    post_queue.enqueue(db_session, test_post.id)

    entry = post_queue.decide(db_session, test_post.id, moderator.id, "approve", reason="fine")

    assert entry.status == PostModerationStatus.APPROVED
    assert entry.moderator_id == moderator.id
    assert entry.reason == "fine"
    assert entry.moderated_at is not None

    log = audit.list(db_session, community.id)[0]
    assert log.action_type == ModerationAction.APPROVE
    assert log.target_type == TargetType.POST
    assert log.target_id == test_post.id
    assert log.metadata_ == {"previous_status": "pending"}


def test_decisions_can_be_overturned(db_session, post_queue, audit, community, moderator, admin, test_post) -> None:
    """A later decision replaces an earlier one and is logged separately."""
    post_queue.enqueue(db_session, test_post.id)
    post_queue.decide(db_session, test_post.id, moderator.id, "approve")

    entry = post_queue.decide(db_session, test_post.id, admin.id, "reject", reason="spam")

    assert entry.status == PostModerationStatus.REJECTED
    assert entry.moderator_id == admin.id
    entries = audit.list(db_session, community.id)
    assert [e.action_type for e in entries] == [ModerationAction.REJECT, ModerationAction.APPROVE]
    assert entries[0].metadata_ == {"previous_status": "approved"}


def test_decide_unknown_action(db_session, post_queue, moderator, test_post) -> None:
    post_queue.enqueue(db_session, test_post.id)

    with pytest.raises(ValueError):
        post_queue.decide(db_session, test_post.id, moderator.id, "delete")


def test_decide_unqueued_post(db_session, post_queue, moderator, test_post) -> None:
    with pytest.raises(NotFoundError):
        post_queue.decide(db_session, test_post.id, moderator.id, "approve")


def test_list_pending_excludes_decided(db_session, post_queue, community, moderator, member) -> None:
    posts = []
    for title in ("one", "two", "three"):
        post = Post(community_id=community.id, author_id=member.id, title=title)
        db_session.add(post)
        db_session.commit()
        post_queue.enqueue(db_session, post.id)
        posts.append(post)

    post_queue.decide(db_session, posts[1].id, moderator.id, "reject")

    pending = post_queue.list_pending(db_session, community.id)
    assert [entry.post_id for entry in pending] == [posts[0].id, posts[2].id]
    assert len(post_queue.list_pending(db_session, community.id, limit=1, offset=1)) == 1


def test_reject_then_reverse(db_session, post_queue, audit, community, moderator, test_post) -> None:
    """Reversing a rejection appends a second entry and leaves the first intact."""
    post_queue.enqueue(db_session, test_post.id)
    rejected = post_queue.decide(db_session, test_post.id, moderator.id, "reject", "off-topic")
    assert rejected.status == PostModerationStatus.REJECTED
    assert rejected.reason == "off-topic"
    assert rejected.moderated_at is not None
    first_entry_id = audit.list(db_session, community.id)[0].id

    approved = post_queue.decide(db_session, test_post.id, moderator.id, "approve")

    assert approved.status == PostModerationStatus.APPROVED
    assert approved.reason is None
    entries = audit.list(db_session, community.id)
    assert len(entries) == 2
    first = next(entry for entry in entries if entry.id == first_entry_id)
    assert first.action_type == ModerationAction.REJECT
    assert first.reason == "off-topic"
