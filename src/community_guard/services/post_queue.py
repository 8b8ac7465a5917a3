# src/community_guard/services/post_queue.py
"""Pre-approval queue for posts in communities that require it."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from community_guard.core.errors import NotFoundError
from community_guard.db.session import unit_of_work
from community_guard.db.types import utcnow
from community_guard.models import (
    ModerationAction,
    Post,
    PostModeration,
    PostModerationStatus,
    TargetType,
)
from community_guard.services.audit import AuditLog
from community_guard.services.community_settings import CommunitySettingsService

logger = logging.getLogger(__name__)

# Moderator action -> resulting status and log tag.
_ACTIONS = {
    "approve": (PostModerationStatus.APPROVED, ModerationAction.APPROVE),
    "reject": (PostModerationStatus.REJECTED, ModerationAction.REJECT),
}


class PostModerationQueue:
    """Tracks the approval state of queued posts.

    Decisions are revisable: deciding an already decided post overturns the
    previous decision and adds a new log entry.
    """

    def __init__(
        self,
        audit: AuditLog | None = None,
        community_settings: CommunitySettingsService | None = None,
    ) -> None:
        self.audit = audit or AuditLog()
        self.community_settings = community_settings or CommunitySettingsService(self.audit)

    def enqueue(self, db: Session, post_id: str) -> PostModeration:
        """Put a post in the queue, or return its existing entry unchanged.

        Raises:
            NotFoundError: If the post does not exist
        """
        with unit_of_work(db):
            entry = db.get(PostModeration, post_id)
            if entry is not None:
                return entry

            post = db.get(Post, post_id)
            if post is None:
                raise NotFoundError("Post not found")

            entry = PostModeration(
                post_id=post.id,
                community_id=post.community_id,
                status=PostModerationStatus.PENDING,
                created_at=utcnow(),
            )
            db.add(entry)
            db.flush()
            logger.info("post %s queued for approval in community %s", post.id, post.community_id)
            return entry

    def enqueue_if_required(self, db: Session, post: Post) -> PostModeration | None:
        """Queue the post only when its community requires pre-approval."""
        if not self.community_settings.community_requires_approval(db, post.community_id):
            return None
        return self.enqueue(db, post.id)

    def decide(
        self,
        db: Session,
        post_id: str,
        moderator_id: str,
        action: str,
        reason: str | None = None,
    ) -> PostModeration:
        """Approve or reject a queued post.

        Args:
            db: Database session
            post_id: Post being moderated
            moderator_id: User taking the decision
            action: ``"approve"`` or ``"reject"``
            reason: Optional justification stored on the entry and in the log

        Returns:
            The updated queue entry

        Raises:
            NotFoundError: If the post has no queue entry
            ValueError: If ``action`` is not approve or reject
        """
        try:
            status, log_action = _ACTIONS[action]
        except KeyError:
            raise ValueError(f"Unknown moderation action: {action!r}") from None

        with unit_of_work(db):
            entry = db.get(PostModeration, post_id)
            if entry is None:
                raise NotFoundError("Post is not in the moderation queue")

            previous_status = str(entry.status)
            entry.status = status
            entry.moderator_id = moderator_id
            entry.reason = reason
            entry.moderated_at = utcnow()
            db.flush()

            self.audit.append(
                db,
                entry.community_id,
                moderator_id,
                log_action,
                target_id=post_id,
                target_type=TargetType.POST,
                reason=reason,
                metadata={"previous_status": previous_status},
            )
            logger.info(
                "post %s moved from %s to %s by %s",
                post_id,
                previous_status,
                status,
                moderator_id,
            )
            return entry

    def get_status(self, db: Session, post_id: str) -> PostModeration | None:
        return db.get(PostModeration, post_id)

    def list_pending(
        self,
        db: Session,
        community_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> list[PostModeration]:
        """Return pending entries of a community, oldest first."""
        stmt = (
            select(PostModeration)
            .where(
                PostModeration.community_id == community_id,
                PostModeration.status == PostModerationStatus.PENDING,
            )
            .order_by(PostModeration.created_at, PostModeration.post_id)
            .limit(limit)
            .offset(offset)
        )
        return list(db.scalars(stmt))
