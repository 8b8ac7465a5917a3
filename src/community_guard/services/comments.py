# src/community_guard/services/comments.py
"""Moderator removal of comment threads."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from community_guard.core.errors import NotFoundError
from community_guard.db.session import unit_of_work
from community_guard.models import Comment, ModerationAction, Post, TargetType
from community_guard.services.audit import AuditLog

logger = logging.getLogger(__name__)


def collect_thread_ids(db: Session, root_id: str) -> list[str]:
    """Return ``root_id`` and the ids of every reply beneath it.

    Walks the reply tree breadth-first with an explicit worklist, one query
    per level, so thread depth never grows the call stack.
    """
    collected = [root_id]
    seen = {root_id}
    frontier = [root_id]
    while frontier:
        children = db.scalars(select(Comment.id).where(Comment.parent_id.in_(frontier))).all()
        frontier = [child for child in children if child not in seen]
        seen.update(frontier)
        collected.extend(frontier)
    return collected


class CommentModeration:
    """Removes a comment together with all of its replies."""

    def __init__(self, audit: AuditLog | None = None) -> None:
        self.audit = audit or AuditLog()

    def community_of(self, db: Session, comment_id: str) -> str:
        """Return the community a comment belongs to.

        Raises:
            NotFoundError: If the comment does not exist
        """
        stmt = (
            select(Post.community_id)
            .join(Comment, Comment.post_id == Post.id)
            .where(Comment.id == comment_id)
        )
        community_id = db.scalar(stmt)
        if community_id is None:
            raise NotFoundError("Comment not found")
        return community_id

    def remove_comment_thread(
        self,
        db: Session,
        comment_id: str,
        moderator_id: str,
        reason: str | None = None,
    ) -> list[str]:
        """Delete a comment and its replies in one batch and log the removal.

        Returns:
            Ids of every removed comment, the root first
        """
        with unit_of_work(db):
            community_id = self.community_of(db, comment_id)
            removed = collect_thread_ids(db, comment_id)
            db.execute(delete(Comment).where(Comment.id.in_(removed)))
            self.audit.append(
                db,
                community_id,
                moderator_id,
                ModerationAction.REMOVE_COMMENT,
                target_id=comment_id,
                target_type=TargetType.COMMENT,
                reason=reason,
                metadata={"removed_ids": removed},
            )
            logger.info(
                "comment thread %s removed by %s (%d comments)",
                comment_id,
                moderator_id,
                len(removed),
            )
            return removed
