# src/community_guard/services/audit.py
"""Append-only moderation log."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from community_guard.models import ModerationLogEntry, User

logger = logging.getLogger(__name__)


class AuditLog:
    """Writes and pages through the moderation history of a community."""

    def append(
        self,
        db: Session,
        community_id: str,
        moderator_id: str,
        action_type: str,
        target_id: str | None = None,
        target_type: str | None = None,
        reason: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ModerationLogEntry:
        """Insert one log entry into the caller's unit of work.

        The entry is flushed but never committed here: the component that owns
        the transaction commits it together with the state change it records.

        Args:
            db: Session of the enclosing unit of work
            community_id: Community the action was taken in
            moderator_id: User who performed the action
            action_type: Action tag such as ``BAN`` or ``APPROVE``
            target_id: Identifier of the affected entity
            target_type: Kind of the affected entity
            reason: Free-text justification supplied by the moderator
            metadata: Structured details, stored as JSON

        Returns:
            The flushed log entry with its id assigned
        """
        entry = ModerationLogEntry(
            community_id=community_id,
            moderator_id=moderator_id,
            action_type=str(action_type),
            target_id=target_id,
            target_type=str(target_type) if target_type is not None else None,
            reason=reason,
            metadata_=metadata,
        )
        db.add(entry)
        db.flush()
        logger.info(
            "moderation action %s in community %s by %s on %s %s",
            entry.action_type,
            community_id,
            moderator_id,
            entry.target_type,
            target_id,
        )
        return entry

    def list(
        self,
        db: Session,
        community_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> list[ModerationLogEntry]:
        """Return a page of entries, newest first."""
        stmt = (
            select(ModerationLogEntry)
            .where(ModerationLogEntry.community_id == community_id)
            .order_by(ModerationLogEntry.created_at.desc(), ModerationLogEntry.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(db.scalars(stmt))

    def list_with_moderators(
        self,
        db: Session,
        community_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> list[tuple[ModerationLogEntry, str | None]]:
        """Return a page of entries paired with the moderator's username.

        Usernames are display-only; a missing account yields None.
        """
        stmt = (
            select(ModerationLogEntry, User.username)
            .outerjoin(User, User.id == ModerationLogEntry.moderator_id)
            .where(ModerationLogEntry.community_id == community_id)
            .order_by(ModerationLogEntry.created_at.desc(), ModerationLogEntry.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return [(entry, username) for entry, username in db.execute(stmt)]

    def count(self, db: Session, community_id: str) -> int:
        """Return the number of entries recorded for a community."""
        stmt = select(func.count()).select_from(ModerationLogEntry).where(
            ModerationLogEntry.community_id == community_id
        )
        return int(db.scalar(stmt) or 0)
