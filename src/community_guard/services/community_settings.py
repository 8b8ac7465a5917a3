# src/community_guard/services/community_settings.py
"""Per-community configuration read by the moderation workflows."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from community_guard.core.errors import NotFoundError
from community_guard.db.session import unit_of_work
from community_guard.models import (
    Community,
    CommunitySettings,
    JoinMethod,
    ModerationAction,
    TargetType,
)
from community_guard.models.community import DEFAULT_COMMUNITY_SETTINGS
from community_guard.services.audit import AuditLog

logger = logging.getLogger(__name__)

SETTING_FIELDS = frozenset(DEFAULT_COMMUNITY_SETTINGS.as_dict())


class CommunitySettingsService:
    """Reads settings with defaults and applies moderator updates."""

    def __init__(self, audit: AuditLog | None = None) -> None:
        self.audit = audit or AuditLog()

    def get_settings(self, db: Session, community_id: str) -> CommunitySettings:
        """Return the stored settings, or an unsaved row holding the defaults."""
        row = db.get(CommunitySettings, community_id)
        if row is None:
            return CommunitySettings.from_defaults(community_id)
        return row

    def community_requires_approval(self, db: Session, community_id: str) -> bool:
        """Return True when new posts must pass the moderation queue."""
        return bool(self.get_settings(db, community_id).require_post_approval)

    def requires_join_approval(self, db: Session, community_id: str) -> bool:
        """Return True when users must file a join request instead of joining."""
        return JoinMethod(self.get_settings(db, community_id).join_method) is JoinMethod.APPROVAL

    def update_settings(
        self,
        db: Session,
        community_id: str,
        moderator_id: str,
        **changes: Any,
    ) -> CommunitySettings:
        """Apply the given fields and record the change in the moderation log.

        Args:
            db: Database session
            community_id: Community being configured
            moderator_id: User applying the change
            **changes: Setting names mapped to their new values

        Returns:
            The persisted settings row

        Raises:
            NotFoundError: If the community does not exist
            ValueError: If a change names an unknown setting
        """
        unknown = set(changes) - SETTING_FIELDS
        if unknown:
            raise ValueError(f"Unknown community settings: {', '.join(sorted(unknown))}")
        if "join_method" in changes:
            changes["join_method"] = JoinMethod(changes["join_method"])

        with unit_of_work(db):
            if db.get(Community, community_id) is None:
                raise NotFoundError("Community not found")

            row = db.get(CommunitySettings, community_id)
            if row is None:
                row = CommunitySettings.from_defaults(community_id)
                db.add(row)

            applied: dict[str, Any] = {}
            for name, value in changes.items():
                if getattr(row, name) != value:
                    setattr(row, name, value)
                    applied[name] = str(value) if isinstance(value, JoinMethod) else value
            db.flush()

            self.audit.append(
                db,
                community_id,
                moderator_id,
                ModerationAction.UPDATE_SETTINGS,
                target_id=community_id,
                target_type=TargetType.SETTINGS,
                metadata={"changes": applied},
            )
            logger.info("settings of community %s updated: %s", community_id, sorted(applied))
            return row
