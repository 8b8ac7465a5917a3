# src/community_guard/services/permissions.py
"""Moderator capability checks and delegated permission management."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from community_guard.core.errors import ConflictError, PermissionDeniedError
from community_guard.db.session import unit_of_work
from community_guard.models import (
    Capability,
    CapabilitySet,
    CommunityRole,
    ModerationAction,
    ModeratorPermission,
    TargetType,
)
from community_guard.models.community import MODERATOR_ROLES
from community_guard.models.moderation import (
    ADMIN_CAPABILITIES,
    DEFAULT_MODERATOR_CAPABILITIES,
)
from community_guard.services.audit import AuditLog
from community_guard.services.membership import MembershipStore

logger = logging.getLogger(__name__)


class PermissionResolver:
    """Decides whether a user may perform a moderator action in a community."""

    def __init__(
        self,
        membership: MembershipStore | None = None,
        audit: AuditLog | None = None,
    ) -> None:
        self.audit = audit or AuditLog()
        self.membership = membership or MembershipStore(self.audit)

    def authorize(
        self,
        db: Session,
        community_id: str,
        user_id: str,
        capability: Capability,
    ) -> bool:
        """Return True if the user holds ``capability`` in the community.

        Admins are never restricted. Moderators hold the default capabilities
        until an explicit permission row exists, after which the row decides.
        Everyone else is refused.
        """
        capability = Capability(capability)
        role = self.membership.get_role(db, community_id, user_id)
        if role is CommunityRole.ADMIN:
            return True
        if role not in MODERATOR_ROLES:
            return False

        row = db.get(ModeratorPermission, (community_id, user_id))
        if row is None:
            return DEFAULT_MODERATOR_CAPABILITIES.allows(capability)
        return row.capabilities().allows(capability)

    def require(
        self,
        db: Session,
        community_id: str,
        user_id: str,
        capability: Capability,
    ) -> None:
        """Raise PermissionDeniedError unless ``authorize`` allows the action."""
        if not self.authorize(db, community_id, user_id, capability):
            logger.info(
                "user %s denied %s in community %s", user_id, capability, community_id
            )
            raise PermissionDeniedError(f"Missing permission: {Capability(capability)}")

    def is_moderator(self, db: Session, community_id: str, user_id: str) -> bool:
        return self.membership.get_role(db, community_id, user_id) in MODERATOR_ROLES

    def get_permissions(
        self,
        db: Session,
        community_id: str,
        user_id: str,
    ) -> CapabilitySet | None:
        """Return the effective capabilities, or None for non-moderators."""
        role = self.membership.get_role(db, community_id, user_id)
        if role is CommunityRole.ADMIN:
            return ADMIN_CAPABILITIES
        if role not in MODERATOR_ROLES:
            return None
        row = db.get(ModeratorPermission, (community_id, user_id))
        return row.capabilities() if row is not None else DEFAULT_MODERATOR_CAPABILITIES

    def set_permissions(
        self,
        db: Session,
        community_id: str,
        user_id: str,
        actor_id: str,
        *,
        manage_settings: bool | None = None,
        manage_members: bool | None = None,
        manage_posts: bool | None = None,
        manage_comments: bool | None = None,
    ) -> ModeratorPermission:
        """Create or update the explicit permission row of a moderator.

        Omitted flags keep their stored value, or the default on first write.

        Raises:
            ConflictError: If the target is not a moderator or admin
            PermissionDeniedError: If a non-admin edits their own row or an admin's row
        """
        requested = {
            "manage_settings": manage_settings,
            "manage_members": manage_members,
            "manage_posts": manage_posts,
            "manage_comments": manage_comments,
        }
        with unit_of_work(db):
            role = self.membership.get_role(db, community_id, user_id)
            if role not in MODERATOR_ROLES:
                raise ConflictError("User is not a moderator of this community")
            if self.membership.get_role(db, community_id, actor_id) is not CommunityRole.ADMIN:
                if actor_id == user_id:
                    raise PermissionDeniedError("Moderators cannot change their own permissions")
                if role is CommunityRole.ADMIN:
                    raise PermissionDeniedError("Only admins can change an admin's permissions")

            row = db.get(ModeratorPermission, (community_id, user_id))
            if row is None:
                base = DEFAULT_MODERATOR_CAPABILITIES
                row = ModeratorPermission(
                    community_id=community_id,
                    user_id=user_id,
                    manage_settings=base.manage_settings,
                    manage_members=base.manage_members,
                    manage_posts=base.manage_posts,
                    manage_comments=base.manage_comments,
                )
                db.add(row)

            for name, value in requested.items():
                if value is not None:
                    setattr(row, name, value)
            db.flush()

            self.audit.append(
                db,
                community_id,
                actor_id,
                ModerationAction.UPDATE_PERMISSIONS,
                target_id=user_id,
                target_type=TargetType.USER,
                metadata={
                    "manage_settings": row.manage_settings,
                    "manage_members": row.manage_members,
                    "manage_posts": row.manage_posts,
                    "manage_comments": row.manage_comments,
                },
            )
            return row
