# src/community_guard/services/membership.py
"""Community membership: who belongs to a community and with which role."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from community_guard.core.errors import NotFoundError
from community_guard.db.session import unit_of_work
from community_guard.db.types import utcnow
from community_guard.models import (
    Community,
    CommunityMember,
    CommunityRole,
    ModerationAction,
    ModeratorPermission,
    TargetType,
)
from community_guard.models.community import MODERATOR_ROLES
from community_guard.services.audit import AuditLog

logger = logging.getLogger(__name__)


def ensure_community(db: Session, community_id: str) -> Community:
    """Return the community or raise NotFoundError."""
    community = db.get(Community, community_id)
    if community is None:
        raise NotFoundError("Community not found")
    return community


class MembershipStore:
    """Owns the (community, user) -> role relation."""

    def __init__(self, audit: AuditLog | None = None) -> None:
        self.audit = audit or AuditLog()

    def get_member(self, db: Session, community_id: str, user_id: str) -> CommunityMember | None:
        return db.get(CommunityMember, (community_id, user_id))

    def get_role(self, db: Session, community_id: str, user_id: str) -> CommunityRole | None:
        """Return the user's role in the community, or None for non-members."""
        stmt = select(CommunityMember.role).where(
            CommunityMember.community_id == community_id,
            CommunityMember.user_id == user_id,
        )
        role = db.scalar(stmt)
        return CommunityRole(role) if role is not None else None

    def list_members(
        self,
        db: Session,
        community_id: str,
        role: CommunityRole | None = None,
    ) -> list[CommunityMember]:
        stmt = select(CommunityMember).where(CommunityMember.community_id == community_id)
        if role is not None:
            stmt = stmt.where(CommunityMember.role == role)
        stmt = stmt.order_by(CommunityMember.joined_at, CommunityMember.user_id)
        return list(db.scalars(stmt))

    def upsert_member(
        self,
        db: Session,
        community_id: str,
        user_id: str,
        role: CommunityRole = CommunityRole.MEMBER,
    ) -> CommunityMember:
        """Insert the member or bring an existing row to ``role``.

        The role is only written when it differs from the stored one. Moving
        away from moderator or admin drops the user's explicit permissions.

        Returns:
            The resulting member row
        """
        role = CommunityRole(role)
        with unit_of_work(db):
            member = self.get_member(db, community_id, user_id)
            if member is None:
                member = CommunityMember(
                    community_id=community_id,
                    user_id=user_id,
                    role=role,
                    joined_at=utcnow(),
                )
                db.add(member)
                db.flush()
                logger.info("user %s joined community %s as %s", user_id, community_id, role)
                return member

            if member.role != role:
                previous = CommunityRole(member.role)
                member.role = role
                if previous in MODERATOR_ROLES and role not in MODERATOR_ROLES:
                    self._drop_permissions(db, community_id, user_id)
                db.flush()
                logger.info(
                    "user %s role in community %s changed from %s to %s",
                    user_id,
                    community_id,
                    previous,
                    role,
                )
            return member

    def remove_member(self, db: Session, community_id: str, user_id: str) -> bool:
        """Delete the membership; returns False when the user was not a member."""
        with unit_of_work(db):
            result = db.execute(
                delete(CommunityMember).where(
                    CommunityMember.community_id == community_id,
                    CommunityMember.user_id == user_id,
                )
            )
            removed = bool(result.rowcount)
            if removed:
                self._drop_permissions(db, community_id, user_id)
                logger.info("user %s removed from community %s", user_id, community_id)
            return removed

    def change_role(
        self,
        db: Session,
        community_id: str,
        user_id: str,
        role: CommunityRole,
        actor_id: str,
    ) -> CommunityMember:
        """Promote or demote an existing member and record it in the log."""
        role = CommunityRole(role)
        with unit_of_work(db):
            member = self.get_member(db, community_id, user_id)
            if member is None:
                raise NotFoundError("User is not a member of this community")
            previous = CommunityRole(member.role)
            if previous == role:
                return member
            member = self.upsert_member(db, community_id, user_id, role)
            self.audit.append(
                db,
                community_id,
                actor_id,
                ModerationAction.UPDATE_MEMBER_ROLE,
                target_id=user_id,
                target_type=TargetType.USER,
                metadata={"previous_role": str(previous), "new_role": str(role)},
            )
            return member

    def kick(
        self,
        db: Session,
        community_id: str,
        user_id: str,
        actor_id: str,
        reason: str | None = None,
    ) -> None:
        """Remove a member on a moderator's behalf and record it in the log."""
        with unit_of_work(db):
            role = self.get_role(db, community_id, user_id)
            if role is None:
                raise NotFoundError("User is not a member of this community")
            self.remove_member(db, community_id, user_id)
            self.audit.append(
                db,
                community_id,
                actor_id,
                ModerationAction.REMOVE_MEMBER,
                target_id=user_id,
                target_type=TargetType.USER,
                reason=reason,
                metadata={"previous_role": str(role)},
            )

    @staticmethod
    def _drop_permissions(db: Session, community_id: str, user_id: str) -> None:
        db.execute(
            delete(ModeratorPermission).where(
                ModeratorPermission.community_id == community_id,
                ModeratorPermission.user_id == user_id,
            )
        )
