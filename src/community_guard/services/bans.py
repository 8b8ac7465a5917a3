# src/community_guard/services/bans.py
"""Banning and unbanning users from communities."""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from community_guard.core.errors import NotFoundError
from community_guard.db.session import unit_of_work
from community_guard.db.types import utcnow
from community_guard.models import BannedUser, ModerationAction, TargetType
from community_guard.models.moderation import MAX_BAN_DURATION_DAYS
from community_guard.services.audit import AuditLog
from community_guard.services.membership import MembershipStore, ensure_community

logger = logging.getLogger(__name__)


class BanManager:
    """Service handling bans and their effect on membership."""

    def __init__(
        self,
        membership: MembershipStore | None = None,
        audit: AuditLog | None = None,
    ) -> None:
        self.audit = audit or AuditLog()
        self.membership = membership or MembershipStore(self.audit)

    def ban(
        self,
        db: Session,
        community_id: str,
        user_id: str,
        moderator_id: str,
        reason: str | None = None,
        duration_days: int | None = None,
    ) -> BannedUser:
        """Ban a user, revoking their membership.

        Banning a user who already has a ban row refreshes reason, moderator
        and expiry instead of failing.

        Args:
            db: Database session
            community_id: Community the user is banned from
            user_id: User being banned
            moderator_id: User issuing the ban
            reason: Optional justification shown in the log
            duration_days: Length of the ban; None makes it permanent

        Returns:
            The ban record

        Raises:
            ValueError: If duration_days is below 1 or above MAX_BAN_DURATION_DAYS
        """
        if duration_days is not None and not 1 <= duration_days <= MAX_BAN_DURATION_DAYS:
            raise ValueError(
                f"Ban duration must be between 1 and {MAX_BAN_DURATION_DAYS} days"
            )

        now = utcnow()
        expires_at = now + timedelta(days=duration_days) if duration_days is not None else None

        with unit_of_work(db):
            ensure_community(db, community_id)
            self.membership.remove_member(db, community_id, user_id)

            ban = db.get(BannedUser, (community_id, user_id))
            if ban is None:
                ban = BannedUser(
                    community_id=community_id,
                    user_id=user_id,
                    reason=reason,
                    banned_by=moderator_id,
                    ban_expires_at=expires_at,
                    created_at=now,
                )
                db.add(ban)
            else:
                ban.reason = reason
                ban.banned_by = moderator_id
                ban.ban_expires_at = expires_at
            db.flush()

            self.audit.append(
                db,
                community_id,
                moderator_id,
                ModerationAction.BAN,
                target_id=user_id,
                target_type=TargetType.USER,
                reason=reason,
                metadata={
                    "expires_at": expires_at.isoformat() if expires_at else None,
                    "duration_days": duration_days,
                },
            )
            logger.info(
                "user %s banned from community %s until %s",
                user_id,
                community_id,
                expires_at or "forever",
            )
            return ban

    def is_banned(self, db: Session, community_id: str, user_id: str) -> bool:
        """Return True while a permanent or unexpired ban exists."""
        stmt = select(BannedUser.user_id).where(
            BannedUser.community_id == community_id,
            BannedUser.user_id == user_id,
            BannedUser.active_at(utcnow()),
        )
        return db.scalar(stmt) is not None

    def get_ban(self, db: Session, community_id: str, user_id: str) -> BannedUser | None:
        return db.get(BannedUser, (community_id, user_id))

    def list_bans(
        self,
        db: Session,
        community_id: str,
        active_only: bool = False,
    ) -> list[BannedUser]:
        stmt = select(BannedUser).where(BannedUser.community_id == community_id)
        if active_only:
            stmt = stmt.where(BannedUser.active_at(utcnow()))
        stmt = stmt.order_by(BannedUser.created_at.desc(), BannedUser.user_id)
        return list(db.scalars(stmt))

    def unban(
        self,
        db: Session,
        community_id: str,
        user_id: str,
        moderator_id: str,
        reason: str | None = None,
    ) -> None:
        """Lift a ban. Membership is not restored.

        Raises:
            NotFoundError: If no ban row exists for the user
        """
        with unit_of_work(db):
            ban = db.get(BannedUser, (community_id, user_id))
            if ban is None:
                raise NotFoundError("User is not banned from this community")

            previous = {
                "reason": ban.reason,
                "banned_by": ban.banned_by,
                "expires_at": ban.ban_expires_at.isoformat() if ban.ban_expires_at else None,
            }
            db.delete(ban)
            db.flush()

            self.audit.append(
                db,
                community_id,
                moderator_id,
                ModerationAction.UNBAN,
                target_id=user_id,
                target_type=TargetType.USER,
                reason=reason,
                metadata={"previous_ban": previous},
            )
            logger.info("user %s unbanned from community %s", user_id, community_id)
