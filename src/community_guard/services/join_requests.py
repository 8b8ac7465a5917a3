# src/community_guard/services/join_requests.py
"""Join requests for communities that admit members by approval."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from community_guard.core.errors import ConflictError, NotFoundError
from community_guard.db.session import unit_of_work
from community_guard.db.types import utcnow
from community_guard.models import (
    CommunityMember,
    CommunityRole,
    JoinRequest,
    JoinRequestStatus,
    ModerationAction,
    TargetType,
)
from community_guard.services.audit import AuditLog
from community_guard.services.bans import BanManager
from community_guard.services.community_settings import CommunitySettingsService
from community_guard.services.membership import MembershipStore, ensure_community

logger = logging.getLogger(__name__)

# Terminal status -> log action
_DECISIONS = {
    JoinRequestStatus.APPROVED: ModerationAction.APPROVE,
    JoinRequestStatus.REJECTED: ModerationAction.REJECT,
}


class JoinRequestWorkflow:
    """State machine pending -> approved | rejected; both ends are terminal."""

    def __init__(
        self,
        membership: MembershipStore | None = None,
        bans: BanManager | None = None,
        audit: AuditLog | None = None,
        community_settings: CommunitySettingsService | None = None,
    ) -> None:
        self.audit = audit or AuditLog()
        self.membership = membership or MembershipStore(self.audit)
        self.bans = bans or BanManager(self.membership, self.audit)
        self.community_settings = community_settings or CommunitySettingsService(self.audit)

    def _check_can_join(self, db: Session, community_id: str, user_id: str) -> None:
        ensure_community(db, community_id)
        if self.membership.get_role(db, community_id, user_id) is not None:
            raise ConflictError("Already a member of this community")
        if self.bans.is_banned(db, community_id, user_id):
            raise ConflictError("User is banned from this community")

    def join(self, db: Session, community_id: str, user_id: str) -> CommunityMember:
        """Join a community directly when its join method is open.

        Raises:
            NotFoundError: If the community does not exist
            ConflictError: If the user is already a member, currently banned,
                or the community only admits members through join requests
        """
        with unit_of_work(db):
            self._check_can_join(db, community_id, user_id)
            if self.community_settings.requires_join_approval(db, community_id):
                raise ConflictError("This community requires a join request")
            return self.membership.upsert_member(db, community_id, user_id, CommunityRole.MEMBER)

    def create(self, db: Session, community_id: str, user_id: str) -> JoinRequest:
        """File a pending join request.

        Raises:
            NotFoundError: If the community does not exist
            ConflictError: If the user is already a member, currently banned,
                or already has a pending request for this community
        """
        with unit_of_work(db):
            self._check_can_join(db, community_id, user_id)
            if self._pending_for(db, community_id, user_id) is not None:
                raise ConflictError("A join request is already pending")

            request = JoinRequest(
                community_id=community_id,
                user_id=user_id,
                status=JoinRequestStatus.PENDING,
            )
            db.add(request)
            try:
                db.flush()
            except IntegrityError as exc:
                # A concurrent request won the race for the pending slot.
                raise ConflictError("A join request is already pending") from exc
            logger.info(
                "join request %s filed by %s for community %s",
                request.id,
                user_id,
                community_id,
            )
            return request

    def resolve(
        self,
        db: Session,
        request_id: str,
        decision: JoinRequestStatus,
        moderator_id: str,
    ) -> JoinRequest:
        """Approve or reject a pending request.

        Approval adds the user as a member; the membership, the log entry and
        the status change commit together.

        Raises:
            NotFoundError: If the request does not exist or is no longer pending
            ConflictError: If approving a user who is currently banned
            ValueError: If ``decision`` is not approved or rejected
        """
        decision = JoinRequestStatus(decision)
        if decision not in _DECISIONS:
            raise ValueError("Join requests can only be approved or rejected")

        with unit_of_work(db):
            request = db.get(JoinRequest, request_id)
            if request is None or request.status != JoinRequestStatus.PENDING:
                raise NotFoundError("Pending join request not found")

            if decision is JoinRequestStatus.APPROVED:
                if self.bans.is_banned(db, request.community_id, request.user_id):
                    raise ConflictError("User was banned after filing the request")
                self.membership.upsert_member(
                    db, request.community_id, request.user_id, CommunityRole.MEMBER
                )
            self.audit.append(
                db,
                request.community_id,
                moderator_id,
                _DECISIONS[decision],
                target_id=request.id,
                target_type=TargetType.JOIN_REQUEST,
                metadata={"user_id": request.user_id},
            )
            request.status = decision
            request.resolved_by = moderator_id
            request.updated_at = utcnow()
            db.flush()
            logger.info("join request %s %s by %s", request.id, decision, moderator_id)
            return request

    def approve(self, db: Session, request_id: str, moderator_id: str) -> JoinRequest:
        return self.resolve(db, request_id, JoinRequestStatus.APPROVED, moderator_id)

    def reject(self, db: Session, request_id: str, moderator_id: str) -> JoinRequest:
        return self.resolve(db, request_id, JoinRequestStatus.REJECTED, moderator_id)

    def get(self, db: Session, request_id: str) -> JoinRequest | None:
        return db.get(JoinRequest, request_id)

    def list_pending(self, db: Session, community_id: str) -> list[JoinRequest]:
        return self.list_for_community(db, community_id, JoinRequestStatus.PENDING)

    def list_for_community(
        self,
        db: Session,
        community_id: str,
        status: JoinRequestStatus | None = None,
    ) -> list[JoinRequest]:
        stmt = select(JoinRequest).where(JoinRequest.community_id == community_id)
        if status is not None:
            stmt = stmt.where(JoinRequest.status == JoinRequestStatus(status))
        stmt = stmt.order_by(JoinRequest.requested_at, JoinRequest.id)
        return list(db.scalars(stmt))

    @staticmethod
    def _pending_for(db: Session, community_id: str, user_id: str) -> JoinRequest | None:
        stmt = select(JoinRequest).where(
            JoinRequest.community_id == community_id,
            JoinRequest.user_id == user_id,
            JoinRequest.status == JoinRequestStatus.PENDING,
        )
        return db.scalar(stmt)
