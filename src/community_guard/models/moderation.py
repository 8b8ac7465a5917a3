# src/community_guard/models/moderation.py
"""Models for moderator permissions, join requests, bans, the post queue and the audit log."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    ColumnElement,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    or_,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from community_guard.db.session import Base
from community_guard.db.types import new_id, str_enum, utcnow


class Capability(enum.StrEnum):
    """A delegable moderator permission."""

    MANAGE_SETTINGS = "manage_settings"
    MANAGE_MEMBERS = "manage_members"
    MANAGE_POSTS = "manage_posts"
    MANAGE_COMMENTS = "manage_comments"


@dataclass(frozen=True)
class CapabilitySet:
    """The four capability flags of one moderator."""

    manage_settings: bool
    manage_members: bool
    manage_posts: bool
    manage_comments: bool

    def allows(self, capability: Capability) -> bool:
        """Return the flag for ``capability``."""
        capability = Capability(capability)
        if capability is Capability.MANAGE_SETTINGS:
            return self.manage_settings
        if capability is Capability.MANAGE_MEMBERS:
            return self.manage_members
        if capability is Capability.MANAGE_POSTS:
            return self.manage_posts
        if capability is Capability.MANAGE_COMMENTS:
            return self.manage_comments
        raise ValueError(f"Unknown capability: {capability!r}")


# Moderators without an explicit permission row hold every capability.
DEFAULT_MODERATOR_CAPABILITIES = CapabilitySet(
    manage_settings=True,
    manage_members=True,
    manage_posts=True,
    manage_comments=True,
)
ADMIN_CAPABILITIES = DEFAULT_MODERATOR_CAPABILITIES

MAX_BAN_DURATION_DAYS = 36500


class JoinRequestStatus(enum.StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PostModerationStatus(enum.StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ModerationAction(enum.StrEnum):
    """Action tags written to the moderation log."""

    BAN = "BAN"
    UNBAN = "UNBAN"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    UPDATE_SETTINGS = "UPDATE_SETTINGS"
    UPDATE_MEMBER_ROLE = "UPDATE_MEMBER_ROLE"
    UPDATE_PERMISSIONS = "UPDATE_PERMISSIONS"
    REMOVE_MEMBER = "REMOVE_MEMBER"
    REMOVE_COMMENT = "REMOVE_COMMENT"


class TargetType(enum.StrEnum):
    USER = "USER"
    POST = "POST"
    COMMENT = "COMMENT"
    JOIN_REQUEST = "JOIN_REQUEST"
    SETTINGS = "SETTINGS"


class ModeratorPermission(Base):
    """Explicit capability overrides for a moderator or admin."""

    __tablename__ = "moderator_permission"

    community_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("community.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    manage_settings: Mapped[bool] = mapped_column(Boolean, nullable=False)
    manage_members: Mapped[bool] = mapped_column(Boolean, nullable=False)
    manage_posts: Mapped[bool] = mapped_column(Boolean, nullable=False)
    manage_comments: Mapped[bool] = mapped_column(Boolean, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    def capabilities(self) -> CapabilitySet:
        return CapabilitySet(
            manage_settings=self.manage_settings,
            manage_members=self.manage_members,
            manage_posts=self.manage_posts,
            manage_comments=self.manage_comments,
        )


class JoinRequest(Base):
    """A user's application to join a community that requires approval.

    Approved and rejected rows are kept as immutable history.
    """

    __tablename__ = "community_join_request"
    __table_args__ = (
        # At most one pending request per user and community.
        Index(
            "uq_join_request_pending",
            "community_id",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    community_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("community.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[JoinRequestStatus] = mapped_column(
        str_enum(JoinRequestStatus),
        nullable=False,
        default=JoinRequestStatus.PENDING,
    )
    resolved_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )


class BannedUser(Base):
    """Exclusion of a user from a community.

    A null ``ban_expires_at`` is permanent; a past value is a lapsed ban kept as history.
    """

    __tablename__ = "banned_user"

    community_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("community.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    banned_by: Mapped[str] = mapped_column(String(36), nullable=False)
    ban_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    @classmethod
    def active_at(cls, moment: datetime) -> ColumnElement[bool]:
        """SQL predicate matching bans still in force at ``moment``."""
        return or_(cls.ban_expires_at.is_(None), cls.ban_expires_at > moment)


class PostModeration(Base):
    """Approval state of a post submitted to a community that requires it."""

    __tablename__ = "post_moderation"

    post_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    community_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("community.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[PostModerationStatus] = mapped_column(
        str_enum(PostModerationStatus),
        nullable=False,
        default=PostModerationStatus.PENDING,
    )
    # Null until a moderator acts on the post.
    moderator_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    moderated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class ModerationLogEntry(Base):
    """Append-only record of one moderation action."""

    __tablename__ = "moderation_log"

    # Monotonic id breaks created_at ties in insertion order.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    community_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("community.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    moderator_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action_type: Mapped[str] = mapped_column(String(64), nullable=False)
    target_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    target_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    metadata_: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
