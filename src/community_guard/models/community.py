"""SQLAlchemy models for communities, their members and their settings."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from community_guard.db.session import Base
from community_guard.db.types import new_id, str_enum, utcnow


class CommunityRole(enum.StrEnum):
    """A member's standing inside one community."""

    MEMBER = "member"
    MODERATOR = "moderator"
    ADMIN = "admin"


# Roles that carry moderator capabilities.
MODERATOR_ROLES = frozenset({CommunityRole.MODERATOR, CommunityRole.ADMIN})


class JoinMethod(enum.StrEnum):
    """How new members are admitted to a community."""

    OPEN = "open"
    APPROVAL = "approval"


@dataclass(frozen=True)
class CommunitySettingsDefaults:
    """Values a community uses until a moderator changes them."""

    require_post_approval: bool = False
    join_method: JoinMethod = JoinMethod.OPEN
    allow_post_images: bool = True
    allow_post_links: bool = True
    allow_post_videos: bool = True
    allow_polls: bool = True
    show_in_discovery: bool = True
    restricted_words: str | None = None
    minimum_account_age_days: int = 0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


DEFAULT_COMMUNITY_SETTINGS = CommunitySettingsDefaults()


class Community(Base):
    """Community metadata; the scoping boundary for moderation."""

    __tablename__ = "community"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    slug: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class CommunityMember(Base):
    """Membership of one user in one community with exactly one role."""

    __tablename__ = "community_member"

    community_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("community.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    role: Mapped[CommunityRole] = mapped_column(
        str_enum(CommunityRole),
        nullable=False,
        default=CommunityRole.MEMBER,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class CommunitySettings(Base):
    """Per-community configuration; absent rows mean the defaults apply."""

    __tablename__ = "community_settings"

    community_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("community.id", ondelete="CASCADE"),
        primary_key=True,
    )
    require_post_approval: Mapped[bool] = mapped_column(Boolean, nullable=False)
    join_method: Mapped[JoinMethod] = mapped_column(str_enum(JoinMethod), nullable=False)
    allow_post_images: Mapped[bool] = mapped_column(Boolean, nullable=False)
    allow_post_links: Mapped[bool] = mapped_column(Boolean, nullable=False)
    allow_post_videos: Mapped[bool] = mapped_column(Boolean, nullable=False)
    allow_polls: Mapped[bool] = mapped_column(Boolean, nullable=False)
    show_in_discovery: Mapped[bool] = mapped_column(Boolean, nullable=False)
    restricted_words: Mapped[str | None] = mapped_column(Text, nullable=True)
    minimum_account_age_days: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    @classmethod
    def from_defaults(cls, community_id: str) -> CommunitySettings:
        """Build an unsaved row populated from ``DEFAULT_COMMUNITY_SETTINGS``."""
        return cls(community_id=community_id, **DEFAULT_COMMUNITY_SETTINGS.as_dict())
