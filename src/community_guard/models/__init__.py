# src/community_guard/models/__init__.py
"""SQLAlchemy models for the Community Guard service."""

from .community import Community, CommunityMember, CommunityRole, CommunitySettings, JoinMethod
from .moderation import (
    BannedUser,
    Capability,
    CapabilitySet,
    JoinRequest,
    JoinRequestStatus,
    ModerationAction,
    ModerationLogEntry,
    ModeratorPermission,
    PostModeration,
    PostModerationStatus,
    TargetType,
)
from .post import Comment, Post
from .user import User

__all__ = [
    "Community", "CommunityMember", "CommunityRole", "CommunitySettings", "JoinMethod",
    "BannedUser", "Capability", "CapabilitySet",
    "JoinRequest", "JoinRequestStatus",
    "ModerationAction", "ModerationLogEntry", "ModeratorPermission",
    "PostModeration", "PostModerationStatus", "TargetType",
    "Comment", "Post",
    "User",
]
