"""Moderation services for Community Guard."""

from .audit import AuditLog
from .bans import BanManager
from .comments import CommentModeration
from .community_settings import CommunitySettingsService
from .join_requests import JoinRequestWorkflow
from .membership import MembershipStore
from .permissions import PermissionResolver
from .post_queue import PostModerationQueue

__all__ = [
    "AuditLog",
    "BanManager",
    "CommentModeration",
    "CommunitySettingsService",
    "JoinRequestWorkflow",
    "MembershipStore",
    "PermissionResolver",
    "PostModerationQueue",
]
