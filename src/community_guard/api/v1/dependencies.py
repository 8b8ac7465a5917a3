"""Shared API dependencies for authentication, services and authorization."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from community_guard.core.security import decode_subject
from community_guard.db.session import get_db
from community_guard.models import Capability, User
from community_guard.services import (
    AuditLog,
    BanManager,
    CommentModeration,
    CommunitySettingsService,
    JoinRequestWorkflow,
    MembershipStore,
    PermissionResolver,
    PostModerationQueue,
)

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

# Services are stateless; one shared graph serves every request.
_audit = AuditLog()
_membership = MembershipStore(_audit)
_community_settings = CommunitySettingsService(_audit)
_permissions = PermissionResolver(_membership, _audit)
_bans = BanManager(_membership, _audit)
_join_requests = JoinRequestWorkflow(_membership, _bans, _audit, _community_settings)
_post_queue = PostModerationQueue(_audit, _community_settings)
_comments = CommentModeration(_audit)


def get_audit_log() -> AuditLog:
    return _audit


def get_membership_store() -> MembershipStore:
    return _membership


def get_community_settings_service() -> CommunitySettingsService:
    return _community_settings


def get_permission_resolver() -> PermissionResolver:
    return _permissions


def get_ban_manager() -> BanManager:
    return _bans


def get_join_request_workflow() -> JoinRequestWorkflow:
    return _join_requests


def get_post_queue() -> PostModerationQueue:
    return _post_queue


def get_comment_moderation() -> CommentModeration:
    return _comments


AuditLogDep = Annotated[AuditLog, Depends(get_audit_log)]
MembershipDep = Annotated[MembershipStore, Depends(get_membership_store)]
SettingsServiceDep = Annotated[CommunitySettingsService, Depends(get_community_settings_service)]
PermissionsDep = Annotated[PermissionResolver, Depends(get_permission_resolver)]
BansDep = Annotated[BanManager, Depends(get_ban_manager)]
JoinRequestsDep = Annotated[JoinRequestWorkflow, Depends(get_join_request_workflow)]
PostQueueDep = Annotated[PostModerationQueue, Depends(get_post_queue)]
CommentModerationDep = Annotated[CommentModeration, Depends(get_comment_moderation)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If token is invalid or user not found
    """
    user_id = decode_subject(credentials.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def require_capability(capability: Capability) -> Callable[..., User]:
    """Build a dependency that authorizes the caller for ``community_id``.

    The route must declare a ``community_id`` path parameter.
    """

    def _dependency(
        community_id: str,
        current_user: CurrentUserDep,
        db: SessionDep,
        permissions: PermissionsDep,
    ) -> User:
        permissions.require(db, community_id, current_user.id, capability)
        return current_user

    return _dependency


def require_moderator(
    community_id: str,
    current_user: CurrentUserDep,
    db: SessionDep,
    permissions: PermissionsDep,
) -> User:
    """Allow any moderator or admin of the community through."""
    if not permissions.is_moderator(db, community_id, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Moderator role required",
        )
    return current_user


SettingsModeratorDep = Annotated[User, Depends(require_capability(Capability.MANAGE_SETTINGS))]
MembersModeratorDep = Annotated[User, Depends(require_capability(Capability.MANAGE_MEMBERS))]
PostsModeratorDep = Annotated[User, Depends(require_capability(Capability.MANAGE_POSTS))]
ModeratorDep = Annotated[User, Depends(require_moderator)]
