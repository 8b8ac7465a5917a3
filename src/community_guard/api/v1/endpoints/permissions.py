# src/community_guard/api/v1/endpoints/permissions.py
"""Endpoints for reading and delegating moderator capabilities."""

from __future__ import annotations

from fastapi import APIRouter

from community_guard.api.v1.dependencies import (
    MembersModeratorDep,
    ModeratorDep,
    PermissionsDep,
    SessionDep,
)
from community_guard.core.errors import NotFoundError
from community_guard.models import CapabilitySet
from community_guard.schemas.moderation import PermissionsResponse, PermissionsUpdate

router = APIRouter(prefix="/communities", tags=["permissions"])


def _to_response(community_id: str, user_id: str, capabilities: CapabilitySet) -> PermissionsResponse:
    return PermissionsResponse(
        community_id=community_id,
        user_id=user_id,
        manage_settings=capabilities.manage_settings,
        manage_members=capabilities.manage_members,
        manage_posts=capabilities.manage_posts,
        manage_comments=capabilities.manage_comments,
    )


@router.get(
    "/{community_id}/moderators/{user_id}/permissions",
    response_model=PermissionsResponse,
)
async def get_permissions(
    community_id: str,
    user_id: str,
    _moderator: ModeratorDep,
    db: SessionDep,
    permissions: PermissionsDep,
) -> PermissionsResponse:
    """Return the effective capabilities of a moderator or admin."""
    capabilities = permissions.get_permissions(db, community_id, user_id)
    if capabilities is None:
        raise NotFoundError("User is not a moderator of this community")
    return _to_response(community_id, user_id, capabilities)


@router.put(
    "/{community_id}/moderators/{user_id}/permissions",
    response_model=PermissionsResponse,
)
async def set_permissions(
    community_id: str,
    user_id: str,
    payload: PermissionsUpdate,
    moderator: MembersModeratorDep,
    db: SessionDep,
    permissions: PermissionsDep,
) -> PermissionsResponse:
    """Set explicit capability flags for a moderator."""
    row = permissions.set_permissions(
        db,
        community_id,
        user_id,
        moderator.id,
        **payload.model_dump(exclude_none=True),
    )
    return _to_response(community_id, user_id, row.capabilities())
