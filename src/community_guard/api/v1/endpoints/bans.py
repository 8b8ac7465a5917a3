# src/community_guard/api/v1/endpoints/bans.py
"""Ban endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from community_guard.api.v1.dependencies import (
    BansDep,
    MembersModeratorDep,
    MembershipDep,
    SessionDep,
)
from community_guard.core.errors import PermissionDeniedError
from community_guard.models import BannedUser, CommunityRole
from community_guard.schemas.moderation import (
    BanCreate,
    BanResponse,
    BanStatusResponse,
    ReasonBody,
)
from community_guard.services.membership import ensure_community

router = APIRouter(prefix="/communities", tags=["bans"])


@router.get("/{community_id}/bans", response_model=list[BanResponse])
async def list_bans(
    community_id: str,
    _moderator: MembersModeratorDep,
    db: SessionDep,
    bans: BansDep,
    active_only: bool = False,
) -> list[BannedUser]:
    """List ban records of a community, newest first."""
    ensure_community(db, community_id)
    return bans.list_bans(db, community_id, active_only=active_only)


@router.post(
    "/{community_id}/bans",
    response_model=BanResponse,
    status_code=status.HTTP_201_CREATED,
)
async def ban_user(
    community_id: str,
    payload: BanCreate,
    moderator: MembersModeratorDep,
    db: SessionDep,
    bans: BansDep,
    membership: MembershipDep,
) -> BannedUser:
    """Ban a user; their membership is revoked. Only admins can ban an admin."""
    if membership.get_role(db, community_id, payload.user_id) is CommunityRole.ADMIN and (
        membership.get_role(db, community_id, moderator.id) is not CommunityRole.ADMIN
    ):
        raise PermissionDeniedError("Only admins can ban an admin")
    return bans.ban(
        db,
        community_id,
        payload.user_id,
        moderator.id,
        reason=payload.reason,
        duration_days=payload.duration_days,
    )


@router.get("/{community_id}/bans/{user_id}", response_model=BanStatusResponse)
async def check_ban(
    community_id: str,
    user_id: str,
    db: SessionDep,
    bans: BansDep,
) -> BanStatusResponse:
    """Report whether a user is currently banned."""
    ensure_community(db, community_id)
    return BanStatusResponse(
        community_id=community_id,
        user_id=user_id,
        banned=bans.is_banned(db, community_id, user_id),
    )


@router.delete("/{community_id}/bans/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unban_user(
    community_id: str,
    user_id: str,
    moderator: MembersModeratorDep,
    db: SessionDep,
    bans: BansDep,
    payload: ReasonBody | None = None,
) -> Response:
    """Lift a ban. The user has to rejoin on their own."""
    bans.unban(db, community_id, user_id, moderator.id, payload.reason if payload else None)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
