# src/community_guard/api/v1/endpoints/communities.py
"""Community, membership and settings endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response, status
from sqlalchemy import select

from community_guard.api.v1.dependencies import (
    CurrentUserDep,
    JoinRequestsDep,
    MembershipDep,
    MembersModeratorDep,
    SessionDep,
    SettingsModeratorDep,
    SettingsServiceDep,
)
from community_guard.core.errors import NotFoundError, PermissionDeniedError
from community_guard.db.session import unit_of_work
from community_guard.models import Community, CommunityMember, CommunityRole, CommunitySettings
from community_guard.schemas.community import (
    CommunityCreate,
    CommunityResponse,
    CommunitySettingsResponse,
    CommunitySettingsUpdate,
    JoinResponse,
    MemberResponse,
    MemberRoleUpdate,
)
from community_guard.schemas.moderation import ReasonBody
from community_guard.services.membership import ensure_community

router = APIRouter(prefix="/communities", tags=["communities"])

# Fields of CommunitySettingsUpdate that may be cleared with an explicit null.
_NULLABLE_SETTINGS = frozenset({"restricted_words"})


@router.get("/", response_model=list[CommunityResponse])
async def list_communities(db: SessionDep) -> list[Community]:
    """List all communities."""
    return list(db.scalars(select(Community).order_by(Community.created_at, Community.slug)))


@router.post("/", response_model=CommunityResponse, status_code=status.HTTP_201_CREATED)
async def create_community(
    community_data: CommunityCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    membership: MembershipDep,
) -> Community:
    """Create a new community; the creator becomes its admin."""
    existing = db.scalar(select(Community).where(Community.slug == community_data.slug))
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Community slug already exists",
        )

    with unit_of_work(db):
        community = Community(
            slug=community_data.slug,
            display_name=community_data.display_name,
            description=community_data.description,
        )
        db.add(community)
        db.flush()
        membership.upsert_member(db, community.id, current_user.id, CommunityRole.ADMIN)
    db.refresh(community)
    return community


@router.get("/{community_id}", response_model=CommunityResponse)
async def get_community(community_id: str, db: SessionDep) -> Community:
    """Get a specific community by ID."""
    return ensure_community(db, community_id)


@router.get("/{community_id}/members", response_model=list[MemberResponse])
async def list_members(
    community_id: str,
    db: SessionDep,
    membership: MembershipDep,
    role: CommunityRole | None = None,
) -> list[CommunityMember]:
    """List members of a community, optionally filtered by role."""
    ensure_community(db, community_id)
    return membership.list_members(db, community_id, role)


@router.post("/{community_id}/join", response_model=JoinResponse, status_code=status.HTTP_201_CREATED)
async def join_community(
    community_id: str,
    current_user: CurrentUserDep,
    db: SessionDep,
    join_requests: JoinRequestsDep,
    settings_service: SettingsServiceDep,
    response: Response,
) -> JoinResponse:
    """Join a community, or file a join request when it requires approval."""
    ensure_community(db, community_id)
    if settings_service.requires_join_approval(db, community_id):
        request = join_requests.create(db, community_id, current_user.id)
        response.status_code = status.HTTP_202_ACCEPTED
        return JoinResponse(status="requested", request_id=request.id)

    member = join_requests.join(db, community_id, current_user.id)
    return JoinResponse(status="joined", member=MemberResponse.model_validate(member))


@router.delete("/{community_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
async def leave_community(
    community_id: str,
    current_user: CurrentUserDep,
    db: SessionDep,
    membership: MembershipDep,
) -> Response:
    """Leave a community."""
    if not membership.remove_member(db, community_id, current_user.id):
        raise NotFoundError("Not a member of this community")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{community_id}/members/{user_id}", response_model=MemberResponse)
async def update_member_role(
    community_id: str,
    user_id: str,
    payload: MemberRoleUpdate,
    moderator: MembersModeratorDep,
    db: SessionDep,
    membership: MembershipDep,
) -> CommunityMember:
    """Promote or demote a member. Granting or revoking admin requires an admin."""
    current_role = membership.get_role(db, community_id, user_id)
    touches_admin = CommunityRole.ADMIN in (payload.role, current_role)
    if touches_admin and membership.get_role(db, community_id, moderator.id) is not CommunityRole.ADMIN:
        raise PermissionDeniedError("Only admins can grant or revoke the admin role")
    return membership.change_role(db, community_id, user_id, payload.role, moderator.id)


@router.delete("/{community_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    community_id: str,
    user_id: str,
    moderator: MembersModeratorDep,
    db: SessionDep,
    membership: MembershipDep,
    payload: ReasonBody | None = None,
) -> Response:
    """Remove a member from the community."""
    if membership.get_role(db, community_id, user_id) is CommunityRole.ADMIN and (
        membership.get_role(db, community_id, moderator.id) is not CommunityRole.ADMIN
    ):
        raise PermissionDeniedError("Only admins can remove an admin")
    membership.kick(db, community_id, user_id, moderator.id, payload.reason if payload else None)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{community_id}/settings", response_model=CommunitySettingsResponse)
async def get_settings(
    community_id: str,
    db: SessionDep,
    settings_service: SettingsServiceDep,
) -> CommunitySettings:
    """Return community settings, falling back to the defaults."""
    ensure_community(db, community_id)
    return settings_service.get_settings(db, community_id)


@router.put("/{community_id}/settings", response_model=CommunitySettingsResponse)
async def update_settings(
    community_id: str,
    payload: CommunitySettingsUpdate,
    moderator: SettingsModeratorDep,
    db: SessionDep,
    settings_service: SettingsServiceDep,
) -> CommunitySettings:
    """Update community settings; only the fields sent are changed."""
    changes = {
        name: value
        for name, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or name in _NULLABLE_SETTINGS
    }
    return settings_service.update_settings(db, community_id, moderator.id, **changes)
