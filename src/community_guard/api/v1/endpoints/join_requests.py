# src/community_guard/api/v1/endpoints/join_requests.py
"""Join request endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, status

from community_guard.api.v1.dependencies import (
    CurrentUserDep,
    JoinRequestsDep,
    MembersModeratorDep,
    PermissionsDep,
    SessionDep,
)
from community_guard.core.errors import NotFoundError
from community_guard.models import Capability, JoinRequest, JoinRequestStatus
from community_guard.schemas.moderation import JoinRequestResponse
from community_guard.services.membership import ensure_community

router = APIRouter(tags=["join-requests"])


@router.post(
    "/communities/{community_id}/join-requests",
    response_model=JoinRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_join_request(
    community_id: str,
    current_user: CurrentUserDep,
    db: SessionDep,
    join_requests: JoinRequestsDep,
) -> JoinRequest:
    """File a request to join a community."""
    return join_requests.create(db, community_id, current_user.id)


@router.get(
    "/communities/{community_id}/join-requests",
    response_model=list[JoinRequestResponse],
)
async def list_join_requests(
    community_id: str,
    _moderator: MembersModeratorDep,
    db: SessionDep,
    join_requests: JoinRequestsDep,
    status_filter: Annotated[JoinRequestStatus | None, Query(alias="status")] = (
        JoinRequestStatus.PENDING
    ),
) -> list[JoinRequest]:
    """List join requests of a community; pending ones by default."""
    ensure_community(db, community_id)
    return join_requests.list_for_community(db, community_id, status_filter)


def _resolve(
    request_id: str,
    decision: JoinRequestStatus,
    moderator_id: str,
    db: SessionDep,
    join_requests: JoinRequestsDep,
    permissions: PermissionsDep,
) -> JoinRequest:
    request = join_requests.get(db, request_id)
    if request is None:
        raise NotFoundError("Pending join request not found")
    permissions.require(db, request.community_id, moderator_id, Capability.MANAGE_MEMBERS)
    return join_requests.resolve(db, request_id, decision, moderator_id)


@router.post("/join-requests/{request_id}/approve", response_model=JoinRequestResponse)
async def approve_join_request(
    request_id: str,
    current_user: CurrentUserDep,
    db: SessionDep,
    join_requests: JoinRequestsDep,
    permissions: PermissionsDep,
) -> JoinRequest:
    """Approve a pending join request, adding the user as a member."""
    return _resolve(
        request_id, JoinRequestStatus.APPROVED, current_user.id, db, join_requests, permissions
    )


@router.post("/join-requests/{request_id}/reject", response_model=JoinRequestResponse)
async def reject_join_request(
    request_id: str,
    current_user: CurrentUserDep,
    db: SessionDep,
    join_requests: JoinRequestsDep,
    permissions: PermissionsDep,
) -> JoinRequest:
    """Reject a pending join request."""
    return _resolve(
        request_id, JoinRequestStatus.REJECTED, current_user.id, db, join_requests, permissions
    )
