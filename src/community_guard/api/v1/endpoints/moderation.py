"""Moderation-related endpoints: the post queue, comment removal and the log."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from community_guard.api.v1.dependencies import (
    AuditLogDep,
    CommentModerationDep,
    CurrentUserDep,
    ModeratorDep,
    PermissionsDep,
    PostQueueDep,
    PostsModeratorDep,
    SessionDep,
)
from community_guard.core.errors import NotFoundError
from community_guard.core.settings import settings
from community_guard.models import Capability, PostModeration
from community_guard.schemas.moderation import (
    CommentRemovalResponse,
    ModerationLogEntryResponse,
    PostDecision,
    PostModerationResponse,
    ReasonBody,
)
from community_guard.services.membership import ensure_community

router = APIRouter(tags=["moderation"])


@router.get("/moderation/posts/{post_id}", response_model=PostModerationResponse)
async def get_post_status(
    post_id: str,
    db: SessionDep,
    post_queue: PostQueueDep,
) -> PostModeration:
    """Return the approval state of a queued post."""
    entry = post_queue.get_status(db, post_id)
    if entry is None:
        raise NotFoundError("Post is not in the moderation queue")
    return entry


@router.get(
    "/communities/{community_id}/moderation/queue",
    response_model=list[PostModerationResponse],
)
async def get_moderation_queue(
    community_id: str,
    _moderator: PostsModeratorDep,
    db: SessionDep,
    post_queue: PostQueueDep,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> list[PostModeration]:
    """Get posts of a community awaiting a decision, oldest first."""
    ensure_community(db, community_id)
    return post_queue.list_pending(db, community_id, limit=limit, offset=offset)


@router.post("/moderation/posts/{post_id}/decision", response_model=PostModerationResponse)
async def decide_post(
    post_id: str,
    payload: PostDecision,
    current_user: CurrentUserDep,
    db: SessionDep,
    post_queue: PostQueueDep,
    permissions: PermissionsDep,
) -> PostModeration:
    """Approve or reject a queued post; earlier decisions may be overturned."""
    entry = post_queue.get_status(db, post_id)
    if entry is None:
        raise NotFoundError("Post is not in the moderation queue")
    permissions.require(db, entry.community_id, current_user.id, Capability.MANAGE_POSTS)
    return post_queue.decide(db, post_id, current_user.id, payload.action, payload.reason)


@router.delete("/moderation/comments/{comment_id}", response_model=CommentRemovalResponse)
async def remove_comment(
    comment_id: str,
    current_user: CurrentUserDep,
    db: SessionDep,
    comments: CommentModerationDep,
    permissions: PermissionsDep,
    payload: ReasonBody | None = None,
) -> CommentRemovalResponse:
    """Remove a comment together with every reply beneath it."""
    community_id = comments.community_of(db, comment_id)
    permissions.require(db, community_id, current_user.id, Capability.MANAGE_COMMENTS)
    removed = comments.remove_comment_thread(
        db, comment_id, current_user.id, payload.reason if payload else None
    )
    return CommentRemovalResponse(removed_ids=removed)


@router.get(
    "/communities/{community_id}/moderation-log",
    response_model=list[ModerationLogEntryResponse],
)
async def get_moderation_log(
    community_id: str,
    _moderator: ModeratorDep,
    db: SessionDep,
    audit: AuditLogDep,
    limit: Annotated[int | None, Query(ge=1)] = None,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[ModerationLogEntryResponse]:
    """Page through the moderation history of a community, newest first."""
    ensure_community(db, community_id)
    page_size = min(limit or settings.audit_page_size_default, settings.audit_page_size_max)
    rows = audit.list_with_moderators(db, community_id, limit=page_size, offset=offset)
    return [
        ModerationLogEntryResponse(
            id=entry.id,
            community_id=entry.community_id,
            moderator_id=entry.moderator_id,
            moderator_username=username,
            action_type=entry.action_type,
            target_id=entry.target_id,
            target_type=entry.target_type,
            reason=entry.reason,
            metadata=entry.metadata_,
            created_at=entry.created_at,
        )
        for entry, username in rows
    ]
