# src/community_guard/api/v1/endpoints/posts.py
"""Post submission: the moderation-relevant slice of post creation."""

from __future__ import annotations

from fastapi import APIRouter, status

from community_guard.api.v1.dependencies import (
    BansDep,
    CurrentUserDep,
    MembershipDep,
    PostQueueDep,
    SessionDep,
)
from community_guard.core.errors import PermissionDeniedError
from community_guard.db.session import unit_of_work
from community_guard.models import Post
from community_guard.schemas.moderation import PostCreate, PostSubmissionResponse
from community_guard.services.membership import ensure_community

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("/", response_model=PostSubmissionResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    bans: BansDep,
    membership: MembershipDep,
    post_queue: PostQueueDep,
) -> PostSubmissionResponse:
    """Submit a post; it enters the approval queue when the community requires it."""
    ensure_community(db, payload.community_id)
    if bans.is_banned(db, payload.community_id, current_user.id):
        raise PermissionDeniedError("You are banned from this community")
    if membership.get_role(db, payload.community_id, current_user.id) is None:
        raise PermissionDeniedError("Only members can post in this community")

    with unit_of_work(db):
        post = Post(
            community_id=payload.community_id,
            author_id=current_user.id,
            title=payload.title,
            body=payload.body,
        )
        db.add(post)
        db.flush()
        entry = post_queue.enqueue_if_required(db, post)
        response = PostSubmissionResponse(
            id=post.id,
            community_id=post.community_id,
            moderation_status=entry.status if entry is not None else None,
        )
    return response
