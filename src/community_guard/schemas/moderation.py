# src/community_guard/schemas/moderation.py
"""Moderation-related Pydantic schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from community_guard.models.moderation import (
    MAX_BAN_DURATION_DAYS,
    JoinRequestStatus,
    PostModerationStatus,
)


class PermissionsResponse(BaseModel):
    """Effective capabilities of a moderator."""

    model_config = ConfigDict(from_attributes=True)

    community_id: str
    user_id: str
    manage_settings: bool
    manage_members: bool
    manage_posts: bool
    manage_comments: bool


class PermissionsUpdate(BaseModel):
    manage_settings: bool | None = None
    manage_members: bool | None = None
    manage_posts: bool | None = None
    manage_comments: bool | None = None


class JoinRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    community_id: str
    user_id: str
    status: JoinRequestStatus
    resolved_by: str | None
    requested_at: datetime
    updated_at: datetime


class BanCreate(BaseModel):
    """Schema for banning a user from a community."""

    user_id: str
    reason: str | None = Field(None, max_length=1000)
    duration_days: int | None = Field(
        None, gt=0, le=MAX_BAN_DURATION_DAYS, description="Omit for a permanent ban"
    )


class BanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    community_id: str
    user_id: str
    reason: str | None
    banned_by: str
    ban_expires_at: datetime | None
    created_at: datetime


class BanStatusResponse(BaseModel):
    community_id: str
    user_id: str
    banned: bool


class PostCreate(BaseModel):
    """Schema for submitting a post to a community."""

    community_id: str
    title: str = Field(..., min_length=1, max_length=300)
    body: str | None = Field(None, max_length=40000)


class PostSubmissionResponse(BaseModel):
    id: str
    community_id: str
    moderation_status: PostModerationStatus | None = Field(
        None, description="Null when the community does not require approval"
    )


class PostModerationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    post_id: str
    community_id: str
    status: PostModerationStatus
    moderator_id: str | None
    reason: str | None
    moderated_at: datetime | None
    created_at: datetime


class PostDecision(BaseModel):
    action: Literal["approve", "reject"]
    reason: str | None = Field(None, max_length=1000)


class ReasonBody(BaseModel):
    reason: str | None = Field(None, max_length=1000)


class CommentRemovalResponse(BaseModel):
    removed_ids: list[str]


class ModerationLogEntryResponse(BaseModel):
    """A moderation log entry with the moderator's display name."""

    id: int
    community_id: str
    moderator_id: str
    moderator_username: str | None = None
    action_type: str
    target_id: str | None
    target_type: str | None
    reason: str | None
    metadata: dict[str, Any] | None
    created_at: datetime
