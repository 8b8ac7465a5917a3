# src/community_guard/schemas/community.py
"""Community, membership and settings Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from community_guard.models.community import CommunityRole, JoinMethod


class CommunityCreate(BaseModel):
    """Schema for creating a new community."""

    slug: str = Field(..., min_length=2, max_length=64, pattern=r"^[a-z0-9][a-z0-9_-]*$")
    display_name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None


class CommunityResponse(BaseModel):
    """Schema for community information returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    slug: str
    display_name: str
    description: str | None
    created_at: datetime


class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    community_id: str
    user_id: str
    role: CommunityRole
    joined_at: datetime


class MemberRoleUpdate(BaseModel):
    role: CommunityRole


class JoinResponse(BaseModel):
    """Outcome of a join attempt: immediate membership or a pending request."""

    status: str = Field(..., description="'joined' or 'requested'")
    member: MemberResponse | None = None
    request_id: str | None = None


class CommunitySettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    community_id: str
    require_post_approval: bool
    join_method: JoinMethod
    allow_post_images: bool
    allow_post_links: bool
    allow_post_videos: bool
    allow_polls: bool
    show_in_discovery: bool
    restricted_words: str | None
    minimum_account_age_days: int


class CommunitySettingsUpdate(BaseModel):
    """Partial settings update; omitted fields are left unchanged."""

    require_post_approval: bool | None = None
    join_method: JoinMethod | None = None
    allow_post_images: bool | None = None
    allow_post_links: bool | None = None
    allow_post_videos: bool | None = None
    allow_polls: bool | None = None
    show_in_discovery: bool | None = None
    restricted_words: str | None = None
    minimum_account_age_days: int | None = Field(None, ge=0)
