# src/community_guard/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    bans_router,
    communities_router,
    join_requests_router,
    moderation_router,
    permissions_router,
    posts_router,
)

__all__ = [
    "communities_router",
    "join_requests_router",
    "bans_router",
    "permissions_router",
    "posts_router",
    "moderation_router",
]
