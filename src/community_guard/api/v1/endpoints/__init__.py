# src/community_guard/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .bans import router as bans_router
from .communities import router as communities_router
from .join_requests import router as join_requests_router
from .moderation import router as moderation_router
from .permissions import router as permissions_router
from .posts import router as posts_router

__all__ = [
    "bans_router",
    "communities_router",
    "join_requests_router",
    "moderation_router",
    "permissions_router",
    "posts_router",
]
