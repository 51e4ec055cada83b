# src/quill/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    characters_router,
    chats_router,
    images_router,
    notifications_router,
    posts_router,
    profiles_router,
    stats_router,
    users_router,
)

__all__ = [
    "auth_router",
    "users_router",
    "profiles_router",
    "posts_router",
    "images_router",
    "chats_router",
    "notifications_router",
    "characters_router",
    "stats_router",
]
