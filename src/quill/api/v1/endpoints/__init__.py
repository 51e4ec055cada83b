# src/quill/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .characters import router as characters_router
from .chats import router as chats_router
from .images import router as images_router
from .notifications import router as notifications_router
from .posts import router as posts_router
from .profiles import router as profiles_router
from .stats import router as stats_router
from .users import router as users_router

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
