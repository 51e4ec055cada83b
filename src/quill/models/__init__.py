# src/quill/models/__init__.py
"""SQLAlchemy models for the Quill application."""

from .character import CharacterFinder, CharacterRect
from .chat import Chat, ChatManager, ChatProfile, Message
from .image import Image
from .notification import Notification, NotificationReceiver
from .post import Comment, Post, PostTag, Tag, Vote
from .stats import Creation, Visitor
from .system import PurgeWatermark
from .user import Follow, Profile, User

__all__ = [
    "CharacterFinder", "CharacterRect",
    "Chat", "ChatManager", "ChatProfile", "Message",
    "Image",
    "Notification", "NotificationReceiver",
    "Comment", "Post", "PostTag", "Tag", "Vote",
    "Creation", "Visitor",
    "PurgeWatermark",
    "Follow", "Profile", "User",
]
