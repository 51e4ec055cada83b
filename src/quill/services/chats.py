# src/quill/services/chats.py
"""Chats between profiles.

``create_chat`` converges repeated calls for the same owner and participant
set onto one chat. The uniqueness key is asymmetric: two different initiators
addressing the same people each own their own thread. Duplicates left behind
by races are healed the next time the owner writes to that set; the extra
threads are deleted after the response by ``delete_duplicate_chats``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query, Session

from quill.core.errors import InvalidReferenceError, NotFoundError, handle_db_errors
from quill.db.session import transaction
from quill.db.time import utcnow
from quill.models import Chat, ChatManager, ChatProfile, Image, Message, Profile, User
from quill.models.chat import CHAT_ROLE_OWNER
from quill.schemas.chat import ChatCreate, MessageCreate
from quill.schemas.common import PageParams
from quill.services.pagination import paginate

logger = logging.getLogger(__name__)

MESSAGES_PREVIEW_SIZE = 10


@dataclass
class ChatCreation:
    """Outcome of ``create_chat``: the chat written to and threads to clean up."""

    chat: Chat
    duplicate_ids: list[int]
    created: bool


def present_chat(chat: Chat, viewer: Profile) -> dict[str, Any]:
    """Serialize a chat for ``viewer``.

    A member's ``last_seen_at`` is only shown to the member itself, or when
    both the viewer and that member are tangible.
    """
    members = []
    for member in chat.profiles:
        show_seen = member.profile_id == viewer.id or (
            viewer.tangible and member.profile is not None and member.profile.tangible
        )
        members.append(
            {
                "profile_id": member.profile_id,
                "profile_name": member.profile_name,
                "joined_at": member.joined_at,
                "last_seen_at": member.last_seen_at if show_seen else None,
                "last_received_at": member.last_received_at,
            }
        )
    recent = sorted(chat.messages, key=lambda m: m.id, reverse=True)[:MESSAGES_PREVIEW_SIZE]
    return {
        "id": chat.id,
        "profiles": members,
        "managers": chat.managers,
        "messages": recent,
        "created_at": chat.created_at,
        "updated_at": chat.updated_at,
    }


def _check_image(db: Session, image_id: int | None) -> None:
    if image_id is not None and db.get(Image, image_id) is None:
        raise InvalidReferenceError("Invalid image id")


def _find_candidates(db: Session, owner: Profile, member_ids: set[int]) -> list[Chat]:
    """Chats owned by ``owner`` whose participants are exactly ``member_ids``.

    Every participant must be in the requested set and the sizes must agree,
    so a chat over a strict subset is never picked.
    """
    outsider = or_(ChatProfile.profile_id.is_(None), ChatProfile.profile_id.notin_(member_ids))
    chats = (
        db.query(Chat)
        .join(ChatManager, ChatManager.chat_id == Chat.id)
        .filter(
            ChatManager.profile_id == owner.id,
            ChatManager.role == CHAT_ROLE_OWNER,
            ~Chat.profiles.any(outsider),
        )
        .order_by(Chat.id)
        .all()
    )
    return [chat for chat in chats if len(chat.profiles) == len(member_ids)]


def _new_message(db: Session, chat: Chat, author: Profile, data: MessageCreate) -> Message:
    message = Message(
        chat=chat,
        profile_id=author.id,
        profile_name=author.user.username,
        body=data.body,
        image_id=data.image_id,
    )
    db.add(message)
    return message


def create_chat(db: Session, user: User, data: ChatCreate) -> ChatCreation:
    """Find or create the user's chat with ``data.profiles`` and post the message.

    Runs as one transaction: an unknown profile id fails the whole call before
    any chat or message row is written.

    Raises:
        InvalidReferenceError: If a profile id or the image id does not resolve
    """
    with transaction(db):
        me = user.profile
        target_ids = set(data.profiles) - {me.id}
        targets = (
            db.query(Profile).filter(Profile.id.in_(target_ids)).order_by(Profile.id).all()
            if target_ids
            else []
        )
        if len(targets) != len(target_ids):
            raise InvalidReferenceError("Invalid profile id")
        _check_image(db, data.image_id)

        now = utcnow()
        candidates = _find_candidates(db, me, {me.id, *target_ids})
        if candidates:
            chat = next((c for c in candidates if c.messages), candidates[0])
            _new_message(db, chat, me, data)
            for member in chat.profiles:
                if member.profile_id == me.id:
                    member.last_seen_at = now
                    member.last_received_at = now
            chat.updated_at = now
            duplicate_ids = [c.id for c in candidates if c.id != chat.id]
            created = False
        else:
            chat = Chat(created_at=now, updated_at=now)
            chat.managers = [ChatManager(profile_id=me.id, role=CHAT_ROLE_OWNER)]
            chat.profiles = [
                ChatProfile(
                    profile_id=me.id,
                    profile_name=me.user.username,
                    joined_at=now,
                    last_seen_at=now,
                    last_received_at=now,
                ),
                *(
                    ChatProfile(profile_id=p.id, profile_name=p.user.username, joined_at=now)
                    for p in targets
                ),
            ]
            _new_message(db, chat, me, data)
            db.add(chat)
            duplicate_ids = []
            created = True
        with handle_db_errors():
            db.flush()
    db.refresh(chat)
    if duplicate_ids:
        logger.info("Chat %s has duplicates %s pending cleanup", chat.id, duplicate_ids)
    return ChatCreation(chat=chat, duplicate_ids=duplicate_ids, created=created)


def delete_duplicate_chats(session_factory: Callable[[], Session], chat_ids: list[int]) -> None:
    """Delete leftover duplicate chats in a session of their own.

    Runs after the response has been sent; failures are logged and left for a
    later ``create_chat`` to heal.
    """
    if not chat_ids:
        return
    db = session_factory()
    try:
        for chat in db.query(Chat).filter(Chat.id.in_(chat_ids)).all():
            db.delete(chat)
        db.commit()
        logger.info("Deleted duplicate chats %s", chat_ids)
    except Exception as exc:
        db.rollback()
        logger.error("Failed to delete duplicate chats %s: %s", chat_ids, exc)
    finally:
        db.close()


def _member_chats(db: Session, profile: Profile) -> Query[Chat]:
    return db.query(Chat).filter(Chat.profiles.any(ChatProfile.profile_id == profile.id))


def _mark_received(db: Session, profile: Profile, chat_ids: list[int]) -> None:
    if not chat_ids:
        return
    db.query(ChatProfile).filter(
        ChatProfile.profile_id == profile.id,
        ChatProfile.chat_id.in_(chat_ids),
    ).update({ChatProfile.last_received_at: utcnow()}, synchronize_session=False)


def _page_by_activity(db: Session, query: Query[Chat], page: PageParams) -> list[Chat]:
    # Most recently active first; the cursor is a chat id.
    if page.cursor is not None:
        anchor = db.get(Chat, page.cursor)
        if anchor is not None:
            if page.sort == "desc":
                query = query.filter(
                    or_(
                        Chat.updated_at < anchor.updated_at,
                        and_(Chat.updated_at == anchor.updated_at, Chat.id < anchor.id),
                    )
                )
            else:
                query = query.filter(
                    or_(
                        Chat.updated_at > anchor.updated_at,
                        and_(Chat.updated_at == anchor.updated_at, Chat.id > anchor.id),
                    )
                )
    if page.sort == "desc":
        query = query.order_by(Chat.updated_at.desc(), Chat.id.desc())
    else:
        query = query.order_by(Chat.updated_at.asc(), Chat.id.asc())
    return query.limit(page.limit).all()


def get_user_chats(db: Session, user: User, page: PageParams) -> list[dict[str, Any]]:
    """The user's chats, newest activity first; marks them as received."""
    me = user.profile
    with transaction(db):
        chat_ids = [chat_id for (chat_id,) in _member_chats(db, me).with_entities(Chat.id)]
        _mark_received(db, me, chat_ids)
    chats = _page_by_activity(db, _member_chats(db, me), page)
    return [present_chat(chat, me) for chat in chats]


def get_user_chats_by_member(db: Session, user: User, id_or_username: str) -> list[dict[str, Any]]:
    """Chats shared by the user and another profile, given by id or username."""
    me = user.profile
    member = (
        db.query(Profile)
        .join(User, Profile.user_id == User.id)
        .filter(User.username == id_or_username)
        .first()
    )
    if member is None and id_or_username.isdigit():
        member = db.get(Profile, int(id_or_username))
    if member is None:
        raise NotFoundError("Chat member profile not found")
    query = _member_chats(db, me).filter(
        Chat.profiles.any(ChatProfile.profile_id == member.id)
    )
    with transaction(db):
        _mark_received(db, me, [chat_id for (chat_id,) in query.with_entities(Chat.id)])
    chats = query.order_by(Chat.updated_at.desc(), Chat.id.desc()).all()
    return [present_chat(chat, me) for chat in chats]


def _get_member_chat_or_404(db: Session, profile: Profile, chat_id: int) -> Chat:
    chat = _member_chats(db, profile).filter(Chat.id == chat_id).first()
    if chat is None:
        raise NotFoundError("Chat not found")
    return chat


def get_user_chat(db: Session, user: User, chat_id: int) -> dict[str, Any]:
    me = user.profile
    _get_member_chat_or_404(db, me, chat_id)
    with transaction(db):
        _mark_received(db, me, [chat_id])
    chat = _get_member_chat_or_404(db, me, chat_id)
    return present_chat(chat, me)


def get_chat_messages(db: Session, user: User, chat_id: int, page: PageParams) -> list[Message]:
    me = user.profile
    _get_member_chat_or_404(db, me, chat_id)
    with transaction(db):
        _mark_received(db, me, [chat_id])
    return paginate(db.query(Message).filter(Message.chat_id == chat_id), Message.id, page)


def get_chat_message(db: Session, user: User, chat_id: int, message_id: int) -> Message:
    me = user.profile
    _get_member_chat_or_404(db, me, chat_id)
    message = (
        db.query(Message).filter(Message.id == message_id, Message.chat_id == chat_id).first()
    )
    if message is None:
        raise NotFoundError("Message not found")
    with transaction(db):
        _mark_received(db, me, [chat_id])
    db.refresh(message)
    return message


def create_chat_message(db: Session, user: User, chat_id: int, data: MessageCreate) -> Message:
    """Post to a chat the user belongs to, marking it seen and received for them."""
    me = user.profile
    chat = _get_member_chat_or_404(db, me, chat_id)
    with transaction(db):
        _check_image(db, data.image_id)
        now = utcnow()
        message = _new_message(db, chat, me, data)
        for member in chat.profiles:
            if member.profile_id == me.id:
                member.last_seen_at = now
                member.last_received_at = now
        chat.updated_at = now
        with handle_db_errors():
            db.flush()
    db.refresh(message)
    return message


def mark_chat_seen(db: Session, user: User, chat_id: int) -> datetime:
    me = user.profile
    _get_member_chat_or_404(db, me, chat_id)
    now = utcnow()
    with transaction(db):
        db.query(ChatProfile).filter(
            ChatProfile.chat_id == chat_id,
            ChatProfile.profile_id == me.id,
        ).update({ChatProfile.last_seen_at: now}, synchronize_session=False)
    return now


def delete_chat(db: Session, user: User, chat_id: int) -> None:
    """Leave a chat; the last member to leave deletes it.

    Unknown chats and chats the user is not in are ignored.
    """
    me = user.profile
    chat = _member_chats(db, me).filter(Chat.id == chat_id).first()
    if chat is None:
        return
    with transaction(db):
        if len(chat.profiles) < 2:
            db.delete(chat)
        else:
            for member in list(chat.profiles):
                if member.profile_id == me.id:
                    chat.profiles.remove(member)
