# src/quill/api/v1/endpoints/chats.py
"""Chat endpoints. Only members can see a chat; everyone else gets a 404."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, BackgroundTasks, status

from quill.api.v1.dependencies import (
    CurrentUserDep,
    PageDep,
    SessionDep,
    SessionFactoryDep,
)
from quill.models import Message
from quill.schemas.chat import ChatCreate, ChatResponse, MessageCreate, MessageResponse
from quill.services import chats as service
from quill.services.chats import present_chat

router = APIRouter(prefix="/chats", tags=["chats"])


@router.get("", response_model=list[ChatResponse])
async def list_chats(
    db: SessionDep, current_user: CurrentUserDep, page: PageDep
) -> list[dict[str, Any]]:
    return service.get_user_chats(db, current_user, page)


@router.get("/members/{id_or_username}", response_model=list[ChatResponse])
async def list_chats_with_member(
    id_or_username: str, db: SessionDep, current_user: CurrentUserDep
) -> list[dict[str, Any]]:
    """Chats the caller shares with another profile."""
    return service.get_user_chats_by_member(db, current_user, id_or_username)


@router.get("/{chat_id}", response_model=ChatResponse)
async def get_chat(chat_id: int, db: SessionDep, current_user: CurrentUserDep) -> dict[str, Any]:
    return service.get_user_chat(db, current_user, chat_id)


@router.get("/{chat_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    chat_id: int, db: SessionDep, current_user: CurrentUserDep, page: PageDep
) -> list[Message]:
    return service.get_chat_messages(db, current_user, chat_id, page)


@router.get("/{chat_id}/messages/{message_id}", response_model=MessageResponse)
async def get_message(
    chat_id: int, message_id: int, db: SessionDep, current_user: CurrentUserDep
) -> Message:
    return service.get_chat_message(db, current_user, chat_id, message_id)


@router.post("", response_model=ChatResponse, status_code=status.HTTP_201_CREATED)
async def create_chat(
    payload: ChatCreate,
    db: SessionDep,
    current_user: CurrentUserDep,
    session_factory: SessionFactoryDep,
    background_tasks: BackgroundTasks,
) -> dict[str, Any]:
    """Start a chat with ``profiles``, or post to the caller's existing one.

    Leftover duplicates of the chosen chat are removed after the response.
    """
    result = service.create_chat(db, current_user, payload)
    if result.duplicate_ids:
        background_tasks.add_task(
            service.delete_duplicate_chats, session_factory, result.duplicate_ids
        )
    return present_chat(result.chat, current_user.profile)


@router.post(
    "/{chat_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_message(
    chat_id: int, payload: MessageCreate, db: SessionDep, current_user: CurrentUserDep
) -> Message:
    return service.create_chat_message(db, current_user, chat_id, payload)


@router.post("/{chat_id}/seen", response_model=datetime)
async def mark_seen(chat_id: int, db: SessionDep, current_user: CurrentUserDep) -> datetime:
    """Mark the chat as seen by the caller and return the recorded time."""
    return service.mark_chat_seen(db, current_user, chat_id)


@router.delete("/{chat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chat(chat_id: int, db: SessionDep, current_user: CurrentUserDep) -> None:
    service.delete_chat(db, current_user, chat_id)
