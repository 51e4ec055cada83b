# src/quill/api/v1/endpoints/notifications.py
"""The caller's notification inbox."""

from __future__ import annotations

from fastapi import APIRouter, status

from quill.api.v1.dependencies import CurrentUserDep, SessionDep
from quill.schemas.notification import NotificationResponse
from quill.services import notifications as service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(db: SessionDep, current_user: CurrentUserDep) -> list[dict[str, object]]:
    return service.get_user_notifications(db, current_user)


@router.patch("/seen", status_code=status.HTTP_204_NO_CONTENT)
async def mark_seen(db: SessionDep, current_user: CurrentUserDep) -> None:
    service.mark_notifications_seen(db, current_user)


@router.get("/{notification_id}", response_model=NotificationResponse)
async def get_notification(
    notification_id: int, db: SessionDep, current_user: CurrentUserDep
) -> dict[str, object]:
    return service.get_user_notification(db, current_user, notification_id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: int, db: SessionDep, current_user: CurrentUserDep
) -> None:
    service.delete_user_notification(db, current_user, notification_id)
