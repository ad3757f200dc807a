"""History feed and notification inbox API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from bribebank.api.deps import get_current_user
from bribebank.database import get_session
from bribebank.models.family import User
from bribebank.schemas.activity import HistoryEventResponse, NotificationResponse
from bribebank.services import activity_service

router = APIRouter(tags=["activity"])


@router.get("/families/{family_id}/history", response_model=list[HistoryEventResponse])
def list_history(
    family_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Newest first, capped at the configured history limit."""
    return activity_service.list_history(family_id, user, session, user_id=user_id)


@router.get("/users/{user_id}/notifications", response_model=list[NotificationResponse])
def list_notifications(
    user_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return activity_service.unread_notifications(user_id, user, session)


@router.post("/notifications/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return activity_service.mark_read(notification_id, user, session)


@router.post("/users/{user_id}/notifications/read-all", status_code=status.HTTP_204_NO_CONTENT)
def mark_all_read(
    user_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    activity_service.mark_all_read(user_id, user, session)
