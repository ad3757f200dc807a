"""Web push subscription endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Response
from sqlmodel import Session

from bribebank.api.deps import get_current_user
from bribebank.config import settings
from bribebank.database import get_session
from bribebank.errors import NotFoundError
from bribebank.models.family import User
from bribebank.schemas.activity import (
    PublicKeyResponse,
    PushSubscribeRequest,
    PushSubscriptionResponse,
    PushUnsubscribeRequest,
)
from bribebank.services import activity_service

router = APIRouter(prefix="/push", tags=["push"])


@router.get("/public-key", response_model=PublicKeyResponse)
def public_key():
    """VAPID application server key for the browser's subscribe call."""
    if not settings.push_enabled:
        raise NotFoundError("PUSH_NOT_CONFIGURED")
    return PublicKeyResponse(public_key=settings.vapid_public_key)


@router.post("/subscribe", response_model=PushSubscriptionResponse)
def subscribe(
    request: PushSubscribeRequest,
    response: Response,
    user_agent: Optional[str] = Header(None),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    sub, created = activity_service.save_subscription(
        user, request.endpoint, request.keys.p256dh, request.keys.auth, user_agent, session
    )
    response.status_code = 201 if created else 200
    return PushSubscriptionResponse(id=sub.id)


@router.post("/unsubscribe", status_code=204)
def unsubscribe(
    request: PushUnsubscribeRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    activity_service.remove_subscription(user, request.endpoint, session)
