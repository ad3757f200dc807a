"""History, notification and push subscription schemas."""

from datetime import datetime

from pydantic import Field

from bribebank.schemas.common import ApiModel


class HistoryEventResponse(ApiModel):
    id: str
    family_id: str
    user_id: str
    user_name: str
    title: str
    emoji: str
    action: str
    assigner_name: str
    created_at: datetime


class NotificationResponse(ApiModel):
    id: str
    user_id: str
    message: str
    is_read: bool
    created_at: datetime


class PushKeys(ApiModel):
    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)


class PushSubscribeRequest(ApiModel):
    endpoint: str = Field(min_length=1)
    keys: PushKeys


class PushUnsubscribeRequest(ApiModel):
    endpoint: str = Field(min_length=1)


class PushSubscriptionResponse(ApiModel):
    id: str


class PublicKeyResponse(ApiModel):
    public_key: str
