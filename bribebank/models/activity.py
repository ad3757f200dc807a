"""History, notification and push subscription models."""

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class HistoryEvent(SQLModel, table=True):
    """Append-only activity row. Never updated; removed only with its user."""

    __tablename__ = "history_events"

    id: str = Field(default_factory=lambda: f"his_{secrets.token_hex(4)}", primary_key=True)
    family_id: str = Field(foreign_key="families.id", index=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    user_name: str
    title: str
    emoji: str
    action: str
    assigner_name: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: str = Field(default_factory=lambda: f"ntf_{secrets.token_hex(4)}", primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    message: str
    is_read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PushSubscription(SQLModel, table=True):
    __tablename__ = "push_subscriptions"

    id: str = Field(default_factory=lambda: f"psh_{secrets.token_hex(4)}", primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    endpoint: str = Field(unique=True)
    p256dh: str
    auth: str
    user_agent: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
