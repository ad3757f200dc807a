"""History and notification inbox reads, plus push subscription storage."""

from typing import Optional

from sqlalchemy import update
from sqlmodel import Session, select

from bribebank.config import settings
from bribebank.errors import AuthorizationError, NotFoundError, ValidationError
from bribebank.models.activity import HistoryEvent, Notification, PushSubscription
from bribebank.models.family import User
from bribebank.services.guard import assert_family_member


def list_history(
    family_id: str, actor: User, session: Session, user_id: Optional[str] = None
) -> list[HistoryEvent]:
    assert_family_member(actor, family_id)
    query = select(HistoryEvent).where(HistoryEvent.family_id == family_id)
    if user_id:
        query = query.where(HistoryEvent.user_id == user_id)
    query = query.order_by(HistoryEvent.created_at.desc()).limit(settings.history_limit)
    return list(session.exec(query).all())


def _assert_self(actor: User, user_id: str) -> None:
    if actor.id != user_id:
        raise AuthorizationError("FORBIDDEN")


def unread_notifications(user_id: str, actor: User, session: Session) -> list[Notification]:
    _assert_self(actor, user_id)
    return list(
        session.exec(
            select(Notification)
            .where(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
            .order_by(Notification.created_at.desc())
        ).all()
    )


def mark_read(notification_id: str, actor: User, session: Session) -> Notification:
    notification = session.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("NOT_FOUND")
    _assert_self(actor, notification.user_id)
    notification.is_read = True
    session.add(notification)
    session.commit()
    session.refresh(notification)
    return notification


def mark_all_read(user_id: str, actor: User, session: Session) -> None:
    _assert_self(actor, user_id)
    session.exec(
        update(Notification).where(Notification.user_id == user_id).values(is_read=True)
    )
    session.commit()


def save_subscription(
    actor: User,
    endpoint: str,
    p256dh: str,
    auth: str,
    user_agent: Optional[str],
    session: Session,
) -> tuple[PushSubscription, bool]:
    """Upsert by endpoint. Returns the subscription and whether it was created."""
    if not endpoint or not p256dh or not auth:
        raise ValidationError("INVALID_SUBSCRIPTION")
    existing = session.exec(
        select(PushSubscription).where(PushSubscription.endpoint == endpoint)
    ).first()
    if existing:
        existing.user_id = actor.id
        existing.p256dh = p256dh
        existing.auth = auth
        existing.user_agent = user_agent
        session.add(existing)
        session.commit()
        return existing, False

    sub = PushSubscription(
        user_id=actor.id, endpoint=endpoint, p256dh=p256dh, auth=auth, user_agent=user_agent
    )
    session.add(sub)
    session.commit()
    session.refresh(sub)
    return sub, True


def remove_subscription(actor: User, endpoint: str, session: Session) -> None:
    subs = session.exec(
        select(PushSubscription).where(
            PushSubscription.user_id == actor.id, PushSubscription.endpoint == endpoint
        )
    ).all()
    for sub in subs:
        session.delete(sub)
    session.commit()
