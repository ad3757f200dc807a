"""Append-only history and in-app notification writers.

Always called inside the transaction of the state change they describe;
they only add rows to the session and never commit.
"""

from sqlmodel import Session, select

from bribebank.models.activity import HistoryEvent, Notification
from bribebank.models.family import Role, User

# History action tags
TASK_ASSIGNED = "TASK_ASSIGNED"
TASK_ACCEPTED = "TASK_ACCEPTED"
TASK_COMPLETED = "TASK_COMPLETED"
VERIFIED_TASK = "VERIFIED_TASK"
EARNED_TICKETS = "EARNED_TICKETS"
REWARD_ASSIGNED = "REWARD_ASSIGNED"
REWARD_CLAIMED = "REWARD_CLAIMED"
REWARD_APPROVED = "REWARD_APPROVED"
REWARD_REJECTED = "REWARD_REJECTED"
RECEIVED_TICKETS = "RECEIVED_TICKETS"
STORE_PURCHASE = "STORE_PURCHASE"
WHEEL_SPIN_WON = "WHEEL_SPIN_WON"


def add_history_event(
    session: Session,
    *,
    family_id: str,
    user_id: str,
    user_name: str,
    title: str,
    emoji: str,
    action: str,
    assigner_name: str,
) -> HistoryEvent:
    event = HistoryEvent(
        family_id=family_id,
        user_id=user_id,
        user_name=user_name,
        title=title,
        emoji=emoji,
        action=action,
        assigner_name=assigner_name,
    )
    session.add(event)
    return event


def add_notification(session: Session, user_id: str, message: str) -> Notification:
    notification = Notification(user_id=user_id, message=message)
    session.add(notification)
    return notification


def family_parents(session: Session, family_id: str) -> list[User]:
    return list(
        session.exec(
            select(User).where(User.family_id == family_id, User.role == Role.PARENT)
        ).all()
    )


def notify_parents(session: Session, family_id: str, message: str) -> list[User]:
    """Notify every parent of a family. Returns the parents notified."""
    parents = family_parents(session, family_id)
    for parent in parents:
        add_notification(session, parent.id, message)
    return parents
