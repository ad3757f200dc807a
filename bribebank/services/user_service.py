"""Family membership: listing, profile edits and user removal."""

import logging
from typing import Any

from sqlalchemy import delete
from sqlmodel import Session, select

from bribebank.database import atomic
from bribebank.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from bribebank.models.activity import HistoryEvent, Notification, PushSubscription
from bribebank.models.bounty import BountyAssignment
from bribebank.models.family import Role, User
from bribebank.models.reward import AssignedPrize
from bribebank.realtime import events
from bribebank.services.auth_service import create_member, normalize_username
from bribebank.services.guard import assert_family_member, assert_parent
from bribebank.services.outbox import Outbox
from bribebank.utils.security import AVATAR_COLORS, hash_password

logger = logging.getLogger(__name__)

# Rows owned by a user, removed with it
OWNED_MODELS = (Notification, HistoryEvent, BountyAssignment, AssignedPrize, PushSubscription)


def list_members(family_id: str, actor: User, session: Session) -> list[User]:
    assert_family_member(actor, family_id)
    return list(
        session.exec(select(User).where(User.family_id == family_id).order_by(User.created_at)).all()
    )


def add_member(
    family_id: str,
    username: str,
    password: str,
    display_name: str,
    role: Role,
    actor: User,
    session: Session,
    outbox: Outbox,
) -> User:
    assert_parent(assert_family_member(actor, family_id))
    with atomic(session, outbox):
        user = create_member(family_id, username, password, display_name, role, session)
    session.refresh(user)
    outbox.broadcast(events.wallet_update(family_id, "MEMBER_ADDED"))
    return user


def _editable_user(user_id: str, actor: User, session: Session) -> User:
    """Members edit themselves; parents edit anyone in their family."""
    target = session.get(User, user_id)
    if target is None:
        raise NotFoundError("NOT_FOUND")
    assert_family_member(actor, target.family_id)
    if actor.id != target.id and actor.role != Role.PARENT:
        raise AuthorizationError("PARENT_ONLY")
    return target


def update_profile(
    user_id: str, changes: dict[str, Any], actor: User, session: Session, outbox: Outbox
) -> User:
    """Change username, display name, role or avatar colour.

    Usernames are normalised and must stay unique across all families.
    Only parents may change roles, including their own.
    """
    target = _editable_user(user_id, actor, session)
    changes = dict(changes)

    if "username" in changes:
        canonical = normalize_username(changes["username"])
        if not canonical:
            raise ValidationError("MISSING_FIELDS")
        taken = session.exec(
            select(User.id).where(User.username == canonical, User.id != target.id)
        ).first()
        if taken:
            raise ConflictError("USERNAME_TAKEN")
        changes["username"] = canonical
    if "display_name" in changes:
        changes["display_name"] = changes["display_name"].strip()
        if not changes["display_name"]:
            raise ValidationError("MISSING_FIELDS")
    if "avatar_color" in changes and changes["avatar_color"] not in AVATAR_COLORS:
        raise ValidationError("INVALID_AVATAR_COLOR")
    if "role" in changes and changes["role"] != target.role and actor.role != Role.PARENT:
        raise AuthorizationError("PARENT_ONLY")

    with atomic(session, outbox):
        for key, value in changes.items():
            setattr(target, key, value)
        session.add(target)
    session.refresh(target)
    outbox.broadcast(events.wallet_update(target.family_id, "MEMBER_UPDATED"))
    return target


def change_password(user_id: str, new_password: str, actor: User, session: Session) -> None:
    target = _editable_user(user_id, actor, session)
    if not new_password:
        raise ValidationError("MISSING_FIELDS")
    with atomic(session):
        target.password_hash = hash_password(new_password)
        session.add(target)
    logger.info("Password changed for user %s by %s", target.id, actor.id)


def delete_member(user_id: str, actor: User, session: Session, outbox: Outbox) -> None:
    """Remove a user and everything they own. Parents only, never themselves."""
    target = session.get(User, user_id)
    if target is None:
        raise NotFoundError("NOT_FOUND")
    assert_parent(assert_family_member(actor, target.family_id))
    if target.id == actor.id:
        raise ValidationError("CANNOT_DELETE_SELF")

    family_id = target.family_id
    with atomic(session, outbox):
        for model in OWNED_MODELS:
            session.exec(delete(model).where(model.user_id == user_id))
        session.delete(target)

    outbox.broadcast(events.wallet_update(family_id, "MEMBER_REMOVED"))
    logger.info("User %s removed from family %s by %s", user_id, family_id, actor.id)
