"""Account registration, family join codes and login."""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from bribebank.errors import ConflictError, ValidationError
from bribebank.models.family import Family, Role, User
from bribebank.services.guard import assert_parent
from bribebank.utils.security import (
    create_access_token,
    generate_join_code,
    hash_password,
    join_code_expiry,
    pick_avatar_color,
    verify_password,
)

logger = logging.getLogger(__name__)


def normalize_username(username: str) -> str:
    return username.strip().lower()


def _naive(dt: datetime) -> datetime:
    # SQLite hands datetimes back without tzinfo
    return dt.replace(tzinfo=None) if dt.tzinfo is not None else dt


def issue_token(user: User) -> str:
    return create_access_token(user.id, user.family_id, user.role.value)


def create_member(
    family_id: str,
    username: str,
    password: str,
    display_name: str,
    role: Role,
    session: Session,
) -> User:
    """Add a user to a family. Flushes but does not commit."""
    canonical = normalize_username(username)
    if not canonical or not password or not display_name.strip():
        raise ValidationError("MISSING_FIELDS")
    taken = session.exec(select(User.id).where(User.username == canonical)).first()
    if taken:
        raise ConflictError("USERNAME_TAKEN")

    user = User(
        family_id=family_id,
        username=canonical,
        password_hash=hash_password(password),
        display_name=display_name.strip(),
        role=role,
        avatar_color=pick_avatar_color(),
    )
    session.add(user)
    try:
        session.flush()
    except IntegrityError:
        session.rollback()
        raise ConflictError("USERNAME_TAKEN")
    return user


def register_parent(
    username: str, password: str, display_name: str, family_name: str, session: Session
) -> dict:
    """Create a family and its first parent."""
    if not family_name.strip():
        raise ValidationError("MISSING_FIELDS")
    family = Family(
        name=family_name.strip(),
        join_code=generate_join_code(),
        join_code_expiry=join_code_expiry(),
    )
    session.add(family)
    session.flush()
    user = create_member(family.id, username, password, display_name, Role.PARENT, session)
    session.commit()
    logger.info("Registered family %s with parent %s", family.id, user.id)
    return {
        "token": issue_token(user),
        "user_id": user.id,
        "family_id": family.id,
        "join_code": family.join_code,
    }


def join_family(
    join_code: str, username: str, password: str, display_name: str, session: Session
) -> dict:
    """Create a child account in the family owning a live join code."""
    code = join_code.strip().upper()
    family = session.exec(select(Family).where(Family.join_code == code)).first()
    if family is None or family.join_code_expiry is None:
        raise ValidationError("INVALID_JOIN_CODE")
    if _naive(datetime.now(timezone.utc)) > _naive(family.join_code_expiry):
        raise ValidationError("INVALID_JOIN_CODE")

    user = create_member(family.id, username, password, display_name, Role.CHILD, session)
    session.commit()
    return {
        "token": issue_token(user),
        "user_id": user.id,
        "family_id": family.id,
        "family_name": family.name,
    }


def login(username: str, password: str, session: Session) -> dict:
    user = session.exec(
        select(User).where(User.username == normalize_username(username))
    ).first()
    if user is None or not verify_password(password, user.password_hash):
        raise ValidationError("INVALID_CREDENTIALS")
    return {"token": issue_token(user), "user_id": user.id, "family_id": user.family_id}


def regenerate_join_code(actor: User, session: Session) -> Family:
    assert_parent(actor)
    family = session.get(Family, actor.family_id)
    family.join_code = generate_join_code()
    family.join_code_expiry = join_code_expiry()
    session.add(family)
    session.commit()
    session.refresh(family)
    return family
