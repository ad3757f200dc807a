"""Authorization checks. Pure functions of caller and target; no side effects."""

from typing import Optional

from bribebank.errors import AuthenticationError, AuthorizationError
from bribebank.models.family import Role, User


def assert_family_member(user: Optional[User], family_id: str) -> User:
    if user is None:
        raise AuthenticationError("UNAUTHENTICATED")
    if user.family_id != family_id:
        raise AuthorizationError("FORBIDDEN")
    return user


def assert_parent(user: User) -> User:
    if user.role != Role.PARENT:
        raise AuthorizationError("PARENT_ONLY")
    return user


def display_name(user: Optional[User], fallback: str) -> str:
    if user is None:
        return fallback
    return user.display_name or user.username or fallback
