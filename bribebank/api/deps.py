"""Common API dependencies: current user extraction, post-commit dispatch."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from bribebank.database import get_session
from bribebank.errors import AuthenticationError
from bribebank.models.family import User
from bribebank.services.dispatch import dispatcher
from bribebank.services.outbox import Outbox
from bribebank.utils.security import decode_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    """Extract and validate user from JWT access token."""
    if credentials is None:
        raise AuthenticationError("UNAUTHENTICATED")
    try:
        payload = decode_token(credentials.credentials)
    except Exception:
        raise AuthenticationError("INVALID_TOKEN")

    if payload.get("type") != "access":
        raise AuthenticationError("INVALID_TOKEN")

    user = session.get(User, payload.get("sub", ""))
    if not user:
        raise AuthenticationError("UNAUTHENTICATED")
    return user


def get_outbox():
    """Collect side effects for the request and deliver them once it succeeds.

    If the endpoint raises, the exception surfaces at ``yield`` and nothing
    is dispatched; ``dispatch`` also ignores outboxes whose transaction never
    committed.
    """
    outbox = Outbox()
    yield outbox
    dispatcher.dispatch(outbox)
