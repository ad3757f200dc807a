"""Registration, login and join-code API endpoints."""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from bribebank.api.deps import get_current_user
from bribebank.database import get_session
from bribebank.models.family import Family, User
from bribebank.schemas.auth import (
    JoinCodeResponse,
    JoinRequest,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    TokenResponse,
)
from bribebank.services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=201)
def register(request: RegisterRequest, session: Session = Depends(get_session)):
    """Create a new family and its first parent account."""
    result = auth_service.register_parent(
        request.username, request.password, request.display_name, request.family_name, session
    )
    return TokenResponse(**result)


@router.post("/join", response_model=TokenResponse, status_code=201)
def join(request: JoinRequest, session: Session = Depends(get_session)):
    """Create a child account using a family join code. No auth required."""
    result = auth_service.join_family(
        request.join_code, request.username, request.password, request.display_name, session
    )
    return TokenResponse(**result)


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, session: Session = Depends(get_session)):
    return TokenResponse(**auth_service.login(request.username, request.password, session))


@router.get("/me", response_model=MeResponse)
def me(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Current user's profile. Parents also see the family join code."""
    family = session.get(Family, user.family_id)
    data = MeResponse.model_validate(
        {
            **user.model_dump(),
            "family_name": family.name if family else "",
        }
    )
    if user.is_parent and family:
        data.join_code = family.join_code
        data.join_code_expiry = family.join_code_expiry
    return data


@router.post("/join-code", response_model=JoinCodeResponse)
def regenerate_join_code(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Issue a fresh join code for the caller's family. Parent only."""
    family = auth_service.regenerate_join_code(user, session)
    return JoinCodeResponse(join_code=family.join_code, expires=family.join_code_expiry)
