"""Family member and ticket API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from bribebank.api.deps import get_current_user, get_outbox
from bribebank.database import get_session
from bribebank.models.family import User
from bribebank.schemas.auth import (
    CreateMemberRequest,
    PasswordChangeRequest,
    UpdateUserRequest,
    UserResponse,
)
from bribebank.schemas.store import TicketBalanceResponse, TicketGrantRequest
from bribebank.services import store_service, user_service
from bribebank.services.outbox import Outbox

router = APIRouter(tags=["users"])


@router.get("/families/{family_id}/users", response_model=list[UserResponse])
def list_family_users(
    family_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return user_service.list_members(family_id, user, session)


@router.post("/families/{family_id}/users", response_model=UserResponse, status_code=201)
def create_family_user(
    family_id: str,
    request: CreateMemberRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    """Add a member directly. Parent only."""
    return user_service.add_member(
        family_id,
        request.username,
        request.password,
        request.display_name,
        request.role,
        user,
        session,
        outbox,
    )


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    request: UpdateUserRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    """Edit a profile. Members may edit themselves, parents anyone in the family."""
    return user_service.update_profile(
        user_id, request.model_dump(exclude_unset=True), user, session, outbox
    )


@router.patch("/users/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    user_id: str,
    request: PasswordChangeRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    user_service.change_password(user_id, request.new_password, user, session)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    """Remove a family member and all of their rows. Parent only, cannot remove yourself."""
    user_service.delete_member(user_id, user, session, outbox)


@router.get("/users/{user_id}/tickets", response_model=TicketBalanceResponse)
def get_ticket_balance(
    user_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    balance = store_service.ticket_balance(user_id, user, session)
    return TicketBalanceResponse(user_id=user_id, ticket_balance=balance)


@router.post("/users/{user_id}/tickets", response_model=TicketBalanceResponse)
def give_tickets(
    user_id: str,
    request: TicketGrantRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    """Grant tickets to a family member. Parent only."""
    balance = store_service.give_tickets(user_id, request.amount, user, session, outbox)
    return TicketBalanceResponse(user_id=user_id, ticket_balance=balance)
